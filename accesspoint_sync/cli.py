"""
Command-line entry point for the access point sync engine.

Each command prints its result envelope as JSON and exits 0 on success, 1 on
failure.

Usage:
    accesspoint-sync bulk-sync seed/access_points.json
    accesspoint-sync resync
    accesspoint-sync health
    accesspoint-sync get <id>
    accesspoint-sync list [--subnet NAME] [--tag TAG] [--capability CAP]
    accesspoint-sync search "image generation" --top-k 5
    accesspoint-sync delete <id>
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from accesspoint_sync.config import AppConfig, load_config, validate_config
from accesspoint_sync.logging_utils import configure_logging, get_logger
from accesspoint_sync.models import APIResponse
from accesspoint_sync.sync.manager import SyncCoordinator

logger = get_logger(__name__)


def build_coordinator(cfg: AppConfig) -> SyncCoordinator:
    return SyncCoordinator.from_config(cfg)


def _load_records(path: Path) -> APIResponse:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return APIResponse.fail(f"Could not read {path}: {e}")
    if not isinstance(payload, list):
        return APIResponse.fail(f"{path} must contain a JSON array of access points")
    return APIResponse.ok(payload)


def _emit(result: APIResponse) -> int:
    print(result.model_dump_json(indent=2, by_alias=True))
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accesspoint-sync",
        description="Keep the access point store and its vector index in sync.",
    )
    parser.add_argument("--env-file", type=str, default=None, help="Path to a .env file")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    bulk = sub.add_parser("bulk-sync", help="Upsert a JSON array of access points into both backends")
    bulk.add_argument("file", type=Path)

    sub.add_parser("resync", help="Rebuild the vector index from the record store")
    sub.add_parser("health", help="Probe both backends")

    get = sub.add_parser("get", help="Fetch one access point from the store")
    get.add_argument("id")

    lst = sub.add_parser("list", help="List access points, newest first")
    lst.add_argument("--subnet", default=None, help="Only this subnet name")
    lst.add_argument("--tag", default=None)
    lst.add_argument("--capability", default=None)

    search = sub.add_parser("search", help="Similarity search with store fallback")
    search.add_argument("query")
    search.add_argument("--top-k", type=int, default=None)

    delete = sub.add_parser("delete", help="Delete an access point from both backends")
    delete.add_argument("id")

    return parser


def run(args: argparse.Namespace, coordinator: SyncCoordinator) -> int:
    if args.command == "bulk-sync":
        loaded = _load_records(args.file)
        if not loaded.success:
            return _emit(loaded)
        logger.info("[CLI] Bulk syncing %d records from %s", len(loaded.data), args.file)
        return _emit(coordinator.bulk_sync(loaded.data))

    if args.command == "resync":
        return _emit(coordinator.resync_from_store())

    if args.command == "health":
        report = coordinator.health_check()
        down = [name for name, ok in (("record store", report.store), ("vector index", report.index)) if not ok]
        result = APIResponse(
            success=not down,
            data=report,
            error=f"Unavailable: {', '.join(down)}" if down else None,
        )
        return _emit(result)

    if args.command == "get":
        return _emit(coordinator.get(args.id))

    if args.command == "list":
        if args.subnet or args.tag or args.capability:
            return _emit(coordinator.find(subnet_name=args.subnet, tag=args.tag, capability=args.capability))
        return _emit(coordinator.get_all())

    if args.command == "search":
        return _emit(coordinator.search(args.query, args.top_k))

    if args.command == "delete":
        return _emit(coordinator.delete(args.id))

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.env_file)
    configure_logging(args.log_level)

    for issue in validate_config(cfg):
        logger.warning("[CLI] %s", issue)

    try:
        coordinator = build_coordinator(cfg)
    except RuntimeError as e:
        logger.error("[CLI] Could not build the sync coordinator: %s", e)
        return _emit(APIResponse.fail(str(e)))

    return run(args, coordinator)


if __name__ == "__main__":
    sys.exit(main())
