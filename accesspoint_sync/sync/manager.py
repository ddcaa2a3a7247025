"""
Dual-write coordination between the record store and the vector index.

The record store is the source of truth and is always written first. Each
cross-backend operation is a short saga with a fixed policy:

- create: store, then index; an index failure deletes the new store row
- update: store, then index with the merged record; index staleness is tolerated
- delete: both sides concurrently; success if either side succeeds
- bulk_sync: atomic store batch, then index with exactly one retry
- resync_from_store: rebuild the index from the store; safe to re-run

Nothing is persisted between calls. Every tolerated discrepancy is logged, and
``resync_from_store`` is the repair path for all of them.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from accesspoint_sync.clients.vector_index import VectorIndex
from accesspoint_sync.config import AppConfig, load_config
from accesspoint_sync.database.record_store import RecordInput, RecordStore, coerce_record
from accesspoint_sync.errors import PartialSyncError, ValidationError
from accesspoint_sync.logging_utils import get_logger
from accesspoint_sync.models import AccessPoint, AccessPointUpdate, APIResponse, HealthReport

logger = get_logger(__name__)


def _settled(future: Future, backend: str) -> APIResponse:
    """Result of a fanned-out call; an unexpected exception counts as a failure."""
    try:
        return future.result()
    except Exception as e:  # noqa: BLE001
        logger.error("[SYNC] Unexpected error from %s: %r", backend, e)
        return APIResponse.fail(f"{backend}: unexpected error: {e!r}")


class SyncCoordinator:
    def __init__(self, store: RecordStore, index: VectorIndex, default_top_k: int = 10):
        self.store = store
        self.index = index
        self.default_top_k = default_top_k

    @classmethod
    def from_config(cls, cfg: Optional[AppConfig] = None) -> "SyncCoordinator":
        cfg = cfg or load_config()
        return cls(
            RecordStore.from_config(cfg.postgres),
            VectorIndex.from_config(cfg),
            default_top_k=cfg.sync.default_top_k,
        )

    # ------------------------------------------------------------------
    # Single-record writes
    # ------------------------------------------------------------------

    def create(self, record: RecordInput) -> APIResponse[AccessPoint]:
        stored = self.store.create(record)
        if not stored.success:
            return stored

        access_point: AccessPoint = stored.data
        indexed = self.index.upsert(access_point)
        if indexed.success:
            logger.info("[SYNC] Created access point %s in store and index", access_point.id)
            return stored

        logger.warning(
            "[SYNC] Index upsert failed for %s; deleting the new store row: %s",
            access_point.id,
            indexed.error,
        )
        rollback = self.store.delete(access_point.id)
        if not rollback.success:
            err = PartialSyncError(
                "create",
                "record store",
                "vector index",
                f"compensating delete also failed, row {access_point.id} is orphaned until resync: "
                f"{rollback.error}",
            )
            logger.error("[SYNC] %s", err)
            return APIResponse.fail(str(err))

        return APIResponse.fail(
            f"Failed to create access point {access_point.id}: vector index write failed "
            f"and the store write was rolled back ({indexed.error})"
        )

    def update(
        self,
        access_point_id: str,
        fields: Union[AccessPointUpdate, Mapping[str, Any]],
    ) -> APIResponse[AccessPoint]:
        stored = self.store.update(access_point_id, fields)
        if not stored.success:
            return stored

        # Re-embed the merged record, not the partial input.
        indexed = self.index.upsert(stored.data)
        if not indexed.success:
            err = PartialSyncError("update", "record store", "vector index", indexed.error or "")
            logger.error("[SYNC] %s; index entry for %s is stale until resync", err, access_point_id)
        return stored

    def delete(self, access_point_id: str) -> APIResponse[None]:
        with ThreadPoolExecutor(max_workers=2) as executor:
            store_future = executor.submit(self.store.delete, access_point_id)
            index_future = executor.submit(self.index.delete, access_point_id)
            store_result = _settled(store_future, "record store")
            index_result = _settled(index_future, "vector index")

        if store_result.success and index_result.success:
            logger.info("[SYNC] Deleted access point %s from store and index", access_point_id)
            return APIResponse.ok()

        if not store_result.success and not index_result.success:
            return APIResponse.fail(
                f"Failed to delete access point {access_point_id}: "
                f"store: {store_result.error}; index: {index_result.error}"
            )

        if store_result.success:
            err = PartialSyncError("delete", "record store", "vector index", index_result.error or "")
        else:
            err = PartialSyncError("delete", "vector index", "record store", store_result.error or "")
        logger.warning("[SYNC] %s", err)
        return APIResponse.ok()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, access_point_id: str) -> APIResponse[AccessPoint]:
        return self.store.get(access_point_id)

    def get_all(self) -> APIResponse[List[AccessPoint]]:
        return self.store.get_all()

    def find(
        self,
        subnet_name: Optional[str] = None,
        tag: Optional[str] = None,
        capability: Optional[str] = None,
    ) -> APIResponse[List[AccessPoint]]:
        return self.store.find(subnet_name=subnet_name, tag=tag, capability=capability)

    def search(self, query: str, top_k: Optional[int] = None) -> APIResponse[List[AccessPoint]]:
        """
        Similarity search through the index, resolved against the store.

        Falls back to the store's text search when the index query fails.
        Matches the store can no longer resolve are skipped.
        """
        if top_k is None:
            top_k = self.default_top_k
        if top_k <= 0:
            return APIResponse.fail(f"top_k must be positive, got {top_k}")
        similar = self.index.query_similar(query, top_k)
        if not similar.success:
            logger.warning("[SYNC] Vector search failed, falling back to store text search: %s", similar.error)
            fallback = self.store.search(query)
            if fallback.success:
                return APIResponse.ok(fallback.data[:top_k])
            return fallback

        records: List[AccessPoint] = []
        for match in similar.data:
            got = self.store.get(match.id)
            if got.success:
                records.append(got.data)
            else:
                logger.warning("[SYNC] Skipping %s: indexed but not resolvable in store (%s)", match.id, got.error)
        return APIResponse.ok(records)

    # ------------------------------------------------------------------
    # Bulk and recovery
    # ------------------------------------------------------------------

    def bulk_sync(self, records: Sequence[RecordInput]) -> APIResponse[int]:
        try:
            validated = [coerce_record(r) for r in records]
        except ValidationError as e:
            logger.error("[SYNC] Bulk sync aborted before any write: %s", e)
            return APIResponse.fail(f"Bulk sync aborted: {e}")

        # Last occurrence of an id wins, matching the store's upsert.
        unique: Dict[str, AccessPoint] = {}
        for access_point in validated:
            unique[access_point.id] = access_point
        batch = list(unique.values())

        stored = self.store.bulk_upsert(batch)
        if not stored.success:
            logger.error("[SYNC] Bulk sync aborted, store batch rejected: %s", stored.error)
            return APIResponse.fail(f"Bulk sync aborted: {stored.error}")

        indexed = self.index.upsert_bulk(batch)
        if not indexed.success:
            logger.warning("[SYNC] Index bulk upsert failed, retrying once: %s", indexed.error)
            indexed = self.index.upsert_bulk(batch)

        if not indexed.success:
            err = PartialSyncError(
                "bulk sync",
                "record store",
                "vector index",
                f"{len(batch)} records are already synced to the store; "
                f"run resync to rebuild the index: {indexed.error}",
            )
            logger.error("[SYNC] %s", err)
            return APIResponse.fail(str(err))

        logger.info("[SYNC] Bulk synced %d access points", len(batch))
        return APIResponse.ok(len(batch))

    def resync_from_store(self) -> APIResponse[int]:
        everything = self.store.get_all()
        if not everything.success:
            return APIResponse.fail(f"Resync failed reading the store: {everything.error}")

        records: List[AccessPoint] = everything.data
        if not records:
            logger.info("[SYNC] Resync: store is empty, nothing to index")
            return APIResponse.ok(0)

        indexed = self.index.upsert_bulk(records)
        if not indexed.success:
            return APIResponse.fail(f"Resync failed writing the index: {indexed.error}")

        logger.info("[SYNC] Resynced %d access points from store to index", indexed.data)
        return APIResponse.ok(indexed.data)

    def health_check(self) -> HealthReport:
        """Probe both backends concurrently. Never raises."""

        def probe(name: str, future: Future) -> bool:
            result = _settled(future, name)
            if not result.success:
                logger.warning("[SYNC] Health probe failed for %s: %s", name, result.error)
            return bool(result.success)

        with ThreadPoolExecutor(max_workers=2) as executor:
            store_future = executor.submit(self.store.ping)
            index_future = executor.submit(self.index.ping)
            report = HealthReport(
                store=probe("record store", store_future),
                index=probe("vector index", index_future),
            )
        return report
