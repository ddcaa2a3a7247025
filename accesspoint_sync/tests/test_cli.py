from __future__ import annotations

import json

import pytest

import accesspoint_sync.cli as cli
from accesspoint_sync.models import HealthReport


@pytest.fixture
def run_cli(monkeypatch: pytest.MonkeyPatch, coordinator, tmp_path, capsys):
    monkeypatch.setattr(cli, "build_coordinator", lambda cfg: coordinator)
    env_file = str(tmp_path / "none.env")

    def _run(*argv: str):
        code = cli.main(["--env-file", env_file, *argv])
        payload = json.loads(capsys.readouterr().out)
        return code, payload

    return _run


def test_bulk_sync_then_get_and_list(run_cli, tmp_path, record_factory):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps([record_factory("a"), record_factory("b", subnetName="other")]))

    code, payload = run_cli("bulk-sync", str(seed))
    assert code == 0
    assert payload == {"success": True, "data": 2, "error": None}

    code, payload = run_cli("get", "a")
    assert code == 0
    assert payload["data"]["subnetName"] == "demo"
    assert payload["data"]["createdAt"]

    code, payload = run_cli("list")
    assert code == 0
    assert sorted(r["id"] for r in payload["data"]) == ["a", "b"]

    code, payload = run_cli("list", "--subnet", "other")
    assert [r["id"] for r in payload["data"]] == ["b"]


def test_bulk_sync_rejects_non_array(run_cli, tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({"id": "a"}))
    code, payload = run_cli("bulk-sync", str(seed))
    assert code == 1
    assert "JSON array" in payload["error"]


def test_bulk_sync_missing_file(run_cli, tmp_path):
    code, payload = run_cli("bulk-sync", str(tmp_path / "absent.json"))
    assert code == 1
    assert payload["success"] is False


def test_get_missing_exits_nonzero(run_cli):
    code, payload = run_cli("get", "ghost")
    assert code == 1
    assert "not found" in payload["error"]


def test_search_resync_and_delete(run_cli, coordinator, sample_record):
    coordinator.store.create(sample_record)

    code, payload = run_cli("resync")
    assert code == 0
    assert payload["data"] == 1

    code, payload = run_cli("search", "demo", "--top-k", "3")
    assert code == 0
    assert [r["id"] for r in payload["data"]] == ["x1"]

    code, _ = run_cli("delete", "x1")
    assert code == 0
    code, _ = run_cli("get", "x1")
    assert code == 1


def test_health_exit_codes(run_cli, fake_index):
    code, payload = run_cli("health")
    assert code == 0
    assert payload["data"] == {"store": True, "index": True}

    fake_index.fail("describe_index_stats")
    code, payload = run_cli("health")
    assert code == 1
    assert payload["data"] == {"store": True, "index": False}
    assert "vector index" in payload["error"]


def test_missing_configuration_is_reported(monkeypatch: pytest.MonkeyPatch, tmp_path, capsys):
    def refuse(cfg):
        raise RuntimeError("DATABASE_URL is not set.")

    monkeypatch.setattr(cli, "build_coordinator", refuse)
    code = cli.main(["--env-file", str(tmp_path / "none.env"), "health"])
    out = capsys.readouterr().out
    assert code == 1
    assert '"success": false' in out
    assert "DATABASE_URL is not set." in out


def test_health_report_serializes_plainly():
    assert HealthReport(store=True, index=False).model_dump() == {"store": True, "index": False}


def test_package_exports_resolve():
    import accesspoint_sync

    assert accesspoint_sync.__all__ == ["__version__"]
    assert all(hasattr(accesspoint_sync, name) for name in accesspoint_sync.__all__)
