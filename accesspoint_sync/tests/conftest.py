"""
Pytest configuration and shared fixtures.

Provides:
- An in-memory SQLite record store (array columns fall back to JSON)
- An in-memory fake Pinecone index with switchable failures
- A coordinator wired to both
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import pytest
from pinecone.exceptions import PineconeException
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from accesspoint_sync.clients.vector_index import VectorIndex
from accesspoint_sync.database.base import build_session_factory, init_db
from accesspoint_sync.database.record_store import RecordStore
from accesspoint_sync.database.session import make_session_scope
from accesspoint_sync.embedding import Embedder
from accesspoint_sync.sync.manager import SyncCoordinator


class FakePineconeIndex:
    """Dict-backed stand-in for a Pinecone index handle.

    ``fail("upsert", times=1)`` makes the next upsert raise; ``times=None`` makes
    every call to that operation raise.
    """

    def __init__(self) -> None:
        self.vectors: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.upsert_batches: List[int] = []
        self._failures: Dict[str, Optional[int]] = {}

    def fail(self, op: str, times: Optional[int] = None) -> None:
        self._failures[op] = times

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if op not in self._failures:
            return
        remaining = self._failures[op]
        if remaining is not None:
            if remaining <= 1:
                del self._failures[op]
            else:
                self._failures[op] = remaining - 1
        raise PineconeException(f"{op} failed")

    def upsert(self, vectors, namespace=None):  # noqa: ARG002
        self._maybe_fail("upsert")
        self.upsert_batches.append(len(vectors))
        for v in vectors:
            self.vectors[v["id"]] = {"id": v["id"], "values": list(v["values"]), "metadata": dict(v["metadata"])}
        return {"upserted_count": len(vectors)}

    def delete(self, ids=None, namespace=None, filter=None):  # noqa: A002, ARG002
        self._maybe_fail("delete")
        for i in ids or []:
            self.vectors.pop(i, None)
        return {}

    @staticmethod
    def _matches(meta: Dict[str, Any], filter_obj: Optional[Dict[str, Any]]) -> bool:
        for key, cond in (filter_obj or {}).items():
            expected = cond["$eq"] if isinstance(cond, dict) else cond
            value = meta.get(key)
            if isinstance(value, list):
                if expected not in value:
                    return False
            elif value != expected:
                return False
        return True

    def query(self, vector, top_k, include_metadata=True, namespace=None, filter=None):  # noqa: A002, ARG002
        self._maybe_fail("query")

        def score(values: List[float]) -> float:
            norm = math.sqrt(sum(a * a for a in vector)) * math.sqrt(sum(b * b for b in values))
            return sum(a * b for a, b in zip(vector, values)) / norm if norm else 0.0

        matches = [
            {"id": v["id"], "score": score(v["values"]), "metadata": v["metadata"]}
            for v in self.vectors.values()
            if self._matches(v["metadata"], filter)
        ]
        matches.sort(key=lambda m: m["score"], reverse=True)
        return {"matches": matches[:top_k]}

    def fetch(self, ids, namespace=None):  # noqa: ARG002
        self._maybe_fail("fetch")
        return {"vectors": {i: self.vectors[i] for i in ids if i in self.vectors}}

    def describe_index_stats(self):
        self._maybe_fail("describe_index_stats")
        return {"total_vector_count": len(self.vectors)}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> RecordStore:
    return RecordStore(make_session_scope(build_session_factory(engine)))


@pytest.fixture
def fake_index() -> FakePineconeIndex:
    return FakePineconeIndex()


@pytest.fixture
def vector_index(fake_index) -> VectorIndex:
    return VectorIndex(fake_index, Embedder())


@pytest.fixture
def coordinator(store, vector_index) -> SyncCoordinator:
    return SyncCoordinator(store, vector_index)


def make_record(access_point_id: str = "x1", **overrides: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": access_point_id,
        "subnetId": "1",
        "subnetName": "demo",
        "description": "test endpoint",
        "inputType": "text",
        "outputType": "json",
        "capabilities": ["create-pod"],
        "tags": ["demo"],
        "fileUpload": False,
        "fileDownload": False,
    }
    record.update(overrides)
    return record


@pytest.fixture
def sample_record() -> Dict[str, Any]:
    return make_record()


@pytest.fixture
def record_factory():
    return make_record
