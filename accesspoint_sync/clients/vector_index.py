"""
Vector index adapter for access points (the derived index).

Wraps a Pinecone index handle. Each entry holds the record id, an embedding of
the record's descriptive text and a metadata subset; full records are only ever
read from the record store.

All public methods return an ``APIResponse`` envelope. Pinecone client errors
and transport errors become ``success=False``; programming errors propagate.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from pinecone.exceptions import PineconeException
from urllib3.exceptions import HTTPError

from accesspoint_sync.clients.openai_client import build_embedder
from accesspoint_sync.clients.pinecone_client import get_pinecone_index
from accesspoint_sync.config import UPSERT_BATCH_SIZE, AppConfig
from accesspoint_sync.embedding import Embedder
from accesspoint_sync.errors import AccessPointError, BackendConnectionError, NotFoundError
from accesspoint_sync.logging_utils import get_logger
from accesspoint_sync.models import AccessPoint, APIResponse, VectorEntry, VectorMatch

logger = get_logger(__name__)

T = TypeVar("T")

INDEX_ERRORS = (PineconeException, HTTPError, OSError)

# Logical field names carried into the index alongside each vector.
METADATA_FIELDS = (
    "id",
    "subnetId",
    "description",
    "fileUpload",
    "fileDownload",
    "promptExample",
    "tags",
)


def sanitize_metadata(meta: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Ensure all metadata values are allowed by Pinecone:
      - string
      - number (int/float)
      - boolean
      - list of strings

    Drop keys with None or empty lists.
    """
    cleaned: Dict[str, Any] = {}

    for key, value in meta.items():
        if value is None:
            continue

        if isinstance(value, (str, bool, int, float)):
            cleaned[key] = value
            continue

        if isinstance(value, (list, tuple, set)):
            string_list = [str(v) for v in value if v is not None]
            if string_list:
                cleaned[key] = string_list
            continue

        cleaned[key] = str(value)

    return cleaned


def build_metadata(record: AccessPoint) -> Dict[str, Any]:
    logical = record.to_logical()
    return sanitize_metadata({field: logical.get(field) for field in METADATA_FIELDS})


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _as_filter(filter_obj: Mapping[str, Any]) -> Dict[str, Any]:
    """Wrap plain values as ``$eq`` conditions; operator dicts pass through."""
    out: Dict[str, Any] = {}
    for key, value in filter_obj.items():
        if key.startswith("$") or isinstance(value, Mapping):
            out[key] = value
        else:
            out[key] = {"$eq": value}
    return out


def _enveloped(action: str) -> Callable[[Callable[..., T]], Callable[..., APIResponse]]:
    def decorator(func: Callable[..., T]) -> Callable[..., APIResponse]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> APIResponse:
            try:
                return APIResponse.ok(func(*args, **kwargs))
            except AccessPointError as e:
                logger.error("[INDEX] Failed to %s: %s", action, e)
                return APIResponse.fail(f"Failed to {action}: {e}")
            except INDEX_ERRORS as e:
                err = BackendConnectionError("Vector index", repr(e))
                logger.error("[INDEX] Failed to %s: %s", action, err)
                return APIResponse.fail(f"Failed to {action}: {err}")

        return wrapper

    return decorator


class VectorIndex:
    """Upsert, delete and similarity queries over one Pinecone index."""

    def __init__(
        self,
        index: Any,
        embedder: Optional[Embedder] = None,
        namespace: Optional[str] = None,
        batch_size: int = UPSERT_BATCH_SIZE,
    ) -> None:
        if index is None:
            raise RuntimeError("A Pinecone index handle is required.")
        self._index = index
        self.embedder = embedder or Embedder()
        self.namespace = namespace
        self.batch_size = batch_size

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "VectorIndex":
        return cls(
            get_pinecone_index(cfg.pinecone),
            embedder=build_embedder(cfg.openai, cfg.sync.embedding_dimension),
            namespace=cfg.pinecone.namespace,
            batch_size=cfg.sync.upsert_batch_size,
        )

    def _to_vector(self, record: AccessPoint) -> Dict[str, Any]:
        return {
            "id": record.id,
            "values": self.embedder.embed_record(record),
            "metadata": build_metadata(record),
        }

    @_enveloped("upsert vector")
    def upsert(self, record: AccessPoint) -> None:
        self._index.upsert(vectors=[self._to_vector(record)], namespace=self.namespace)
        logger.info("[INDEX] Upserted vector %s", record.id)

    @_enveloped("bulk upsert vectors")
    def upsert_bulk(self, records: Sequence[AccessPoint]) -> int:
        """
        Upsert ``records`` in sequential chunks of ``batch_size``.

        A failing chunk stops the run; chunks before it stay committed.

        Returns:
            Number of vectors upserted
        """
        total = len(records)
        done = 0
        for start in range(0, total, self.batch_size):
            chunk = records[start : start + self.batch_size]
            vectors = [self._to_vector(r) for r in chunk]
            try:
                self._index.upsert(vectors=vectors, namespace=self.namespace)
            except INDEX_ERRORS as e:
                raise BackendConnectionError(
                    "Vector index",
                    f"chunk starting at {start} failed after {done} of {total} vectors were upserted: {e!r}",
                ) from e
            done += len(chunk)
            logger.info("[INDEX] Upserted %d/%d vectors", done, total)
        return done

    @_enveloped("delete vector")
    def delete(self, access_point_id: str) -> None:
        # Pinecone treats deleting an unknown id as a no-op.
        self._index.delete(ids=[access_point_id], namespace=self.namespace)
        logger.info("[INDEX] Deleted vector %s", access_point_id)

    def _query(self, vector: List[float], top_k: int, filter_obj: Optional[Dict[str, Any]]) -> List[VectorMatch]:
        kwargs: Dict[str, Any] = {
            "vector": vector,
            "top_k": top_k,
            "include_metadata": True,
            "namespace": self.namespace,
        }
        if filter_obj:
            kwargs["filter"] = filter_obj

        res = self._index.query(**kwargs)
        matches = _field(res, "matches") or []
        return [
            VectorMatch(
                id=str(_field(m, "id", "")),
                score=float(_field(m, "score", 0.0) or 0.0),
                metadata=dict(_field(m, "metadata", {}) or {}),
            )
            for m in matches
        ]

    @_enveloped("query similar vectors")
    def query_similar(self, text: str, top_k: int = 10) -> List[VectorMatch]:
        return self._query(self.embedder.embed_query(text), top_k, None)

    @_enveloped("query vectors by metadata")
    def query_by_metadata_filter(self, filter_obj: Mapping[str, Any], top_k: int = 10) -> List[VectorMatch]:
        """Exact-match metadata lookup; the zero vector makes similarity irrelevant."""
        zero = [0.0] * self.embedder.dimension
        return self._query(zero, top_k, _as_filter(filter_obj))

    @_enveloped("fetch vector")
    def fetch(self, access_point_id: str) -> VectorEntry:
        res = self._index.fetch(ids=[access_point_id], namespace=self.namespace)
        vectors = _field(res, "vectors") or {}
        entry = vectors.get(access_point_id)
        if entry is None:
            raise NotFoundError(access_point_id, "vector index")
        return VectorEntry(
            id=str(_field(entry, "id", access_point_id)),
            embedding=[float(v) for v in (_field(entry, "values") or [])],
            metadata=dict(_field(entry, "metadata", {}) or {}),
        )

    @_enveloped("reach vector index")
    def ping(self) -> bool:
        self._index.describe_index_stats()
        return True
