# accesspoint_sync/clients/pinecone_client.py

from __future__ import annotations

from typing import Any

from pinecone import Pinecone

from accesspoint_sync.config import PineconeConfig


def get_pinecone_client(cfg: PineconeConfig) -> Pinecone:
    if not cfg.api_key:
        raise RuntimeError("PINECONE_API_KEY is not set; cannot build the vector index client.")
    return Pinecone(api_key=cfg.api_key)


def get_pinecone_index(cfg: PineconeConfig) -> Any:
    """
    Open the access point index named in ``cfg``.

    The handle is returned untyped: callers only rely on ``upsert``, ``delete``,
    ``query``, ``fetch`` and ``describe_index_stats``.
    """
    if not cfg.index_name:
        raise RuntimeError("PINECONE_INDEX_NAME is empty; cannot open the vector index.")
    return get_pinecone_client(cfg).Index(cfg.index_name)
