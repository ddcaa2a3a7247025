# accesspoint_sync/clients/openai_client.py

from __future__ import annotations

from typing import Optional

from openai import OpenAI

from accesspoint_sync.config import EMBEDDING_DIMENSION, OpenAIConfig
from accesspoint_sync.embedding import Embedder, OpenAIEmbeddingProvider


def get_openai_client(cfg: OpenAIConfig) -> Optional[OpenAI]:
    """Return an OpenAI client, or None when no API key is configured."""
    if not cfg.api_key:
        return None
    return OpenAI(api_key=cfg.api_key)


def build_embedder(cfg: OpenAIConfig, dimension: int = EMBEDDING_DIMENSION) -> Embedder:
    client = get_openai_client(cfg)
    if client is None:
        return Embedder(dimension=dimension)
    return Embedder(
        provider=OpenAIEmbeddingProvider(client, cfg.embedding_model, dimension),
        dimension=dimension,
    )
