# accesspoint_sync/config.py

"""
Configuration for the access point sync engine.

Settings come from environment variables (a ``.env`` file is loaded first when
present). ``load_config()`` builds a fresh, immutable ``AppConfig`` each time it
is called; components receive the pieces they need at construction instead of
reaching for a module-level singleton.

Missing credentials are not an error here: ``validate_config()`` reports them,
and the adapters refuse to build without the settings they require.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# ---------------------------------------------------------
#  Defaults
# ---------------------------------------------------------

PINECONE_INDEX_NAME = "accesspoints-data-manager"
OPENAI_EMBED_MODEL = "text-embedding-3-small"
EMBEDDING_DIMENSION = 1024
UPSERT_BATCH_SIZE = 100


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# ---------------------------------------------------------
#  Config structures
# ---------------------------------------------------------


@dataclass(frozen=True)
class PostgresConfig:
    """Record store connection settings."""
    url: str = ""
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class PineconeConfig:
    api_key: str = ""
    index_name: str = PINECONE_INDEX_NAME
    namespace: Optional[str] = None


@dataclass(frozen=True)
class OpenAIConfig:
    # Optional: an empty key keeps the hash embedding
    api_key: str = ""
    embedding_model: str = OPENAI_EMBED_MODEL


@dataclass(frozen=True)
class SyncConfig:
    embedding_dimension: int = EMBEDDING_DIMENSION
    upsert_batch_size: int = UPSERT_BATCH_SIZE
    default_top_k: int = 10


@dataclass(frozen=True)
class AppConfig:
    postgres: PostgresConfig
    pinecone: PineconeConfig
    openai: OpenAIConfig
    sync: SyncConfig


def load_config(dotenv_path: Optional[str] = None) -> AppConfig:
    """Read configuration from the environment (and ``.env`` if present)."""
    load_dotenv(dotenv_path=dotenv_path)

    postgres = PostgresConfig(
        url=os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL", ""),
        echo=_env_bool("POSTGRES_ECHO"),
        pool_size=int(os.getenv("POSTGRES_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("POSTGRES_MAX_OVERFLOW", "10")),
    )
    pinecone = PineconeConfig(
        api_key=os.getenv("PINECONE_API_KEY", ""),
        index_name=os.getenv("PINECONE_INDEX_NAME", PINECONE_INDEX_NAME),
        namespace=os.getenv("PINECONE_NAMESPACE") or None,
    )
    openai = OpenAIConfig(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        embedding_model=os.getenv("OPENAI_EMBED_MODEL", OPENAI_EMBED_MODEL),
    )
    return AppConfig(postgres=postgres, pinecone=pinecone, openai=openai, sync=SyncConfig())


def validate_config(cfg: AppConfig) -> List[str]:
    """Return human-readable problems with ``cfg``; empty means usable."""
    issues: List[str] = []
    if not cfg.postgres.url:
        issues.append("DATABASE_URL is not set; the record store cannot be built.")
    if not cfg.pinecone.api_key:
        issues.append("PINECONE_API_KEY is not set; the vector index cannot be built.")
    if not cfg.pinecone.index_name:
        issues.append("PINECONE_INDEX_NAME is empty.")
    if cfg.sync.embedding_dimension <= 0:
        issues.append("Embedding dimension must be positive.")
    return issues
