"""
Embeddings for access point records.

The default embedding is a reproducible 32-bit rolling hash scattered over a
fixed-length vector. It carries no semantics; what it guarantees is that the
same text always yields the same vector and every vector has the configured
dimension. When an embedding provider is configured it supersedes the hash,
and any provider failure falls back to the hash instead of failing the write.

Slot values use floor modulo, so they stay in [-1, 1) for negative hashes too.
Vectors written by earlier deployments that used a truncating modulo differ on
those slots; run `accesspoint-sync resync` after migrating to rewrite them.
"""

from __future__ import annotations

import struct
from typing import Any, List, Optional, Protocol, Union

from accesspoint_sync.config import EMBEDDING_DIMENSION
from accesspoint_sync.logging_utils import get_logger
from accesspoint_sync.models import AccessPoint

logger = get_logger(__name__)

_INT32 = 2**32
_INT32_MAX = 2**31 - 1


def record_to_text(record: AccessPoint) -> str:
    """Flatten a record's descriptive fields into the text that gets embedded."""
    lines = [
        f"ID: {record.id}",
        f"Subnet: {record.subnet_name} ({record.subnet_id})",
        f"Description: {record.description}",
        f"Input: {record.input} ({record.input_type})",
        f"Output: {record.output} ({record.output_type})",
        f"Capabilities: {', '.join(record.capabilities)}",
        f"Tags: {', '.join(record.tags)}",
    ]
    if record.prompt_example:
        lines.append(f"Example: {record.prompt_example}")
    return "\n".join(lines)


def query_to_text(query: str) -> str:
    """Lay a free-text query out like a record so both embed the same way."""
    pseudo = AccessPoint.model_construct(
        id="query",
        subnet_id="",
        subnet_name="",
        description=query,
        input="",
        output="",
        input_type="text",
        output_type="text",
        capabilities=[],
        tags=query.split(" "),
        prompt_example="",
    )
    return record_to_text(pseudo)


def _utf16_units(text: str) -> tuple:
    encoded = text.encode("utf-16-le")
    return struct.unpack(f"<{len(encoded) // 2}H", encoded)


def hash_embedding(text: str, dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    """
    Deterministic fingerprint of ``text``.

    A signed 32-bit rolling hash (``h = h * 31 + unit``) runs over the UTF-16 code
    units; after each unit ``i`` the slot ``i % dimension`` is overwritten with
    ``(h % 2000) / 1000 - 1``. Empty text gives the zero vector.
    """
    if dimension <= 0:
        raise ValueError("dimension must be positive")
    vector = [0.0] * dimension
    h = 0
    for i, unit in enumerate(_utf16_units(text)):
        h = (h * 31 + unit) % _INT32
        if h > _INT32_MAX:
            h -= _INT32
        vector[i % dimension] = (h % 2000) / 1000 - 1
    return vector


class EmbeddingProvider(Protocol):
    """Anything that turns text into a vector."""

    def embed(self, text: str) -> List[float]:
        ...


class OpenAIEmbeddingProvider:
    """Semantic embeddings from the OpenAI embeddings API."""

    def __init__(self, client: Any, model: str, dimension: int = EMBEDDING_DIMENSION):
        self._client = client
        self.model = model
        self.dimension = dimension

    def embed(self, text: str) -> List[float]:
        resp = self._client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dimension,
        )
        return list(resp.data[0].embedding)


class Embedder:
    """Provider-backed embeddings with the hash as the always-available fallback."""

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        dimension: int = EMBEDDING_DIMENSION,
    ):
        self.provider = provider
        self.dimension = dimension

    @property
    def uses_provider(self) -> bool:
        return self.provider is not None

    def embed(self, text: str) -> List[float]:
        if self.provider is not None:
            try:
                vector = [float(v) for v in self.provider.embed(text)]
            except Exception as e:  # noqa: BLE001
                logger.warning("[EMBED] Provider failed, using hash embedding: %r", e)
            else:
                if len(vector) == self.dimension:
                    return vector
                logger.warning(
                    "[EMBED] Provider returned %d dimensions (expected %d); using hash embedding",
                    len(vector),
                    self.dimension,
                )
        return hash_embedding(text, self.dimension)

    def embed_record(self, record: AccessPoint) -> List[float]:
        return self.embed(record_to_text(record))

    def embed_query(self, query: Union[str, None]) -> List[float]:
        return self.embed(query_to_text(query or ""))
