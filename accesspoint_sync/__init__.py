# accesspoint_sync/__init__.py

"""
Dual-write sync engine for the access point catalog.

This package centralizes:
- config (database URL, Pinecone index, optional OpenAI embeddings)
- the record store (Postgres, source of truth) and the vector index (Pinecone)
- the sync coordinator that keeps the two consistent, and its CLI.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
