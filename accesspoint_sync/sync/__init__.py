"""Dual-write coordination between the record store and the vector index."""

from accesspoint_sync.sync.manager import SyncCoordinator

__all__ = ["SyncCoordinator"]
