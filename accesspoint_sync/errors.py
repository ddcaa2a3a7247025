"""Error taxonomy shared by the store, the index and the sync coordinator."""

from __future__ import annotations


class AccessPointError(Exception):
    """Base class for expected access point failures."""
    pass


class ValidationError(AccessPointError):
    """Raised when a record is missing a required field or has an invalid value."""
    pass


class ConflictError(AccessPointError):
    """Raised when creating a record whose id already exists."""

    def __init__(self, access_point_id: str):
        self.access_point_id = access_point_id
        super().__init__(f"Access point with id {access_point_id} already exists.")


class NotFoundError(AccessPointError):
    """Raised when an operation targets an id that does not exist."""

    def __init__(self, access_point_id: str, where: str = "record store"):
        self.access_point_id = access_point_id
        self.where = where
        super().__init__(f"Access point with id {access_point_id} not found in {where}.")


class BackendConnectionError(AccessPointError):
    """Raised on transport or authentication failure talking to a backend."""

    def __init__(self, backend: str, detail: str):
        self.backend = backend
        self.detail = detail
        super().__init__(f"{backend} unavailable: {detail}")


class PartialSyncError(AccessPointError):
    """One backend accepted a change and the other did not."""

    def __init__(self, operation: str, succeeded: str, failed: str, detail: str = ""):
        self.operation = operation
        self.succeeded = succeeded
        self.failed = failed
        self.detail = detail
        message = f"{operation}: {succeeded} succeeded but {failed} failed"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
