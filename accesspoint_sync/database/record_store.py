"""
Record store adapter for access points (the source of truth).

Every public method returns an ``APIResponse`` envelope. Expected failures
(missing ids, duplicate ids, invalid fields, database/transport errors) are
logged and translated into ``success=False`` with a message; programming errors
propagate.

Key principles:
- One session scope per call, released on every exit path
- ``bulk_upsert`` is a single all-or-nothing statement
- Logical (camelCase) names are translated to columns at this boundary
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, literal_column, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from accesspoint_sync.config import PostgresConfig
from accesspoint_sync.database.base import build_engine, build_session_factory, init_db
from accesspoint_sync.database.models import AccessPointRow, utcnow
from accesspoint_sync.database.session import SessionScope, make_session_scope
from accesspoint_sync.errors import (
    AccessPointError,
    BackendConnectionError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from accesspoint_sync.field_names import from_columns, to_columns
from accesspoint_sync.logging_utils import get_logger
from accesspoint_sync.models import AccessPoint, AccessPointUpdate, APIResponse

logger = get_logger(__name__)

RecordInput = Union[AccessPoint, Mapping[str, Any]]

T = TypeVar("T")

_TS_CONFIG = literal_column("'english'::regconfig")
_MANAGED_COLUMNS = ("id", "created_at")


def describe_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def coerce_record(record: RecordInput) -> AccessPoint:
    if isinstance(record, AccessPoint):
        return record
    if not isinstance(record, Mapping):
        raise ValidationError(f"Unsupported access point payload: {type(record).__name__}")
    try:
        return AccessPoint.model_validate(dict(record))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid access point: {describe_validation_error(e)}") from e


def _coerce_update(fields: Union[AccessPointUpdate, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(fields, AccessPointUpdate):
        return fields.changes()
    try:
        return AccessPointUpdate.model_validate(dict(fields)).changes()
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid update: {describe_validation_error(e)}") from e


def _record_to_columns(record: AccessPoint) -> Dict[str, Any]:
    logical = record.model_dump(by_alias=True, exclude={"created_at", "updated_at"})
    return to_columns(logical)


def _row_to_record(row: AccessPointRow) -> AccessPoint:
    columns = {c.name: getattr(row, c.name) for c in AccessPointRow.__table__.columns}
    return AccessPoint.model_validate(from_columns(columns))


def _integrity_error(exc: IntegrityError, access_point_id: Optional[str] = None) -> AccessPointError:
    """Map a constraint violation onto the error taxonomy."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    message = str(orig or exc).lower()
    duplicate = code == "23505" or "unique" in message or "duplicate key" in message
    if duplicate and access_point_id is not None:
        return ConflictError(access_point_id)
    return ValidationError(f"Constraint violation: {orig or exc}")


def _is_postgres(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def _enveloped(action: str) -> Callable[[Callable[..., T]], Callable[..., APIResponse]]:
    """Run a store operation and translate expected failures into the envelope."""

    def decorator(func: Callable[..., T]) -> Callable[..., APIResponse]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> APIResponse:
            try:
                return APIResponse.ok(func(*args, **kwargs))
            except NotFoundError as e:
                logger.warning("[STORE] Failed to %s: %s", action, e)
                return APIResponse.fail(f"Failed to {action}: {e}")
            except AccessPointError as e:
                logger.error("[STORE] Failed to %s: %s", action, e)
                return APIResponse.fail(f"Failed to {action}: {e}")
            except (OperationalError, InterfaceError) as e:
                err = BackendConnectionError("Record store", str(e.orig or e))
                logger.error("[STORE] Failed to %s: %s", action, err)
                return APIResponse.fail(f"Failed to {action}: {err}")
            except SQLAlchemyError as e:
                logger.error("[STORE] Database error during %s: %r", action, e)
                return APIResponse.fail(f"Failed to {action}: {e}")

        return wrapper

    return decorator


class RecordStore:
    """CRUD, bulk upsert and text search over the ``access_points`` table."""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    @classmethod
    def from_config(cls, postgres_cfg: PostgresConfig, create_tables: bool = False) -> "RecordStore":
        engine = build_engine(postgres_cfg)
        if create_tables:
            init_db(engine)
        return cls(make_session_scope(build_session_factory(engine)))

    @_enveloped("create access point")
    def create(self, record: RecordInput) -> AccessPoint:
        access_point = coerce_record(record)
        now = utcnow()
        with self._session_scope() as db:
            row = AccessPointRow(**_record_to_columns(access_point), created_at=now, updated_at=now)
            db.add(row)
            try:
                db.flush()
            except IntegrityError as e:
                raise _integrity_error(e, access_point.id) from e
            created = _row_to_record(row)
        logger.info("[STORE] Created access point %s", created.id)
        return created

    @_enveloped("update access point")
    def update(
        self,
        access_point_id: str,
        fields: Union[AccessPointUpdate, Mapping[str, Any]],
    ) -> AccessPoint:
        changes = _coerce_update(fields)
        with self._session_scope() as db:
            row = db.get(AccessPointRow, access_point_id)
            if row is None:
                raise NotFoundError(access_point_id)
            for column, value in changes.items():
                setattr(row, column, value)
            row.updated_at = utcnow()
            try:
                db.flush()
            except IntegrityError as e:
                raise _integrity_error(e) from e
            updated = _row_to_record(row)
        logger.info(
            "[STORE] Updated access point %s (%s)",
            access_point_id,
            ", ".join(sorted(changes)) or "timestamp only",
        )
        return updated

    @_enveloped("get access point")
    def get(self, access_point_id: str) -> AccessPoint:
        with self._session_scope() as db:
            row = db.get(AccessPointRow, access_point_id)
            if row is None:
                raise NotFoundError(access_point_id)
            return _row_to_record(row)

    @_enveloped("get all access points")
    def get_all(self) -> List[AccessPoint]:
        with self._session_scope() as db:
            rows = db.scalars(
                select(AccessPointRow).order_by(AccessPointRow.created_at.desc(), AccessPointRow.id)
            ).all()
            return [_row_to_record(r) for r in rows]

    @_enveloped("delete access point")
    def delete(self, access_point_id: str) -> None:
        with self._session_scope() as db:
            result = db.execute(delete(AccessPointRow).where(AccessPointRow.id == access_point_id))
            if result.rowcount == 0:
                raise NotFoundError(access_point_id)
        logger.info("[STORE] Deleted access point %s", access_point_id)

    @_enveloped("search access points")
    def search(self, text: str) -> List[AccessPoint]:
        """Relevance-ranked match over description, tags and capabilities."""
        terms = [t.lower() for t in (text or "").split()]
        if not terms:
            return []
        with self._session_scope() as db:
            if _is_postgres(db):
                rows = self._search_postgres(db, text)
            else:
                rows = self._search_portable(db, terms)
            return [_row_to_record(r) for r in rows]

    @staticmethod
    def _search_postgres(db: Session, text: str) -> Sequence[AccessPointRow]:
        document = func.concat_ws(
            " ",
            AccessPointRow.description,
            func.array_to_string(AccessPointRow.tags, " "),
            func.array_to_string(AccessPointRow.capabilities, " "),
        )
        ts_vector = func.to_tsvector(_TS_CONFIG, document)
        ts_query = func.plainto_tsquery(_TS_CONFIG, text)
        rank = func.ts_rank(ts_vector, ts_query)
        stmt = (
            select(AccessPointRow)
            .where(ts_vector.op("@@")(ts_query))
            .order_by(rank.desc(), AccessPointRow.created_at.desc())
        )
        return db.scalars(stmt).all()

    @staticmethod
    def _search_portable(db: Session, terms: List[str]) -> List[AccessPointRow]:
        # Every term must match (like plainto_tsquery); more occurrences rank higher.
        scored = []
        rows = db.scalars(select(AccessPointRow).order_by(AccessPointRow.created_at.desc())).all()
        for row in rows:
            haystack = " ".join(
                [row.description or "", *(row.tags or []), *(row.capabilities or [])]
            ).lower()
            if all(t in haystack for t in terms):
                scored.append((sum(haystack.count(t) for t in terms), row))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [row for _, row in scored]

    @_enveloped("find access points")
    def find(
        self,
        subnet_name: Optional[str] = None,
        tag: Optional[str] = None,
        capability: Optional[str] = None,
    ) -> List[AccessPoint]:
        """Records matching every supplied filter, newest first."""
        with self._session_scope() as db:
            stmt = select(AccessPointRow).order_by(AccessPointRow.created_at.desc())
            if subnet_name is not None:
                stmt = stmt.where(AccessPointRow.subnet_name == subnet_name)
            postgres = _is_postgres(db)
            if postgres and tag is not None:
                stmt = stmt.where(AccessPointRow.tags.contains([tag]))
            if postgres and capability is not None:
                stmt = stmt.where(AccessPointRow.capabilities.contains([capability]))
            rows: Iterable[AccessPointRow] = db.scalars(stmt).all()
            if not postgres:
                rows = [
                    r
                    for r in rows
                    if (tag is None or tag in (r.tags or []))
                    and (capability is None or capability in (r.capabilities or []))
                ]
            return [_row_to_record(r) for r in rows]

    @_enveloped("bulk upsert access points")
    def bulk_upsert(self, records: Sequence[RecordInput]) -> int:
        """
        Insert-or-replace ``records`` by id in one transaction.

        Returns:
            Number of distinct ids written
        """
        validated = [coerce_record(r) for r in records]
        if not validated:
            return 0

        # Last occurrence of an id wins, as it would with sequential upserts.
        by_id: Dict[str, AccessPoint] = {}
        for access_point in validated:
            by_id[access_point.id] = access_point

        now = utcnow()
        rows = [
            {**_record_to_columns(ap), "created_at": now, "updated_at": now}
            for ap in by_id.values()
        ]
        logger.info("[STORE] Starting bulk upsert of %d access points", len(rows))

        with self._session_scope() as db:
            try:
                self._execute_upsert(db, rows)
                db.flush()
            except IntegrityError as e:
                raise _integrity_error(e) from e

        logger.info("[STORE] Successfully upserted %d access points", len(rows))
        return len(rows)

    @staticmethod
    def _execute_upsert(db: Session, rows: List[Dict[str, Any]]) -> None:
        dialect = db.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(AccessPointRow).values(rows)
            stmt = stmt.on_conflict_do_update(
                index_elements=[AccessPointRow.id],
                set_={c: stmt.excluded[c] for c in rows[0] if c not in _MANAGED_COLUMNS},
            )
            db.execute(stmt)
            return

        for values in rows:
            existing = db.get(AccessPointRow, values["id"])
            if existing is None:
                db.add(AccessPointRow(**values))
                continue
            for column, value in values.items():
                if column not in _MANAGED_COLUMNS:
                    setattr(existing, column, value)

    @_enveloped("reach record store")
    def ping(self) -> bool:
        with self._session_scope() as db:
            db.execute(select(AccessPointRow.id).limit(1))
        return True
