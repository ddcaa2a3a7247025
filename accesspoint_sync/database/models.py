"""
SQLAlchemy model for the access point catalog.

The set-valued columns are Postgres arrays with GIN indexes; on other dialects
(SQLite in tests) they are stored as JSON.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY

from accesspoint_sync.database.base import Base

IO_TYPES = ("text", "json", "file", "image")

StringSet = ARRAY(String).with_variant(JSON(), "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _io_type_check(column: str) -> CheckConstraint:
    allowed = ", ".join(f"'{t}'" for t in IO_TYPES)
    return CheckConstraint(f"{column} IN ({allowed})", name=f"ck_access_points_{column}")


class AccessPointRow(Base):
    """External service endpoint (source of truth for the vector index)."""

    __tablename__ = "access_points"

    id = Column(String(255), primary_key=True)
    subnet_id = Column(String(50), nullable=False, index=True)
    subnet_name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    input = Column(String(255), nullable=False)
    output = Column(String(255), nullable=False)
    input_type = Column(String(50), nullable=False)
    output_type = Column(String(50), nullable=False)
    capabilities = Column(StringSet, nullable=False, default=list)
    tags = Column(StringSet, nullable=False, default=list)
    prompt_example = Column(Text, nullable=True)
    file_upload = Column(Boolean, nullable=False, default=False)
    file_download = Column(Boolean, nullable=False, default=False)
    subnet_url = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        _io_type_check("input_type"),
        _io_type_check("output_type"),
        Index("idx_access_points_tags", "tags", postgresql_using="gin"),
        Index("idx_access_points_capabilities", "capabilities", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<AccessPointRow(id={self.id!r}, subnet_name={self.subnet_name!r})>"
