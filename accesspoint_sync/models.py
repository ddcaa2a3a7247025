"""
Pydantic models for access point records, their vector projection and the
uniform result envelope.

Python attributes use the store's snake_case column names; the camelCase
logical names are the serialization aliases, generated from the field-name
table in ``accesspoint_sync.field_names``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from accesspoint_sync.field_names import normalize_logical_keys, to_camel_case

IOType = Literal["text", "json", "file", "image"]

T = TypeVar("T")


def _dedupe(values: List[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class _LogicalNameModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel_case,
        populate_by_name=True,
        extra="forbid",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_logical_keys(data)
        return data


class AccessPoint(_LogicalNameModel):
    """One external service endpoint in the catalog."""

    id: str = Field(min_length=1)
    subnet_id: str
    subnet_name: str
    description: str
    input: str = ""
    output: str = ""
    input_type: IOType
    output_type: IOType
    capabilities: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    prompt_example: str = ""
    file_upload: bool = False
    file_download: bool = False
    subnet_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("capabilities", "tags")
    @classmethod
    def _as_set(cls, v: List[str]) -> List[str]:
        return _dedupe(v)

    @field_validator("prompt_example", "subnet_url", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_logical(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AccessPointUpdate(_LogicalNameModel):
    """A partial set of updatable fields.

    ``id`` and the store-managed timestamps are not fields here, so
    supplying them is rejected as an unknown field.
    """

    subnet_id: Optional[str] = None
    subnet_name: Optional[str] = None
    description: Optional[str] = None
    input: Optional[str] = None
    output: Optional[str] = None
    input_type: Optional[IOType] = None
    output_type: Optional[IOType] = None
    capabilities: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    prompt_example: Optional[str] = None
    file_upload: Optional[bool] = None
    file_download: Optional[bool] = None
    subnet_url: Optional[str] = None

    @field_validator("capabilities", "tags")
    @classmethod
    def _as_set(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe(v) if v is not None else None

    def changes(self) -> Dict[str, Any]:
        """Column -> value for the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class VectorEntry(BaseModel):
    """Derived index entry: id, embedding and a metadata subset."""

    id: str
    embedding: List[float]
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    id: str
    score: float = 0.0
    metadata: Dict[str, Any] = Field(default_factory=dict)


class HealthReport(BaseModel):
    store: bool
    index: bool


class APIResponse(BaseModel, Generic[T]):
    """Uniform result envelope returned by every adapter and coordinator call."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "APIResponse[Any]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "APIResponse[Any]":
        return cls(success=False, error=error)
