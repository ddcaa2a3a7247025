"""
Field-name translation between the logical (camelCase) names callers use and
the snake_case column names of the record store.

The schema's own fields go through a declarative table so the mapping is exact.
Names outside the table fall back to a rule-based conversion:

- an underscore goes between a lowercase letter or digit and a following capital
  (``fileUpload`` -> ``file_upload``, ``file2Upload`` -> ``file2_upload``)
- inside a run of capitals, an underscore goes before the last capital only when
  a lowercase letter follows it (``APIKey`` -> ``api_key``)
- a run of capitals at the end of a name is a single word
  (``subnetURL`` -> ``subnet_url``)
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

# logical name -> column name
FIELD_NAMES: Dict[str, str] = {
    "id": "id",
    "subnetId": "subnet_id",
    "subnetName": "subnet_name",
    "description": "description",
    "input": "input",
    "output": "output",
    "inputType": "input_type",
    "outputType": "output_type",
    "capabilities": "capabilities",
    "tags": "tags",
    "promptExample": "prompt_example",
    "fileUpload": "file_upload",
    "fileDownload": "file_download",
    "subnetUrl": "subnet_url",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

# Acronym spellings used by older seed files; accepted on input only.
LEGACY_ALIASES: Dict[str, str] = {
    "subnetID": "subnetId",
    "subnetURL": "subnetUrl",
}

COLUMN_NAMES: Dict[str, str] = {column: logical for logical, column in FIELD_NAMES.items()}

_LOWER_TO_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_TO_WORD = re.compile(r"([A-Z])([A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert a logical field name to its column name."""
    name = LEGACY_ALIASES.get(name, name)
    if name in FIELD_NAMES:
        return FIELD_NAMES[name]
    # acronym boundary first so "APIKey" splits as "API_Key" before lowercasing
    snake = _ACRONYM_TO_WORD.sub(r"\1_\2", name)
    snake = _LOWER_TO_UPPER.sub(r"\1_\2", snake)
    return snake.lower()


def to_camel_case(name: str) -> str:
    """Convert a column name to its logical field name."""
    if name in COLUMN_NAMES:
        return COLUMN_NAMES[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def normalize_logical_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map legacy acronym spellings and column names onto logical names."""
    out: Dict[str, Any] = {}
    for key, value in data.items():
        key = LEGACY_ALIASES.get(key, key)
        if "_" in key:
            key = to_camel_case(key)
        out[key] = value
    return out


def to_columns(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {to_snake_case(key): value for key, value in data.items()}


def from_columns(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {to_camel_case(key): value for key, value in data.items()}
