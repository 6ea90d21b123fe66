"""Field lookup in an input record.

Schemas declare one canonical string name per field. Records normally use
the same string keys, but keys that merely *spell* the same name (a
``str``-valued Enum member, UTF-8 bytes) are accepted as an alternate
spelling. Unknown keys never raise; they simply do not match.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, NamedTuple


class Found(NamedTuple):
    """A present field: the key as spelled in the record and its value."""

    key: Any
    value: Any


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def canonical(key: Any) -> str | None:
    """Canonical string spelling of a record key, or None if it has none."""
    if isinstance(key, Enum):
        return key.value if isinstance(key.value, str) else None
    if isinstance(key, str):
        return key
    if isinstance(key, bytes):
        try:
            return key.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def lookup(record: Mapping[Any, Any], name: str) -> Found | None:
    """Find ``name`` under its declared spelling, then any alternate spelling."""
    if name in record:
        return Found(name, record[name])
    for key, value in record.items():
        if key != name and canonical(key) == name:
            return Found(key, value)
    return None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def resolve(record: Mapping[Any, Any], name: str) -> Found | Any:
    """Return ``Found(key, value)`` or ``MISSING`` for a schema field.

    A field is missing when it is absent under every spelling or when its
    value is ``None`` or the empty string.
    """
    found = lookup(record, name)
    if found is None or is_blank(found.value):
        return MISSING
    return found


def peek(record: Mapping[Any, Any], name: str) -> Any:
    """Raw value of ``name`` (None when absent), used by conditional rules."""
    found = lookup(record, name)
    return None if found is None else found.value
