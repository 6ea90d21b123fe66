"""Error entries, default messages and error tree aggregation.

Field errors are collected into a tree that mirrors the schema: a leaf is a
list of ``ErrorEntry`` values, an object field maps to a nested dict keyed by
field name and an array field maps to a dict keyed by element index. The
``ErrorAggregator`` turns that tree into the externally visible payload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

# A tree node is either a leaf list of entries or a mapping of child nodes.
ErrorNode = Union[list["ErrorEntry"], dict[Any, "ErrorNode"]]

Formatter = Callable[[dict[Any, Any]], Any]
Translator = Callable[[str, str, Mapping[str, Any]], str]

SCHEMA_KEY = "_schema"
FLAT_KEY = "errors_flat"


class ErrorCode:
    """Symbolic error codes reported by the engine."""

    REQUIRED = "required"
    INVALID_DATA = "invalid_data"

    STRING = "string"
    STRING_MIN = "string_min"
    STRING_MAX = "string_max"
    STRING_PATTERN = "string_pattern"
    STRING_EMAIL = "string_email"

    NUMBER = "number"
    NUMBER_MIN = "number_min"
    NUMBER_MAX = "number_max"
    NUMBER_INTEGER = "number_integer"

    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"

    ARRAY = "array"
    ARRAY_MIN_ITEMS = "array_min_items"
    ARRAY_MAX_ITEMS = "array_max_items"
    ARRAY_UNIQUE = "array_unique"

    CUSTOM_TYPE = "custom_type"
    ASYNC_TIMEOUT = "async_timeout"
    ASYNC_ERROR = "async_error"


_MESSAGES: dict[str, str] = {
    ErrorCode.REQUIRED: "is required",
    ErrorCode.INVALID_DATA: "data must be a mapping",
    ErrorCode.STRING: "must be a string",
    ErrorCode.STRING_MIN: "must be at least {min} characters",
    ErrorCode.STRING_MAX: "must be at most {max} characters",
    ErrorCode.STRING_PATTERN: "does not match the required pattern",
    ErrorCode.STRING_EMAIL: "must be a valid email",
    ErrorCode.NUMBER: "must be a number",
    ErrorCode.NUMBER_MIN: "must be greater than or equal to {min}",
    ErrorCode.NUMBER_MAX: "must be less than or equal to {max}",
    ErrorCode.NUMBER_INTEGER: "must be an integer",
    ErrorCode.BOOLEAN: "must be a boolean",
    ErrorCode.DATE: "must be a valid ISO8601 date",
    ErrorCode.OBJECT: "must be an object",
    ErrorCode.ARRAY: "must be an array",
    ErrorCode.ARRAY_MIN_ITEMS: "must contain at least {min} items",
    ErrorCode.ARRAY_MAX_ITEMS: "must contain at most {max} items",
    ErrorCode.ARRAY_UNIQUE: "must contain unique items",
    ErrorCode.CUSTOM_TYPE: "unknown custom type {type}",
    ErrorCode.ASYNC_TIMEOUT: "validation timed out after {timeout}ms",
    ErrorCode.ASYNC_ERROR: "async validation failed: {reason}",
}


def default_message(code: str, meta: Mapping[str, Any] | None = None) -> str:
    """Render the built-in English message for an error code."""
    template = _MESSAGES.get(code)
    if template is None:
        return code.replace("_", " ")
    try:
        return template.format(**(meta or {}))
    except (KeyError, IndexError):
        return template


@dataclass(frozen=True)
class ErrorEntry:
    """A single immutable error: code, human text and parameters."""

    code: str
    message: str
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @classmethod
    def of(cls, code: str, **meta: Any) -> ErrorEntry:
        """Build an entry carrying the default message for ``code``."""
        return cls(code, default_message(code, meta), meta)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "meta": dict(self.meta)}


def default_formatter(errors: dict[Any, Any]) -> dict[str, Any]:
    return {"message": "Validation failed", "errors": errors}


def default_translator(code: str, message: str, meta: Mapping[str, Any]) -> str:
    return message


def flatten(tree: Mapping[Any, Any], prefix: str = "") -> dict[str, list[str]]:
    """Depth-first walk of an error tree into ``{"a.b.0": [messages]}``.

    Works on both the raw tree (``ErrorEntry`` leaves) and the rendered tree
    (dict leaves).
    """
    flat: dict[str, list[str]] = {}
    for key, node in tree.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(node, Mapping):
            flat.update(flatten(node, path))
        else:
            flat[path] = [
                entry.message if isinstance(entry, ErrorEntry) else entry["message"]
                for entry in node
            ]
    return flat


class ErrorAggregator:
    """Translate, render, format and flatten an error tree.

    Args:
        formatter: Callable receiving the rendered tree and returning the payload
        translator: Callable ``(code, default_message, meta) -> message``
    """

    def __init__(
        self,
        formatter: Formatter | None = None,
        translator: Translator | None = None,
    ):
        self.formatter = formatter or default_formatter
        self.translator = translator or default_translator

    def translate(self, tree: Mapping[Any, Any]) -> dict[Any, Any]:
        """Return a copy of ``tree`` with translated, dict-rendered entries."""
        rendered: dict[Any, Any] = {}
        for key, node in tree.items():
            if isinstance(node, Mapping):
                rendered[key] = self.translate(node)
            else:
                rendered[key] = [self._render(entry) for entry in node]
        return rendered

    def build(self, tree: Mapping[Any, Any]) -> Any:
        """Produce the final error payload for a failed validation."""
        rendered = self.translate(tree)
        payload = self.formatter(rendered)
        if isinstance(payload, dict):
            payload[FLAT_KEY] = flatten(rendered)
        return payload

    def _render(self, entry: ErrorEntry) -> dict[str, Any]:
        message = self.translator(entry.code, entry.message, entry.meta)
        return {"code": entry.code, "message": message, "meta": dict(entry.meta)}
