"""Validation result and context types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import ErrorEntry


@dataclass
class ValidationResult:
    """Unified result object for every validation step.

    Field-level results carry an error node in ``errors`` (a list of
    ``ErrorEntry`` for a leaf, or a nested dict for objects and arrays).
    The result returned by ``validate`` carries the formatted error payload
    instead.
    """

    valid: bool
    value: Any  # The (possibly coerced) value
    errors: Any = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.valid

    @classmethod
    def success(cls, value: Any) -> ValidationResult:
        """Create a successful validation result.

        Args:
            value: The validated value

        Returns:
            Successful ValidationResult
        """
        return cls(valid=True, value=value, errors=[])

    @classmethod
    def failure(cls, value: Any, errors: Any) -> ValidationResult:
        """Create a failed validation result.

        Args:
            value: The value that failed validation
            errors: Error node or formatted error payload

        Returns:
            Failed ValidationResult
        """
        return cls(valid=False, value=value, errors=errors)

    @classmethod
    def error(cls, value: Any, code: str, **meta: Any) -> ValidationResult:
        """Failed result with a single default-message entry."""
        return cls.failure(value, [ErrorEntry.of(code, **meta)])


@dataclass(frozen=True)
class ValidationContext:
    """Per-call state shared read-only by every field and element.

    Attributes:
        data: The (defaulted) input record of the schema being validated
        convert: Whether type coercion is enabled
        options: Opaque caller options forwarded to custom validators and hooks
    """

    data: Mapping[str, Any]
    convert: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def for_data(self, data: Mapping[str, Any]) -> ValidationContext:
        """Context for a nested object, keeping convert and options."""
        return ValidationContext(data=data, convert=self.convert, options=self.options)
