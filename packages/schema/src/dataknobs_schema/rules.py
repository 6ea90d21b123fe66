"""Rule model: a closed set of immutable rule variants and the Schema.

Every rule variant is a frozen dataclass deriving from ``Rule``. The engine
dispatches on the concrete class, so adding a new base type means adding a
variant here and a branch in the coercers.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from re import Pattern as RegexPattern
from types import MappingProxyType
from typing import Any, ClassVar

from .exceptions import SchemaDefinitionError


class RuleType(Enum):
    """Tag of each rule variant."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"
    CONDITIONAL = "conditional"
    CUSTOM = "custom"


class _Unset:
    """Marker for a condition check that was not configured."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _check_bounds(kind: str, low: Any, high: Any) -> None:
    if low is not None and low < 0:
        raise SchemaDefinitionError(f"{kind} min cannot be negative: {low}", context={"min": low})
    if high is not None and high < 0:
        raise SchemaDefinitionError(f"{kind} max cannot be negative: {high}", context={"max": high})
    if low is not None and high is not None and low > high:
        raise SchemaDefinitionError(
            f"{kind} min ({low}) cannot be greater than max ({high})",
            context={"min": low, "max": high},
        )


@dataclass(frozen=True, kw_only=True)
class Rule:
    """Common part of every rule variant.

    Attributes:
        required: Whether a missing value is an error
        async_hook: Coroutine function ``(value, context)`` run after the
            synchronous checks pass
        timeout: Timeout override in milliseconds for the async hook
    """

    type: ClassVar[RuleType]

    required: bool = False
    async_hook: Callable[..., Any] | None = None
    timeout: int | None = None

    def __post_init__(self) -> None:
        if self.async_hook is not None and not inspect.iscoroutinefunction(self.async_hook):
            raise SchemaDefinitionError(
                "async_hook must be a coroutine function (async def)",
                context={"hook": repr(self.async_hook)},
            )
        if self.timeout is not None and self.timeout <= 0:
            raise SchemaDefinitionError(
                f"timeout must be a positive number of milliseconds, got {self.timeout}",
                context={"timeout": self.timeout},
            )

    def has_async(self) -> bool:
        """True if this rule or any rule nested under it declares an async hook."""
        return self.async_hook is not None or any(
            child.has_async() for child in self.children()
        )

    def children(self) -> tuple[Rule, ...]:
        return ()


@dataclass(frozen=True, kw_only=True)
class StringRule(Rule):
    type: ClassVar[RuleType] = RuleType.STRING

    min: int | None = None
    max: int | None = None
    pattern: RegexPattern[str] | str | None = None
    email: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_bounds("string", self.min, self.max)
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern))


@dataclass(frozen=True, kw_only=True)
class NumberRule(Rule):
    type: ClassVar[RuleType] = RuleType.NUMBER

    min: int | float | None = None
    max: int | float | None = None
    integer: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SchemaDefinitionError(
                f"number min ({self.min}) cannot be greater than max ({self.max})",
                context={"min": self.min, "max": self.max},
            )


@dataclass(frozen=True, kw_only=True)
class BooleanRule(Rule):
    type: ClassVar[RuleType] = RuleType.BOOLEAN

    truthy: tuple[Any, ...] | None = None
    falsy: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("truthy", "falsy"):
            values = getattr(self, name)
            if values is not None:
                object.__setattr__(self, name, tuple(values))


@dataclass(frozen=True, kw_only=True)
class DateRule(Rule):
    type: ClassVar[RuleType] = RuleType.DATE


@dataclass(frozen=True, kw_only=True)
class ObjectRule(Rule):
    type: ClassVar[RuleType] = RuleType.OBJECT

    schema: Schema

    def children(self) -> tuple[Rule, ...]:
        return tuple(self.schema.fields.values())


@dataclass(frozen=True, kw_only=True)
class ArrayRule(Rule):
    type: ClassVar[RuleType] = RuleType.ARRAY

    of: Rule | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique: bool = False
    delimiter: str = ","

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_bounds("array", self.min_items, self.max_items)
        if not self.delimiter:
            raise SchemaDefinitionError("array delimiter cannot be empty")

    def children(self) -> tuple[Rule, ...]:
        return (self.of,) if self.of is not None else ()


@dataclass(frozen=True)
class Conditions:
    """Predicates checked against the referenced field.

    ``is_`` is exact equality, ``in_`` is membership in any container
    (list, set, ``range``), ``matches`` is a regex search applied to string
    values only, ``min``/``max`` are inclusive numeric bounds. Unset checks
    are vacuously true.

    A Python ``range`` is half-open and holds integers only: the inclusive
    range 1..5 is ``range(1, 6)`` and 2.5 is never a member. Use ``min`` and
    ``max`` together for an inclusive bound that also admits floats.
    """

    is_: Any = UNSET
    in_: Any = UNSET
    matches: RegexPattern[str] | str | None = None
    min: int | float | None = None
    max: int | float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.matches, str):
            object.__setattr__(self, "matches", re.compile(self.matches))

    def is_configured(self) -> bool:
        return (
            self.is_ is not UNSET
            or self.in_ is not UNSET
            or self.matches is not None
            or self.min is not None
            or self.max is not None
        )


@dataclass(frozen=True, kw_only=True)
class ConditionalRule(Rule):
    """Rule whose active sub-rule depends on another field of the record.

    When the conditions do not match, ``otherwise`` applies, falling back to
    ``base`` when ``otherwise`` is unset.
    """

    type: ClassVar[RuleType] = RuleType.CONDITIONAL

    field: str
    conditions: Conditions
    then: Rule
    otherwise: Rule | None = None
    base: Rule | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.then is None:
            raise SchemaDefinitionError(
                "conditional rule requires a 'then' rule", context={"field": self.field}
            )
        if not self.conditions.is_configured():
            raise SchemaDefinitionError(
                "conditional rule requires at least one condition (is/in/matches/min/max)",
                context={"field": self.field},
            )

    def children(self) -> tuple[Rule, ...]:
        return tuple(r for r in (self.then, self.otherwise, self.base) if r is not None)


@dataclass(frozen=True, kw_only=True)
class CustomRule(Rule):
    """Rule resolved at validation time against the custom type registry."""

    type: ClassVar[RuleType] = RuleType.CUSTOM

    type_name: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))


@dataclass(frozen=True)
class Schema:
    """Mapping of field name to Rule plus top-level default values."""

    fields: Mapping[str, Rule]
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, rule in self.fields.items():
            if not isinstance(rule, Rule):
                raise SchemaDefinitionError(
                    f"Field '{name}' must map to a Rule, got {type(rule).__name__}",
                    context={"field": name},
                )
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def has_async(self) -> bool:
        return any(rule.has_async() for rule in self.fields.values())
