"""Schema construction helpers.

Thin constructors that assemble immutable rule values:

    user_schema = schema(
        {
            "name": string(required=True, min=2, max=50),
            "age": number(min=18, integer=True),
            "active": boolean(),
            "tags": array(of=string(min=3), unique=True),
            "role": string(required=True),
            "permissions": when(
                "role", is_="admin",
                then=array(of=string(), min_items=1, required=True),
                otherwise=array(of=string()),
            ),
        },
        defaults={"active": True},
    )

Invalid combinations raise ``SchemaDefinitionError`` at construction time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from re import Pattern as RegexPattern
from typing import Any

from .exceptions import SchemaDefinitionError
from .rules import (
    UNSET,
    ArrayRule,
    BooleanRule,
    Conditions,
    ConditionalRule,
    CustomRule,
    DateRule,
    NumberRule,
    ObjectRule,
    Rule,
    Schema,
    StringRule,
)


def schema(fields: Mapping[str, Rule], defaults: Mapping[str, Any] | None = None) -> Schema:
    """Create a schema from a mapping of field name to rule.

    Args:
        fields: Field rules
        defaults: Values merged into the input for absent keys before validation
    """
    if not isinstance(fields, Mapping):
        raise SchemaDefinitionError(f"schema fields must be a mapping, got {type(fields).__name__}")
    return Schema(fields=fields, defaults=defaults or {})


def string(
    *,
    required: bool = False,
    min: int | None = None,
    max: int | None = None,
    pattern: RegexPattern[str] | str | None = None,
    email: bool = False,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> StringRule:
    return StringRule(
        required=required, min=min, max=max, pattern=pattern, email=email,
        async_hook=async_hook, timeout=timeout,
    )


def number(
    *,
    required: bool = False,
    min: int | float | None = None,
    max: int | float | None = None,
    integer: bool = False,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> NumberRule:
    return NumberRule(
        required=required, min=min, max=max, integer=integer,
        async_hook=async_hook, timeout=timeout,
    )


def boolean(
    *,
    required: bool = False,
    truthy: Any = None,
    falsy: Any = None,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> BooleanRule:
    """Boolean rule; ``truthy``/``falsy`` replace the default coercion sets."""
    return BooleanRule(
        required=required, truthy=truthy, falsy=falsy, async_hook=async_hook, timeout=timeout,
    )


def date(
    *,
    required: bool = False,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> DateRule:
    """Date rule; in convert mode ISO-8601 strings become UTC datetimes."""
    return DateRule(required=required, async_hook=async_hook, timeout=timeout)


def object_(
    fields_or_schema: Mapping[str, Rule] | Schema,
    *,
    required: bool = False,
    defaults: Mapping[str, Any] | None = None,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> ObjectRule:
    """Nested object rule from a field mapping or an existing Schema."""
    if isinstance(fields_or_schema, Schema):
        nested = fields_or_schema
        if defaults:
            nested = Schema(fields=nested.fields, defaults={**nested.defaults, **defaults})
    else:
        nested = schema(fields_or_schema, defaults)
    return ObjectRule(schema=nested, required=required, async_hook=async_hook, timeout=timeout)


def array(
    *,
    of: Rule | None = None,
    required: bool = False,
    min_items: int | None = None,
    max_items: int | None = None,
    min: int | None = None,
    max: int | None = None,
    unique: bool = False,
    delimiter: str = ",",
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
) -> ArrayRule:
    """Array rule.

    Args:
        of: Rule applied to each element
        min_items: Minimum item count (``min`` is an alias)
        max_items: Maximum item count (``max`` is an alias)
        unique: Require all elements to be distinct
        delimiter: Separator used to split strings in convert mode
    """
    return ArrayRule(
        of=of,
        required=required,
        min_items=min_items if min_items is not None else min,
        max_items=max_items if max_items is not None else max,
        unique=unique,
        delimiter=delimiter,
        async_hook=async_hook,
        timeout=timeout,
    )


def when(
    field: str,
    *,
    then: Rule | None = None,
    otherwise: Rule | None = None,
    is_: Any = UNSET,
    in_: Any = UNSET,
    matches: RegexPattern[str] | str | None = None,
    min: int | float | None = None,
    max: int | float | None = None,
    required: bool = False,
    base: Rule | None = None,
) -> ConditionalRule:
    """Rule selected by the value of another field of the same record.

    Args:
        field: Name of the field the conditions are checked against
        then: Rule applied when every configured condition holds (mandatory)
        otherwise: Rule applied when the conditions do not hold
        is_: Exact value match
        in_: Membership in a list, set or range (``range`` is half-open and
            integer-only; combine ``min`` and ``max`` for an inclusive bound)
        matches: Regular expression searched in string values
        min: Inclusive lower numeric bound
        max: Inclusive upper numeric bound
        required: Required flag used when no sub-rule is active
        base: Fallback rule used when ``otherwise`` is not given
    """
    if then is None:
        raise SchemaDefinitionError("when() requires a 'then' rule", context={"field": field})
    return ConditionalRule(
        field=field,
        conditions=Conditions(is_=is_, in_=in_, matches=matches, min=min, max=max),
        then=then,
        otherwise=otherwise,
        base=base,
        required=required,
    )


def custom(
    type_name: str,
    *,
    required: bool = False,
    async_hook: Callable[..., Any] | None = None,
    timeout: int | None = None,
    **options: Any,
) -> CustomRule:
    """Rule validated by the custom type registered under ``type_name``.

    Extra keyword arguments are passed to the validator as ``rule.options``.
    """
    return CustomRule(
        type_name=type_name, options=options, required=required,
        async_hook=async_hook, timeout=timeout,
    )
