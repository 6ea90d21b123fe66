"""Per-type ensure (type confirmation/coercion) and check (constraints).

Each base type validates in two phases. ``ensure_*`` confirms the value's
type, coercing it from a string when the context allows conversion, and
fails with a single type error. ``check_*`` then evaluates every declared
constraint against the typed value and reports all violations in
declaration order. Nothing here raises for bad data.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from .errors import ErrorCode, ErrorEntry
from .result import ValidationContext, ValidationResult
from .rules import ArrayRule, BooleanRule, DateRule, NumberRule, Rule, StringRule

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_INTEGER_REGEX = re.compile(r"^[+-]?\d+$")
_DECIMAL_REGEX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

DEFAULT_TRUTHY: tuple[Any, ...] = (True, "true", "1", 1, "yes", "on")
DEFAULT_FALSY: tuple[Any, ...] = (False, "false", "0", 0, "no", "off")


def is_number(value: Any) -> bool:
    """True for int/float/Decimal values; ``bool`` is never a number."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


# -- string -------------------------------------------------------------------

def ensure_string(value: Any, rule: StringRule, context: ValidationContext) -> ValidationResult:
    if not isinstance(value, str):
        if not (context.convert and is_number(value)):
            return ValidationResult.error(value, ErrorCode.STRING)
        try:
            value = str(value)
        except ValueError:
            # int wider than sys.get_int_max_str_digits()
            return ValidationResult.error(value, ErrorCode.STRING)

    if context.convert:
        value = " ".join(value.split())
        if rule.required and value == "":
            return ValidationResult.error(value, ErrorCode.REQUIRED)

    return ValidationResult.success(value)


def check_string(value: str, rule: StringRule) -> list[ErrorEntry]:
    errors = []
    if rule.min is not None and len(value) < rule.min:
        errors.append(ErrorEntry.of(ErrorCode.STRING_MIN, min=rule.min))
    if rule.max is not None and len(value) > rule.max:
        errors.append(ErrorEntry.of(ErrorCode.STRING_MAX, max=rule.max))
    if rule.pattern is not None and not rule.pattern.search(value):
        errors.append(ErrorEntry.of(ErrorCode.STRING_PATTERN, pattern=rule.pattern.pattern))
    if rule.email and not EMAIL_REGEX.match(value):
        errors.append(ErrorEntry.of(ErrorCode.STRING_EMAIL))
    return errors


# -- number -------------------------------------------------------------------

def parse_number(text: str) -> int | float | None:
    """Locale-free decimal parsing: ``"42"`` -> 42, ``"4.5e1"`` -> 45.0."""
    text = text.strip()
    try:
        if _INTEGER_REGEX.match(text):
            return int(text)
        if _DECIMAL_REGEX.match(text):
            return float(text)
    except ValueError:
        # more digits than sys.get_int_max_str_digits() allows
        return None
    return None


def ensure_number(value: Any, rule: NumberRule, context: ValidationContext) -> ValidationResult:
    if isinstance(value, str) and context.convert:
        parsed = parse_number(value)
        if parsed is None:
            return ValidationResult.error(value, ErrorCode.NUMBER)
        value = parsed

    if not is_number(value):
        return ValidationResult.error(value, ErrorCode.NUMBER)
    if isinstance(value, float) and not math.isfinite(value):
        return ValidationResult.error(value, ErrorCode.NUMBER)
    if isinstance(value, Decimal) and not value.is_finite():
        return ValidationResult.error(value, ErrorCode.NUMBER)

    return ValidationResult.success(value)


def check_number(value: int | float | Decimal, rule: NumberRule) -> list[ErrorEntry]:
    errors = []
    if rule.min is not None and value < rule.min:
        errors.append(ErrorEntry.of(ErrorCode.NUMBER_MIN, min=rule.min))
    if rule.max is not None and value > rule.max:
        errors.append(ErrorEntry.of(ErrorCode.NUMBER_MAX, max=rule.max))
    if rule.integer and not (isinstance(value, int) or value == int(value)):
        errors.append(ErrorEntry.of(ErrorCode.NUMBER_INTEGER))
    return errors


# -- boolean ------------------------------------------------------------------

def _member(value: Any, values: Sequence[Any]) -> bool:
    if isinstance(value, str):
        needle = value.strip().lower()
        return any(isinstance(v, str) and v.lower() == needle for v in values)
    return any(not isinstance(v, str) and v == value for v in values)


def ensure_boolean(value: Any, rule: BooleanRule, context: ValidationContext) -> ValidationResult:
    if isinstance(value, bool):
        return ValidationResult.success(value)
    if not context.convert:
        return ValidationResult.error(value, ErrorCode.BOOLEAN)

    truthy = rule.truthy if rule.truthy is not None else DEFAULT_TRUTHY
    falsy = rule.falsy if rule.falsy is not None else DEFAULT_FALSY
    if _member(value, truthy):
        return ValidationResult.success(True)
    if _member(value, falsy):
        return ValidationResult.success(False)
    return ValidationResult.error(value, ErrorCode.BOOLEAN)


# -- date ---------------------------------------------------------------------

def parse_datetime(text: str) -> datetime | None:
    """Parse an ISO-8601 date-time (or date-only) string, normalized to UTC.

    Naive values are taken to be UTC. Relies on the Python 3.11
    ``datetime.fromisoformat``, which accepts basic forms such as
    ``20240101T100000`` and any number of fractional digits.
    """
    text = text.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), time())
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def ensure_date(value: Any, rule: DateRule, context: ValidationContext) -> ValidationResult:
    # datetime is a subclass of date
    if isinstance(value, date):
        return ValidationResult.success(value)
    if context.convert and isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is not None:
            return ValidationResult.success(parsed)
    return ValidationResult.error(value, ErrorCode.DATE)


# -- array --------------------------------------------------------------------

def ensure_array(value: Any, rule: ArrayRule, context: ValidationContext) -> ValidationResult:
    if isinstance(value, (list, tuple)):
        return ValidationResult.success(list(value))
    if context.convert and isinstance(value, str):
        items = [part.strip() for part in value.split(rule.delimiter)]
        return ValidationResult.success([item for item in items if item])
    return ValidationResult.error(value, ErrorCode.ARRAY)


def _same(left: Any, right: Any) -> bool:
    # True == 1 in Python, but they are different items in a payload
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def has_duplicates(items: Sequence[Any]) -> bool:
    """Pairwise structural equality; works for unhashable items (dicts, lists)."""
    seen: list[Any] = []
    for item in items:
        if any(_same(item, other) for other in seen):
            return True
        seen.append(item)
    return False


def check_array(items: list[Any], rule: ArrayRule) -> list[ErrorEntry]:
    errors = []
    if rule.min_items is not None and len(items) < rule.min_items:
        errors.append(ErrorEntry.of(ErrorCode.ARRAY_MIN_ITEMS, min=rule.min_items))
    if rule.max_items is not None and len(items) > rule.max_items:
        errors.append(ErrorEntry.of(ErrorCode.ARRAY_MAX_ITEMS, max=rule.max_items))
    if rule.unique and has_duplicates(items):
        errors.append(ErrorEntry.of(ErrorCode.ARRAY_UNIQUE))
    return errors


def ensure_object(value: Any) -> ValidationResult:
    if isinstance(value, Mapping):
        return ValidationResult.success(value)
    return ValidationResult.error(value, ErrorCode.OBJECT)


_SCALARS = {
    StringRule: (ensure_string, check_string),
    NumberRule: (ensure_number, check_number),
    BooleanRule: (ensure_boolean, None),
    DateRule: (ensure_date, None),
    ArrayRule: (ensure_array, check_array),
}


def coerce(value: Any, rule: Rule, context: ValidationContext) -> ValidationResult:
    """Run ensure then check for a string/number/boolean/date/array rule.

    For arrays this covers only the array itself (type, item counts and
    uniqueness); elements are validated by the engine.
    """
    try:
        ensure, check = _SCALARS[type(rule)]
    except KeyError:
        raise TypeError(f"No coercer for rule type {type(rule).__name__}") from None

    result = ensure(value, rule, context)
    if not result.valid or check is None:
        return result

    errors = check(result.value, rule)
    if errors:
        logger.debug(f"{rule.type.value} constraints failed: {[e.code for e in errors]}")
        return ValidationResult.failure(result.value, errors)
    return result
