"""Conditional rule resolution against sibling fields."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .coercers import is_number
from .resolver import peek
from .rules import UNSET, Conditions, ConditionalRule, Rule


def matches(conditions: Conditions, value: Any) -> bool:
    """True iff every configured check holds for ``value``."""
    if conditions.is_ is not UNSET and value != conditions.is_:
        return False

    if conditions.in_ is not UNSET:
        try:
            if value not in conditions.in_:
                return False
        except TypeError:
            # e.g. a string tested against a range
            return False

    if conditions.matches is not None:
        if not isinstance(value, str) or not conditions.matches.search(value):
            return False

    if conditions.min is not None or conditions.max is not None:
        if not is_number(value):
            return False
        if conditions.min is not None and value < conditions.min:
            return False
        if conditions.max is not None and value > conditions.max:
            return False

    return True


def select(rule: ConditionalRule, data: Mapping[Any, Any]) -> tuple[Rule | None, bool]:
    """Pick the active sub-rule and the effective ``required`` flag.

    Returns:
        ``(active_rule, required)``; ``active_rule`` is None when the
        condition does not match and neither ``otherwise`` nor ``base`` is set,
        in which case the conditional's own ``required`` flag governs.
    """
    if matches(rule.conditions, peek(data, rule.field)):
        active: Rule | None = rule.then
    else:
        active = rule.otherwise if rule.otherwise is not None else rule.base

    if active is None:
        return None, rule.required
    return active, active.required
