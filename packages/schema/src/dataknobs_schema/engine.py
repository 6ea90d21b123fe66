"""Sequential validation engine.

Validates a record against a schema field by field, in schema order,
recursing into object and array rules. Every field and every array element
is validated even after an earlier one fails. Async hooks are not run here;
schemas that declare any are handed to the ``ParallelScheduler``, which
reuses the building blocks of this engine.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from .coercers import coerce, ensure_object
from .conditions import select
from .custom_types import TypeRegistry, dispatch
from .errors import SCHEMA_KEY, ErrorCode, ErrorEntry
from .resolver import MISSING, Found, is_blank, lookup, resolve
from .result import ValidationContext, ValidationResult
from .rules import ArrayRule, ConditionalRule, CustomRule, ObjectRule, Rule, Schema

logger = logging.getLogger(__name__)


class FieldOutcome(NamedTuple):
    """Result of one schema field.

    ``key`` is the spelling used in the record (None when the field is
    absent); ``result`` is None when a missing optional field was skipped.
    """

    name: str
    key: Any
    result: ValidationResult | None


def apply_defaults(data: Mapping[Any, Any], schema: Schema) -> dict[Any, Any]:
    """Copy of ``data`` with schema defaults added for absent keys.

    A key that is present with a None value is kept as is.
    """
    merged = dict(data)
    for name, value in schema.defaults.items():
        if lookup(data, name) is None:
            merged[name] = value
    return merged


def activate(rule: Rule, data: Mapping[Any, Any]) -> tuple[Rule | None, bool]:
    """Resolve (possibly nested) conditional rules to the active rule."""
    active: Rule | None = rule
    required = rule.required
    while isinstance(active, ConditionalRule):
        active, required = select(active, data)
    return active, required


def invalid_data(data: Any) -> ValidationResult:
    return ValidationResult.failure(data, {SCHEMA_KEY: [ErrorEntry.of(ErrorCode.INVALID_DATA)]})


def merge_fields(data: Mapping[Any, Any], outcomes: Sequence[FieldOutcome]) -> ValidationResult:
    """Ordered merge of field outcomes into a record or an error tree."""
    output = dict(data)
    errors: dict[str, Any] = {}
    for outcome in outcomes:
        if outcome.result is None:
            continue
        if outcome.result.valid:
            output[outcome.key] = outcome.result.value
        else:
            errors[outcome.name] = outcome.result.errors

    if errors:
        return ValidationResult.failure(data, errors)
    return ValidationResult.success(output)


def merge_elements(items: Sequence[Any], results: Sequence[ValidationResult]) -> ValidationResult:
    """Ordered merge of element results; errors keyed by original index."""
    errors = {index: result.errors for index, result in enumerate(results) if not result.valid}
    if errors:
        return ValidationResult.failure(list(items), errors)
    return ValidationResult.success([result.value for result in results])


class SequentialEngine:
    """Synchronous, strictly ordered validation.

    Args:
        registry: Custom type registry used for ``CustomRule`` dispatch
    """

    def __init__(self, registry: TypeRegistry | None = None):
        self.registry = registry if registry is not None else TypeRegistry()

    def validate_schema(
        self,
        data: Any,
        schema: Schema,
        context: ValidationContext,
    ) -> ValidationResult:
        """Validate a record (top-level or nested) against ``schema``.

        Returns:
            Success with the normalized record, or failure whose ``errors`` is
            the error tree keyed by field name
        """
        if not isinstance(data, Mapping):
            return invalid_data(data)

        data = apply_defaults(data, schema)
        context = context.for_data(data)
        outcomes = [
            self.validate_field(name, rule, data, context)
            for name, rule in schema.fields.items()
        ]
        return merge_fields(data, outcomes)

    def prepare_field(
        self, name: str, rule: Rule, data: Mapping[Any, Any]
    ) -> tuple[Rule | None, bool, Found | Any]:
        """Active rule, effective required flag and the resolved field."""
        active, required = activate(rule, data)
        return active, required, resolve(data, name)

    def validate_field(
        self,
        name: str,
        rule: Rule,
        data: Mapping[Any, Any],
        context: ValidationContext,
    ) -> FieldOutcome:
        active, required, found = self.prepare_field(name, rule, data)
        if found is MISSING:
            return missing_outcome(name, required)
        if active is None:
            return FieldOutcome(name, found.key, ValidationResult.success(found.value))
        return FieldOutcome(name, found.key, self.validate_value(found.value, active, context))

    def validate_value(self, value: Any, rule: Rule, context: ValidationContext) -> ValidationResult:
        """Validate a present value against a non-conditional rule."""
        if isinstance(rule, ObjectRule):
            result = ensure_object(value)
            if not result.valid:
                return result
            return self.validate_schema(value, rule.schema, context)

        if isinstance(rule, ArrayRule):
            result = coerce(value, rule, context)
            if not result.valid or rule.of is None:
                return result
            return self.validate_elements(result.value, rule.of, context)

        if isinstance(rule, CustomRule):
            return dispatch(rule, value, context, self.registry)

        if isinstance(rule, ConditionalRule):
            active, required = activate(rule, context.data)
            return self.validate_element(value, active, required, context)

        return coerce(value, rule, context)

    def validate_element(
        self,
        item: Any,
        rule: Rule | None,
        required: bool,
        context: ValidationContext,
    ) -> ValidationResult:
        """Validate one array element (or an already-resolved conditional value)."""
        if is_blank(item):
            if required:
                return ValidationResult.error(item, ErrorCode.REQUIRED)
            return ValidationResult.success(item)
        if rule is None:
            return ValidationResult.success(item)
        return self.validate_value(item, rule, context)

    def validate_elements(
        self, items: list[Any], rule: Rule, context: ValidationContext
    ) -> ValidationResult:
        active, required = activate(rule, context.data)
        results = [self.validate_element(item, active, required, context) for item in items]
        return merge_elements(items, results)


def missing_outcome(name: str, required: bool) -> FieldOutcome:
    if required:
        return FieldOutcome(name, None, ValidationResult.error(None, ErrorCode.REQUIRED))
    return FieldOutcome(name, None, None)
