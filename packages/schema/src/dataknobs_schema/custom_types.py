"""Custom type registry and custom validator dispatch.

A custom type name resolves, through a ``TypeRegistry``, to either a plain
callable or a ``CustomValidator`` object. Both may answer with:

- ``None`` or ``True``: valid, value unchanged
- ``ValidationResult.success(new_value)``: valid, value replaced
- ``ValidationResult.failure(value, errors)``: invalid with the given errors

Example:
    ```python
    registry = TypeRegistry()
    registry.register("slug", lambda value: SLUG.match(value) is not None or
                      ValidationResult.failure(value, ["must be a slug"]))

    schema({"handle": custom("slug", required=True)})
    ```
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from dataknobs_common import Registry

from .errors import ErrorCode, ErrorEntry, default_message
from .exceptions import CustomValidatorError
from .result import ValidationContext, ValidationResult
from .rules import CustomRule, Rule

logger = logging.getLogger(__name__)


class CustomValidator(ABC):
    """Object form of a custom validator."""

    @abstractmethod
    def validate(self, value: Any, rule: Rule, context: ValidationContext) -> Any:
        """Validate ``value``.

        Args:
            value: The present (non-missing) field value
            rule: The ``CustomRule`` being applied, with its ``options``
            context: Read-only validation context

        Returns:
            None/True, or a ValidationResult
        """


class _FunctionValidator(CustomValidator):
    """Adapts a 1-3 argument callable to the CustomValidator contract."""

    def __init__(self, func: Callable[..., Any], arity: int):
        self.func = func
        self.arity = arity

    def validate(self, value: Any, rule: Rule, context: ValidationContext) -> Any:
        args = (value, context, rule)[: self.arity]
        return self.func(*args)


class _ObjectValidator(CustomValidator):
    """Adapts any object exposing validate(value, rule, context)."""

    def __init__(self, target: Any):
        self.target = target

    def validate(self, value: Any, rule: Rule, context: ValidationContext) -> Any:
        return self.target.validate(value, rule, context)


def _positional_arity(func: Callable[..., Any]) -> int:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 3
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def as_validator(name: str, validator: Any) -> CustomValidator:
    """Normalize a registrable object into a ``CustomValidator``.

    Raises:
        CustomValidatorError: If the object has an unsupported shape
    """
    if isinstance(validator, CustomValidator):
        return validator
    if isinstance(validator, type) and issubclass(validator, CustomValidator):
        return validator()
    if not isinstance(validator, type) and callable(getattr(validator, "validate", None)):
        return _ObjectValidator(validator)
    if callable(validator):
        arity = _positional_arity(validator)
        if not 1 <= arity <= 3:
            raise CustomValidatorError(
                f"Custom validator '{name}' must accept 1 to 3 positional arguments, got {arity}",
                context={"type": name, "arity": arity},
            )
        return _FunctionValidator(validator, arity)
    raise CustomValidatorError(
        f"Unsupported validator for custom type '{name}': {type(validator).__name__}",
        context={"type": name},
    )


class TypeRegistry(Registry[CustomValidator]):
    """Thread-safe mapping of custom type name to validator.

    Owned by a ``ValidatorConfig`` and passed explicitly to every validate
    call; there is no process-wide registry. Registration accepts every
    shape ``as_validator`` understands and stores the normalized form.
    """

    def __init__(self, name: str = "custom_types", enable_metrics: bool = False):
        super().__init__(name, enable_metrics=enable_metrics)

    def register(
        self,
        key: str,
        item: Any,
        metadata: dict[str, Any] | None = None,
        allow_overwrite: bool = False,
    ) -> None:
        """Register a validator under ``key``.

        Raises:
            CustomValidatorError: If the validator shape is unsupported
            OperationError: If the key is taken and ``allow_overwrite`` is False
        """
        super().register(
            key, as_validator(key, item), metadata=metadata, allow_overwrite=allow_overwrite
        )
        logger.debug(f"Registered custom type '{key}' in {self.name}")


def _to_entry(item: Any, default_code: str) -> ErrorEntry:
    if isinstance(item, ErrorEntry):
        return item
    if isinstance(item, str):
        return ErrorEntry(default_code, item)
    if isinstance(item, Mapping):
        code = item.get("code", default_code)
        meta = item.get("meta") or {}
        return ErrorEntry(code, item.get("message") or default_message(code, meta), meta)
    raise CustomValidatorError(
        f"Unsupported error item from custom validator: {type(item).__name__}",
        context={"item": repr(item)},
    )


def normalize_result(result: Any, value: Any, default_code: str) -> ValidationResult:
    """Collapse the accepted return shapes into a single ValidationResult.

    Raises:
        CustomValidatorError: If ``result`` is not one of the accepted shapes
    """
    if result is None or result is True:
        return ValidationResult.success(value)
    if isinstance(result, ValidationResult):
        if result.valid:
            return result
        errors = result.errors
        if isinstance(errors, (str, ErrorEntry, Mapping)):
            errors = [errors]
        entries = [_to_entry(item, default_code) for item in errors or ()]
        if not entries:
            entries = [ErrorEntry(default_code, default_message(default_code))]
        return ValidationResult.failure(result.value, entries)
    raise CustomValidatorError(
        f"Unsupported result from validator: {type(result).__name__}",
        context={"result": repr(result)},
    )


def dispatch(
    rule: CustomRule,
    value: Any,
    context: ValidationContext,
    registry: TypeRegistry,
) -> ValidationResult:
    """Run the validator registered for ``rule.type_name`` against ``value``."""
    validator = registry.get_optional(rule.type_name)
    if validator is None:
        logger.debug(f"Custom type '{rule.type_name}' is not registered")
        return ValidationResult.error(value, ErrorCode.CUSTOM_TYPE, type=rule.type_name)

    try:
        result = validator.validate(value, rule, context)
    except Exception as e:
        logger.warning(f"Custom validator '{rule.type_name}' raised: {e!s}", exc_info=True)
        return ValidationResult.failure(
            value,
            [ErrorEntry(
                ErrorCode.CUSTOM_TYPE,
                f"custom validator {rule.type_name} failed: {e!s}",
                {"type": rule.type_name, "reason": str(e)},
            )],
        )

    return normalize_result(result, value, rule.type_name)
