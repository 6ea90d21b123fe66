"""Custom exceptions for the dataknobs_schema package.

This module defines exception types for the schema package, built on the
common exception framework from dataknobs_common.

Only programmer errors are raised: a malformed schema, a custom validator
with an unsupported shape, an invalid configuration or a misuse of the
synchronous entry point. Problems with the *data* being validated are never
raised; they are returned as error payloads by the validator.

Example:
    ```python
    from dataknobs_schema.exceptions import SchemaDefinitionError

    try:
        when("role", then=string())
    except SchemaDefinitionError as e:
        logger.error(f"Bad schema: {e}")
        logger.error(f"Context: {e.context}")
    ```
"""

from dataknobs_common import (
    ConfigurationError as BaseConfigurationError,
    DataknobsError,
    NotFoundError,
    OperationError,
)


class DataknobsSchemaError(DataknobsError):
    """Base exception for the dataknobs_schema package."""

    pass


class SchemaDefinitionError(DataknobsSchemaError):
    """Raised when a rule or schema is constructed with invalid parameters.

    Example:
        ```python
        raise SchemaDefinitionError(
            "when() requires at least one condition",
            context={"field": "role"}
        )
        ```
    """

    pass


class CustomValidatorError(DataknobsSchemaError):
    """Raised when a custom validator or async hook has an unsupported shape.

    Covers validators that cannot be registered (neither callable nor a
    ``CustomValidator``), callables with an unsupported arity and return
    values that cannot be normalized.
    """

    pass


class ConfigurationError(DataknobsSchemaError, BaseConfigurationError):
    """Raised when validator configuration is invalid or cannot be loaded."""

    pass


class SchedulerError(DataknobsSchemaError):
    """Raised when the parallel path cannot be started from the calling context."""

    pass


__all__ = [
    "DataknobsSchemaError",
    "SchemaDefinitionError",
    "CustomValidatorError",
    "ConfigurationError",
    "SchedulerError",
    # Re-exported from dataknobs_common, raised by the type registry
    "NotFoundError",
    "OperationError",
]
