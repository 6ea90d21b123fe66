"""Schema-driven validation and coercion of records.

Validates an input record against a declarative schema of per-field rules
and returns either the normalized record or a path-addressable error report.

- Type coercion (``convert=True``) for strings, numbers, booleans, dates and
  delimited arrays
- Nested objects, per-element array validation and field-dependent
  (conditional) rules
- Custom types resolved through an explicitly passed registry
- Async hooks run under bounded concurrency with per-rule timeouts
- Pluggable error formatting and message translation

Example:
    ```python
    from dataknobs_schema import number, schema, string, validate

    signup = schema({"name": string(required=True), "age": number(min=18)})

    result = validate({"name": "Ada", "age": "42"}, signup, convert=True)
    result.value
    # {'name': 'Ada', 'age': 42}
    ```
"""

from .builders import array, boolean, custom, date, number, object_, schema, string, when
from .config import ValidatorConfig
from .custom_types import CustomValidator, TypeRegistry
from .errors import ErrorAggregator, ErrorCode, ErrorEntry, flatten
from .exceptions import (
    ConfigurationError,
    CustomValidatorError,
    DataknobsSchemaError,
    NotFoundError,
    OperationError,
    SchedulerError,
    SchemaDefinitionError,
)
from .factory import SchemaFactory, schema_factory
from .result import ValidationContext, ValidationResult
from .rules import (
    ArrayRule,
    BooleanRule,
    Conditions,
    ConditionalRule,
    CustomRule,
    DateRule,
    NumberRule,
    ObjectRule,
    Rule,
    RuleType,
    Schema,
    StringRule,
)
from .validator import Validator, validate, validate_async

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "validate",
    "validate_async",
    "Validator",
    "ValidatorConfig",
    # Result types
    "ValidationResult",
    "ValidationContext",
    "ErrorEntry",
    "ErrorCode",
    "ErrorAggregator",
    "flatten",
    # Rules
    "Rule",
    "RuleType",
    "Schema",
    "StringRule",
    "NumberRule",
    "BooleanRule",
    "DateRule",
    "ObjectRule",
    "ArrayRule",
    "ConditionalRule",
    "Conditions",
    "CustomRule",
    # Builders
    "schema",
    "string",
    "number",
    "boolean",
    "date",
    "object_",
    "array",
    "when",
    "custom",
    # Custom types
    "CustomValidator",
    "TypeRegistry",
    # Factories
    "SchemaFactory",
    "schema_factory",
    # Exceptions
    "DataknobsSchemaError",
    "SchemaDefinitionError",
    "CustomValidatorError",
    "ConfigurationError",
    "SchedulerError",
    "NotFoundError",
    "OperationError",
]
