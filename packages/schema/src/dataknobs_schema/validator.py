"""Validate entry points.

``validate`` returns a ``ValidationResult``: on success ``value`` is the
normalized record and ``errors`` is empty; on failure ``value`` is None and
``errors`` holds the formatted payload, by default::

    {
        "message": "Validation failed",
        "errors": {"user": {"email": [{"code": "required", "message": "is required", "meta": {}}]}},
        "errors_flat": {"user.email": ["is required"]},
    }

Schemas without async hooks are validated sequentially. Schemas with any
async hook go through the ``ParallelScheduler``; from synchronous code that
path is driven by ``asyncio.run``, from async code use ``validate_async``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .config import ValidatorConfig
from .engine import SequentialEngine
from .exceptions import SchedulerError
from .result import ValidationContext, ValidationResult
from .rules import Schema
from .scheduler import ParallelScheduler

logger = logging.getLogger(__name__)


class Validator:
    """Validates records against schemas with a fixed configuration.

    Args:
        config: Validator configuration; a default one is created if omitted

    Example:
        ```python
        config = ValidatorConfig(convert=True)
        config.register_type("slug", validate_slug)
        validator = Validator(config)

        result = validator.validate({"age": "42"}, schema)
        if result:
            save(result.value)
        else:
            return result.errors
        ```
    """

    def __init__(self, config: ValidatorConfig | None = None):
        self.config = config if config is not None else ValidatorConfig()
        self.engine = SequentialEngine(self.config.registry)

    def validate(
        self,
        data: Any,
        schema: Schema,
        *,
        convert: bool | None = None,
        timeout: int | None = None,
        max_concurrency: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        """Validate ``data`` against ``schema``.

        Args:
            data: Input record (must be a mapping)
            schema: Schema to validate against
            convert: Enable type coercion (default from config, False)
            timeout: Async hook timeout in milliseconds (default from config, 5000)
            max_concurrency: Bound on concurrent units (default from config, 10)
            options: Opaque options made available to custom validators and hooks

        Returns:
            ValidationResult with the normalized record or the error payload

        Raises:
            SchedulerError: If the schema needs the parallel path and this is
                called from inside a running event loop
        """
        settings = self.config.with_overrides(
            convert=convert, timeout=timeout, max_concurrency=max_concurrency
        )
        context = ValidationContext(data={}, convert=settings.convert, options=options or {})

        if not schema.has_async():
            logger.debug("Validating sequentially")
            return self._finish(self.engine.validate_schema(data, schema, context))

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._validate_parallel(data, schema, context, settings))
        raise SchedulerError(
            "Schema declares async hooks and an event loop is already running; "
            "use validate_async() instead",
            context={"fields": list(schema.fields)},
        )

    async def validate_async(
        self,
        data: Any,
        schema: Schema,
        *,
        convert: bool | None = None,
        timeout: int | None = None,
        max_concurrency: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        """Async counterpart of ``validate``, usable from a running event loop."""
        settings = self.config.with_overrides(
            convert=convert, timeout=timeout, max_concurrency=max_concurrency
        )
        context = ValidationContext(data={}, convert=settings.convert, options=options or {})

        if not schema.has_async():
            logger.debug("Validating sequentially")
            return self._finish(self.engine.validate_schema(data, schema, context))
        return await self._validate_parallel(data, schema, context, settings)

    def validate_many(
        self,
        records: Iterable[Any],
        schema: Schema,
        stop_on_error: bool = False,
        **kwargs: Any,
    ) -> list[ValidationResult]:
        """Validate multiple records independently.

        Args:
            records: Records to validate
            schema: Schema to validate against
            stop_on_error: If True, stop after the first failed record
            **kwargs: Options forwarded to ``validate``

        Returns:
            List of ValidationResults, one per validated record
        """
        results = []
        for record in records:
            result = self.validate(record, schema, **kwargs)
            results.append(result)
            if not result.valid and stop_on_error:
                break
        return results

    async def _validate_parallel(
        self,
        data: Any,
        schema: Schema,
        context: ValidationContext,
        settings: ValidatorConfig,
    ) -> ValidationResult:
        logger.debug(
            f"Validating in parallel (max_concurrency={settings.max_concurrency}, "
            f"timeout={settings.timeout}ms)"
        )
        scheduler = ParallelScheduler(
            self.engine, max_concurrency=settings.max_concurrency, timeout=settings.timeout
        )
        return self._finish(await scheduler.run(data, schema, context))

    def _finish(self, result: ValidationResult) -> ValidationResult:
        if result.valid:
            return result
        return ValidationResult.failure(None, self.config.aggregator().build(result.errors))


def validate(
    data: Any,
    schema: Schema,
    *,
    config: ValidatorConfig | None = None,
    **kwargs: Any,
) -> ValidationResult:
    """Validate ``data`` against ``schema`` (see ``Validator.validate``)."""
    return Validator(config).validate(data, schema, **kwargs)


async def validate_async(
    data: Any,
    schema: Schema,
    *,
    config: ValidatorConfig | None = None,
    **kwargs: Any,
) -> ValidationResult:
    """Validate ``data`` against ``schema`` from async code."""
    return await Validator(config).validate_async(data, schema, **kwargs)
