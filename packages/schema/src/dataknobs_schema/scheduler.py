"""Parallel, timeout-governed validation for schemas with async hooks.

Each top-level field, and each element of an array whose element rule is
async-hooked, is an independent unit of work. Units run concurrently under
an ``asyncio.Semaphore``; a slot is held only while a unit does synchronous
validation or awaits its hook, never while it waits for child units, so any
``max_concurrency`` >= 1 is deadlock free. Results are merged in declaration
and index order once every unit has finished or timed out.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Mapping
from typing import Any

from .coercers import coerce, ensure_object
from .config import DEFAULT_MAX_CONCURRENCY, DEFAULT_TIMEOUT_MS
from .custom_types import normalize_result
from .engine import (
    FieldOutcome,
    SequentialEngine,
    activate,
    apply_defaults,
    invalid_data,
    merge_elements,
    merge_fields,
    missing_outcome,
)
from .errors import ErrorCode
from .exceptions import DataknobsSchemaError
from .resolver import MISSING, is_blank
from .result import ValidationContext, ValidationResult
from .rules import ArrayRule, ObjectRule, Rule, Schema

logger = logging.getLogger(__name__)


class ParallelScheduler:
    """Bounded-concurrency executor for one validate call.

    Args:
        engine: Sequential engine providing the synchronous building blocks
        max_concurrency: Maximum units doing work at the same time
        timeout: Default hook timeout in milliseconds
    """

    def __init__(
        self,
        engine: SequentialEngine,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        timeout: int = DEFAULT_TIMEOUT_MS,
    ):
        self.engine = engine
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def run(self, data: Any, schema: Schema, context: ValidationContext) -> ValidationResult:
        """Validate ``data`` against ``schema``; same result shape as the engine."""
        if not isinstance(data, Mapping):
            return invalid_data(data)

        data = apply_defaults(data, schema)
        context = context.for_data(data)
        start_time = time.time()

        outcomes = await self._gather([
            self._field_unit(name, rule, data, context)
            for name, rule in schema.fields.items()
        ])

        logger.debug(
            f"Parallel validation of {len(outcomes)} fields finished in "
            f"{(time.time() - start_time) * 1000:.1f}ms"
        )
        return merge_fields(data, outcomes)

    async def _gather(self, coros: list[Awaitable[Any]]) -> list[Any]:
        tasks = [asyncio.ensure_future(coro) for coro in coros]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _field_unit(
        self,
        name: str,
        rule: Rule,
        data: Mapping[Any, Any],
        context: ValidationContext,
    ) -> FieldOutcome:
        active, required, found = self.engine.prepare_field(name, rule, data)
        if found is MISSING:
            return missing_outcome(name, required)
        if active is None:
            return FieldOutcome(name, found.key, ValidationResult.success(found.value))

        result = await self._guard(self._validate_value(found.value, active, context), found.value, name)
        return FieldOutcome(name, found.key, result)

    async def _element_unit(
        self,
        index: int,
        item: Any,
        rule: Rule | None,
        required: bool,
        context: ValidationContext,
    ) -> ValidationResult:
        if is_blank(item) or rule is None:
            return self.engine.validate_element(item, rule, required, context)
        return await self._guard(self._validate_value(item, rule, context), item, f"[{index}]")

    async def _guard(self, coro: Awaitable[ValidationResult], value: Any, label: str) -> ValidationResult:
        """Turn an abnormal unit termination into an ``async_error`` result."""
        try:
            return await coro
        except DataknobsSchemaError:
            raise
        except Exception as e:
            logger.warning(f"Validation unit {label} failed: {type(e).__name__}: {e!s}")
            return ValidationResult.error(
                value,
                ErrorCode.ASYNC_ERROR,
                reason=str(e) or type(e).__name__,
                exception=type(e).__name__,
            )

    async def _validate_value(
        self, value: Any, rule: Rule, context: ValidationContext
    ) -> ValidationResult:
        if isinstance(rule, ObjectRule) and rule.schema.has_async():
            result = ensure_object(value)
            if result.valid:
                result = await self.run(value, rule.schema, context)

        elif isinstance(rule, ArrayRule) and rule.of is not None and rule.of.has_async():
            async with self._semaphore:
                result = coerce(value, rule, context)
            if result.valid:
                result = await self._validate_elements(result.value, rule.of, context)

        else:
            async with self._semaphore:
                result = self.engine.validate_value(value, rule, context)

        if result.valid and rule.async_hook is not None:
            result = await self._run_hook(rule, result.value, context)
        return result

    async def _validate_elements(
        self, items: list[Any], rule: Rule, context: ValidationContext
    ) -> ValidationResult:
        active, required = activate(rule, context.data)
        results = await self._gather([
            self._element_unit(index, item, active, required, context)
            for index, item in enumerate(items)
        ])
        return merge_elements(items, results)

    async def _run_hook(self, rule: Rule, value: Any, context: ValidationContext) -> ValidationResult:
        timeout_ms = rule.timeout or self.timeout
        async with self._semaphore:
            deadline = asyncio.timeout(timeout_ms / 1000)
            try:
                async with deadline:
                    result = await rule.async_hook(value, context)
            except TimeoutError:
                if not deadline.expired():
                    # raised by the hook itself, reported as async_error
                    raise
                logger.warning(f"Async {rule.type.value} hook timed out after {timeout_ms}ms")
                return ValidationResult.error(value, ErrorCode.ASYNC_TIMEOUT, timeout=timeout_ms)
        return normalize_result(result, value, f"{rule.type.value}_async")
