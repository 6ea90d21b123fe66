"""Validator configuration: custom types, output formatting and call defaults.

A ``ValidatorConfig`` is constructed once by the caller and passed to every
validate call. It can be built in code, from a dictionary, or from a YAML or
JSON file, and picks up environment variable overrides:

    DATAKNOBS_SCHEMA_CONVERT=true
    DATAKNOBS_SCHEMA_TIMEOUT=2500
    DATAKNOBS_SCHEMA_MAX_CONCURRENCY=4

Example configuration file:

    convert: false
    timeout: 5000
    max_concurrency: 10
    custom_types:
      slug: myapp.validators:validate_slug
    formatter: myapp.errors:format_errors
    translator: myapp.i18n:translate
"""

from __future__ import annotations

import copy
import importlib
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml  # type: ignore[import-untyped]

from .custom_types import TypeRegistry
from .errors import ErrorAggregator, Formatter, Translator, default_formatter, default_translator
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_CONCURRENCY = 10

ENV_PREFIX = "DATAKNOBS_SCHEMA_"

_KNOWN_KEYS = {"convert", "timeout", "max_concurrency", "custom_types", "formatter", "translator"}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean for '{key}': {value!r}", context={"key": key})


def _parse_positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid integer for '{key}': {value!r}", context={"key": key}
        ) from None
    if isinstance(value, bool) or number <= 0:
        raise ConfigurationError(
            f"'{key}' must be a positive integer, got {value!r}", context={"key": key}
        )
    return number


def import_object(path: str) -> Any:
    """Import ``"package.module:attribute"`` (or ``"package.module.attribute"``)."""
    module_name, _, attr = path.partition(":")
    if not attr:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid import path: {path}", context={"path": path})
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot import '{path}': {e!s}", context={"path": path}
        ) from e


def _resolve(value: Any) -> Any:
    return import_object(value) if isinstance(value, str) else value


@dataclass
class ValidatorConfig:
    """Everything a validate call needs besides the record and the schema.

    Attributes:
        registry: Custom type registry
        formatter: Callable building the error payload from the error tree
        translator: Callable ``(code, default_message, meta) -> message``
        convert: Default for the ``convert`` option
        timeout: Default async hook timeout in milliseconds
        max_concurrency: Default bound on concurrently running units
    """

    registry: TypeRegistry = field(default_factory=TypeRegistry)
    formatter: Formatter = default_formatter
    translator: Translator = default_translator
    convert: bool = False
    timeout: int = DEFAULT_TIMEOUT_MS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    def __post_init__(self) -> None:
        self.convert = _parse_bool(self.convert, "convert")
        self.timeout = _parse_positive_int(self.timeout, "timeout")
        self.max_concurrency = _parse_positive_int(self.max_concurrency, "max_concurrency")

    def register_type(self, name: str, validator: Any, allow_overwrite: bool = False) -> None:
        """Register a custom type validator (fluent counterpart of the registry)."""
        self.registry.register(name, validator, allow_overwrite=allow_overwrite)

    def aggregator(self) -> ErrorAggregator:
        return ErrorAggregator(self.formatter, self.translator)

    def with_overrides(self, **overrides: Any) -> ValidatorConfig:
        """Copy with the given non-None call defaults replaced."""
        clone = copy.copy(self)
        for key, value in overrides.items():
            if value is not None:
                setattr(clone, key, value)
        clone.__post_init__()
        return clone

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], use_env: bool = True) -> ValidatorConfig:
        """Build a config from a dictionary.

        Args:
            data: Configuration dictionary (see module docstring)
            use_env: Apply ``DATAKNOBS_SCHEMA_*`` environment overrides

        Returns:
            ValidatorConfig instance
        """
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                context={"unknown_keys": sorted(unknown)},
            )

        settings = {key: data[key] for key in ("convert", "timeout", "max_concurrency") if key in data}
        if use_env:
            settings.update(environment_overrides())

        config = cls(**settings)
        if data.get("formatter"):
            config.formatter = _resolve(data["formatter"])
        if data.get("translator"):
            config.translator = _resolve(data["translator"])
        for name, validator in (data.get("custom_types") or {}).items():
            config.register_type(name, _resolve(validator))

        logger.debug(
            f"Loaded validator config: convert={config.convert} timeout={config.timeout} "
            f"max_concurrency={config.max_concurrency} custom_types={config.registry.list_keys()}"
        )
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path], use_env: bool = True) -> ValidatorConfig:
        """Build a config from a YAML or JSON file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}", context={"path": str(path)})

        suffix = path.suffix.lower()
        with open(path) as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported file format: {suffix}", context={"path": str(path)})

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}", context={"path": str(path)}
            )
        return cls.from_dict(data, use_env=use_env)


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``DATAKNOBS_SCHEMA_<SETTING>`` overrides from the environment."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for key in ("convert", "timeout", "max_concurrency"):
        env_var = f"{ENV_PREFIX}{key.upper()}"
        if env_var in environ:
            overrides[key] = environ[env_var]
    return overrides
