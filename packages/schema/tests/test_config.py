"""
Tests for ValidatorConfig loading and environment overrides.
"""

import json
import os.path

import pytest

from dataknobs_schema import ConfigurationError, Validator, ValidatorConfig, number, schema
from dataknobs_schema.config import environment_overrides, import_object
from dataknobs_schema.errors import default_formatter


def positive(value):
    return value > 0


class TestValidatorConfig:
    """Test construction and parsing of settings."""

    def test_defaults(self, config):
        assert config.convert is False
        assert config.timeout == 5000
        assert config.max_concurrency == 10
        assert config.registry.count() == 0

    def test_string_settings_parsed(self):
        config = ValidatorConfig(convert="yes", timeout="250", max_concurrency="4")
        assert (config.convert, config.timeout, config.max_concurrency) == (True, 250, 4)

    @pytest.mark.parametrize("settings", [
        {"timeout": 0},
        {"timeout": -5},
        {"timeout": "soon"},
        {"max_concurrency": True},
        {"max_concurrency": 0},
        {"convert": "maybe"},
    ])
    def test_invalid_settings(self, settings):
        with pytest.raises(ConfigurationError):
            ValidatorConfig(**settings)

    def test_with_overrides(self, config):
        clone = config.with_overrides(convert=True, timeout=None)
        assert clone.convert is True
        assert clone.timeout == 5000
        assert config.convert is False
        assert clone.registry is config.registry

    def test_with_overrides_validates(self, config):
        with pytest.raises(ConfigurationError):
            config.with_overrides(max_concurrency=0)

    def test_call_override_validated(self, config):
        with pytest.raises(ConfigurationError):
            Validator(config).validate({}, schema({"a": number()}), timeout=0)


class TestFromDict:
    """Test dictionary based configuration."""

    def test_settings_and_callables(self, config):
        loaded = ValidatorConfig.from_dict({
            "convert": True,
            "timeout": 100,
            "custom_types": {"positive": positive},
            "formatter": "dataknobs_schema.errors:default_formatter",
        })
        assert loaded.convert is True
        assert loaded.timeout == 100
        assert loaded.registry.has("positive")
        assert loaded.formatter is default_formatter

    def test_unknown_keys(self, config):
        with pytest.raises(ConfigurationError) as exc_info:
            ValidatorConfig.from_dict({"timeout": 1, "retries": 3})
        assert exc_info.value.context == {"unknown_keys": ["retries"]}

    def test_bad_import_path(self, config):
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_dict({"translator": "dataknobs_schema.errors:nope"})

    def test_environment_overrides(self, config, monkeypatch):
        monkeypatch.setenv("DATAKNOBS_SCHEMA_TIMEOUT", "2500")
        monkeypatch.setenv("DATAKNOBS_SCHEMA_CONVERT", "true")

        loaded = ValidatorConfig.from_dict({"timeout": 100})
        assert loaded.timeout == 2500
        assert loaded.convert is True

        assert ValidatorConfig.from_dict({"timeout": 100}, use_env=False).timeout == 100

    def test_environment_overrides_mapping(self):
        environ = {"DATAKNOBS_SCHEMA_MAX_CONCURRENCY": "3", "OTHER": "x"}
        assert environment_overrides(environ) == {"max_concurrency": "3"}


class TestFromFile:
    """Test YAML and JSON configuration files."""

    def test_yaml(self, config, tmp_path):
        path = tmp_path / "validator.yaml"
        path.write_text(
            "convert: true\n"
            "max_concurrency: 2\n"
            "formatter: dataknobs_schema.errors:default_formatter\n"
        )
        loaded = ValidatorConfig.from_file(path)
        assert loaded.convert is True
        assert loaded.max_concurrency == 2

    def test_json(self, config, tmp_path):
        path = tmp_path / "validator.json"
        path.write_text(json.dumps({"timeout": 750}))
        assert ValidatorConfig.from_file(str(path)).timeout == 750

    def test_empty_yaml(self, config, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert ValidatorConfig.from_file(path).timeout == 5000

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_file(tmp_path / "missing.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "validator.toml"
        path.write_text("timeout = 1\n")
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_file(path)

    def test_non_mapping_content(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ValidatorConfig.from_file(path)


class TestImportObject:
    """Test import path resolution."""

    def test_colon_and_dotted_paths(self):
        assert import_object("os.path:join") is os.path.join
        assert import_object("os.path.join") is os.path.join

    @pytest.mark.parametrize("path", ["join", "no_such_module:thing", "os.path:nothing"])
    def test_invalid_paths(self, path):
        with pytest.raises(ConfigurationError):
            import_object(path)
