"""
Tests for the exception hierarchy.
"""

import pytest
from dataknobs_common import ConfigurationError as BaseConfigurationError
from dataknobs_common import DataknobsError
from dataknobs_config import FactoryBase

from dataknobs_schema import (
    ConfigurationError,
    CustomValidatorError,
    DataknobsSchemaError,
    SchedulerError,
    SchemaDefinitionError,
    ValidatorConfig,
    schema_factory,
    string,
)


class TestExceptionHierarchy:
    """Test that package errors join the common dataknobs hierarchy."""

    @pytest.mark.parametrize("error_class", [
        SchemaDefinitionError,
        CustomValidatorError,
        ConfigurationError,
        SchedulerError,
    ])
    def test_subclasses(self, error_class):
        assert issubclass(error_class, DataknobsSchemaError)
        assert issubclass(error_class, DataknobsError)

    def test_configuration_error_is_common_configuration_error(self):
        with pytest.raises(BaseConfigurationError) as exc_info:
            ValidatorConfig(timeout=0)
        assert exc_info.value.context == {"key": "timeout"}

    def test_context_and_details(self):
        with pytest.raises(DataknobsError) as exc_info:
            string(min=3, max=1)
        assert exc_info.value.context == {"min": 3, "max": 1}
        assert exc_info.value.details is exc_info.value.context


class TestFactoryBase:
    """Test that the schema factory follows the dataknobs factory protocol."""

    def test_schema_factory_is_a_factory(self):
        assert isinstance(schema_factory, FactoryBase)
        built = schema_factory.create(fields={"name": {"type": "string"}})
        assert list(built.fields) == ["name"]
