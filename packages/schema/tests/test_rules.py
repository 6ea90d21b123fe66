"""
Tests for rule construction, builders and async planning.
"""

import re

import pytest

from dataknobs_schema import (
    ArrayRule,
    ConditionalRule,
    CustomRule,
    RuleType,
    Schema,
    SchemaDefinitionError,
    StringRule,
    array,
    boolean,
    custom,
    number,
    object_,
    schema,
    string,
    when,
)


async def hook(value, context):
    return None


class TestBuilders:
    """Test that builders assemble the expected rule values."""

    def test_string_rule(self):
        rule = string(required=True, min=1, max=5, pattern="^a", email=True)
        assert isinstance(rule, StringRule)
        assert rule.type is RuleType.STRING
        assert rule.required is True
        assert isinstance(rule.pattern, re.Pattern)

    def test_array_aliases(self):
        rule = array(of=string(), min=1, max=3)
        assert isinstance(rule, ArrayRule)
        assert (rule.min_items, rule.max_items) == (1, 3)
        assert rule.delimiter == ","

    def test_array_explicit_counts_win(self):
        rule = array(min=1, min_items=2)
        assert rule.min_items == 2

    def test_object_from_schema(self):
        nested = schema({"a": string()}, defaults={"a": "x"})
        rule = object_(nested, defaults={"b": 1})
        assert rule.schema.defaults == {"a": "x", "b": 1}

    def test_when_rule(self):
        rule = when("role", is_="admin", then=string(required=True), otherwise=string())
        assert isinstance(rule, ConditionalRule)
        assert rule.field == "role"
        assert rule.conditions.is_ == "admin"

    def test_when_is_none_is_a_condition(self):
        rule = when("role", is_=None, then=string())
        assert rule.conditions.is_configured()

    def test_custom_options(self):
        rule = custom("slug", required=True, max_length=10)
        assert rule.type_name == "slug"
        assert rule.options == {"max_length": 10}

    def test_package_exports_builders_not_submodules(self):
        """Test that every builder name on the package is the callable builder."""
        import dataknobs_schema
        from dataknobs_schema import builders

        for name in ("schema", "string", "number", "boolean", "date", "object_", "array", "when", "custom"):
            assert getattr(dataknobs_schema, name) is getattr(builders, name)
        assert isinstance(dataknobs_schema.custom("slug"), CustomRule)

    def test_rules_are_immutable(self):
        rule = string()
        with pytest.raises(AttributeError):
            rule.required = True
        s = schema({"a": rule})
        with pytest.raises(TypeError):
            s.fields["b"] = string()


class TestConstructionErrors:
    """Test that malformed definitions raise immediately."""

    def test_when_without_conditions(self):
        with pytest.raises(SchemaDefinitionError) as exc_info:
            when("role", then=string())
        assert exc_info.value.context == {"field": "role"}

    def test_when_without_then(self):
        with pytest.raises(SchemaDefinitionError):
            when("role", is_="admin")

    def test_sync_hook_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            string(async_hook=lambda value, context: True)

    def test_non_positive_timeout(self):
        with pytest.raises(SchemaDefinitionError):
            string(async_hook=hook, timeout=0)

    def test_inverted_bounds(self):
        with pytest.raises(SchemaDefinitionError):
            string(min=5, max=2)
        with pytest.raises(SchemaDefinitionError):
            number(min=5, max=2)
        with pytest.raises(SchemaDefinitionError):
            array(min_items=-1)

    def test_empty_delimiter(self):
        with pytest.raises(SchemaDefinitionError):
            array(delimiter="")

    def test_schema_values_must_be_rules(self):
        with pytest.raises(SchemaDefinitionError):
            schema({"a": "string"})
        with pytest.raises(SchemaDefinitionError):
            schema([("a", string())])


class TestAsyncPlanning:
    """Test transitive async hook detection."""

    def test_plain_schema_is_sync(self):
        s = schema({"a": string(), "b": array(of=object_({"c": number()}))})
        assert s.has_async() is False

    def test_top_level_hook(self):
        assert schema({"a": boolean(async_hook=hook)}).has_async()

    def test_array_element_hook(self):
        assert schema({"a": array(of=string(async_hook=hook))}).has_async()

    def test_nested_object_hook(self):
        assert schema({"a": object_({"b": array(of=number(async_hook=hook))})}).has_async()

    def test_conditional_branch_hook(self):
        rule = when("x", is_=1, then=string(), otherwise=string(async_hook=hook))
        assert Schema(fields={"a": rule}).has_async()
