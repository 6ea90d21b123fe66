"""
Tests for custom types and the type registry.
"""

import pytest
from dataknobs_common import Registry

from dataknobs_schema import (
    CustomValidator,
    CustomValidatorError,
    ErrorEntry,
    NotFoundError,
    OperationError,
    TypeRegistry,
    ValidationResult,
    Validator,
    custom,
    schema,
)
from dataknobs_schema.custom_types import normalize_result


def slug(value):
    if isinstance(value, str) and value.isidentifier():
        return None
    return ValidationResult.failure(value, ["must be a slug"])


class MaxLength(CustomValidator):
    def validate(self, value, rule, context):
        limit = rule.options.get("max_length", 3)
        if len(value) > limit:
            return ValidationResult.failure(value, [{"code": "too_long", "message": f"longer than {limit}"}])
        return ValidationResult.success(value.lower())


class TestTypeRegistry:
    """Test registration bookkeeping."""

    def test_register_and_lookup(self):
        registry = TypeRegistry()
        registry.register("slug", slug)
        assert registry.has("slug")
        assert registry.list_keys() == ["slug"]
        assert registry.count() == 1
        assert registry.get_optional("other") is None

    def test_duplicate_registration(self):
        registry = TypeRegistry()
        registry.register("slug", slug)
        with pytest.raises(OperationError):
            registry.register("slug", slug)
        registry.register("slug", MaxLength, allow_overwrite=True)
        assert isinstance(registry.get_optional("slug"), MaxLength)

    def test_unregister(self):
        registry = TypeRegistry()
        registry.register("slug", slug)
        registry.unregister("slug")
        assert not registry.has("slug")
        with pytest.raises(NotFoundError):
            registry.unregister("slug")

    def test_registry_is_a_common_registry(self):
        registry = TypeRegistry()
        assert isinstance(registry, Registry)
        assert registry.name == "custom_types"
        registry.register("slug", slug)
        assert registry.get("slug").validate("ok", custom("slug"), None) is None
        with pytest.raises(NotFoundError):
            registry.get("missing")

    @pytest.mark.parametrize("validator", [
        lambda: True,
        lambda a, b, c, d: True,
        42,
    ])
    def test_unsupported_shapes(self, validator):
        with pytest.raises(CustomValidatorError):
            TypeRegistry().register("bad", validator)


class TestCustomValidation:
    """Test custom rules through the validator."""

    @pytest.fixture
    def validator(self, config):
        config.register_type("slug", slug)
        config.register_type("short", MaxLength())
        return Validator(config)

    def test_function_validator(self, validator):
        s = schema({"handle": custom("slug", required=True)})
        assert validator.validate({"handle": "ada_l"}, s).value == {"handle": "ada_l"}

        result = validator.validate({"handle": "ada l"}, s)
        assert result.errors["errors"]["handle"] == [
            {"code": "slug", "message": "must be a slug", "meta": {}}
        ]

    def test_object_validator_with_options(self, validator):
        s = schema({"code": custom("short", max_length=4)})
        assert validator.validate({"code": "ABCD"}, s).value == {"code": "abcd"}

        result = validator.validate({"code": "ABCDE"}, s)
        assert result.errors["errors_flat"] == {"code": ["longer than 4"]}
        assert result.errors["errors"]["code"][0]["code"] == "too_long"

    def test_missing_custom_field(self, validator):
        s = schema({"handle": custom("slug", required=True), "other": custom("slug")})
        result = validator.validate({}, s)
        assert list(result.errors["errors"]) == ["handle"]
        assert result.errors["errors"]["handle"][0]["code"] == "required"

    def test_unknown_type(self, validator):
        s = schema({"x": custom("nope")})
        result = validator.validate({"x": 1}, s)
        assert result.errors["errors"]["x"] == [
            {"code": "custom_type", "message": "unknown custom type nope", "meta": {"type": "nope"}}
        ]

    def test_raising_validator(self, config):
        def broken(value):
            raise ValueError("boom")

        config.register_type("broken", broken)
        result = Validator(config).validate({"x": 1}, schema({"x": custom("broken")}))

        entry = result.errors["errors"]["x"][0]
        assert entry["code"] == "custom_type"
        assert entry["meta"] == {"type": "broken", "reason": "boom"}

    def test_arity_two_and_three(self, config):
        seen = {}

        def with_context(value, context):
            seen["context"] = context.data
            return True

        def with_rule(value, context, rule):
            seen["rule"] = rule.type_name
            return ValidationResult.success(value * 2)

        config.register_type("ctx", with_context)
        config.register_type("rule", with_rule)
        s = schema({"a": custom("ctx"), "b": custom("rule")})
        result = Validator(config).validate({"a": 1, "b": 2}, s)

        assert result.value == {"a": 1, "b": 4}
        assert seen == {"context": {"a": 1, "b": 2}, "rule": "rule"}

    def test_duck_typed_object(self, config):
        class Even:
            def validate(self, value, rule, context):
                return value % 2 == 0 or ValidationResult.failure(value, ["must be even"])

        config.register_type("even", Even())
        s = schema({"n": custom("even")})
        assert Validator(config).validate({"n": 2}, s)
        assert not Validator(config).validate({"n": 3}, s)


class TestNormalizeResult:
    """Test accepted return shapes."""

    def test_none_and_true(self):
        assert normalize_result(None, 1, "x").value == 1
        assert normalize_result(True, 1, "x").valid

    def test_success_replaces_value(self):
        assert normalize_result(ValidationResult.success(2), 1, "x").value == 2

    def test_failure_entries(self):
        result = normalize_result(
            ValidationResult.failure(1, ["plain", ErrorEntry("c", "m"), {"code": "number_min", "meta": {"min": 5}}]),
            1,
            "x",
        )
        assert [(e.code, e.message) for e in result.errors] == [
            ("x", "plain"),
            ("c", "m"),
            ("number_min", "must be greater than or equal to 5"),
        ]

    def test_failure_without_entries(self):
        result = normalize_result(ValidationResult.failure(1, []), 1, "slug")
        assert [e.code for e in result.errors] == ["slug"]

    def test_unsupported_result(self):
        with pytest.raises(CustomValidatorError):
            normalize_result(42, 1, "x")
