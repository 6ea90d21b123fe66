"""Factory building schemas from configuration dictionaries."""

import logging
from typing import Any

from dataknobs_config import FactoryBase

from .builders import array, boolean, custom, date, number, object_, schema, string, when
from .config import import_object
from .exceptions import SchemaDefinitionError
from .rules import UNSET, Rule, Schema

logger = logging.getLogger(__name__)

_HOOK_KEYS = ("async_hook", "timeout")


class SchemaFactory(FactoryBase):
    """Factory for creating validation schemas from configuration.

    Configuration Options:
        name (str): Schema name, used for logging only
        fields (dict): Mapping of field name to rule definition
        defaults (dict): Default values merged into the input

    Rule Definition Options:
        type (str): string, number, boolean, date, object, array, when, custom
        required (bool): Whether the field is required (default: False)
        async_hook (str): Import path of an ``async def hook(value, context)``
        timeout (int): Hook timeout override in milliseconds
        string: min, max, pattern, email
        number: min, max, integer
        boolean: truthy, falsy
        object: fields, defaults
        array: of, min_items/min, max_items/max, unique, delimiter
        when: field, is, in, matches, min, max, then, otherwise, base
        custom: name, plus any extra options for the validator

    Example Configuration:
        schemas:
          - name: signup
            factory: schema
            fields:
              email:
                type: string
                required: true
                email: true
              age:
                type: number
                min: 18
              role:
                type: string
                required: true
              permissions:
                type: when
                field: role
                is: admin
                then:
                  type: array
                  of: {type: string}
                  min_items: 1
                  required: true
                otherwise:
                  type: array
                  of: {type: string}
    """

    def create(self, **config: Any) -> Schema:
        """Create a Schema instance from configuration.

        Args:
            **config: Schema configuration

        Returns:
            Schema instance
        """
        name = config.get("name", "unnamed_schema")
        logger.info(f"Creating schema: {name}")
        return self._build_schema(config.get("fields") or {}, config.get("defaults"), name)

    def _build_schema(self, fields: Any, defaults: Any, path: str) -> Schema:
        if not isinstance(fields, dict):
            raise SchemaDefinitionError(
                f"'fields' of {path} must be a mapping", context={"path": path}
            )
        return schema(
            {field_name: self.build_rule(rule_config, f"{path}.{field_name}")
             for field_name, rule_config in fields.items()},
            defaults,
        )

    def build_rule(self, rule_config: Any, path: str = "rule") -> Rule:
        """Build a single rule from its configuration dictionary.

        Raises:
            SchemaDefinitionError: If the definition is malformed
        """
        if not isinstance(rule_config, dict):
            raise SchemaDefinitionError(
                f"Rule definition for {path} must be a mapping", context={"path": path}
            )

        options = dict(rule_config)
        rule_type = str(options.pop("type", "")).lower()
        common = {"required": options.pop("required", False)}
        for key in _HOOK_KEYS:
            if key in options:
                common[key] = options.pop(key)
        if isinstance(common.get("async_hook"), str):
            common["async_hook"] = import_object(common["async_hook"])

        try:
            return self._build_typed(rule_type, options, common, path)
        except TypeError as e:
            # unexpected keyword for the rule type
            raise SchemaDefinitionError(
                f"Invalid options for {rule_type} rule at {path}: {e!s}",
                context={"path": path, "type": rule_type},
            ) from e

    def _build_typed(self, rule_type: str, options: dict[str, Any], common: dict[str, Any], path: str) -> Rule:
        if rule_type == "string":
            return string(**common, **options)

        elif rule_type == "number":
            return number(**common, **options)

        elif rule_type == "boolean":
            return boolean(**common, **options)

        elif rule_type == "date":
            return date(**common, **options)

        elif rule_type == "object":
            nested = self._build_schema(options.pop("fields", {}), options.pop("defaults", None), path)
            return object_(nested, **common, **options)

        elif rule_type == "array":
            if options.get("of") is not None:
                options["of"] = self.build_rule(options["of"], f"{path}[]")
            return array(**common, **options)

        elif rule_type == "when":
            field_name = options.pop("field", None)
            if not field_name:
                raise SchemaDefinitionError(f"'when' rule at {path} requires 'field'", context={"path": path})
            branches = {
                key: self.build_rule(options.pop(key), f"{path}.{key}")
                for key in ("then", "otherwise", "base")
                if options.get(key) is not None
            }
            return when(
                field_name,
                is_=options.pop("is", UNSET),
                in_=options.pop("in", UNSET),
                **branches,
                **common,
                **options,
            )

        elif rule_type == "custom":
            type_name = options.pop("name", None)
            if not type_name:
                raise SchemaDefinitionError(f"'custom' rule at {path} requires 'name'", context={"path": path})
            return custom(type_name, **common, **options)

        raise SchemaDefinitionError(
            f"Unknown rule type '{rule_type}' at {path}", context={"path": path, "type": rule_type}
        )


# Create singleton instance for registration
schema_factory = SchemaFactory()
