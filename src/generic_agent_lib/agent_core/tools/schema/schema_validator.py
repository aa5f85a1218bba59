"""Validation and clean-up of JSON schemas generated for function parameters."""

from typing import Any, Dict, FrozenSet

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

_METADATA_KEYS = ("$defs", "$schema", "$id", "title", "definitions")


class SchemaValidator:
    """
    Helper class for validating and sanitizing JSON schemas of callable functions.
    """

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Walks local ``$ref`` links and fails on the first cycle.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        definitions = schema.get("$defs") or schema.get("definitions") or {}

        def walk(node: Any, visiting: FrozenSet[str]) -> None:
            if isinstance(node, list):
                for item in node:
                    walk(item, visiting)
                return
            if not isinstance(node, dict):
                return

            ref = node.get("$ref")
            if ref is None:
                for value in node.values():
                    walk(value, visiting)
                return

            if ref in visiting:
                msg = (
                    f"Recursive structure detected: {ref}. "
                    "Recursive structures are not allowed in function arguments."
                )
                logger.error(msg)
                raise ToolValidationError(msg)

            target = ref.rsplit("/", 1)[-1]
            if ref.startswith("#") and target in definitions:
                walk(definitions[target], visiting | {ref})

        walk(schema, frozenset())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for better compatibility with backends.

        Drops metadata keys, collapses ``Optional[X]`` (``anyOf`` of X and null) into X and
        closes objects with ``additionalProperties: false``.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if isinstance(schema, list):
            return [SchemaValidator.sanitize_schema(item) for item in schema]
        if not isinstance(schema, dict):
            return schema

        cleaned = {k: v for k, v in schema.items() if k not in _METADATA_KEYS}

        variants = cleaned.get("anyOf")
        if isinstance(variants, list):
            non_null = [v for v in variants if not (isinstance(v, dict) and v.get("type") == "null")]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                collapsed = {k: v for k, v in cleaned.items() if k != "anyOf"}
                collapsed.update({k: v for k, v in non_null[0].items() if k not in collapsed})
                return SchemaValidator.sanitize_schema(collapsed)

        if cleaned.get("type") == "object":
            cleaned.setdefault("additionalProperties", False)

        sanitized: Dict[str, Any] = {}
        for key, value in cleaned.items():
            if key == "properties" and isinstance(value, dict):
                # Keys here are parameter names, not schema keywords.
                sanitized[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            else:
                sanitized[key] = SchemaValidator.sanitize_schema(value)
        return sanitized
