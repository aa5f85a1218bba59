"""
Adapt function contract schemas to what the Gemini API accepts in a function declaration.

Gemini rejects ``additionalProperties`` anywhere in a parameter schema and fails on
``required`` entries that name undeclared properties.
"""

from functools import singledispatch
from typing import Any, Dict, Optional, cast

from generic_agent_lib.agent_core.tools import FunctionContract


def declaration_parameters(contract: FunctionContract) -> Optional[Dict[str, Any]]:
    """
    Build the Gemini parameter schema of a function contract.

    Args:
        contract: The function contract to advertise.

    Returns:
        The sanitized object schema, or None for a function without parameters.
    """
    if not contract.parameters:
        return None
    return sanitize(contract.to_json_schema())


def sanitize(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively sanitize a JSON schema object for the Gemini API."""
    return cast(Dict[str, Any], _sanitize(schema))


@singledispatch
def _sanitize(node: Any) -> Any:
    return node


@_sanitize.register(dict)
def _(node: dict) -> dict:
    cleaned = {key: _sanitize(value) for key, value in node.items() if key != "additionalProperties"}

    if "required" in cleaned and "properties" in cleaned:
        declared = cleaned["properties"]
        required = [name for name in cleaned["required"] if name in declared]
        if required:
            cleaned["required"] = required
        else:
            cleaned.pop("required")

    return cleaned


@_sanitize.register(list)
def _(node: list) -> list:
    return [_sanitize(item) for item in node]
