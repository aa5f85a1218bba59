"""Function contract models, independent of any backend's native tool-schema format."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

FunctionExecutor = Callable[[str], Union[str, Awaitable[str]]]
"""Executor signature of a dispatch table entry: serialized arguments in, result string out."""


class FunctionParameter(BaseModel):
    """
    One parameter of a callable function.

    Attributes:
        name: Parameter name.
        description: What the parameter means, shown to the backend.
        type: JSON schema type name (``string``, ``integer``, ``object``...).
        required: Whether the backend must supply the parameter.
        default: Default value used when the parameter is omitted.
        json_schema: Full JSON schema of the parameter when ``type`` alone is not enough.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    type: str = "string"
    required: bool = True
    default: Any = None
    json_schema: Optional[Dict[str, Any]] = None

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = dict(self.json_schema) if self.json_schema else {"type": self.type}
        if self.description:
            schema.setdefault("description", self.description)
        if not self.required and self.default is not None:
            schema.setdefault("default", self.default)
        return schema


class FunctionContract(BaseModel):
    """
    Describes a callable tool so that a connector can advertise it to its backend.

    Attributes:
        name: The unique name of the function.
        description: A brief description of what the function does.
        parameters: Ordered parameter descriptions.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    parameters: List[FunctionParameter] = Field(default_factory=list)

    def to_json_schema(self) -> Dict[str, Any]:
        """Render the parameters as one JSON schema object."""
        return {
            "type": "object",
            "properties": {p.name: p.to_json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    @classmethod
    def from_json_schema(cls, name: str, description: Optional[str], schema: Optional[Dict[str, Any]]) -> "FunctionContract":
        """Build a contract from an object JSON schema (as produced by pydantic or an MCP server).

        Args:
            name: Function name.
            description: Function description.
            schema: Object schema with ``properties`` and ``required``; None means no parameters.

        Returns:
            The function contract.
        """
        schema = schema or {}
        required = set(schema.get("required", []))
        parameters = [
            FunctionParameter(
                name=param_name,
                description=param_schema.get("description"),
                type=param_schema.get("type", "object"),
                required=param_name in required,
                default=param_schema.get("default"),
                json_schema=param_schema,
            )
            for param_name, param_schema in schema.get("properties", {}).items()
        ]
        return cls(name=name, description=description, parameters=parameters)


class FunctionDefinition(BaseModel):
    """
    A registered function: its contract plus the Python callable implementing it.

    Attributes:
        contract: What is advertised to backends.
        func: The callable implementing the function's logic.
        args_model: Optional Pydantic model used for validating and coercing arguments.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    contract: FunctionContract
    func: Callable
    args_model: Optional[Type[BaseModel]] = None

    @property
    def name(self) -> str:
        return self.contract.name
