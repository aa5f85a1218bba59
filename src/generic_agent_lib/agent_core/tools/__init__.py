from .models import FunctionContract, FunctionParameter, FunctionDefinition, FunctionExecutor
from .registry import FunctionRegistry
from .dispatcher import FunctionDispatcher, parse_arguments
from .schema import SchemaValidator, ParameterFactory

__all__ = [
    "FunctionContract",
    "FunctionParameter",
    "FunctionDefinition",
    "FunctionExecutor",
    "FunctionRegistry",
    "FunctionDispatcher",
    "parse_arguments",
    "SchemaValidator",
    "ParameterFactory",
]
