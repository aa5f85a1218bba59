"""Function registry: builds contracts and dispatch-table executors from Python callables."""

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, List, Optional, Union, cast

import jsonref  # type: ignore
from pydantic import BaseModel, create_model

from ..exceptions import ToolNotFoundError, ToolRegistrationError, ToolValidationError
from ..logger import get_logger
from .dispatcher import parse_arguments
from .models import FunctionContract, FunctionDefinition, FunctionExecutor
from .schema import ParameterFactory, SchemaValidator

logger = get_logger(__name__)


class FunctionRegistry:
    """
    A central registry of the functions an agent may call.

    It keeps the contracts advertised to backends and derives the
    ``{function_name: (serialized_arguments) -> str}`` dispatch table used by
    ``FunctionCallMiddleware``.
    """

    def __init__(self) -> None:
        """Initialize the FunctionRegistry."""
        self.functions: Dict[str, FunctionDefinition] = {}

    def register(
        self,
        name_or_func: Union[str, FunctionDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> FunctionContract:
        """
        Register a new function.

        Accepts a ready ``FunctionDefinition``, a callable whose signature and docstring are
        turned into a contract, or a name with ``func`` and an optional JSON schema of its
        ``parameters``.

        Args:
            name_or_func: A `FunctionDefinition`, the name of the function (str), or a Callable.
            description: What the function does. Required if a name and parameters are given.
            func: The callable implementing the function. Required if `name_or_func` is a string.
            parameters: Object JSON schema of the parameters. If None, it is inferred from `func`.

        Returns:
            The contract of the registered function.

        Raises:
            ToolRegistrationError: If arguments are missing or the function already exists.
        """
        if isinstance(name_or_func, FunctionDefinition):
            definition = name_or_func
        elif callable(name_or_func):
            definition = self._definition_from_callable(name_or_func, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if parameters is None:
                definition = self._definition_from_callable(func, name=name_or_func, description=description)
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and parameters, description is required.")
                contract = FunctionContract.from_json_schema(name_or_func, description, parameters)
                definition = FunctionDefinition(contract=contract, func=func)

        if definition.name in self.functions:
            msg = f"Function '{definition.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.functions[definition.name] = definition
        logger.info(f"Successfully registered function: '{definition.name}'")
        return definition.contract

    def unregister(self, name: str) -> None:
        """Unregister a function.

        Raises:
            ToolNotFoundError: If the function does not exist in the registry.
        """
        if name not in self.functions:
            raise ToolNotFoundError(f"Function '{name}' not found in the registry.")
        del self.functions[name]
        logger.info(f"Successfully unregistered function: '{name}'")

    def function(self, func: Callable) -> Callable:
        """A decorator registering a function and returning it unchanged."""
        self.register(func)
        return func

    @property
    def contracts(self) -> List[FunctionContract]:
        """Contracts of all registered functions, in registration order."""
        return [definition.contract for definition in self.functions.values()]

    @property
    def function_map(self) -> Dict[str, FunctionExecutor]:
        """Dispatch table mapping function names to ``(serialized_arguments) -> str`` executors."""
        return {name: self._build_executor(definition) for name, definition in self.functions.items()}

    @staticmethod
    def _build_executor(definition: FunctionDefinition) -> FunctionExecutor:
        async def executor(arguments: str) -> str:
            kwargs = parse_arguments(definition.name, arguments)
            if definition.args_model is not None:
                kwargs = dict(definition.args_model(**kwargs))

            if inspect.iscoroutinefunction(definition.func):
                result = await definition.func(**kwargs)
            else:
                result = await asyncio.to_thread(definition.func, **kwargs)

            if isinstance(result, str):
                return result
            if isinstance(result, BaseModel):
                return result.model_dump_json()
            return json.dumps(result, default=str)

        executor.__name__ = definition.name
        return executor

    def _definition_from_callable(
        self, func: Callable, name: Optional[str] = None, description: Optional[str] = None
    ) -> FunctionDefinition:
        """Generate a FunctionDefinition from a callable.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """
        function_name = name or func.__name__
        if description is None:
            description = self._docstring_of(func, function_name)

        fields = ParameterFactory.build_fields(inspect.signature(func), function_name)
        args_model = create_model(f"{function_name}Params", **cast(Dict[str, Any], fields))
        raw_schema = args_model.model_json_schema()

        SchemaValidator.assert_no_recursive_refs(raw_schema)
        # proxies=False gives back plain dicts instead of JsonRef objects
        resolved = jsonref.replace_refs(raw_schema, proxies=False)
        schema = SchemaValidator.sanitize_schema(resolved)

        contract = FunctionContract.from_json_schema(function_name, description, schema)
        return FunctionDefinition(contract=contract, func=func, args_model=args_model)

    @staticmethod
    def _docstring_of(func: Callable, function_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Function '{function_name}' missing docstring. Backends need a description of what it does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc
