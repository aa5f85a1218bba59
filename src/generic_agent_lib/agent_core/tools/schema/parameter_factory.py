import inspect
from typing import Annotated, Any, Dict, Tuple, get_args, get_origin

from pydantic import Field
from pydantic.fields import FieldInfo

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class ParameterFactory:
    """Turns a function signature into ``create_model`` field definitions."""

    @classmethod
    def build_fields(cls, signature: inspect.Signature, function_name: str) -> Dict[str, Tuple[Any, FieldInfo]]:
        """Build ``{name: (annotation, FieldInfo)}`` for every parameter except ``self``.

        Args:
            signature: Signature of the function being registered.
            function_name: Name of the function for error reporting.

        Returns:
            Field definitions suitable for ``pydantic.create_model``.
        """
        fields: Dict[str, Tuple[Any, FieldInfo]] = {}
        for param_name, param in signature.parameters.items():
            if param_name == "self":
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                msg = f"Function '{function_name}' uses *args/**kwargs, which cannot be described to a backend."
                logger.error(msg)
                raise ToolValidationError(msg)

            description = cls._extract_description(param.annotation, param_name, function_name)
            default = param.default if param.default is not inspect.Parameter.empty else ...
            fields[param_name] = (param.annotation, Field(default=default, description=description))
        return fields

    @staticmethod
    def _extract_description(annotation: Any, param_name: str, function_name: str) -> str:
        """Every parameter needs ``Annotated[<type>, Field(description='...')]`` as its annotation.

        Raises:
            ToolValidationError: If the parameter is missing a Pydantic Field description.
        """
        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation)[1:]:
                if isinstance(metadata, FieldInfo) and metadata.description:
                    return metadata.description

        msg = (
            f"Parameter '{param_name}' in function '{function_name}' is missing a description.\n"
            f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)
