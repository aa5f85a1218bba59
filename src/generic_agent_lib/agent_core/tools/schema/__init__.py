"""Function schema generation and validation."""

from .schema_validator import SchemaValidator
from .parameter_factory import ParameterFactory

__all__ = ["SchemaValidator", "ParameterFactory"]
