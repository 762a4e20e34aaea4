"""
param_schema – declarative parameter casting and validation.
"""
from .caster import cast, default_hook
from .changeset import ErrorKind, FieldError, ValidationResult
from .coercer import CoercionError, TypeCoercer
from .field import field
from .params import Params, defparams
from .parser import parse_input
from .projector import Result, ValidationError, project
from .schema import Schema, SchemaDefinitionError, SchemaError, compile_schema

__all__ = [
    "Params",
    "defparams",
    "compile_schema",
    "cast",
    "project",
    "default_hook",
    "field",
    "parse_input",
    "Schema",
    "ValidationResult",
    "Result",
    "ErrorKind",
    "FieldError",
    "TypeCoercer",
    "CoercionError",
    "SchemaError",
    "SchemaDefinitionError",
    "ValidationError",
]
