"""
field.py - normalised metadata for a single schema field.

Public API
----------
Scalar, Array, EmbedOne, EmbedMany
    The four field kinds.  Exactly one of *type tag* (Scalar / Array) or
    *schema reference* (EmbedOne / EmbedMany) is carried by a kind.

FieldOptions
    Closed option record: ``default`` plus opaque ``coercion`` options that
    are handed to the type coercer untouched.

FieldDescriptor
    One compiled field: ``name``, ``required``, ``kind``, ``options``.

field(spec, *, default=..., **coercion)
    Declaration helper for a field that carries options.
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, NamedTuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from .schema import Schema

__all__ = [
    "NO_DEFAULT",
    "Scalar",
    "Array",
    "EmbedOne",
    "EmbedMany",
    "FieldOptions",
    "FieldDescriptor",
    "FieldSpec",
    "field",
]


class _NoDefault:
    """Sentinel type: the field declares no default (``None`` is a valid default)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __deepcopy__(self, memo):
        return self


NO_DEFAULT = _NoDefault()

# --------------------------------------------------------------------------- #
# Kinds                                                                       #
# --------------------------------------------------------------------------- #

class Scalar(NamedTuple):
    type: str

    is_relation = False
    is_many = False


class Array(NamedTuple):
    type: str

    is_relation = False
    is_many = True


class EmbedOne(NamedTuple):
    schema: "Schema"
    inline: bool = False

    is_relation = True
    is_many = False


class EmbedMany(NamedTuple):
    schema: "Schema"
    inline: bool = False

    is_relation = True
    is_many = True


Kind = Union[Scalar, Array, EmbedOne, EmbedMany]


# --------------------------------------------------------------------------- #
# Options & descriptor                                                        #
# --------------------------------------------------------------------------- #

class FieldOptions(NamedTuple):
    default: Any = NO_DEFAULT
    coercion: Mapping[str, Any] = MappingProxyType({})

    @classmethod
    def build(cls, options: Mapping[str, Any]) -> "FieldOptions":
        """Split a raw option mapping into ``default`` and coercion options."""
        rest = dict(options)
        default = rest.pop("default", NO_DEFAULT)
        return cls(default=default, coercion=MappingProxyType(rest))


class FieldDescriptor(NamedTuple):
    """A compiled, immutable schema field."""

    name: str
    required: bool
    kind: Kind
    options: FieldOptions = FieldOptions()

    @property
    def is_relation(self) -> bool:
        return self.kind.is_relation

    @property
    def has_default(self) -> bool:
        return self.options.default is not NO_DEFAULT

    @property
    def default(self) -> Any:
        """A fresh copy of the declared default, so callers can't corrupt it."""
        return copy.deepcopy(self.options.default)

    @property
    def schema(self) -> "Schema | None":
        return self.kind.schema if self.kind.is_relation else None

    def __repr__(self) -> str:
        marker = "!" if self.required else ""
        kind = type(self.kind).__name__
        target = self.kind.schema.name if self.kind.is_relation else self.kind.type
        return f"<Field {self.name}{marker} {kind}({target})>"


# --------------------------------------------------------------------------- #
# Declaration helper                                                          #
# --------------------------------------------------------------------------- #

class FieldSpec:
    """An uncompiled field declaration with attached options.

    Equivalent to the list-of-pairs form ``[("field", spec), ("default", v)]``
    used in JSON definition files.
    """

    def __init__(self, spec: Any, options: Mapping[str, Any]):
        self.spec = spec
        self.options = dict(options)

    def __repr__(self) -> str:
        return f"field({self.spec!r}, **{self.options!r})"


def field(spec: Any, *, default: Any = NO_DEFAULT, **coercion: Any) -> FieldSpec:
    """Declare a field with options, e.g. ``field("string", default="FOO")``.

    Any keyword other than ``default`` is passed through to the type coercer.
    """
    options = dict(coercion)
    if default is not NO_DEFAULT:
        options["default"] = default
    return FieldSpec(spec, options)
