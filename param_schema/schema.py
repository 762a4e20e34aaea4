"""
schema.py - compile terse declarative schemas into Schema objects
=================================================================

A *description* is a mapping ``field name -> field spec``.  A trailing ``!``
on a name marks the field as required.  Field specs come in these shapes:

=====================================  ======================================
Spec                                   Meaning
=====================================  ======================================
``"string"`` / ``str``                 scalar of that type
``["string"]`` / ``("array", "x")``    array of scalars
``{...}``                              inline embed (one), named
                                       ``Parent.FieldName``
``[{...}]``                            inline embed (many)
``{"embeds_one": ref}``                embed of an already compiled schema;
``("embeds_one", ref)``                ``ref`` is a Schema, a Params object,
                                       or a name looked up in ``registry``
``{"embeds_many": ref}``               as above, many
``field(spec, default=...)``           any of the above plus options
``[("field", spec), ("default", v)]``  same, list-of-pairs spelling (JSON)
=====================================  ======================================

Compilation fails fast with :class:`SchemaDefinitionError` on malformed
descriptions; nothing is deferred to cast time.  A compiled :class:`Schema`
is never mutated afterwards and can be shared freely.
"""

from __future__ import annotations

import copy
import dataclasses
import keyword
import logging
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, NamedTuple, Sequence, Tuple

from . import utils
from .coercer import DEFAULT_COERCER, PY_TYPE_TAGS, TypeCoercer
from .field import (
    Array,
    EmbedMany,
    EmbedOne,
    FieldDescriptor,
    FieldOptions,
    FieldSpec,
    Kind,
    Scalar,
)
from .merge import put_default

__all__ = [
    "SchemaError",
    "SchemaDefinitionError",
    "Schema",
    "compile_schema",
]

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Exceptions                                                                  #
# --------------------------------------------------------------------------- #

class SchemaError(ValueError):
    """Base class for every error raised by param-schema."""


class SchemaDefinitionError(SchemaError):
    """Raised when a schema description is malformed."""


# --------------------------------------------------------------------------- #
# Schema                                                                      #
# --------------------------------------------------------------------------- #

class Buckets(NamedTuple):
    required_scalars: Tuple[FieldDescriptor, ...]
    optional_scalars: Tuple[FieldDescriptor, ...]
    required_relations: Tuple[FieldDescriptor, ...]
    optional_relations: Tuple[FieldDescriptor, ...]


class Schema:
    """An ordered, read-only set of field descriptors with a name.

    ``hook`` is the schema's own validation hook (``None`` for the built-in
    pass only) and ``coercer`` the :class:`TypeCoercer` its scalars go through.
    ``nested`` maps the identity of every inline embed below this schema to
    its compiled Schema.
    """

    def __init__(
        self,
        name: str,
        fields: Sequence[FieldDescriptor],
        *,
        hook: Callable | None = None,
        coercer: TypeCoercer | None = None,
        nested: Mapping[str, "Schema"] | None = None,
    ):
        self.name = name
        self.fields: Tuple[FieldDescriptor, ...] = tuple(fields)
        self.hook = hook
        self.coercer = coercer or DEFAULT_COERCER
        self.nested = MappingProxyType(dict(nested or {}))
        self._by_name = {f.name: f for f in self.fields}

        required = [f for f in self.fields if f.required]
        optional = [f for f in self.fields if not f.required]
        self._buckets = Buckets(
            tuple(f for f in required if not f.is_relation),
            tuple(f for f in optional if not f.is_relation),
            tuple(f for f in required if f.is_relation),
            tuple(f for f in optional if f.is_relation),
        )

        self._defaults: dict = {}
        self._collect_defaults(self._defaults, ())
        self._struct_type = self._build_struct_type()

    # -- container protocol ------------------------------------------------
    def __getitem__(self, name: str) -> FieldDescriptor:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"<Schema {self.name} fields={[f.name for f in self.fields]}>"

    # -- metadata ----------------------------------------------------------
    @property
    def required(self) -> list[str]:
        return [f.name for f in self.fields if f.required]

    @property
    def optional(self) -> list[str]:
        return [f.name for f in self.fields if not f.required]

    def partition(self) -> Buckets:
        """Fields split into required/optional scalars and relations."""
        return self._buckets

    def lookup(self, path: str | Sequence[str]) -> "Schema":
        """Find a schema by dotted identity (``"Kitten.NearLocation"``) or by
        a sequence of embed field names (``["near_location"]``)."""
        if isinstance(path, str):
            if path == self.name:
                return self
            try:
                return self.nested[path]
            except KeyError:
                raise KeyError(f"{self.name}: no nested schema {path!r}") from None

        schema = self
        for seg in path:
            desc = schema._by_name.get(seg)
            if desc is None or not desc.is_relation:
                raise KeyError(f"{schema.name}: {seg!r} is not an embedded field")
            schema = desc.kind.schema
        return schema

    # -- defaults ----------------------------------------------------------
    def _collect_defaults(self, tree: dict, path: Tuple[str, ...]) -> None:
        for desc in self.fields:
            here = path + (desc.name,)
            if desc.has_default:
                put_default(tree, here, desc.default)
            if isinstance(desc.kind, EmbedOne):
                desc.kind.schema._collect_defaults(tree, here)

    def defaults(self) -> dict:
        """Declared defaults as a nested tree, following single embeds.

        Fields without a default (and embeds with no defaults anywhere below
        them) don't appear.  Each call returns a fresh copy.
        """
        return copy.deepcopy(self._defaults)

    # -- struct type -------------------------------------------------------
    def _build_struct_type(self) -> type | None:
        """A dataclass with one attribute per field, or None when some field
        name can't be an attribute."""
        attrs = []
        for desc in self.fields:
            if not desc.name.isidentifier() or keyword.iskeyword(desc.name):
                return None
            if isinstance(desc.kind, EmbedMany):
                attrs.append((desc.name, Any, dataclasses.field(default_factory=list)))
            else:
                attrs.append((desc.name, Any, dataclasses.field(default=None)))
        cls = dataclasses.make_dataclass(self.name.replace(".", "_"), attrs)
        cls.__qualname__ = self.name
        cls.__module__ = __name__
        return cls

    @property
    def struct_type(self) -> type:
        """The dataclass used by struct mode, built once at compile time."""
        if self._struct_type is None:
            bad = [d.name for d in self.fields
                   if not d.name.isidentifier() or keyword.iskeyword(d.name)]
            raise SchemaDefinitionError(
                f"{self.name}: field {bad[0]!r} is not a valid attribute name"
            )
        return self._struct_type


# --------------------------------------------------------------------------- #
# Compiler                                                                    #
# --------------------------------------------------------------------------- #

_REFS = {"embeds_one": EmbedOne, "embeds_many": EmbedMany}


class _Context(NamedTuple):
    registry: Mapping[str, Any]
    coercer: TypeCoercer


def compile_schema(
    description: Mapping[Any, Any],
    name: str,
    *,
    registry: Mapping[str, Any] | None = None,
    hook: Callable | None = None,
    coercer: TypeCoercer | None = None,
) -> Schema:
    """Compile *description* into a :class:`Schema` called *name*.

    Parameters
    ----------
    description : Mapping
        Field name (optionally ending in ``!``) to field spec.
    name : str
        Identity of the schema; inline embeds are named below it.
    registry : Mapping[str, Schema], optional
        Schemas that ``embeds_one`` / ``embeds_many`` may refer to by name.
    hook : callable, optional
        The schema's own validation hook, ``(result, raw) -> result``.
    coercer : TypeCoercer, optional
        Scalar coercion; defaults to :data:`DEFAULT_COERCER`.  Inline embeds
        inherit it.

    Raises
    ------
    SchemaDefinitionError
        Duplicate or malformed names, unknown type tags, unresolvable
        references, or unsupported spec shapes.
    """
    ctx = _Context(registry or {}, coercer or DEFAULT_COERCER)
    schema = _compile(description, name, ctx, hook=hook)
    log.debug(
        "compiled schema %s: %d field(s), %d nested schema(s)",
        schema.name, len(schema), len(schema.nested),
    )
    return schema


def _compile(description: Any, name: str, ctx: _Context, *, hook: Callable | None = None) -> Schema:
    if not isinstance(description, Mapping):
        raise SchemaDefinitionError(
            f"{name}: schema description must be a mapping, got {type(description).__name__}"
        )

    fields: list[FieldDescriptor] = []
    seen: set[str] = set()
    nested: dict[str, Schema] = {}
    for raw_name, spec in description.items():
        try:
            field_name, required = utils._split_required(raw_name)
        except ValueError as exc:
            raise SchemaDefinitionError(f"{name}: {exc}") from None
        if field_name in seen:
            raise SchemaDefinitionError(f"{name}: duplicate field {field_name!r}")
        seen.add(field_name)

        kind, options = _classify(spec, name, field_name, ctx)
        if kind.is_relation and kind.inline:
            nested[kind.schema.name] = kind.schema
            nested.update(kind.schema.nested)
        fields.append(FieldDescriptor(field_name, required, kind, options))

    return Schema(name, fields, hook=hook, coercer=ctx.coercer, nested=nested)


def _classify(spec: Any, parent: str, field_name: str, ctx: _Context) -> Tuple[Kind, FieldOptions]:
    where = f"{parent}.{field_name}"

    # options attached ------------------------------------------------------
    pairs = _as_option_pairs(spec, where)
    if pairs is not None:
        spec = FieldSpec(pairs.pop("field"), pairs)
    if isinstance(spec, FieldSpec):
        if isinstance(spec.spec, FieldSpec) or _as_option_pairs(spec.spec, where) is not None:
            raise SchemaDefinitionError(f"{where}: options can't be nested")
        kind, _ = _classify(spec.spec, parent, field_name, ctx)
        return kind, FieldOptions.build(spec.options)

    # explicit references ---------------------------------------------------
    if isinstance(spec, tuple) and len(spec) == 2 and spec[0] in _REFS:
        return _REFS[spec[0]](_resolve_ref(spec[1], where, ctx)), FieldOptions()
    if isinstance(spec, tuple) and len(spec) == 2 and spec[0] == "array":
        return Array(_resolve_tag(spec[1], where, ctx)), FieldOptions()
    if isinstance(spec, Mapping) and len(spec) == 1 and next(iter(spec)) in _REFS:
        ((tag, ref),) = spec.items()
        return _REFS[tag](_resolve_ref(ref, where, ctx)), FieldOptions()

    # inline embeds ---------------------------------------------------------
    if isinstance(spec, Mapping):
        sub = _compile(spec, utils._concat(parent, field_name), ctx)
        return EmbedOne(sub, inline=True), FieldOptions()
    if isinstance(spec, list):
        if len(spec) != 1:
            raise SchemaDefinitionError(
                f"{where}: array specs take exactly one element type, got {len(spec)}"
            )
        (item,) = spec
        if isinstance(item, Mapping):
            sub = _compile(item, utils._concat(parent, field_name), ctx)
            return EmbedMany(sub, inline=True), FieldOptions()
        return Array(_resolve_tag(item, where, ctx)), FieldOptions()

    # scalars ---------------------------------------------------------------
    return Scalar(_resolve_tag(spec, where, ctx)), FieldOptions()


def _as_option_pairs(spec: Any, where: str) -> dict | None:
    """``[("field", x), ("default", y)]`` -> ``{"field": x, "default": y}``.

    Returns None when *spec* is not in list-of-pairs form.
    """
    if not isinstance(spec, (list, tuple)) or not spec:
        return None
    head = spec[0]
    if not (isinstance(head, (list, tuple)) and len(head) == 2 and head[0] == "field"):
        return None
    options: dict = {}
    for pair in spec:
        if not (isinstance(pair, (list, tuple)) and len(pair) == 2 and isinstance(pair[0], str)):
            raise SchemaDefinitionError(f"{where}: malformed option {pair!r}")
        options[pair[0]] = pair[1]
    return options


def _resolve_tag(tag: Any, where: str, ctx: _Context) -> str:
    if isinstance(tag, type):
        try:
            return PY_TYPE_TAGS[tag]
        except KeyError:
            raise SchemaDefinitionError(f"{where}: unsupported type {tag.__name__}") from None
    if isinstance(tag, str) and ctx.coercer.knows(tag):
        return tag
    raise SchemaDefinitionError(f"{where}: unknown type {tag!r}")


def _resolve_ref(ref: Any, where: str, ctx: _Context) -> Schema:
    if isinstance(ref, str):
        try:
            ref = ctx.registry[ref]
        except KeyError:
            raise SchemaDefinitionError(f"{where}: undefined schema {ref!r}") from None
    ref = getattr(ref, "schema", ref)  # Params wraps a Schema
    if not isinstance(ref, Schema):
        raise SchemaDefinitionError(f"{where}: cannot embed {type(ref).__name__}")
    return ref
