"""
caster.py - turn raw input into a ValidationResult
==================================================

Public API
----------
cast(schema, raw, *, target=None, hook=None) -> ValidationResult
    One pass over *schema*: required checks, scalar coercion, and recursive
    casting of embedded fields, followed by the validation hook.

default_hook(result, raw) -> ValidationResult
    The no-op hook: accepts whatever the built-in pass produced.

Casting never raises for bad input.  Every field and every element of an
embedded list is visited, so one call reports the complete error set, and
validity is read from ``result.valid`` afterwards.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from . import utils
from .changeset import ErrorKind, ValidationResult
from .coercer import CoercionError
from .field import Array, EmbedOne, FieldDescriptor
from .schema import Schema

__all__ = [
    "Hook",
    "cast",
    "default_hook",
]

log = logging.getLogger(__name__)

Hook = Callable[[ValidationResult, Any], ValidationResult]


def default_hook(result: ValidationResult, raw: Any) -> ValidationResult:
    """Accept the built-in pass unchanged."""
    return result


# --------------------------------------------------------------------------- #
# Entry point                                                                 #
# --------------------------------------------------------------------------- #

def cast(
    schema: Schema,
    raw: Any,
    *,
    target: Any = None,
    hook: Hook | None = None,
) -> ValidationResult:
    """Cast *raw* against *schema*.

    Parameters
    ----------
    schema : Schema
        Compiled schema.
    raw : Mapping
        Untyped input.  Keys may be ``str``, ``bytes`` or ``Enum`` members;
        a key present with value ``None`` is an explicit null.
    target : Mapping or struct, optional
        Pre-existing data the result is layered over.
    hook : callable, optional
        ``(result, raw) -> result``, run once after the built-in pass.
        Overrides ``schema.hook`` for this call only.  Embedded schemas
        always run their own hook.

    Returns
    -------
    ValidationResult
        Frozen; check ``.valid``.
    """
    result = _structural_pass(schema, raw, target)

    hook = hook or schema.hook or default_hook
    out = hook(result, raw)
    if not isinstance(out, ValidationResult):
        raise TypeError(
            f"{schema.name}: validation hook must return a ValidationResult, "
            f"got {type(out).__name__}"
        )
    out.freeze()
    log.debug("cast %s: valid=%s errors=%d", schema.name, out.valid, len(out.errors))
    return out


def _structural_pass(schema: Schema, raw: Any, target: Any) -> ValidationResult:
    result = ValidationResult(schema, utils._to_plain(target))

    if not isinstance(raw, Mapping):
        result.add_error((), ErrorKind.INVALID_RELATION, f"expected a mapping, got {type(raw).__name__}")
        return result

    params = utils._normalize_keys(raw)
    buckets = schema.partition()

    # 1) scalars -----------------------------------------------------------
    for desc in buckets.required_scalars + buckets.optional_scalars:
        _cast_scalar(result, desc, params)
    result.validate_required(d.name for d in buckets.required_scalars)

    # 2) relations ---------------------------------------------------------
    for desc in buckets.required_relations + buckets.optional_relations:
        _cast_relation(result, desc, params)
    result.validate_required(d.name for d in buckets.required_relations)

    return result


# --------------------------------------------------------------------------- #
# Fields                                                                      #
# --------------------------------------------------------------------------- #

def _cast_scalar(result: ValidationResult, desc: FieldDescriptor, params: Mapping[str, Any]) -> None:
    if desc.name not in params:
        return
    value = params[desc.name]
    if value is None or utils._is_blank(value):
        result.put_change(desc.name, None)
        return

    coercer = result.schema.coercer
    options = desc.options.coercion
    try:
        if isinstance(desc.kind, Array):
            if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
                raise CoercionError(f"expected a list, got {type(value).__name__}")
            typed = [
                None if item is None else coercer.coerce(desc.kind.type, item, options)
                for item in value
            ]
        else:
            typed = coercer.coerce(desc.kind.type, value, options)
    except CoercionError:
        log.debug("%s.%s: not castable to %s", result.schema.name, desc.name, desc.kind.type)
        result.present.add(desc.name)
        result.add_error(desc.name, ErrorKind.TYPE_MISMATCH)
        return

    result.put_change(desc.name, typed)


def _cast_relation(result: ValidationResult, desc: FieldDescriptor, params: Mapping[str, Any]) -> None:
    if desc.name not in params:
        return
    value = params[desc.name]
    if value is None:
        result.put_change(desc.name, None)
        return

    embedded = desc.kind.schema
    if isinstance(desc.kind, EmbedOne):
        if not isinstance(value, Mapping):
            result.present.add(desc.name)
            result.add_error(desc.name, ErrorKind.INVALID_RELATION)
            return
        result.put_change(desc.name, cast(embedded, value))
        return

    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        result.present.add(desc.name)
        result.add_error(desc.name, ErrorKind.INVALID_RELATION)
        return
    # every element is cast, valid or not; a non-mapping element becomes a
    # result carrying its own INVALID_RELATION error so indexes line up
    result.put_change(desc.name, [cast(embedded, item) for item in value])
