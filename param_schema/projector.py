"""
projector.py - build the output value of an accepted ValidationResult
=====================================================================

The output is assembled in layers, later layers winning:

1. pre-existing data of the result's ``target`` (non-null values only);
2. declared defaults of the schema, by path, filling gaps only;
3. the changes, with nested results projected the same way;
4. explicit nulls: every name the caller supplied as null ends up null,
   whatever a default said.

In ``"map"`` mode the merged mapping is returned as-is, so fields that were
never mentioned and carry no default simply aren't there.  In ``"struct"``
mode it is poured into the schema's generated dataclass, where every field
exists and missing ones hold their zero value.

Public API
----------
project(result, mode="map") -> Result
Result
ValidationError
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

from .changeset import FieldError, ValidationResult, _is_result_list
from .field import EmbedMany, EmbedOne
from .merge import deep_merge
from .schema import Schema, SchemaError

__all__ = [
    "MODES",
    "Result",
    "ValidationError",
    "project",
]

log = logging.getLogger(__name__)

MODES = ("map", "struct")


class ValidationError(SchemaError):
    """Raised by :meth:`Result.unwrap` when the input did not validate."""

    def __init__(self, changeset: ValidationResult):
        self.changeset = changeset
        self.errors: List[FieldError] = changeset.errors
        lines = "\n".join(f"  {e}" for e in self.errors)
        super().__init__(f"{changeset.schema.name}: {len(self.errors)} error(s)\n{lines}")


class Result:
    """Outcome of a cast: either ``ok`` with a ``value`` or carrying the
    invalid ``changeset``."""

    __slots__ = ("changeset", "value")

    def __init__(self, changeset: ValidationResult, value: Any = None):
        self.changeset = changeset
        self.value = value

    @property
    def ok(self) -> bool:
        return self.changeset.valid

    @property
    def errors(self) -> List[FieldError]:
        return self.changeset.errors

    def unwrap(self) -> Any:
        """Return the value, or raise :class:`ValidationError`."""
        if not self.ok:
            raise ValidationError(self.changeset)
        return self.value

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self.ok:
            return f"<Result ok {self.value!r}>"
        return f"<Result error {self.changeset!r}>"


# --------------------------------------------------------------------------- #
# Projection                                                                  #
# --------------------------------------------------------------------------- #

def project(result: ValidationResult, mode: str = "map") -> Result:
    """Project *result* into its output value.

    An invalid result comes back as ``Result(ok=False)`` carrying it; a valid
    one always projects.  Projection does not touch *result*, so projecting
    twice gives equal values.
    """
    if mode not in MODES:
        raise ValueError(f"unknown mode {mode!r}; expected one of {MODES}")
    if not result.frozen:
        raise RuntimeError(f"{result.schema.name}: cannot project a result still under construction")
    if not result.valid:
        return Result(result)

    tree = _project_map(result)
    log.debug("projected %s in %s mode", result.schema.name, mode)
    if mode == "struct":
        return Result(result, _to_struct(result.schema, tree))
    return Result(result, tree)


def _project_map(result: ValidationResult) -> dict:
    # 1) + 2) base data, with defaults filling whatever it leaves unset
    base = {k: v for k, v in result.target.items() if v is not None}
    acc = deep_merge(result.schema.defaults(), base)

    # 3) changes -----------------------------------------------------------
    changes = {}
    for name, change in result.changes.items():
        if isinstance(change, ValidationResult):
            changes[name] = _project_map(change)
        elif _is_result_list(change):
            changes[name] = [_project_map(item) for item in change]
        else:
            changes[name] = change
    acc = deep_merge(acc, changes)

    # 4) explicit nulls ----------------------------------------------------
    for name in result.nulls:
        acc[name] = None
    return acc


def _to_struct(schema: Schema, tree: Mapping[str, Any]) -> Any:
    values = {}
    for desc in schema.fields:
        if desc.name not in tree:
            continue
        value = tree[desc.name]
        if isinstance(desc.kind, EmbedOne) and isinstance(value, Mapping):
            value = _to_struct(desc.kind.schema, value)
        elif isinstance(desc.kind, EmbedMany) and isinstance(value, list):
            value = [
                _to_struct(desc.kind.schema, item) if isinstance(item, Mapping) else item
                for item in value
            ]
        values[desc.name] = value
    return schema.struct_type(**values)
