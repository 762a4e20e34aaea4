"""
changeset.py - the per-call record of a cast
============================================

A :class:`ValidationResult` is created by :func:`param_schema.caster.cast`,
filled in by the built-in pass and then by the validation hook, and frozen
before projection.  It records three things:

* ``changes`` - typed values for the fields the caller supplied.  Embedded
  fields hold a nested ValidationResult (one) or a list of them (many);
* ``present`` / ``nulls`` - which names the caller supplied at this level,
  and which of those were supplied as null.  Each nested result carries its
  own, so the presence information has the same shape as the input;
* errors - ``(path, kind, message)`` triples.  :attr:`errors` gathers the
  errors of nested results too, with paths rooted at this result.

``valid`` is derived from ``errors`` on every access, so it stays correct
whatever is added after the fact.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Container, Dict, Iterable, List, Mapping, NamedTuple, Tuple

from .field import EmbedMany
from .schema import Schema

__all__ = [
    "ErrorKind",
    "FieldError",
    "ValidationResult",
]


class ErrorKind(enum.Enum):
    MISSING_REQUIRED = "missing_required"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_RELATION = "invalid_relation"
    USER_RULE = "user_rule"


_MESSAGES = {
    ErrorKind.MISSING_REQUIRED: "can't be blank",
    ErrorKind.TYPE_MISMATCH: "is invalid",
    ErrorKind.INVALID_RELATION: "is invalid",
    ErrorKind.USER_RULE: "is invalid",
}

Path = Tuple[Any, ...]


class FieldError(NamedTuple):
    path: Path
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{_format_path(self.path)}: {self.message}"


def _format_path(path: Path) -> str:
    out = "root"
    for seg in path:
        out += f"[{seg}]" if isinstance(seg, int) else f".{seg}"
    return out


class ValidationResult:
    """The "changeset" of one cast call."""

    def __init__(self, schema: Schema, target: Mapping[str, Any] | None = None):
        self.schema = schema
        self.target: Dict[str, Any] = dict(target or {})
        self.changes: Dict[str, Any] = {}
        self.present: set[str] = set()
        self.nulls: set[str] = set()
        self._errors: List[FieldError] = []
        self._frozen = False

    def __repr__(self) -> str:
        return (
            f"<ValidationResult {self.schema.name} valid={self.valid} "
            f"changes={sorted(self.changes)} errors={len(self.errors)}>"
        )

    # ------------------------------------------------------------------ #
    # Lifecycle                                                           #
    # ------------------------------------------------------------------ #
    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "ValidationResult":
        self._frozen = True
        return self

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError(f"{self.schema.name}: validation result is frozen")

    # ------------------------------------------------------------------ #
    # Errors                                                              #
    # ------------------------------------------------------------------ #
    def add_error(
        self,
        name: str | Path,
        kind: ErrorKind = ErrorKind.USER_RULE,
        message: str | None = None,
    ) -> "ValidationResult":
        """Record an error for field *name* (or a path relative to this result)."""
        self._check_open()
        path = (name,) if isinstance(name, str) else tuple(name)
        self._errors.append(FieldError(path, kind, message or _MESSAGES[kind]))
        return self

    @property
    def own_errors(self) -> List[FieldError]:
        return list(self._errors)

    @property
    def errors(self) -> List[FieldError]:
        """Own errors followed by those of nested results, in field order."""
        out = list(self._errors)
        for name, change in self.changes.items():
            if isinstance(change, ValidationResult):
                out.extend(_rebase(change.errors, (name,)))
            elif _is_result_list(change):
                for idx, item in enumerate(change):
                    out.extend(_rebase(item.errors, (name, idx)))
        return out

    @property
    def valid(self) -> bool:
        return not self.errors

    def errors_on(self, name: str) -> List[str]:
        """Messages of the errors recorded directly against field *name*."""
        return [e.message for e in self._errors if e.path[:1] == (name,)]

    # ------------------------------------------------------------------ #
    # Changes                                                             #
    # ------------------------------------------------------------------ #
    def put_change(self, name: str, value: Any) -> "ValidationResult":
        self._check_open()
        if value is None:
            self.changes.pop(name, None)
            self.nulls.add(name)
        else:
            self.changes[name] = value
            self.nulls.discard(name)
        self.present.add(name)
        return self

    def get_change(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    def fetch_field(self, name: str) -> Any:
        """The change for *name* if any, else the pre-existing target value."""
        if name in self.changes:
            return self.changes[name]
        if name in self.nulls:
            return None
        return self.target.get(name)

    def _satisfied(self, name: str) -> bool:
        desc = self.schema._by_name.get(name)
        many = desc is not None and isinstance(desc.kind, EmbedMany)

        def usable(value: Any) -> bool:
            if value is None:
                return False
            return not (many and isinstance(value, list) and not value)

        if name in self.nulls:
            return False
        if name in self.changes:
            return usable(self.changes[name])
        if usable(self.target.get(name)):
            return True
        return desc is not None and desc.has_default

    # ------------------------------------------------------------------ #
    # Hook helpers (chainable)                                            #
    # ------------------------------------------------------------------ #
    def validate_required(self, names: Iterable[str], message: str | None = None) -> "ValidationResult":
        """Flag each of *names* that has no usable value and no error yet."""
        for name in names:
            if self.errors_on(name):
                continue
            if not self._satisfied(name):
                self.add_error(name, ErrorKind.MISSING_REQUIRED, message)
        return self

    def validate_inclusion(self, name: str, allowed: Container[Any], message: str | None = None) -> "ValidationResult":
        """Reject a change to *name* whose value is not in *allowed*."""
        if name in self.changes and self.changes[name] not in allowed:
            self.add_error(name, ErrorKind.USER_RULE, message or "is invalid")
        return self

    def validate_change(self, name: str, check: Callable[[str, Any], Iterable[str]]) -> "ValidationResult":
        """Run ``check(name, value)`` on a change; each message it yields
        becomes a USER_RULE error."""
        if name in self.changes:
            for msg in check(name, self.changes[name]) or ():
                self.add_error(name, ErrorKind.USER_RULE, msg)
        return self


def _is_result_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(
        isinstance(v, ValidationResult) for v in value
    )


def _rebase(errors: Iterable[FieldError], prefix: Path) -> List[FieldError]:
    return [FieldError(prefix + e.path, e.kind, e.message) for e in errors]
