"""
coercer.py - pluggable scalar type coercion.

The caster never converts values itself; it asks a :class:`TypeCoercer` to
turn a raw scalar (usually a string from a query string or form) into a typed
Python value.  A coercer is a registry of ``tag -> function`` pairs; every
function takes ``(value, options)`` and either returns the typed value or
raises :class:`CoercionError`.

Built-in tags
-------------
``string``, ``integer`` (alias ``id``), ``float``, ``boolean``, ``decimal``,
``date``, ``time``, ``naive_datetime``, ``utc_datetime``,
``utc_datetime_usec``, ``map``, ``any``, ``binary_id`` and ``dataframe``.

Python types are accepted as aliases for the common tags (``str`` ->
``string``, ``int`` -> ``integer`` ...).
"""

from __future__ import annotations

import datetime as _dt
import decimal
import math
import re
import uuid
from typing import Any, Callable, Dict, Mapping

import pandas as pd

from . import utils

__all__ = [
    "CoercionError",
    "TypeCoercer",
    "DEFAULT_COERCER",
    "PY_TYPE_TAGS",
]


class CoercionError(ValueError):
    """Raised by a cast function when a value can't be converted."""


CastFn = Callable[[Any, Mapping[str, Any]], Any]

# --------------------------------------------------------------------------- #
# Built-in cast functions                                                     #
# --------------------------------------------------------------------------- #

_INT_RE = re.compile(r"^[+\-]?\d+$")
_FLOAT_RE = re.compile(r"^[+\-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+\-]?\d+)?$")


def _fail(value: Any, tag: str) -> CoercionError:
    return CoercionError(f"cannot cast {type(value).__name__} to {tag}")


def _cast_string(value: Any, options: Mapping[str, Any]) -> str:
    if isinstance(value, str):
        return value
    raise _fail(value, "string")


def _cast_integer(value: Any, options: Mapping[str, Any]) -> int:
    if isinstance(value, bool):
        raise _fail(value, "integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        try:
            return int(value.strip())
        except ValueError as exc:  # digit-count limit
            raise _fail(value, "integer") from exc
    raise _fail(value, "integer")


def _cast_float(value: Any, options: Mapping[str, Any]) -> float:
    if isinstance(value, bool):
        raise _fail(value, "float")
    if isinstance(value, (int, float, decimal.Decimal)):
        number = value
    elif isinstance(value, str) and _FLOAT_RE.match(value.strip()):
        number = value.strip()
    else:
        raise _fail(value, "float")
    try:
        result = float(number)
    except (OverflowError, ValueError) as exc:
        raise _fail(value, "float") from exc
    if not math.isfinite(result):
        raise _fail(value, "float")
    return result


_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


def _cast_boolean(value: Any, options: Mapping[str, Any]) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise _fail(value, "boolean")


def _cast_decimal(value: Any, options: Mapping[str, Any]) -> decimal.Decimal:
    if isinstance(value, bool):
        raise _fail(value, "decimal")
    if isinstance(value, decimal.Decimal):
        result = value
    elif isinstance(value, int):
        result = decimal.Decimal(value)
    elif isinstance(value, float):
        result = decimal.Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = decimal.Decimal(value.strip())
        except decimal.InvalidOperation as exc:
            raise _fail(value, "decimal") from exc
    else:
        raise _fail(value, "decimal")
    if not result.is_finite():
        raise _fail(value, "decimal")
    scale = options.get("scale")
    if scale is not None:
        try:
            result = result.quantize(decimal.Decimal(1).scaleb(-int(scale)))
        except decimal.InvalidOperation as exc:
            raise _fail(value, "decimal") from exc
    return result


def _cast_date(value: Any, options: Mapping[str, Any]) -> _dt.date:
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str):
        try:
            return _dt.date.fromisoformat(value.strip())
        except ValueError as exc:
            raise _fail(value, "date") from exc
    raise _fail(value, "date")


def _cast_time(value: Any, options: Mapping[str, Any]) -> _dt.time:
    if isinstance(value, _dt.time):
        return value
    if isinstance(value, str):
        try:
            return _dt.time.fromisoformat(value.strip())
        except ValueError as exc:
            raise _fail(value, "time") from exc
    raise _fail(value, "time")


def _parse_datetime(value: Any, tag: str) -> _dt.datetime:
    if isinstance(value, _dt.datetime):
        return value
    if utils._is_datetime(value):
        try:
            return _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise _fail(value, tag) from exc
    raise _fail(value, tag)


def _cast_naive_datetime(value: Any, options: Mapping[str, Any]) -> _dt.datetime:
    return _parse_datetime(value, "naive_datetime").replace(tzinfo=None)


def _cast_utc_datetime_usec(value: Any, options: Mapping[str, Any]) -> _dt.datetime:
    parsed = _parse_datetime(value, "utc_datetime")
    if parsed.tzinfo is None:
        # naive input is taken to already be UTC
        return parsed.replace(tzinfo=_dt.timezone.utc)
    return parsed.astimezone(_dt.timezone.utc)


def _cast_utc_datetime(value: Any, options: Mapping[str, Any]) -> _dt.datetime:
    return _cast_utc_datetime_usec(value, options).replace(microsecond=0)


def _cast_map(value: Any, options: Mapping[str, Any]) -> dict:
    if isinstance(value, Mapping):
        return dict(value)
    raise _fail(value, "map")


def _cast_any(value: Any, options: Mapping[str, Any]) -> Any:
    return value


def _cast_binary_id(value: Any, options: Mapping[str, Any]) -> str:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError as exc:
            raise _fail(value, "binary_id") from exc
    raise _fail(value, "binary_id")


def _cast_dataframe(value: Any, options: Mapping[str, Any]) -> pd.DataFrame:
    if isinstance(value, pd.DataFrame):
        return value.copy()
    if isinstance(value, (list, tuple)) and all(isinstance(r, Mapping) for r in value):
        return pd.DataFrame.from_records(list(value), columns=options.get("columns"))
    if isinstance(value, Mapping):
        try:
            return pd.DataFrame(dict(value), columns=options.get("columns"))
        except ValueError as exc:  # ragged columns
            raise _fail(value, "dataframe") from exc
    raise _fail(value, "dataframe")


_BUILTINS: Dict[str, CastFn] = {
    "string": _cast_string,
    "integer": _cast_integer,
    "id": _cast_integer,
    "float": _cast_float,
    "boolean": _cast_boolean,
    "decimal": _cast_decimal,
    "date": _cast_date,
    "time": _cast_time,
    "naive_datetime": _cast_naive_datetime,
    "utc_datetime": _cast_utc_datetime,
    "utc_datetime_usec": _cast_utc_datetime_usec,
    "map": _cast_map,
    "any": _cast_any,
    "binary_id": _cast_binary_id,
    "dataframe": _cast_dataframe,
}

# Python types accepted in place of a tag
PY_TYPE_TAGS: Dict[type, str] = {
    str: "string",
    int: "integer",
    float: "float",
    bool: "boolean",
    dict: "map",
    decimal.Decimal: "decimal",
    _dt.date: "date",
    _dt.time: "time",
    _dt.datetime: "utc_datetime",
    uuid.UUID: "binary_id",
    pd.DataFrame: "dataframe",
}


# --------------------------------------------------------------------------- #
# Coercer                                                                     #
# --------------------------------------------------------------------------- #

class TypeCoercer:
    """A registry of scalar cast functions keyed by type tag."""

    def __init__(self, casts: Mapping[str, CastFn] | None = None):
        self._casts: Dict[str, CastFn] = dict(_BUILTINS if casts is None else casts)

    def register(self, tag: str, fn: CastFn) -> "TypeCoercer":
        """Add or replace the cast function for *tag*; returns ``self``."""
        self._casts[tag] = fn
        return self

    def knows(self, tag: str) -> bool:
        return tag in self._casts

    @property
    def tags(self) -> list[str]:
        return sorted(self._casts)

    def coerce(self, tag: str, value: Any, options: Mapping[str, Any] | None = None) -> Any:
        """Cast *value* to *tag* or raise :class:`CoercionError`."""
        try:
            fn = self._casts[tag]
        except KeyError:
            raise CoercionError(f"unknown type {tag!r}") from None
        try:
            return fn(value, options or {})
        except CoercionError:
            raise
        except (ValueError, ArithmeticError) as exc:
            raise CoercionError(f"cannot cast {type(value).__name__} to {tag}") from exc

    def copy(self) -> "TypeCoercer":
        return TypeCoercer(self._casts)


DEFAULT_COERCER = TypeCoercer()
