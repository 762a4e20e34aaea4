"""
utils.py – shared, low-level utilities for the param-schema package.

This module consolidates common helpers for:
- Name handling (required markers, camelised schema identities)
- Raw-input key normalisation (str / bytes / Enum keys)
- Type checking (ISO-8601 strings, blank strings)
- Flattening struct-mode output back to plain values
"""

from __future__ import annotations

import dataclasses
import enum
import re
from typing import Any, Dict, Mapping, Tuple

# --------------------------------------------------------------------------- #
# Names                                                                       #
# --------------------------------------------------------------------------- #

REQUIRED_MARKER = "!"


def _split_required(name: Any) -> Tuple[str, bool]:
    """Split the trailing required-marker from a declared field name.

    Returns ``(bare_name, required)``.  Raises ``ValueError`` when the name is
    empty or the marker appears anywhere but at the very end.
    """
    text = _key_text(name)
    if text is None:
        raise ValueError(f"field names must be strings, got {type(name).__name__}")
    required = text.endswith(REQUIRED_MARKER)
    bare = text[:-1] if required else text
    if not bare or REQUIRED_MARKER in bare:
        raise ValueError(f"malformed field name {text!r}")
    return bare, required


def _camelize(name: str) -> str:
    """``near_location`` -> ``NearLocation``."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def _concat(parent: str, name: str) -> str:
    """Identity of an inline embed: ``Parent.FieldName``."""
    return f"{parent}.{_camelize(name)}"


# --------------------------------------------------------------------------- #
# Raw input keys                                                              #
# --------------------------------------------------------------------------- #

def _key_text(key: Any) -> str | None:
    """Return the field name a raw key refers to, or None if it can't name one."""
    if isinstance(key, str):
        return key
    if isinstance(key, enum.Enum):
        return key.name
    if isinstance(key, bytes):
        try:
            return key.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def _normalize_keys(raw: Mapping[Any, Any]) -> Dict[str, Any]:
    """Re-key *raw* by field name.

    Plain ``str`` keys win over any other spelling of the same name, so
    ``{"email": 1, Key.email: 2}`` resolves to ``1``.
    """
    out: Dict[str, Any] = {}
    exact: set[str] = set()
    for key, value in raw.items():
        text = _key_text(key)
        if text is None:
            continue
        if isinstance(key, str):
            out[text] = value
            exact.add(text)
        elif text not in exact:
            out[text] = value
    return out


def _to_plain(obj: Any) -> Any:
    """Turn dataclass instances (struct-mode output) back into plain dicts."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Mapping):
        return {k: _to_plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_to_plain(v) for v in obj]
    return obj


# --------------------------------------------------------------------------- #
# Type Checking Helpers                                                       #
# --------------------------------------------------------------------------- #

_DT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?(?:Z|[+\-]\d{2}:\d{2})?$")


def _is_datetime(value: Any) -> bool:
    """Return True iff *value* is a string shaped like an ISO-8601 date-time."""
    return isinstance(value, str) and _DT_RE.fullmatch(value) is not None


def _is_blank(value: Any) -> bool:
    """Empty or whitespace-only strings count as "no value"."""
    return isinstance(value, str) and not value.strip()
