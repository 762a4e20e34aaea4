"""
loader.py - read params definitions from JSON.

Public API
----------
load_definition(path) : read a definition from disk or package data

A definition document looks like::

    {
      "name": "ProductSearch",
      "description": "Search the catalogue",
      "fields": {
        "text!": "string",
        "near": {"latitude!": "float", "longitude!": "float"},
        "tags": ["string"],
        "page": [["field", "integer"], ["default", 1]]
      }
    }
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

__all__ = ["load_definition"]

# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def _parse(text: str, origin: Any) -> dict:
    """Parse a JSON definition, raising crisp errors on failure."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {origin}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ValueError(f"Definition in {origin} must be a JSON object")
    return data


# --------------------------------------------------------------------------- #
# Public utilities                                                            #
# --------------------------------------------------------------------------- #

def load_definition(path: str | Path) -> dict:
    p = Path(path)

    # 1) direct file on disk ------------------------------------------------
    if p.is_file():
        return _parse(p.read_text(encoding="utf-8"), p)

    # 2) bundled resource (exact string or basename) -----------------------
    pkg = resources.files("param_schema.schemas")
    candidates = (Path(path).name, str(path))   # basename first, original second
    for name in candidates:
        try:
            text = pkg.joinpath(name).read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError):
            continue   # try the next candidate
        return _parse(text, name)

    # 3) give up -----------------------------------------------------------
    raise FileNotFoundError(
        f"Definition '{path}' not found on disk or in package data"
    )
