"""
merge.py - deep-merge helpers over plain value trees.

Values handled here form a closed set: mappings, lists and scalars (anything
else).  Two rules cover every combination:

* mapping + mapping -> merged key by key, recursively;
* list of mappings + list of mappings -> merged position by position, the
  tail of the longer list kept as-is;

and in every other case the right-hand side wins.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping, Sequence

__all__ = ["deep_merge", "put_default"]


def _is_record_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, Mapping) for v in value)


def deep_merge(left: Any, right: Any) -> Any:
    """Return a new value with *right* merged over *left*; neither is mutated."""
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        out = {k: copy.deepcopy(v) for k, v in left.items()}
        for key, value in right.items():
            out[key] = deep_merge(out[key], value) if key in out else copy.deepcopy(value)
        return out
    if _is_record_list(left) and _is_record_list(right) and left and right:
        merged = [deep_merge(l, r) for l, r in zip(left, right)]
        longer = left if len(left) > len(right) else right
        merged.extend(copy.deepcopy(v) for v in longer[len(merged):])
        return merged
    return copy.deepcopy(right)


def put_default(tree: dict, path: Sequence[str], value: Any) -> None:
    """Deep-set *value* at *path* in *tree*, in place, without clobbering data.

    Missing or ``None`` intermediates become empty dicts.  The walk stops
    silently at an existing non-mapping value, and a non-null leaf is only
    ever filled in (mapping into mapping), never replaced.
    """
    node = tree
    for seg in path[:-1]:
        child = node.get(seg)
        if child is None:
            child = node[seg] = {}
        elif not isinstance(child, dict):
            return
        node = child

    leaf = path[-1]
    current = node.get(leaf)
    if current is None:
        node[leaf] = copy.deepcopy(value)
    elif isinstance(current, dict) and isinstance(value, Mapping):
        node[leaf] = deep_merge(value, current)
