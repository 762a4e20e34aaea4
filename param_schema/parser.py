"""
parser.py - generic command-line / JSON / mapping input loader
==============================================================

Turns whatever a script was handed into the *raw* mapping the caster
expects.  Nothing is coerced here: every CLI value stays a string (or a
parsed JSON literal for embedded fields) and the caster does the typing.
Flags the user didn't pass are left out of the result entirely, so absent
and explicit-null fields stay distinguishable.

Public API
----------
`build_arg_parser(schema: Schema) -> argparse.ArgumentParser`
    Construct an `argparse` instance with flags derived from *schema*.

`parse_input(source=None, *, schema) -> dict`
    Convert user-supplied *source* (CLI string / Path / JSON literal / Mapping)
    into a plain `dict` keyed by the *schema* field names.
"""

from __future__ import annotations

import argparse
import json
import shlex
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from .field import Array, EmbedMany, EmbedOne, Scalar
from .schema import Schema

__all__ = ["build_arg_parser", "parse_input"]

# --------------------------------------------------------------------------- #
# Parser builder                                                              #
# --------------------------------------------------------------------------- #

def _json_value(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"not a JSON value: {exc}") from exc


def build_arg_parser(schema: Schema, *, description: str = "") -> argparse.ArgumentParser:
    """Return an :pyclass:`argparse.ArgumentParser` for *schema*.

    Every top-level field becomes a ``--<field-name>`` flag (underscores as
    dashes):

    * booleans are bare switches that store ``"true"``;
    * arrays take any number of values;
    * embedded fields take a JSON literal;
    * every other scalar takes one string.
    """

    p = argparse.ArgumentParser(
        prog=schema.name,
        description=description,
        fromfile_prefix_chars="@",
        add_help=False,
    )

    # standard meta flags ----------------------------------------------------
    p.add_argument("-h", "--help", action="help", help="Show this help message and exit.")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="JSON file containing full input object; overrides all other flags.",
    )

    for desc in schema.fields:
        flag = f"--{desc.name.replace('_', '-')}"
        if flag in ("--help", "--config"):
            continue  # reserved; reachable through --config only
        kwargs: dict[str, Any] = {
            "dest": desc.name,
            "default": argparse.SUPPRESS,
            "help": "(required)" if desc.required else None,
        }

        kind = desc.kind
        if isinstance(kind, Scalar) and kind.type == "boolean":
            kwargs["action"] = "store_const"
            kwargs["const"] = "true"
        elif isinstance(kind, Array):
            kwargs["nargs"] = "*"
        elif isinstance(kind, (EmbedOne, EmbedMany)):
            kwargs["type"] = _json_value
            kwargs["metavar"] = "JSON"

        p.add_argument(flag, **kwargs)

    return p

# --------------------------------------------------------------------------- #
# Input parsing utility                                                       #
# --------------------------------------------------------------------------- #

def parse_input(
    source: None | str | Path | Sequence[str] | Mapping[str, Any] = None,
    *,
    schema: Schema,
) -> dict[str, Any]:
    """Convert *source* to a *raw* ``dict`` (no validation).

    Parameters
    ----------
    source
        Supported variants:
        * ``Mapping`` - copied directly.
        * ``Path`` - JSON file on disk.
        * ``str``  - interpreted as: existing file path → load; else JSON literal → load; else CLI string.
        * ``Sequence[str]`` - treated as CLI tokens.
        * ``None`` - default to ``sys.argv[1:]``.
    schema
        The schema to drive CLI flag generation when *source* is CLI-style.

    Returns
    -------
    dict
        Raw key-value mapping with only the options provided by the user.  If
        ``--config`` is used the returned dict is exactly that file's content.
    """

    # Mapping - already dict-like ------------------------------------------
    if isinstance(source, Mapping):
        return dict(source)

    # Path - read JSON file -------------------------------------------------
    if isinstance(source, Path):
        return json.loads(source.read_text(encoding="utf-8"))

    # Decide how to treat *source* -----------------------------------------
    argv: list[str]
    if isinstance(source, str):
        p = Path(source)
        if p.is_file():
            return json.loads(p.read_text(encoding="utf-8"))
        try:
            loaded = json.loads(source)
        except json.JSONDecodeError:
            argv = shlex.split(source)
        else:
            if not isinstance(loaded, Mapping):
                raise ValueError(f"JSON input must be an object, got {type(loaded).__name__}")
            return loaded
    elif source is None:
        argv = sys.argv[1:]
    elif isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
        argv = list(source)
    else:
        raise TypeError(f"Unsupported type for parse_input: {type(source)}")

    # CLI style - use argparse ---------------------------------------------
    parser = build_arg_parser(schema)
    namespace, unknown = parser.parse_known_args(argv)
    if unknown:
        raise ValueError(f"Unknown argument(s): {unknown}. Use --help.")
    ns_dict = vars(namespace)

    # --config overrides everything else -----------------------------------
    if config_file := ns_dict.pop("config", None):
        cfg_path = Path(config_file)
        if not cfg_path.is_file():
            raise FileNotFoundError(cfg_path)
        return json.loads(cfg_path.read_text(encoding="utf-8"))

    return ns_dict
