"""
params.py - High-level API: named, reusable parameter definitions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from . import caster
from . import loader
from . import parser
from . import projector
from .changeset import ValidationResult
from .schema import Schema, compile_schema

__all__ = ["Params", "defparams"]


class Params:
    """A compiled schema plus the ``cast`` entry point.

    >>> login = Params.define("Login", {"email!": "string", "password!": "string"})
    >>> login.cast({"email": "a@b.c"}).ok
    False
    """

    def __init__(self, schema: Schema, *, description: str = ""):
        self.schema = schema
        self.description = description

    def __repr__(self) -> str:
        return f"<Params {self.name}>"

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def required(self) -> list[str]:
        return self.schema.required

    @property
    def optional(self) -> list[str]:
        return self.schema.optional

    @classmethod
    def define(
        cls,
        name: str,
        description: Mapping[Any, Any],
        *,
        hook: caster.Hook | None = None,
        registry: Mapping[str, Any] | None = None,
        coercer=None,
        doc: str = "",
    ) -> "Params":
        """Compile *description* under *name*; see :func:`compile_schema`."""
        schema = compile_schema(description, name, registry=registry, hook=hook, coercer=coercer)
        return cls(schema, description=doc)

    @classmethod
    def load(
        cls,
        path: str | Path,
        *,
        registry: Mapping[str, Any] | None = None,
        hook: caster.Hook | None = None,
    ) -> "Params":
        """Loads a params definition from a JSON file (or bundled resource)."""
        data = loader.load_definition(path)

        if all(key in data for key in ("name", "description", "fields")):
            return cls.define(
                data["name"],
                data["fields"],
                hook=hook,
                registry=registry,
                doc=data["description"],
            )
        raise ValueError(
            f"Definition at '{path}' is not a valid params definition. "
            "Required keys: 'name', 'description', 'fields'."
        )

    def changeset(
        self,
        raw: Any,
        *,
        target: Any = None,
        hook: caster.Hook | None = None,
    ) -> ValidationResult:
        """Run the cast and return the ValidationResult without projecting it."""
        return caster.cast(self.schema, raw, target=target, hook=hook)

    def cast(
        self,
        raw: Any,
        *,
        mode: str = "map",
        hook: caster.Hook | None = None,
        target: Any = None,
    ) -> projector.Result:
        """Cast and project *raw*.

        ``mode`` is ``"map"`` (untouched optional fields left out) or
        ``"struct"`` (an instance of ``schema.struct_type``).  ``hook``
        replaces the schema's own hook for this call.
        """
        if mode not in projector.MODES:
            raise ValueError(f"unknown mode {mode!r}; expected one of {projector.MODES}")
        return projector.project(self.changeset(raw, target=target, hook=hook), mode)

    def parse_and_cast(self, source: Any | None = None, **kwargs: Any) -> projector.Result:
        """
        End-to-end helper for scripts.
        1. Convert *source* into a plain ``dict`` (CLI / JSON / Mapping).
        2. Cast and project it; keyword arguments go to :meth:`cast`.
        """
        if source is None:                         # avoid swallowing the test
            source = []                            # runner's CLI args
        raw = parser.parse_input(source, schema=self.schema)
        return self.cast(raw, **kwargs)


def defparams(name: str, description: Mapping[Any, Any], **kwargs: Any) -> Params:
    """Shorthand for :meth:`Params.define`."""
    return Params.define(name, description, **kwargs)
