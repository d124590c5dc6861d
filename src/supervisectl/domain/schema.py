"""Field, variant and directive schemas plus the authoring helpers.

These are configuration-of-the-configuration-language: built once at
startup, never mutated. Definition mistakes raise
:class:`~supervisectl.domain.errors.SchemaDefinitionError` immediately
so a broken schema can never reach the registry.

Authoring looks like::

    directive(
        "retries",
        variant(FieldSchema("count", INT), FieldSchema("duration", DURATION), build=...),
        variant(FieldSchema("count", INT), build=...),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from supervisectl.domain.errors import SchemaDefinitionError
from supervisectl.domain.types import TypeDescriptor

Constructor = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class FieldSchema:
    """A named argument and the type its value must have."""

    name: str
    type: TypeDescriptor

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Field name must not be empty"
            raise SchemaDefinitionError(msg)

    def describe(self) -> str:
        return f"{self.name}: {self.type.describe()}"


@dataclass(frozen=True, slots=True)
class VariantSchema:
    """One accepted argument shape of a directive.

    Every declared field is required for the variant to be selected.
    ``build`` turns the validated ``name -> value`` mapping into a domain
    object; when it is None the mapping itself is the result.
    """

    fields: tuple[FieldSchema, ...] = ()
    build: Constructor | None = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for f in self.fields:
            if f.name in seen:
                msg = f"Duplicate field {f.name!r} in variant ({self.signature()})"
                raise SchemaDefinitionError(msg)
            seen.add(f.name)

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(f.name for f in self.fields)

    def signature(self) -> str:
        """``count: int, duration: duration`` style summary."""
        return ", ".join(f.describe() for f in self.fields)


@dataclass(frozen=True, slots=True)
class DirectiveSchema:
    """A named directive and its variants, in resolution order."""

    name: str
    variants: tuple[VariantSchema, ...]

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Directive name must not be empty"
            raise SchemaDefinitionError(msg)
        if not self.variants:
            msg = f"Directive {self.name!r} declares no variants"
            raise SchemaDefinitionError(msg)

    @property
    def takes_arguments(self) -> bool:
        return any(v.fields for v in self.variants)


# ---------------------------------------------------------------------------
# Authoring helpers
# ---------------------------------------------------------------------------


def variant(*fields: FieldSchema, build: Constructor | None = None) -> VariantSchema:
    """Declare one argument shape."""
    return VariantSchema(tuple(fields), build)


def directive(name: str, *variants: VariantSchema) -> DirectiveSchema:
    """Declare a directive with one or more variants (most specific first)."""
    return DirectiveSchema(name, tuple(variants))


def no_args(name: str, build: Callable[[], Any] | None = None) -> DirectiveSchema:
    """Declare a directive written as a bare word, e.g. ``restart``."""
    if build is None:
        return DirectiveSchema(name, (VariantSchema(),))
    factory = build

    def _ctor(_values: Mapping[str, Any]) -> Any:
        return factory()

    return DirectiveSchema(name, (VariantSchema((), _ctor),))
