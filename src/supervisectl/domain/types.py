"""Type descriptors - the declared shape of a single configuration value.

A descriptor is a tag plus, for the two generic tags, an element type.
Primitive and domain descriptors are module-level singletons built at
import time; generic ones come from :func:`array_of` / :func:`map_of`.
Equality is structural, so ``array_of(INT) == array_of(INT)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from supervisectl.domain.errors import SchemaDefinitionError
from supervisectl.domain.values import (
    ArrayValue,
    LiteralKind,
    LiteralValue,
    MappingValue,
    ParsedValue,
)


class TypeTag(StrEnum):
    """Closed set of descriptor tags."""

    UNKNOWN = "unknown"
    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    DURATION = "duration"
    PROCESS_ID = "process-id"
    PROCESS_NAME = "process-name"
    PROCESS_FLAGS = "process-flags"
    ARRAY = "array"
    MAP = "map"
    PROCESS = "process"
    STRATEGY = "strategy"
    STRATEGY_MATCH = "strategy-match"
    STRATEGY_REDIRECT = "strategy-redirect"
    DIRECTIVE = "directive"
    DISPATCHER = "dispatcher"
    DISPATCHER_TYPE = "dispatcher-type"
    CLUSTER = "cluster"


GENERIC_TAGS: frozenset[TypeTag] = frozenset({TypeTag.ARRAY, TypeTag.MAP})

_PRIMITIVE_KINDS: dict[TypeTag, LiteralKind] = {
    TypeTag.BOOL: LiteralKind.BOOL,
    TypeTag.INT: LiteralKind.INT,
    TypeTag.DOUBLE: LiteralKind.DOUBLE,
    TypeTag.STRING: LiteralKind.STRING,
    TypeTag.DURATION: LiteralKind.DURATION,
}

# Domain slots written as a name the runtime resolves later.
NAMED_TAGS: frozenset[TypeTag] = frozenset(
    {
        TypeTag.PROCESS_ID,
        TypeTag.PROCESS_NAME,
        TypeTag.PROCESS_FLAGS,
        TypeTag.PROCESS,
        TypeTag.STRATEGY,
        TypeTag.STRATEGY_MATCH,
        TypeTag.STRATEGY_REDIRECT,
        TypeTag.DIRECTIVE,
        TypeTag.DISPATCHER,
        TypeTag.DISPATCHER_TYPE,
        TypeTag.CLUSTER,
    }
)

# Domain slots that may also hold a nested directive block.
NESTED_DIRECTIVE_TAGS: frozenset[TypeTag] = frozenset(
    {TypeTag.STRATEGY, TypeTag.DIRECTIVE, TypeTag.DISPATCHER}
)


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Declared type of one configuration value.

    INVARIANT: ``element`` is set exactly when ``tag`` is generic.
    """

    tag: TypeTag
    element: TypeDescriptor | None = None

    def __post_init__(self) -> None:
        if self.tag in GENERIC_TAGS and self.element is None:
            msg = f"{self.tag} type descriptor requires an element type"
            raise SchemaDefinitionError(msg)
        if self.tag not in GENERIC_TAGS and self.element is not None:
            msg = f"{self.tag} type descriptor does not take an element type"
            raise SchemaDefinitionError(msg)

    @property
    def is_generic(self) -> bool:
        return self.tag in GENERIC_TAGS

    @property
    def is_primitive(self) -> bool:
        return self.tag in _PRIMITIVE_KINDS

    @property
    def accepts_nested_directive(self) -> bool:
        return self.tag in NESTED_DIRECTIVE_TAGS

    def describe(self) -> str:
        """Readable name, e.g. ``map<strategy-redirect>``."""
        if self.element is not None:
            return f"{self.tag}<{self.element.describe()}>"
        return self.tag.value

    def __str__(self) -> str:
        return self.describe()

    def matches(self, value: ParsedValue, *, widen_numbers: bool = False) -> bool:
        """Structural check of *value* against this descriptor.

        Nested directive blocks are only checked for being mappings here;
        validating their contents needs the registry and is done by the
        resolver.
        """
        if self.tag is TypeTag.UNKNOWN:
            return True

        kind = _PRIMITIVE_KINDS.get(self.tag)
        if kind is not None:
            if not isinstance(value, LiteralValue):
                return False
            if value.kind is kind:
                return True
            return widen_numbers and kind is LiteralKind.DOUBLE and value.kind is LiteralKind.INT

        if self.tag is TypeTag.ARRAY:
            assert self.element is not None
            return isinstance(value, ArrayValue) and all(
                self.element.matches(item, widen_numbers=widen_numbers) for item in value.items
            )

        if self.tag is TypeTag.MAP:
            assert self.element is not None
            return isinstance(value, MappingValue) and all(
                self.element.matches(item, widen_numbers=widen_numbers)
                for item in value.fields.values()
            )

        if isinstance(value, LiteralValue):
            return value.kind is LiteralKind.STRING
        return isinstance(value, MappingValue) and self.accepts_nested_directive


# --- Singletons ---

UNKNOWN = TypeDescriptor(TypeTag.UNKNOWN)
BOOL = TypeDescriptor(TypeTag.BOOL)
INT = TypeDescriptor(TypeTag.INT)
DOUBLE = TypeDescriptor(TypeTag.DOUBLE)
STRING = TypeDescriptor(TypeTag.STRING)
DURATION = TypeDescriptor(TypeTag.DURATION)
PROCESS_ID = TypeDescriptor(TypeTag.PROCESS_ID)
PROCESS_NAME = TypeDescriptor(TypeTag.PROCESS_NAME)
PROCESS_FLAGS = TypeDescriptor(TypeTag.PROCESS_FLAGS)
PROCESS = TypeDescriptor(TypeTag.PROCESS)
STRATEGY = TypeDescriptor(TypeTag.STRATEGY)
STRATEGY_MATCH = TypeDescriptor(TypeTag.STRATEGY_MATCH)
STRATEGY_REDIRECT = TypeDescriptor(TypeTag.STRATEGY_REDIRECT)
DIRECTIVE = TypeDescriptor(TypeTag.DIRECTIVE)
DISPATCHER = TypeDescriptor(TypeTag.DISPATCHER)
DISPATCHER_TYPE = TypeDescriptor(TypeTag.DISPATCHER_TYPE)
CLUSTER = TypeDescriptor(TypeTag.CLUSTER)


def array_of(element: TypeDescriptor) -> TypeDescriptor:
    """Descriptor for an array whose items all have type *element*."""
    return TypeDescriptor(TypeTag.ARRAY, element)


def map_of(element: TypeDescriptor) -> TypeDescriptor:
    """Descriptor for a string-keyed map whose values all have type *element*."""
    return TypeDescriptor(TypeTag.MAP, element)
