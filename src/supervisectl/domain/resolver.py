"""Resolver - validate a parsed directive body and build its domain object.

Given a directive name and its body, the resolver:

1. looks the directive up in the registry (``UNKNOWN_DIRECTIVE``);
2. walks the variants in declaration order and selects the first one
   whose fields are all supplied and all type-valid;
3. converts every field value, recursing into arrays, maps and nested
   directive blocks, so inner failures carry their full path
   (``retries.count``, ``workers[2]``);
4. calls the selected variant's constructor.

INVARIANT: validation failures are returned in :class:`Resolution`,
never raised. Only schema-definition defects raise.

The resolver holds no mutable state between calls; one instance can be
shared by any number of threads.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from supervisectl.domain.errors import Issue, IssueCode, SourceLocation
from supervisectl.domain.objects import (
    POLICY_KINDS,
    DirectiveValue,
    DispatcherSpec,
    DispatcherType,
    MessageAction,
    MessageDirectiveValue,
    ProcessFlag,
    Reference,
    SupervisionStrategy,
)
from supervisectl.domain.registry import DirectiveRegistry
from supervisectl.domain.schema import DirectiveSchema, VariantSchema
from supervisectl.domain.types import TypeDescriptor, TypeTag
from supervisectl.domain.values import (
    ArrayValue,
    LiteralKind,
    LiteralValue,
    MappingValue,
    ParsedEntry,
    ParsedValue,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64
# Upper bound for max_depth; deeper trees hit the interpreter recursion limit first.
MAX_DEPTH_LIMIT = 128

_FLAG_SEPARATORS = re.compile(r"[|,\s]+")

# Named slots whose vocabulary is closed: unknown names are errors.
_CLOSED_DIRECTIVE_SLOTS = frozenset({TypeTag.DIRECTIVE, TypeTag.STRATEGY_REDIRECT})

_FLAG_NAMES = frozenset(f.value for f in ProcessFlag)
_DISPATCHER_TYPES = frozenset(d.value for d in DispatcherType)


class ExtraFieldPolicy(StrEnum):
    """What to do with supplied fields the selected variant does not declare."""

    FORBID = "forbid"
    WARN = "warn"
    IGNORE = "ignore"


class ResolverPolicy(BaseModel):
    """Explicit answers to the schema model's open questions.

    Attributes:
        extra_fields: ``forbid`` makes a variant match only when the
            supplied field set equals its declared set.
        widen_numbers: Let int literals satisfy ``double`` fields.
        max_depth: Nesting limit guarding against pathological trees,
            at most ``MAX_DEPTH_LIMIT``.
    """

    model_config = {"frozen": True}

    extra_fields: ExtraFieldPolicy = ExtraFieldPolicy.FORBID
    widen_numbers: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one directive.

    Attributes:
        directive: Name that was resolved.
        value: Constructed domain object (or validated mapping for
            variants without a constructor); None on failure.
        issues: Every validation failure found; empty on success.
        warnings: Non-fatal findings (unused fields under ``warn``).
        variant: Index of the selected variant.
    """

    directive: str
    value: Any = None
    issues: tuple[Issue, ...] = ()
    warnings: tuple[str, ...] = ()
    variant: int | None = None

    @property
    def ok(self) -> bool:
        return not self.issues


# ---------------------------------------------------------------------------
# Internal bookkeeping
# ---------------------------------------------------------------------------


@dataclass
class _Outcome:
    value: Any = None
    issues: list[Issue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    variant: int | None = None

    @property
    def ok(self) -> bool:
        return not self.issues


@dataclass
class _Pass:
    """State of one top-level ``resolve`` call; discarded afterwards."""

    root: str
    cache: dict[tuple[int, TypeDescriptor, str], _Outcome] = field(default_factory=dict)


@dataclass(frozen=True)
class _Candidate:
    index: int
    variant: VariantSchema
    present: int
    missing: frozenset[str]
    unexpected: frozenset[str]

    def beats(self, other: _Candidate | None) -> bool:
        if other is None:
            return True
        return (self.present, -len(self.missing), -len(self.unexpected)) > (
            other.present,
            -len(other.missing),
            -len(other.unexpected),
        )


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _sorted(names: frozenset[str] | set[str]) -> list[str]:
    return sorted(names)


def _error_text(exc: ValueError) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(str(err["msg"]) for err in exc.errors())
    return str(exc)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class Resolver:
    """Schema-driven validator and object builder."""

    def __init__(self, registry: DirectiveRegistry, policy: ResolverPolicy | None = None) -> None:
        self._registry = registry
        self._policy = policy or ResolverPolicy()

    @property
    def registry(self) -> DirectiveRegistry:
        return self._registry

    @property
    def policy(self) -> ResolverPolicy:
        return self._policy

    # --- Public API ---

    def resolve(
        self,
        name: str,
        body: MappingValue | Mapping[str, ParsedValue] | None = None,
    ) -> Resolution:
        """Validate *body* against directive *name* and construct the result."""
        if body is None:
            body = MappingValue()
        elif not isinstance(body, MappingValue):
            body = MappingValue(body, name=name)
        state = _Pass(root=name)
        outcome = self._resolve_directive(name, body, path="", depth=0, state=state)
        if outcome.ok:
            logger.debug("Resolved %s with variant %s", name, outcome.variant)
        else:
            logger.debug("Rejected %s with %d issue(s)", name, len(outcome.issues))
        return Resolution(
            directive=name,
            value=outcome.value if outcome.ok else None,
            issues=tuple(outcome.issues),
            warnings=tuple(outcome.warnings),
            variant=outcome.variant if outcome.ok else None,
        )

    def resolve_entry(self, entry: ParsedEntry) -> Resolution:
        """Resolve one top-level document entry."""
        body = entry.body
        if body.location is None and entry.location is not None:
            body = MappingValue(body.fields, name=body.name, location=entry.location)
        return self.resolve(entry.directive, body)

    # --- Directive level ---

    def _resolve_directive(
        self,
        name: str,
        body: MappingValue,
        *,
        path: str,
        depth: int,
        state: _Pass,
    ) -> _Outcome:
        schema = self._registry.lookup(name)
        if schema is None:
            return _Outcome(
                issues=[
                    Issue(
                        code=IssueCode.UNKNOWN_DIRECTIVE,
                        directive=state.root,
                        path=path,
                        message=f"unknown directive '{name}'",
                        actual=name,
                        location=body.location,
                    )
                ]
            )

        supplied = frozenset(body.fields)
        forbid = self._policy.extra_fields is ExtraFieldPolicy.FORBID
        closest: _Candidate | None = None
        first_failure: list[Issue] | None = None

        for index, var in enumerate(schema.variants):
            required = var.field_names
            missing = required - supplied
            unexpected = supplied - required if forbid else frozenset()
            if missing or unexpected:
                candidate = _Candidate(index, var, len(required & supplied), missing, unexpected)
                if candidate.beats(closest):
                    closest = candidate
                continue

            values: dict[str, Any] = {}
            issues: list[Issue] = []
            warnings: list[str] = []
            for f in var.fields:
                converted = self._convert(
                    f.type,
                    body.fields[f.name],
                    path=_join(path, f.name),
                    depth=depth + 1,
                    state=state,
                    fallback_name=f.name,
                )
                issues.extend(converted.issues)
                warnings.extend(converted.warnings)
                values[f.name] = converted.value

            if issues:
                if first_failure is None:
                    first_failure = issues
                continue

            for extra in _sorted(supplied - required):
                if self._policy.extra_fields is ExtraFieldPolicy.WARN:
                    warnings.append(
                        f"{state.root}: field '{_join(path, extra)}' is not used by "
                        f"the selected variant of '{name}' ({var.signature() or 'no fields'})"
                    )
            outcome = self._construct(schema, index, var, values, path, body, state)
            outcome.warnings[:0] = warnings
            return outcome

        if first_failure is not None:
            return _Outcome(issues=first_failure)
        return _Outcome(
            issues=self._no_match_issues(schema, supplied, closest, path, body, depth, state)
        )

    def _construct(
        self,
        schema: DirectiveSchema,
        index: int,
        var: VariantSchema,
        values: dict[str, Any],
        path: str,
        body: MappingValue,
        state: _Pass,
    ) -> _Outcome:
        if var.build is None:
            return _Outcome(value=dict(values), variant=index)
        try:
            obj = var.build(MappingProxyType(values))
        except ValueError as exc:
            return _Outcome(
                issues=[
                    Issue(
                        code=IssueCode.INVALID_VALUE,
                        directive=state.root,
                        path=path,
                        message=f"invalid '{schema.name}': {_error_text(exc)}",
                        expected=var.signature() or None,
                        location=body.location,
                        detail={"nested_directive": schema.name} if path else {},
                    )
                ]
            )
        return _Outcome(value=obj, variant=index)

    def _no_match_issues(
        self,
        schema: DirectiveSchema,
        supplied: frozenset[str],
        closest: _Candidate | None,
        path: str,
        body: MappingValue,
        depth: int,
        state: _Pass,
    ) -> list[Issue]:
        assert closest is not None  # every schema has >= 1 variant
        if not closest.missing and closest.unexpected:
            # Report the closest variant's own type failures together with its extras.
            issues = [
                issue
                for f in closest.variant.fields
                for issue in self._convert(
                    f.type,
                    body.fields[f.name],
                    path=_join(path, f.name),
                    depth=depth + 1,
                    state=state,
                    fallback_name=f.name,
                ).issues
            ]
            return issues + [
                Issue(
                    code=IssueCode.UNEXPECTED_FIELD,
                    directive=state.root,
                    path=_join(path, extra),
                    message=f"'{schema.name}' does not accept field '{extra}'",
                    expected=closest.variant.signature() or "no fields",
                    location=body.fields[extra].location or body.location,
                )
                for extra in _sorted(closest.unexpected)
            ]

        supplied_text = ", ".join(_sorted(supplied)) or "no fields"
        parts = []
        if closest.missing:
            parts.append(f"missing {', '.join(_sorted(closest.missing))}")
        if closest.unexpected:
            parts.append(f"unexpected {', '.join(_sorted(closest.unexpected))}")
        return [
            Issue(
                code=IssueCode.NO_MATCHING_VARIANT,
                directive=state.root,
                path=path,
                message=(
                    f"no variant of '{schema.name}' accepts ({supplied_text}); closest is "
                    f"({closest.variant.signature() or 'no fields'}): {'; '.join(parts)}"
                ),
                expected=closest.variant.signature() or "no fields",
                actual=supplied_text,
                location=body.location,
                detail={
                    "nested_directive": schema.name,
                    "closest_variant": closest.index,
                    "missing": _sorted(closest.missing),
                    "unexpected": _sorted(closest.unexpected),
                    "variants": [v.signature() for v in schema.variants],
                },
            )
        ]

    # --- Value level ---

    def _convert(
        self,
        type_: TypeDescriptor,
        value: ParsedValue,
        *,
        path: str,
        depth: int,
        state: _Pass,
        fallback_name: str | None = None,
    ) -> _Outcome:
        key = (id(value), type_, path)
        cached = state.cache.get(key)
        if cached is not None:
            return cached
        outcome = self._convert_uncached(
            type_, value, path=path, depth=depth, state=state, fallback_name=fallback_name
        )
        state.cache[key] = outcome
        return outcome

    def _convert_uncached(
        self,
        type_: TypeDescriptor,
        value: ParsedValue,
        *,
        path: str,
        depth: int,
        state: _Pass,
        fallback_name: str | None,
    ) -> _Outcome:
        if depth > self._policy.max_depth:
            return self._fail(
                IssueCode.DEPTH_EXCEEDED,
                f"nesting deeper than {self._policy.max_depth} levels",
                path,
                value,
                state,
            )

        if type_.tag is TypeTag.UNKNOWN:
            return _Outcome(value=to_native(value))

        if type_.is_primitive:
            if not type_.matches(value, widen_numbers=self._policy.widen_numbers):
                return self._mismatch(type_, value, path, state)
            assert isinstance(value, LiteralValue)
            if type_.tag is TypeTag.DOUBLE and value.kind is LiteralKind.INT:
                return _Outcome(value=float(value.value))
            return _Outcome(value=value.value)

        if type_.tag is TypeTag.ARRAY:
            if not isinstance(value, ArrayValue):
                return self._mismatch(type_, value, path, state)
            assert type_.element is not None
            return self._collect(
                [
                    (
                        None,
                        self._convert(
                            type_.element,
                            item,
                            path=f"{path}[{i}]",
                            depth=depth + 1,
                            state=state,
                        ),
                    )
                    for i, item in enumerate(value.items)
                ],
                as_list=True,
            )

        if type_.tag is TypeTag.MAP:
            if not isinstance(value, MappingValue):
                return self._mismatch(type_, value, path, state)
            assert type_.element is not None
            return self._collect(
                [
                    (
                        key,
                        self._convert(
                            type_.element,
                            item,
                            path=_join(path, key),
                            depth=depth + 1,
                            state=state,
                            fallback_name=key,
                        ),
                    )
                    for key, item in value.fields.items()
                ],
                as_list=False,
            )

        if isinstance(value, MappingValue):
            if not type_.accepts_nested_directive:
                return self._mismatch(type_, value, path, state)
            name = value.name or fallback_name
            if name is None:
                return self._fail(
                    IssueCode.INVALID_VALUE,
                    "nested directive block has no directive name",
                    path,
                    value,
                    state,
                    expected=type_.describe(),
                )
            nested = self._resolve_directive(name, value, path=path, depth=depth, state=state)
            return self._check_kind(type_, name, nested, path, value, state)

        if not type_.matches(value):
            return self._mismatch(type_, value, path, state)
        assert isinstance(value, LiteralValue)
        return self._convert_name(type_, value, path=path, depth=depth, state=state)

    def _convert_name(
        self,
        type_: TypeDescriptor,
        value: LiteralValue,
        *,
        path: str,
        depth: int,
        state: _Pass,
    ) -> _Outcome:
        """Convert a string literal sitting in a named domain slot."""
        text = str(value.value).strip()
        tag = type_.tag

        if tag is TypeTag.PROCESS_ID:
            if not _is_process_id(text):
                return self._fail(
                    IssueCode.INVALID_VALUE,
                    f"'{text}' is not a process id (expected '/path' or '@name')",
                    path,
                    value,
                    state,
                    expected=type_.describe(),
                )
            return _Outcome(value=text)

        if tag is TypeTag.PROCESS_NAME:
            if not text or "/" in text:
                return self._fail(
                    IssueCode.INVALID_VALUE,
                    f"'{text}' is not a process name",
                    path,
                    value,
                    state,
                    expected=type_.describe(),
                )
            return _Outcome(value=text)

        if tag is TypeTag.PROCESS_FLAGS:
            names = [n for n in _FLAG_SEPARATORS.split(text) if n]
            unknown = [n for n in names if n not in _FLAG_NAMES]
            if not names or unknown:
                return self._fail(
                    IssueCode.INVALID_VALUE,
                    f"unknown process flag(s): {', '.join(unknown) or '(none given)'}",
                    path,
                    value,
                    state,
                    expected=" | ".join(f.value for f in ProcessFlag),
                )
            return _Outcome(value=frozenset(ProcessFlag(n) for n in names))

        if tag is TypeTag.DISPATCHER_TYPE:
            if text not in _DISPATCHER_TYPES:
                return self._fail(
                    IssueCode.INVALID_VALUE,
                    f"unknown dispatcher type '{text}'",
                    path,
                    value,
                    state,
                    expected=" | ".join(d.value for d in DispatcherType),
                )
            return _Outcome(value=DispatcherType(text))

        if tag is TypeTag.STRATEGY_REDIRECT and _is_process_id(text):
            return _Outcome(
                value=MessageDirectiveValue(action=MessageAction.FORWARD_TO_PROCESS, target=text)
            )

        resolvable = type_.accepts_nested_directive or tag is TypeTag.STRATEGY_REDIRECT
        if resolvable and text in self._registry:
            empty = MappingValue(name=text, location=value.location)
            nested = self._resolve_directive(text, empty, path=path, depth=depth, state=state)
            return self._check_kind(type_, text, nested, path, value, state)

        if tag in _CLOSED_DIRECTIVE_SLOTS:
            return self._fail(
                IssueCode.UNKNOWN_DIRECTIVE,
                f"unknown directive '{text}'",
                path,
                value,
                state,
                expected=type_.describe(),
            )

        return _Outcome(value=Reference(type=tag.value, name=text))

    # --- Helpers ---

    def _check_kind(
        self,
        type_: TypeDescriptor,
        name: str,
        nested: _Outcome,
        path: str,
        value: ParsedValue,
        state: _Pass,
    ) -> _Outcome:
        if not nested.ok or not isinstance(nested.value, BaseModel):
            return nested
        if _kind_allowed(type_.tag, nested.value):
            return nested
        return _Outcome(
            issues=[
                Issue(
                    code=IssueCode.TYPE_MISMATCH,
                    directive=state.root,
                    path=path,
                    message=f"'{name}' cannot be used where {type_.describe()} is expected",
                    expected=type_.describe(),
                    actual=f"directive '{name}'",
                    location=value.location,
                )
            ]
        )

    @staticmethod
    def _collect(items: list[tuple[str | None, _Outcome]], *, as_list: bool) -> _Outcome:
        result = _Outcome()
        converted_list: list[Any] = []
        converted_map: dict[str, Any] = {}
        for key, outcome in items:
            result.issues.extend(outcome.issues)
            result.warnings.extend(outcome.warnings)
            if as_list:
                converted_list.append(outcome.value)
            else:
                assert key is not None
                converted_map[key] = outcome.value
        if result.ok:
            result.value = converted_list if as_list else converted_map
        return result

    def _mismatch(
        self,
        type_: TypeDescriptor,
        value: ParsedValue,
        path: str,
        state: _Pass,
    ) -> _Outcome:
        return _Outcome(
            issues=[
                Issue(
                    code=IssueCode.TYPE_MISMATCH,
                    directive=state.root,
                    path=path,
                    message=f"expected {type_.describe()}, got {value.shape()}",
                    expected=type_.describe(),
                    actual=value.shape(),
                    location=value.location,
                )
            ]
        )

    @staticmethod
    def _fail(
        code: IssueCode,
        message: str,
        path: str,
        value: ParsedValue,
        state: _Pass,
        *,
        expected: str | None = None,
    ) -> _Outcome:
        location: SourceLocation | None = value.location
        return _Outcome(
            issues=[
                Issue(
                    code=code,
                    directive=state.root,
                    path=path,
                    message=message,
                    expected=expected,
                    actual=value.shape(),
                    location=location,
                )
            ]
        )


def _is_process_id(text: str) -> bool:
    return len(text) >= 2 and text[0] in "/@"


def _kind_allowed(tag: TypeTag, obj: BaseModel) -> bool:
    kind = getattr(obj, "kind", None)
    if isinstance(obj, Reference):
        return True
    if tag is TypeTag.DIRECTIVE:
        return isinstance(obj, DirectiveValue)
    if tag is TypeTag.STRATEGY_REDIRECT:
        return isinstance(obj, MessageDirectiveValue)
    if tag is TypeTag.DISPATCHER:
        return isinstance(obj, DispatcherSpec)
    if tag is TypeTag.STRATEGY:
        return isinstance(obj, SupervisionStrategy) or kind in POLICY_KINDS
    return True


def to_native(value: ParsedValue) -> Any:
    """Strip a parsed value down to plain Python data."""
    if isinstance(value, LiteralValue):
        return value.value
    if isinstance(value, ArrayValue):
        return [to_native(item) for item in value.items]
    return {key: to_native(item) for key, item in value.fields.items()}
