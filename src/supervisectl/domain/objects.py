"""Domain objects produced by directive constructors.

Every object carries a literal ``kind`` and :data:`DomainObject` is the
discriminated union of all of them, so the supervising runtime can
``match`` on the concrete kinds instead of probing an opaque object::

    match obj:
        case RetryPolicy(count=n):
            ...
        case SupervisionStrategy(scope=StrategyScope.ONE_FOR_ONE):
            ...

All models are frozen. Invariants that go beyond the argument types
(``min <= max`` for backoff, non-negative retry counts) are enforced by
pydantic here and surface as ``INVALID_VALUE`` issues.
"""

from __future__ import annotations

from datetime import timedelta
from enum import StrEnum
from typing import Annotated, Literal, Self

from pydantic import BaseModel, Field, TypeAdapter, model_validator

WILDCARD = "_"


class DirectiveAction(StrEnum):
    """What the supervisor does with a failed process."""

    RESUME = "resume"
    RESTART = "restart"
    STOP = "stop"
    ESCALATE = "escalate"


class MessageAction(StrEnum):
    """What happens to the message that was being processed at failure time."""

    FORWARD_TO_SELF = "forward-to-self"
    FORWARD_TO_PARENT = "forward-to-parent"
    FORWARD_TO_DEAD_LETTERS = "forward-to-dead-letters"
    FORWARD_TO_PROCESS = "forward-to-process"
    STAY_IN_QUEUE = "stay-in-queue"


class StrategyScope(StrEnum):
    """Which children a supervision decision applies to."""

    ONE_FOR_ONE = "one-for-one"
    ALL_FOR_ONE = "all-for-one"


class DispatcherType(StrEnum):
    """Message routing modes for a dispatcher."""

    BROADCAST = "broadcast"
    LEAST_BUSY = "least-busy"
    ROUND_ROBIN = "round-robin"
    RANDOM = "random"
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    LAST = "last"


class ProcessFlag(StrEnum):
    """Persistence and publishing flags for a process."""

    DEFAULT = "default"
    PERSIST_INBOX = "persist-inbox"
    PERSIST_STATE = "persist-state"
    PERSIST_ALL = "persist-all"
    REMOTE_PUBLISH = "remote-publish"
    REMOTE_STATE_PUBLISH = "remote-state-publish"


# --- Directives ---


class DirectiveValue(BaseModel):
    """A supervision directive (``restart``, ``stop``, ...)."""

    model_config = {"frozen": True}

    kind: Literal["directive"] = "directive"
    action: DirectiveAction


class MessageDirectiveValue(BaseModel):
    """Routing of the in-flight message after a failure."""

    model_config = {"frozen": True}

    kind: Literal["message-directive"] = "message-directive"
    action: MessageAction
    target: str | None = None

    @model_validator(mode="after")
    def _target_only_for_forward(self) -> Self:
        if (self.action is MessageAction.FORWARD_TO_PROCESS) != (self.target is not None):
            msg = "target is required for forward-to-process and only allowed there"
            raise ValueError(msg)
        return self


# --- Strategy policies ---


class RetryPolicy(BaseModel):
    """Give up after ``count`` failures (optionally within a time window)."""

    model_config = {"frozen": True}

    kind: Literal["retries"] = "retries"
    count: int = Field(ge=0)
    within: timedelta | None = None


class FixedBackoff(BaseModel):
    """Wait the same duration before every restart."""

    model_config = {"frozen": True}

    kind: Literal["backoff-fixed"] = "backoff-fixed"
    duration: timedelta


class LinearBackoff(BaseModel):
    """Wait ``min``, then add ``step`` per failure, capped at ``max``."""

    model_config = {"frozen": True}

    kind: Literal["backoff-linear"] = "backoff-linear"
    min: timedelta
    max: timedelta
    step: timedelta

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min > self.max:
            msg = "backoff min must not exceed max"
            raise ValueError(msg)
        if self.step <= timedelta(0):
            msg = "backoff step must be positive"
            raise ValueError(msg)
        return self


class ExponentialBackoff(BaseModel):
    """Wait ``min``, then multiply by ``scalar`` per failure, capped at ``max``."""

    model_config = {"frozen": True}

    kind: Literal["backoff-exponential"] = "backoff-exponential"
    min: timedelta
    max: timedelta
    scalar: float = Field(gt=1.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min > self.max:
            msg = "backoff min must not exceed max"
            raise ValueError(msg)
        return self


class AlwaysRule(BaseModel):
    """Apply one directive regardless of the failure."""

    model_config = {"frozen": True}

    kind: Literal["always"] = "always"
    directive: DirectiveValue


class MatchCase(BaseModel):
    model_config = {"frozen": True}

    failure: str
    directive: DirectiveValue


class MatchRule(BaseModel):
    """Pick a directive by failure type; ``_`` matches anything."""

    model_config = {"frozen": True}

    kind: Literal["match"] = "match"
    cases: tuple[MatchCase, ...] = Field(min_length=1)


class RedirectCase(BaseModel):
    model_config = {"frozen": True}

    when: DirectiveAction | Literal["_"]
    to: MessageDirectiveValue


class RedirectRule(BaseModel):
    """Route the in-flight message depending on the directive taken."""

    model_config = {"frozen": True}

    kind: Literal["redirect"] = "redirect"
    cases: tuple[RedirectCase, ...] = Field(min_length=1)


StrategyPolicy = Annotated[
    RetryPolicy
    | FixedBackoff
    | LinearBackoff
    | ExponentialBackoff
    | AlwaysRule
    | MatchRule
    | RedirectRule,
    Field(discriminator="kind"),
]

POLICY_KINDS: frozenset[str] = frozenset(
    {
        "retries",
        "backoff-fixed",
        "backoff-linear",
        "backoff-exponential",
        "always",
        "match",
        "redirect",
    }
)


class SupervisionStrategy(BaseModel):
    """A complete supervision strategy: scope plus ordered policies."""

    model_config = {"frozen": True}

    kind: Literal["strategy"] = "strategy"
    scope: StrategyScope = StrategyScope.ONE_FOR_ONE
    policies: tuple[StrategyPolicy, ...] = ()

    @model_validator(mode="after")
    def _one_policy_per_kind(self) -> Self:
        seen: set[str] = set()
        for policy in self.policies:
            family = "backoff" if policy.kind.startswith("backoff") else policy.kind
            if family in seen:
                msg = f"strategy declares more than one {family!r} policy"
                raise ValueError(msg)
            seen.add(family)
        return self

    @property
    def retries(self) -> RetryPolicy | None:
        return next((p for p in self.policies if isinstance(p, RetryPolicy)), None)

    @property
    def backoff(self) -> FixedBackoff | LinearBackoff | ExponentialBackoff | None:
        return next(
            (
                p
                for p in self.policies
                if isinstance(p, FixedBackoff | LinearBackoff | ExponentialBackoff)
            ),
            None,
        )

    @property
    def redirect(self) -> RedirectRule | None:
        return next((p for p in self.policies if isinstance(p, RedirectRule)), None)


# --- Process / dispatcher / cluster settings ---


class Reference(BaseModel):
    """A name left for the runtime to resolve (e.g. a named strategy)."""

    model_config = {"frozen": True}

    kind: Literal["reference"] = "reference"
    type: str
    name: str


class DispatcherSpec(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["dispatcher"] = "dispatcher"
    type: DispatcherType
    workers: tuple[str, ...] = ()


class ProcessSettings(BaseModel):
    """Per-process supervision settings."""

    model_config = {"frozen": True}

    kind: Literal["process"] = "process"
    pid: str
    strategy: SupervisionStrategy | Reference | None = None
    flags: frozenset[ProcessFlag] = frozenset()
    mailbox_size: int | None = Field(default=None, gt=0)
    dispatch: DispatcherSpec | Reference | None = None


class ClusterSettings(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["cluster"] = "cluster"
    node_name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    connection: str = "localhost"
    database: str = "0"


DomainObject = Annotated[
    DirectiveValue
    | MessageDirectiveValue
    | RetryPolicy
    | FixedBackoff
    | LinearBackoff
    | ExponentialBackoff
    | AlwaysRule
    | MatchRule
    | RedirectRule
    | SupervisionStrategy
    | Reference
    | DispatcherSpec
    | ProcessSettings
    | ClusterSettings,
    Field(discriminator="kind"),
]

DOMAIN_OBJECT_ADAPTER: TypeAdapter[DomainObject] = TypeAdapter(DomainObject)
