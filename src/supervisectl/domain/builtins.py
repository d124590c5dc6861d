"""Built-in directive schemas for supervision configuration.

Variants are declared most specific first: the resolver picks the first
variant whose fields are all present and valid, so ``retries`` with
``count`` and ``duration`` must come before ``retries`` with ``count``.

Example configuration these schemas accept (parser syntax)::

    strategy:
        one-for-one:
            retries: count = 5, duration = 30 seconds
            backoff: min = 1 second, max = 100 seconds, step = 2 seconds
            match
            | ArgumentNullException -> stop
            | _                     -> restart
            redirect when
            | restart -> forward-to-parent
            | _       -> forward-to-self
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from supervisectl.domain.objects import (
    POLICY_KINDS,
    WILDCARD,
    AlwaysRule,
    ClusterSettings,
    DirectiveAction,
    DirectiveValue,
    DispatcherSpec,
    ExponentialBackoff,
    FixedBackoff,
    LinearBackoff,
    MatchCase,
    MatchRule,
    MessageAction,
    MessageDirectiveValue,
    ProcessSettings,
    RedirectCase,
    RedirectRule,
    RetryPolicy,
    StrategyScope,
    SupervisionStrategy,
)
from supervisectl.domain.schema import DirectiveSchema, FieldSchema, directive, no_args, variant
from supervisectl.domain.types import (
    DIRECTIVE,
    DISPATCHER,
    DISPATCHER_TYPE,
    DOUBLE,
    DURATION,
    INT,
    PROCESS_FLAGS,
    PROCESS_ID,
    STRATEGY,
    STRATEGY_REDIRECT,
    STRING,
    array_of,
    map_of,
)

# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def _directive_action(action: DirectiveAction) -> Callable[[], DirectiveValue]:
    return lambda: DirectiveValue(action=action)


def _message_action(action: MessageAction) -> Callable[[], MessageDirectiveValue]:
    return lambda: MessageDirectiveValue(action=action)


def _forward_to_process(v: Mapping[str, Any]) -> MessageDirectiveValue:
    return MessageDirectiveValue(action=MessageAction.FORWARD_TO_PROCESS, target=v["pid"])


def _retries(v: Mapping[str, Any]) -> RetryPolicy:
    return RetryPolicy(count=v["count"], within=v.get("duration"))


def _fixed_backoff(v: Mapping[str, Any]) -> FixedBackoff:
    return FixedBackoff(duration=v["duration"])


def _linear_backoff(v: Mapping[str, Any]) -> LinearBackoff:
    return LinearBackoff(min=v["min"], max=v["max"], step=v["step"])


def _exponential_backoff(v: Mapping[str, Any]) -> ExponentialBackoff:
    return ExponentialBackoff(min=v["min"], max=v["max"], scalar=v["scalar"])


def _always(v: Mapping[str, Any]) -> AlwaysRule:
    return AlwaysRule(directive=v["directive"])


def _match(v: Mapping[str, Any]) -> MatchRule:
    return MatchRule(
        cases=tuple(MatchCase(failure=name, directive=d) for name, d in v["when"].items())
    )


def _redirect_cases(when: Mapping[str, MessageDirectiveValue]) -> tuple[RedirectCase, ...]:
    cases = []
    for key, target in when.items():
        if key != WILDCARD and key not in {a.value for a in DirectiveAction}:
            msg = f"cannot redirect on '{key}': not a directive"
            raise ValueError(msg)
        cases.append(RedirectCase(when=key, to=target))
    return tuple(cases)


def _redirect(v: Mapping[str, Any]) -> RedirectRule:
    return RedirectRule(cases=_redirect_cases(v["when"]))


def _scoped(scope: StrategyScope, field: str) -> Callable[[Mapping[str, Any]], SupervisionStrategy]:
    def build(v: Mapping[str, Any]) -> SupervisionStrategy:
        return _strategy_from(scope, v[field])

    return build


def _strategy_from(scope: StrategyScope, items: list[Any]) -> SupervisionStrategy:
    if not items:
        msg = f"{scope} needs at least one policy"
        raise ValueError(msg)
    for item in items:
        kind = getattr(item, "kind", None)
        if kind not in POLICY_KINDS:
            msg = f"{scope} cannot contain {kind or type(item).__name__!s}"
            raise ValueError(msg)
    return SupervisionStrategy(scope=scope, policies=tuple(items))


def _shorthand_strategy(v: Mapping[str, Any]) -> SupervisionStrategy:
    if not isinstance(v["retries"], RetryPolicy):
        msg = "the retries slot must hold a retries policy"
        raise ValueError(msg)
    policies: list[Any] = [v["retries"]]
    if "backoff" in v:
        if not isinstance(v["backoff"], FixedBackoff | LinearBackoff | ExponentialBackoff):
            msg = "the backoff slot must hold a backoff policy"
            raise ValueError(msg)
        policies.append(v["backoff"])
    if "redirect" in v:
        policies.append(RedirectRule(cases=_redirect_cases(v["redirect"])))
    return _strategy_from(StrategyScope.ONE_FOR_ONE, policies)


def _dispatcher(v: Mapping[str, Any]) -> DispatcherSpec:
    return DispatcherSpec(type=v["type"], workers=tuple(v.get("workers", ())))


def _process(v: Mapping[str, Any]) -> ProcessSettings:
    return ProcessSettings(
        pid=v["pid"],
        strategy=v.get("strategy"),
        flags=v.get("flags", frozenset()),
        mailbox_size=v.get("mailbox-size"),
        dispatch=v.get("dispatcher"),
    )


def _cluster(v: Mapping[str, Any]) -> ClusterSettings:
    return ClusterSettings(node_name=v["node-name"], role=v["role"], **_cluster_extras(v))


def _cluster_extras(v: Mapping[str, Any]) -> dict[str, str]:
    return {key: v[key] for key in ("connection", "database") if key in v}


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


def _directives() -> list[DirectiveSchema]:
    return [no_args(a.value, _directive_action(a)) for a in DirectiveAction]


def _message_directives() -> list[DirectiveSchema]:
    bare = [
        no_args(a.value, _message_action(a))
        for a in MessageAction
        if a is not MessageAction.FORWARD_TO_PROCESS
    ]
    return [
        *bare,
        directive(
            MessageAction.FORWARD_TO_PROCESS.value,
            variant(FieldSchema("pid", PROCESS_ID), build=_forward_to_process),
        ),
    ]


def _policies() -> list[DirectiveSchema]:
    count = FieldSchema("count", INT)
    lo, hi = FieldSchema("min", DURATION), FieldSchema("max", DURATION)
    return [
        directive(
            "retries",
            variant(count, FieldSchema("duration", DURATION), build=_retries),
            variant(count, build=_retries),
        ),
        directive(
            "backoff",
            variant(lo, hi, FieldSchema("step", DURATION), build=_linear_backoff),
            variant(lo, hi, FieldSchema("scalar", DOUBLE), build=_exponential_backoff),
            variant(FieldSchema("duration", DURATION), build=_fixed_backoff),
        ),
        directive("always", variant(FieldSchema("directive", DIRECTIVE), build=_always)),
        directive("match", variant(FieldSchema("when", map_of(DIRECTIVE)), build=_match)),
        directive(
            "redirect",
            variant(FieldSchema("when", map_of(STRATEGY_REDIRECT)), build=_redirect),
        ),
    ]


def _strategies() -> list[DirectiveSchema]:
    policies = FieldSchema("policies", array_of(STRATEGY))
    retries = FieldSchema("retries", STRATEGY)
    backoff = FieldSchema("backoff", STRATEGY)
    redirect = FieldSchema("redirect", map_of(STRATEGY_REDIRECT))
    return [
        directive(
            StrategyScope.ONE_FOR_ONE.value,
            variant(policies, build=_scoped(StrategyScope.ONE_FOR_ONE, "policies")),
        ),
        directive(
            StrategyScope.ALL_FOR_ONE.value,
            variant(policies, build=_scoped(StrategyScope.ALL_FOR_ONE, "policies")),
        ),
        directive(
            "strategy",
            variant(retries, backoff, redirect, build=_shorthand_strategy),
            variant(retries, redirect, build=_shorthand_strategy),
            variant(retries, backoff, build=_shorthand_strategy),
            variant(retries, build=_shorthand_strategy),
            variant(
                FieldSchema("one-for-one", array_of(STRATEGY)),
                build=_scoped(StrategyScope.ONE_FOR_ONE, "one-for-one"),
            ),
            variant(
                FieldSchema("all-for-one", array_of(STRATEGY)),
                build=_scoped(StrategyScope.ALL_FOR_ONE, "all-for-one"),
            ),
        ),
    ]


def _settings() -> list[DirectiveSchema]:
    pid = FieldSchema("pid", PROCESS_ID)
    strategy = FieldSchema("strategy", STRATEGY)
    flags = FieldSchema("flags", PROCESS_FLAGS)
    node, role = FieldSchema("node-name", STRING), FieldSchema("role", STRING)
    return [
        directive(
            "dispatcher",
            variant(
                FieldSchema("type", DISPATCHER_TYPE),
                FieldSchema("workers", array_of(PROCESS_ID)),
                build=_dispatcher,
            ),
            variant(FieldSchema("type", DISPATCHER_TYPE), build=_dispatcher),
        ),
        directive(
            "process",
            variant(pid, strategy, flags, FieldSchema("mailbox-size", INT), build=_process),
            variant(pid, strategy, build=_process),
            variant(pid, FieldSchema("dispatcher", DISPATCHER), build=_process),
            variant(pid, flags, build=_process),
            variant(pid, build=_process),
        ),
        directive(
            "cluster",
            variant(
                node,
                role,
                FieldSchema("connection", STRING),
                FieldSchema("database", STRING),
                build=_cluster,
            ),
            variant(node, role, build=_cluster),
        ),
    ]


def builtin_directives() -> list[DirectiveSchema]:
    """All built-in directive schemas, in registration order."""
    return [
        *_directives(),
        *_message_directives(),
        *_policies(),
        *_strategies(),
        *_settings(),
    ]
