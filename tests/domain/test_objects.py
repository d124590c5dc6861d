"""Tests for the domain objects produced by directive constructors."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from supervisectl.domain.objects import (
    DOMAIN_OBJECT_ADAPTER,
    DirectiveAction,
    DirectiveValue,
    ExponentialBackoff,
    FixedBackoff,
    LinearBackoff,
    MatchRule,
    MessageAction,
    MessageDirectiveValue,
    ProcessFlag,
    ProcessSettings,
    RedirectCase,
    RetryPolicy,
    StrategyScope,
    SupervisionStrategy,
)


class TestMessageDirective:
    def test_forward_to_process_needs_target(self) -> None:
        with pytest.raises(ValidationError):
            MessageDirectiveValue(action=MessageAction.FORWARD_TO_PROCESS)

    def test_target_only_for_forward_to_process(self) -> None:
        with pytest.raises(ValidationError):
            MessageDirectiveValue(action=MessageAction.FORWARD_TO_SELF, target="/root/x")

    def test_valid_target(self) -> None:
        value = MessageDirectiveValue(action=MessageAction.FORWARD_TO_PROCESS, target="@dead")
        assert value.target == "@dead"


class TestBackoff:
    def test_linear_bounds(self) -> None:
        with pytest.raises(ValidationError):
            LinearBackoff(min=timedelta(seconds=5), max=timedelta(seconds=1), step=timedelta(1))

    def test_linear_step_positive(self) -> None:
        with pytest.raises(ValidationError):
            LinearBackoff(min=timedelta(0), max=timedelta(seconds=1), step=timedelta(0))

    def test_exponential_scalar_above_one(self) -> None:
        with pytest.raises(ValidationError):
            ExponentialBackoff(min=timedelta(0), max=timedelta(seconds=1), scalar=1.0)


class TestSupervisionStrategy:
    def test_one_policy_per_family(self) -> None:
        with pytest.raises(ValidationError, match="more than one 'backoff'"):
            SupervisionStrategy(
                policies=(
                    FixedBackoff(duration=timedelta(seconds=1)),
                    ExponentialBackoff(
                        min=timedelta(seconds=1), max=timedelta(seconds=9), scalar=2.0
                    ),
                )
            )

    def test_accessors(self) -> None:
        retries = RetryPolicy(count=3)
        strategy = SupervisionStrategy(scope=StrategyScope.ALL_FOR_ONE, policies=(retries,))
        assert strategy.retries is retries
        assert strategy.backoff is None
        assert strategy.redirect is None

    def test_match_rule_needs_cases(self) -> None:
        with pytest.raises(ValidationError):
            MatchRule(cases=())

    def test_redirect_case_wildcard(self) -> None:
        case = RedirectCase(when="_", to=MessageDirectiveValue(action=MessageAction.STAY_IN_QUEUE))
        assert case.when == "_"

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(count=1).count = 2  # type: ignore[misc]


class TestDiscriminatedUnion:
    def test_round_trip_by_kind(self) -> None:
        strategy = SupervisionStrategy(
            policies=(RetryPolicy(count=2, within=timedelta(seconds=10)),)
        )
        dumped = strategy.model_dump(mode="json")
        assert DOMAIN_OBJECT_ADAPTER.validate_python(dumped) == strategy

    def test_dispatch_on_kind(self) -> None:
        obj = DOMAIN_OBJECT_ADAPTER.validate_python({"kind": "directive", "action": "stop"})
        assert obj == DirectiveValue(action=DirectiveAction.STOP)

    def test_process_flags(self) -> None:
        settings = ProcessSettings(pid="/root/a", flags=frozenset({ProcessFlag.PERSIST_INBOX}))
        assert ProcessFlag.PERSIST_INBOX in settings.flags
        assert settings.mailbox_size is None
