"""Tests for the built-in directive schemas."""

from datetime import timedelta

import pytest

from supervisectl.domain.builtins import builtin_directives
from supervisectl.domain.errors import IssueCode
from supervisectl.domain.objects import (
    AlwaysRule,
    ClusterSettings,
    DirectiveAction,
    DispatcherType,
    FixedBackoff,
    MatchRule,
    MessageAction,
    ProcessFlag,
    StrategyScope,
)
from supervisectl.domain.resolver import Resolver
from supervisectl.domain.values import ArrayValue, MappingValue, block, lit


class TestCatalogue:
    def test_names_are_unique(self) -> None:
        names = [s.name for s in builtin_directives()]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize("action", list(DirectiveAction))
    def test_directive_actions(self, resolver: Resolver, action: DirectiveAction) -> None:
        result = resolver.resolve(action.value)
        assert result.value.action is action

    @pytest.mark.parametrize(
        "action",
        [a for a in MessageAction if a is not MessageAction.FORWARD_TO_PROCESS],
    )
    def test_message_directives(self, resolver: Resolver, action: MessageAction) -> None:
        assert resolver.resolve(action.value).value.action is action

    def test_forward_to_process(self, resolver: Resolver) -> None:
        result = resolver.resolve("forward-to-process", block(pid=lit("@dead-letters")))
        assert result.value.target == "@dead-letters"

    def test_forward_to_process_validates_pid(self, resolver: Resolver) -> None:
        result = resolver.resolve("forward-to-process", block(pid=lit("dead-letters")))
        (issue,) = result.issues
        assert issue.code is IssueCode.INVALID_VALUE
        assert issue.path == "pid"


class TestPolicies:
    def test_fixed_backoff(self, resolver: Resolver) -> None:
        result = resolver.resolve("backoff", block(duration=lit(timedelta(seconds=3))))
        assert result.value == FixedBackoff(duration=timedelta(seconds=3))

    def test_always(self, resolver: Resolver) -> None:
        result = resolver.resolve("always", block(directive=lit("escalate")))
        assert isinstance(result.value, AlwaysRule)
        assert result.value.directive.action is DirectiveAction.ESCALATE

    def test_match_keeps_case_order(self, resolver: Resolver) -> None:
        when = MappingValue({"TimeoutError": lit("restart"), "_": lit("stop")})
        result = resolver.resolve("match", block(when=when))
        assert isinstance(result.value, MatchRule)
        assert [c.failure for c in result.value.cases] == ["TimeoutError", "_"]

    def test_redirect_key_must_be_directive(self, resolver: Resolver) -> None:
        result = resolver.resolve("redirect", block(when=block(reboot=lit("forward-to-self"))))
        (issue,) = result.issues
        assert issue.code is IssueCode.INVALID_VALUE
        assert "reboot" in issue.message

    def test_empty_policy_list(self, resolver: Resolver) -> None:
        result = resolver.resolve("one-for-one", block(policies=ArrayValue()))
        assert [i.code for i in result.issues] == [IssueCode.INVALID_VALUE]

    def test_strategy_cannot_nest_strategy(self, resolver: Resolver) -> None:
        inner = block("one-for-one", policies=ArrayValue((block("retries", count=lit(1)),)))
        result = resolver.resolve("all-for-one", block(policies=ArrayValue((inner,))))
        assert [i.code for i in result.issues] == [IssueCode.INVALID_VALUE]


class TestStrategyShorthand:
    def test_scope_variant(self, resolver: Resolver) -> None:
        body = MappingValue(
            {"all-for-one": ArrayValue((block("retries", count=lit(2)),))}, name="strategy"
        )
        result = resolver.resolve("strategy", body)
        assert result.value.scope is StrategyScope.ALL_FOR_ONE

    def test_retries_slot_must_hold_retries(self, resolver: Resolver) -> None:
        body = block(retries=block("backoff", duration=lit(timedelta(seconds=1))))
        result = resolver.resolve("strategy", body)
        (issue,) = result.issues
        assert issue.code is IssueCode.INVALID_VALUE
        assert "retries slot" in issue.message

    def test_retries_reference_is_rejected(self, resolver: Resolver) -> None:
        result = resolver.resolve("strategy", block(retries=lit("five")))
        assert [i.code for i in result.issues] == [IssueCode.INVALID_VALUE]


class TestSettings:
    def test_process_with_flags(self, resolver: Resolver) -> None:
        body = block(pid=lit("/root/user/worker"), flags=lit("persist-inbox | remote-publish"))
        result = resolver.resolve("process", body)
        assert result.value.flags == frozenset(
            {ProcessFlag.PERSIST_INBOX, ProcessFlag.REMOTE_PUBLISH}
        )

    def test_unknown_flag(self, resolver: Resolver) -> None:
        result = resolver.resolve("process", block(pid=lit("/root/a"), flags=lit("persist-al")))
        (issue,) = result.issues
        assert issue.code is IssueCode.INVALID_VALUE
        assert issue.path == "flags"

    def test_full_process(self, resolver: Resolver) -> None:
        body = MappingValue(
            {
                "pid": lit("/root/a"),
                "strategy": block(retries=block(count=lit(3))),
                "flags": lit("persist-state"),
                "mailbox-size": lit(100),
            }
        )
        result = resolver.resolve("process", body)
        assert result.ok, result.issues
        assert result.variant == 0
        assert result.value.mailbox_size == 100
        assert result.value.strategy.retries.count == 3

    def test_mailbox_size_positive(self, resolver: Resolver) -> None:
        body = MappingValue(
            {
                "pid": lit("/root/a"),
                "strategy": lit("shared"),
                "flags": lit("default"),
                "mailbox-size": lit(0),
            }
        )
        result = resolver.resolve("process", body)
        assert [i.code for i in result.issues] == [IssueCode.INVALID_VALUE]

    def test_dispatcher_type(self, resolver: Resolver) -> None:
        result = resolver.resolve("dispatcher", block(type=lit("broadcast")))
        assert result.value.type is DispatcherType.BROADCAST
        assert result.value.workers == ()

    def test_unknown_dispatcher_type(self, resolver: Resolver) -> None:
        result = resolver.resolve("dispatcher", block(type=lit("fanout")))
        (issue,) = result.issues
        assert issue.code is IssueCode.INVALID_VALUE
        assert issue.path == "type"

    def test_cluster_defaults(self, resolver: Resolver) -> None:
        result = resolver.resolve("cluster", block(node_name=lit("alpha"), role=lit("seed")))
        assert result.value == ClusterSettings(node_name="alpha", role="seed")
        assert result.value.connection == "localhost"
