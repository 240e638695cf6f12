"""Tests for sequential rule evaluation."""

import pytest

from gate_server.rules import (
    DecisionOutcome,
    RuleEngine,
    VisitorInfo,
    evaluate,
)

from conftest import make_rule, make_step


@pytest.fixture
def engine():
    return RuleEngine()


# =============================================================================
# Evaluation semantics
# =============================================================================


class TestEvaluationOrder:
    """Short-circuit and fall-through behavior."""

    def test_empty_rule_allows(self, engine, visitor):
        assert engine.evaluate(visitor, make_rule())

    def test_first_matching_intercept_denies(self, engine, visitor):
        rule = make_rule(
            make_step("country", "intercept", countries=["US"]),
            make_step("bot", "allow", match_bot=False),
        )
        assert not engine.evaluate(visitor, rule)

    def test_first_matching_allow_admits(self, engine, visitor):
        rule = make_rule(
            make_step("country", "allow", countries=["US"]),
            make_step("bot", "intercept", match_bot=False),
        )
        assert engine.evaluate(visitor, rule)

    def test_no_step_matches_allows(self, engine, visitor):
        rule = make_rule(
            make_step("country", "intercept", countries=["CN"]),
            make_step("bot", "intercept", match_bot=True),
        )
        assert engine.evaluate(visitor, rule)

    def test_continue_falls_through(self, engine, visitor):
        rule = make_rule(
            make_step("country", "continue", countries=["US"]),
            make_step("path", "intercept", pattern="/home"),
        )
        assert not engine.evaluate(visitor, rule)

    def test_continue_on_last_step_allows(self, engine, visitor):
        rule = make_rule(make_step("country", "continue", countries=["US"]))
        assert engine.evaluate(visitor, rule)

    def test_unknown_action_is_treated_as_continue(self, engine, visitor):
        rule = make_rule(
            make_step("country", "redirect", countries=["US"]),
            make_step("path", "intercept", pattern="/home"),
        )
        assert not engine.evaluate(visitor, rule)

    def test_steps_run_in_list_order_not_step_order(self, engine, visitor):
        """The evaluator trusts the sequence it is given."""
        allow = make_step("country", "allow", countries=["US"]).model_copy(
            update={"step_order": 9}
        )
        intercept = make_step("path", "intercept", pattern="/home").model_copy(
            update={"step_order": 1}
        )
        assert engine.evaluate(visitor, make_rule(allow, intercept))
        assert not engine.evaluate(visitor, make_rule(intercept, allow))

    def test_module_level_evaluate(self, visitor):
        rule = make_rule(make_step("path", "intercept", pattern="/home"))
        assert evaluate(visitor, rule) is False


class TestDisabledSteps:
    """Disabled steps never influence the outcome."""

    @pytest.mark.parametrize("action", ["intercept", "allow", "continue"])
    def test_removing_disabled_step_changes_nothing(self, engine, visitor, action):
        disabled = make_step("country", action, enabled=False, countries=["US"])
        rest = [
            make_step("bot", "intercept", match_bot=True),
            make_step("path", "intercept", pattern="/home"),
        ]
        with_disabled = make_rule(disabled, *rest)
        without = make_rule(*rest)
        assert engine.evaluate(visitor, with_disabled) == engine.evaluate(visitor, without)

    def test_only_disabled_steps_allows(self, engine, visitor):
        rule = make_rule(make_step("country", "intercept", enabled=False, countries=["US"]))
        assert engine.evaluate(visitor, rule)

    def test_disabled_steps_left_out_of_trace(self, engine, visitor):
        rule = make_rule(
            make_step("country", "intercept", enabled=False, countries=["US"]),
            make_step("bot", "intercept", match_bot=True),
        )
        decision = engine.explain(visitor, rule)
        assert [r.step_type.value for r in decision.step_results] == ["bot"]


class TestExplain:
    """Decision traces."""

    def test_intercept_trace(self, engine, visitor):
        rule = make_rule(
            make_step("bot", "intercept", step_id=1, match_bot=True),
            make_step("country", "intercept", step_id=2, countries=["US"]),
            make_step("path", "allow", step_id=3, pattern="/"),
        )
        decision = engine.explain(visitor, rule)

        assert not decision.allowed
        assert decision.outcome == DecisionOutcome.INTERCEPTED
        assert decision.step_id == 2
        assert decision.rule_id == 1
        assert [r.matched for r in decision.step_results] == [False, True]
        assert decision.evaluation_time_ms >= 0

    def test_explicit_allow_trace(self, engine, visitor):
        rule = make_rule(make_step("country", "allow", step_id=7, countries=["US"]))
        decision = engine.explain(visitor, rule)

        assert decision.allowed
        assert decision.outcome == DecisionOutcome.EXPLICIT_ALLOW
        assert decision.step_id == 7

    def test_default_allow_trace(self, engine, visitor):
        decision = engine.explain(visitor, make_rule())

        assert decision.allowed
        assert decision.outcome == DecisionOutcome.DEFAULT_ALLOW
        assert decision.step_id is None
        assert decision.step_results == []

    def test_inputs_are_not_mutated(self, engine, visitor):
        rule = make_rule(make_step("country", "intercept", countries=["us"]))
        before = (visitor.model_dump(), rule.model_dump())
        engine.explain(visitor, rule)
        assert (visitor.model_dump(), rule.model_dump()) == before


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """End-to-end rule scenarios."""

    def test_admin_path_intercept(self, engine):
        rule = make_rule(make_step("path", "intercept", pattern="/admin", match_mode="contains"))

        assert not engine.evaluate(VisitorInfo(request_path="/admin/login"), rule)
        assert engine.evaluate(VisitorInfo(request_path="/home"), rule)

    def test_bot_then_country(self, engine):
        rule = make_rule(
            make_step("bot", "intercept", match_bot=True),
            make_step("country", "allow", countries=["CN"], match_mode="include"),
        )

        assert not engine.evaluate(VisitorInfo(is_bot=True, country="CN"), rule)
        assert engine.evaluate(VisitorInfo(is_bot=False, country="CN"), rule)
        assert engine.evaluate(VisitorInfo(is_bot=False, country="US"), rule)

    def test_token_param_regex(self, engine):
        rule = make_rule(
            make_step(
                "params_search",
                "intercept",
                param_name="token",
                param_value="^[0-9]+$",
                match_mode="regex",
            )
        )

        assert not engine.evaluate(VisitorInfo(search_params={"token": "12345"}), rule)
        assert engine.evaluate(VisitorInfo(search_params={"token": "abc"}), rule)
        assert engine.evaluate(VisitorInfo(search_params={"page": "2"}), rule)

    def test_allow_office_block_datacenters(self, engine):
        rule = make_rule(
            make_step("ip", "allow", ips=["198.51.100.0/24"], match_mode="whitelist"),
            make_step("ip_type", "intercept", ip_types=["IDC"]),
        )

        assert engine.evaluate(VisitorInfo(ip="198.51.100.20", ip_type="IDC"), rule)
        assert not engine.evaluate(VisitorInfo(ip="192.0.2.1", ip_type="IDC"), rule)
        assert engine.evaluate(VisitorInfo(ip="192.0.2.1", ip_type="ISP"), rule)

    def test_invalid_regex_step_is_skipped(self, engine):
        rule = make_rule(
            make_step("user_agent", "intercept", pattern="(", match_mode="regex"),
            make_step("language", "intercept", languages=["ru"]),
        )

        assert engine.evaluate(VisitorInfo(user_agent="(", accept_language="en"), rule)
        assert not engine.evaluate(VisitorInfo(user_agent="(", accept_language="ru-RU"), rule)

    def test_oversized_repeat_regex_step_allows(self, engine):
        rule = make_rule(
            make_step("path", "intercept", pattern="a{99999999999}", match_mode="regex")
        )

        assert engine.evaluate(VisitorInfo(request_path="/x"), rule)
