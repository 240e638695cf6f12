"""Shared fixtures for gate_server tests."""

import pytest

from gate_server.config import Settings
from gate_server.rules import Rule, RuleStep, VisitorInfo


def make_step(step_type, action="intercept", enabled=True, step_id=None, **config):
    """Build a RuleStep from the stored record shape."""
    return RuleStep.model_validate(
        {
            "id": step_id,
            "type": step_type,
            "name": f"{step_type}-{action}",
            "action": action,
            "enabled": enabled,
            "config": config,
        }
    )


def make_rule(*steps, rule_id=1, name="test rule"):
    return Rule(id=rule_id, name=name, steps=list(steps))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def visitor():
    """A plain desktop visitor from a public address."""
    return VisitorInfo(
        ip="203.0.113.7",
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) Firefox/120.0",
        country="US",
        accept_language="en-US,en;q=0.9",
        request_path="/home",
    )
