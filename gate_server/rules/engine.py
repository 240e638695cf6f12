# (c) Copyright Datacraft, 2026
"""Sequential rule evaluation engine."""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from .models import Rule, RuleStep, StepAction, StepType, VisitorInfo
from .conditions import ConditionEvaluator, get_condition_evaluator

logger = logging.getLogger(__name__)


class DecisionOutcome(str, Enum):
	"""How the evaluation terminated."""
	DEFAULT_ALLOW = 'default_allow'
	EXPLICIT_ALLOW = 'explicit_allow'
	INTERCEPTED = 'intercepted'


@dataclass
class StepResult:
	"""Result of evaluating a single enabled step."""
	step_id: int | str | None
	step_name: str
	step_type: StepType
	matched: bool
	action: StepAction | str


@dataclass
class RuleDecision:
	"""Outcome of evaluating a rule against one visitor."""
	allowed: bool
	outcome: DecisionOutcome
	rule_id: int | str | None = None
	step_id: int | str | None = None
	step_name: str | None = None
	step_results: list[StepResult] = field(default_factory=list)
	evaluation_time_ms: float = 0


class RuleEngine:
	"""
	Evaluates a rule step by step.

	Steps run strictly in list order. Disabled steps are skipped. A matching
	``intercept`` step denies and a matching ``allow`` step admits, both
	immediately. A matching ``continue`` step, a non-matching step, and a
	step with an unrecognized action fall through to the next step. When the
	steps run out the visitor is allowed.
	"""

	def __init__(self, evaluator: ConditionEvaluator | None = None):
		self.evaluator = evaluator or get_condition_evaluator()

	def evaluate(self, visitor: VisitorInfo, rule: Rule) -> bool:
		"""Return True to allow the visitor, False to deny."""
		return self.explain(visitor, rule).allowed

	def explain(self, visitor: VisitorInfo, rule: Rule) -> RuleDecision:
		"""
		Evaluate a rule and keep a trace of every step looked at.

		Args:
			visitor: Request attributes snapshot
			rule: Rule with steps in evaluation order

		Returns:
			RuleDecision with the verdict and the deciding step, if any
		"""
		start_time = time.perf_counter()
		step_results: list[StepResult] = []

		for step in rule.steps:
			if not step.enabled:
				continue

			matched = self.evaluator.matches(visitor, step.config)
			step_results.append(StepResult(
				step_id=step.id,
				step_name=step.name,
				step_type=step.type,
				matched=matched,
				action=step.action,
			))

			if not matched:
				continue

			logger.debug(f"Step matched: {step!r} in rule {rule.id}")
			outcome = self._terminal_outcome(step)
			if outcome is None:
				continue

			return RuleDecision(
				allowed=outcome == DecisionOutcome.EXPLICIT_ALLOW,
				outcome=outcome,
				rule_id=rule.id,
				step_id=step.id,
				step_name=step.name,
				step_results=step_results,
				evaluation_time_ms=(time.perf_counter() - start_time) * 1000,
			)

		return RuleDecision(
			allowed=True,
			outcome=DecisionOutcome.DEFAULT_ALLOW,
			rule_id=rule.id,
			step_results=step_results,
			evaluation_time_ms=(time.perf_counter() - start_time) * 1000,
		)

	def _terminal_outcome(self, step: RuleStep) -> DecisionOutcome | None:
		"""Map a matching step's action to a terminal outcome, None to go on."""
		if step.action == StepAction.INTERCEPT:
			return DecisionOutcome.INTERCEPTED
		elif step.action == StepAction.ALLOW:
			return DecisionOutcome.EXPLICIT_ALLOW
		elif step.action == StepAction.CONTINUE:
			return None

		logger.warning(f"Unknown step action {step.action!r}, continuing")
		return None


_engine = RuleEngine()


def evaluate(visitor: VisitorInfo, rule: Rule) -> bool:
	"""Evaluate a rule with the shared default engine."""
	return _engine.evaluate(visitor, rule)
