# (c) Copyright Datacraft, 2026
"""Admission gate: resolve the host's rule and evaluate it, failing open."""
import logging
from dataclasses import dataclass

from gate_server.config import Settings, get_settings
from gate_server.rules.engine import RuleEngine, RuleDecision
from gate_server.rules.models import VisitorInfo
from gate_server.store.resolver import RuleResolver, normalize_host

logger = logging.getLogger(__name__)


@dataclass
class GateDecision:
	"""Final admission decision for a request."""
	allowed: bool
	host: str
	rule_id: int | str | None = None
	rule_name: str | None = None
	reason: str | None = None
	decision: RuleDecision | None = None


class AdmissionGate:
	"""
	Admits or rejects visitors of a host.

	A host without a rule is admitted without running the engine. A resolver
	failure counts as "no rule" and the request is admitted.
	"""

	def __init__(
		self,
		resolver: RuleResolver,
		engine: RuleEngine | None = None,
		settings: Settings | None = None,
	):
		self.resolver = resolver
		self.engine = engine or RuleEngine()
		self.settings = settings or get_settings()

	async def check(self, host: str, visitor: VisitorInfo) -> GateDecision:
		"""
		Decide whether a visitor may access a host.

		Args:
			host: Request host, normalized before lookup
			visitor: Request attributes snapshot

		Returns:
			GateDecision; allowed is False only when a rule intercepted
		"""
		domain = normalize_host(host)

		try:
			rule = await self.resolver.resolve(domain)
		except Exception:
			logger.exception(f"Rule resolution failed for {domain!r}, allowing")
			result = GateDecision(
				allowed=True, host=domain, reason="Rule resolution failed"
			)
			self._log_decision(visitor, result)
			return result

		if rule is None:
			result = GateDecision(allowed=True, host=domain, reason="No rule configured")
			self._log_decision(visitor, result)
			return result

		decision = self.engine.explain(visitor, rule)
		if decision.step_name:
			reason = f"{decision.outcome.value} by step {decision.step_name!r}"
		else:
			reason = decision.outcome.value

		result = GateDecision(
			allowed=decision.allowed,
			host=domain,
			rule_id=rule.id,
			rule_name=rule.name,
			reason=reason,
			decision=decision,
		)
		self._log_decision(visitor, result)
		return result

	def _log_decision(self, visitor: VisitorInfo, result: GateDecision) -> None:
		if not self.settings.log_decisions:
			return
		logger.info(
			f"{'ALLOW' if result.allowed else 'DENY'} {visitor.ip} -> {result.host} "
			f"(rule={result.rule_id}, {result.reason})"
		)
