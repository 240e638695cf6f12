# (c) Copyright Datacraft, 2026
"""Domain to rule resolution over in-memory policy snapshots."""
import logging
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from gate_server.rules.models import Rule, RuleStep

logger = logging.getLogger(__name__)


class RuleResolver(Protocol):
	"""Resolves the rule that applies to a host, or None for no rule."""

	async def resolve(self, host: str) -> Rule | None:
		...


def normalize_host(host: str | None) -> str:
	"""Lowercase a host and drop its port and trailing dot."""
	if not host:
		return ''
	host = host.strip().lower()
	if host.startswith('['):
		# bracketed IPv6 literal, keep as-is minus the port
		end = host.find(']')
		if end != -1:
			return host[:end + 1]
	elif host.count(':') == 1:
		host = host.split(':', 1)[0]
	return host.rstrip('.')


class StepRecord(BaseModel):
	"""Stored step row; config is kept raw until the rule is resolved."""
	model_config = ConfigDict(frozen=True)

	id: int | str | None = None
	step_order: int = 0
	type: str
	name: str = ''
	action: str = 'continue'
	enabled: bool = True
	config: dict[str, Any] = Field(default_factory=dict)


class RuleRecord(BaseModel):
	"""Stored rule row with its steps."""
	model_config = ConfigDict(frozen=True)

	id: int | str
	name: str
	description: str | None = None
	enabled: bool = True
	steps: list[StepRecord] = Field(default_factory=list)


class WebsiteRecord(BaseModel):
	"""Stored website row binding a domain to a rule."""
	model_config = ConfigDict(frozen=True)

	id: int | str | None = None
	name: str = ''
	domain: str
	rule_id: int | str | None = None


class PolicySnapshot(BaseModel):
	"""Complete set of websites and rules, as loaded from storage."""
	websites: list[WebsiteRecord] = Field(default_factory=list)
	rules: list[RuleRecord] = Field(default_factory=list)


class InMemoryRuleStore:
	"""
	Resolves rules from a policy snapshot held in memory.

	The store is swapped wholesale with ``load``; resolving never mutates it.
	"""

	def __init__(self, snapshot: PolicySnapshot | None = None):
		self._websites: dict[str, WebsiteRecord] = {}
		self._rules: dict[int | str, RuleRecord] = {}
		if snapshot is not None:
			self.load(snapshot)

	def load(self, snapshot: PolicySnapshot | dict[str, Any]) -> None:
		"""Replace the held websites and rules."""
		if isinstance(snapshot, dict):
			snapshot = PolicySnapshot.model_validate(snapshot)

		websites: dict[str, WebsiteRecord] = {}
		for website in snapshot.websites:
			domain = normalize_host(website.domain)
			if not domain:
				logger.warning(f"Skipping website without domain: {website.name!r}")
				continue
			if domain in websites:
				logger.warning(f"Duplicate website domain {domain!r}, keeping the last one")
			websites[domain] = website

		self._websites = websites
		self._rules = {rule.id: rule for rule in snapshot.rules}
		logger.info(
			f"Loaded {len(self._websites)} websites and {len(self._rules)} rules"
		)

	async def resolve(self, host: str) -> Rule | None:
		"""
		Find the rule bound to a host.

		Returns None when the host has no website, the website has no rule,
		or the rule is missing or disabled. Otherwise returns a Rule holding
		only the enabled steps, sorted by step_order.
		"""
		domain = normalize_host(host)
		website = self._websites.get(domain)
		if website is None or website.rule_id is None:
			return None

		record = self._rules.get(website.rule_id)
		if record is None:
			logger.warning(f"Website {domain!r} references unknown rule {website.rule_id}")
			return None
		if not record.enabled:
			return None

		steps = sorted(
			(s for s in record.steps if s.enabled),
			key=lambda s: s.step_order,
		)
		return Rule(
			id=record.id,
			name=record.name,
			steps=[RuleStep.model_validate(s.model_dump()) for s in steps],
		)
