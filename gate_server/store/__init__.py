# (c) Copyright Datacraft, 2026
"""Rule resolution by domain."""
from .resolver import (
	RuleResolver, InMemoryRuleStore, PolicySnapshot,
	WebsiteRecord, RuleRecord, StepRecord, normalize_host,
)

__all__ = [
	'RuleResolver',
	'InMemoryRuleStore',
	'PolicySnapshot',
	'WebsiteRecord',
	'RuleRecord',
	'StepRecord',
	'normalize_host',
]
