# (c) Copyright Datacraft, 2026
"""Per-domain admission control for incoming web requests."""
from .rules import Rule, RuleStep, VisitorInfo, RuleEngine, evaluate
from .gate import AdmissionGate, GateDecision

__all__ = [
	'Rule',
	'RuleStep',
	'VisitorInfo',
	'RuleEngine',
	'evaluate',
	'AdmissionGate',
	'GateDecision',
]
