# (c) Copyright Datacraft, 2026
"""Rule evaluation: step models, condition matchers and the evaluator."""
from .models import (
	Rule, RuleStep, StepConfig, StepType, StepAction, VisitorInfo,
	IncludeMode, ListMode, PatternMode, ParamMatchMode, IPType,
	CountryConfig, LanguageConfig, IPConfig, UserAgentConfig, PathConfig,
	BotConfig, ParamsSearchConfig, IPTypeConfig,
)
from .conditions import ConditionEvaluator, get_condition_evaluator
from .engine import RuleEngine, RuleDecision, StepResult, DecisionOutcome, evaluate

__all__ = [
	'Rule',
	'RuleStep',
	'StepConfig',
	'StepType',
	'StepAction',
	'VisitorInfo',
	'IncludeMode',
	'ListMode',
	'PatternMode',
	'ParamMatchMode',
	'IPType',
	'CountryConfig',
	'LanguageConfig',
	'IPConfig',
	'UserAgentConfig',
	'PathConfig',
	'BotConfig',
	'ParamsSearchConfig',
	'IPTypeConfig',
	'ConditionEvaluator',
	'get_condition_evaluator',
	'RuleEngine',
	'RuleDecision',
	'StepResult',
	'DecisionOutcome',
	'evaluate',
]
