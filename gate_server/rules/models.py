# (c) Copyright Datacraft, 2026
"""Rule, step and visitor data models."""
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StepType(str, Enum):
	"""Condition type of a rule step."""
	COUNTRY = 'country'
	LANGUAGE = 'language'
	IP = 'ip'
	USER_AGENT = 'user_agent'
	PATH = 'path'
	BOT = 'bot'
	PARAMS_SEARCH = 'params_search'
	IP_TYPE = 'ip_type'


class StepAction(str, Enum):
	"""Effect of a matching step."""
	INTERCEPT = 'intercept'
	CONTINUE = 'continue'
	ALLOW = 'allow'


class IncludeMode(str, Enum):
	INCLUDE = 'include'
	EXCLUDE = 'exclude'


class ListMode(str, Enum):
	WHITELIST = 'whitelist'
	BLACKLIST = 'blacklist'


class PatternMode(str, Enum):
	REGEX = 'regex'
	CONTAINS = 'contains'


class ParamMatchMode(str, Enum):
	EQUALS = 'equals'
	CONTAINS = 'contains'
	REGEX = 'regex'


class IPType(str, Enum):
	"""Known IP category labels."""
	ISP = 'ISP'
	IDC = 'IDC'
	MOBILE = 'MOBILE'
	RESIDENTIAL = 'RESIDENTIAL'
	CORPORATE = 'CORPORATE'
	EDUCATIONAL = 'EDUCATIONAL'
	GOVERNMENT = 'GOVERNMENT'


# Per-type step configurations

class _StepConfig(BaseModel):
	model_config = ConfigDict(frozen=True, extra='forbid')


class CountryConfig(_StepConfig):
	type: Literal['country'] = 'country'
	countries: list[str] = Field(default_factory=list)
	match_mode: IncludeMode = IncludeMode.INCLUDE


class LanguageConfig(_StepConfig):
	type: Literal['language'] = 'language'
	languages: list[str] = Field(default_factory=list)
	match_mode: IncludeMode = IncludeMode.INCLUDE


class IPConfig(_StepConfig):
	type: Literal['ip'] = 'ip'
	ips: list[str] = Field(default_factory=list)
	match_mode: ListMode = ListMode.BLACKLIST


class UserAgentConfig(_StepConfig):
	type: Literal['user_agent'] = 'user_agent'
	pattern: str
	match_mode: PatternMode = PatternMode.CONTAINS


class PathConfig(_StepConfig):
	type: Literal['path'] = 'path'
	pattern: str
	match_mode: PatternMode = PatternMode.CONTAINS


class BotConfig(_StepConfig):
	type: Literal['bot'] = 'bot'
	match_bot: bool = True


class ParamsSearchConfig(_StepConfig):
	type: Literal['params_search'] = 'params_search'
	param_name: str
	param_value: str
	match_mode: ParamMatchMode = ParamMatchMode.EQUALS


class IPTypeConfig(_StepConfig):
	type: Literal['ip_type'] = 'ip_type'
	ip_types: list[str] = Field(default_factory=list)
	match_mode: IncludeMode = IncludeMode.INCLUDE


StepConfig = Annotated[
	Union[
		CountryConfig,
		LanguageConfig,
		IPConfig,
		UserAgentConfig,
		PathConfig,
		BotConfig,
		ParamsSearchConfig,
		IPTypeConfig,
	],
	Field(discriminator='type'),
]


class RuleStep(BaseModel):
	"""
	One ordered condition+action unit of a rule.

	Accepts the stored record shape, where the condition type sits next to
	the config rather than inside it. The config is tagged with the step
	type on the way in; a config tagged with a different type is rejected.
	"""
	model_config = ConfigDict(frozen=True)

	id: int | str | None = None
	step_order: int = 0
	name: str = ''
	action: StepAction | str = Field(
		default=StepAction.CONTINUE, union_mode='left_to_right'
	)
	enabled: bool = True
	config: StepConfig

	@model_validator(mode='before')
	@classmethod
	def _tag_config(cls, data: Any) -> Any:
		if not isinstance(data, dict) or 'type' not in data:
			return data

		data = dict(data)
		step_type = data.pop('type')
		if isinstance(step_type, StepType):
			step_type = step_type.value

		config = data.get('config')
		if config is None:
			config = {}
		if isinstance(config, BaseModel):
			config_type = getattr(config, 'type', None)
			if config_type != step_type:
				raise ValueError(
					f"step type {step_type!r} does not match config type {config_type!r}"
				)
			return data
		if isinstance(config, dict):
			config = dict(config)
			config_type = config.setdefault('type', step_type)
			if config_type != step_type:
				raise ValueError(
					f"step type {step_type!r} does not match config type {config_type!r}"
				)
			data['config'] = config
		return data

	@property
	def type(self) -> StepType:
		return StepType(self.config.type)

	def __repr__(self):
		return f"RuleStep({self.step_order}: {self.type.value} -> {self.action})"


class Rule(BaseModel):
	"""Named, ordered sequence of steps. Steps are evaluated in list order."""
	model_config = ConfigDict(frozen=True)

	id: int | str | None = None
	name: str = ''
	steps: list[RuleStep] = Field(default_factory=list)


class VisitorInfo(BaseModel):
	"""Snapshot of the request attributes a rule can look at."""
	model_config = ConfigDict(frozen=True)

	ip: str = 'unknown'
	user_agent: str | None = None
	referer: str | None = None
	country: str | None = None  # ISO-3166 alpha-2, not validated
	accept_language: str | None = None
	is_bot: bool = False
	is_mobile: bool = False
	request_path: str | None = None
	search_params: dict[str, str] = Field(default_factory=dict)
	ip_type: str | None = None  # RESIDENTIAL, ISP, IDC, ...
