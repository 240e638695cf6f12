# (c) Copyright Datacraft, 2026
"""Condition matchers for rule steps."""
import logging
import re
from functools import lru_cache
from ipaddress import IPv4Address
from typing import Callable

from .models import (
	VisitorInfo, StepType, IncludeMode, ListMode, PatternMode, ParamMatchMode,
	CountryConfig, LanguageConfig, IPConfig, UserAgentConfig, PathConfig,
	BotConfig, ParamsSearchConfig, IPTypeConfig,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern | None:
	"""Compile a case-insensitive pattern, or return None if it is invalid."""
	try:
		return re.compile(pattern, re.IGNORECASE)
	except (re.error, OverflowError, RecursionError) as e:
		logger.warning(f"Invalid regex pattern {pattern!r}: {e}")
		return None


def parse_accept_language(accept_language: str | None) -> list[str]:
	"""
	Extract candidate language tags from an Accept-Language header.

	Quality weights are dropped and ordering is kept as sent. The primary
	subtag of each region-qualified tag is appended after it, e.g.
	"zh-CN,en;q=0.8" -> ["zh-cn", "zh", "en"].
	"""
	if not accept_language:
		return []

	languages: list[str] = []
	for part in accept_language.split(','):
		lang = part.split(';')[0].strip().lower()
		if not lang:
			continue
		languages.append(lang)
		primary = lang.split('-')[0]
		if primary != lang and primary not in languages:
			languages.append(primary)

	return languages


def language_matches(candidate: str, configured: str) -> bool:
	"""Tags match if equal or if one is a hyphen-prefix of the other."""
	candidate = candidate.lower()
	configured = configured.lower()
	return (
		candidate == configured
		or candidate.startswith(configured + '-')
		or configured.startswith(candidate + '-')
	)


_PREFIX_RE = re.compile(r"\d+", re.ASCII)


def _ipv4_to_int(address: str) -> int | None:
	octets = address.strip().split('.')
	if len(octets) == 4 and all(o.isascii() and o.isdigit() for o in octets):
		# leading zeros are decimal, "010" is 10
		address = '.'.join(str(int(o)) for o in octets)
	try:
		return int(IPv4Address(address.strip()))
	except ValueError:
		return None


def match_ip(ip: str, pattern: str) -> bool:
	"""Match an IPv4 address against an exact address or a CIDR block."""
	if ip == pattern:
		return True

	if '/' not in pattern:
		return False

	network, _, prefix_length = pattern.partition('/')
	prefix_length = prefix_length.strip()
	if not _PREFIX_RE.fullmatch(prefix_length):
		return False
	prefix = int(prefix_length)
	if prefix > 32:
		return False

	network_num = _ipv4_to_int(network)
	ip_num = _ipv4_to_int(ip)
	if network_num is None or ip_num is None:
		return False

	mask = (0xFFFFFFFF << (32 - prefix)) & 0xFFFFFFFF
	return (network_num & mask) == (ip_num & mask)


def match_pattern(value: str | None, pattern: str, mode: PatternMode) -> bool:
	"""Case-insensitive substring or regex search. Empty value never matches."""
	if not value:
		return False

	if mode == PatternMode.REGEX:
		regex = compile_pattern(pattern)
		if regex is None:
			return False
		return regex.search(value) is not None

	return pattern.lower() in value.lower()


def _apply_mode(in_list: bool, include: bool) -> bool:
	return in_list if include else not in_list


class ConditionEvaluator:
	"""Evaluates a step configuration against a visitor snapshot."""

	def __init__(self):
		self._matchers: dict[StepType, Callable] = {
			StepType.COUNTRY: self._country,
			StepType.LANGUAGE: self._language,
			StepType.IP: self._ip,
			StepType.USER_AGENT: self._user_agent,
			StepType.PATH: self._path,
			StepType.BOT: self._bot,
			StepType.PARAMS_SEARCH: self._params_search,
			StepType.IP_TYPE: self._ip_type,
		}

	def matches(self, visitor: VisitorInfo, config) -> bool:
		"""Return True if the visitor satisfies the step condition."""
		matcher = self._matchers.get(StepType(config.type))
		if not matcher:
			logger.warning(f"No matcher for step type: {config.type}")
			return False
		return matcher(visitor, config)

	# Matcher implementations

	def _country(self, visitor: VisitorInfo, config: CountryConfig) -> bool:
		if not visitor.country:
			return False
		country = visitor.country.upper()
		in_list = any(c.upper() == country for c in config.countries)
		return _apply_mode(in_list, config.match_mode == IncludeMode.INCLUDE)

	def _language(self, visitor: VisitorInfo, config: LanguageConfig) -> bool:
		candidates = parse_accept_language(visitor.accept_language)
		if not candidates:
			return False
		has_match = any(
			language_matches(candidate, configured)
			for candidate in candidates
			for configured in config.languages
		)
		return _apply_mode(has_match, config.match_mode == IncludeMode.INCLUDE)

	def _ip(self, visitor: VisitorInfo, config: IPConfig) -> bool:
		in_list = any(match_ip(visitor.ip, pattern) for pattern in config.ips)
		return _apply_mode(in_list, config.match_mode == ListMode.WHITELIST)

	def _user_agent(self, visitor: VisitorInfo, config: UserAgentConfig) -> bool:
		return match_pattern(visitor.user_agent, config.pattern, config.match_mode)

	def _path(self, visitor: VisitorInfo, config: PathConfig) -> bool:
		return match_pattern(visitor.request_path, config.pattern, config.match_mode)

	def _bot(self, visitor: VisitorInfo, config: BotConfig) -> bool:
		return visitor.is_bot == config.match_bot

	def _params_search(self, visitor: VisitorInfo, config: ParamsSearchConfig) -> bool:
		value = visitor.search_params.get(config.param_name)
		if not value:
			return False

		if config.match_mode == ParamMatchMode.EQUALS:
			return value == config.param_value
		elif config.match_mode == ParamMatchMode.CONTAINS:
			return config.param_value.lower() in value.lower()
		elif config.match_mode == ParamMatchMode.REGEX:
			regex = compile_pattern(config.param_value)
			return regex is not None and regex.search(value) is not None
		return False

	def _ip_type(self, visitor: VisitorInfo, config: IPTypeConfig) -> bool:
		if not visitor.ip_type:
			return False
		ip_type = visitor.ip_type.upper()
		in_list = any(t.upper() == ip_type for t in config.ip_types)
		return _apply_mode(in_list, config.match_mode == IncludeMode.INCLUDE)


# Singleton evaluator
_evaluator = ConditionEvaluator()


def get_condition_evaluator() -> ConditionEvaluator:
	"""Get the singleton condition evaluator."""
	return _evaluator
