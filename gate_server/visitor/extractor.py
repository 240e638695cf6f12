# (c) Copyright Datacraft, 2026
"""Build visitor snapshots from incoming request attributes."""
import logging
import re
from ipaddress import IPv4Address
from typing import Mapping

from fastapi import Request

from gate_server.config import Settings, get_settings
from gate_server.rules.models import VisitorInfo

logger = logging.getLogger(__name__)

UNKNOWN_IP = 'unknown'


class VisitorExtractor:
	"""Extracts a VisitorInfo from request headers, path and query."""

	def __init__(self, settings: Settings | None = None):
		self.settings = settings or get_settings()
		self._client_ip_headers = [h.lower() for h in self.settings.client_ip_headers]
		self._country_headers = [h.lower() for h in self.settings.country_headers]
		self._bot_patterns = [
			re.compile(re.escape(p), re.IGNORECASE) for p in self.settings.bot_patterns
		]
		self._mobile_patterns = [
			re.compile(re.escape(p), re.IGNORECASE) for p in self.settings.mobile_patterns
		]

	def from_request(
		self,
		request: Request,
		ip_type: str | None = None,
	) -> VisitorInfo:
		"""Build a visitor snapshot from a Starlette/FastAPI request."""
		return self.from_headers(
			request.headers,
			path=request.url.path,
			query=request.query_params,
			ip_type=ip_type,
		)

	def from_headers(
		self,
		headers: Mapping[str, str],
		path: str | None = None,
		query: Mapping[str, str] | None = None,
		ip_type: str | None = None,
	) -> VisitorInfo:
		"""
		Build a visitor snapshot from plain mappings.

		Args:
			headers: Request headers, looked up case-insensitively
			path: Request path
			query: Query parameters; for repeated keys the last value wins
			ip_type: Pre-resolved IP category, overrides private-range detection

		Returns:
			Immutable VisitorInfo
		"""
		lowered = {k.lower(): v for k, v in headers.items()}
		user_agent = lowered.get('user-agent')
		ip = self.client_ip(lowered)

		return VisitorInfo(
			ip=ip,
			user_agent=user_agent,
			referer=lowered.get('referer'),
			country=self.country(lowered),
			accept_language=lowered.get('accept-language'),
			is_bot=self.is_bot(user_agent),
			is_mobile=self.is_mobile(user_agent),
			request_path=path,
			search_params=dict(query.items()) if query else {},
			ip_type=ip_type or self.classify_ip(ip),
		)

	def client_ip(self, headers: Mapping[str, str]) -> str:
		"""First forwarded-for entry, else the next configured header, else unknown."""
		for name in self._client_ip_headers:
			value = headers.get(name)
			if not value:
				continue
			first = value.split(',')[0].strip()
			if first:
				return first
		return UNKNOWN_IP

	def country(self, headers: Mapping[str, str]) -> str | None:
		for name in self._country_headers:
			value = headers.get(name)
			if value:
				return value.strip()
		return None

	def is_bot(self, user_agent: str | None) -> bool:
		if not user_agent:
			return False
		return any(p.search(user_agent) for p in self._bot_patterns)

	def is_mobile(self, user_agent: str | None) -> bool:
		if not user_agent:
			return False
		return any(p.search(user_agent) for p in self._mobile_patterns)

	def classify_ip(self, ip: str) -> str | None:
		"""Private IPv4 ranges map to the configured category, the rest is unresolved."""
		try:
			address = IPv4Address(ip)
		except ValueError:
			return None
		if address.is_private or address.is_loopback or address.is_link_local:
			return self.settings.private_ip_type
		return None
