# (c) Copyright Datacraft, 2026
"""Visitor attribute extraction."""
from .extractor import VisitorExtractor, UNKNOWN_IP

__all__ = [
	'VisitorExtractor',
	'UNKNOWN_IP',
]
