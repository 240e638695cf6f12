# (c) Copyright Datacraft, 2026
from fastapi import Request, Depends

from .config import Settings, get_settings
from .rules.models import VisitorInfo
from .visitor.extractor import VisitorExtractor


def first_header(request: Request, *names: str) -> str | None:
    """Return the first non-empty header among ``names``."""
    for name in names:
        value = request.headers.get(name)
        if value:
            return value
    return None


def get_request_host(request: Request) -> str:
    """Host the request was addressed to, preferring the forwarded host."""
    return first_header(request, "x-forwarded-host", "host") or ""


def get_visitor_info(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> VisitorInfo:
    """FastAPI dependency building the visitor snapshot of a request."""
    return VisitorExtractor(settings).from_request(request)
