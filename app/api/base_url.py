"""Public base URL for gateway callbacks."""
from fastapi import Request

from app.core.config import settings


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL environment variable if set (e.g. behind a tunnel or proxy),
    otherwise constructs from request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")
