"""
Rate limiting utilities for public endpoints.
Uses slowapi to slow down login brute forcing and review spam.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


# Shared limiter; create_app() toggles `enabled` from settings
limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://"  # For multiple instances, point this at Redis
)


RATE_LIMITS = {
    "login": "5/minute",  # Login attempts per minute per IP
    "review": "10/hour",  # Public review submissions per IP
}
