"""Source utilities for rate limiting, concurrency and request headers."""

from .rate_limiter import ConcurrencyGate, DomainRateLimiter, HostBucket
from .user_agents import BROWSER_USER_AGENTS, default_headers


__all__ = [
    "BROWSER_USER_AGENTS",
    "ConcurrencyGate",
    "DomainRateLimiter",
    "HostBucket",
    "default_headers",
]
