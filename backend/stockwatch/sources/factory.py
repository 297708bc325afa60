"""Factory for creating and wiring product source instances."""

from typing import Any, Dict, Optional, Type

import httpx
import structlog

from stockwatch.config import settings
from stockwatch.sources.base import ProductSource
from stockwatch.sources.utils import ConcurrencyGate, DomainRateLimiter, default_headers


logger = structlog.get_logger(__name__)


class SourceFactory:
    """Factory for creating and configuring source instances.

    Owns the shared fetch gate and rate limiter, so every source created
    here draws from the same outbound budget whether it serves an on-demand
    resolve or a poll cycle.
    """

    def __init__(
        self,
        fetch_concurrency: int = settings.FETCH_CONCURRENCY,
        rpm: int = settings.SOURCE_RPM,
        base_url: str = settings.STOREFRONT_BASE_URL,
    ):
        self.gate = ConcurrencyGate(fetch_concurrency)
        self.rate_limiter = DomainRateLimiter(default_rpm=rpm)
        self.base_url = base_url

        # Registry of source classes and their extra constructor kwargs
        self._source_registry: Dict[str, Type[ProductSource]] = {}
        self._source_options: Dict[str, Dict[str, Any]] = {}

    def register_source(self, source_class: Type[ProductSource], **options: Any) -> None:
        """Register a source class under its ``source_name``."""
        if not issubclass(source_class, ProductSource):
            raise ValueError(f"Source class must inherit from ProductSource: {source_class}")

        self._source_registry[source_class.source_name] = source_class
        self._source_options[source_class.source_name] = options
        logger.info("source_registered", source=source_class.source_name)

    def create_source(self, source_name: str, http_client: httpx.AsyncClient) -> Optional[ProductSource]:
        """Create a source bound to the shared gate and rate limiter.

        Returns:
            Configured source instance, or None if not registered
        """
        source_class = self._source_registry.get(source_name)
        if not source_class:
            logger.warning("source_not_found", source=source_name)
            return None

        return source_class(
            http_client,
            self.base_url,
            gate=self.gate,
            rate_limiter=self.rate_limiter,
            **self._source_options[source_name],
        )

    def get_registered_sources(self) -> list[str]:
        return list(self._source_registry.keys())


def create_http_client(timeout: float = settings.HTTP_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    """Shared client for all sources; the caller owns closing it."""
    return httpx.AsyncClient(headers=default_headers(), timeout=timeout)
