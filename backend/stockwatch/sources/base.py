"""Base product source interface.

All upstream data providers inherit from ProductSource and implement
``_fetch``. The public ``fetch`` never raises: a provider that fails or has
no match simply contributes nothing to the merge.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional
from urllib.parse import urlparse

import httpx
import structlog

from stockwatch.core.exceptions import SourceUnavailable
from stockwatch.models.identifier import CandidateIdentifier
from stockwatch.models.product import Variant
from stockwatch.sources.utils.rate_limiter import ConcurrencyGate, DomainRateLimiter


@dataclass
class SourceFragment:
    """Partial product record returned by one source.

    Every field except ``source`` is optional; ``None`` means the source
    did not supply it, which is never an error.
    """

    source: str
    numeric_product_id: Optional[str] = None
    auxiliary_id: Optional[str] = None  # Search-index id or storefront id
    url: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    sku: Optional[str] = None
    image: Optional[str] = None
    variants: Optional[List[Variant]] = None


def to_decimal(value: Any) -> Optional[Decimal]:
    """Best-effort price parsing; returns None for anything unparsable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).replace(",", "").replace("$", "").strip())
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def to_inventory(value: Any) -> int:
    """Coerce a stock figure to a non-negative int, 0 when unknown."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class ProductSource(ABC):
    """Abstract base class for all product sources.

    Dependencies (HTTP client, rate limiter, concurrency gate) are injected
    by the SourceFactory so that every source shares one fetch budget.
    """

    source_name: str = ""  # Must be overridden in subclass

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        gate: Optional[ConcurrencyGate] = None,
        rate_limiter: Optional[DomainRateLimiter] = None,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.gate = gate
        self.rate_limiter = rate_limiter
        self.logger = structlog.get_logger(source=self.source_name)

    async def fetch(self, candidate: CandidateIdentifier) -> Optional[SourceFragment]:
        """Fetch a fragment for a candidate identifier.

        Returns:
            SourceFragment, or None if the source failed or had no match
        """
        try:
            fragment = await self._fetch(candidate)
        except SourceUnavailable as e:
            self.logger.info("source_unavailable", raw=candidate.raw, reason=e.message)
            return None
        except Exception as e:
            self.logger.warning(
                "source_fetch_failed",
                raw=candidate.raw,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        self.logger.debug(
            "source_fragment",
            raw=candidate.raw,
            numeric_product_id=fragment.numeric_product_id,
            url=fragment.url,
        )
        return fragment

    @abstractmethod
    async def _fetch(self, candidate: CandidateIdentifier) -> SourceFragment:
        """Fetch and extract a fragment.

        Raises:
            SourceUnavailable: If the source has nothing for this candidate
        """

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one GET through the rate limiter and the shared gate."""
        if self.rate_limiter:
            await self.rate_limiter.acquire(urlparse(url).netloc)

        if self.gate:
            async with self.gate:
                response = await self.http_client.get(url, **kwargs)
        else:
            response = await self.http_client.get(url, **kwargs)

        response.raise_for_status()
        return response
