"""Canonical product page source.

The product page embeds the storefront's full product payload; it is the
single source of truth for price, sku, name, image and variant inventory.
"""

from stockwatch.core.exceptions import SourceUnavailable
from stockwatch.models.identifier import CandidateIdentifier
from stockwatch.sources.base import ProductSource, SourceFragment
from stockwatch.sources.extraction import CANONICAL_STRATEGIES, run_strategies


class ProductPageSource(ProductSource):
    """Fetches a resolved product URL and extracts the embedded payload."""

    source_name = "product_page"

    async def _fetch(self, candidate: CandidateIdentifier) -> SourceFragment:
        if not candidate.url:
            raise SourceUnavailable(self.source_name, "no product url")

        response = await self._get(candidate.url, follow_redirects=True)
        match = run_strategies(CANONICAL_STRATEGIES, response.text)
        if match is None:
            raise SourceUnavailable(self.source_name, f"no product payload at {candidate.url}")

        strategy, fields = match
        self.logger.debug("payload_extracted", url=candidate.url, strategy=strategy)
        return SourceFragment(source=self.source_name, url=candidate.url, **fields)
