"""Searchspring search-index source.

The storefront's search index answers free-text and id queries with JSON.
Used to turn a numeric id, cart hash or product name into a product URL.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from stockwatch.core.exceptions import SourceUnavailable
from stockwatch.models.identifier import CandidateIdentifier
from stockwatch.sources.base import ProductSource, SourceFragment, to_decimal

_UID_RE = re.compile(r"[0-9]+")


class SearchspringSource(ProductSource):
    """Search-index lookup against the Searchspring native results API."""

    source_name = "searchspring"

    SEARCH_URL = "https://{site_id}.a.searchspring.io/api/search/search.json"

    def __init__(self, *args: Any, site_id: str, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.site_id = site_id

    async def _fetch(self, candidate: CandidateIdentifier) -> SourceFragment:
        term = candidate.search_term
        if not term:
            raise SourceUnavailable(self.source_name, "empty search term")

        response = await self._get(
            self.SEARCH_URL.format(site_id=self.site_id),
            params={"siteId": self.site_id, "q": term, "resultsFormat": "native"},
        )
        results = response.json().get("results") or []
        if not results:
            raise SourceUnavailable(self.source_name, f"no results for '{term}'")

        best = self._best_match(results, candidate.numeric_id)
        uid = str(best.get("uid") or "")
        url = best.get("url")

        return SourceFragment(
            source=self.source_name,
            numeric_product_id=uid if _UID_RE.fullmatch(uid) else None,
            auxiliary_id=str(best["id"]) if best.get("id") is not None else None,
            url=urljoin(self.base_url + "/", url) if url else None,
            name=best.get("name") or None,
            price=to_decimal(best.get("price")),
            sku=best.get("sku") or None,
            image=best.get("imageUrl") or best.get("thumbnailImageUrl") or None,
        )

    @staticmethod
    def _best_match(results: List[Dict[str, Any]], numeric_id: Optional[str]) -> Dict[str, Any]:
        """Prefer the result whose uid is the known product id, else the top hit."""
        if numeric_id:
            for result in results:
                if str(result.get("uid")) == numeric_id:
                    return result
        return results[0]
