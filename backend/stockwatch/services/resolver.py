"""Multi-source product resolution.

Classifies an input, queries the sources concurrently and merges their
fragments into one CanonicalProduct with a fixed precedence per field.
"""

import asyncio
import hashlib
from typing import TYPE_CHECKING, Iterable, Optional

import structlog

from stockwatch.core.exceptions import CanonicalExtractionFailed, ResolutionError, UnresolvableURL
from stockwatch.models.identifier import CandidateIdentifier, IdentifierKind
from stockwatch.models.product import CanonicalProduct
from stockwatch.services.classifier import classify
from stockwatch.sources.base import ProductSource, SourceFragment

if TYPE_CHECKING:
    from stockwatch.services.store import Store

logger = structlog.get_logger(__name__)


def product_hash(numeric_product_id: str) -> str:
    """Stable hashed identifier used in external links."""
    return hashlib.md5(numeric_product_id.encode("utf-8")).hexdigest()


def build_cart_url(base_url: str, numeric_product_id: str) -> str:
    return f"{base_url.rstrip('/')}/cart.php?action=add&product_id={numeric_product_id}"


def _agrees(fragment: Optional[SourceFragment], numeric_id: Optional[str]) -> bool:
    """A fragment that names a different product than ``numeric_id`` is ignored."""
    if fragment is None:
        return False
    if numeric_id and fragment.numeric_product_id:
        return fragment.numeric_product_id == numeric_id
    return True


def resolve_canonical_url(
    candidate: CandidateIdentifier,
    search: Optional[SourceFragment],
    storefront: Optional[SourceFragment],
) -> Optional[str]:
    """Input URL verbatim > search-index URL > storefront URL."""
    if candidate.kind is IdentifierKind.PRODUCT_URL and candidate.url:
        return candidate.url
    if _agrees(search, candidate.numeric_id) and search.url:
        return search.url
    if storefront is not None and storefront.url:
        return storefront.url
    return None


def _first(*values):
    for value in values:
        if value not in (None, ""):
            return value
    return None


def merge_fragments(
    canonical: SourceFragment,
    url: str,
    base_url: str,
    search: Optional[SourceFragment] = None,
    storefront: Optional[SourceFragment] = None,
) -> CanonicalProduct:
    """Merge source fragments into one product.

    Field precedence (first non-empty wins, no other source is consulted):

    ==================  =========================================
    numeric_product_id  canonical page
    url                 resolved canonical URL
    name, sku, image    canonical page > search index > storefront
    price               canonical page > search index
    variants            canonical page only
    search_index_id     search index
    storefront_id       storefront
    hashed_id           md5 of numeric_product_id
    cart_url            built from numeric_product_id
    ==================  =========================================
    """
    numeric_id = canonical.numeric_product_id
    if not numeric_id:
        raise CanonicalExtractionFailed(url)

    search = search or SourceFragment(source="none")
    storefront = storefront or SourceFragment(source="none")

    price = _first(canonical.price, search.price)

    return CanonicalProduct(
        numeric_product_id=numeric_id,
        name=_first(canonical.name, search.name, storefront.name) or "",
        sku=_first(canonical.sku, search.sku, storefront.sku) or "",
        price=price if price is not None else 0,
        image=_first(canonical.image, search.image, storefront.image) or "",
        url=url,
        cart_url=build_cart_url(base_url, numeric_id),
        hashed_id=product_hash(numeric_id),
        search_index_id=search.auxiliary_id,
        storefront_id=storefront.auxiliary_id,
        variants=list(canonical.variants or []),
    )


class Resolver:
    """Resolves raw inputs to canonical products.

    Only a missing canonical URL or a missing product-page payload fails a
    resolution; any other source coming back empty just leaves its fields
    out of the merge.
    """

    def __init__(
        self,
        search_source: ProductSource,
        page_source: ProductSource,
        storefront_source: ProductSource,
        base_url: str,
        store: Optional["Store"] = None,
        storefront_domains: Optional[Iterable[str]] = None,
    ):
        self.search_source = search_source
        self.page_source = page_source
        self.storefront_source = storefront_source
        self.base_url = base_url
        self.store = store
        self.storefront_domains = list(storefront_domains) if storefront_domains is not None else None
        self.logger = logger.bind(service="resolver")

    async def resolve(self, raw: str) -> Optional[CanonicalProduct]:
        """Resolve one input.

        Returns:
            CanonicalProduct, or None if the input could not be resolved
        """
        try:
            return await self._resolve(raw)
        except ResolutionError as e:
            self.logger.info("resolution_failed", raw=raw, reason=e.message)
            return None

    async def _resolve(self, raw: str) -> CanonicalProduct:
        candidate = classify(raw, self.storefront_domains)

        if candidate.kind is IdentifierKind.CART_HASH and self.store is not None:
            record = self.store.find_by_hashed_id(candidate.hashed_id)
            if record is not None:
                candidate = candidate.with_numeric_id(record.numeric_product_id)

        self.logger.debug("input_classified", raw=raw, kind=candidate.kind.value)

        lookups = [self.search_source.fetch(candidate)]
        if candidate.numeric_id:
            lookups.append(self.storefront_source.fetch(candidate))
        results = await asyncio.gather(*lookups)
        search = results[0]
        storefront = results[1] if len(results) > 1 else None

        url = resolve_canonical_url(candidate, search, storefront)
        if not url:
            raise UnresolvableURL(raw)

        page = await self.page_source.fetch(
            CandidateIdentifier(kind=IdentifierKind.PRODUCT_URL, raw=raw, url=url)
        )
        if page is None or not page.numeric_product_id:
            raise CanonicalExtractionFailed(url)

        # The page decides which product this is; a slug search may have
        # found another one
        numeric_id = page.numeric_product_id
        product = merge_fragments(
            page,
            url,
            self.base_url,
            search=search if _agrees(search, numeric_id) else None,
            storefront=storefront,
        )

        self.logger.info(
            "input_resolved",
            raw=raw,
            numeric_product_id=product.numeric_product_id,
            variants=len(product.variants),
        )
        return product
