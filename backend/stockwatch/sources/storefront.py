"""Secondary storefront source.

Reads the classic storefront page (reached by URL, or by numeric id through
the ``products.php`` redirect) and pulls the storefront's own product id and
stock figure out of whichever embedded blob the theme renders.
"""

from stockwatch.core.exceptions import SourceUnavailable
from stockwatch.models.identifier import CandidateIdentifier
from stockwatch.models.product import Variant
from stockwatch.sources.base import ProductSource, SourceFragment
from stockwatch.sources.extraction import STOREFRONT_STRATEGIES, run_strategies


class StorefrontSource(ProductSource):
    """Auxiliary id and inventory from alternate embedded data."""

    source_name = "storefront"

    LOOKUP_PATH = "/products.php?productId={product_id}"

    async def _fetch(self, candidate: CandidateIdentifier) -> SourceFragment:
        if candidate.url:
            target = candidate.url
        elif candidate.numeric_id:
            target = self.base_url + self.LOOKUP_PATH.format(product_id=candidate.numeric_id)
        else:
            raise SourceUnavailable(self.source_name, "needs a url or numeric id")

        response = await self._get(target, follow_redirects=True)
        match = run_strategies(STOREFRONT_STRATEGIES, response.text)
        if match is None:
            raise SourceUnavailable(self.source_name, f"no embedded data at {target}")

        strategy, fields = match
        self.logger.debug("storefront_data_extracted", url=target, strategy=strategy)

        storefront_id = fields.get("storefront_id")
        variants = None
        if "inventory" in fields:
            variants = [
                Variant(
                    variant_id=storefront_id or candidate.numeric_id or "default",
                    sku=fields.get("sku") or "",
                    inventory=fields["inventory"],
                )
            ]

        return SourceFragment(
            source=self.source_name,
            auxiliary_id=storefront_id,
            url=fields.get("url") or str(response.url),
            name=fields.get("name"),
            price=fields.get("price"),
            sku=fields.get("sku"),
            image=fields.get("image"),
            variants=variants,
        )
