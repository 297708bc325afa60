"""Canonical product model merged from all product sources."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class Variant(BaseModel):
    """A purchasable option of a product with its own inventory count."""

    variant_id: str
    sku: str = ""
    inventory: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[misc]
    @property
    def available(self) -> bool:
        return self.inventory > 0


class CanonicalProduct(BaseModel):
    """The single merged, authoritative record for one storefront product.

    Keyed by ``numeric_product_id``. Built only by the resolver's merge step;
    every field has exactly one winning source (see ``merge_fragments``).
    """

    numeric_product_id: str
    name: str = ""
    sku: str = ""
    price: Decimal = Decimal("0")
    image: str = ""
    url: str
    cart_url: str
    hashed_id: str
    search_index_id: Optional[str] = None
    storefront_id: Optional[str] = None
    variants: List[Variant] = Field(default_factory=list)
