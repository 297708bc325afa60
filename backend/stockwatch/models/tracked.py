"""Tracked record model persisted in the store."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from stockwatch.models.product import Variant


class TrackedVariant(Variant):
    """Variant plus its availability history."""

    first_seen_available: Optional[datetime] = None
    last_seen_available: Optional[datetime] = None
    previous_inventory: int = 0


class TrackedRecord(BaseModel):
    """Canonical product fields plus lifecycle metadata.

    ``first_seen`` is set at creation and never changes; ``last_seen`` only
    moves forward.
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
    first_seen: datetime
    last_seen: datetime
    variants: List[TrackedVariant] = Field(default_factory=list)

    def variant(self, variant_id: str) -> Optional[TrackedVariant]:
        for v in self.variants:
            if v.variant_id == variant_id:
                return v
        return None
