"""Inventory diff engine.

Compares a freshly resolved product against its stored record and produces
the updated record plus the events to alert on. Pure: no I/O.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from stockwatch.models.events import Event, NewProduct, Restock
from stockwatch.models.product import CanonicalProduct, Variant
from stockwatch.models.tracked import TrackedRecord, TrackedVariant


def _later(current: Optional[datetime], now: datetime) -> datetime:
    return now if current is None else max(current, now)


def track_variant(
    fresh: Variant, stored: Optional[TrackedVariant], now: datetime
) -> Tuple[TrackedVariant, bool]:
    """Carry a variant's history forward.

    Returns:
        (updated variant, True if this observation is a restock)
    """
    first_available = stored.first_seen_available if stored else None
    last_available = stored.last_seen_available if stored else None
    if fresh.inventory > 0:
        first_available = first_available or now
        last_available = _later(last_available, now)

    restocked = stored is not None and stored.previous_inventory == 0 and fresh.inventory > 0

    return (
        TrackedVariant(
            variant_id=fresh.variant_id,
            sku=fresh.sku,
            inventory=fresh.inventory,
            first_seen_available=first_available,
            last_seen_available=last_available,
            previous_inventory=fresh.inventory,
        ),
        restocked,
    )


def diff(
    existing: Optional[TrackedRecord], product: CanonicalProduct, now: datetime
) -> Tuple[TrackedRecord, List[Event]]:
    """Apply a fresh product to its stored record.

    A first sighting creates the record and emits NewProduct. Afterwards
    each variant known from before emits Restock when its stored inventory
    was exactly zero and the fresh count is positive; variants seen for the
    first time only start their history. The fresh variant list replaces
    the stored one.
    """
    fields = product.model_dump(exclude={"variants"})
    stored_variants = {v.variant_id: v for v in existing.variants} if existing else {}

    variants: List[TrackedVariant] = []
    restocks: List[Tuple[TrackedVariant, int]] = []
    for fresh in product.variants:
        stored = stored_variants.get(fresh.variant_id)
        tracked, restocked = track_variant(fresh, stored, now)
        variants.append(tracked)
        if restocked:
            restocks.append((tracked, stored.previous_inventory))

    if existing is None:
        record = TrackedRecord(**fields, first_seen=now, last_seen=now, variants=variants)
        return record, [NewProduct(record=record)]

    record = TrackedRecord(
        **fields,
        first_seen=existing.first_seen,
        last_seen=_later(existing.last_seen, now),
        variants=variants,
    )
    events: List[Event] = [
        Restock(record=record, variant=variant, previous_inventory=previous, inventory=variant.inventory)
        for variant, previous in restocks
    ]
    return record, events
