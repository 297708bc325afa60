"""CSV export of the tracked store, one row per variant."""

import csv
import io
from typing import Iterable, List

from stockwatch.models.tracked import TrackedRecord

EXPORT_COLUMNS: List[str] = [
    "numeric_product_id",
    "name",
    "sku",
    "price",
    "url",
    "cart_url",
    "hashed_id",
    "first_seen",
    "last_seen",
    "variant_id",
    "variant_sku",
    "inventory",
    "available",
    "first_seen_available",
    "last_seen_available",
]


def _iso(value) -> str:
    return value.isoformat() if value else ""


def export_rows(records: Iterable[TrackedRecord]) -> List[dict]:
    """Flatten records; a product without variants still gets one row."""
    rows = []
    for record in records:
        product = {
            "numeric_product_id": record.numeric_product_id,
            "name": record.name,
            "sku": record.sku,
            "price": str(record.price),
            "url": record.url,
            "cart_url": record.cart_url,
            "hashed_id": record.hashed_id,
            "first_seen": _iso(record.first_seen),
            "last_seen": _iso(record.last_seen),
        }
        if not record.variants:
            rows.append({**product, **{col: "" for col in EXPORT_COLUMNS[9:]}})
            continue
        for variant in record.variants:
            rows.append(
                {
                    **product,
                    "variant_id": variant.variant_id,
                    "variant_sku": variant.sku,
                    "inventory": variant.inventory,
                    "available": variant.available,
                    "first_seen_available": _iso(variant.first_seen_available),
                    "last_seen_available": _iso(variant.last_seen_available),
                }
            )
    return rows


def export_csv(records: Iterable[TrackedRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(export_rows(records))
    return buffer.getvalue()
