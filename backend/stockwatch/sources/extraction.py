"""Embedded-data extraction strategies.

Product pages carry their data in one of several script payloads. Each
strategy is a pure function from a parsed page to a dict of fragment fields
(or None). Strategies are tried in list order and the first success wins;
supporting a new page shape means appending a strategy, not branching.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from stockwatch.models.product import Variant
from stockwatch.sources.base import to_decimal, to_inventory


Fields = Dict[str, Any]


@dataclass(frozen=True)
class ExtractionStrategy:
    name: str
    extract: Callable[[BeautifulSoup], Optional[Fields]]


def run_strategies(
    strategies: Sequence[ExtractionStrategy], html: str
) -> Optional[Tuple[str, Fields]]:
    """Apply strategies in order and return (strategy name, fields) of the first hit."""
    soup = BeautifulSoup(html, "html.parser")
    for strategy in strategies:
        fields = strategy.extract(soup)
        if fields:
            return strategy.name, fields
    return None


# ----- Helpers -----


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _nodes(value: Any) -> List[dict]:
    """Accept a plain list or a GraphQL ``{"edges": [{"node": ...}]}`` connection."""
    if isinstance(value, dict) and isinstance(value.get("edges"), list):
        value = [edge.get("node") for edge in value["edges"] if isinstance(edge, dict)]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _load_json(text: Optional[str]) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _str_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


# ----- Canonical page (Next.js storefront) -----


def _next_data(soup: BeautifulSoup) -> Any:
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None:
        return None
    return _load_json(script.string)


def _product_fields(product: Any) -> Optional[Fields]:
    """Map a storefront product payload onto fragment fields."""
    if isinstance(product, str):
        product = _load_json(product)
    if not isinstance(product, dict) or product.get("entityId") in (None, ""):
        return None

    images = _nodes(product.get("images"))
    image = _dig(product, "defaultImage", "urlOriginal") or (
        images[0].get("urlOriginal") if images else None
    )

    fields: Fields = {
        "numeric_product_id": str(product["entityId"]),
        "name": _str_or_none(product.get("name")),
        "price": to_decimal(_dig(product, "prices", "price", "value")),
        "sku": _str_or_none(product.get("sku")),
        "image": _str_or_none(image),
    }

    # A payload without a variants key says nothing about inventory
    if "variants" in product:
        fields["variants"] = [
            Variant(
                variant_id=str(v["entityId"]),
                sku=str(v.get("sku") or ""),
                inventory=to_inventory(_dig(v, "inventory", "aggregated", "availableToSell")),
            )
            for v in _nodes(product.get("variants"))
            if v.get("entityId") not in (None, "")
        ]
    return fields


def next_data_page_props(soup: BeautifulSoup) -> Optional[Fields]:
    return _product_fields(_dig(_next_data(soup), "props", "pageProps", "product"))


def next_data_initial_props(soup: BeautifulSoup) -> Optional[Fields]:
    return _product_fields(
        _dig(_next_data(soup), "props", "initialProps", "pageProps", "product")
    )


CANONICAL_STRATEGIES: List[ExtractionStrategy] = [
    ExtractionStrategy("next_data_page_props", next_data_page_props),
    ExtractionStrategy("next_data_initial_props", next_data_initial_props),
]


# ----- Secondary storefront page (BigCommerce theme) -----


_BCDATA_RE = re.compile(r"\bBCData\s*=\s*")


def bc_data(soup: BeautifulSoup) -> Optional[Fields]:
    """``var BCData = {"product_attributes": {...}};`` from Stencil themes."""
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or ""
        match = _BCDATA_RE.search(text)
        if not match:
            continue
        try:
            data, _ = decoder.raw_decode(text, match.end())
        except ValueError:
            continue
        attrs = data.get("product_attributes") if isinstance(data, dict) else None
        if not isinstance(attrs, dict):
            continue
        fields: Fields = {
            "storefront_id": _str_or_none(attrs.get("product_id")),
            "sku": _str_or_none(attrs.get("sku")),
        }
        if attrs.get("stock") is not None:
            fields["inventory"] = to_inventory(attrs["stock"])
        return fields
    return None


def _ld_products(data: Any) -> List[dict]:
    items = data if isinstance(data, list) else [data]
    found = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("@graph"), list):
            found.extend(_ld_products(item["@graph"]))
            continue
        types = item.get("@type")
        types = types if isinstance(types, list) else [types]
        if "Product" in types:
            found.append(item)
    return found


def json_ld_product(soup: BeautifulSoup) -> Optional[Fields]:
    """schema.org Product from ``application/ld+json`` scripts."""
    for script in soup.find_all("script", type="application/ld+json"):
        for product in _ld_products(_load_json(script.string)):
            offers = product.get("offers")
            offer = offers[0] if isinstance(offers, list) and offers else offers
            offer = offer if isinstance(offer, dict) else {}
            image = product.get("image")
            if isinstance(image, list):
                image = image[0] if image else None

            fields: Fields = {
                "storefront_id": _str_or_none(product.get("productID")),
                "sku": _str_or_none(product.get("sku") or offer.get("sku")),
                "name": _str_or_none(product.get("name")),
                "url": _str_or_none(product.get("url") or offer.get("url")),
                "image": _str_or_none(image),
                "price": to_decimal(offer.get("price")),
            }
            level = _dig(offer, "inventoryLevel", "value")
            if level is not None:
                fields["inventory"] = to_inventory(level)
            return fields
    return None


def dom_product_form(soup: BeautifulSoup) -> Optional[Fields]:
    """Hidden ``product_id`` input of the add-to-cart form."""
    field = soup.select_one("input[name=product_id]")
    if field is None or not field.get("value"):
        return None
    sku_tag = soup.select_one("[data-product-sku]")
    sku = sku_tag.get_text(strip=True) if sku_tag is not None else ""
    return {
        "storefront_id": str(field["value"]).strip(),
        "sku": sku or None,
    }


STOREFRONT_STRATEGIES: List[ExtractionStrategy] = [
    ExtractionStrategy("bc_data", bc_data),
    ExtractionStrategy("json_ld_product", json_ld_product),
    ExtractionStrategy("dom_product_form", dom_product_form),
]
