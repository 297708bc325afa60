"""Input classifier: raw string -> candidate identifier.

Precedence when several patterns match:

1. cart reference (``cart.php?...product_id=...``), numeric or opaque id
2. numeric id embedded in a path (``/products/12345/``, e.g. CDN images)
3. direct product URL on a storefront domain
4. free-text query (the raw string, stripped)

Input made only of ASCII digits is a numeric id. Never raises.
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

import structlog

from stockwatch.config import settings
from stockwatch.core.exceptions import ClassificationAmbiguous
from stockwatch.models.identifier import CandidateIdentifier, IdentifierKind

logger = structlog.get_logger(__name__)

_CART_ID_RE = re.compile(r"[?&]product_id=([^&#\s]+)", re.IGNORECASE)
_PATH_ID_RE = re.compile(r"/products/([0-9]+)(?:[/?#]|$)")
_DIGITS_RE = re.compile(r"[0-9]+")
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def classify(raw: str, storefront_domains: Optional[Iterable[str]] = None) -> CandidateIdentifier:
    """Classify a raw input string.

    Args:
        raw: Caller-provided input; no structure assumed
        storefront_domains: Host suffixes counted as product-page hosts;
            defaults to the configured STOREFRONT_DOMAINS

    Returns:
        CandidateIdentifier; QUERY when nothing more specific matches
    """
    text = (raw or "").strip()

    if _DIGITS_RE.fullmatch(text):
        return _numeric(raw, text)

    # 1. Cart reference
    if "cart.php" in text.lower():
        match = _CART_ID_RE.search(text)
        if match:
            product_id = match.group(1).strip()
            if _DIGITS_RE.fullmatch(product_id):
                return _numeric(raw, product_id)
            return CandidateIdentifier(
                kind=IdentifierKind.CART_HASH,
                raw=raw,
                hashed_id=product_id.lower(),
                search_term=product_id,
            )

    # 2. Path-embedded numeric id
    match = _PATH_ID_RE.search(text)
    if match:
        return _numeric(raw, match.group(1))

    # 3. Direct product URL
    domains = (
        settings.get_storefront_domains()
        if storefront_domains is None
        else [d.lower() for d in storefront_domains]
    )
    try:
        candidate = _product_url(raw, text, domains)
    except ClassificationAmbiguous as e:
        logger.debug("classification_ambiguous", raw=raw, reason=e.message)
        candidate = None
    if candidate:
        return candidate

    # 4. Free-text query
    return CandidateIdentifier(kind=IdentifierKind.QUERY, raw=raw, search_term=text)


def _numeric(raw: str, numeric_id: str) -> CandidateIdentifier:
    return CandidateIdentifier(
        kind=IdentifierKind.NUMERIC_ID,
        raw=raw,
        numeric_id=numeric_id,
        search_term=numeric_id,
    )


def _product_url(raw: str, text: str, domains: List[str]) -> Optional[CandidateIdentifier]:
    if not text or any(c.isspace() for c in text) or "cart.php" in text.lower():
        return None

    url = text if _SCHEME_RE.match(text) else "https://" + text.lstrip("/")
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError as e:
        raise ClassificationAmbiguous(raw) from e

    if not host or not parts.path.strip("/") or not _on_storefront(host, domains):
        return None

    return CandidateIdentifier(
        kind=IdentifierKind.PRODUCT_URL,
        raw=raw,
        url=url,
        search_term=_slug_terms(parts.path),
    )


def _on_storefront(host: str, domains: List[str]) -> bool:
    return any(host == d or host.endswith("." + d) for d in domains)


def _slug_terms(path: str) -> str:
    """Last path segment as search words: ``/bashful-bunny/`` -> ``bashful bunny``."""
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    return re.sub(r"[-_]+", " ", segment).strip()
