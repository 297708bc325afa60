"""Product sources for fetching partial product data from upstream providers.

This package provides:
- The ProductSource base class and SourceFragment structure
- Search-index, product-page and storefront sources
- Ordered embedded-data extraction strategies
- Factory wiring sources to a shared HTTP client, gate and rate limiter
"""

from .base import ProductSource, SourceFragment
from .factory import SourceFactory, create_http_client
from .product_page import ProductPageSource
from .searchspring import SearchspringSource
from .storefront import StorefrontSource

__all__ = [
    # Base classes
    "ProductSource",
    "SourceFragment",
    # Sources
    "ProductPageSource",
    "SearchspringSource",
    "StorefrontSource",
    # Factory
    "SourceFactory",
    "create_http_client",
]
