"""Register the product sources with a factory.

Called during application startup, before the resolver is built.
"""

import structlog

from stockwatch.config import settings
from stockwatch.sources.factory import SourceFactory
from stockwatch.sources.product_page import ProductPageSource
from stockwatch.sources.searchspring import SearchspringSource
from stockwatch.sources.storefront import StorefrontSource

logger = structlog.get_logger(__name__)


def register_all_sources(factory: SourceFactory) -> None:
    """Register every source the resolver needs."""
    factory.register_source(SearchspringSource, site_id=settings.SEARCHSPRING_SITE_ID)
    factory.register_source(ProductPageSource)
    factory.register_source(StorefrontSource)

    logger.info("sources_registered", sources=factory.get_registered_sources())
