"""stockwatch -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stockwatch.api.v1.router import api_v1_router
from stockwatch.config import settings
from stockwatch.scheduler import PollScheduler
from stockwatch.services.alert_service import AlertDispatcher, LogAlerter, WebhookAlerter
from stockwatch.services.poller import Poller
from stockwatch.services.resolver import Resolver
from stockwatch.services.store import Store
from stockwatch.services.tracking_service import TrackingService
from stockwatch.sources.factory import SourceFactory, create_http_client
from stockwatch.sources.register_sources import register_all_sources

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load the store, wire services, start polling."""
    logger.info("Starting stockwatch...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # An unreadable store file aborts startup (PersistenceCorrupt propagates)
    store = Store(settings.STORE_PATH)
    store.load()
    logger.info(f"Store loaded with {len(store)} tracked products")

    http_client = create_http_client()

    factory = SourceFactory()
    register_all_sources(factory)
    resolver = Resolver(
        search_source=factory.create_source("searchspring", http_client),
        page_source=factory.create_source("product_page", http_client),
        storefront_source=factory.create_source("storefront", http_client),
        base_url=settings.STOREFRONT_BASE_URL,
        store=store,
    )

    if settings.ALERT_WEBHOOK_URL:
        alerter = WebhookAlerter(settings.ALERT_WEBHOOK_URL, http_client)
        logger.info("Alerts will be posted to the configured webhook")
    else:
        alerter = LogAlerter()
        logger.info("ALERT_WEBHOOK_URL not set; alerts are logged only")

    tracking = TrackingService(resolver, store, AlertDispatcher(alerter))
    poller = Poller(tracking, store)

    app.state.store = store
    app.state.tracking = tracking
    app.state.poller = poller
    app.state.scheduler = None

    if settings.ENVIRONMENT != "test":
        scheduler = PollScheduler(poller, settings.POLL_INTERVAL_SECONDS)
        scheduler.start()
        app.state.scheduler = scheduler
    else:
        logger.info("Scheduler disabled (test environment)")

    yield

    # Shutdown
    logger.info("Shutting down stockwatch...")
    if app.state.scheduler is not None:
        app.state.scheduler.stop()
    await http_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="stockwatch",
        description="Multi-source product resolution and restock alerts",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(api_v1_router, prefix="/api/v1")
    return app


app = create_app()
