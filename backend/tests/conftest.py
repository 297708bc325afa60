"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from fakes import BASE_URL, FETCH_LIMIT, FakeUpstream, RecordingAlerter
from stockwatch.services.alert_service import AlertDispatcher
from stockwatch.services.poller import Poller
from stockwatch.services.resolver import Resolver
from stockwatch.services.store import Store
from stockwatch.services.tracking_service import TrackingService
from stockwatch.sources.factory import SourceFactory
from stockwatch.sources.register_sources import register_all_sources

STOREFRONT_DOMAINS = ["jellycat.com"]


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=upstream.transport()) as client:
        yield client


@pytest.fixture
def factory():
    factory = SourceFactory(fetch_concurrency=FETCH_LIMIT, rpm=60000, base_url=BASE_URL)
    register_all_sources(factory)
    return factory


@pytest.fixture
def store(tmp_path):
    store = Store(str(tmp_path / "db.json"))
    store.load()
    return store


@pytest.fixture
def resolver(factory, http_client, store):
    return Resolver(
        search_source=factory.create_source("searchspring", http_client),
        page_source=factory.create_source("product_page", http_client),
        storefront_source=factory.create_source("storefront", http_client),
        base_url=BASE_URL,
        store=store,
        storefront_domains=STOREFRONT_DOMAINS,
    )


@pytest.fixture
def alerter():
    return RecordingAlerter()


@pytest.fixture
def tracking(resolver, store, alerter):
    return TrackingService(resolver, store, AlertDispatcher(alerter), batch_concurrency=4)


@pytest.fixture
def poller(tracking, store):
    return Poller(tracking, store, concurrency=4)
