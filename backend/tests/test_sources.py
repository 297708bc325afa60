"""Tests for the product sources."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from fakes import BASE_URL, product_payload, search_result
from stockwatch.models.identifier import CandidateIdentifier, IdentifierKind
from stockwatch.sources.utils import (
    BROWSER_USER_AGENTS,
    ConcurrencyGate,
    DomainRateLimiter,
    HostBucket,
    default_headers,
)


def _numeric(numeric_id):
    return CandidateIdentifier(
        kind=IdentifierKind.NUMERIC_ID, raw=numeric_id, numeric_id=numeric_id, search_term=numeric_id
    )


def _url(url):
    return CandidateIdentifier(kind=IdentifierKind.PRODUCT_URL, raw=url, url=url)


# ============================================================================
# Searchspring
# ============================================================================


class TestSearchspringSource:
    """Test search-index lookups."""

    @pytest.fixture
    def source(self, factory, http_client):
        return factory.create_source("searchspring", http_client)

    async def test_prefers_result_with_matching_uid(self, source, upstream):
        upstream.search_results["12345"] = [
            search_result(999, "/other-thing/"),
            search_result(12345, "/bashful-bunny/", result_id="abc"),
        ]

        fragment = await source.fetch(_numeric("12345"))

        assert fragment.numeric_product_id == "12345"
        assert fragment.auxiliary_id == "abc"
        assert fragment.url == BASE_URL + "/bashful-bunny/"
        assert fragment.price == Decimal("25.00")

    async def test_top_hit_for_free_text(self, source, upstream):
        upstream.search_results["bunny"] = [search_result(1, "/first/"), search_result(2, "/second/")]

        fragment = await source.fetch(
            CandidateIdentifier(kind=IdentifierKind.QUERY, raw="bunny", search_term="bunny")
        )

        assert fragment.numeric_product_id == "1"

    async def test_sends_site_id_and_term(self, source, upstream):
        await source.fetch(_numeric("12345"))

        params = upstream.requests[0].url.params
        assert params["siteId"] == "bmcyq0"
        assert params["q"] == "12345"

    async def test_non_ascii_uid_is_not_a_product_id(self, source, upstream):
        upstream.search_results["bunny"] = [search_result("１２３", "/bunny/")]

        fragment = await source.fetch(
            CandidateIdentifier(kind=IdentifierKind.QUERY, raw="bunny", search_term="bunny")
        )

        assert fragment.numeric_product_id is None
        assert fragment.url == BASE_URL + "/bunny/"

    async def test_no_results_is_none(self, source):
        assert await source.fetch(_numeric("404")) is None

    async def test_upstream_error_is_none(self, source, upstream):
        upstream.failing_prefixes.append("https://bmcyq0.a.searchspring.io/")

        assert await source.fetch(_numeric("12345")) is None


# ============================================================================
# Canonical product page
# ============================================================================


class TestProductPageSource:
    """Test canonical page extraction."""

    @pytest.fixture
    def source(self, factory, http_client):
        return factory.create_source("product_page", http_client)

    async def test_extracts_product(self, source, upstream):
        url = upstream.add_product(product_payload(variants=[(1, "A", 2)]), "/bashful-bunny/")

        fragment = await source.fetch(_url(url))

        assert fragment.source == "product_page"
        assert fragment.numeric_product_id == "12345"
        assert fragment.url == url
        assert fragment.variants[0].inventory == 2

    async def test_page_without_payload_is_none(self, source, upstream):
        upstream.pages[BASE_URL + "/empty/"] = "<html><body>Sold out</body></html>"

        assert await source.fetch(_url(BASE_URL + "/empty/")) is None

    async def test_missing_page_is_none(self, source):
        assert await source.fetch(_url(BASE_URL + "/gone/")) is None

    async def test_needs_url(self, source, upstream):
        assert await source.fetch(_numeric("12345")) is None
        assert upstream.requests == []


# ============================================================================
# Storefront page
# ============================================================================


class TestStorefrontSource:
    """Test storefront lookups through products.php."""

    @pytest.fixture
    def source(self, factory, http_client):
        return factory.create_source("storefront", http_client)

    async def test_follows_product_id_redirect(self, source, upstream):
        page = BASE_URL + "/classic/bashful-bunny/"
        upstream.redirects["12345"] = page
        upstream.pages[page] = (
            '<script>var BCData = {"product_attributes": {"product_id": 77, "sku": "S", "stock": 5}};</script>'
        )

        fragment = await source.fetch(_numeric("12345"))

        assert fragment.auxiliary_id == "77"
        assert fragment.url == page
        assert [(v.variant_id, v.inventory) for v in fragment.variants] == [("77", 5)]

    async def test_no_inventory_means_no_variants(self, source, upstream):
        upstream.redirects["12345"] = BASE_URL + "/classic/"
        upstream.pages[BASE_URL + "/classic/"] = '<input name="product_id" value="77">'

        fragment = await source.fetch(_numeric("12345"))

        assert fragment.auxiliary_id == "77"
        assert fragment.variants is None

    async def test_unknown_id_is_none(self, source):
        assert await source.fetch(_numeric("1")) is None


# ============================================================================
# Shared fetch gate
# ============================================================================


class TestConcurrencyGate:
    """Test the shared concurrency gate."""

    def test_rejects_zero_limit(self):
        with pytest.raises(ValueError):
            ConcurrencyGate(0)

    async def test_gate_caps_requests_across_sources(self, factory, upstream):
        upstream.delay = 0.02
        for i in range(8):
            upstream.add_product(product_payload(entity_id=i + 1), f"/p{i}/")

        async with httpx.AsyncClient(transport=upstream.transport()) as client:
            search = factory.create_source("searchspring", client)
            page = factory.create_source("product_page", client)
            await asyncio.gather(
                *(search.fetch(_numeric(str(i + 1))) for i in range(8)),
                *(page.fetch(_url(f"{BASE_URL}/p{i}/")) for i in range(8)),
            )

        assert len(upstream.requests) == 16
        assert upstream.peak <= factory.gate.limit
        assert factory.gate.peak == factory.gate.limit


class TestDomainRateLimiter:
    """Test per-host request budgets."""

    def test_bucket_per_host(self):
        limiter = DomainRateLimiter(default_rpm=600)

        assert limiter.bucket_for("a.example") is limiter.bucket_for("a.example")
        assert limiter.bucket_for("a.example") is not limiter.bucket_for("b.example")

    async def test_burst_is_spent_then_refilled(self):
        limiter = DomainRateLimiter(default_rpm=600)
        bucket = limiter.bucket_for("a.example")
        assert bucket.burst == 60

        for _ in range(3):
            await limiter.acquire("a.example")

        assert bucket.available < bucket.burst

    async def test_empty_bucket_waits(self):
        bucket = HostBucket(rpm=6000)  # 100 per second
        bucket.available = 0.0

        await asyncio.wait_for(bucket.take(), timeout=1)

        assert bucket.available < 1.0

    def test_rejects_zero_rpm(self):
        with pytest.raises(ValueError):
            DomainRateLimiter(default_rpm=0)

    def test_default_headers(self):
        headers = default_headers()
        assert headers["User-Agent"] in BROWSER_USER_AGENTS
