"""Tests for multi-source resolution and fragment merging."""

import hashlib
from decimal import Decimal

import pytest

from fakes import BASE_URL, product_payload, search_result, next_data_html
from stockwatch.core.exceptions import CanonicalExtractionFailed
from stockwatch.models.identifier import CandidateIdentifier, IdentifierKind
from stockwatch.models.product import Variant
from stockwatch.services.resolver import (
    build_cart_url,
    merge_fragments,
    product_hash,
    resolve_canonical_url,
)
from stockwatch.sources.base import SourceFragment


# ============================================================================
# Merge
# ============================================================================


class TestMergeFragments:
    """Test per-field precedence of merge_fragments()."""

    def test_canonical_page_wins(self):
        canonical = SourceFragment(
            source="product_page", numeric_product_id="12345", name="Page", sku="P", price=Decimal("20"),
            image="page.jpg", variants=[Variant(variant_id="1", inventory=2)],
        )
        search = SourceFragment(
            source="searchspring", numeric_product_id="12345", auxiliary_id="ss-1", name="Search",
            sku="S", price=Decimal("30"), image="search.jpg",
        )
        storefront = SourceFragment(
            source="storefront", auxiliary_id="77", name="Store", variants=[Variant(variant_id="9", inventory=5)],
        )

        product = merge_fragments(canonical, BASE_URL + "/p/", BASE_URL, search=search, storefront=storefront)

        assert product.name == "Page"
        assert product.sku == "P"
        assert product.price == Decimal("20")
        assert product.image == "page.jpg"
        assert [v.variant_id for v in product.variants] == ["1"]
        assert product.search_index_id == "ss-1"
        assert product.storefront_id == "77"

    def test_falls_back_in_order(self):
        canonical = SourceFragment(source="product_page", numeric_product_id="12345")
        search = SourceFragment(source="searchspring", name="Search", price=Decimal("30"))
        storefront = SourceFragment(
            source="storefront", name="Store", sku="ST", image="store.jpg",
            variants=[Variant(variant_id="9", inventory=5)],
        )

        product = merge_fragments(canonical, BASE_URL + "/p/", BASE_URL, search=search, storefront=storefront)

        assert product.name == "Search"
        assert product.sku == "ST"
        assert product.image == "store.jpg"
        assert product.price == Decimal("30")
        assert product.variants == []

    @pytest.mark.parametrize("page_variants", [None, []])
    def test_variants_come_from_canonical_page_only(self, page_variants):
        canonical = SourceFragment(source="product_page", numeric_product_id="1", variants=page_variants)
        storefront = SourceFragment(source="storefront", variants=[Variant(variant_id="9", inventory=5)])

        product = merge_fragments(canonical, "u", BASE_URL, storefront=storefront)

        assert product.variants == []

    def test_derived_identifiers(self):
        canonical = SourceFragment(source="product_page", numeric_product_id="12345")

        product = merge_fragments(canonical, "u", BASE_URL + "/")

        assert product.hashed_id == hashlib.md5(b"12345").hexdigest()
        assert product.cart_url == f"{BASE_URL}/cart.php?action=add&product_id=12345"
        assert product.price == Decimal("0")
        assert product.search_index_id is None

    def test_requires_numeric_id(self):
        with pytest.raises(CanonicalExtractionFailed):
            merge_fragments(SourceFragment(source="product_page"), "u", BASE_URL)


class TestResolveCanonicalUrl:
    """Test URL precedence."""

    def test_input_url_verbatim(self):
        candidate = CandidateIdentifier(
            kind=IdentifierKind.PRODUCT_URL, raw="x", url="https://us.jellycat.com/Bunny/?ref=1"
        )
        search = SourceFragment(source="searchspring", url="https://us.jellycat.com/other/")
        storefront = SourceFragment(source="storefront", url="https://us.jellycat.com/classic/")

        assert resolve_canonical_url(candidate, search, storefront) == "https://us.jellycat.com/Bunny/?ref=1"

    def test_search_then_storefront(self):
        candidate = CandidateIdentifier(kind=IdentifierKind.NUMERIC_ID, raw="1", numeric_id="1")
        search = SourceFragment(source="searchspring", numeric_product_id="1", url="search-url")
        storefront = SourceFragment(source="storefront", url="store-url")

        assert resolve_canonical_url(candidate, search, storefront) == "search-url"
        assert resolve_canonical_url(candidate, None, storefront) == "store-url"
        assert resolve_canonical_url(candidate, None, None) is None

    def test_search_hit_for_another_product_ignored(self):
        candidate = CandidateIdentifier(kind=IdentifierKind.NUMERIC_ID, raw="1", numeric_id="1")
        search = SourceFragment(source="searchspring", numeric_product_id="2", url="search-url")
        storefront = SourceFragment(source="storefront", url="store-url")

        assert resolve_canonical_url(candidate, search, storefront) == "store-url"


def test_helpers():
    assert product_hash("1") == "c4ca4238a0b923820dcc509a6f75849b"
    assert build_cart_url("https://s/", "7") == "https://s/cart.php?action=add&product_id=7"


# ============================================================================
# Resolver
# ============================================================================


class TestResolver:
    """Test Resolver.resolve() against a fake upstream."""

    async def test_numeric_id_through_search(self, resolver, upstream):
        url = upstream.add_product(product_payload(variants=[(101, "V1", 3)]), "/bashful-bunny/")

        product = await resolver.resolve("12345")

        assert product.numeric_product_id == "12345"
        assert product.url == url
        assert product.search_index_id == "ss-12345"
        assert product.variants[0].inventory == 3

    async def test_numeric_id_through_storefront_redirect(self, resolver, upstream):
        url = upstream.add_product(product_payload(), "/bashful-bunny/", searchable=False)
        upstream.pages[url] += (
            '<script>var BCData = {"product_attributes": {"product_id": 77, "stock": 1}};</script>'
        )
        upstream.redirects["12345"] = url

        product = await resolver.resolve("12345")

        assert product.url == url
        assert product.storefront_id == "77"

    async def test_product_url_is_not_rewritten(self, resolver, upstream):
        upstream.add_product(product_payload(), "/bashful-bunny/")

        product = await resolver.resolve(BASE_URL + "/bashful-bunny/")

        assert product.url == BASE_URL + "/bashful-bunny/"
        # Search ran on the slug; the storefront is skipped without an id
        assert all("products.php" not in u for u in upstream.urls_requested())

    async def test_slug_search_hit_for_other_product_is_dropped(self, resolver, upstream):
        upstream.add_product(product_payload(name="", sku=""), "/bashful-bunny/")
        upstream.search_results["bashful bunny"] = [
            search_result(55555, "/bashful-bunny-blossom/", name="Blossom Bunny", result_id="ss-OTHER")
        ]

        product = await resolver.resolve(BASE_URL + "/bashful-bunny/")

        assert product.numeric_product_id == "12345"
        assert product.search_index_id is None
        assert product.name == ""
        assert product.sku == ""

    async def test_slug_search_hit_for_same_product_is_merged(self, resolver, upstream):
        upstream.add_product(product_payload(), "/bashful-bunny/")
        upstream.search_results["bashful bunny"] = [
            search_result(12345, "/bashful-bunny/", result_id="ss-SAME")
        ]

        product = await resolver.resolve(BASE_URL + "/bashful-bunny/")

        assert product.search_index_id == "ss-SAME"

    async def test_free_text_query(self, resolver, upstream):
        upstream.add_product(product_payload(name="Amuseable Avocado"), "/amuseable-avocado/")
        upstream.search_results["avocado"] = [search_result(12345, "/amuseable-avocado/")]

        product = await resolver.resolve("avocado")

        assert product.name == "Amuseable Avocado"

    async def test_cart_hash_uses_tracked_record(self, resolver, store, upstream, now):
        upstream.add_product(product_payload(), "/bashful-bunny/")
        existing = await resolver.resolve("12345")
        store.upsert(existing, now)

        product = await resolver.resolve(f"{BASE_URL}/cart.php?action=add&product_id={existing.hashed_id}")

        assert product.numeric_product_id == "12345"

    async def test_unknown_input_is_none(self, resolver):
        assert await resolver.resolve("no such thing") is None

    async def test_page_without_payload_leaves_store_untouched(self, resolver, store, upstream):
        """Search finds the product but its page has no structured data."""
        upstream.search_results["98765"] = [search_result(98765, "/cuddly-thing/")]
        upstream.pages[BASE_URL + "/cuddly-thing/"] = "<html><body>Coming soon</body></html>"

        assert await resolver.resolve("https://site/products/98765/") is None
        assert len(store) == 0
        assert not store.path.exists()

    async def test_page_payload_for_initial_props(self, resolver, upstream):
        upstream.search_results["12345"] = [search_result(12345, "/legacy/")]
        upstream.pages[BASE_URL + "/legacy/"] = next_data_html(product_payload(), initial_props=True)

        product = await resolver.resolve("12345")

        assert product.numeric_product_id == "12345"
