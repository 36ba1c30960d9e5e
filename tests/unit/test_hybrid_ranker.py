"""
Unit tests for HybridRanker and its savings/reason helpers
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from saleradar.core.exceptions import ConfigurationError, ProviderError, StoreError
from saleradar.schemas.offer import SearchWeights
from saleradar.schemas.recommendation import QueryItem
from saleradar.services.hybrid_ranker import (
    HybridRanker,
    build_reason,
    compute_savings,
    filter_by_similarity,
    split_matches,
    store_display_name,
)


@pytest.fixture
def provider():
    mock = AsyncMock()
    mock.dimension = 384
    mock.embed.return_value = [0.5] * 384
    return mock


@pytest.fixture
def store():
    mock = AsyncMock()
    mock.hybrid_search.return_value = []
    return mock


@pytest.fixture
def ranker(store, provider, coordinator):
    return HybridRanker(
        store=store,
        provider=provider,
        coordinator=coordinator,
        threshold=0.3,
        match_count=30,
        weights=SearchWeights(lexical_weight=1.0, semantic_weight=1.0),
    )


@pytest.mark.asyncio
async def test_keeps_only_matches_strictly_above_threshold(ranker, store, match_factory):
    store.hybrid_search.return_value = [
        match_factory(s, product_name=f"melk {s}") for s in (0.9, 0.31, 0.3, 0.29, 0.1)
    ]

    [result] = await ranker.search([QueryItem(id="1", name="melk")])

    assert [r.similarity for r in result.recommendations] == [0.9, 0.31]


@pytest.mark.asyncio
async def test_passes_query_and_weights_to_store(ranker, store, provider):
    await ranker.search([QueryItem(id="1", name="  pindakaas ")])

    provider.embed.assert_awaited_once_with("pindakaas")
    store.hybrid_search.assert_awaited_once_with("pindakaas", [0.5] * 384, 30, 1.0, 1.0)


@pytest.mark.asyncio
async def test_preserves_store_order(ranker, store, match_factory):
    store.hybrid_search.return_value = [
        match_factory(0.5, product_name="eerste"),
        match_factory(0.9, product_name="tweede"),
    ]

    [result] = await ranker.search([QueryItem(id="1", name="x")])

    assert [r.matched_offer.product_name for r in result.recommendations] == ["eerste", "tweede"]


@pytest.mark.asyncio
async def test_one_result_per_item_in_input_order(ranker):
    items = [QueryItem(id=str(i), name=f"item {i}") for i in range(4)]

    results = await ranker.search(items)

    assert [r.item.id for r in results] == ["0", "1", "2", "3"]


@pytest.mark.asyncio
async def test_failure_is_isolated_to_its_item(ranker, store, match_factory):
    async def hybrid_search(query_text, *args):
        if query_text == "kapot":
            raise StoreError("search failed")
        return [match_factory(0.8, product_name=query_text)]

    store.hybrid_search.side_effect = hybrid_search

    results = await ranker.search(
        [QueryItem(id="a", name="melk"), QueryItem(id="b", name="kapot"), QueryItem(id="c", name="brood")]
    )

    assert [len(r.recommendations) for r in results] == [1, 0, 1]
    assert results[0].recommendations[0].matched_offer.product_name == "melk"


@pytest.mark.asyncio
async def test_provider_failure_is_isolated_to_its_item(ranker, provider):
    async def embed(text):
        if text == "kapot":
            raise ProviderError("quota exceeded")
        return [0.5] * 384

    provider.embed.side_effect = embed

    results = await ranker.search([QueryItem(id="a", name="kapot"), QueryItem(id="b", name="melk")])

    assert results[0].recommendations == []
    assert results[1].item.id == "b"


@pytest.mark.asyncio
async def test_configuration_error_propagates(ranker, provider):
    provider.embed.side_effect = ConfigurationError("missing key")

    with pytest.raises(ConfigurationError):
        await ranker.search([QueryItem(id="a", name="melk")])


@pytest.mark.asyncio
async def test_configuration_error_cancels_sibling_items(ranker, store, provider):
    finished = []

    async def embed(text):
        if text == "kapot":
            raise ConfigurationError("missing key")
        return [0.5] * 384

    async def hybrid_search(query_text, *args):
        await asyncio.sleep(0.2)
        finished.append(query_text)
        return []

    provider.embed.side_effect = embed
    store.hybrid_search.side_effect = hybrid_search

    with pytest.raises(ConfigurationError):
        await ranker.search(
            [QueryItem(id="a", name="melk"), QueryItem(id="b", name="kapot"), QueryItem(id="c", name="brood")]
        )

    await asyncio.sleep(0.3)
    assert finished == []


@pytest.mark.asyncio
async def test_blank_name_skips_lookup(ranker, store, provider):
    [result] = await ranker.search([QueryItem(id="a", name="   ")])

    assert result.recommendations == []
    provider.embed.assert_not_awaited()
    store.hybrid_search.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_single_returns_empty_when_nothing_matches(ranker, store, match_factory):
    store.hybrid_search.return_value = [match_factory(0.2)]

    assert await ranker.search_single("kaas") == []


@pytest.mark.asyncio
async def test_search_single_propagates_store_errors(ranker, store):
    store.hybrid_search.side_effect = StoreError("down")

    with pytest.raises(StoreError):
        await ranker.search_single("kaas")


@pytest.mark.asyncio
async def test_recommendation_carries_savings_and_reason(ranker, store, match_factory):
    store.hybrid_search.return_value = [
        match_factory(
            0.7,
            lexical_score=0.4,
            product_name="Optimel drinkyoghurt",
            supermarket="jumbo",
            sale_type="2e halve prijs",
            offer_price=8.0,
            original_price=10.0,
        )
    ]

    [result] = await ranker.search_single("yoghurt")
    [rec] = result.recommendations

    assert result.item.id == "search"
    assert rec.savings_percentage == 20.0
    assert rec.reason == "2e halve prijs bij Jumbo: Optimel drinkyoghurt"
    assert rec.query_item.name == "yoghurt"
    assert rec.is_direct_match


def test_savings_from_prices(offer_factory):
    offer = offer_factory(offer_price=8.0, original_price=10.0, discount_percentage=None)

    assert compute_savings(offer) == 20.0


def test_savings_prefers_explicit_discount(offer_factory):
    offer = offer_factory(offer_price=8.0, original_price=10.0, discount_percentage=15)

    assert compute_savings(offer) == 15.0


@pytest.mark.parametrize(
    "offer_price, original_price",
    [(1.0, None), (None, 2.0), (1.0, 0.0), (2.0, 2.0), (3.0, 2.0)],
)
def test_savings_guards_missing_or_degenerate_prices(offer_factory, offer_price, original_price):
    offer = offer_factory(offer_price=offer_price, original_price=original_price)

    assert compute_savings(offer) == 0.0


def test_reason_without_sale_type_uses_generic_text(offer_factory):
    offer = offer_factory(product_name="Volkoren brood", supermarket="ah", sale_type=None)

    assert build_reason(offer) == "Aanbieding bij Albert Heijn: Volkoren brood"


def test_unknown_supermarket_code_passes_through():
    assert store_display_name("DIRK") == "Dirk"
    assert store_display_name("lidl") == "lidl"


def test_filter_by_similarity_is_strict(match_factory):
    matches = [match_factory(s) for s in (0.1, 0.29, 0.3, 0.31, 0.9)]

    kept = filter_by_similarity(matches, 0.3)

    assert [m.similarity for m in kept] == [0.31, 0.9]


@pytest.mark.asyncio
async def test_split_matches_by_lexical_score(ranker, store, match_factory):
    store.hybrid_search.return_value = [
        match_factory(0.9, lexical_score=0.5, product_name="direct"),
        match_factory(0.8, lexical_score=0.0, product_name="semantic"),
    ]

    [result] = await ranker.search_single("melk")
    direct, semantic = split_matches(result.recommendations)

    assert [r.matched_offer.product_name for r in direct] == ["direct"]
    assert [r.matched_offer.product_name for r in semantic] == ["semantic"]
