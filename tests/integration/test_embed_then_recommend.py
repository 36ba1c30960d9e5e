"""
End-to-end flow over the in-memory store and mock provider:

1. Catalog rows arrive without embeddings
2. EmbeddingPipeline fills them in (one row fails and stays NULL)
3. HybridRanker recommends from the embedded rows only
4. A second pipeline run picks up the row that failed
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from saleradar.batching.coordinator import BatchCoordinator
from saleradar.batching.limiter import ConcurrencyLimiter
from saleradar.core.exceptions import ProviderError
from saleradar.embedding.mock import MockEmbeddingProvider
from saleradar.schemas.recommendation import QueryItem
from saleradar.services.embedding_pipeline import EmbeddingPipeline
from saleradar.services.hybrid_ranker import HybridRanker, split_matches
from saleradar.store.mock import InMemoryOfferStore


class FlakyProvider(MockEmbeddingProvider):
    """Mock provider that fails once for texts containing ``fail_word``."""

    def __init__(self, fail_word: str):
        super().__init__(dimension=384)
        self.fail_word = fail_word
        self.failed = False

    async def embed(self, text: str) -> list[float]:
        if self.fail_word in text and not self.failed:
            self.failed = True
            raise ProviderError("temporary outage")
        return await super().embed(text)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def catalog(offer_factory):
    expired = datetime.now(timezone.utc) - timedelta(days=1)
    return [
        offer_factory(id="melk-ah", product_name="Halfvolle melk", description="1 liter",
                      category="zuivel", supermarket="ah", discount_percentage=25),
        offer_factory(id="melk-jumbo", product_name="Volle melk", description=None,
                      category="zuivel", supermarket="jumbo", offer_price=1.0, original_price=1.25),
        offer_factory(id="kaas-dirk", product_name="Jonge kaas", description="plakken",
                      category="kaas", supermarket="dirk"),
        offer_factory(id="melk-oud", product_name="Karnemelk", description=None,
                      category="zuivel", supermarket="ah", valid_until=expired),
    ]


@pytest.fixture
def store(catalog):
    return InMemoryOfferStore(catalog)


def _pipeline(store, provider):
    return EmbeddingPipeline(
        store=store,
        provider=provider,
        limiter=ConcurrencyLimiter(3),
        chunk_size=2,
        chunk_delay=0,
        page_size=0,
        sleep=AsyncMock(),
    )


def _ranker(store):
    return HybridRanker(
        store=store,
        provider=MockEmbeddingProvider(dimension=384),
        coordinator=BatchCoordinator(batch_size=5, batch_timeout=0.01),
        threshold=0.3,
        match_count=30,
    )


# ============================================================================
# Tests
# ============================================================================


@pytest.mark.asyncio
async def test_embed_then_recommend(store):
    report = await _pipeline(store, FlakyProvider(fail_word="kaas")).run()

    assert report.total == 4
    assert report.failed_ids == ["kaas-dirk"]
    assert store.get("kaas-dirk").embedding is None

    results = await _ranker(store).search(
        [QueryItem(id="1", name="melk"), QueryItem(id="2", name="kaas")]
    )

    melk_ids = [r.matched_offer.id for r in results[0].recommendations]
    assert set(melk_ids) == {"melk-ah", "melk-jumbo"}
    # expired offers never surface
    assert "melk-oud" not in melk_ids
    # unembedded offers are invisible to search
    assert results[1].recommendations == []

    savings = {r.matched_offer.id: r.savings_percentage for r in results[0].recommendations}
    assert savings == {"melk-ah": 25.0, "melk-jumbo": 20.0}


@pytest.mark.asyncio
async def test_rerun_picks_up_failed_rows(store):
    provider = FlakyProvider(fail_word="kaas")

    first = await _pipeline(store, provider).run()
    second = await _pipeline(store, provider).run()

    assert first.failed == 1
    assert second.total == 1
    assert second.succeeded == 1

    [result] = await _ranker(store).search([QueryItem(id="1", name="jonge kaas")])
    direct, _ = split_matches(result.recommendations)
    assert [r.matched_offer.id for r in direct] == ["kaas-dirk"]

    coverage = await _pipeline(store, provider).verify()
    assert coverage.missing == 0
