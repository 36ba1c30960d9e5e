"""
Unit tests for EmbeddingPipeline
"""

from unittest.mock import AsyncMock

import pytest

from saleradar.batching.limiter import ConcurrencyLimiter
from saleradar.core.exceptions import ConfigurationError, ProviderError, StoreError, ValidationError
from saleradar.services.embedding_pipeline import EmbeddingPipeline
from saleradar.store.mock import InMemoryOfferStore


class ScriptedProvider:
    """Returns 384-d vectors; fails on the call numbers listed in ``fail_on``."""

    def __init__(self, fail_on=(), error: Exception | None = None, dimension: int = 384):
        self.dimension = dimension
        self.fail_on = set(fail_on)
        self.error = error or ProviderError("provider unavailable")
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if len(self.calls) in self.fail_on:
            raise self.error
        return [0.1] * 384


def _pipeline(store, provider, **kwargs) -> EmbeddingPipeline:
    kwargs.setdefault("limiter", ConcurrencyLimiter(1))
    kwargs.setdefault("chunk_size", 100)
    kwargs.setdefault("chunk_delay", 0)
    kwargs.setdefault("page_size", 0)
    kwargs.setdefault("sleep", AsyncMock())
    return EmbeddingPipeline(store=store, provider=provider, **kwargs)


@pytest.mark.asyncio
async def test_failed_record_stays_unembedded_and_run_completes(offer_factory):
    offers = [offer_factory(id=f"o{i}") for i in (1, 2, 3)]
    store = InMemoryOfferStore(offers)
    provider = ScriptedProvider(fail_on={2})

    report = await _pipeline(store, provider).run()

    assert report.total == 3
    assert report.succeeded == 2
    assert report.failed == 1
    assert report.failed_ids == ["o2"]
    assert len(store.get("o1").embedding) == 384
    assert store.get("o2").embedding is None
    assert len(store.get("o3").embedding) == 384


@pytest.mark.asyncio
async def test_embeds_joined_text_fields(offer_factory):
    store = InMemoryOfferStore(
        [offer_factory(id="o1", product_name="Kaas", description=None, category="zuivel")]
    )
    provider = ScriptedProvider()

    await _pipeline(store, provider).run()

    assert provider.calls == ["Kaas zuivel"]


@pytest.mark.asyncio
async def test_sleeps_between_chunks_only(offer_factory):
    store = InMemoryOfferStore([offer_factory() for _ in range(5)])
    sleep = AsyncMock()

    report = await _pipeline(
        store, ScriptedProvider(), chunk_size=2, chunk_delay=1.0, sleep=sleep
    ).run()

    assert report.chunks == 3
    assert report.succeeded == 5
    assert sleep.await_count == 2
    sleep.assert_awaited_with(1.0)


@pytest.mark.asyncio
async def test_nothing_to_embed_returns_empty_report(offer_factory):
    store = InMemoryOfferStore([offer_factory(embedding=[0.2] * 384)])
    provider = ScriptedProvider()

    report = await _pipeline(store, provider).run()

    assert report.total == 0
    assert report.chunks == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_configuration_error_aborts_run(offer_factory):
    store = InMemoryOfferStore([offer_factory(id="o1"), offer_factory(id="o2")])
    provider = ScriptedProvider(fail_on={1}, error=ConfigurationError("missing key"))

    with pytest.raises(ConfigurationError):
        await _pipeline(store, provider).run()

    assert store.get("o1").embedding is None


@pytest.mark.asyncio
async def test_dimension_mismatch_counts_as_failure(offer_factory):
    store = InMemoryOfferStore([offer_factory(id="o1")])
    provider = ScriptedProvider(dimension=768)

    report = await _pipeline(store, provider).run()

    assert report.failed_ids == ["o1"]
    assert store.get("o1").embedding is None


@pytest.mark.asyncio
async def test_write_failure_is_isolated_to_record(offer_factory):
    store = InMemoryOfferStore([offer_factory(id="o1"), offer_factory(id="o2")])
    original_write = store.write_embedding

    async def flaky_write(id, vector):
        if id == "o1":
            raise StoreError("connection reset")
        await original_write(id, vector)

    store.write_embedding = flaky_write

    report = await _pipeline(store, ScriptedProvider()).run()

    assert report.failed_ids == ["o1"]
    assert store.get("o2").embedding is not None


@pytest.mark.asyncio
async def test_initial_fetch_failure_propagates():
    store = AsyncMock()
    store.fetch_unembedded.side_effect = StoreError("database down")

    with pytest.raises(StoreError):
        await _pipeline(store, ScriptedProvider()).run()


@pytest.mark.asyncio
async def test_paged_fetch_reads_every_page(offer_factory):
    offers = [offer_factory() for _ in range(5)] + [offer_factory(embedding=[0.3] * 384)]
    store = InMemoryOfferStore(offers)

    report = await _pipeline(store, ScriptedProvider(), page_size=2).run()

    assert report.total == 5
    assert report.succeeded == 5
    assert all(store.get(o.id).embedding is not None for o in offers)


@pytest.mark.asyncio
async def test_verify_reports_coverage(offer_factory):
    store = InMemoryOfferStore(
        [
            offer_factory(id="e1", embedding=[0.1] * 384),
            offer_factory(id="e2", embedding=[0.1] * 384),
            offer_factory(id="n1"),
        ]
    )

    coverage = await _pipeline(store, ScriptedProvider()).verify(sample_size=1)

    assert coverage.total == 3
    assert coverage.embedded == 2
    assert coverage.missing == 1
    assert len(coverage.sample) == 1
    assert coverage.sample[0].id == "e1"
    assert coverage.sample[0].dimension == 384


def test_rejects_invalid_chunk_size():
    with pytest.raises(ValidationError):
        EmbeddingPipeline(store=AsyncMock(), provider=ScriptedProvider(), chunk_size=0)
