"""
Shared fixtures and builders
"""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from saleradar.batching.coordinator import BatchCoordinator
from saleradar.embedding.mock import MockEmbeddingProvider
from saleradar.schemas.offer import HybridMatch, Offer
from saleradar.store.mock import InMemoryOfferStore

_ids = count(1)


def make_offer(**overrides) -> Offer:
    """Offer with sensible defaults; any field can be overridden."""
    now = datetime.now(timezone.utc)
    values = {
        "id": f"offer-{next(_ids)}",
        "product_name": "Halfvolle melk",
        "description": "1 liter",
        "category": "zuivel",
        "supermarket": "ah",
        "offer_price": 0.99,
        "original_price": 1.29,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=6),
    }
    values.update(overrides)
    return Offer(**values)


def make_match(similarity: float, lexical_score: float = 0.0, **offer_fields) -> HybridMatch:
    return HybridMatch(
        record=make_offer(**offer_fields),
        lexical_score=lexical_score,
        semantic_score=similarity,
        similarity=similarity,
        combined_rank=similarity + lexical_score,
    )


@pytest.fixture
def coordinator() -> BatchCoordinator:
    """Fresh coordinator per test; never the process-wide default."""
    return BatchCoordinator(batch_size=10, batch_timeout=0.01)


@pytest.fixture
def mock_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider(dimension=384)


@pytest.fixture
def offer_store() -> InMemoryOfferStore:
    return InMemoryOfferStore()


@pytest.fixture
def offer_factory():
    return make_offer


@pytest.fixture
def match_factory():
    return make_match
