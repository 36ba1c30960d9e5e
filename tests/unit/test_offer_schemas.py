"""
Unit tests for offer DTOs
"""

import pytest
from pydantic import ValidationError

from saleradar.schemas.offer import HybridMatch, Offer, OfferRecord


def test_embedding_text_skips_missing_fields():
    record = OfferRecord(id=1, product_name="Kaas", description="", category="zuivel")

    assert record.id == "1"
    assert record.embedding_text() == "Kaas zuivel"


@pytest.mark.parametrize(
    "raw, expected",
    [("1,99", 1.99), ("€ 2.49", 2.49), ("", None), (3, 3.0)],
)
def test_offer_parses_scraped_prices(raw, expected):
    offer = Offer(id="o", product_name="Brood", supermarket="ah", offer_price=raw)

    assert offer.offer_price == expected


def test_embedding_accepts_any_float_iterable():
    record = OfferRecord(id="o", product_name="Brood", embedding=(0.5, 1))

    assert record.embedding == [0.5, 1.0]


def test_similarity_must_be_within_unit_range():
    offer = Offer(id="o", product_name="Brood", supermarket="ah")

    with pytest.raises(ValidationError):
        HybridMatch(record=offer, similarity=1.5)
