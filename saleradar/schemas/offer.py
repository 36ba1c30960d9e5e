"""
Offer catalog DTOs

``OfferRecord`` is the embeddable projection of a catalog row;
``Offer`` adds the pricing and validity fields a recommendation needs.
"""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from saleradar.schemas.base import BaseSchema


class OfferRecord(BaseSchema):
    """Catalog row as seen by the embedding pipeline."""

    id: str
    product_name: str
    description: str | None = None
    category: str | None = None
    embedding: list[float] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("embedding", mode="before")
    @classmethod
    def _coerce_embedding(cls, value: Any) -> Any:
        # pgvector hands back numpy arrays
        if value is None or isinstance(value, list):
            return value
        return [float(v) for v in value]

    @property
    def text_fields(self) -> tuple[str | None, ...]:
        return (self.product_name, self.description, self.category)

    def embedding_text(self) -> str:
        """Non-empty text fields joined by single spaces."""
        return " ".join(field for field in self.text_fields if field)


class Offer(OfferRecord):
    """Time-boxed supermarket offer."""

    supermarket: str
    offer_price: float | None = None
    original_price: float | None = None
    discount_percentage: float | None = None
    sale_type: str | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    image_url: str | None = None

    @field_validator("offer_price", "original_price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Any:
        # scraped prices arrive as "1,99" / "€ 2.49"
        if isinstance(value, str):
            cleaned = value.replace("€", "").replace(",", ".").strip()
            return float(cleaned) if cleaned else None
        return value


class SearchWeights(BaseSchema):
    """Unnormalized multipliers for the store's lexical/semantic blend."""

    lexical_weight: float = 1.0
    semantic_weight: float = 1.0


class HybridMatch(BaseSchema):
    """
    One candidate returned by the store's hybrid ranking

    ``similarity`` is the vector similarity used for thresholding and is
    independent of ``combined_rank``.
    """

    record: Offer
    lexical_score: float = 0.0
    semantic_score: float = 0.0
    similarity: float = Field(ge=0.0, le=1.0)
    combined_rank: float = 0.0

    @property
    def is_direct_match(self) -> bool:
        return self.lexical_score > 0
