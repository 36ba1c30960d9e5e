"""
Recommendation DTOs
"""

from pydantic import Field

from saleradar.schemas.base import BaseSchema
from saleradar.schemas.offer import Offer


class QueryItem(BaseSchema):
    """A grocery-list entry; ``name`` is the query text."""

    id: str
    name: str


class Recommendation(BaseSchema):
    query_item: QueryItem
    matched_offer: Offer
    savings_percentage: float
    reason: str
    similarity: float
    lexical_score: float = 0.0

    @property
    def is_direct_match(self) -> bool:
        return self.lexical_score > 0


class ItemRecommendations(BaseSchema):
    item: QueryItem
    recommendations: list[Recommendation] = Field(default_factory=list)


class RecommendationRequest(BaseSchema):
    items: list[QueryItem] = Field(min_length=1)
