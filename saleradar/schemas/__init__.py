"""
Pydantic DTOs
"""

from saleradar.schemas.offer import HybridMatch, Offer, OfferRecord, SearchWeights
from saleradar.schemas.pipeline import EmbeddingCoverage, EmbeddingSample, PipelineReport
from saleradar.schemas.recommendation import (
    ItemRecommendations,
    QueryItem,
    Recommendation,
    RecommendationRequest,
)

__all__ = [
    "EmbeddingCoverage",
    "EmbeddingSample",
    "HybridMatch",
    "ItemRecommendations",
    "Offer",
    "OfferRecord",
    "PipelineReport",
    "QueryItem",
    "Recommendation",
    "RecommendationRequest",
    "SearchWeights",
]
