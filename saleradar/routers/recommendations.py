"""
Recommendation API Routes

Grocery-list items in, ranked supermarket offers out.
"""

from fastapi import APIRouter, Depends, Query, Request

from saleradar.api.response_utils import success_envelope
from saleradar.embedding.factory import get_embedding_provider
from saleradar.schemas.recommendation import (
    ItemRecommendations,
    RecommendationRequest,
)
from saleradar.schemas.response import ResponseEnvelope
from saleradar.services.hybrid_ranker import HybridRanker
from saleradar.store.factory import get_offer_store

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def get_hybrid_ranker() -> HybridRanker:
    """
    Dependency: Get HybridRanker instance

    Returns:
        HybridRanker wired to the configured store and query-side provider
    """
    return HybridRanker(
        store=get_offer_store(),
        provider=get_embedding_provider("query"),
    )


@router.post(
    "",
    response_model=ResponseEnvelope[list[ItemRecommendations]],
    summary="Recommend offers for a grocery list",
)
async def recommend_offers(
    payload: RecommendationRequest,
    request: Request,
    ranker: HybridRanker = Depends(get_hybrid_ranker),
):
    """
    One entry per submitted item, in submission order. An item whose
    lookup failed comes back with an empty ``recommendations`` list.
    """
    results = await ranker.search(payload.items)
    return success_envelope(request, results)


@router.get(
    "/search",
    response_model=ResponseEnvelope[list[ItemRecommendations]],
    summary="Search offers by free text",
)
async def search_offers(
    request: Request,
    q: str = Query(..., min_length=1, max_length=200, description="Search term"),
    ranker: HybridRanker = Depends(get_hybrid_ranker),
):
    results = await ranker.search_single(q)
    return success_envelope(request, results)
