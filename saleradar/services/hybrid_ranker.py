"""
HybridRanker

Turns grocery-list items into offer recommendations. Each item name is
embedded as a query (through the shared BatchCoordinator so concurrent
requests coalesce), handed to the store's hybrid ranking, and every
candidate whose vector similarity is strictly above the threshold becomes
a Recommendation annotated with savings and a human-readable reason.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Iterable, Sequence

from saleradar.batching.coordinator import BatchCoordinator, get_batch_coordinator
from saleradar.core.config import settings
from saleradar.core.exceptions import ConfigurationError
from saleradar.core.logging import get_logger, measure_latency
from saleradar.embedding.protocol import EmbeddingProvider
from saleradar.schemas.offer import HybridMatch, Offer, SearchWeights
from saleradar.schemas.recommendation import ItemRecommendations, QueryItem, Recommendation
from saleradar.store.protocol import HybridSearchStore

logger = get_logger(__name__)

SUPERMARKET_NAMES: dict[str, str] = {
    "ah": "Albert Heijn",
    "jumbo": "Jumbo",
    "dirk": "Dirk",
}


def store_display_name(code: str) -> str:
    """Display name for a supermarket code; unknown codes pass through."""
    return SUPERMARKET_NAMES.get(code.lower(), code)


def compute_savings(offer: Offer) -> float:
    """
    Savings percentage for an offer

    An explicit ``discount_percentage`` wins. Otherwise the saving is
    derived from the two prices; a missing or zero original price yields 0.
    """
    if offer.discount_percentage is not None:
        return round(max(offer.discount_percentage, 0.0), 2)

    original, current = offer.original_price, offer.offer_price
    if original is None or current is None or original <= 0:
        return 0.0
    return round(max((original - current) / original * 100, 0.0), 2)


def build_reason(offer: Offer) -> str:
    store = store_display_name(offer.supermarket)
    if offer.sale_type:
        return f"{offer.sale_type} bij {store}: {offer.product_name}"
    return f"Aanbieding bij {store}: {offer.product_name}"


def filter_by_similarity(matches: Iterable[HybridMatch], threshold: float) -> list[HybridMatch]:
    """Keep matches strictly above ``threshold``, preserving store order."""
    return [match for match in matches if match.similarity > threshold]


def split_matches(
    recommendations: Sequence[Recommendation],
) -> tuple[list[Recommendation], list[Recommendation]]:
    """Partition into (direct, semantic-only) by lexical score."""
    direct = [r for r in recommendations if r.is_direct_match]
    semantic = [r for r in recommendations if not r.is_direct_match]
    return direct, semantic


class HybridRanker:
    """Recommendation service over a HybridSearchStore."""

    def __init__(
        self,
        *,
        store: HybridSearchStore,
        provider: EmbeddingProvider,
        coordinator: BatchCoordinator | None = None,
        threshold: float | None = None,
        match_count: int | None = None,
        weights: SearchWeights | None = None,
    ) -> None:
        self.store = store
        self.provider = provider
        self.coordinator = coordinator or get_batch_coordinator()
        self.threshold = (
            threshold if threshold is not None else settings.search_similarity_threshold
        )
        self.match_count = match_count if match_count is not None else settings.search_match_count
        self.weights = weights or SearchWeights(
            lexical_weight=settings.search_lexical_weight,
            semantic_weight=settings.search_semantic_weight,
        )

    @measure_latency("hybrid_ranker_search")
    async def search(self, items: Sequence[QueryItem]) -> list[ItemRecommendations]:
        """
        Recommend offers for every item

        Items are processed concurrently. A failure while processing one
        item is logged and yields an empty recommendation list for that item
        only; the result always has one entry per input item, in input order.

        Raises:
            ConfigurationError: If the provider or store is misconfigured
        """
        tasks = [asyncio.ensure_future(self._recommend_isolated(item)) for item in items]
        try:
            results = await asyncio.gather(*tasks)
        except ConfigurationError:
            for task in tasks:
                task.cancel()
            raise

        logger.info(
            "recommendations_built",
            items=len(items),
            recommendations=sum(len(r.recommendations) for r in results),
        )
        return list(results)

    async def search_single(self, term: str) -> list[ItemRecommendations]:
        """
        Recommend offers for a free-text term

        Returns the same per-item shape as ``search`` for a single item with
        id "search", or an empty list when nothing clears the threshold.
        Unlike ``search`` this propagates provider/store failures.
        """
        result = await self._recommend(QueryItem(id="search", name=term))
        return [result] if result.recommendations else []

    # Internal helpers -------------------------------------------------

    async def _recommend_isolated(self, item: QueryItem) -> ItemRecommendations:
        try:
            return await self._recommend(item)
        except ConfigurationError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error(
                "item_recommendation_failed",
                item_id=item.id,
                item_name=item.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ItemRecommendations(item=item)

    async def _recommend(self, item: QueryItem) -> ItemRecommendations:
        query = item.name.strip()
        if not query:
            logger.debug("item_skipped_blank_name", item_id=item.id)
            return ItemRecommendations(item=item)

        vector = await self.coordinator.submit(partial(self.provider.embed, query))
        matches = await self.store.hybrid_search(
            query,
            vector,
            self.match_count,
            self.weights.lexical_weight,
            self.weights.semantic_weight,
        )
        kept = filter_by_similarity(matches, self.threshold)

        logger.debug(
            "item_matches_filtered",
            item_id=item.id,
            candidates=len(matches),
            kept=len(kept),
            threshold=self.threshold,
        )
        return ItemRecommendations(
            item=item,
            recommendations=[self._to_recommendation(item, match) for match in kept],
        )

    @staticmethod
    def _to_recommendation(item: QueryItem, match: HybridMatch) -> Recommendation:
        return Recommendation(
            query_item=item,
            matched_offer=match.record,
            savings_percentage=compute_savings(match.record),
            reason=build_reason(match.record),
            similarity=match.similarity,
            lexical_score=match.lexical_score,
        )
