"""
In-memory Offer Store
For development/testing without PostgreSQL.

Hybrid ranking here is a stand-in for the SQL function: token overlap for
the lexical signal and cosine similarity for the semantic signal.
"""

import asyncio
import math
import re
from datetime import datetime, timezone
from typing import Iterable, Sequence

from saleradar.core.exceptions import RecordNotFoundError
from saleradar.core.logging import get_logger
from saleradar.core.pagination import PageWindow
from saleradar.schemas.offer import HybridMatch, Offer, OfferRecord
from saleradar.store.protocol import OfferFilter

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class InMemoryOfferStore:
    """
    Offer store backed by an insertion-ordered dict
    """

    def __init__(self, offers: Iterable[Offer] = ()):
        self._offers: dict[str, Offer] = {offer.id: offer for offer in offers}
        logger.info("in_memory_offer_store_initialized", offers=len(self._offers))

    def add(self, offer: Offer) -> None:
        self._offers[offer.id] = offer

    def get(self, id: str) -> Offer | None:
        return self._offers.get(id)

    async def fetch_unembedded(self) -> list[OfferRecord]:
        await asyncio.sleep(0)
        return [
            OfferRecord.model_validate(offer.model_dump())
            for offer in self._offers.values()
            if offer.embedding is None
        ]

    async def write_embedding(self, id: str, vector: Sequence[float]) -> None:
        await asyncio.sleep(0)
        offer = self._offers.get(id)
        if offer is None:
            raise RecordNotFoundError(f"Offer with id={id} not found")
        self._offers[id] = offer.model_copy(update={"embedding": list(vector)})
        logger.debug("offer_embedding_written", offer_id=id, dimension=len(vector))

    async def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        limit: int,
        lexical_weight: float,
        semantic_weight: float,
    ) -> list[HybridMatch]:
        await asyncio.sleep(0)
        now = datetime.now(timezone.utc)
        query_tokens = set(_TOKEN_RE.findall(query_text.lower()))

        matches: list[HybridMatch] = []
        for offer in self._offers.values():
            if offer.embedding is None or not _is_active(offer, now):
                continue

            offer_tokens = set(_TOKEN_RE.findall(offer.embedding_text().lower()))
            lexical = len(query_tokens & offer_tokens) / len(query_tokens) if query_tokens else 0.0
            semantic = _cosine(query_vector, offer.embedding)
            matches.append(
                HybridMatch(
                    record=offer,
                    lexical_score=lexical,
                    semantic_score=semantic,
                    similarity=min(max(semantic, 0.0), 1.0),
                    combined_rank=lexical_weight * lexical + semantic_weight * semantic,
                )
            )

        matches.sort(key=lambda m: (-m.combined_rank, m.record.id))
        return matches[:limit]

    async def fetch_window(
        self,
        filters: OfferFilter | None,
        window: PageWindow,
    ) -> tuple[list[Offer], int]:
        await asyncio.sleep(0)
        selected = [offer for offer in self._offers.values() if _matches(offer, filters)]
        return selected[window.from_ : window.to + 1], len(selected)


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _is_active(offer: Offer, at: datetime) -> bool:
    if offer.valid_from is not None and _aware(offer.valid_from) > at:
        return False
    if offer.valid_until is not None and _aware(offer.valid_until) < at:
        return False
    return True


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _matches(offer: Offer, filters: OfferFilter | None) -> bool:
    if filters is None:
        return True
    if filters.has_embedding is not None and (offer.embedding is not None) != filters.has_embedding:
        return False
    if filters.supermarket and offer.supermarket != filters.supermarket:
        return False
    if filters.category and offer.category != filters.category:
        return False
    if filters.active_at and not _is_active(offer, _aware(filters.active_at)):
        return False
    return True
