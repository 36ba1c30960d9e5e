"""
PGVector Offer Store

PostgreSQL + pgvector implementation of HybridSearchStore. Each operation
runs in its own session/transaction; embedding writes commit per row so
one failed write never rolls back its siblings.

Hybrid ranking is delegated to the ``hybrid_search_offers`` SQL function
(see alembic/versions); the application only consumes its output.
"""

from __future__ import annotations

from typing import Any, Sequence
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from saleradar.core.db import get_session_maker
from saleradar.core.exceptions import RecordNotFoundError, StoreError
from saleradar.core.logging import get_logger
from saleradar.core.pagination import PageWindow
from saleradar.repositories.offer_repository import OfferRepository
from saleradar.schemas.offer import HybridMatch, Offer, OfferRecord
from saleradar.store.protocol import OfferFilter

logger = get_logger(__name__)


class PGVectorOfferStore:
    """PostgreSQL + pgvector-backed offer store."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None) -> None:
        self.session_maker = session_maker or get_session_maker()

    async def fetch_unembedded(self) -> list[OfferRecord]:
        try:
            async with self.session_maker() as session:
                rows = await OfferRepository(session).find_unembedded()
                records = [OfferRecord.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error("pgvector_fetch_unembedded_failed", error=str(e))
            raise StoreError(f"Failed to fetch unembedded offers: {e}") from e

        logger.info("pgvector_unembedded_fetched", count=len(records))
        return records

    async def write_embedding(self, id: str, vector: Sequence[float]) -> None:
        try:
            offer_id = UUID(str(id))
        except ValueError as e:
            raise RecordNotFoundError(f"SupermarketOffer with id={id} not found") from e

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    await OfferRepository(session).update_embedding(offer_id, vector)
        except SQLAlchemyError as e:
            logger.error("pgvector_write_embedding_failed", offer_id=str(id), error=str(e))
            raise StoreError(f"Failed to write embedding for offer {id}: {e}") from e

        logger.debug("pgvector_embedding_written", offer_id=str(id), dimension=len(vector))

    async def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        limit: int,
        lexical_weight: float,
        semantic_weight: float,
    ) -> list[HybridMatch]:
        try:
            async with self.session_maker() as session:
                rows = await OfferRepository(session).hybrid_search(
                    query_text,
                    query_vector,
                    limit,
                    lexical_weight,
                    semantic_weight,
                )
        except SQLAlchemyError as e:
            logger.error("pgvector_hybrid_search_failed", query=query_text, error=str(e))
            raise StoreError(f"Hybrid search failed: {e}") from e

        try:
            matches = [self._to_match(dict(row._mapping)) for row in rows]
        except (PydanticValidationError, TypeError, ValueError) as e:
            logger.error("pgvector_hybrid_search_malformed_row", query=query_text, error=str(e))
            raise StoreError(f"Hybrid search returned a malformed row: {e}") from e

        logger.debug("pgvector_hybrid_search_completed", query=query_text, results=len(matches))
        return matches

    async def fetch_window(
        self,
        filters: OfferFilter | None,
        window: PageWindow,
    ) -> tuple[list[Offer], int]:
        try:
            async with self.session_maker() as session:
                repo = OfferRepository(session)
                total = await repo.count_filtered(filters)
                rows = await repo.find_window(filters, window.offset, window.limit)
                offers = [Offer.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error("pgvector_fetch_window_failed", page=window.page, error=str(e))
            raise StoreError(f"Failed to read offers window: {e}") from e

        return offers, total

    # Internal helpers -------------------------------------------------

    @staticmethod
    def _to_match(row: dict[str, Any]) -> HybridMatch:
        similarity = float(row.get("similarity") or 0.0)
        return HybridMatch(
            record=Offer.model_validate(row),
            lexical_score=float(row.get("lexical_score") or 0.0),
            semantic_score=float(row.get("semantic_score") or 0.0),
            # cosine may dip below zero; the contract is [0, 1]
            similarity=min(max(similarity, 0.0), 1.0),
            combined_rank=float(row.get("combined_rank") or 0.0),
        )
