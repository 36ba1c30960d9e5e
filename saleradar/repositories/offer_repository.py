"""
Offer RDB Repository
Database operations for SupermarketOffer
"""

import re
from typing import Any, Sequence
from uuid import UUID

from pgvector.sqlalchemy import Vector
from sqlalchemy import Float, Integer, Row, String, bindparam, func, or_, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from saleradar.core.config import settings
from saleradar.core.exceptions import ConfigurationError, RecordNotFoundError
from saleradar.models.offer import SupermarketOffer
from saleradar.repositories.base import BaseRepository
from saleradar.store.protocol import OfferFilter

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class OfferRepository(BaseRepository[SupermarketOffer]):
    """
    Repository for SupermarketOffer RDB operations
    """

    def __init__(self, session: AsyncSession):
        super().__init__(SupermarketOffer, session)
        self.search_function = self._resolve_function_name(settings.hybrid_search_function)

    async def find_unembedded(self) -> Sequence[SupermarketOffer]:
        """
        Offers whose embedding is still NULL, oldest first
        """
        stmt = (
            select(SupermarketOffer)
            .where(SupermarketOffer.embedding.is_(None))
            .order_by(SupermarketOffer.created_at, SupermarketOffer.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update_embedding(self, id: UUID, vector: Sequence[float]) -> None:
        """
        Set the embedding of one offer

        Raises:
            RecordNotFoundError: If no offer has ``id``
        """
        stmt = (
            update(SupermarketOffer)
            .where(SupermarketOffer.id == id)
            .values(embedding=list(vector))
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(f"SupermarketOffer with id={id} not found")

    async def find_window(
        self,
        filters: OfferFilter | None,
        offset: int,
        limit: int,
    ) -> Sequence[SupermarketOffer]:
        """
        One window of offers matching ``filters``, in stable order

        Args:
            filters: Optional filters
            offset: Rows to skip
            limit: Maximum rows to return
        """
        stmt = (
            select(SupermarketOffer)
            .where(*self._conditions(filters))
            .order_by(SupermarketOffer.created_at, SupermarketOffer.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_filtered(self, filters: OfferFilter | None) -> int:
        conditions = self._conditions(filters)
        if not conditions:
            return await self.count()

        stmt = (
            select(func.count())
            .select_from(SupermarketOffer)
            .where(*conditions)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        limit: int,
        lexical_weight: float,
        semantic_weight: float,
    ) -> Sequence[Row[Any]]:
        """
        Call the store-side hybrid ranking function

        Returns:
            Rows already ordered by combined rank
        """
        stmt = text(
            f"""
            SELECT *
            FROM {self.search_function}(
                :query_text,
                :query_embedding,
                :match_count,
                :full_text_weight,
                :semantic_weight
            )
            """
        ).bindparams(
            bindparam("query_text", type_=String()),
            bindparam("query_embedding", type_=Vector(settings.embedding_dimension)),
            bindparam("match_count", type_=Integer()),
            bindparam("full_text_weight", type_=Float()),
            bindparam("semantic_weight", type_=Float()),
        )
        result = await self.session.execute(
            stmt,
            {
                "query_text": query_text,
                "query_embedding": list(query_vector),
                "match_count": limit,
                "full_text_weight": lexical_weight,
                "semantic_weight": semantic_weight,
            },
        )
        return result.fetchall()

    # Internal helpers -------------------------------------------------

    @staticmethod
    def _conditions(filters: OfferFilter | None) -> list[Any]:
        if filters is None:
            return []

        conditions: list[Any] = []
        if filters.has_embedding is True:
            conditions.append(SupermarketOffer.embedding.is_not(None))
        elif filters.has_embedding is False:
            conditions.append(SupermarketOffer.embedding.is_(None))
        if filters.supermarket:
            conditions.append(SupermarketOffer.supermarket == filters.supermarket)
        if filters.category:
            conditions.append(SupermarketOffer.category == filters.category)
        if filters.active_at:
            conditions.append(
                or_(SupermarketOffer.valid_from.is_(None), SupermarketOffer.valid_from <= filters.active_at)
            )
            conditions.append(
                or_(SupermarketOffer.valid_until.is_(None), SupermarketOffer.valid_until >= filters.active_at)
            )
        return conditions

    @staticmethod
    def _resolve_function_name(name: str) -> str:
        if not _IDENTIFIER_RE.fullmatch(name):
            raise ConfigurationError(f"Unsafe hybrid_search_function name: {name}")
        return name
