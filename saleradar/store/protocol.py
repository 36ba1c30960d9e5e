"""
Offer Store Protocol (Interface)
Defines contract for the relational/vector store the pipeline and ranker use
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from saleradar.core.pagination import PageWindow
from saleradar.schemas.offer import HybridMatch, Offer, OfferRecord


@dataclass
class OfferFilter:
    """Filters for windowed offer reads."""

    has_embedding: bool | None = None
    supermarket: str | None = None
    category: str | None = None
    active_at: datetime | None = None  # valid_from <= active_at <= valid_until


@runtime_checkable
class HybridSearchStore(Protocol):
    """
    Protocol for offer store implementations

    ``hybrid_search`` ranking lives entirely in the store; callers consume
    the returned order as-is.
    """

    async def fetch_unembedded(self) -> list[OfferRecord]:
        """
        All catalog rows whose embedding is still NULL

        Raises:
            StoreError: If the read fails
        """
        ...

    async def write_embedding(self, id: str, vector: Sequence[float]) -> None:
        """
        Persist ``vector`` for row ``id`` in its own transaction

        Raises:
            RecordNotFoundError: If no row has ``id``
            StoreError: If the write fails
        """
        ...

    async def hybrid_search(
        self,
        query_text: str,
        query_vector: Sequence[float],
        limit: int,
        lexical_weight: float,
        semantic_weight: float,
    ) -> list[HybridMatch]:
        """
        Store-ranked candidates, best first

        Raises:
            StoreError: If the search fails
        """
        ...

    async def fetch_window(
        self,
        filters: OfferFilter | None,
        window: PageWindow,
    ) -> tuple[list[Offer], int]:
        """
        One window of offers plus the total matching ``filters``

        Raises:
            StoreError: If the read fails
        """
        ...
