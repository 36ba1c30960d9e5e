"""
Supermarket offer catalog

Rows are created by the (external) scraper; this package only reads them
and fills in ``embedding``.
"""

from datetime import datetime
from decimal import Decimal

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Float, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from saleradar.core.config import settings
from saleradar.models.base import BaseModel


class SupermarketOffer(BaseModel):
    """Time-boxed offer from one supermarket."""

    __tablename__ = "supermarket_offers"

    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(100), index=True)
    supermarket: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    offer_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    discount_percentage: Mapped[float | None] = mapped_column(Float)
    sale_type: Mapped[str | None] = mapped_column(String(100))
    valid_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    image_url: Mapped[str | None] = mapped_column(Text)
    embedding: Mapped[list[float] | None] = mapped_column(
        Vector(settings.embedding_dimension),
        nullable=True,
        comment="Catalog text embedding; NULL until the pipeline fills it",
    )

    def __repr__(self) -> str:
        return f"<SupermarketOffer(id={self.id}, product_name={self.product_name!r})>"
