"""Create supermarket_offers with a 384d embedding column

Revision ID: 20261001_0001_create_supermarket_offers
Revises:
Create Date: 2026-10-01 00:01:00.000000
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "20261001_0001_create_supermarket_offers"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the offer catalog table, its full-text column and indexes."""
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS supermarket_offers (
            id UUID PRIMARY KEY,
            product_name TEXT NOT NULL,
            description TEXT,
            category VARCHAR(100),
            supermarket VARCHAR(50) NOT NULL,
            offer_price NUMERIC(10, 2),
            original_price NUMERIC(10, 2),
            discount_percentage DOUBLE PRECISION,
            sale_type VARCHAR(100),
            valid_from TIMESTAMPTZ,
            valid_until TIMESTAMPTZ,
            image_url TEXT,
            embedding VECTOR(384),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        """
    )
    op.execute(
        "COMMENT ON COLUMN supermarket_offers.embedding IS "
        "'Catalog text embedding; NULL until the pipeline fills it'"
    )

    # Lexical side of hybrid ranking
    op.execute(
        """
        ALTER TABLE supermarket_offers
        ADD COLUMN IF NOT EXISTS fts TSVECTOR
        GENERATED ALWAYS AS (
            to_tsvector(
                'dutch',
                coalesce(product_name, '') || ' ' ||
                coalesce(description, '') || ' ' ||
                coalesce(category, '')
            )
        ) STORED;
        """
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_supermarket_offers_category "
        "ON supermarket_offers (category);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_supermarket_offers_supermarket "
        "ON supermarket_offers (supermarket);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_supermarket_offers_valid_until "
        "ON supermarket_offers (valid_until);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_supermarket_offers_fts "
        "ON supermarket_offers USING gin (fts);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_supermarket_offers_embedding "
        "ON supermarket_offers USING hnsw (embedding vector_cosine_ops);"
    )


def downgrade() -> None:
    """Drop the offer catalog table and indexes."""
    op.execute("DROP INDEX IF EXISTS idx_supermarket_offers_embedding")
    op.execute("DROP INDEX IF EXISTS idx_supermarket_offers_fts")
    op.execute("DROP INDEX IF EXISTS idx_supermarket_offers_valid_until")
    op.execute("DROP INDEX IF EXISTS idx_supermarket_offers_supermarket")
    op.execute("DROP INDEX IF EXISTS idx_supermarket_offers_category")
    op.execute("DROP TABLE IF EXISTS supermarket_offers")
