"""Add hybrid_search_offers ranking function

Reciprocal rank fusion of a Dutch full-text ranking and cosine similarity
over currently valid, embedded offers.

Revision ID: 20261001_0002_hybrid_search_offers_function
Revises: 20261001_0001_create_supermarket_offers
Create Date: 2026-10-01 00:02:00.000000
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "20261001_0002_hybrid_search_offers_function"
down_revision: Union[str, Sequence[str], None] = "20261001_0001_create_supermarket_offers"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create hybrid_search_offers(query_text, query_embedding, match_count, ...)."""
    op.execute(
        """
        CREATE OR REPLACE FUNCTION hybrid_search_offers(
            query_text TEXT,
            query_embedding VECTOR(384),
            match_count INT,
            full_text_weight DOUBLE PRECISION DEFAULT 1,
            semantic_weight DOUBLE PRECISION DEFAULT 1,
            rrf_k INT DEFAULT 50
        )
        RETURNS TABLE (
            id UUID,
            product_name TEXT,
            description TEXT,
            category VARCHAR(100),
            supermarket VARCHAR(50),
            offer_price NUMERIC(10, 2),
            original_price NUMERIC(10, 2),
            discount_percentage DOUBLE PRECISION,
            sale_type VARCHAR(100),
            valid_from TIMESTAMPTZ,
            valid_until TIMESTAMPTZ,
            image_url TEXT,
            lexical_score DOUBLE PRECISION,
            semantic_score DOUBLE PRECISION,
            similarity DOUBLE PRECISION,
            combined_rank DOUBLE PRECISION
        )
        LANGUAGE sql STABLE
        AS $$
        WITH active AS (
            SELECT o.*
            FROM supermarket_offers o
            WHERE o.embedding IS NOT NULL
              AND (o.valid_from IS NULL OR o.valid_from <= now())
              AND (o.valid_until IS NULL OR o.valid_until >= now())
        ),
        full_text AS (
            SELECT
                a.id,
                ts_rank_cd(a.fts, websearch_to_tsquery('dutch', query_text)) AS score,
                row_number() OVER (
                    ORDER BY ts_rank_cd(a.fts, websearch_to_tsquery('dutch', query_text)) DESC
                ) AS rank_ix
            FROM active a
            WHERE a.fts @@ websearch_to_tsquery('dutch', query_text)
            ORDER BY rank_ix
            LIMIT match_count * 2
        ),
        semantic AS (
            SELECT
                a.id,
                1 - (a.embedding <=> query_embedding) AS score,
                row_number() OVER (ORDER BY a.embedding <=> query_embedding) AS rank_ix
            FROM active a
            ORDER BY rank_ix
            LIMIT match_count * 2
        )
        SELECT
            o.id,
            o.product_name,
            o.description,
            o.category,
            o.supermarket,
            o.offer_price,
            o.original_price,
            o.discount_percentage,
            o.sale_type,
            o.valid_from,
            o.valid_until,
            o.image_url,
            coalesce(full_text.score, 0)::DOUBLE PRECISION AS lexical_score,
            coalesce(semantic.score, 0)::DOUBLE PRECISION AS semantic_score,
            greatest(least(coalesce(semantic.score, 0), 1), 0)::DOUBLE PRECISION AS similarity,
            (
                coalesce(1.0 / (rrf_k + full_text.rank_ix), 0.0) * full_text_weight +
                coalesce(1.0 / (rrf_k + semantic.rank_ix), 0.0) * semantic_weight
            )::DOUBLE PRECISION AS combined_rank
        FROM full_text
        FULL OUTER JOIN semantic ON full_text.id = semantic.id
        JOIN supermarket_offers o ON o.id = coalesce(full_text.id, semantic.id)
        ORDER BY combined_rank DESC, o.id
        LIMIT match_count;
        $$;
        """
    )


def downgrade() -> None:
    """Drop hybrid_search_offers."""
    op.execute(
        "DROP FUNCTION IF EXISTS hybrid_search_offers("
        "TEXT, VECTOR, INT, DOUBLE PRECISION, DOUBLE PRECISION, INT)"
    )
