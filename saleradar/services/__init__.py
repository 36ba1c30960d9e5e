"""
Application services
"""

from saleradar.services.embedding_pipeline import EmbeddingPipeline
from saleradar.services.hybrid_ranker import (
    HybridRanker,
    build_reason,
    compute_savings,
    split_matches,
)

__all__ = [
    "EmbeddingPipeline",
    "HybridRanker",
    "build_reason",
    "compute_savings",
    "split_matches",
]
