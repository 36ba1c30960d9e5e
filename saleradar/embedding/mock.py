"""
Mock Embedding Provider
For development and testing without a model download or API key
"""

import asyncio
import hashlib
import math
import re

from saleradar.core.config import settings
from saleradar.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class MockEmbeddingProvider:
    """
    Deterministic hashed bag-of-words embeddings

    Each lowercase token and each of its character trigrams is hashed
    into a bucket; the result is L2-normalized. Texts sharing words or word
    fragments get a positive cosine similarity, unrelated texts land near 0.
    """

    def __init__(self, dimension: int | None = None):
        self.dimension = dimension or settings.embedding_dimension
        logger.info("mock_embedding_provider_initialized", dimension=self.dimension)

    async def embed(self, text: str) -> list[float]:
        # Simulate async provider call
        await asyncio.sleep(0)

        vector = [0.0] * self.dimension
        for token in _TOKEN_RE.findall(text.lower()):
            self._add(vector, token, 1.0)
            padded = f"#{token}#"
            for i in range(len(padded) - 2):
                self._add(vector, padded[i : i + 3], 0.5)

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    def _add(self, vector: list[float], feature: str, weight: float) -> None:
        digest = hashlib.md5(feature.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:4], "big") % self.dimension
        vector[bucket] += weight
