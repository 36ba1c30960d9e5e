"""
Embedding providers
Interface and implementations for turning text into vectors
"""

from saleradar.embedding.protocol import EmbeddingProvider, InputType
from saleradar.embedding.factory import create_embedding_provider, get_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "InputType",
    "create_embedding_provider",
    "get_embedding_provider",
]
