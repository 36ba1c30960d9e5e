"""
Embedding Provider Protocol (Interface)
Defines contract for all embedding provider implementations
"""

from typing import Literal, Protocol, runtime_checkable

InputType = Literal["query", "passage"]


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Protocol for embedding providers

    Catalog rows and queries must be embedded by the same model at the same
    dimension; vectors from different providers are never comparable.
    """

    dimension: int

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text

        Args:
            text: Text to embed

        Returns:
            Vector of length ``dimension``

        Raises:
            ProviderError: If the provider call fails
        """
        ...
