"""
Embedding Provider Factory
Creates the configured EmbeddingProvider implementation
"""

from saleradar.core.config import settings
from saleradar.core.exceptions import ConfigurationError
from saleradar.core.logging import get_logger
from saleradar.embedding.mock import MockEmbeddingProvider
from saleradar.embedding.protocol import EmbeddingProvider, InputType

logger = get_logger(__name__)


def create_embedding_provider(input_type: InputType = "passage") -> EmbeddingProvider:
    """
    Build an EmbeddingProvider from settings

    Args:
        input_type: "passage" for catalog rows, "query" for search text
            (only E5 distinguishes the two)

    Raises:
        ConfigurationError: Unknown provider or missing credentials
    """
    provider = settings.embedding_provider

    logger.info(
        "embedding_provider_factory",
        provider=provider,
        input_type=input_type,
        dimension=settings.embedding_dimension,
    )

    if provider == "mock":
        return MockEmbeddingProvider()

    if provider == "e5":
        from saleradar.embedding.e5 import E5EmbeddingProvider

        return E5EmbeddingProvider(input_type=input_type)

    if provider == "openai":
        from saleradar.embedding.openai_provider import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider()

    raise ConfigurationError(
        f"Unsupported embedding_provider: {provider}. Supported providers: mock, e5, openai"
    )


# Singleton instances for dependency injection
_providers: dict[str, EmbeddingProvider] = {}


def get_embedding_provider(input_type: InputType = "passage") -> EmbeddingProvider:
    """
    Get the singleton provider for ``input_type``

    Returns:
        EmbeddingProvider instance
    """
    if input_type not in _providers:
        _providers[input_type] = create_embedding_provider(input_type)
    return _providers[input_type]
