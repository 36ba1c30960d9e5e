"""
OpenAI Embedding Provider

Hosted embeddings via the OpenAI SDK. ``text-embedding-3-small`` is
requested at a reduced dimension so it matches the catalog column.
"""

from __future__ import annotations

import time

from openai import AsyncOpenAI, OpenAIError

from saleradar.core.config import settings
from saleradar.core.exceptions import ConfigurationError, ProviderError
from saleradar.core.logging import get_logger, log_provider_call

logger = get_logger(__name__)


class OpenAIEmbeddingProvider:
    """
    EmbeddingProvider backed by the OpenAI embeddings endpoint

    SDK retries are disabled; a failed call surfaces as ProviderError and
    the record is picked up again on the next pipeline run.

    Raises:
        ConfigurationError: If no API key is configured
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        dimension: int | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        api_key = api_key or settings.openai_api_key
        if client is None and not api_key:
            raise ConfigurationError("Missing OpenAI API key (OPENAI_API_KEY)")

        self.model = model or settings.openai_embedding_model
        self.dimension = dimension or settings.embedding_dimension
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            timeout=settings.openai_timeout_seconds,
            max_retries=0,
        )
        logger.info("openai_embedding_provider_initialized", model=self.model, dimension=self.dimension)

    async def embed(self, text: str) -> list[float]:
        t0 = time.perf_counter()
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimension,
            )
        except OpenAIError as e:
            log_provider_call(
                provider="openai",
                model=self.model,
                latency_ms=(time.perf_counter() - t0) * 1000,
                text_length=len(text),
                error=str(e),
            )
            raise ProviderError(f"OpenAI embedding request failed: {e}") from e

        log_provider_call(
            provider="openai",
            model=self.model,
            latency_ms=(time.perf_counter() - t0) * 1000,
            text_length=len(text),
        )
        return list(response.data[0].embedding)
