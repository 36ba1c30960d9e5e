"""
E5 Semantic Embedding Provider

Local multilingual E5 model served through sentence-transformers.
Encoding is CPU/GPU bound, so every call runs in the default threadpool
executor behind a semaphore to keep the event loop responsive.

E5 expects a "query: " prefix for search text and "passage: " for
catalog text; both land in the same vector space.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from sentence_transformers import SentenceTransformer

from saleradar.core.config import settings
from saleradar.core.exceptions import ProviderError
from saleradar.core.logging import get_logger, log_provider_call
from saleradar.embedding.protocol import InputType

logger = get_logger(__name__)


class E5ModelHandle:
    """
    Shared model instance for the whole process

    Loading the model is slow, so it happens once (on ``warmup`` or lazily
    on first use) and is reused by every provider.
    """

    _instance: Optional[E5ModelHandle] = None

    def __new__(cls) -> E5ModelHandle:
        """Singleton pattern: only one model per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._created = False
        return cls._instance

    def __init__(self) -> None:
        if self._created:
            return

        self.model_name = settings.e5_model_name
        self.device = settings.embedding_device
        self.max_concurrency = settings.embedding_max_concurrency
        self.model: Optional[SentenceTransformer] = None
        self._load_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(self.max_concurrency)
        self._created = True

        logger.info(
            "e5_model_handle_created",
            model_name=self.model_name,
            device=self.device,
            max_concurrency=self.max_concurrency,
        )

    async def warmup(self) -> None:
        """
        Preload the model

        Raises:
            ProviderError: If loading fails or times out
        """
        if self.model is not None:
            return

        async with self._load_lock:
            if self.model is not None:
                return

            t0 = time.perf_counter()
            logger.info("e5_model_loading", model_name=self.model_name)
            loop = asyncio.get_running_loop()
            try:
                self.model = await asyncio.wait_for(
                    loop.run_in_executor(
                        None,
                        lambda: SentenceTransformer(self.model_name, device=self.device),
                    ),
                    timeout=300,  # 5 min timeout for model download
                )
            except asyncio.TimeoutError as e:
                logger.error("e5_model_load_timeout", model_name=self.model_name)
                raise ProviderError(f"Timeout loading embedding model {self.model_name}") from e
            except Exception as e:
                logger.error("e5_model_load_failed", model_name=self.model_name, error=str(e))
                raise ProviderError(f"Failed to load embedding model {self.model_name}: {e}") from e

            logger.info(
                "e5_model_loaded",
                model_name=self.model_name,
                elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
            )

    async def encode(self, text: str) -> list[float]:
        await self.warmup()
        model = self.model  # Capture reference for closure
        loop = asyncio.get_running_loop()

        async with self._semaphore:
            embedding_array = await loop.run_in_executor(
                None,
                lambda: model.encode(text, normalize_embeddings=True),
            )

        embedding_list = embedding_array.tolist()
        if not isinstance(embedding_list, list) or len(embedding_list) == 0:
            raise ValueError(f"Invalid embedding output: {embedding_list}")
        return embedding_list


class E5EmbeddingProvider:
    """
    EmbeddingProvider backed by the local E5 model

    Args:
        input_type: "passage" for catalog rows, "query" for search text
    """

    def __init__(self, input_type: InputType = "passage") -> None:
        self.input_type = input_type
        self.dimension = settings.embedding_dimension
        self.handle = E5ModelHandle()

    async def warmup(self) -> None:
        await self.handle.warmup()

    async def embed(self, text: str) -> list[float]:
        t0 = time.perf_counter()
        try:
            embedding = await self.handle.encode(f"{self.input_type}: {text}")
        except ProviderError:
            raise
        except Exception as e:
            log_provider_call(
                provider="e5",
                model=self.handle.model_name,
                latency_ms=(time.perf_counter() - t0) * 1000,
                text_length=len(text),
                error=str(e),
            )
            raise ProviderError(f"Failed to embed {self.input_type}: {e}") from e

        log_provider_call(
            provider="e5",
            model=self.handle.model_name,
            latency_ms=(time.perf_counter() - t0) * 1000,
            text_length=len(text),
        )
        return embedding
