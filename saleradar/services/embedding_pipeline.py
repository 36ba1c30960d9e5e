"""
EmbeddingPipeline

Brings every catalog offer's embedding from NULL to populated:
fetch unembedded rows, embed "product_name description category" per row
through a ConcurrencyLimiter, write each vector back in its own
transaction, and pause between chunks to stay under provider rate limits.

A failing row is logged and counted, never retried here; it stays NULL
and is picked up by the next run. ConfigurationError aborts the run.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Awaitable, Callable

from saleradar.batching.limiter import ConcurrencyLimiter
from saleradar.core.config import settings
from saleradar.core.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    ProviderError,
    ValidationError,
)
from saleradar.core.logging import get_logger, measure_latency
from saleradar.core.pagination import iter_pages, page_window
from saleradar.embedding.protocol import EmbeddingProvider
from saleradar.schemas.offer import OfferRecord
from saleradar.schemas.pipeline import EmbeddingCoverage, EmbeddingSample, PipelineReport
from saleradar.store.protocol import HybridSearchStore, OfferFilter

logger = get_logger(__name__)


class EmbeddingPipeline:
    """Fills in missing offer embeddings."""

    def __init__(
        self,
        *,
        store: HybridSearchStore,
        provider: EmbeddingProvider,
        limiter: ConcurrencyLimiter | None = None,
        chunk_size: int | None = None,
        chunk_delay: float | None = None,
        page_size: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.provider = provider
        self.limiter = limiter or ConcurrencyLimiter(settings.pipeline_concurrency)
        self.chunk_size = chunk_size if chunk_size is not None else settings.pipeline_chunk_size
        self.chunk_delay = (
            chunk_delay if chunk_delay is not None else settings.pipeline_chunk_delay_seconds
        )
        self.page_size = page_size if page_size is not None else settings.pipeline_page_size
        self._sleep = sleep

        if self.chunk_size < 1:
            raise ValidationError(f"chunk_size must be >= 1, got {self.chunk_size}")

    @measure_latency("embedding_pipeline_run")
    async def run(self) -> PipelineReport:
        """
        Embed every offer that has no embedding yet

        Returns:
            Counts of attempted, succeeded and failed rows

        Raises:
            StoreError: If the initial fetch fails
            ConfigurationError: If the provider is misconfigured
        """
        records = await self._fetch_unembedded()
        if not records:
            logger.info("embedding_pipeline_nothing_to_do")
            return PipelineReport()

        chunks = [
            records[i : i + self.chunk_size] for i in range(0, len(records), self.chunk_size)
        ]
        logger.info(
            "embedding_pipeline_started",
            records=len(records),
            chunks=len(chunks),
            concurrency=self.limiter.concurrency,
        )

        failed_ids: list[str] = []
        for index, chunk in enumerate(chunks, start=1):
            logger.info("embedding_chunk_started", chunk=index, chunks=len(chunks), size=len(chunk))

            tasks = [
                asyncio.ensure_future(self.limiter.run(partial(self._embed_record, record)))
                for record in chunk
            ]
            try:
                outcomes = await asyncio.gather(*tasks)
            except ConfigurationError:
                for task in tasks:
                    task.cancel()
                raise
            failed_ids.extend(record.id for record, ok in zip(chunk, outcomes) if not ok)

            logger.info(
                "embedding_chunk_finished",
                chunk=index,
                succeeded=sum(outcomes),
                failed=len(chunk) - sum(outcomes),
            )

            if index < len(chunks):
                await self._sleep(self.chunk_delay)

        report = PipelineReport(
            total=len(records),
            succeeded=len(records) - len(failed_ids),
            failed=len(failed_ids),
            chunks=len(chunks),
            failed_ids=failed_ids,
        )
        logger.info(
            "embedding_pipeline_finished",
            total=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report

    async def verify(self, sample_size: int = 5) -> EmbeddingCoverage:
        """
        Report how much of the catalog is embedded

        Args:
            sample_size: Number of embedded offers to include as a sample
        """
        sample, embedded = await self.store.fetch_window(
            OfferFilter(has_embedding=True),
            page_window(1, sample_size),
        )
        _, total = await self.store.fetch_window(None, page_window(1, 1))

        coverage = EmbeddingCoverage(
            total=total,
            embedded=embedded,
            missing=max(total - embedded, 0),
            sample=[
                EmbeddingSample(
                    id=offer.id,
                    product_name=offer.product_name,
                    dimension=len(offer.embedding or []),
                )
                for offer in sample
            ],
        )
        logger.info(
            "embedding_coverage",
            total=coverage.total,
            embedded=coverage.embedded,
            missing=coverage.missing,
        )
        return coverage

    # Internal helpers -------------------------------------------------

    async def _fetch_unembedded(self) -> list[OfferRecord]:
        if not self.page_size:
            return await self.store.fetch_unembedded()

        records: list[OfferRecord] = []
        unembedded = OfferFilter(has_embedding=False)
        async for page in iter_pages(
            lambda window: self.store.fetch_window(unembedded, window),
            page_size=self.page_size,
        ):
            records.extend(page)
        return records

    async def _embed_record(self, record: OfferRecord) -> bool:
        text = record.embedding_text()
        if not text:
            logger.warning("offer_embedding_skipped", offer_id=record.id, reason="empty_text")
            return False

        try:
            vector = await self.provider.embed(text)
            if len(vector) != self.provider.dimension:
                raise DimensionMismatchError(self.provider.dimension, len(vector))
            await self.store.write_embedding(record.id, vector)
        except ConfigurationError:
            raise
        except ProviderError as e:
            logger.error("offer_embedding_failed", offer_id=record.id, error=str(e))
            return False
        except Exception as e:  # noqa: BLE001
            logger.error(
                "offer_embedding_write_failed",
                offer_id=record.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logger.debug("offer_embedded", offer_id=record.id, dimension=len(vector))
        return True
