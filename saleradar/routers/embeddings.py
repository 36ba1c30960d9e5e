"""
Embedding maintenance API Routes

Manual trigger for the embedding pipeline and a coverage report.
"""

from fastapi import APIRouter, Depends, Query, Request

from saleradar.api.response_utils import success_envelope
from saleradar.embedding.factory import get_embedding_provider
from saleradar.schemas.pipeline import EmbeddingCoverage, PipelineReport
from saleradar.schemas.response import ResponseEnvelope
from saleradar.services.embedding_pipeline import EmbeddingPipeline
from saleradar.store.factory import get_offer_store

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


def get_embedding_pipeline() -> EmbeddingPipeline:
    return EmbeddingPipeline(
        store=get_offer_store(),
        provider=get_embedding_provider("passage"),
    )


@router.post(
    "/run",
    response_model=ResponseEnvelope[PipelineReport],
    summary="Embed every offer that has no embedding yet",
)
async def run_embedding_pipeline(
    request: Request,
    pipeline: EmbeddingPipeline = Depends(get_embedding_pipeline),
):
    report = await pipeline.run()
    return success_envelope(request, report)


@router.get(
    "/coverage",
    response_model=ResponseEnvelope[EmbeddingCoverage],
    summary="Embedding coverage of the offer catalog",
)
async def embedding_coverage(
    request: Request,
    sample_size: int = Query(5, ge=1, le=50),
    pipeline: EmbeddingPipeline = Depends(get_embedding_pipeline),
):
    coverage = await pipeline.verify(sample_size=sample_size)
    return success_envelope(request, coverage)
