"""
Embedding pipeline reports
"""

from pydantic import Field

from saleradar.schemas.base import BaseSchema


class PipelineReport(BaseSchema):
    """Outcome counts of one pipeline run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    chunks: int = 0
    failed_ids: list[str] = Field(default_factory=list)


class EmbeddingSample(BaseSchema):
    id: str
    product_name: str
    dimension: int


class EmbeddingCoverage(BaseSchema):
    """Catalog embedding coverage with a small sample of embedded rows."""

    total: int
    embedded: int
    missing: int
    sample: list[EmbeddingSample] = Field(default_factory=list)
