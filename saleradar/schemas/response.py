"""Response envelope returned by every HTTP handler."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class ResponseMeta(BaseModel):
    request_id: str = Field(alias="requestId")
    timestamp: datetime

    model_config = {
        "populate_by_name": True,
    }


class ResponseError(BaseModel):
    code: str
    message: str
    details: Optional[dict] = None


class ResponseEnvelope(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ResponseError] = None
    meta: ResponseMeta

    model_config = {
        "populate_by_name": True,
    }
