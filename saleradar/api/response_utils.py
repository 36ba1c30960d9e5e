"""Shared helpers for building API response envelopes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TypeVar
from uuid import uuid4

from fastapi import Request

from saleradar.schemas.response import ResponseEnvelope, ResponseMeta

T = TypeVar("T")


def build_meta(request: Request) -> ResponseMeta:
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    return ResponseMeta(requestId=request_id, timestamp=datetime.now(timezone.utc))


def success_envelope(request: Request, data: T) -> ResponseEnvelope[T]:
    return ResponseEnvelope(success=True, data=data, error=None, meta=build_meta(request))
