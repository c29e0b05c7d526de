"""Prometheus scrape endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from catalog.observability.metrics import get_metrics

router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose metrics in Prometheus text format."""
    return Response(content=get_metrics().generate_latest(), media_type=CONTENT_TYPE_LATEST)
