"""
BloomFrame Backend — Health Check Route
=========================================

What:  GET /health for container health checks and load balancer probes.
How:   Runs SELECT 1 against the database and looks up the PDF converter
       binary on PATH. No auth; no request logging.

Status levels:
    healthy:    database connected, converter available   (HTTP 200)
    degraded:   converter missing                         (HTTP 200)
    unhealthy:  database unreachable                      (HTTP 503)
"""

import logging
import shutil
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bloomframe import __version__
from bloomframe.config import settings
from bloomframe.database import engine
from bloomframe.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"model": HealthResponse, "description": "Database unreachable"}},
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    converter_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if shutil.which(settings.invoice_pdf_bin) is None:
        converter_status = "missing"
        if overall == "healthy":
            overall = "degraded"
        logger.warning("Health check: PDF converter %r not found", settings.invoice_pdf_bin)

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        pdf_converter=converter_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
