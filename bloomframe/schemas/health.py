"""
BloomFrame Backend — Health Check Schema
==========================================
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Returned by GET /health.

    The service is "unhealthy" when the database is unreachable and
    "degraded" when only the PDF converter is missing (previews and
    recommendation emails still work).
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    pdf_converter: str = Field(description="PDF converter binary: available, missing")
    uptime_seconds: float = Field(description="Seconds since service started")
