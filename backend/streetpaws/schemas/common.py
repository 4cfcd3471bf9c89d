"""
StreetPaws Backend — Shared Response Schemas
==============================================

What:  Error, health and upload response models shared across routes.
"""

from typing import Dict, List, Optional

from pydantic import Field

from streetpaws.schemas.animal import CamelModel


class ErrorResponse(CamelModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Validation error",
            "errors": [{"field": "species", "message": "Input should be 'dog', ..."}],
            "requestId": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[Dict[str, str]]] = Field(
        default=None, description="Field-level validation problems"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class UploadResponse(CamelModel):
    """Returned by POST /api/upload; photoUrl is then sent with the animal."""
    photo_url: str


class UploadsInfo(CamelModel):
    directory_exists: bool
    image_count: int


class HealthResponse(CamelModel):
    """
    Health check response.

    status is "ok" when the record store answers, "degraded" otherwise.
    """
    status: str
    version: str
    timestamp: str
    uptime: float = Field(description="Seconds since the process started")
    storage: str = Field(description="Storage backend in use")
    database: str = Field(description="connected, disconnected or not_used")
    uploads: UploadsInfo
