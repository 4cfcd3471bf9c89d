"""
StreetPaws Backend — Health Check Route
=========================================

What:  GET /api/health for load balancer probes and for the offline
       client's precache manifest.
How:   Probes the storage backend and the upload directory with cheap
       checks (SELECT 1, a directory listing).

Status levels:
    - ok:        storage answers
    - degraded:  storage unreachable (still HTTP 200, so the probe body is
                 readable; monitoring alerts on the field)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from streetpaws import __version__
from streetpaws.schemas.common import HealthResponse, UploadsInfo
from streetpaws.services.file_service import file_service
from streetpaws.storage import Storage, get_storage
from streetpaws.storage.sql import DatabaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(storage: Storage = Depends(get_storage)) -> HealthResponse:
    overall = "ok"

    # ── Check Storage ─────────────────────────────────────────────────────
    try:
        available = await storage.is_available()
    except Exception as e:
        logger.warning("Health check: storage probe failed: %s", str(e))
        available = False

    if not available:
        overall = "degraded"

    if isinstance(storage, DatabaseStorage):
        db_status = "connected" if available else "disconnected"
    else:
        db_status = "not_used"

    # ── Check Uploads ─────────────────────────────────────────────────────
    uploads = UploadsInfo(
        directory_exists=file_service.upload_dir.is_dir(),
        image_count=file_service.count_images(),
    )

    return HealthResponse(
        status=overall,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.time() - _start_time, 2),
        storage=storage.name,
        database=db_status,
        uploads=uploads,
    )
