"""
StreetPaws Backend — Helpline Directory & Dashboard Stats
===========================================================

GET /api/helplines   seeded emergency contacts (read-only over HTTP)
GET /api/stats       counters shown on the dashboard
"""

from typing import List

from fastapi import APIRouter, Depends

from streetpaws.schemas.animal import HelplineRead, StatsResponse
from streetpaws.services.animal_service import animal_service
from streetpaws.storage import Storage, get_storage

router = APIRouter(prefix="/api", tags=["Directory"])


@router.get(
    "/helplines",
    response_model=List[HelplineRead],
    summary="Animal-welfare helplines",
)
async def list_helplines(storage: Storage = Depends(get_storage)) -> List[HelplineRead]:
    return await animal_service.list_helplines(storage)


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Dashboard statistics",
    description=(
        "registeredAnimals, vaccinated (partial or complete), qrCodes "
        "(one per animal) and helplines."
    ),
)
async def get_stats(storage: Storage = Depends(get_storage)) -> StatsResponse:
    return await animal_service.get_stats(storage)
