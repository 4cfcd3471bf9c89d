"""
StreetPaws Backend — Animal Route Handlers
============================================

What:  Animal CRUD, search, public-identifier lookup, QR tags and
       vaccination history.
How:   Extracts path/query/body data, delegates to AnimalService, returns
       camelCase JSON.

Route order matters:
    /animals/search and /animals/lookup/... are declared before
    /animals/{id}; otherwise "search" would be parsed as a numeric id and
    rejected with 400.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from fastapi.responses import HTMLResponse

from streetpaws.schemas.animal import (
    AnimalCreate,
    AnimalRead,
    AnimalUpdate,
    SearchFilters,
    VaccinationCreate,
    VaccinationRead,
)
from streetpaws.schemas.common import ErrorResponse
from streetpaws.services.animal_service import animal_service
from streetpaws.services.file_service import file_service
from streetpaws.services.qr_service import qr_payload, qr_service
from streetpaws.storage import Storage, get_storage

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/animals", tags=["Animals"])

NOT_FOUND = {404: {"description": "Animal not found", "model": ErrorResponse}}
INVALID = {400: {"description": "Invalid input", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[AnimalRead],
    summary="List all registered animals",
)
async def list_animals(storage: Storage = Depends(get_storage)) -> List[AnimalRead]:
    return await animal_service.list_animals(storage)


@router.get(
    "/search",
    response_model=List[AnimalRead],
    summary="Search animals",
    description=(
        "Case-insensitive substring search over animal ID, species, breed, "
        "found location and area, combined with exact-match filters. "
        "No query and no filters returns every animal."
    ),
)
async def search_animals(
    q: Optional[str] = Query(default=None, description="Free-text query"),
    species: Optional[str] = Query(default=None),
    vaccination_status: Optional[str] = Query(default=None, alias="vaccinationStatus"),
    area: Optional[str] = Query(default=None),
    health_status: Optional[str] = Query(default=None, alias="healthStatus"),
    storage: Storage = Depends(get_storage),
) -> List[AnimalRead]:
    filters = SearchFilters(
        species=species or None,
        vaccination_status=vaccination_status or None,
        area=area or None,
        health_status=health_status or None,
    )
    return await animal_service.search_animals(storage, q, filters)


@router.get(
    "/lookup/{animal_id}",
    response_model=AnimalRead,
    responses=NOT_FOUND,
    summary="Look up an animal by public identifier",
    description="Resolves the SP-<year>-<sequence> identifier printed on a QR tag.",
)
async def lookup_animal(
    animal_id: str,
    storage: Storage = Depends(get_storage),
) -> AnimalRead:
    return await animal_service.lookup_animal(storage, animal_id)


@router.get(
    "/lookup/{animal_id}/qr",
    responses={
        200: {
            "description": "QR code (PNG, or SVG placeholder if encoding failed)",
            "content": {"image/png": {}, "image/svg+xml": {}},
        },
        **NOT_FOUND,
    },
    summary="QR code image for an animal",
)
async def animal_qr_code(
    animal_id: str,
    storage: Storage = Depends(get_storage),
) -> Response:
    animal = await animal_service.lookup_animal(storage, animal_id)
    image = qr_service.generate_qr(animal.qr_code or qr_payload(animal.animal_id))
    # The payload never changes for a given identifier
    return Response(
        content=image.data,
        media_type=image.media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.get(
    "/lookup/{animal_id}/tag",
    response_class=HTMLResponse,
    responses=NOT_FOUND,
    summary="Printable QR tag",
    description="4in × 3in printable page that opens the print dialog once the code has loaded.",
)
async def animal_print_tag(
    animal_id: str,
    storage: Storage = Depends(get_storage),
) -> HTMLResponse:
    animal = await animal_service.lookup_animal(storage, animal_id)
    image = qr_service.generate_qr(animal.qr_code or qr_payload(animal.animal_id))
    return HTMLResponse(qr_service.render_print_tag(animal.animal_id, image))


@router.get(
    "/{id}",
    response_model=AnimalRead,
    responses={**NOT_FOUND, **INVALID},
    summary="Get an animal by numeric id",
)
async def get_animal(id: int, storage: Storage = Depends(get_storage)) -> AnimalRead:
    return await animal_service.get_animal(storage, id)


@router.post(
    "",
    response_model=AnimalRead,
    status_code=status.HTTP_201_CREATED,
    responses=INVALID,
    summary="Register a new animal",
    description=(
        "Creates an animal record. The public identifier (animalId) and the "
        "QR payload are assigned by the server; an animalId in the body is ignored."
    ),
)
async def create_animal(
    data: AnimalCreate,
    storage: Storage = Depends(get_storage),
) -> AnimalRead:
    return await animal_service.create_animal(storage, data)


@router.patch(
    "/{id}",
    response_model=AnimalRead,
    responses={**NOT_FOUND, **INVALID},
    summary="Partially update an animal",
    description="Only fields present in the body change; omitted fields keep their value.",
)
async def update_animal(
    id: int,
    data: AnimalUpdate,
    storage: Storage = Depends(get_storage),
) -> AnimalRead:
    return await animal_service.update_animal(storage, id, data)


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=NOT_FOUND,
    summary="Delete an animal and its vaccinations",
)
async def delete_animal(
    id: int,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
) -> Response:
    """
    Delete the record, then remove its photo after the response is sent.

    Photo removal failures are logged by FileService and never change the
    204 result.
    """
    deleted = await animal_service.delete_animal(storage, id)
    if deleted.photo_url:
        background_tasks.add_task(file_service.cleanup_public_url, deleted.photo_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Vaccinations ──────────────────────────────────────────────────────────


@router.get(
    "/{id}/vaccinations",
    response_model=List[VaccinationRead],
    responses=NOT_FOUND,
    summary="Vaccination history of an animal",
)
async def list_vaccinations(
    id: int,
    storage: Storage = Depends(get_storage),
) -> List[VaccinationRead]:
    return await animal_service.list_vaccinations(storage, id)


@router.post(
    "/{id}/vaccinations",
    response_model=VaccinationRead,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **INVALID},
    summary="Record a vaccination",
)
async def add_vaccination(
    id: int,
    data: VaccinationCreate,
    storage: Storage = Depends(get_storage),
) -> VaccinationRead:
    return await animal_service.add_vaccination(storage, id, data)
