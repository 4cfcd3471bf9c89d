"""
StreetPaws Backend — Animal Service (Business Logic Orchestrator)
===================================================================

What:  Business rules for animals, vaccinations, helplines and stats.
How:   Receives the Storage chosen at startup for every call, turns missing
       records into NotFoundError and checks photo references against the
       upload directory.
Who:   Called by route handlers; calls Storage and FileService.

Orchestration Flow (DELETE /api/animals/{id}):
    ┌──────────┐    ┌──────────────────┐    ┌──────────────────────┐
    │  Route   │───▶│  Storage.delete  │───▶│  Background task:    │
    │          │    │  (animal + vacc.)│    │  remove photo file   │
    └──────────┘    └──────────────────┘    └──────────────────────┘

    The record delete is the operation; the photo removal is scheduled by
    the route after the response and only logs on failure.

Design Decision:
    AnimalService is stateless. The storage backend is passed in per call
    (like a database session), so the same service instance works against
    MemoryStorage in tests and DatabaseStorage in production.
"""

import logging
from typing import List, Optional

from streetpaws.exceptions import NotFoundError, ValidationError
from streetpaws.schemas.animal import (
    AnimalCreate,
    AnimalRead,
    AnimalUpdate,
    HelplineRead,
    SearchFilters,
    StatsResponse,
    VaccinationCreate,
    VaccinationRead,
)
from streetpaws.services.file_service import file_service
from streetpaws.storage.base import Storage

logger = logging.getLogger(__name__)


class AnimalService:
    """
    Business logic layer for animal records.

    Responsibilities:
        - CRUD and search over animals
        - Vaccinations scoped to an existing animal
        - Read-only helpline directory and dashboard stats
    """

    # ── Animals ───────────────────────────────────────────────────────────

    async def list_animals(self, storage: Storage) -> List[AnimalRead]:
        return await storage.list_animals()

    async def search_animals(
        self,
        storage: Storage,
        query: Optional[str] = None,
        filters: Optional[SearchFilters] = None,
    ) -> List[AnimalRead]:
        """
        Free-text query AND-ed with equality filters.

        Empty query and no filters return the full set.
        """
        query = (query or "").strip()
        filters = filters or SearchFilters()
        results = await storage.search_animals(query, filters)
        logger.debug(
            "Search q=%r filters=%s → %d results",
            query, filters.model_dump(exclude_none=True), len(results),
        )
        return results

    async def get_animal(self, storage: Storage, id: int) -> AnimalRead:
        animal = await storage.get_animal(id)
        if animal is None:
            raise NotFoundError(resource="Animal", resource_id=str(id))
        return animal

    async def lookup_animal(self, storage: Storage, animal_id: str) -> AnimalRead:
        """Resolve a public identifier (the id printed on a QR tag)."""
        animal = await storage.get_animal_by_public_id(animal_id)
        if animal is None:
            raise NotFoundError(resource="Animal", resource_id=animal_id)
        return animal

    async def create_animal(self, storage: Storage, data: AnimalCreate) -> AnimalRead:
        """
        Register a new animal.

        The public identifier and QR payload are assigned by the store.
        """
        self._check_photo(data.photo_url)
        animal = await storage.create_animal(data)
        logger.info("Registered animal %s (%s)", animal.animal_id, animal.species)
        return animal

    async def update_animal(
        self, storage: Storage, id: int, data: AnimalUpdate
    ) -> AnimalRead:
        """
        Partial update: only fields present in the request body are applied.
        """
        changes = data.model_dump(exclude_unset=True)
        if "photo_url" in changes:
            self._check_photo(changes["photo_url"])

        animal = await storage.update_animal(id, changes)
        if animal is None:
            raise NotFoundError(resource="Animal", resource_id=str(id))
        logger.info("Updated animal %s fields=%s", animal.animal_id, sorted(changes))
        return animal

    async def delete_animal(self, storage: Storage, id: int) -> AnimalRead:
        """
        Delete an animal and its vaccinations.

        Returns:
            The deleted record, so the caller can schedule photo cleanup.
        """
        deleted = await storage.delete_animal(id)
        if deleted is None:
            raise NotFoundError(resource="Animal", resource_id=str(id))
        logger.info("Deleted animal %s", deleted.animal_id)
        return deleted

    # ── Vaccinations ──────────────────────────────────────────────────────

    async def list_vaccinations(self, storage: Storage, id: int) -> List[VaccinationRead]:
        await self.get_animal(storage, id)
        return await storage.list_vaccinations(id)

    async def add_vaccination(
        self, storage: Storage, id: int, data: VaccinationCreate
    ) -> VaccinationRead:
        vaccination = await storage.create_vaccination(id, data)
        if vaccination is None:
            raise NotFoundError(resource="Animal", resource_id=str(id))
        logger.info("Recorded %s for animal id=%d", vaccination.vaccine_name, id)
        return vaccination

    # ── Directory & Stats ─────────────────────────────────────────────────

    async def list_helplines(self, storage: Storage) -> List[HelplineRead]:
        return await storage.list_helplines()

    async def get_stats(self, storage: Storage) -> StatsResponse:
        return await storage.get_stats()

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_photo(photo_url: Optional[str]) -> None:
        if photo_url and not file_service.photo_exists(photo_url):
            raise ValidationError(
                message="Photo file does not exist",
                field="photoUrl",
                context={"photo_url": photo_url},
            )


animal_service = AnimalService()
