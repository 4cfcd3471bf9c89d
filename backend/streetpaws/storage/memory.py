"""
StreetPaws Backend — In-Memory Storage
========================================

What:  Process-local implementation of the Storage interface.
When:  STORAGE_BACKEND=memory (demos, tests). Data is lost on restart.

Concurrency:
    Every mutation runs under one asyncio.Lock owned by the instance, and
    ids come from itertools.count objects owned by the instance. There is
    no module-level counter: two MemoryStorage instances never share ids,
    and within one instance an id is handed out exactly once.
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from streetpaws.identity import format_public_id, profile_url
from streetpaws.schemas.animal import (
    AnimalCreate,
    AnimalRead,
    HelplineCreate,
    HelplineRead,
    SearchFilters,
    StatsResponse,
    VaccinationCreate,
    VaccinationRead,
)
from streetpaws.storage.base import (
    SEARCHABLE_FIELDS,
    VACCINATED_STATUSES,
    Storage,
    mutable_changes,
)
from streetpaws.storage.seed import DEFAULT_HELPLINES

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dictionary-backed record store."""

    name = "memory"

    def __init__(self) -> None:
        self._animals: Dict[int, AnimalRead] = {}
        self._vaccinations: Dict[int, VaccinationRead] = {}
        self._helplines: Dict[int, HelplineRead] = {}
        self._animal_ids = itertools.count(1)
        self._vaccination_ids = itertools.count(1)
        self._helpline_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        # Check and seed in one critical section so concurrent calls seed once
        async with self._lock:
            if self._helplines:
                return
            for helpline in DEFAULT_HELPLINES:
                self._insert_helpline(helpline)
        logger.info("Seeded %d helplines into memory storage", len(DEFAULT_HELPLINES))

    async def close(self) -> None:
        pass

    # ── Animals ───────────────────────────────────────────────────────────

    async def get_animal(self, id: int) -> Optional[AnimalRead]:
        animal = self._animals.get(id)
        return animal.model_copy() if animal else None

    async def get_animal_by_public_id(self, animal_id: str) -> Optional[AnimalRead]:
        for animal in self._animals.values():
            if animal.animal_id == animal_id:
                return animal.model_copy()
        return None

    async def list_animals(self) -> List[AnimalRead]:
        return [a.model_copy() for a in self._animals.values()]

    async def search_animals(self, query: str, filters: SearchFilters) -> List[AnimalRead]:
        results = list(self._animals.values())

        if query:
            needle = query.lower()
            results = [
                a for a in results
                if any(
                    needle in (getattr(a, field) or "").lower()
                    for field in SEARCHABLE_FIELDS
                )
            ]

        for field in ("species", "vaccination_status", "area", "health_status"):
            wanted = getattr(filters, field)
            if wanted:
                results = [a for a in results if getattr(a, field) == wanted]

        return [a.model_copy() for a in results]

    async def create_animal(self, data: AnimalCreate) -> AnimalRead:
        async with self._lock:
            id = next(self._animal_ids)
            now = datetime.now(timezone.utc)
            animal_id = format_public_id(id, now.year)
            animal = AnimalRead(
                id=id,
                animal_id=animal_id,
                qr_code=profile_url(animal_id),
                registered_at=now,
                **data.model_dump(),
            )
            self._animals[id] = animal
        return animal.model_copy()

    async def update_animal(self, id: int, changes: Dict[str, Any]) -> Optional[AnimalRead]:
        async with self._lock:
            animal = self._animals.get(id)
            if animal is None:
                return None
            updated = animal.model_copy(update=mutable_changes(changes))
            self._animals[id] = updated
        return updated.model_copy()

    async def delete_animal(self, id: int) -> Optional[AnimalRead]:
        async with self._lock:
            animal = self._animals.pop(id, None)
            if animal is None:
                return None
            orphaned = [vid for vid, v in self._vaccinations.items() if v.animal_id == id]
            for vid in orphaned:
                del self._vaccinations[vid]
        logger.debug("Deleted animal %s and %d vaccinations", animal.animal_id, len(orphaned))
        return animal

    # ── Vaccinations ──────────────────────────────────────────────────────

    async def list_vaccinations(self, animal_id: int) -> List[VaccinationRead]:
        return [
            v.model_copy() for v in self._vaccinations.values() if v.animal_id == animal_id
        ]

    async def create_vaccination(
        self, animal_id: int, data: VaccinationCreate
    ) -> Optional[VaccinationRead]:
        async with self._lock:
            if animal_id not in self._animals:
                return None
            id = next(self._vaccination_ids)
            vaccination = VaccinationRead(id=id, animal_id=animal_id, **data.model_dump())
            self._vaccinations[id] = vaccination
        return vaccination.model_copy()

    # ── Helplines ─────────────────────────────────────────────────────────

    async def list_helplines(self) -> List[HelplineRead]:
        return [h.model_copy() for h in self._helplines.values()]

    async def create_helpline(self, data: HelplineCreate) -> HelplineRead:
        async with self._lock:
            helpline = self._insert_helpline(data)
        return helpline.model_copy()

    def _insert_helpline(self, data: HelplineCreate) -> HelplineRead:
        """Caller holds the lock."""
        id = next(self._helpline_ids)
        helpline = HelplineRead(id=id, **data.model_dump())
        self._helplines[id] = helpline
        return helpline

    # ── Stats ─────────────────────────────────────────────────────────────

    async def get_stats(self) -> StatsResponse:
        animals = list(self._animals.values())
        vaccinated = sum(1 for a in animals if a.vaccination_status in VACCINATED_STATUSES)
        return StatsResponse(
            registered_animals=len(animals),
            vaccinated=vaccinated,
            qr_codes=len(animals),
            helplines=len(self._helplines),
        )
