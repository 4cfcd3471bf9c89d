"""
StreetPaws Backend — Abstract Storage Interface
=================================================

What:  The record-store capability every backend implements.
Why:   The in-memory store and the relational store must be interchangeable.
       One backend is chosen at process start (build_storage) and handed to
       the service layer; call sites only ever see this interface.
How:   Concrete implementations inherit from Storage and implement every
       abstract method. All of them accept and return the pydantic schemas
       from streetpaws.schemas.animal, never ORM rows.

Implementations:
    - DatabaseStorage (storage/sql.py): async SQLAlchemy, auto-increment ids
    - MemoryStorage (storage/memory.py): dicts + asyncio.Lock, per-instance id counters
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

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

# Text columns matched by the free-text search query
SEARCHABLE_FIELDS = ("animal_id", "species", "breed", "found_location", "area")

# Attributes fixed at creation; update_animal ignores them
IMMUTABLE_FIELDS = frozenset({"id", "animal_id", "qr_code", "registered_at"})

# Vaccination statuses counted as "vaccinated" in the stats
VACCINATED_STATUSES = ("partial", "complete")


class Storage(ABC):
    """
    Abstract record store for animals, vaccinations and helplines.

    Contract:
        - Numeric ids are assigned by the store and never reused
        - create_animal assigns animal_id (SP-<year>-<seq>) and qr_code
        - update_animal applies only the keys present in `changes`
        - delete_animal removes the animal and all of its vaccinations
        - Missing records are reported as None, not as exceptions; the
          service layer turns None into NotFoundError
    """

    name: str = "abstract"

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the store (schema, seed helplines). Safe to call twice."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections or other resources held by the store."""
        ...

    async def is_available(self) -> bool:
        """Health probe. Backends without external dependencies are always up."""
        return True

    # ── Animals ───────────────────────────────────────────────────────────

    @abstractmethod
    async def get_animal(self, id: int) -> Optional[AnimalRead]:
        ...

    @abstractmethod
    async def get_animal_by_public_id(self, animal_id: str) -> Optional[AnimalRead]:
        ...

    @abstractmethod
    async def list_animals(self) -> List[AnimalRead]:
        ...

    @abstractmethod
    async def search_animals(self, query: str, filters: SearchFilters) -> List[AnimalRead]:
        """
        Case-insensitive substring match of `query` over SEARCHABLE_FIELDS,
        AND-ed with equality on every non-empty filter. Empty query and no
        filters return every animal.
        """
        ...

    @abstractmethod
    async def create_animal(self, data: AnimalCreate) -> AnimalRead:
        ...

    @abstractmethod
    async def update_animal(self, id: int, changes: Dict[str, Any]) -> Optional[AnimalRead]:
        ...

    @abstractmethod
    async def delete_animal(self, id: int) -> Optional[AnimalRead]:
        """Returns the deleted record, or None if it did not exist."""
        ...

    # ── Vaccinations ──────────────────────────────────────────────────────

    @abstractmethod
    async def list_vaccinations(self, animal_id: int) -> List[VaccinationRead]:
        ...

    @abstractmethod
    async def create_vaccination(
        self, animal_id: int, data: VaccinationCreate
    ) -> Optional[VaccinationRead]:
        """Returns None when the owning animal does not exist."""
        ...

    # ── Helplines ─────────────────────────────────────────────────────────

    @abstractmethod
    async def list_helplines(self) -> List[HelplineRead]:
        ...

    @abstractmethod
    async def create_helpline(self, data: HelplineCreate) -> HelplineRead:
        ...

    # ── Stats ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_stats(self) -> StatsResponse:
        ...


def mutable_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys that must never change after creation."""
    return {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}
