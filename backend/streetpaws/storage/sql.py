"""
StreetPaws Backend — Relational Storage (SQLAlchemy)
======================================================

What:  Storage implementation backed by the async SQLAlchemy engine.
How:   Every operation opens its own session and transaction:

           async with self._session_factory() as session, session.begin():
               ...  # commit on success, rollback on exception

       There is no application-level locking; concurrent requests are
       serialized by the database's own transaction handling.

Id assignment:
    Numeric ids come from the database's auto-increment. The public
    identifier is derived from that id inside the same transaction
    (insert with a unique placeholder, flush to get the id, then set
    SP-<year>-<id>), so it is unique as long as ids are never reused.

Error Handling Strategy:
    SQLAlchemy errors are logged with full detail and re-raised as
    DatabaseError with a generic message.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from streetpaws.database import create_schema, dispose_engine, ping
from streetpaws.exceptions import DatabaseError
from streetpaws.identity import format_public_id, profile_url
from streetpaws.models import Animal, Helpline, Vaccination
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


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DatabaseStorage(Storage):
    """Record store persisted in PostgreSQL (or SQLite for local runs)."""

    name = "database"

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory or async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        await create_schema(self._engine)
        try:
            async with self._session_factory() as session, session.begin():
                count = await session.scalar(select(func.count(Helpline.id)))
                if count:
                    return
                session.add_all(Helpline(**h.model_dump()) for h in DEFAULT_HELPLINES)
            logger.info("Seeded %d helplines into database", len(DEFAULT_HELPLINES))
        except SQLAlchemyError as e:
            raise self._wrap("seed helplines", e)

    async def close(self) -> None:
        await dispose_engine(self._engine)

    async def is_available(self) -> bool:
        return await ping(self._engine)

    # ── Animals ───────────────────────────────────────────────────────────

    async def get_animal(self, id: int) -> Optional[AnimalRead]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Animal, id)
                return AnimalRead.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise self._wrap("get animal", e, id=id)

    async def get_animal_by_public_id(self, animal_id: str) -> Optional[AnimalRead]:
        try:
            async with self._session_factory() as session:
                row = await session.scalar(select(Animal).where(Animal.animal_id == animal_id))
                return AnimalRead.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise self._wrap("lookup animal", e, animal_id=animal_id)

    async def list_animals(self) -> List[AnimalRead]:
        return await self.search_animals("", SearchFilters())

    async def search_animals(self, query: str, filters: SearchFilters) -> List[AnimalRead]:
        stmt = select(Animal).order_by(Animal.id)

        if query:
            pattern = f"%{_escape_like(query)}%"
            stmt = stmt.where(
                or_(*(getattr(Animal, f).ilike(pattern, escape="\\") for f in SEARCHABLE_FIELDS))
            )

        for field in ("species", "vaccination_status", "area", "health_status"):
            wanted = getattr(filters, field)
            if wanted:
                stmt = stmt.where(getattr(Animal, field) == wanted)

        try:
            async with self._session_factory() as session:
                rows = (await session.scalars(stmt)).all()
                return [AnimalRead.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            raise self._wrap("search animals", e, query=query)

    async def create_animal(self, data: AnimalCreate) -> AnimalRead:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session, session.begin():
                row = Animal(
                    animal_id=uuid.uuid4().hex,
                    registered_at=now,
                    **data.model_dump(),
                )
                session.add(row)
                await session.flush()

                row.animal_id = format_public_id(row.id, now.year)
                row.qr_code = profile_url(row.animal_id)
                await session.flush()
                return AnimalRead.model_validate(row)
        except SQLAlchemyError as e:
            raise self._wrap("create animal", e)

    async def update_animal(self, id: int, changes: Dict[str, Any]) -> Optional[AnimalRead]:
        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(Animal, id)
                if row is None:
                    return None
                for field, value in mutable_changes(changes).items():
                    setattr(row, field, value)
                await session.flush()
                return AnimalRead.model_validate(row)
        except SQLAlchemyError as e:
            raise self._wrap("update animal", e, id=id)

    async def delete_animal(self, id: int) -> Optional[AnimalRead]:
        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(Animal, id)
                if row is None:
                    return None
                deleted = AnimalRead.model_validate(row)
                # Explicit child delete: SQLite only honours ON DELETE CASCADE
                # when PRAGMA foreign_keys is on
                await session.execute(delete(Vaccination).where(Vaccination.animal_id == id))
                await session.execute(delete(Animal).where(Animal.id == id))
                return deleted
        except SQLAlchemyError as e:
            raise self._wrap("delete animal", e, id=id)

    # ── Vaccinations ──────────────────────────────────────────────────────

    async def list_vaccinations(self, animal_id: int) -> List[VaccinationRead]:
        stmt = (
            select(Vaccination)
            .where(Vaccination.animal_id == animal_id)
            .order_by(Vaccination.id)
        )
        try:
            async with self._session_factory() as session:
                rows = (await session.scalars(stmt)).all()
                return [VaccinationRead.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            raise self._wrap("list vaccinations", e, animal_id=animal_id)

    async def create_vaccination(
        self, animal_id: int, data: VaccinationCreate
    ) -> Optional[VaccinationRead]:
        try:
            async with self._session_factory() as session, session.begin():
                if await session.get(Animal, animal_id) is None:
                    return None
                row = Vaccination(animal_id=animal_id, **data.model_dump())
                session.add(row)
                await session.flush()
                return VaccinationRead.model_validate(row)
        except SQLAlchemyError as e:
            raise self._wrap("create vaccination", e, animal_id=animal_id)

    # ── Helplines ─────────────────────────────────────────────────────────

    async def list_helplines(self) -> List[HelplineRead]:
        try:
            async with self._session_factory() as session:
                rows = (await session.scalars(select(Helpline).order_by(Helpline.id))).all()
                return [HelplineRead.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            raise self._wrap("list helplines", e)

    async def create_helpline(self, data: HelplineCreate) -> HelplineRead:
        try:
            async with self._session_factory() as session, session.begin():
                row = Helpline(**data.model_dump())
                session.add(row)
                await session.flush()
                return HelplineRead.model_validate(row)
        except SQLAlchemyError as e:
            raise self._wrap("create helpline", e)

    # ── Stats ─────────────────────────────────────────────────────────────

    async def get_stats(self) -> StatsResponse:
        try:
            async with self._session_factory() as session:
                animals = await session.scalar(select(func.count(Animal.id))) or 0
                vaccinated = await session.scalar(
                    select(func.count(Animal.id)).where(
                        Animal.vaccination_status.in_(VACCINATED_STATUSES)
                    )
                ) or 0
                helplines = await session.scalar(select(func.count(Helpline.id))) or 0
        except SQLAlchemyError as e:
            raise self._wrap("compute stats", e)

        return StatsResponse(
            registered_animals=animals,
            vaccinated=vaccinated,
            qr_codes=animals,
            helplines=helplines,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _wrap(operation: str, error: SQLAlchemyError, **context: Any) -> DatabaseError:
        logger.error("Database error during %s: %s", operation, str(error), exc_info=True)
        context["operation"] = operation
        context["error_type"] = type(error).__name__
        return DatabaseError(context=context)
