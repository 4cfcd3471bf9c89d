"""
StreetPaws Backend — Animal SQLAlchemy Model
==============================================

What:  ORM model representing the `animals` table.
Who:   Used by DatabaseStorage for CRUD operations and by Alembic.

Table Design Rationale:
    - Integer autoincrement id: internal key, never reused. sqlite_autoincrement
      keeps SQLite from recycling the highest id after a delete, which would
      otherwise hand out the same SP-<year>-<sequence> twice.
    - animal_id: public identifier printed on QR tags; unique and immutable.
    - Descriptive attributes are free-text columns; species is validated in
      the API schema rather than by a database enum so vocabulary changes do
      not require a migration.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streetpaws.database import Base

if TYPE_CHECKING:
    from streetpaws.models.vaccination import Vaccination


class Animal(Base):
    """
    A registered stray animal.

    Lifecycle:
        1. Inserted by POST /api/animals; animal_id derived from the new id
        2. Partially updated by PATCH; animal_id/qr_code/registered_at never change
        3. Deleted by DELETE; vaccinations go with it (FK cascade + ORM cascade)
    """

    __tablename__ = "animals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Format: SP-<year>-<6 digit sequence>
    animal_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    species: Mapped[str] = mapped_column(String(20), nullable=False)
    breed: Mapped[Optional[str]] = mapped_column(String(100))
    gender: Mapped[Optional[str]] = mapped_column(String(20))
    age: Mapped[Optional[str]] = mapped_column(String(20))
    size: Mapped[Optional[str]] = mapped_column(String(20))
    found_location: Mapped[Optional[str]] = mapped_column(Text)
    area: Mapped[Optional[str]] = mapped_column(String(100))
    health_status: Mapped[Optional[str]] = mapped_column(String(20))
    vaccination_status: Mapped[Optional[str]] = mapped_column(String(20))
    medical_notes: Mapped[Optional[str]] = mapped_column(Text)
    photo_url: Mapped[Optional[str]] = mapped_column(String(255))

    # Absolute profile URL encoded into the printed QR tag
    qr_code: Mapped[Optional[str]] = mapped_column(String(255))

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    vaccinations: Mapped[List["Vaccination"]] = relationship(
        back_populates="animal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_animals_species", "species"),
        Index("idx_animals_area", "area"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Animal(id={self.id}, animal_id='{self.animal_id}', species='{self.species}')>"
