"""
StreetPaws Backend — Vaccination SQLAlchemy Model
===================================================

What:  ORM model for the `vaccinations` table (many-to-one to animals).
Why ON DELETE CASCADE: the database drops the history together with the
animal even when rows are deleted outside the ORM.
"""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streetpaws.database import Base

if TYPE_CHECKING:
    from streetpaws.models.animal import Animal


class Vaccination(Base):
    """One administered vaccine dose for one animal."""

    __tablename__ = "vaccinations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    animal_id: Mapped[int] = mapped_column(
        ForeignKey("animals.id", ondelete="CASCADE"),
        nullable=False,
    )
    vaccine_name: Mapped[str] = mapped_column(String(100), nullable=False)
    vaccination_date: Mapped[date] = mapped_column(Date, nullable=False)
    veterinarian: Mapped[Optional[str]] = mapped_column(String(100))
    next_due_date: Mapped[Optional[date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    animal: Mapped["Animal"] = relationship(back_populates="vaccinations")

    __table_args__ = (
        Index("idx_vaccinations_animal_id", "animal_id"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Vaccination(id={self.id}, animal_id={self.animal_id}, vaccine='{self.vaccine_name}')>"
