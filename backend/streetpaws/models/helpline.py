"""
StreetPaws Backend — Helpline SQLAlchemy Model
================================================

What:  Static directory of animal-welfare contacts, seeded on first run.
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from streetpaws.database import Base


class Helpline(Base):
    __tablename__ = "helplines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    hours: Mapped[str] = mapped_column(String(100), nullable=False)
    coverage: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Helpline(id={self.id}, name='{self.name}')>"
