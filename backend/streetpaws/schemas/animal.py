"""
StreetPaws Backend — Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract between client and backend.
How:   FastAPI validates request bodies against the *Create/*Update models
       and serializes responses through the *Read models.

Wire format:
    Field names are camelCase on the wire (animalId, foundLocation, ...) and
    snake_case in Python. `alias_generator=to_camel` plus
    `populate_by_name=True` accepts both spellings on input; FastAPI
    serializes response models by alias.

Design Decision:
    Schemas are separate from SQLAlchemy models because both storage
    backends (SQL and in-memory) return these same *Read objects. Call
    sites never see an ORM row.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Closed set; everything else on an animal is free text
Species = Literal["dog", "cat", "bird", "other"]


class CamelModel(BaseModel):
    """Base for every schema that travels over HTTP."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Animals
# ══════════════════════════════════════════════════════════════════════════


class AnimalBase(CamelModel):
    breed: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=20, description="male, female, unknown")
    age: Optional[str] = Field(default=None, max_length=20, description="puppy, young, adult, senior")
    size: Optional[str] = Field(default=None, max_length=20, description="small, medium, large, extra-large")
    found_location: Optional[str] = None
    area: Optional[str] = Field(default=None, max_length=100)
    health_status: Optional[str] = Field(
        default=None, max_length=20, description="healthy, injured, sick, recovering"
    )
    vaccination_status: Optional[str] = Field(
        default=None, max_length=20, description="not-vaccinated, partial, complete, unknown"
    )
    medical_notes: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, max_length=255)


class AnimalCreate(AnimalBase):
    """
    Body of POST /api/animals.

    The public identifier is assigned server-side; an animalId sent by the
    client is ignored (pydantic drops unknown fields).
    """
    species: Species


class AnimalUpdate(AnimalBase):
    """
    Body of PATCH /api/animals/{id}.

    Every field is optional. Only fields present in the request are applied
    (model_dump(exclude_unset=True)); omitted fields keep their stored value.
    """
    species: Optional[Species] = None

    @model_validator(mode="after")
    def species_cannot_be_cleared(self) -> "AnimalUpdate":
        if "species" in self.model_fields_set and self.species is None:
            raise ValueError("species cannot be null")
        return self


class AnimalRead(AnimalBase):
    """Full animal record as returned by every animal endpoint."""
    id: int
    animal_id: str
    species: str
    qr_code: Optional[str] = None
    registered_at: datetime


class SearchFilters(CamelModel):
    """Independent equality filters for /api/animals/search."""
    species: Optional[str] = None
    vaccination_status: Optional[str] = None
    area: Optional[str] = None
    health_status: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            (self.species, self.vaccination_status, self.area, self.health_status)
        )


# ══════════════════════════════════════════════════════════════════════════
# Vaccinations
# ══════════════════════════════════════════════════════════════════════════


class VaccinationCreate(CamelModel):
    """Body of POST /api/animals/{id}/vaccinations; the animal comes from the path."""
    vaccine_name: str = Field(min_length=1, max_length=100)
    vaccination_date: date
    veterinarian: Optional[str] = Field(default=None, max_length=100)
    next_due_date: Optional[date] = None
    notes: Optional[str] = None


class VaccinationRead(VaccinationCreate):
    id: int
    animal_id: int


# ══════════════════════════════════════════════════════════════════════════
# Helplines & Stats
# ══════════════════════════════════════════════════════════════════════════


class HelplineCreate(CamelModel):
    name: str
    type: str
    phone: str
    hours: str
    coverage: str
    description: Optional[str] = None


class HelplineRead(HelplineCreate):
    id: int


class StatsResponse(CamelModel):
    """
    Aggregate counters for the dashboard.

    qr_codes equals registered_animals: every animal gets a code at creation.
    """
    registered_animals: int
    vaccinated: int
    qr_codes: int
    helplines: int
