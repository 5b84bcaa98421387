"""Patient (animal) schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Species(str, Enum):
    """Species enumeration."""

    DOG = "dog"
    CAT = "cat"
    BIRD = "bird"
    RABBIT = "rabbit"
    REPTILE = "reptile"
    OTHER = "other"


def _validate_birth_date(v: date | None) -> date | None:
    if v and v > date.today():
        raise ValueError("Birth date cannot be in the future")
    return v


class PatientBase(BaseModel):
    """Base patient schema with common fields."""

    name: str = Field(..., min_length=1, max_length=100)
    species: Species
    breed: str | None = Field(None, max_length=100)
    birth_date: date | None = None
    weight: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: date | None) -> date | None:
        """Reject birth dates in the future."""
        return _validate_birth_date(v)


class PatientCreate(PatientBase):
    """Schema for registering a patient."""

    owner_id: int = Field(..., gt=0)


class PatientUpdate(BaseModel):
    """Schema for updating a patient profile."""

    name: str | None = Field(None, min_length=1, max_length=100)
    species: Species | None = None
    breed: str | None = Field(None, max_length=100)
    birth_date: date | None = None
    weight: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    owner_id: int | None = Field(None, gt=0)

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: date | None) -> date | None:
        """Reject birth dates in the future."""
        return _validate_birth_date(v)


class PatientStatusUpdate(BaseModel):
    """Schema for activating or deactivating a patient."""

    is_active: bool


class PatientResponse(PatientBase):
    """Schema for patient response."""

    id: int
    owner_id: int
    is_active: bool
    age_years: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PatientListResponse(BaseModel):
    """Schema for paginated patient list response."""

    total: int
    page: int
    page_size: int
    items: list[PatientResponse]


class PatientFilters(BaseModel):
    """Schema for patient filtering."""

    owner_id: int | None = None
    species: Species | None = None
    is_active: bool | None = None
    search: str | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
