"""Owner schemas for request/response validation."""

import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_ALLOWED = re.compile(r"^[0-9+()\-\s]+$")


def _validate_phone(v: str) -> str:
    if not PHONE_ALLOWED.match(v):
        raise ValueError("Phone number must contain only digits and separators")
    digits = re.sub(r"\D", "", v)
    if len(digits) < 7:
        raise ValueError("Phone number must have at least 7 digits")
    return v.strip()


class OwnerBase(BaseModel):
    """Base owner schema with common fields."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=7, max_length=20)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank names."""
        if not v.strip():
            raise ValueError("Owner name is required")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Validate phone number format."""
        return _validate_phone(v)


class OwnerCreate(OwnerBase):
    """Schema for creating an owner."""


class OwnerUpdate(BaseModel):
    """Schema for updating an owner."""

    name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, min_length=7, max_length=20)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        """Validate phone number format."""
        return _validate_phone(v) if v is not None else v


class OwnerResponse(OwnerBase):
    """Schema for owner response."""

    id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OwnerListResponse(BaseModel):
    """Schema for paginated owner list response."""

    total: int
    page: int
    page_size: int
    items: list[OwnerResponse]
