"""System user schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from vetflow.core.permissions import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class UserCreate(UserBase):
    """Schema for creating a staff account."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole


class UserUpdate(BaseModel):
    """Schema for updating a staff account."""

    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=72)


class UserResponse(UserBase):
    """User schema for API responses."""

    id: int
    username: str
    role: UserRole
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VeterinarianResponse(BaseModel):
    """Veterinarian as exposed to schedulers."""

    id: int
    username: str
    email: str
    display_name: str
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
