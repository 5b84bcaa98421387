"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 240
DEFAULT_DURATION_MINUTES = 30


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentType(str, Enum):
    """Appointment type enumeration."""

    CONSULTATION = "consultation"
    VACCINATION = "vaccination"
    SURGERY = "surgery"
    GROOMING = "grooming"
    EMERGENCY = "emergency"
    CHECKUP = "checkup"
    OTHER = "other"


class AppointmentPriority(str, Enum):
    """Appointment priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class AppointmentCreate(BaseModel):
    """Schema for scheduling a new appointment."""

    patient_id: int = Field(..., gt=0)
    veterinarian_id: int = Field(..., gt=0)
    scheduled_at: datetime
    duration_minutes: int = Field(
        default=DEFAULT_DURATION_MINUTES,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )
    type: AppointmentType
    priority: AppointmentPriority = AppointmentPriority.MEDIUM
    reason: str = Field(..., min_length=3, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        """Reject whitespace-only reasons."""
        if not v.strip():
            raise ValueError("Please provide a reason for the appointment")
        return v.strip()


class AppointmentUpdate(BaseModel):
    """Schema for updating descriptive appointment fields.

    The slot, the status and the patient/veterinarian references are changed
    only through the reschedule and status endpoints.
    """

    type: AppointmentType | None = None
    priority: AppointmentPriority | None = None
    reason: str | None = Field(None, min_length=3, max_length=500)
    notes: str | None = Field(None, max_length=1000)


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new slot."""

    scheduled_at: datetime
    duration_minutes: int | None = Field(
        None,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""

    reason: str | None = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    patient_id: int
    veterinarian_id: int
    scheduled_at: datetime
    duration_minutes: int
    type: AppointmentType
    priority: AppointmentPriority
    status: AppointmentStatus
    reason: str
    notes: str | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    # Derived values
    end_time: datetime
    is_overdue: bool
    can_reschedule: bool
    can_cancel: bool

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    patient_id: int | None = None
    veterinarian_id: int | None = None
    status: AppointmentStatus | None = None
    type: AppointmentType | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class ConflictSummary(BaseModel):
    """Short description of an appointment occupying a requested slot."""

    id: int
    patient_id: int
    scheduled_at: datetime
    end_time: datetime
    status: AppointmentStatus


class AvailabilityResponse(BaseModel):
    """Schema for availability check response."""

    veterinarian_id: int
    scheduled_at: datetime
    duration_minutes: int
    available: bool
    conflicts: list[ConflictSummary]
