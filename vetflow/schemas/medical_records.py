"""Medical record schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class MedicalRecordCreate(BaseModel):
    """Schema for creating a medical record."""

    patient_id: int = Field(..., gt=0)
    veterinarian_id: int | None = Field(
        None,
        gt=0,
        description="Defaults to the authenticated veterinarian",
    )
    visit_date: datetime
    diagnosis: str = Field(..., min_length=1, max_length=2000)
    treatment: str | None = Field(None, max_length=2000)
    medications: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("diagnosis")
    @classmethod
    def validate_diagnosis(cls, v: str) -> str:
        """Reject blank diagnoses."""
        if not v.strip():
            raise ValueError("Diagnosis is required")
        return v.strip()


class MedicalRecordUpdate(BaseModel):
    """Schema for updating a medical record. Notes are appended."""

    diagnosis: str | None = Field(None, min_length=1, max_length=2000)
    treatment: str | None = Field(None, max_length=2000)
    medications: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=2000)


class MedicalRecordResponse(BaseModel):
    """Schema for medical record response."""

    id: int
    patient_id: int
    veterinarian_id: int
    visit_date: datetime
    diagnosis: str
    treatment: str | None = None
    medications: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MedicalRecordListResponse(BaseModel):
    """Schema for paginated medical record list response."""

    total: int
    page: int
    page_size: int
    items: list[MedicalRecordResponse]
