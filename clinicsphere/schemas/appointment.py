from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.security import UserRole
from ..models.appointment import AppointmentStatus

MAX_TEXT_LENGTH = 2000


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware timestamp to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > MAX_TEXT_LENGTH:
        raise ValueError(f"Must be {MAX_TEXT_LENGTH} characters or fewer.")
    return normalized


class AppointmentCreate(BaseModel):
    doctor_id: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)
    appointment_date: date
    start_time: datetime
    end_time: datetime
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timestamps(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("notes", "reason")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_text(value)


class PatientAppointmentCreate(AppointmentCreate):
    """Booking body for the patient alias; the caller's id always wins."""
    patient_id: Optional[str] = None


class AppointmentUpdate(BaseModel):
    appointment_date: Optional[date] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @field_validator("notes", "reason")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_text(value)

    def touches_schedule(self) -> bool:
        return any(
            getattr(self, field) is not None
            for field in ("appointment_date", "start_time", "end_time")
        )


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: str
    doctor_id: str
    patient_id: str
    appointment_date: date
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    doctor: Optional[UserSummary] = None
    patient: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class AppointmentPage(BaseModel):
    items: List[AppointmentResponse]
    total: int
    page: int
    limit: int


class MessageResponse(BaseModel):
    message: str
