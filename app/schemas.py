from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .models import AppointmentStatus


class CamelModel(BaseModel):
    """Los JSON del API usan camelCase; en Python usamos snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(BaseModel):
    field: str
    message: str


class AppointmentData(CamelModel):
    """Cita ya validada y normalizada (sin id ni timestamps)."""
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    doctor_name: str
    department: Optional[str] = None
    appointment_date: date
    appointment_time: str
    reason: str
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None


class AppointmentOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    doctor_name: str
    department: Optional[str] = None
    appointment_date: date
    appointment_time: str
    reason: str
    notes: Optional[str] = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_as_utc(cls, value: datetime) -> datetime:
        # SQLite devuelve datetimes naive; se guardaron en UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class StatusUpdate(BaseModel):
    status: Any = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CountBucket(BaseModel):
    name: str
    count: int


class DayBucket(BaseModel):
    day: int
    count: int


class StatsOverview(CamelModel):
    total: int
    today: int
    upcoming: int
    by_status: dict[str, int]
    by_department: list[CountBucket]
    by_doctor: list[CountBucket]
    monthly: list[DayBucket]


# ── Sobres de respuesta ───────────────────────────────────────────────────────
class AppointmentResponse(BaseModel):
    success: bool = True
    data: AppointmentOut
    message: Optional[str] = None


class AppointmentListResponse(BaseModel):
    success: bool = True
    data: list[AppointmentOut]
    pagination: Pagination


class UpcomingResponse(BaseModel):
    success: bool = True
    data: list[AppointmentOut]


class StatsResponse(BaseModel):
    success: bool = True
    data: StatsOverview


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[list[FieldError]] = None
