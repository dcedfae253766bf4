# app/models.py
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Date, DateTime, Enum, Text, Index, text
from datetime import date, datetime, timezone
import enum
from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentStatus(str, enum.Enum):
    scheduled = "scheduled"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no-show"


class Department(str, enum.Enum):
    general_medicine = "General Medicine"
    cardiology = "Cardiology"
    dermatology = "Dermatology"
    orthopedics = "Orthopedics"
    pediatrics = "Pediatrics"
    gynecology = "Gynecology"
    neurology = "Neurology"
    psychiatry = "Psychiatry"


# Un slot (doctor, fecha, hora) sólo puede tener una cita activa.
# Índice único parcial: las canceladas no cuentan.
_ACTIVE = text("status != 'cancelled'")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "doctor_name", "appointment_date", "appointment_time",
            unique=True,
            sqlite_where=_ACTIVE,
            postgresql_where=_ACTIVE,
        ),
        Index("ix_appointments_date_time", "appointment_date", "appointment_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    patient_name: Mapped[str] = mapped_column(String(100), nullable=False)
    patient_email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True, default=None, index=True)
    patient_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, default=None)
    doctor_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default=None, index=True)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    # Se guarda el *valor* del enum ("no-show"), no el nombre del miembro
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=20,
        ),
        default=AppointmentStatus.scheduled,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.cancelled

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor='{self.doctor_name}', "
            f"slot='{self.appointment_date} {self.appointment_time}', status='{self.status.value}')>"
        )
