# app/services/conflicts.py
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


def find_conflict(
    db: Session,
    doctor_name: str,
    appointment_date: date,
    appointment_time: str,
    exclude_id: Optional[int] = None,
) -> Optional[models.Appointment]:
    """
    Cita activa (no cancelada) que ya ocupa el slot doctor+fecha+hora.
    En ediciones se pasa ``exclude_id`` para no chocar con la propia cita.
    """
    stmt = select(models.Appointment).where(
        models.Appointment.doctor_name == doctor_name,
        models.Appointment.appointment_date == appointment_date,
        models.Appointment.appointment_time == appointment_time,
        models.Appointment.status != models.AppointmentStatus.cancelled,
    )
    if exclude_id is not None:
        stmt = stmt.where(models.Appointment.id != exclude_id)

    conflict = db.execute(stmt.limit(1)).scalars().first()
    if conflict is not None:
        logger.info(
            "Slot ocupado: doctor=%s %s %s (cita %s)",
            doctor_name, appointment_date, appointment_time, conflict.id,
        )
    return conflict


def is_slot_taken(
    db: Session,
    doctor_name: str,
    appointment_date: date,
    appointment_time: str,
    exclude_id: Optional[int] = None,
) -> bool:
    return find_conflict(db, doctor_name, appointment_date, appointment_time, exclude_id) is not None
