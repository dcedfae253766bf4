# app/services/appointments.py
"""
Alta, consulta, edición, cambio de estado y borrado de citas.

Los errores se reportan con las excepciones de ``app.errors``; el router
las traduce a HTTP.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..errors import ConflictError, NotFoundError, ValidationError
from ..schemas import AppointmentData
from .conflicts import find_conflict
from .validation import validate_appointment, validate_status

logger = logging.getLogger(__name__)

MAX_APPOINTMENT_ID = 2**63 - 1


def get_appointment(db: Session, appointment_id: int) -> models.Appointment:
    if not (1 <= appointment_id <= MAX_APPOINTMENT_ID):
        raise NotFoundError()
    appt = db.get(models.Appointment, appointment_id)
    if appt is None:
        raise NotFoundError()
    return appt


def _validated(payload: Any, *, staff: bool, today: Optional[date]) -> AppointmentData:
    result = validate_appointment(payload, staff=staff, today=today)
    if not result.ok:
        logger.info("Validación fallida: %s", [e.field for e in result.errors])
        raise ValidationError(result.errors)
    return result.value


def _ensure_slot_free(db: Session, data_or_appt, exclude_id: Optional[int] = None) -> None:
    conflict = find_conflict(
        db,
        data_or_appt.doctor_name,
        data_or_appt.appointment_date,
        data_or_appt.appointment_time,
        exclude_id=exclude_id,
    )
    if conflict is not None:
        raise ConflictError()


def _commit(db: Session, appt: models.Appointment) -> models.Appointment:
    """
    Commit protegido por el índice único parcial del slot: si otra petición
    ganó la carrera entre la verificación y el insert, se reporta como conflicto.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Conflicto de slot detectado por la base de datos: %r", appt)
        raise ConflictError()
    db.refresh(appt)
    return appt


def create_appointment(db: Session, payload: Any, today: Optional[date] = None) -> models.Appointment:
    data = _validated(payload, staff=False, today=today)
    status = data.status or models.AppointmentStatus.scheduled

    if status != models.AppointmentStatus.cancelled:
        _ensure_slot_free(db, data)

    appt = models.Appointment(
        patient_name=data.patient_name,
        patient_email=data.patient_email,
        patient_phone=data.patient_phone,
        doctor_name=data.doctor_name,
        department=data.department,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        reason=data.reason,
        status=status,
    )
    db.add(appt)
    appt = _commit(db, appt)
    logger.info("Cita %s creada para %s", appt.id, appt.patient_name)
    return appt


def update_appointment(
    db: Session,
    appointment_id: int,
    payload: Any,
    today: Optional[date] = None,
) -> models.Appointment:
    """Reemplazo completo: los campos opcionales ausentes quedan vacíos."""
    appt = get_appointment(db, appointment_id)
    data = _validated(payload, staff=True, today=today)
    status = data.status or appt.status

    if status != models.AppointmentStatus.cancelled:
        _ensure_slot_free(db, data, exclude_id=appt.id)

    appt.patient_name = data.patient_name
    appt.patient_email = data.patient_email
    appt.patient_phone = data.patient_phone
    appt.doctor_name = data.doctor_name
    appt.department = data.department
    appt.appointment_date = data.appointment_date
    appt.appointment_time = data.appointment_time
    appt.reason = data.reason
    appt.notes = data.notes
    appt.status = status

    appt = _commit(db, appt)
    logger.info("Cita %s actualizada", appt.id)
    return appt


def update_status(db: Session, appointment_id: int, raw_status: Any) -> models.Appointment:
    """
    Cambia sólo el estado. Cualquier estado puede pasar a cualquier otro;
    reactivar una cita cancelada exige que su slot siga libre.
    """
    status, errors = validate_status(raw_status)
    if errors:
        raise ValidationError(errors)

    appt = get_appointment(db, appointment_id)
    if appt.status == status:
        return appt

    if not appt.is_active and status != models.AppointmentStatus.cancelled:
        _ensure_slot_free(db, appt, exclude_id=appt.id)

    appt.status = status
    appt = _commit(db, appt)
    logger.info("Cita %s cambió de estado a %s", appt.id, status.value)
    return appt


def delete_appointment(db: Session, appointment_id: int) -> None:
    appt = get_appointment(db, appointment_id)
    db.delete(appt)
    db.commit()
    logger.info("Cita %s eliminada", appointment_id)
