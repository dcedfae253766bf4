# app/services/validation.py
"""
Reglas de validación de citas, compartidas por alta (POST) y edición (PUT).

``validate_appointment`` nunca lanza excepciones por datos mal formados:
devuelve un ``ValidationResult`` con el valor normalizado o con la lista
completa de campos inválidos.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from dateutil import parser as dtparser

from ..models import AppointmentStatus, Department
from ..schemas import AppointmentData, FieldError
from .clock import today_local

NAME_MIN, NAME_MAX = 2, 100
DOCTOR_MAX = 100
REASON_MAX = 500
NOTES_MAX = 1000
EMAIL_MAX = 254

EMAIL_RE = re.compile(r"^[\w.+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
# Separadores que la gente escribe en teléfonos: "(555) 123-4567", "555.123.4567"
PHONE_SEPARATORS_RE = re.compile(r"[\s\-().]")

# Nombres alternos aceptados en el payload (formularios viejos)
ALIASES = {
    "patientName": ("name",),
    "patientEmail": ("email",),
    "patientPhone": ("phone",),
    "doctorName": ("doctor",),
    "department": ("specialty",),
    "appointmentDate": ("date",),
    "appointmentTime": ("time",),
}

_DEPARTMENTS = {d.value.lower(): d.value for d in Department}


@dataclass
class ValidationResult:
    value: Optional[AppointmentData] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _get(payload: Mapping[str, Any], key: str) -> Any:
    if key in payload:
        return payload[key]
    for alt in ALIASES.get(key, ()):
        if alt in payload:
            return payload[alt]
    return None


def _clean_str(value: Any) -> Optional[str]:
    """None/"" → None; strings se recortan; otros tipos no son texto."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError
    value = value.strip()
    return value or None


def _text(errors, payload, key, label, *, required, min_len=1, max_len):
    try:
        value = _clean_str(_get(payload, key))
    except TypeError:
        errors.append(FieldError(field=key, message=f"{label} debe ser texto"))
        return None
    if value is None:
        if required:
            errors.append(FieldError(field=key, message=f"{label} es obligatorio"))
        return None
    if not (min_len <= len(value) <= max_len):
        if min_len > 1:
            msg = f"{label} debe tener entre {min_len} y {max_len} caracteres"
        else:
            msg = f"{label} no puede exceder {max_len} caracteres"
        errors.append(FieldError(field=key, message=msg))
        return None
    return value


def _email(errors, payload) -> Optional[str]:
    value = _text(errors, payload, "patientEmail", "El email", required=False, max_len=EMAIL_MAX)
    if value is None:
        return None
    value = value.lower()
    if not EMAIL_RE.match(value):
        errors.append(FieldError(field="patientEmail", message="Proporcione un email válido"))
        return None
    return value


def _phone(errors, payload) -> Optional[str]:
    value = _text(errors, payload, "patientPhone", "El teléfono", required=False, max_len=30)
    if value is None:
        return None
    value = PHONE_SEPARATORS_RE.sub("", value)
    if not PHONE_RE.match(value):
        errors.append(FieldError(field="patientPhone", message="Proporcione un teléfono válido"))
        return None
    return value


def _department(errors, payload) -> Optional[str]:
    value = _text(errors, payload, "department", "El departamento", required=False, max_len=50)
    if value is None:
        return None
    canonical = _DEPARTMENTS.get(value.lower())
    if canonical is None:
        errors.append(FieldError(
            field="department",
            message="Departamento inválido. Opciones: " + ", ".join(d.value for d in Department),
        ))
    return canonical


def parse_date(value: Any) -> Optional[date]:
    """Acepta date, datetime o texto ISO ("2025-03-01" o "2025-03-01T10:00:00Z")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and DATE_RE.match(value.strip()):
        try:
            return dtparser.isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            return None
    return None


def _appointment_date(errors, payload, today: date) -> Optional[date]:
    raw = _get(payload, "appointmentDate")
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        errors.append(FieldError(field="appointmentDate", message="La fecha de la cita es obligatoria"))
        return None
    d = parse_date(raw)
    if d is None:
        errors.append(FieldError(field="appointmentDate", message="Formato de fecha inválido. Usa YYYY-MM-DD."))
        return None
    if d < today:
        errors.append(FieldError(field="appointmentDate", message="La fecha de la cita no puede estar en el pasado"))
        return None
    return d


def _appointment_time(errors, payload) -> Optional[str]:
    raw = _get(payload, "appointmentTime")
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        errors.append(FieldError(field="appointmentTime", message="La hora de la cita es obligatoria"))
        return None
    if not isinstance(raw, str) or not TIME_RE.match(raw.strip()):
        errors.append(FieldError(field="appointmentTime", message="Proporcione una hora válida en formato HH:MM (24h)"))
        return None
    return raw.strip()


def parse_status(value: Any) -> Optional[AppointmentStatus]:
    if isinstance(value, AppointmentStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return AppointmentStatus(value.strip().lower())
    except ValueError:
        return None


def _status_error() -> FieldError:
    return FieldError(
        field="status",
        message="Estado inválido. Opciones: " + ", ".join(s.value for s in AppointmentStatus),
    )


def validate_status(value: Any) -> tuple[Optional[AppointmentStatus], list[FieldError]]:
    """Validación de PATCH de estado: sólo pertenencia al enum."""
    status = parse_status(value)
    if status is None:
        return None, [_status_error()]
    return status, []


def validate_appointment(
    payload: Any,
    *,
    staff: bool = False,
    today: Optional[date] = None,
) -> ValidationResult:
    """
    Valida y normaliza un payload de cita.

    - ``staff=True`` habilita ``notes`` (sólo se fijan desde ediciones del personal).
    - ``today`` permite fijar el "hoy" en pruebas; por defecto es hoy en la TZ de la clínica.
    """
    if not isinstance(payload, Mapping):
        return ValidationResult(errors=[FieldError(field="body", message="Se esperaba un objeto JSON")])

    today = today or today_local()
    errors: list[FieldError] = []

    data = {
        "patient_name": _text(errors, payload, "patientName", "El nombre del paciente",
                              required=True, min_len=NAME_MIN, max_len=NAME_MAX),
        "patient_email": _email(errors, payload),
        "patient_phone": _phone(errors, payload),
        "doctor_name": _text(errors, payload, "doctorName", "El doctor", required=True, max_len=DOCTOR_MAX),
        "department": _department(errors, payload),
        "appointment_date": _appointment_date(errors, payload, today),
        "appointment_time": _appointment_time(errors, payload),
        "reason": _text(errors, payload, "reason", "El motivo", required=True, max_len=REASON_MAX),
    }

    if staff:
        data["notes"] = _text(errors, payload, "notes", "Las notas", required=False, max_len=NOTES_MAX)

    raw_status = payload.get("status")
    if raw_status is not None:
        status, status_errors = validate_status(raw_status)
        errors.extend(status_errors)
        data["status"] = status

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=AppointmentData(**data))
