from datetime import date

import pytest

from app.models import AppointmentStatus
from app.services.validation import validate_appointment, validate_status

from factories import FIXED_TODAY, make_payload


def fields(result):
    return {e.field for e in result.errors}


def test_valid_payload_is_normalized():
    result = validate_appointment(
        make_payload(
            patientName="  Ana López  ",
            patientEmail="  Ana.Lopez@Example.COM ",
            patientPhone="(555) 123-4567",
            department="cardiology",
            reason="  Dolor de pecho ",
        ),
        today=FIXED_TODAY,
    )
    assert result.ok
    v = result.value
    assert v.patient_name == "Ana López"
    assert v.patient_email == "ana.lopez@example.com"
    assert v.patient_phone == "5551234567"
    assert v.department == "Cardiology"
    assert v.appointment_date == date(2025, 3, 1)
    assert v.appointment_time == "10:00"
    assert v.reason == "Dolor de pecho"
    assert v.status is None


@pytest.mark.parametrize("bad_time", ["25:61", "9:00", "24:00", "10:60", "1000", "", "10:00am", 1000])
def test_bad_time_is_reported(bad_time):
    result = validate_appointment(make_payload(appointmentTime=bad_time), today=FIXED_TODAY)
    assert not result.ok
    assert "appointmentTime" in fields(result)


def test_collects_every_failing_field():
    payload = {
        "patientName": "A",
        "patientEmail": "no-es-email",
        "patientPhone": "abc",
        "department": "Astrology",
        "appointmentDate": "2024-12-31",
        "appointmentTime": "9:00",
        "reason": "x" * 501,
    }
    result = validate_appointment(payload, today=FIXED_TODAY)
    assert fields(result) == {
        "patientName", "patientEmail", "patientPhone", "doctorName",
        "department", "appointmentDate", "appointmentTime", "reason",
    }


def test_email_phone_and_department_are_optional():
    payload = make_payload()
    for key in ("patientEmail", "patientPhone", "department"):
        payload.pop(key)
    result = validate_appointment(payload, today=FIXED_TODAY)
    assert result.ok
    assert result.value.patient_email is None
    assert result.value.department is None


def test_today_is_allowed_but_yesterday_is_not():
    assert validate_appointment(make_payload(appointmentDate="2025-01-01"), today=FIXED_TODAY).ok
    result = validate_appointment(make_payload(appointmentDate="2024-12-31"), today=FIXED_TODAY)
    assert fields(result) == {"appointmentDate"}


def test_bad_date_format():
    result = validate_appointment(make_payload(appointmentDate="01/03/2025"), today=FIXED_TODAY)
    assert fields(result) == {"appointmentDate"}


def test_iso_datetime_is_reduced_to_date():
    result = validate_appointment(make_payload(appointmentDate="2025-03-01T10:00:00Z"), today=FIXED_TODAY)
    assert result.value.appointment_date == date(2025, 3, 1)


def test_non_string_values_do_not_raise():
    result = validate_appointment(
        make_payload(patientName=123, doctorName=["x"], reason=None),
        today=FIXED_TODAY,
    )
    assert fields(result) == {"patientName", "doctorName", "reason"}


def test_non_mapping_payload():
    result = validate_appointment(["no", "dict"], today=FIXED_TODAY)
    assert fields(result) == {"body"}


def test_legacy_aliases_are_accepted():
    payload = {
        "patientName": "Juan Pérez",
        "email": "JUAN@example.com",
        "phone": "+15551234567",
        "doctor": "Dr. House",
        "specialty": "Neurology",
        "date": "2025-02-10",
        "time": "08:30",
        "reason": "Migraña",
    }
    result = validate_appointment(payload, today=FIXED_TODAY)
    assert result.ok
    assert result.value.doctor_name == "Dr. House"
    assert result.value.patient_email == "juan@example.com"
    assert result.value.department == "Neurology"


def test_notes_only_for_staff():
    payload = make_payload(notes="Traer estudios")
    assert validate_appointment(payload, today=FIXED_TODAY).value.notes is None
    assert validate_appointment(payload, staff=True, today=FIXED_TODAY).value.notes == "Traer estudios"
    result = validate_appointment(make_payload(notes="x" * 1001), staff=True, today=FIXED_TODAY)
    assert fields(result) == {"notes"}


def test_validate_status():
    assert validate_status("no-show") == (AppointmentStatus.no_show, [])
    assert validate_status(" Confirmed ")[0] == AppointmentStatus.confirmed
    status, errors = validate_status("archived")
    assert status is None
    assert errors[0].field == "status"
    assert validate_status(None)[1]
