# app/scripts/init_db.py
# Crea tablas/índices y, si la tabla está vacía, carga un par de citas de ejemplo.
#   python -m app.scripts.init_db
from datetime import timedelta

from sqlalchemy import func, select

from app.config import settings
from app.database import Database
from app.models import Appointment
from app.services.appointments import create_appointment
from app.services.clock import today_local


def sample_payloads():
    hoy = today_local()
    return [
        {
            "patientName": "John Doe",
            "patientEmail": "john.doe@example.com",
            "patientPhone": "+15551234567",
            "doctorName": "Dr. Sarah Smith",
            "department": "General Medicine",
            "appointmentDate": (hoy + timedelta(days=1)).isoformat(),
            "appointmentTime": "10:00",
            "reason": "Annual checkup",
        },
        {
            "patientName": "Jane Smith",
            "patientEmail": "jane.smith@example.com",
            "patientPhone": "+15559876543",
            "doctorName": "Dr. Michael Johnson",
            "department": "Cardiology",
            "appointmentDate": (hoy + timedelta(days=2)).isoformat(),
            "appointmentTime": "14:30",
            "reason": "Heart palpitations",
        },
    ]


def init_db(db: Database, seed: bool = True) -> int:
    """Devuelve cuántas citas de ejemplo se insertaron."""
    db.create_all()
    if not seed:
        return 0
    with db.session() as s:
        if s.execute(select(func.count()).select_from(Appointment)).scalar_one():
            return 0
        for payload in sample_payloads():
            create_appointment(s, payload)
    return len(sample_payloads())


if __name__ == "__main__":
    database = Database(settings.DATABASE_URL).open()
    try:
        n = init_db(database)
        print(f"Base inicializada ({settings.DATABASE_URL}); citas de ejemplo insertadas: {n}")
    finally:
        database.close()
