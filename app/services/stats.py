# app/services/stats.py
from __future__ import annotations
import logging
from datetime import date, datetime, time
from typing import Optional

import pytz
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models
from ..schemas import CountBucket, DayBucket, StatsOverview
from .clock import local_tz, today_local

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


def count_by_status(db: Session) -> dict[str, int]:
    """Un conteo por cada estado posible (cero si no hay)."""
    A = models.Appointment
    rows = db.execute(select(A.status, func.count()).group_by(A.status)).all()
    found = {s: n for s, n in rows}
    return {s.value: int(found.get(s, 0)) for s in models.AppointmentStatus}


def _count_by(db: Session, column) -> list[CountBucket]:
    rows = db.execute(select(column, func.count()).group_by(column)).all()
    buckets = [CountBucket(name=name or UNASSIGNED, count=int(n)) for name, n in rows]
    # Mayor conteo primero; empates por nombre para que el orden sea estable
    buckets.sort(key=lambda b: (-b.count, b.name))
    return buckets


def count_by_department(db: Session) -> list[CountBucket]:
    return _count_by(db, models.Appointment.department)


def count_by_doctor(db: Session) -> list[CountBucket]:
    return _count_by(db, models.Appointment.doctor_name)


def count_today(db: Session, today: date) -> int:
    A = models.Appointment
    return db.execute(select(func.count()).select_from(A).where(A.appointment_date == today)).scalar_one()


def count_upcoming(db: Session, today: date) -> int:
    A = models.Appointment
    return db.execute(
        select(func.count()).select_from(A).where(
            A.status == models.AppointmentStatus.scheduled,
            A.appointment_date >= today,
        )
    ).scalar_one()


def monthly_created(db: Session, today: date) -> list[DayBucket]:
    """Citas creadas en el mes en curso, agrupadas por día del mes."""
    tz = local_tz()
    month_start = tz.localize(datetime.combine(today.replace(day=1), time(0, 0))).astimezone(pytz.UTC)
    A = models.Appointment
    created = db.execute(select(A.created_at).where(A.created_at >= month_start)).scalars().all()

    per_day: dict[int, int] = {}
    for ts in created:
        if ts.tzinfo is None:
            # SQLite devuelve datetimes naive; se guardaron en UTC
            ts = pytz.UTC.localize(ts)
        local = ts.astimezone(tz)
        if local.year == today.year and local.month == today.month:
            per_day[local.day] = per_day.get(local.day, 0) + 1
    return [DayBucket(day=d, count=n) for d, n in sorted(per_day.items())]


def compute_overview(db: Session, today: Optional[date] = None) -> StatsOverview:
    """Resumen para el dashboard. Sólo lectura; con la tabla vacía devuelve ceros."""
    today = today or today_local()
    total = db.execute(select(func.count()).select_from(models.Appointment)).scalar_one()
    overview = StatsOverview(
        total=total,
        today=count_today(db, today),
        upcoming=count_upcoming(db, today),
        by_status=count_by_status(db),
        by_department=count_by_department(db),
        by_doctor=count_by_doctor(db),
        monthly=monthly_created(db, today),
    )
    logger.info("Estadísticas calculadas (total=%s)", total)
    return overview
