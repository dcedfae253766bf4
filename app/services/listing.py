# app/services/listing.py
from __future__ import annotations
import enum
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import settings
from .. import models
from ..schemas import Pagination
from .clock import today_local

logger = logging.getLogger(__name__)


def escape_like(text: str) -> str:
    """Los "%" y "_" que escribe el usuario son literales, no comodines."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SortOrder(str, enum.Enum):
    asc = "asc"        # fecha + hora ascendente (agenda)
    desc = "desc"      # fecha + hora descendente
    recent = "recent"  # últimas creadas primero


@dataclass
class AppointmentFilters:
    status: Optional[models.AppointmentStatus] = None
    department: Optional[str] = None
    doctor: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def apply(self, stmt):
        A = models.Appointment
        if self.status is not None:
            stmt = stmt.where(A.status == self.status)
        if self.department:
            stmt = stmt.where(A.department == self.department)
        if self.doctor:
            # Búsqueda parcial sin distinguir mayúsculas ("smith" → "Dr. Smith")
            stmt = stmt.where(A.doctor_name.ilike(f"%{escape_like(self.doctor)}%", escape="\\"))
        if self.start_date is not None:
            stmt = stmt.where(A.appointment_date >= self.start_date)
        if self.end_date is not None:
            stmt = stmt.where(A.appointment_date <= self.end_date)
        return stmt


def _order_by(sort: SortOrder):
    A = models.Appointment
    if sort == SortOrder.recent:
        return (A.created_at.desc(), A.id.desc())
    if sort == SortOrder.desc:
        return (A.appointment_date.desc(), A.appointment_time.desc(), A.id.desc())
    return (A.appointment_date.asc(), A.appointment_time.asc(), A.id.asc())


def list_appointments(
    db: Session,
    filters: Optional[AppointmentFilters] = None,
    page: int = 1,
    limit: Optional[int] = None,
    sort: SortOrder = SortOrder.asc,
) -> tuple[list[models.Appointment], Pagination]:
    """
    Página de citas + paginación. Una página más allá del total devuelve
    lista vacía, no error.
    """
    filters = filters or AppointmentFilters()
    limit = limit or settings.DEFAULT_PAGE_LIMIT
    if page < 1:
        raise ValueError("page debe ser >= 1")
    if not (1 <= limit <= settings.MAX_PAGE_LIMIT):
        raise ValueError(f"limit debe estar entre 1 y {settings.MAX_PAGE_LIMIT}")

    total = db.execute(
        filters.apply(select(func.count()).select_from(models.Appointment))
    ).scalar_one()

    skip = (page - 1) * limit
    items: list[models.Appointment] = []
    if skip < total:
        stmt = filters.apply(select(models.Appointment)).order_by(*_order_by(sort)).offset(skip).limit(limit)
        items = list(db.execute(stmt).scalars().all())

    logger.info("Listadas %s citas (página %s, total %s)", len(items), page, total)
    return items, Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


def upcoming_appointments(
    db: Session,
    limit: Optional[int] = None,
    today: Optional[date] = None,
) -> list[models.Appointment]:
    """Próximas citas programadas (hoy en adelante), en orden de agenda."""
    today = today or today_local()
    limit = limit or settings.UPCOMING_LIMIT
    A = models.Appointment
    stmt = (
        select(A)
        .where(A.status == models.AppointmentStatus.scheduled, A.appointment_date >= today)
        .order_by(*_order_by(SortOrder.asc))
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())
