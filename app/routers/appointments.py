from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import StoreUnavailableError, ValidationError
from ..schemas import (
    AppointmentListResponse,
    AppointmentOut,
    AppointmentResponse,
    FieldError,
    MessageResponse,
    StatsResponse,
    StatusUpdate,
    UpcomingResponse,
)
from ..services import appointments as service
from ..services.appointments import MAX_APPOINTMENT_ID
from ..services.listing import AppointmentFilters, SortOrder, list_appointments, upcoming_appointments
from ..services.stats import compute_overview
from ..services.validation import parse_date, parse_status

# Ids fuera del rango de un BIGINT no pueden existir en la base
AppointmentId = Annotated[int, Path(ge=1, le=MAX_APPOINTMENT_ID)]

router = APIRouter(prefix=f"{settings.API_PREFIX}/appointments", tags=["appointments"])


def get_db(request: Request):
    db = request.app.state.db
    if not db.is_open:
        raise StoreUnavailableError()
    yield from db.sessions()


def _out(appt) -> AppointmentOut:
    return AppointmentOut.model_validate(appt)


def _filters(
    status_: Optional[str],
    department: Optional[str],
    doctor: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
) -> AppointmentFilters:
    errors: list[FieldError] = []
    filters = AppointmentFilters(
        department=(department or "").strip() or None,
        doctor=(doctor or "").strip() or None,
    )
    if status_:
        filters.status = parse_status(status_)
        if filters.status is None:
            errors.append(FieldError(field="status", message="Estado inválido"))
    if start_date:
        filters.start_date = parse_date(start_date)
        if filters.start_date is None:
            errors.append(FieldError(field="startDate", message="Formato de fecha inválido. Usa YYYY-MM-DD."))
    if end_date:
        filters.end_date = parse_date(end_date)
        if filters.end_date is None:
            errors.append(FieldError(field="endDate", message="Formato de fecha inválido. Usa YYYY-MM-DD."))
    if errors:
        raise ValidationError(errors)
    return filters


@router.get("", response_model=AppointmentListResponse)
def get_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    status_: Optional[str] = Query(None, alias="status"),
    department: Optional[str] = None,
    doctor: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    sort: SortOrder = SortOrder.asc,
    db: Session = Depends(get_db),
):
    filters = _filters(status_, department, doctor, start_date, end_date)
    items, pagination = list_appointments(db, filters, page=page, limit=limit, sort=sort)
    return AppointmentListResponse(data=[_out(a) for a in items], pagination=pagination)


@router.get("/upcoming", response_model=UpcomingResponse)
def get_upcoming(
    limit: int = Query(settings.UPCOMING_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
):
    return UpcomingResponse(data=[_out(a) for a in upcoming_appointments(db, limit=limit)])


@router.get("/stats/overview", response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    return StatsResponse(data=compute_overview(db))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(appointment_id: AppointmentId, db: Session = Depends(get_db)):
    return AppointmentResponse(data=_out(service.get_appointment(db, appointment_id)))


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(payload: Any = Body(...), db: Session = Depends(get_db)):
    appt = service.create_appointment(db, payload)
    return AppointmentResponse(data=_out(appt), message="Cita creada correctamente")


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(appointment_id: AppointmentId, payload: Any = Body(...), db: Session = Depends(get_db)):
    appt = service.update_appointment(db, appointment_id, payload)
    return AppointmentResponse(data=_out(appt), message="Cita actualizada correctamente")


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def patch_status(appointment_id: AppointmentId, req: StatusUpdate, db: Session = Depends(get_db)):
    appt = service.update_status(db, appointment_id, req.status)
    return AppointmentResponse(data=_out(appt), message="Estado de la cita actualizado")


@router.delete("/{appointment_id}", response_model=MessageResponse)
def delete_appointment(appointment_id: AppointmentId, db: Session = Depends(get_db)):
    service.delete_appointment(db, appointment_id)
    return MessageResponse(message="Cita eliminada correctamente")
