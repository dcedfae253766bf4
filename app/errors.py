"""
Errores de dominio y su traducción a respuestas HTTP.

Cada error lleva su ``status_code`` y un mensaje legible; ``ValidationError``
además lleva la lista completa de campos inválidos.
"""
from __future__ import annotations
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from .schemas import ErrorResponse, FieldError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validación fallida"

    def __init__(self, errors: list[FieldError], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Cita no encontrada"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Este horario ya está reservado para el doctor seleccionado"


class StoreUnavailableError(AppError):
    # 500 en operaciones de datos; /health responde 503 por su cuenta
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "La base de datos no está disponible"


def _payload(message: str, errors: Optional[list[FieldError]] = None) -> dict:
    return ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True)


def _loc_to_field(loc: tuple) -> str:
    # ("query", "limit") → "limit";  ("path", "appointment_id") → "id"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    field = ".".join(parts) or "body"
    return "id" if field == "appointment_id" else field


async def app_error_handler(request: Request, exc: AppError):
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return JSONResponse(status_code=exc.status_code, content=_payload(exc.message, errors))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [FieldError(field=_loc_to_field(tuple(e.get("loc", ()))), message=e.get("msg", "Valor inválido"))
              for e in exc.errors()]
    logger.info("Request inválido %s %s: %s", request.method, request.url.path, [e.field for e in errors])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_payload(ValidationError.message, errors))


async def operational_error_handler(request: Request, exc: OperationalError):
    logger.exception("Base de datos no disponible en %s %s", request.method, request.url.path)
    return JSONResponse(status_code=StoreUnavailableError.status_code, content=_payload(StoreUnavailableError.message))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Error no controlado en %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_payload(AppError.message))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
