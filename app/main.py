# app/main.py
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import Database
from .errors import register_error_handlers

# Routers
from .routers.appointments import router as appointments_router
from .routers.health import router as health_router

# ──────────────────────────────────────────────────────────────────────────────
# LOGGING
# Controla niveles con variables de entorno:
#   LOG_LEVEL, SQLA_LOG_LEVEL, UVICORN_LOG_LEVEL
# ──────────────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Ruido de SQLAlchemy y Uvicorn
logging.getLogger("sqlalchemy.engine").setLevel(
    getattr(logging, settings.SQLA_LOG_LEVEL, logging.WARNING)
)
logging.getLogger("uvicorn.error").setLevel(
    getattr(logging, settings.UVICORN_LOG_LEVEL, logging.INFO)
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────────────────────────────────────
def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Construye la app con su base de datos. En pruebas se inyecta una
    ``Database`` propia (p. ej. SQLite en memoria).
    """
    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    app.state.db = database or Database(settings.DATABASE_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)

    # Monta rutas
    app.include_router(health_router)
    app.include_router(appointments_router)

    # ──────────────────────────────────────────────────────────────────────
    # Ciclo de vida
    # ──────────────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        app.state.db.open().create_all()
        logger.info("Startup completo: %s (%s)", settings.APP_NAME, settings.ENV)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.db.close()

    @app.get("/")
    def root():
        return {
            "ok": True,
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "env": settings.ENV,
        }

    return app


app = create_app()
