# app/database.py
from __future__ import annotations
import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Conexión explícita a la base de datos. Se construye con una URL, se abre
    en el arranque de la app (``open``) y se cierra al apagarla (``close``).
    Nada de engines a nivel de módulo: quien la necesite la recibe inyectada.
    """

    def __init__(self, url: Optional[str] = None):
        url = url if url is not None else settings.DATABASE_URL
        if not url:
            raise RuntimeError("DATABASE_URL no está configurada (revisa tu .env).")
        self.url = url
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Database":
        if self.engine is not None:
            return self

        # Configura el engine según el tipo de base
        if self.url.startswith("sqlite"):
            kwargs = {
                "connect_args": {"check_same_thread": False},  # requerido por SQLite en hilos
                "pool_pre_ping": True,
            }
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite+pysqlite://"):
                # Una sola conexión compartida; si no, cada sesión vería una BD vacía
                kwargs["poolclass"] = StaticPool
            self.engine = create_engine(self.url, **kwargs)
        else:
            # Postgres u otros (producción)
            self.engine = create_engine(
                self.url,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )

        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )
        logger.info("Base de datos abierta: %s", self.engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Base de datos cerrada")

    def create_all(self) -> None:
        """
        Crea las tablas (e índices) si no existen. Importa modelos antes para
        que SQLAlchemy conozca todos los metadatos.
        """
        from . import models  # noqa: F401
        self._require_open()
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        self._require_open()
        return self._session_factory()

    def sessions(self) -> Iterator[Session]:
        """Generador de una sesión por request (para dependencias de FastAPI)."""
        db = self.session()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        """True si la base responde a ``SELECT 1``."""
        if self.engine is None:
            return False
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Health check de base de datos falló: %s", e)
            return False

    def _require_open(self) -> None:
        if self.engine is None:
            raise RuntimeError("La base de datos no está abierta; llama a open() primero.")
