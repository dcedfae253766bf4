# app/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ===== App =====
    APP_NAME: str = "clinica_citas"
    APP_VERSION: str = "1.0.0"
    ENV: str = "dev"
    # TZ local de la clínica: define qué es "hoy"
    TIMEZONE: str = "America/Mexico_City"

    # ===== DB =====
    # En producción define DATABASE_URL con tu Postgres. Local puede caer a SQLite.
    DATABASE_URL: str = "sqlite:///./clinica.db"

    # Opciones de pool (sólo aplican a motores distintos de SQLite)
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 min

    # ===== API =====
    API_PREFIX: str = "/api"
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100
    UPCOMING_LIMIT: int = 10

    # ===== CORS =====
    # Frontend(s) autorizados; varios orígenes separados por coma
    FRONTEND_URL: str = "http://localhost:3000"

    # ===== Logging =====
    LOG_LEVEL: str = "INFO"
    SQLA_LOG_LEVEL: str = "WARNING"
    UVICORN_LOG_LEVEL: str = "INFO"

    def model_post_init(self, __context) -> None:
        """
        Normaliza valores que suelen venir "sucios" desde el entorno:
          - API_PREFIX sin "/" final (y con "/" inicial si no es vacío)
          - Niveles de log en mayúsculas
          - postgres:// → postgresql:// (URLs estilo Heroku/Render)
        """
        prefix = (self.API_PREFIX or "").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        self.API_PREFIX = prefix

        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        self.SQLA_LOG_LEVEL = self.SQLA_LOG_LEVEL.upper()
        self.UVICORN_LOG_LEVEL = self.UVICORN_LOG_LEVEL.upper()

        if self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = "postgresql://" + self.DATABASE_URL[len("postgres://"):]

        if self.DEFAULT_PAGE_LIMIT > self.MAX_PAGE_LIMIT:
            self.DEFAULT_PAGE_LIMIT = self.MAX_PAGE_LIMIT

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip().rstrip("/") for o in self.FRONTEND_URL.split(",") if o.strip()]


settings = Settings()
