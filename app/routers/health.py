# app/routers/health.py
from __future__ import annotations
import os
import platform
import resource
import sys
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..config import settings

router = APIRouter(prefix="/health", tags=["health"])

_STARTED = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _STARTED, 3)


def _memory() -> dict:
    # ru_maxrss viene en KB en Linux y en bytes en macOS
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    rss_mb = rss / (1024 * 1024) if sys.platform == "darwin" else rss / 1024
    return {"maxRss": f"{round(rss_mb)} MB"}


def _base(db_ok: bool) -> dict:
    return {
        "status": "OK" if db_ok else "WARNING",
        "database": "connected" if db_ok else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(),
        "environment": settings.ENV,
        "version": settings.APP_VERSION,
        "memory": _memory(),
    }


@router.get("")
def health(request: Request):
    db = getattr(request.app.state, "db", None)
    db_ok = bool(db and db.ping())
    code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=_base(db_ok))


@router.get("/detailed")
def health_detailed(request: Request):
    db = getattr(request.app.state, "db", None)
    db_ok = bool(db and db.ping())
    body = _base(db_ok)
    body["system"] = {
        "platform": sys.platform,
        "arch": platform.machine(),
        "pythonVersion": platform.python_version(),
        "pid": os.getpid(),
    }
    engine = db.engine if db is not None else None
    body["databaseInfo"] = {
        "dialect": engine.dialect.name if engine is not None else "unknown",
        "name": (engine.url.database if engine is not None else None) or "unknown",
    }
    code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)
