# app/services/clock.py
from __future__ import annotations
from datetime import date, datetime
from typing import Optional

import pytz

from ..config import settings


# ====== Utilidades de tiempo ======
def local_tz(name: Optional[str] = None):
    return pytz.timezone(name or settings.TIMEZONE)


def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(local_tz(tz_name))


def today_local(tz_name: Optional[str] = None) -> date:
    """El "hoy" de la clínica, no el del servidor (que suele estar en UTC)."""
    return now_local(tz_name).date()
