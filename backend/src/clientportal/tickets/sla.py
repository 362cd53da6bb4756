"""Ticket response-time SLA.

Every ticket gets a response deadline derived from its priority. The window
per priority comes from settings (SLA_<PRIORITY>_HOURS); priorities without
a configured window fall back to the low-priority window.
"""

from datetime import datetime, timedelta
from typing import Optional

from ..config import get_settings
from ..models.base import utcnow


def sla_hours_for(priority: str) -> int:
    hours = get_settings().sla_hours
    return hours.get(str(priority).lower(), hours["low"])


def calculate_sla_due_at(priority: str, now: Optional[datetime] = None) -> datetime:
    """Return the SLA deadline for a ticket of ``priority`` opened at ``now``.

    A critical ticket opened at 08:00 UTC is due at 12:00 UTC the same day.
    """
    if now is None:
        now = utcnow()
    return now + timedelta(hours=sla_hours_for(priority))
