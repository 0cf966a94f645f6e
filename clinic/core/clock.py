from datetime import date, datetime, time
from zoneinfo import ZoneInfo
from clinic.core.config import settings

def clinic_tz() -> ZoneInfo:
    return ZoneInfo(settings.CLINIC_TIMEZONE)

def local_now() -> datetime:
    """Naive wall-clock time in the clinic's timezone."""
    return datetime.now(clinic_tz()).replace(tzinfo=None)

def local_today() -> date:
    return local_now().date()

def date_label(d: date) -> str:
    """``Monday, January 05, 2026``"""
    return d.strftime("%A, %B %d, %Y")

def time_label(t: time) -> str:
    """``9:30 AM``"""
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d} {'AM' if t.hour < 12 else 'PM'}"
