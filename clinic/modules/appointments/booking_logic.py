from datetime import date, datetime, time, timedelta
from typing import Iterable

def start_of(day: date, at: time) -> datetime:
    return datetime.combine(day, at)

def interval(day: date, at: time, minutes: int) -> tuple[datetime, datetime]:
    start = start_of(day, at)
    return start, start + timedelta(minutes=minutes)

def overlaps(a: tuple[datetime, datetime], b: tuple[datetime, datetime]) -> bool:
    # half-open: back-to-back slots do not overlap
    return a[0] < b[1] and b[0] < a[1]

def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))

def available_slots(
    day: date,
    duration: int,
    busy: Iterable[tuple[time, int]],
    *,
    opens: time,
    closes: time,
    step_minutes: int,
    break_minutes: int,
    not_before: datetime | None = None,
) -> list[str]:
    """Slot starts (``HH:MM:SS``) where ``duration`` fits before closing.

    Each busy ``(start, minutes)`` block is padded by ``break_minutes`` on
    both sides.
    """
    pad = timedelta(minutes=break_minutes)
    blocked = []
    for at, minutes in busy:
        s, e = interval(day, at, minutes)
        blocked.append((s - pad, e + pad))

    closing = start_of(day, closes)
    cursor = start_of(day, opens)
    step = timedelta(minutes=step_minutes)
    out: list[str] = []
    while cursor < closing:
        slot = (cursor, cursor + timedelta(minutes=duration))
        if slot[1] <= closing and (not_before is None or cursor >= not_before):
            if not any(overlaps(slot, b) for b in blocked):
                out.append(cursor.strftime("%H:%M:%S"))
        cursor += step
    return out
