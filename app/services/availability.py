"""Doctor availability recomputation.

A doctor is available while its slot ledger still holds at least one
booking that has not yet started: any slot on a future date, or a slot later
today than the current wall-clock minute.
"""
from datetime import datetime
from typing import Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.slots import parse_slot_date, parse_slot_time


def local_now() -> datetime:
    """Current wall-clock time, naive, in the configured zone."""
    if settings.TIMEZONE:
        return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)
    return datetime.now()


def has_future_slots(
    ledger: Mapping[str, Sequence[str]],
    now: Optional[datetime] = None,
) -> bool:
    """Return True if the ledger holds any slot after ``now``.

    Only hour and minute are compared for today's slots. Dates before today
    never count. Stops at the first qualifying date.
    """
    now = now or local_now()
    today = now.date()

    for date_key, times in ledger.items():
        if not times:
            continue

        slot_day = parse_slot_date(date_key)
        if slot_day < today:
            continue
        if slot_day > today:
            return True

        for time_str in times:
            slot_time = parse_slot_time(time_str)
            if (slot_time.hour, slot_time.minute) > (now.hour, now.minute):
                return True

    return False
