"""Slot date/time value parsing.

Slots travel as strings: dates as ``D_M_YYYY`` (e.g. ``12_6_2025``) and times
as 12-hour clock strings (e.g. ``10:00 AM``). They are parsed into
``datetime.date`` / ``datetime.time`` at the boundary and stored in a
canonical string form so equal slots always compare equal.
"""
from datetime import date, time
from typing import Tuple


def parse_slot_date(value: str) -> date:
    """Parse a ``D_M_YYYY`` key into a date."""
    parts = value.strip().split("_")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid slot date '{value}', expected D_M_YYYY")

    day, month, year = (int(part) for part in parts)
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Invalid slot date '{value}'")


def parse_slot_time(value: str) -> time:
    """Parse a 12-hour clock string such as ``09:30 PM`` into a time.

    "PM" with hour < 12 adds 12 hours; "AM" with hour == 12 maps to 0.
    """
    pieces = value.strip().split()
    if len(pieces) != 2 or pieces[1].upper() not in ("AM", "PM"):
        raise ValueError(f"Invalid slot time '{value}', expected HH:MM AM|PM")

    clock, meridiem = pieces[0], pieces[1].upper()
    hour_text, _, minute_text = clock.partition(":")
    if not hour_text.isdigit() or not minute_text.isdigit() or len(minute_text) != 2:
        raise ValueError(f"Invalid slot time '{value}', expected HH:MM AM|PM")

    hours, minutes = int(hour_text), int(minute_text)
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise ValueError(f"Invalid slot time '{value}'")

    if meridiem == "PM" and hours < 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0
    return time(hours, minutes)


def format_slot_date(value: date) -> str:
    return f"{value.day}_{value.month}_{value.year}"


def format_slot_time(value: time) -> str:
    return value.strftime("%I:%M %p")


def normalize_slot_date(value: str) -> str:
    return format_slot_date(parse_slot_date(value))


def normalize_slot_time(value: str) -> str:
    return format_slot_time(parse_slot_time(value))


def slot_sort_key(slot_date: str, slot_time: str) -> Tuple[date, time]:
    return parse_slot_date(slot_date), parse_slot_time(slot_time)
