"""
Appointment slot derivation.

Slots are fixed 30-minute start times generated from a doctor's weekly
availability window. A booked appointment blocks only the slot equal to its
own start time, whatever its duration.
"""

from datetime import date
from typing import Iterable, List, Mapping, Optional, Any

from clinic.domain.doctors.models import WEEKDAYS

SLOT_DURATION_MINUTES = 30


def parse_time(value: str) -> int:
    """Minutes since midnight for an "HH:MM" string"""
    hours, minutes = value.strip().split(":")[:2]
    hours, minutes = int(hours), int(minutes)
    # "24:00" is the only valid time past 23:59, used as an end of day
    if not (0 <= hours < 24 and 0 <= minutes < 60) and (hours, minutes) != (24, 0):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_name(target_date: date) -> str:
    return WEEKDAYS[target_date.weekday()]


def generate_slots(
    start: str,
    end: str,
    booked: Iterable[str] = (),
    stride_minutes: int = SLOT_DURATION_MINUTES,
) -> List[str]:
    """Every start time from ``start`` up to, not including, ``end``, minus ``booked``.

    An empty or inverted window yields no slots.
    """
    if stride_minutes <= 0:
        raise ValueError("stride_minutes must be positive")

    taken = set(booked)
    current = parse_time(start)
    stop = parse_time(end)

    slots = []
    while current < stop:
        label = format_time(current)
        if label not in taken:
            slots.append(label)
        current += stride_minutes
    return slots


def day_window(availability: Optional[Mapping[str, Any]], target_date: date) -> Optional[Mapping[str, Any]]:
    """The availability entry for the weekday of ``target_date``, if the doctor works that day"""
    if not availability:
        return None
    window = availability.get(weekday_name(target_date))
    if not window or not window.get("available"):
        return None
    if not window.get("start") or not window.get("end"):
        return None
    return window


def available_slots(
    availability: Optional[Mapping[str, Any]],
    target_date: date,
    booked: Iterable[str] = (),
) -> List[str]:
    """Bookable start times for ``target_date`` given the weekly availability"""
    window = day_window(availability, target_date)
    if window is None:
        return []
    return generate_slots(window["start"], window["end"], booked)
