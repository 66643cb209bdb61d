# src/pkengine/dosing.py
from __future__ import annotations

import math
from typing import Sequence

from .types import DoseEvent, DosingRegimen
from .helpers import effective_end_hours


def time_string_to_hours(time: str) -> float:
    """
    Convert an "HH:MM" time of day to fractional hours after midnight.
    Example: "09:30" -> 9.5
    """
    parts = time.split(":")
    hours = float(parts[0]) if parts and parts[0] else 0.0
    minutes = float(parts[1]) if len(parts) > 1 and parts[1] else 0.0
    return hours + minutes / 60.0


def days_to_cover(end_h: float) -> int:
    """Calendar days needed to reach end_h, plus one day of margin."""
    return math.ceil(end_h / 24.0) + 1


def expand_dose_times(times: Sequence[str], num_days: int) -> list[float]:
    """
    Repeat a daily schedule across day indices 0..num_days-1.

    times    : "HH:MM" strings, already in chronological order
    num_days : how many calendar days to expand across

    Returns absolute dose times in hours from simulation start, e.g.
    ["09:00", "21:00"] over 2 days -> [9.0, 21.0, 33.0, 45.0].
    """
    offsets = [time_string_to_hours(t) for t in times]
    return [day * 24.0 + h for day in range(num_days) for h in offsets]


def get_last_dose_time(times: Sequence[str], num_days: int) -> float:
    """Time (h) of the last scheduled dose, or 0 when nothing is scheduled."""
    if num_days <= 0:
        return 0.0
    dose_times = expand_dose_times(times, num_days)
    return max(dose_times) if dose_times else 0.0


def dose_events(regimen: DosingRegimen, start_h: float, end_h: float) -> list[DoseEvent]:
    """
    Dose events administered inside [start_h, end), where end is the
    regimen's own duration override when present.
    """
    dosing_end = effective_end_hours(regimen, start_h, end_h)
    all_times = expand_dose_times(regimen.times, days_to_cover(dosing_end))
    return [DoseEvent(t) for t in all_times if start_h <= t < dosing_end]
