# src/pkengine/timefmt.py
import math


def parse_time_string(time: str) -> tuple[int, int]:
    """Split "HH:MM" into (hours, minutes); missing or blank parts count as 0."""
    parts = time.split(":")
    try:
        hours = int(parts[0]) if parts[0] else 0
    except ValueError:
        hours = 0
    try:
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        minutes = 0
    return hours, minutes


def hours_to_clock_time(hours_offset: float, reference_time: str) -> str:
    """
    Clock time reached hours_offset after reference_time, wrapped to 24 h.
    Example: hours_to_clock_time(26.5, "09:00") -> "11:30"
    """
    ref_h, ref_m = parse_time_string(reference_time)
    total_minutes = ref_h * 60 + ref_m + hours_offset * 60
    wrapped = math.floor(total_minutes % (24 * 60))
    return f"{wrapped // 60:02d}:{wrapped % 60:02d}"


def get_day_number(hours_offset: float) -> int:
    """1 for the first day, 2 for the second, ..."""
    return math.floor(hours_offset / 24) + 1


def format_time_with_day(hours_offset: float, reference_time: str) -> str:
    """ "09:00" on day 1, "09:00 (Day 2)" afterwards."""
    clock = hours_to_clock_time(hours_offset, reference_time)
    day = get_day_number(hours_offset)
    return f"{clock} (Day {day})" if day > 1 else clock


def calculate_clock_tick_step(start_h: float, end_h: float) -> int:
    """Axis tick spacing (h) that keeps clock labels readable."""
    span = end_h - start_h
    if span <= 12:
        return 1
    if span <= 24:
        return 2
    if span <= 72:
        return 4
    if span <= 168:
        return 6
    return 12


def clock_ticks(start_h: float, end_h: float, reference_time: str = "00:00") -> list[tuple[float, str]]:
    """
    (position, label) pairs for a clock-time x axis over [start_h, end_h].
    Ticks sit on multiples of calculate_clock_tick_step; labels carry the
    day once past the first day.
    """
    step = calculate_clock_tick_step(start_h, end_h)
    first = math.ceil(start_h / step) * step
    ticks = []
    h = first
    while h <= end_h + 1e-9:
        ticks.append((float(h), format_time_with_day(h, reference_time)))
        h += step
    return ticks
