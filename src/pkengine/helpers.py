from typing import Optional, Sequence

from .types import DosingRegimen


def duration_hours(regimen: DosingRegimen) -> Optional[float]:
    """
    Duration override in hours, or None unless both duration and unit are set.
    """
    if regimen.duration is None or regimen.duration_unit is None:
        return None
    if regimen.duration_unit == "days":
        return float(regimen.duration) * 24.0
    return float(regimen.duration)


def effective_end_hours(regimen: DosingRegimen, start_h: float, end_h: float) -> float:
    """start_h + duration when the regimen overrides its length, else end_h."""
    override = duration_hours(regimen)
    return end_h if override is None else start_h + override


def graph_end_hours(regimens: Sequence[DosingRegimen], start_h: float, end_h: float) -> float:
    """
    Stretch a shared graph window so the longest duration override fits.
    """
    end = end_h
    for rx in regimens:
        override = duration_hours(rx)
        if override is not None:
            end = max(end, start_h + override)
    return end
