# src/pkengine/metrics.py
"""
Per-dose PK milestones for a summary table: administration, end of
absorption, peak, half-life decay steps and the next dose.

Relative concentrations here are single-dose rules of thumb (peak = 1.0,
halving every half-life), not values read off the accumulated curve.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from .types import DosingRegimen
from .dosing import dose_events
from .timefmt import format_time_with_day

PkEventType = Literal["dose", "absorption_end", "peak", "half_life", "next_dose"]

MAX_HALF_LIVES = 10
MIN_PERCENT_OF_PEAK = 5.0
SAME_TIME_TOLERANCE_H = 0.001


@dataclass(frozen=True)
class PkMilestoneEvent:
    """
    event_type              : kind of milestone
    clock_time              : "HH:MM", with " (Day N)" after the first day
    elapsed_time            : "T+Xh" relative to the simulation start
    elapsed_hours           : absolute hours, used for ordering
    relative_concentration  : 0-1, None for administration events
    """
    event_type: PkEventType
    clock_time: str
    elapsed_time: str
    elapsed_hours: float
    description: str
    relative_concentration: Optional[float]
    regimen_name: str


@dataclass(frozen=True)
class PkSummaryData:
    regimen_id: Optional[str]
    regimen_name: str
    events: list[PkMilestoneEvent]


def format_elapsed_time(hours: float) -> str:
    """0 -> "T+0h", 6 -> "T+6h", 1.5 -> "T+1.5h"."""
    if hours == 0:
        return "T+0h"
    if float(hours).is_integer():
        return f"T+{int(hours)}h"
    return f"T+{hours:.1f}h"


def _event(rx: DosingRegimen, kind: PkEventType, at_h: float, start_h: float,
           description: str, rel: Optional[float]) -> PkMilestoneEvent:
    return PkMilestoneEvent(
        event_type=kind,
        clock_time=format_time_with_day(at_h, "00:00"),
        elapsed_time=format_elapsed_time(at_h - start_h),
        elapsed_hours=at_h,
        description=description,
        relative_concentration=rel,
        regimen_name=rx.name,
    )


def _dedupe_dose_overlaps(events: list[PkMilestoneEvent]) -> list[PkMilestoneEvent]:
    """A dose event wins over a next_dose event at the same instant."""
    kept: list[PkMilestoneEvent] = []
    for ev in events:
        same_time = [i for i, e in enumerate(kept)
                     if abs(e.elapsed_hours - ev.elapsed_hours) < SAME_TIME_TOLERANCE_H]
        if ev.event_type == "dose":
            idx = next((i for i in same_time if kept[i].event_type == "next_dose"), None)
            if idx is not None:
                kept[idx] = ev
                continue
        elif ev.event_type == "next_dose":
            if any(kept[i].event_type == "dose" for i in same_time):
                continue
        kept.append(ev)
    return kept


def calculate_milestones(rx: DosingRegimen, start_h: float, end_h: float) -> list[PkMilestoneEvent]:
    """
    Milestone timeline for one regimen over [start_h, end_h].

    Doses are taken from the dosing window (the duration override limits it
    when set); follow-up events are only listed while they fall before
    end_h and before the next dose.
    """
    dose_times = [ev.time_h for ev in dose_events(rx, start_h, end_h)]
    events: list[PkMilestoneEvent] = []

    for i, dose_t in enumerate(dose_times):
        next_t = dose_times[i + 1] if i + 1 < len(dose_times) else None

        events.append(_event(rx, "dose", dose_t, start_h,
                             f"Dose {rx.dose:g}mg administered - absorption begins", None))

        absorbed_t = dose_t + rx.uptake
        if absorbed_t <= end_h and (next_t is None or absorbed_t < next_t):
            events.append(_event(rx, "absorption_end", absorbed_t, start_h,
                                 f"Absorption phase complete ({rx.uptake:g}h)", None))

        peak_t = dose_t + rx.peak
        if peak_t <= end_h and (next_t is None or peak_t < next_t):
            events.append(_event(rx, "peak", peak_t, start_h,
                                 f"Peak concentration (Cmax) - Tmax {rx.peak:g}h", 1.0))

        for n in range(1, MAX_HALF_LIVES + 1):
            decay_t = peak_t + n * rx.half_life
            remaining = 0.5 ** n
            percent = remaining * 100
            if percent < MIN_PERCENT_OF_PEAK or decay_t > end_h:
                break
            if next_t is not None and decay_t >= next_t:
                break
            plural = "s" if n > 1 else ""
            events.append(_event(rx, "half_life", decay_t, start_h,
                                 f"{n} half-life{plural} elapsed - ~{percent:g}% of peak", remaining))

        if next_t is not None and next_t <= end_h:
            since_peak = next_t - peak_t
            remaining = 0.5 ** (since_peak / rx.half_life) if since_peak > 0 else 1.0
            events.append(_event(rx, "next_dose", next_t, start_h,
                                 f"Next dose due - ~{remaining * 100:.1f}% of previous peak remaining",
                                 remaining))

    events.sort(key=lambda e: e.elapsed_hours)
    return _dedupe_dose_overlaps(events)


def generate_summary_data(regimens: Sequence[DosingRegimen], start_h: float,
                          end_h: float) -> list[PkSummaryData]:
    return [
        PkSummaryData(regimen_id=rx.id, regimen_name=rx.name,
                      events=calculate_milestones(rx, start_h, end_h))
        for rx in regimens
    ]


def milestone_row(event: PkMilestoneEvent) -> tuple[str, str, str, str]:
    """Table cells: clock time, elapsed time, description, "% of peak" ("" for doses)."""
    rel = event.relative_concentration
    percent = "" if rel is None else f"{rel * 100:.4g}%"
    return event.clock_time, event.elapsed_time, event.description, percent
