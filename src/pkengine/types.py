# src/pkengine/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, NamedTuple, Optional

import numpy as np

# We keep *all* time in HOURS internally. (Easy math, avoids unit drift.)
FrequencyLabel = Literal["once", "qd", "bid", "tid", "qid", "q6h", "q8h", "q12h", "custom"]
DurationUnit = Literal["days", "hours"]


@dataclass(frozen=True)
class MetaboliteProfile:
    """
    Complete metabolite data for a regimen. Only exists when both the
    half-life and the conversion fraction are known.

    half_life           : metabolite elimination half-life (h)
    conversion_fraction : fraction of eliminated parent converted to metabolite (fm)
    name                : display name, optional
    """
    half_life: float
    conversion_fraction: float
    name: Optional[str] = None


@dataclass(frozen=True)
class DosingRegimen:
    """
    A drug plus its daily dosing schedule and PK parameters.

    name        : display name (e.g., "Ibuprofen")
    dose        : amount per administration, arbitrary units
    times       : time-of-day administration strings ("HH:MM"), chronological
    half_life   : elimination half-life (h)
    uptake      : absorption uptake time (h)
    peak        : Tmax hint (h); informational, never used by the engine
    frequency   : frequency label; constrains len(times) during validation
    duration    : optional override of the simulated length, in duration_unit
    """
    name: str
    dose: float
    times: tuple[str, ...]
    half_life: float
    uptake: float
    peak: float = 0.0
    frequency: FrequencyLabel = "custom"
    metabolite_half_life: Optional[float] = None
    metabolite_conversion_fraction: Optional[float] = None
    metabolite_name: Optional[str] = None
    duration: Optional[float] = None
    duration_unit: Optional[DurationUnit] = None
    id: Optional[str] = None

    @property
    def metabolite(self) -> Optional[MetaboliteProfile]:
        """Metabolite data, or None unless both metabolite fields are set."""
        if self.metabolite_half_life is None or self.metabolite_conversion_fraction is None:
            return None
        return MetaboliteProfile(
            half_life=float(self.metabolite_half_life),
            conversion_fraction=float(self.metabolite_conversion_fraction),
            name=self.metabolite_name,
        )


class DoseEvent(NamedTuple):
    """One administration instant, in hours from simulation start."""
    time_h: float


class TimeSeriesPoint(NamedTuple):
    time: float
    concentration: float


@dataclass(frozen=True, eq=False)
class ConcentrationCurve:
    """
    Fixed-interval concentration series.

    t             : array of time points (hours)
    concentration : array of unitless concentrations, same length as t
    """
    t: np.ndarray = field(default_factory=lambda: np.empty(0))
    concentration: np.ndarray = field(default_factory=lambda: np.empty(0))

    @classmethod
    def empty(cls) -> ConcentrationCurve:
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.t.size == 0

    def max(self) -> float:
        return float(np.max(self.concentration)) if self.concentration.size else 0.0

    def points(self) -> list[TimeSeriesPoint]:
        return list(self)

    def __iter__(self) -> Iterator[TimeSeriesPoint]:
        for t, c in zip(self.t.tolist(), self.concentration.tolist()):
            yield TimeSeriesPoint(t, c)

    def __len__(self) -> int:
        return int(self.t.size)


@dataclass(frozen=True)
class Dataset:
    """A labelled curve handed to the rendering side. Colors are assigned there."""
    label: str
    curve: ConcentrationCurve
    color: Optional[str] = None
    is_metabolite: bool = False
