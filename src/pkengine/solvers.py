# src/pkengine/solvers.py
import logging
import math

import numpy as np

from .types import ConcentrationCurve, DosingRegimen
from .dosing import days_to_cover, expand_dose_times
from .helpers import effective_end_hours
from .models.one_compartment import calculate_concentration
from .models.metabolite import calculate_metabolite_concentration

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 15


def _sample_grid(start_h: float, end_h: float, interval_minutes: float) -> np.ndarray:
    """
    Fixed-step time grid from start_h to end_h inclusive.
    Length is floor((end - start) * 60 / interval) + 1, never below 1.
    """
    # Small epsilon so 48 h / 15 min lands on 192 steps rather than 191.999...
    steps = math.floor((end_h - start_h) * 60.0 / interval_minutes + 1e-9)
    n = max(steps, 0) + 1
    return start_h + np.arange(n, dtype=float) * (interval_minutes / 60.0)


def _accumulate(regimen: DosingRegimen, start_h: float, end_h: float,
                interval_minutes: float, single_dose) -> ConcentrationCurve:
    """
    Sum single-dose contributions from every prior dose at each sample,
    then normalize the whole curve once so its peak is 1.0.

    single_dose : callable(elapsed_h array) -> raw contributions, 0 where elapsed <= 0
    """
    eff_end = effective_end_hours(regimen, start_h, end_h)

    # Dose events and the sample grid are built once; memory stays O(samples)
    dose_times = np.asarray(expand_dose_times(regimen.times, days_to_cover(eff_end)), dtype=float)
    t = _sample_grid(start_h, eff_end, interval_minutes)

    raw = np.zeros_like(t)
    for d in dose_times[dose_times < t[-1]]:
        raw += single_dose(t - d)
    raw = np.maximum(raw, 0.0)

    peak = float(raw.max()) if raw.size else 0.0
    C = raw / peak if peak > 0 else np.zeros_like(raw)

    logger.debug("Accumulated %s: %d samples, %d dose events, raw peak %.6g",
                 regimen.name, t.size, dose_times.size, peak)
    return ConcentrationCurve(t=t, concentration=C)


def accumulate_doses(regimen: DosingRegimen, start_h: float, end_h: float,
                     interval_minutes: float = DEFAULT_INTERVAL_MINUTES) -> ConcentrationCurve:
    """
    Parent concentration over [start_h, end_h] for a repeated daily schedule.

    The regimen's duration override, when set, replaces end_h with
    start_h + duration. Concentrations are normalized over the whole curve
    so the global maximum is 1.0 (all zeros when no dose has taken effect).

    Parameters
    ----------
    regimen : DosingRegimen
        Dose, times of day, half-life and uptake.
    start_h, end_h : float
        Simulation window in hours from midnight of day 0.
    interval_minutes : float, default 15
        Sampling resolution.

    Returns
    -------
    ConcentrationCurve
        Times in hours and normalized concentrations in [0, 1].
    """
    def single_dose(elapsed):
        return calculate_concentration(elapsed, regimen.dose, regimen.half_life, regimen.uptake)

    return _accumulate(regimen, start_h, end_h, interval_minutes, single_dose)


def accumulate_metabolite_doses(regimen: DosingRegimen, start_h: float, end_h: float,
                                interval_minutes: float = DEFAULT_INTERVAL_MINUTES) -> ConcentrationCurve:
    """
    Metabolite counterpart of accumulate_doses.

    Returns an empty curve unless the regimen carries both the metabolite
    half-life and the conversion fraction.
    """
    metabolite = regimen.metabolite
    if metabolite is None:
        return ConcentrationCurve.empty()

    def single_dose(elapsed):
        return calculate_metabolite_concentration(
            elapsed, regimen.dose, regimen.half_life,
            metabolite.half_life, metabolite.conversion_fraction,
        )

    return _accumulate(regimen, start_h, end_h, interval_minutes, single_dose)
