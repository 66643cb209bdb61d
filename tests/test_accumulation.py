import math
import numpy as np
import pytest

from pkengine.types import ConcentrationCurve, DosingRegimen, TimeSeriesPoint
from pkengine.dosing import expand_dose_times
from pkengine.models.one_compartment import calculate_concentration
from pkengine.models.metabolite import calculate_metabolite_concentration
from pkengine.solvers import accumulate_doses, accumulate_metabolite_doses
from pkengine.validation import validate_regimen


def _regimen(**overrides) -> DosingRegimen:
    # Scenario A PK (t1/2 6 h, uptake 1.5 h), twice daily
    fields = dict(name="Drug A", dose=500.0, times=("09:00", "21:00"),
                  half_life=6.0, uptake=1.5, peak=4.0, frequency="bid")
    fields.update(overrides)
    return DosingRegimen(**fields)


def _at(curve: ConcentrationCurve, hour: float) -> float:
    idx = int(np.argmin(np.abs(curve.t - hour)))
    assert np.isclose(curve.t[idx], hour)
    return float(curve.concentration[idx])


@pytest.mark.parametrize("start, end, interval, expected", [
    (0.0, 48.0, 15, 193),
    (0.0, 24.0, 60, 25),
    (0.0, 10.0, 7, 86),
    (6.0, 30.0, 30, 49),
    (0.0, 0.0, 15, 1),
])
def test_output_length(start, end, interval, expected):
    curve = accumulate_doses(_regimen(), start, end, interval_minutes=interval)
    assert len(curve) == expected == math.floor((end - start) * 60 / interval) + 1


def test_grid_is_fixed_step_and_ascending():
    curve = accumulate_doses(_regimen(), 6.0, 30.0)
    assert curve.t[0] == 6.0 and np.isclose(curve.t[-1], 30.0)
    assert np.allclose(np.diff(curve.t), 0.25)


def test_scenario_c_twice_daily_accumulation():
    """
    09:00/21:00 over 48 h: a single global maximum of exactly 1.0, and each
    later peak/trough is higher than the same slot a day earlier.
    """
    curve = accumulate_doses(_regimen(), 0.0, 48.0)
    C = curve.concentration

    assert curve.max() == 1.0
    assert np.count_nonzero(C == 1.0) == 1
    assert np.all((C >= 0.0) & (C <= 1.0))

    # nothing before the first dose
    assert np.all(C[curve.t <= 9.0] == 0.0)

    # morning-dose peaks (dose + 4 h) and pre-dose troughs rise day over day
    assert _at(curve, 37.0) > _at(curve, 13.0)
    assert _at(curve, 45.0) > _at(curve, 21.0)
    assert _at(curve, 33.0) > _at(curve, 21.0) > 0.0


def test_normalized_once_over_the_whole_curve():
    """The curve is the raw dose sum scaled by a single global factor."""
    rx = _regimen()
    curve = accumulate_doses(rx, 0.0, 48.0)

    dose_times = expand_dose_times(rx.times, 3)
    raw = np.array([
        sum(calculate_concentration(t - d, rx.dose, rx.half_life, rx.uptake)
            for d in dose_times if d <= t)
        for t in curve.t
    ])
    assert np.allclose(curve.concentration, raw / raw.max())


def test_single_daily_dose_keeps_single_dose_shape():
    rx = _regimen(times=("00:00",), frequency="qd")
    curve = accumulate_doses(rx, 0.0, 24.0)
    assert _at(curve, 4.0) == 1.0
    # C(6)/C(4) for Scenario A: (500 * 7/12) / (500 * 2^(-2/3))
    assert np.isclose(_at(curve, 6.0), (7 / 12) / 2 ** (-2 / 3))
    assert np.isclose(_at(curve, 12.0), (21 / 64) / 2 ** (-2 / 3))


def test_zero_dose_gives_all_zero_curve():
    curve = accumulate_doses(_regimen(dose=0.0), 0.0, 24.0)
    assert len(curve) == 97
    assert np.all(curve.concentration == 0.0)


def test_no_dose_times_gives_all_zero_curve():
    curve = accumulate_doses(_regimen(times=()), 0.0, 24.0)
    assert len(curve) == 97
    assert curve.max() == 0.0


def test_window_before_first_dose_is_all_zero():
    curve = accumulate_doses(_regimen(), 0.0, 8.0)
    assert np.all(curve.concentration == 0.0)


def test_duration_override_sets_the_end():
    curve = accumulate_doses(_regimen(duration=12, duration_unit="hours"), 0.0, 48.0)
    assert len(curve) == 49 and np.isclose(curve.t[-1], 12.0)

    curve = accumulate_doses(_regimen(duration=1, duration_unit="days"), 6.0, 12.0)
    assert curve.t[0] == 6.0 and np.isclose(curve.t[-1], 30.0)

    # a duration without a unit is ignored
    curve = accumulate_doses(_regimen(duration=12), 0.0, 48.0)
    assert np.isclose(curve.t[-1], 48.0)


def test_fallback_regimen_normalizes_too():
    curve = accumulate_doses(_regimen(half_life=4.0, uptake=4.0), 0.0, 72.0)
    assert curve.max() == 1.0


def test_curve_iterates_as_points():
    curve = accumulate_doses(_regimen(), 0.0, 1.0, interval_minutes=30)
    assert curve.points() == [TimeSeriesPoint(0.0, 0.0), TimeSeriesPoint(0.5, 0.0),
                              TimeSeriesPoint(1.0, 0.0)]


def test_metabolite_requires_both_fields():
    assert accumulate_metabolite_doses(_regimen(), 0.0, 48.0).is_empty
    assert len(accumulate_metabolite_doses(_regimen(metabolite_half_life=12.0), 0.0, 48.0)) == 0
    assert len(accumulate_metabolite_doses(
        _regimen(metabolite_conversion_fraction=0.5), 0.0, 48.0)) == 0


def test_metabolite_curve_matches_parent_grid_and_normalizes():
    rx = _regimen(metabolite_half_life=12.0, metabolite_conversion_fraction=0.3)
    parent = accumulate_doses(rx, 0.0, 48.0)
    met = accumulate_metabolite_doses(rx, 0.0, 48.0)

    assert len(met) == len(parent)
    assert np.allclose(met.t, parent.t)
    assert met.max() == 1.0
    assert np.all(met.concentration >= 0.0)

    dose_times = expand_dose_times(rx.times, 3)
    raw = np.array([
        sum(calculate_metabolite_concentration(t - d, rx.dose, rx.half_life, 12.0, 0.3)
            for d in dose_times if d <= t)
        for t in met.t
    ])
    assert np.allclose(met.concentration, raw / raw.max())


def test_metabolite_invalid_fraction_is_present_but_zero():
    rx = _regimen(metabolite_half_life=12.0, metabolite_conversion_fraction=1.5)
    met = accumulate_metabolite_doses(rx, 0.0, 24.0)
    assert len(met) == 97
    assert np.all(met.concentration == 0.0)


def test_year_long_qid_regimen():
    rx = _regimen(times=("00:00", "06:00", "12:00", "18:00"), frequency="qid",
                  duration=365, duration_unit="days")
    assert validate_regimen(rx).valid

    curve = accumulate_doses(rx, 0.0, 24.0)
    assert len(curve) == 35041
    assert np.isclose(curve.t[-1], 8760.0)
    assert curve.max() == 1.0
    # steady state: the last day repeats the day before it
    last_day = curve.concentration[-97:]
    day_before = curve.concentration[-193:-96]
    assert np.allclose(last_day, day_before)
