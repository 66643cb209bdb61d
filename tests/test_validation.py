import pytest

from pkengine import rates, validation
from pkengine.types import DosingRegimen
from pkengine.validation import FREQUENCY_MAP, validate_regimen


def _regimen(**overrides) -> DosingRegimen:
    fields = dict(name="Ibuprofen", dose=400.0, times=("08:00", "14:00", "20:00"),
                  half_life=2.0, uptake=0.5, peak=1.5, frequency="tid")
    fields.update(overrides)
    return DosingRegimen(**fields)


def test_valid_regimen_has_no_errors_or_warnings():
    result = validate_regimen(_regimen())
    assert result.valid
    assert result.errors == [] and result.warnings == []


def test_validation_and_engine_share_one_tolerance():
    assert validation.KA_KE_TOLERANCE is rates.KA_KE_TOLERANCE


@pytest.mark.parametrize("frequency, count", [(f, n) for f, n in FREQUENCY_MAP.items() if n])
def test_time_count_must_match_frequency(frequency, count):
    times = tuple(f"{h:02d}:00" for h in range(count))
    assert validate_regimen(_regimen(frequency=frequency, times=times)).valid

    result = validate_regimen(_regimen(frequency=frequency, times=times + ("23:00",)))
    assert not result.valid
    assert f"requires exactly {count} dosing time(s)" in result.errors[0]


def test_custom_frequency_accepts_any_count():
    times = ("01:00", "05:00", "09:00", "13:00", "17:00")
    assert validate_regimen(_regimen(frequency="custom", times=times)).valid


@pytest.mark.parametrize("bad", ["24:00", "9:00", "09:60", "0900", "ab:cd"])
def test_malformed_times_rejected(bad):
    result = validate_regimen(_regimen(times=("08:00", "14:00", bad)))
    assert f"Time '{bad}' is not valid HH:MM 24-hour format" in result.errors


def test_no_times_rejected():
    result = validate_regimen(_regimen(times=()))
    assert result.errors == ["At least one dosing time is required"]


@pytest.mark.parametrize("overrides, message", [
    (dict(name="   "), "Name must not be empty"),
    (dict(name="x" * 101), "Name must be 100 characters or fewer"),
    (dict(dose=0.0), "Dose must be at least 0.001"),
    (dict(dose=20000.0), "Dose must be at most 10,000"),
    (dict(half_life=0.05), "Half-life must be at least 0.1 hours"),
    (dict(half_life=300.0), "Half-life must be at most 240 hours"),
    (dict(uptake=30.0), "Uptake time must be at most 24 hours"),
    (dict(peak=float("nan")), "Peak time is required and must be a number"),
    (dict(frequency="hourly"), "Frequency must be one of: once, qd, bid, tid, qid, q6h, q8h, q12h, custom"),
    (dict(metabolite_half_life=2000.0, metabolite_conversion_fraction=0.5),
     "Metabolite half-life must be at most 1,000 hours"),
    (dict(metabolite_half_life=4.0, metabolite_conversion_fraction=1.5),
     "Metabolite conversion fraction must be at most 1.0"),
    (dict(metabolite_name="m" * 101), "Metabolite name must be 100 characters or fewer"),
])
def test_field_errors(overrides, message):
    result = validate_regimen(_regimen(**overrides))
    assert not result.valid
    assert message in result.errors


@pytest.mark.parametrize("overrides, message", [
    (dict(duration=3.0), "Duration unit must be provided when duration is set"),
    (dict(duration_unit="days"), "Duration value must be provided when duration unit is set"),
    (dict(duration=0.05, duration_unit="hours"), "Duration must be at least 0.1"),
    (dict(duration=400.0, duration_unit="days"), "Duration in days must be at most 365"),
    (dict(duration=9000.0, duration_unit="hours"), "Duration in hours must be at most 8760"),
    (dict(duration=2.0, duration_unit="weeks"), "Duration unit must be 'days' or 'hours'"),
])
def test_duration_errors(overrides, message):
    result = validate_regimen(_regimen(**overrides))
    assert message in result.errors


def test_duration_accepted_with_unit():
    assert validate_regimen(_regimen(duration=7.0, duration_unit="days")).valid


def test_partial_metabolite_data_warns_but_is_valid():
    result = validate_regimen(_regimen(metabolite_half_life=6.0))
    assert result.valid
    assert result.warnings[0].startswith("Metabolite half-life provided but conversion fraction missing")

    result = validate_regimen(_regimen(metabolite_conversion_fraction=0.3))
    assert result.warnings[0].startswith("Metabolite conversion fraction provided but half-life missing")


def test_near_equal_rate_constants_warn():
    result = validate_regimen(_regimen(half_life=4.0, uptake=4.0))
    assert result.valid
    assert any("atypical absorption" in w for w in result.warnings)
    assert any("fallback formula" in w for w in result.warnings)


def test_slow_uptake_warns_without_fallback():
    result = validate_regimen(_regimen(half_life=2.0, uptake=6.0))
    assert len(result.warnings) == 1
    assert "Uptake time (6h) is greater than or equal to half-life (2h)" in result.warnings[0]


def test_out_of_range_rates_skip_cross_field_warnings():
    result = validate_regimen(_regimen(half_life=500.0, uptake=500.0))
    assert not result.valid
    assert result.warnings == []


def test_warnings_collected_across_compared_regimens():
    warnings = validation.regimen_warnings([
        _regimen(),
        _regimen(name="Slow", half_life=4.0, uptake=4.0),
        _regimen(name="Partial", metabolite_half_life=6.0),
    ])
    assert warnings
    assert all(w.startswith(("Slow: ", "Partial: ")) for w in warnings)
    assert any(w.startswith("Slow: ") and "fallback formula" in w for w in warnings)
    assert any(w.startswith("Partial: Metabolite half-life provided") for w in warnings)
