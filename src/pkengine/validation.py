# src/pkengine/validation.py
"""
Regimen validation.

Collects errors and warnings instead of raising, so a form can show all
problems at once. The engine itself trusts whatever passes here.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .types import DosingRegimen
from .rates import KA_KE_TOLERANCE, compute_ka, compute_ke

logger = logging.getLogger(__name__)

FREQUENCY_MAP: dict[str, Optional[int]] = {
    "once": 1,
    "qd": 1,
    "bid": 2,
    "tid": 3,
    "qid": 4,
    "q6h": 4,
    "q8h": 3,
    "q12h": 2,
    "custom": None,
}

VALIDATION_RULES = {
    "name": {"min_length": 1, "max_length": 100},
    "dose": {"min": 0.001, "max": 10000},
    "half_life": {"min": 0.1, "max": 240},
    "peak": {"min": 0.1, "max": 48},
    "uptake": {"min": 0.1, "max": 24},
    "metabolite_half_life": {"min": 0.1, "max": 1000},
    "metabolite_conversion_fraction": {"min": 0.0, "max": 1.0},
    "metabolite_name": {"max_length": 100},
    "duration": {"min": 0.1, "max_days": 365, "max_hours": 8760},
}

TIME_FORMAT = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _is_number(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool) and not math.isnan(x)


def _check_range(label: str, value, rule: dict, unit: str = "") -> list[str]:
    if not _is_number(value):
        return [f"{label} is required and must be a number"]
    suffix = f" {unit}" if unit else ""
    if value < rule["min"]:
        return [f"{label} must be at least {rule['min']}{suffix}"]
    if value > rule["max"]:
        return [f"{label} must be at most {rule['max']:,}{suffix}"]
    return []


def _check_optional_range(label: str, value, rule: dict, unit: str = "") -> list[str]:
    if value is None:
        return []
    if not _is_number(value):
        return [f"{label} must be a number when provided"]
    return _check_range(label, value, rule, unit)


def _validate_name(name) -> list[str]:
    if not isinstance(name, str):
        return ["Name is required and must be a string"]
    trimmed = name.strip()
    rule = VALIDATION_RULES["name"]
    if len(trimmed) < rule["min_length"]:
        return ["Name must not be empty"]
    if len(trimmed) > rule["max_length"]:
        return [f"Name must be {rule['max_length']} characters or fewer"]
    return []


def _validate_frequency(frequency) -> list[str]:
    if frequency not in FREQUENCY_MAP:
        return [f"Frequency must be one of: {', '.join(FREQUENCY_MAP)}"]
    return []


def _validate_times(times, frequency) -> list[str]:
    if not isinstance(times, (list, tuple)):
        return ["Times must be a list"]
    if len(times) < 1:
        return ["At least one dosing time is required"]

    errors = [f"Time '{t}' is not valid HH:MM 24-hour format"
              for t in times if not (isinstance(t, str) and TIME_FORMAT.match(t))]

    expected = FREQUENCY_MAP.get(frequency)
    if expected is not None and len(times) != expected:
        errors.append(f"Frequency '{frequency}' requires exactly {expected} dosing time(s), "
                      f"but {len(times)} provided")
    return errors


def _validate_metabolite_name(name) -> list[str]:
    if name is None:
        return []
    if not isinstance(name, str):
        return ["Metabolite name must be a string when provided"]
    limit = VALIDATION_RULES["metabolite_name"]["max_length"]
    if len(name) > limit:
        return [f"Metabolite name must be {limit} characters or fewer"]
    return []


def _validate_duration(duration, unit) -> list[str]:
    if duration is None and unit is None:
        return []
    if unit is None:
        return ["Duration unit must be provided when duration is set"]
    if duration is None:
        return ["Duration value must be provided when duration unit is set"]
    if not _is_number(duration):
        return ["Duration must be a number when provided"]

    rule = VALIDATION_RULES["duration"]
    errors = []
    if duration < rule["min"]:
        errors.append(f"Duration must be at least {rule['min']}")
    if unit == "days":
        if duration > rule["max_days"]:
            errors.append(f"Duration in days must be at most {rule['max_days']}")
    elif unit == "hours":
        if duration > rule["max_hours"]:
            errors.append(f"Duration in hours must be at most {rule['max_hours']}")
    else:
        errors.append("Duration unit must be 'days' or 'hours'")
    return errors


def _in_range(value, rule: dict) -> bool:
    return _is_number(value) and rule["min"] <= value <= rule["max"]


def _cross_field_warnings(rx: DosingRegimen) -> list[str]:
    warnings = []

    has_life = rx.metabolite_half_life is not None
    has_fm = rx.metabolite_conversion_fraction is not None
    if has_life and not has_fm:
        warnings.append("Metabolite half-life provided but conversion fraction missing. "
                        "Both are required for metabolite visualization.")
    elif has_fm and not has_life:
        warnings.append("Metabolite conversion fraction provided but half-life missing. "
                        "Both are required for metabolite visualization.")

    # Rate-constant checks only make sense on in-range inputs
    if not (_in_range(rx.uptake, VALIDATION_RULES["uptake"])
            and _in_range(rx.half_life, VALIDATION_RULES["half_life"])):
        return warnings

    if rx.uptake >= rx.half_life:
        warnings.append(f"Uptake time ({rx.uptake:g}h) is greater than or equal to half-life "
                        f"({rx.half_life:g}h). This indicates atypical absorption kinetics.")

    ka = compute_ka(rx.uptake)
    ke = compute_ke(rx.half_life)
    if abs(ka - ke) < KA_KE_TOLERANCE:
        warnings.append("Uptake time and half-life produce nearly equal rate constants (ka ~ ke). "
                        "The fallback formula will be used for calculations.")
    return warnings


def validate_regimen(rx: DosingRegimen) -> ValidationResult:
    """
    Check a regimen against VALIDATION_RULES.

    Errors make the regimen unusable; warnings flag inputs the engine will
    handle but a user may want to double-check.
    """
    errors = [
        *_validate_name(rx.name),
        *_check_range("Dose", rx.dose, VALIDATION_RULES["dose"]),
        *_validate_frequency(rx.frequency),
        *_validate_times(rx.times, rx.frequency),
        *_check_range("Half-life", rx.half_life, VALIDATION_RULES["half_life"], "hours"),
        *_check_range("Peak time", rx.peak, VALIDATION_RULES["peak"], "hours"),
        *_check_range("Uptake time", rx.uptake, VALIDATION_RULES["uptake"], "hours"),
        *_check_optional_range("Metabolite half-life", rx.metabolite_half_life,
                               VALIDATION_RULES["metabolite_half_life"], "hours"),
        *_check_optional_range("Metabolite conversion fraction", rx.metabolite_conversion_fraction,
                               VALIDATION_RULES["metabolite_conversion_fraction"]),
        *_validate_metabolite_name(rx.metabolite_name),
        *_validate_duration(rx.duration, rx.duration_unit),
    ]
    warnings = _cross_field_warnings(rx)

    for w in warnings:
        logger.warning("%s: %s", rx.name, w)
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def regimen_warnings(regimens: Sequence[DosingRegimen]) -> list[str]:
    """Warnings for several regimens at once, each prefixed with its regimen's name."""
    return [f"{rx.name}: {w}" for rx in regimens for w in validate_regimen(rx).warnings]
