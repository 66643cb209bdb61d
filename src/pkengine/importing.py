# src/pkengine/importing.py
from __future__ import annotations

import logging
from typing import Any, Mapping

from .types import DosingRegimen

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = (
    "dose", "halfLife", "peak", "uptake",
    "metaboliteLife", "metaboliteConversionFraction", "duration",
)

REQUIRED_FIELDS = ("name", "dose", "times", "halfLife", "uptake")


def transform_imported_regimen(imported: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize an externally formatted regimen (JSON export) to flat keys.

    - nested metaboliteHalfLife {"name", "halfLife"} -> metaboliteName / metaboliteLife
    - numeric strings in NUMERIC_FIELDS -> floats (unparseable strings are left alone)

    Flat keys already present are kept when no nested object exists.
    """
    result = dict(imported)

    nested = imported.get("metaboliteHalfLife")
    if isinstance(nested, Mapping):
        if nested.get("halfLife") is not None:
            result["metaboliteLife"] = nested["halfLife"]
        if nested.get("name") is not None:
            result["metaboliteName"] = nested["name"]
        del result["metaboliteHalfLife"]

    for key in NUMERIC_FIELDS:
        value = result.get(key)
        if isinstance(value, str):
            try:
                result[key] = float(value)
            except ValueError:
                logger.warning("Could not parse %s=%r as a number; leaving it unchanged", key, value)
    return result


def regimen_from_dict(data: Mapping[str, Any]) -> DosingRegimen:
    """
    Build a DosingRegimen from an imported mapping (camelCase keys).
    Example:
      {"name": "Ibuprofen", "dose": 400, "frequency": "tid",
       "times": ["08:00", "14:00", "20:00"], "halfLife": 2, "peak": 1.5, "uptake": 0.5}
    Range checks are left to validate_regimen; only missing keys and
    non-numeric numbers raise here.
    """
    flat = transform_imported_regimen(data)

    missing = [k for k in REQUIRED_FIELDS if flat.get(k) is None]
    if missing:
        raise ValueError(f"regimen is missing required field(s): {', '.join(missing)}.")

    times = flat["times"]
    if isinstance(times, str) or not all(isinstance(t, str) for t in times):
        raise ValueError(f"times must be a list of 'HH:MM' strings (got {times!r}).")

    return DosingRegimen(
        name=str(flat["name"]),
        dose=_number("dose", flat["dose"]),
        times=tuple(times),
        half_life=_number("halfLife", flat["halfLife"]),
        uptake=_number("uptake", flat["uptake"]),
        peak=_optional_number("peak", flat.get("peak"), default=0.0),
        frequency=flat.get("frequency") or "custom",
        metabolite_half_life=_optional_number("metaboliteLife", flat.get("metaboliteLife")),
        metabolite_conversion_fraction=_optional_number(
            "metaboliteConversionFraction", flat.get("metaboliteConversionFraction")),
        metabolite_name=flat.get("metaboliteName"),
        duration=_optional_number("duration", flat.get("duration")),
        duration_unit=flat.get("durationUnit"),
        id=flat.get("id"),
    )


def _number(name: str, x: Any) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise ValueError(f"{name} must be a number (got {x!r}).")
    return float(x)


def _optional_number(name: str, x: Any, default: float | None = None) -> float | None:
    return default if x is None else _number(name, x)


def regimens_from_payload(payload: Any) -> list[DosingRegimen]:
    """
    Regimens from a decoded JSON export: a single regimen object, a list of
    them, or {"regimens": [...]}. Raises ValueError naming the bad entry.
    """
    if isinstance(payload, Mapping) and "regimens" in payload:
        payload = payload["regimens"]
    if isinstance(payload, Mapping):
        payload = [payload]
    if not isinstance(payload, list):
        raise ValueError(f"expected a regimen object or a list of them (got {type(payload).__name__}).")

    regimens = []
    for i, entry in enumerate(payload):
        if not isinstance(entry, Mapping):
            raise ValueError(f"entry {i} is not a regimen object.")
        try:
            regimens.append(regimen_from_dict(entry))
        except ValueError as e:
            raise ValueError(f"entry {i}: {e}") from e
    logger.info("Imported %d regimen(s)", len(regimens))
    return regimens
