# src/pkengine/rates.py
import math
from dataclasses import dataclass

# ln(2): converts a half-life style time constant (h) to a first-order rate (1/h).
ABSORPTION_CONSTANT = math.log(2.0)

# When |ka - ke| is below this, the closed forms switch to their limiting
# (ka == ke) expressions. Validation warns on the same threshold.
KA_KE_TOLERANCE = 0.001


@dataclass(frozen=True)
class RateConstants:
    """
    First-order rate constants for a single regimen.

    ka : absorption rate constant (1/h)
    ke : elimination rate constant (1/h)
    """
    ka: float
    ke: float

    @property
    def near_equal(self) -> bool:
        return is_near_equal(self.ka, self.ke)


def compute_ka(uptake_h: float) -> float:
    """Absorption rate constant from uptake time (h)."""
    return ABSORPTION_CONSTANT / uptake_h


def compute_ke(half_life_h: float) -> float:
    """Elimination rate constant from half-life (h)."""
    return ABSORPTION_CONSTANT / half_life_h


def rate_constants(half_life_h: float, uptake_h: float) -> RateConstants:
    return RateConstants(ka=compute_ka(uptake_h), ke=compute_ke(half_life_h))


def is_near_equal(k1: float, k2: float) -> bool:
    return abs(k1 - k2) < KA_KE_TOLERANCE
