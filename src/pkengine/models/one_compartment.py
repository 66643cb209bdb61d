# src/pkengine/models/one_compartment.py
import numpy as np

from ..rates import compute_ka, compute_ke, is_near_equal


def calculate_concentration(elapsed_h, dose, half_life_h, uptake_h):
    """
    One-compartment model with first-order absorption and elimination,
    single dose given at elapsed_h == 0.

      standard : C(t) = dose * ka/(ka-ke) * (exp(-ke t) - exp(-ka t))
      fallback : C(t) = dose * ka * t * exp(-ke t)      when |ka-ke| < tolerance

    Parameters:
      elapsed_h   : hours since the dose (float or numpy array)
      dose        : dose amount, arbitrary units
      half_life_h : elimination half-life (h)
      uptake_h    : absorption uptake time (h)

    Returns the raw (unnormalized) relative concentration, >= 0. Elapsed
    times <= 0 and non-positive doses contribute 0. A float comes back for
    scalar input, an array of the same shape otherwise.
    """
    elapsed = np.asarray(elapsed_h, dtype=float)
    if dose <= 0:
        C = np.zeros_like(elapsed)
    else:
        ka = compute_ka(uptake_h)
        ke = compute_ke(half_life_h)
        # Zero out pre-dose times before exponentiating so nothing overflows
        t = np.where(elapsed > 0.0, elapsed, 0.0)
        if is_near_equal(ka, ke):
            C = dose * ka * t * np.exp(-ke * t)
        else:
            C = dose * (ka / (ka - ke)) * (np.exp(-ke * t) - np.exp(-ka * t))
        C = np.where(elapsed > 0.0, np.maximum(C, 0.0), 0.0)

    if C.ndim == 0:
        return float(C)
    return C


def get_peak_time(half_life_h: float, uptake_h: float) -> float:
    """
    Time of single-dose peak concentration, Tmax (h).

      fallback (ka ~ ke) : 1 / ke
      ka <= ke           : 0
      otherwise          : ln(ka/ke) / (ka - ke)

    The ka <= ke branch returns 0 even though the closed form stays positive
    there. Tmax is only displayed and never feeds the accumulation engine.
    """
    ka = compute_ka(uptake_h)
    ke = compute_ke(half_life_h)

    if is_near_equal(ka, ke):
        return 1.0 / ke
    if ka <= ke:
        return 0.0
    return float(np.log(ka / ke) / (ka - ke))
