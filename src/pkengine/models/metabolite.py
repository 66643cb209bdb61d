# src/pkengine/models/metabolite.py
import numpy as np

from ..rates import compute_ke, is_near_equal


def calculate_metabolite_concentration(elapsed_h, dose, parent_half_life_h,
                                       metabolite_half_life_h, fm):
    """
    Metabolite formed from first-order elimination of the parent.

      standard : Cm(t) = dose * fm * ke_p/(ke_m-ke_p) * (exp(-ke_p t) - exp(-ke_m t))
      fallback : Cm(t) = dose * fm * ke_p * t * exp(-ke_p t)   when |ke_m-ke_p| < tolerance

    fm is the fraction of eliminated parent converted to metabolite. Any
    fm outside (0, 1], a non-positive dose, or elapsed_h <= 0 contributes 0.
    Accepts a float or numpy array for elapsed_h, like calculate_concentration.
    """
    elapsed = np.asarray(elapsed_h, dtype=float)
    if dose <= 0 or fm <= 0 or fm > 1:
        Cm = np.zeros_like(elapsed)
    else:
        ke_p = compute_ke(parent_half_life_h)
        ke_m = compute_ke(metabolite_half_life_h)
        t = np.where(elapsed > 0.0, elapsed, 0.0)
        if is_near_equal(ke_m, ke_p):
            Cm = dose * fm * ke_p * t * np.exp(-ke_p * t)
        else:
            Cm = dose * fm * (ke_p / (ke_m - ke_p)) * (np.exp(-ke_p * t) - np.exp(-ke_m * t))
        Cm = np.where(elapsed > 0.0, np.maximum(Cm, 0.0), 0.0)

    if Cm.ndim == 0:
        return float(Cm)
    return Cm
