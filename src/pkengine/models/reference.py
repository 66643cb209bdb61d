# src/pkengine/models/reference.py
import numpy as np
from scipy.integrate import solve_ivp

from ..rates import compute_ka, compute_ke


def parent_metabolite_rhs(t, y, ka, ke, ke_m, fm):
    """
    Right-hand side for a single dose, written as ODEs.
    Four states:
      y[0] = drug in absorption depot
      y[1] = drug in central compartment (first-order absorption)
      y[2] = parent feeding metabolite formation (no absorption phase)
      y[3] = metabolite

    Parameters:
      ka   : absorption rate constant (1/h)
      ke   : parent elimination rate constant (1/h)
      ke_m : metabolite elimination rate constant (1/h)
      fm   : fraction of eliminated parent converted to metabolite
    """
    A_gut, A_c, P, M = y

    dA_gut_dt = -ka * A_gut
    dA_c_dt   = ka * A_gut - ke * A_c
    dP_dt     = -ke * P
    dM_dt     = fm * ke * P - ke_m * M

    return [dA_gut_dt, dA_c_dt, dP_dt, dM_dt]


def simulate_reference(dose: float, half_life_h: float, uptake_h: float,
                       t_end_h: float, dt_h: float = 0.25,
                       metabolite_half_life_h: float | None = None, fm: float = 0.0):
    """
    Integrate the single-dose system numerically with solve_ivp.

    Used to cross-check the closed forms; the accumulation engine never calls it.

    Returns:
      t  : array of time points (hours), starting at 0
      C  : central amount (same units as dose)
      Cm : metabolite amount (zeros when no metabolite half-life is given)
    """
    ka = compute_ka(uptake_h)
    ke = compute_ke(half_life_h)
    ke_m = compute_ke(metabolite_half_life_h) if metabolite_half_life_h else 0.0
    fm_eff = fm if metabolite_half_life_h else 0.0

    y0 = [float(dose), 0.0, float(dose), 0.0]
    t_grid = np.arange(0.0, t_end_h + dt_h / 2, dt_h)

    sol = solve_ivp(
        parent_metabolite_rhs, t_span=(0.0, float(t_grid[-1])), y0=y0,
        method="LSODA", t_eval=t_grid, args=(ka, ke, ke_m, fm_eff),
        rtol=1e-8, atol=1e-10,
    )
    C = np.maximum(sol.y[1], 0.0)
    Cm = np.maximum(sol.y[3], 0.0)
    return sol.t, C, Cm
