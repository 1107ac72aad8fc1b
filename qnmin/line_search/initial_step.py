import numpy as np

from ..options import LineSearchInit
from ..types import Vector


def first_step(grad: Vector) -> float:
    """Scale-invariant initial step for the first iteration, min(1, 1 / sum|g|)"""
    return float(min(1.0, 1.0 / np.sum(np.abs(grad))))


def initial_step(
    policy: LineSearchInit,
    t_prev: float,
    f: float,
    f_prev: float,
    gtd: float,
    gtd_prev: float,
) -> float:
    """
    Initial step size for iterations after the first.

    Parameters:
        policy: initial step size policy
        t_prev: step size accepted on the previous iteration
        f: current function value
        f_prev: function value at the previous iterate
        gtd: current directional derivative
        gtd_prev: directional derivative on the previous iteration

    Falls back to t = 1 if the policy gives a non-positive or non-finite step.
    """
    if policy == LineSearchInit.NEWTON:
        return 1.0

    if policy == LineSearchInit.PREVIOUS_STEP:
        t = t_prev * min(2.0, gtd_prev / gtd)
    elif policy == LineSearchInit.QUADRATIC:
        t = min(1.0, 2 * (f - f_prev) / gtd)
    elif policy == LineSearchInit.DOUBLE_PREVIOUS:
        t = min(1.0, 2 * t_prev)
    else:
        raise ValueError(f"Unknown initial step policy: {policy}")

    if not np.isfinite(t) or t <= 0:
        return 1.0
    return float(t)
