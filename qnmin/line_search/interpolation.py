import numpy as np


def cubic_interp(
    x1: float,
    f1: float,
    grad_f1: float,
    x2: float,
    f2: float,
    grad_f2: float,
    lo: float | None = None,
    hi: float | None = None,
) -> float:
    """
    Find the minimizer of the Hermite-cubic polynomial interpolating a function
    of one variable, at the two points x1 and x2, using the function values f(x_1) = f1
    and f(x_2) = f2 and derivatives grad_f(x_1) = grad_f1 and grad_f(x_2) = grad_f2.

    The minimizer is clamped to [lo, hi], which defaults to the interval between x1
    and x2. When the cubic has no minimizer, or the inputs are degenerate, the
    midpoint of [lo, hi] is returned instead.

    REF: Equation 3.59 in Numerical Optimization, Nocedal and Wright
    """
    if lo is None:
        lo = min(x1, x2)
    if hi is None:
        hi = max(x1, x2)
    mid = (lo + hi) / 2

    if x1 == x2 or not np.all(np.isfinite([x1, x2, f1, f2, grad_f1, grad_f2])):
        return mid

    d1 = grad_f1 + grad_f2 - 3 * (f1 - f2) / (x1 - x2)
    discriminant = d1**2 - grad_f1 * grad_f2
    if discriminant < 0:
        return mid
    d2 = np.sign(x2 - x1) * np.sqrt(discriminant)
    denom = grad_f2 - grad_f1 + 2 * d2
    if denom == 0:
        return mid

    xmin = x2 - (x2 - x1) * (grad_f2 + d2 - d1) / denom
    if not np.isfinite(xmin):
        return mid
    return float(min(max(xmin, lo), hi))
