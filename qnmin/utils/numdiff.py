"""
Gradient modes: the objective's own gradient, or finite differences of its value
"""

import logging
from typing import Callable

import numpy as np

from ..options import GradientMode
from ..types import ObjectiveFn, ScalarFn, Vector

logger = logging.getLogger(__name__)


def forward_diff_grad(
    fun: Callable[[Vector], float], x: Vector, f: float | None = None
) -> Vector:
    """Forward-difference gradient approximation, p evaluations (p + 1 without f)"""
    n = x.size
    eps = np.sqrt(np.finfo(float).eps) * (1.0 + np.linalg.norm(x))
    if f is None:
        f = fun(x)
    grad = np.zeros(n, dtype=float)
    for i in range(n):
        dx = np.zeros_like(x)
        dx[i] = eps
        grad[i] = (fun(x + dx) - f) / eps
    return grad


def central_diff_grad(fun: Callable[[Vector], float], x: Vector) -> Vector:
    """Central-difference gradient approximation, 2p evaluations"""
    n = x.size
    eps = np.cbrt(np.finfo(float).eps) * (1.0 + np.linalg.norm(x))
    grad = np.zeros(n, dtype=float)
    for i in range(n):
        dx = np.zeros_like(x)
        dx[i] = eps
        f_plus = fun(x + dx)
        f_minus = fun(x - dx)
        grad[i] = (f_plus - f_minus) / (2 * eps)
    return grad


def make_objective(
    fun: ObjectiveFn | ScalarFn,
    dim: int,
    mode: GradientMode = GradientMode.ANALYTIC,
    args: tuple = (),
) -> tuple[ObjectiveFn, int]:
    """
    Wraps a user objective into fn(x) -> (f, g) with f a float and g a float64
    vector of shape (dim,).

    Parameters:
        fun: fun(x, *args) returning (f, g) for ANALYTIC mode, or just f for the
            finite-difference modes
        dim: dimension of x
        mode: where the gradient comes from
        args: extra arguments passed to fun

    Returns the wrapped objective and the number of calls to fun made per call to
    the wrapped objective.
    """

    def value(x: Vector) -> float:
        return float(fun(x, *args))

    if mode == GradientMode.ANALYTIC:

        def objective(x: Vector) -> tuple[float, Vector]:
            f, g = fun(x, *args)
            return float(f), _as_gradient(g, dim)

        return objective, 1

    if mode == GradientMode.FORWARD:

        def objective(x: Vector) -> tuple[float, Vector]:
            f = value(x)
            return f, forward_diff_grad(value, x, f)

        return objective, dim + 1

    if mode == GradientMode.CENTRAL:

        def objective(x: Vector) -> tuple[float, Vector]:
            return value(x), central_diff_grad(value, x)

        # The function value itself comes on top of the 2p differences
        return objective, 2 * dim + 1

    raise ValueError(f"Unknown gradient mode: {mode}")


def check_gradient(
    fun: ObjectiveFn, x: Vector, args: tuple = (), tol: float = 1e-4
) -> float:
    """
    Compares the gradient returned by fun(x, *args) -> (f, g) with central
    differences and returns the largest absolute difference.

    A warning is logged if the difference relative to max(1, max|g|) exceeds tol.
    """
    _, g = fun(x, *args)
    g = _as_gradient(g, x.size)
    g_num = central_diff_grad(lambda z: float(fun(z, *args)[0]), x)
    max_diff = float(np.max(np.abs(g - g_num)))

    logger.info(f"Derivative check: max|g - g_numerical| = {max_diff:.3e}")
    if max_diff > tol * max(1.0, float(np.max(np.abs(g)))):
        logger.warning(
            "Supplied gradient differs from its central-difference approximation, "
            f"max difference {max_diff:.3e}"
        )
    return max_diff


def _as_gradient(g, dim: int) -> Vector:
    g = np.asarray(g, dtype=np.float64)
    if g.shape != (dim,):
        raise ValueError(f"Gradient has shape {g.shape}, expected ({dim},)")
    return g
