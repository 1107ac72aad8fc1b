import logging

import numpy as np

from ..options import Interpolation
from ..types import ObjectiveFn, Vector
from ..utils.checks import is_legal
from .interpolation import cubic_interp
from .result import LineSearchResult

logger = logging.getLogger(__name__)


def armijo_backtrack(
    fun: ObjectiveFn,
    x: Vector,
    t: float,
    d: Vector,
    f: float,
    g: Vector,
    gtd: float,
    c1: float = 1e-4,
    interp: Interpolation = Interpolation.CUBIC,
    max_ls: int = 25,
    prog_tol: float = 1e-9,
) -> LineSearchResult:
    """
    Backtracking line search on the Armijo/sufficient decrease condition
        f(x + t * d) <= f + c1 * t * gtd

    Trial steps where the objective is not finite are halved, otherwise the next
    trial is the minimizer of the cubic through (0, f, gtd) and (t, f_new, gtd_new),
    kept within [1e-3 * t, 0.6 * t].

    Parameters:
        fun: objective returning (f, g)
        x: current iterate
        t: initial step size
        d: direction, assumed to be a descent direction
        f: function value at x
        g: gradient at x
        gtd: directional derivative g'd
        c1: parameter for Armijo/sufficient decrease condition
        interp: BISECTION halves the step on every backtrack
        max_ls: max number of function evaluations
        prog_tol: the search gives up once max|t * d| <= prog_tol

    Returns t = 0 with the values at x when no acceptable step was found.
    """
    f_new, g_new = fun(x + t * d)
    fun_evals = 1
    gtd_new = g_new.dot(d)

    while f_new > f + c1 * t * gtd or not (is_legal(f_new) and is_legal(g_new)):
        t_prev = t
        if interp == Interpolation.BISECTION or not (
            is_legal(f_new) and is_legal(g_new)
        ):
            t = 0.5 * t
        else:
            t = cubic_interp(0.0, f, gtd, t, f_new, gtd_new)

        # Adjust if change in t is too small/large
        t = min(max(t, 1e-3 * t_prev), 0.6 * t_prev)

        if np.max(np.abs(t * d)) <= prog_tol or fun_evals >= max_ls:
            logger.debug("Backtracking line search failed")
            return LineSearchResult(0.0, f, g, fun_evals)

        f_new, g_new = fun(x + t * d)
        fun_evals += 1
        gtd_new = g_new.dot(d)

    return LineSearchResult(t, f_new, g_new, fun_evals)
