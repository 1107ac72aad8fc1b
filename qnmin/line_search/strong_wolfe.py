import logging

import numpy as np

from ..options import Interpolation
from ..types import ObjectiveFn, Vector
from ..utils.checks import is_legal
from .armijo import armijo_backtrack
from .interpolation import cubic_interp
from .result import LineSearchResult

logger = logging.getLogger(__name__)


def strong_wolfe_line_search(
    fun: ObjectiveFn,
    x: Vector,
    t: float,
    d: Vector,
    f: float,
    g: Vector,
    gtd: float,
    c1: float = 1e-4,
    c2: float = 0.9,
    interp: Interpolation = Interpolation.CUBIC,
    max_ls: int = 25,
    prog_tol: float = 1e-9,
) -> LineSearchResult:
    """
    Finds a step size that satisfies the strong Wolfe conditions
        f(x + t * d) <= f + c1 * t * gtd
        |g(x + t * d)'d| <= c2 * |gtd|

    Parameters:
        fun: objective returning (f, g), assumed to be bounded below along d
        x: current iterate
        t: initial step size (1 should always be used as the initial step size for
            Newton and quasi-Newton methods)
        d: direction, assumed to be a descent direction
        f: function value at x
        g: gradient at x
        gtd: directional derivative g'd, must be negative
        c1: parameter for Armijo/sufficient decrease condition
        c2: parameter for curvature condition
        interp: step selection, BISECTION doubles while bracketing and bisects while
            zooming, CUBIC uses cubic extrapolation/interpolation
        max_ls: max number of trial steps after the first
        prog_tol: zoom() stops once the bracket is shorter than this along d

    If the trial budget runs out, the lowest bracket end point satisfying sufficient
    decrease is returned, or t = 0 (no progress) when neither does.

    REF: Algorithms 3.5 and 3.6 in Numerical Optimization by Nocedal and Wright
    """

    # Bracketing phase: find an interval containing a point satisfying the strong
    # Wolfe conditions, or such a point directly
    f_new, g_new = fun(x + t * d)
    fun_evals = 1
    gtd_new = g_new.dot(d)

    t_prev, f_prev, g_prev, gtd_prev = 0.0, f, g, gtd
    nrm_d = np.max(np.abs(d))
    bracket = None
    done = False

    ls_iter = 0
    while ls_iter < max_ls:
        if not (is_legal(f_new) and is_legal(g_new)):
            logger.debug(
                "Extrapolated into illegal region, switching to Armijo line search"
            )
            result = armijo_backtrack(
                fun,
                x,
                (t + t_prev) / 2,
                d,
                f,
                g,
                gtd,
                c1=c1,
                interp=interp,
                max_ls=max_ls - ls_iter,
                prog_tol=prog_tol,
            )
            result.fun_evals += fun_evals
            return result

        # Armijo/sufficient decrease condition
        armijo_cond = f_new > f + c1 * t * gtd
        if armijo_cond or (ls_iter > 0 and f_new >= f_prev):
            bracket = _Bracket(t_prev, f_prev, g_prev, t, f_new, g_new)
            break

        # Curvature condition
        if np.abs(gtd_new) <= -c2 * gtd:
            bracket = _Bracket(t, f_new, g_new, t, f_new, g_new)
            done = True
            break

        if gtd_new >= 0:
            bracket = _Bracket(t_prev, f_prev, g_prev, t, f_new, g_new)
            break

        t_older, t_prev = t_prev, t
        if interp == Interpolation.BISECTION:
            t = 2 * t
        else:
            min_step = t + 0.01 * (t - t_older)
            max_step = 10 * t
            t = cubic_interp(
                t_older, f_prev, gtd_prev, t, f_new, gtd_new, min_step, max_step
            )

        f_prev, g_prev, gtd_prev = f_new, g_new, gtd_new
        f_new, g_new = fun(x + t * d)
        fun_evals += 1
        gtd_new = g_new.dot(d)
        ls_iter += 1

    if bracket is None:
        # Ran out of trial steps while extending, the last trial is unchecked
        if (
            is_legal(f_new)
            and is_legal(g_new)
            and f_new <= f + c1 * t * gtd
            and np.abs(gtd_new) <= -c2 * gtd
        ):
            bracket = _Bracket(t, f_new, g_new, t, f_new, g_new)
            done = True
        else:
            bracket = _Bracket(t_prev, f_prev, g_prev, t, f_new, g_new)

    # Zoom phase: refine the bracket until a point satisfies the strong Wolfe
    # conditions
    insuf_progress = False
    while not done and ls_iter < max_ls:
        lo = bracket.lowest()
        hi = 1 - lo
        f_lo = bracket.f[lo]
        t_min, t_max = min(bracket.t), max(bracket.t)
        width = t_max - t_min
        if width <= 0:
            break

        if interp == Interpolation.BISECTION or not bracket.is_legal():
            t = (t_min + t_max) / 2
        else:
            t = cubic_interp(
                bracket.t[0],
                bracket.f[0],
                bracket.g[0].dot(d),
                bracket.t[1],
                bracket.f[1],
                bracket.g[1].dot(d),
            )

        # Make sure the trial point is not too close to the bracket ends
        if min(t_max - t, t - t_min) / width < 0.1:
            if insuf_progress or t >= t_max or t <= t_min:
                if abs(t - t_max) < abs(t - t_min):
                    t = t_max - 0.1 * width
                else:
                    t = t_min + 0.1 * width
                insuf_progress = False
            else:
                insuf_progress = True
        else:
            insuf_progress = False

        f_new, g_new = fun(x + t * d)
        fun_evals += 1
        gtd_new = g_new.dot(d)
        ls_iter += 1

        armijo_cond = f_new < f + c1 * t * gtd
        if not armijo_cond or f_new >= f_lo:
            bracket.set(hi, t, f_new, g_new)
        else:
            if np.abs(gtd_new) <= -c2 * gtd:
                done = True
            elif gtd_new * (bracket.t[hi] - bracket.t[lo]) >= 0:
                # Old lo becomes new hi
                bracket.set(hi, bracket.t[lo], bracket.f[lo], bracket.g[lo])
            bracket.set(lo, t, f_new, g_new)

        if not done and abs(bracket.t[0] - bracket.t[1]) * nrm_d < prog_tol:
            logger.debug("Line search bracket has been reduced below prog_tol")
            break

    if not done and ls_iter >= max_ls:
        logger.warning(
            "Line search returning without satisfying strong Wolfe conditions, "
            f"exceeded {max_ls} trial steps."
        )

    best = bracket.lowest_sufficient(f, c1 * gtd)
    if best is None:
        return LineSearchResult(0.0, f, g, fun_evals)
    return LineSearchResult(
        bracket.t[best], bracket.f[best], bracket.g[best], fun_evals
    )


class _Bracket:
    """Two (t, f, g) end points of an interval of step sizes"""

    def __init__(self, t1, f1, g1, t2, f2, g2):
        self.t = [float(t1), float(t2)]
        self.f = [float(f1), float(f2)]
        self.g = [g1, g2]

    def set(self, i: int, t: float, f: float, g: Vector) -> None:
        self.t[i], self.f[i], self.g[i] = float(t), float(f), g

    def lowest(self) -> int:
        """Index of the end point with the lower function value"""
        f1, f2 = (fi if np.isfinite(fi) else np.inf for fi in self.f)
        return 0 if f1 <= f2 else 1

    def lowest_sufficient(self, f: float, c1_gtd: float) -> int | None:
        """
        Index of the lowest end point satisfying f_i <= f + c1 * t_i * gtd, or
        None if neither does
        """
        ok = [
            i
            for i in (0, 1)
            if np.isfinite(self.f[i]) and self.f[i] <= f + self.t[i] * c1_gtd
        ]
        if not ok:
            return None
        return min(ok, key=lambda i: self.f[i])

    def is_legal(self) -> bool:
        return is_legal(self.f) and all(is_legal(gi) for gi in self.g)
