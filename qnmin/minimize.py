"""
Unconstrained minimization using a line search strategy

Each iteration computes a descent direction, chooses a step size along it with a
strong Wolfe line search, then checks the termination conditions.

REF: Chapters 3 and 7 in Numerical Optimization by Nocedal and Wright
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum

import numpy as np

from .errors import IllegalDirectionError
from .line_search.initial_step import first_step, initial_step
from .line_search.strong_wolfe import strong_wolfe_line_search
from .methods.base import DirectionStrategy
from .methods.lbfgs import LBFGS
from .methods.steepest_descent import SteepestDescent
from .options import MinimizeOptions
from .types import IterationCallback, ObjectiveFn, ScalarFn, Vector
from .utils.checks import is_legal
from .utils.numdiff import check_gradient, make_objective

logger = logging.getLogger(__name__)


class ExitFlag(IntEnum):
    BUDGET_EXHAUSTED = 0
    OPTIMAL = 1
    NO_PROGRESS = 2


class StopReason(Enum):
    """The termination condition that ended a run"""

    OPTIMALITY = (ExitFlag.OPTIMAL, "Optimality Condition below optTol")
    DIRECTIONAL_DERIVATIVE = (
        ExitFlag.NO_PROGRESS,
        "Directional Derivative below progTol",
    )
    STEP_SIZE = (ExitFlag.NO_PROGRESS, "Step Size below progTol")
    FUNCTION_CHANGE = (
        ExitFlag.NO_PROGRESS,
        "Function Value changing by less than progTol",
    )
    MAX_FUN_EVALS = (
        ExitFlag.BUDGET_EXHAUSTED,
        "Reached Maximum Number of Function Evaluations",
    )
    MAX_ITER = (ExitFlag.BUDGET_EXHAUSTED, "Reached Maximum Number of Iterations")

    def __init__(self, exit_flag: ExitFlag, message: str):
        self.exit_flag = exit_flag
        self.message = message


@dataclass
class MinimizeResult:
    """
    Attributes:
        x: final iterate
        fun: function value at x
        reason: termination condition that fired
        nit: number of iterations, i.e. line searches, completed
        nfev: number of function evaluations
        first_order_opt: max|g| at x
        algorithm: name of the direction strategy
        trace: (function evaluations so far, function value) at the starting point
            and after every iteration
    """

    x: Vector
    fun: float
    reason: StopReason
    nit: int
    nfev: int
    first_order_opt: float
    algorithm: str
    trace: list[tuple[int, float]] = field(default_factory=list)

    @property
    def exit_flag(self) -> ExitFlag:
        return self.reason.exit_flag

    @property
    def message(self) -> str:
        return self.reason.message

    @property
    def success(self) -> bool:
        return self.exit_flag == ExitFlag.OPTIMAL


def make_direction_strategy(
    method: str, dim: int, corrections: int = 100, curvature_tol: float = 1e-10
) -> DirectionStrategy:
    if method == LBFGS.name:
        return LBFGS(dim, corrections, curvature_tol)
    if method == SteepestDescent.name:
        return SteepestDescent(dim)
    raise ValueError(f"Unknown descent direction method: {method}")


def minimize(
    fun: ObjectiveFn | ScalarFn,
    x0,
    *args,
    options: MinimizeOptions | None = None,
    callback: IterationCallback | None = None,
) -> MinimizeResult:
    """
    Minimize fun starting from x0.

    Parameters:
        fun: objective, fun(x, *args) returns the function value and gradient (f, g),
            or only f when options.num_diff selects finite differences
        x0: starting iterate, a 1D array
        args: extra arguments passed to fun
        options: MinimizeOptions, defaults are used if None
        callback: function to call at the starting point and after each iteration,
            takes the iteration number k, iterate x_k, function value f(x_k) and
            max|grad f(x_k)|

    Raises IllegalDirectionError if a search direction is not finite.
    """
    if options is None:
        options = MinimizeOptions()

    x = np.array(x0, dtype=np.float64)
    if x.ndim != 1 or x.size == 0:
        raise ValueError("x0 must be a non-empty 1D array")
    p = x.size

    objective, multiplier = make_objective(fun, p, options.num_diff, args)
    strategy = make_direction_strategy(
        options.method, p, options.corrections, options.curvature_tol
    )

    if options.derivative_check:
        check_gradient(fun, x, args)

    # Evaluate initial point
    f, g = objective(x)
    fun_evals = 1
    opt_cond = float(np.max(np.abs(g)))
    trace = [(fun_evals * multiplier, f)]
    if callback:
        callback(0, x, f, opt_cond)

    def finish(reason: StopReason, nit: int) -> MinimizeResult:
        nfev = fun_evals * multiplier
        logger.info(f"{reason.message} (iterations = {nit}, fun_evals = {nfev})")
        return MinimizeResult(
            x=x,
            fun=f,
            reason=reason,
            nit=nit,
            nfev=nfev,
            first_order_opt=opt_cond,
            algorithm=strategy.name,
            trace=trace,
        )

    if opt_cond <= options.opt_tol:
        return finish(StopReason.OPTIMALITY, 0)

    t = 1.0
    d = np.zeros(p)
    g_old = g
    f_old = f
    gtd_old = 0.0
    for i in range(1, options.max_iter + 1):
        # Compute descent direction
        if i == 1:
            strategy.reset()
            d = -g  # Initially use steepest descent direction
        else:
            strategy.update(t * d, g - g_old)
            d = strategy.direction(g)
        g_old = g

        if not is_legal(d):
            raise IllegalDirectionError(i)

        # Check that progress can be made along the direction
        gtd = float(g.dot(d))
        if gtd > -options.prog_tol:
            return finish(StopReason.DIRECTIONAL_DERIVATIVE, i - 1)

        if i == 1:
            t = first_step(g)
        else:
            t = initial_step(options.ls_init, t, f, f_old, gtd, gtd_old)
        f_old, gtd_old = f, gtd

        ls = strong_wolfe_line_search(
            objective,
            x,
            t,
            d,
            f,
            g,
            gtd,
            c1=options.c1,
            c2=options.c2,
            interp=options.ls_interp,
            max_ls=options.max_ls,
            prog_tol=options.prog_tol,
        )
        t, f, g = ls.t, ls.f, ls.g
        fun_evals += ls.fun_evals
        x = x + t * d

        opt_cond = float(np.max(np.abs(g)))
        trace.append((fun_evals * multiplier, f))
        logger.debug(
            f"Iteration {i:4}, fun_evals = {fun_evals * multiplier:5}, "
            f"t = {t:.3e}, f = {f:.6e}, opt_cond = {opt_cond:.3e}"
        )
        if callback:
            callback(i, x, f, opt_cond)

        if opt_cond <= options.opt_tol:
            return finish(StopReason.OPTIMALITY, i)

        # Check for lack of progress
        if np.max(np.abs(t * d)) <= options.prog_tol:
            return finish(StopReason.STEP_SIZE, i)
        if abs(f - f_old) < options.prog_tol:
            return finish(StopReason.FUNCTION_CHANGE, i)

        # Check for going over the iteration/evaluation limit
        if fun_evals * multiplier >= options.max_fun_evals:
            return finish(StopReason.MAX_FUN_EVALS, i)

    return finish(StopReason.MAX_ITER, options.max_iter)


def l_bfgs(
    fun: ObjectiveFn,
    x0,
    *args,
    corrections: int = 100,
    callback: IterationCallback | None = None,
    **kwargs,
) -> MinimizeResult:
    """
    Limited-memory BFGS Algorithm

    Parameters:
        fun: objective, fun(x, *args) returns (f, g)
        x0: starting iterate
        args: extra arguments passed to fun
        corrections: history size for L-BFGS
        callback: see minimize()
        kwargs: other MinimizeOptions fields

    REF: Algorithm 7.5 in Numerical Optimization by Nocedal and Wright
    """
    options = MinimizeOptions(method="lbfgs", corrections=corrections, **kwargs)
    return minimize(fun, x0, *args, options=options, callback=callback)
