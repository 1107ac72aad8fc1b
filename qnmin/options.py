"""
Options for the line-search minimizer

Defaults follow minFunc with the L-BFGS method.
"""

from dataclasses import dataclass
from enum import IntEnum


class LineSearchInit(IntEnum):
    """Initial step length policy used after the first iteration"""

    NEWTON = 0  # t = 1
    PREVIOUS_STEP = 1  # t = t_prev * min(2, gtd_prev / gtd)
    QUADRATIC = 2  # t = min(1, 2 * (f - f_prev) / gtd)
    DOUBLE_PREVIOUS = 3  # t = min(1, 2 * t_prev)


class Interpolation(IntEnum):
    """Step selection inside the Wolfe line search"""

    BISECTION = 0  # step doubling while bracketing, bisection while zooming
    CUBIC = 1  # cubic extrapolation/interpolation with function and gradient values


class GradientMode(IntEnum):
    """Where the gradient comes from"""

    ANALYTIC = 0  # supplied by the objective
    FORWARD = 1  # forward differences
    CENTRAL = 2  # central differences


METHODS = ("lbfgs", "sd")


@dataclass(frozen=True)
class MinimizeOptions:
    """
    Parameters:
        max_fun_evals: maximum number of function evaluations
        max_iter: maximum number of iterations
        opt_tol: termination tolerance on the first-order optimality max|g|
        prog_tol: termination tolerance on progress in terms of function/parameter
            changes
        method: descent direction strategy, one of METHODS
        corrections: number of L-BFGS corrections to store in memory, 0 gives
            steepest descent
        curvature_tol: curvature pairs with y's <= curvature_tol * max(1, |y||s|)
            are skipped
        c1: parameter for Armijo/sufficient decrease condition
        c2: parameter for curvature condition
        max_ls: max number of trial steps per line search
        ls_init: initial step length policy
        ls_interp: line search interpolation strategy
        num_diff: gradient mode, numerical modes expect the objective to return
            only the function value
        derivative_check: compare the supplied gradient with central differences
            at the starting point
    """

    max_fun_evals: int = 1000
    max_iter: int = 500
    opt_tol: float = 1e-5
    prog_tol: float = 1e-9
    method: str = "lbfgs"
    corrections: int = 100
    curvature_tol: float = 1e-10
    c1: float = 1e-4
    c2: float = 0.9
    max_ls: int = 25
    ls_init: LineSearchInit = LineSearchInit.NEWTON
    ls_interp: Interpolation = Interpolation.CUBIC
    num_diff: GradientMode = GradientMode.ANALYTIC
    derivative_check: bool = False

    def __post_init__(self):
        if self.max_fun_evals < 1:
            raise ValueError("max_fun_evals must be positive")
        if self.max_iter < 1:
            raise ValueError("max_iter must be positive")
        if self.opt_tol < 0 or self.prog_tol < 0:
            raise ValueError("Tolerances must be non-negative")
        if self.method not in METHODS:
            raise ValueError(f"method must be one of: {METHODS}")
        if self.corrections < 0:
            raise ValueError("Number of corrections must be non-negative")
        if self.curvature_tol <= 0:
            raise ValueError("curvature_tol must be positive")
        if not 0 < self.c1 < 1:
            raise ValueError("c1 must be in (0, 1)")
        if not self.c1 < self.c2 < 1:
            raise ValueError("c2 must be in (c1, 1)")
        if self.max_ls < 1:
            raise ValueError("max_ls must be positive")
        if self.derivative_check and self.num_diff != GradientMode.ANALYTIC:
            raise ValueError("derivative_check needs an analytic gradient")

        # Accept plain ints for the enum fields
        object.__setattr__(self, "ls_init", LineSearchInit(self.ls_init))
        object.__setattr__(self, "ls_interp", Interpolation(self.ls_interp))
        object.__setattr__(self, "num_diff", GradientMode(self.num_diff))
