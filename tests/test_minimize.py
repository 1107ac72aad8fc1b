import logging

import numpy as np
import pytest
from scipy.optimize import rosen

from objectives import Counting, quadratic, random_spd, rosenbrock, shifted_quadratic
from qnmin.errors import IllegalDirectionError
from qnmin.minimize import ExitFlag, StopReason, l_bfgs, minimize
from qnmin.options import GradientMode, Interpolation, LineSearchInit, MinimizeOptions
from qnmin.utils.numdiff import check_gradient


logging.basicConfig(level=logging.INFO)


def half_squared_norm(x):
    return 0.5 * x.dot(x), x.copy()


################################################################################
# Termination
################################################################################


def test_optimal_starting_point():
    fun = Counting(rosenbrock)
    x0 = np.ones(3)
    result = minimize(fun, x0)

    assert result.exit_flag == ExitFlag.OPTIMAL
    assert result.reason == StopReason.OPTIMALITY
    assert result.success
    assert result.nit == 0
    assert result.nfev == fun.calls == 1
    assert np.array_equal(result.x, x0)
    assert result.x is not x0


def test_rosenbrock():
    result = minimize(rosenbrock, np.array([-1.2, 1.0]))
    assert result.exit_flag in (ExitFlag.OPTIMAL, ExitFlag.NO_PROGRESS)
    assert np.allclose(result.x, 1.0, atol=1e-3)
    assert np.isclose(result.fun, rosen(result.x))
    assert result.algorithm == "lbfgs"


def test_rosenbrock_higher_dimension():
    result = l_bfgs(rosenbrock, np.zeros(10), corrections=10)
    assert np.allclose(result.x, 1.0, atol=1e-2)


@pytest.mark.parametrize("p", [2, 10, 30])
def test_quadratic_converges_within_dimension_iterations(p):
    rng = np.random.default_rng(p)
    A = random_spd(rng, p)
    x_star = rng.standard_normal(p)
    options = MinimizeOptions(corrections=p, c1=1e-10, c2=1e-8, prog_tol=1e-20)

    result = minimize(shifted_quadratic, np.zeros(p), A, x_star, options=options)
    assert result.exit_flag == ExitFlag.OPTIMAL
    assert result.nit <= p
    assert result.first_order_opt <= options.opt_tol


def test_quadratic_with_defaults():
    rng = np.random.default_rng(17)
    p = 20
    A = random_spd(rng, p)
    b = rng.standard_normal(p)

    result = minimize(quadratic, np.zeros(p), A, b)
    assert result.exit_flag != ExitFlag.BUDGET_EXHAUSTED
    assert np.allclose(result.x, np.linalg.solve(A, b), atol=1e-3)


def test_function_values_do_not_increase():
    result = minimize(rosenbrock, np.array([-1.2, 1.0]))
    fs = [f for _, f in result.trace]
    assert len(fs) == result.nit + 1
    assert all(f_next <= f for f, f_next in zip(fs, fs[1:]))


def test_trace_counts_evaluations():
    fun = Counting(rosenbrock)
    result = minimize(fun, np.array([-1.2, 1.0]))
    evals = [n for n, _ in result.trace]
    assert evals[0] == 1
    assert all(n_next > n for n, n_next in zip(evals, evals[1:]))
    assert evals[-1] == result.nfev == fun.calls


def test_max_iter():
    options = MinimizeOptions(max_iter=3)
    result = minimize(rosenbrock, np.array([-1.2, 1.0]), options=options)
    assert result.exit_flag == ExitFlag.BUDGET_EXHAUSTED
    assert result.reason == StopReason.MAX_ITER
    assert result.nit == 3
    assert result.message == "Reached Maximum Number of Iterations"


def test_max_fun_evals():
    options = MinimizeOptions(max_fun_evals=5)
    result = minimize(rosenbrock, np.array([-1.2, 1.0]), options=options)
    assert result.exit_flag == ExitFlag.BUDGET_EXHAUSTED
    assert result.reason == StopReason.MAX_FUN_EVALS
    assert 5 <= result.nfev <= 5 + options.max_ls + 1


def test_non_descent_direction():
    # max|g| is above opt_tol, but g'd = -|g|^2 is above -prog_tol
    x0 = np.array([1e-2, 0.0])
    options = MinimizeOptions(opt_tol=1e-6, prog_tol=1e-3)
    result = minimize(half_squared_norm, x0, options=options)
    assert result.exit_flag == ExitFlag.NO_PROGRESS
    assert result.reason == StopReason.DIRECTIONAL_DERIVATIVE
    assert result.nit == 0
    assert np.array_equal(result.x, x0)


def test_step_size_below_prog_tol():
    x0 = np.array([1.0, 2.0])

    def fun(x):
        if np.array_equal(x, x0):
            return 0.5 * x.dot(x), x.copy()
        return np.inf, np.full_like(x, np.nan)

    result = minimize(fun, x0)
    assert result.reason == StopReason.STEP_SIZE
    assert result.exit_flag == ExitFlag.NO_PROGRESS
    assert result.nit == 1
    assert np.array_equal(result.x, x0)


def test_lack_of_progress():
    options = MinimizeOptions(prog_tol=1e-2)
    result = minimize(rosenbrock, np.array([-1.2, 1.0]), options=options)
    assert result.exit_flag == ExitFlag.NO_PROGRESS
    assert result.reason in (
        StopReason.DIRECTIONAL_DERIVATIVE,
        StopReason.STEP_SIZE,
        StopReason.FUNCTION_CHANGE,
    )


def test_illegal_direction_raises():
    def fun(x):
        return 1.0, np.array([np.nan, 1.0])

    with pytest.raises(IllegalDirectionError) as exc_info:
        minimize(fun, np.zeros(2))
    assert exc_info.value.iteration == 1


################################################################################
# Directions and line search options
################################################################################


def test_zero_corrections_is_steepest_descent():
    x0 = np.array([-1.2, 1.0])
    options = MinimizeOptions(max_iter=20)
    lbfgs = l_bfgs(rosenbrock, x0, corrections=0, max_iter=20)
    sd = minimize(rosenbrock, x0, options=MinimizeOptions(method="sd", max_iter=20))

    assert np.array_equal(lbfgs.x, sd.x)
    assert lbfgs.trace == sd.trace
    assert sd.algorithm == "sd"
    # Using curvature pairs changes the path
    assert not np.array_equal(minimize(rosenbrock, x0, options=options).x, sd.x)


@pytest.mark.parametrize("ls_init", list(LineSearchInit))
def test_initial_step_policies(ls_init):
    options = MinimizeOptions(ls_init=ls_init)
    result = minimize(rosenbrock, np.array([-1.2, 1.0]), options=options)
    assert np.allclose(result.x, 1.0, atol=1e-2)


def test_bisection_line_search():
    options = MinimizeOptions(ls_interp=Interpolation.BISECTION)
    result = minimize(rosenbrock, np.array([-1.2, 1.0]), options=options)
    assert np.allclose(result.x, 1.0, atol=1e-2)


def test_extra_arguments_and_callback():
    rng = np.random.default_rng(7)
    p = 5
    A = random_spd(rng, p)
    b = rng.standard_normal(p)
    calls = []

    def callback(k, x, f, opt_cond):
        calls.append((k, f, opt_cond))

    result = minimize(quadratic, np.zeros(p), A, b, callback=callback)
    assert [k for k, _, _ in calls] == list(range(result.nit + 1))
    assert calls[-1][1] == result.fun
    assert calls[-1][2] == result.first_order_opt


################################################################################
# Gradient modes
################################################################################


@pytest.mark.parametrize(
    "num_diff, multiplier",
    [
        (GradientMode.FORWARD, lambda p: p + 1),
        (GradientMode.CENTRAL, lambda p: 2 * p + 1),
    ],
)
def test_numerical_gradient(num_diff, multiplier):
    rng = np.random.default_rng(3)
    p = 5
    A = random_spd(rng, p)
    b = rng.standard_normal(p)
    fun = Counting(lambda x: quadratic(x, A, b)[0])

    options = MinimizeOptions(num_diff=num_diff)
    result = minimize(fun, np.zeros(p), options=options)
    assert np.allclose(result.x, np.linalg.solve(A, b), atol=1e-3)
    assert result.nfev == fun.calls
    assert result.nfev % multiplier(p) == 0


def test_derivative_check(caplog):
    def wrong_gradient(x):
        f, g = rosenbrock(x)
        return f, 2 * g

    x = np.array([-1.2, 1.0])
    assert check_gradient(rosenbrock, x) < 1e-4
    with caplog.at_level(logging.WARNING):
        check_gradient(wrong_gradient, x)
    assert "differs" in caplog.text

    options = MinimizeOptions(derivative_check=True, max_iter=2)
    result = minimize(rosenbrock, x, options=options)
    assert result.nit == 2


################################################################################
# Invalid input
################################################################################


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(c1=0.0),
        dict(c1=0.5, c2=0.4),
        dict(c2=1.0),
        dict(method="cg"),
        dict(corrections=-1),
        dict(max_iter=0),
        dict(max_ls=0),
        dict(ls_init=7),
        dict(derivative_check=True, num_diff=GradientMode.CENTRAL),
    ],
)
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        MinimizeOptions(**kwargs)


def test_options_accept_ints_for_enums():
    options = MinimizeOptions(ls_init=2, ls_interp=0, num_diff=1)
    assert options.ls_init is LineSearchInit.QUADRATIC
    assert options.ls_interp is Interpolation.BISECTION
    assert options.num_diff is GradientMode.FORWARD


def test_gradient_shape_mismatch():
    with pytest.raises(ValueError):
        minimize(lambda x: (x.dot(x), np.ones(x.size + 1)), np.zeros(3))


def test_x0_must_be_vector():
    with pytest.raises(ValueError):
        minimize(rosenbrock, np.zeros((2, 2)))
