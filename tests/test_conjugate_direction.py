"""
Tests for the Powell conjugate-direction vector minimizer.

Includes the classic Rosenbrock and coupled Rosenbrock benchmarks, the
fixed-point (idempotence) and monotonicity properties, configuration
variants, and the invalid-argument / numerical / non-convergence outcomes.
"""

import logging

import numpy as np
import pytest

from vecmin.conjugate_direction import (
    ConjugateDirectionConfig,
    ConjugateDirectionVectorMinimizer,
    PowellMethod,
)
from vecmin.engine import IterationResult, MinimizationResult
from vecmin.errors import NumericalDomainError, NumericalInstabilityError
from vecmin.functions import FUNCTIONS, coupled_rosenbrock, quadratic_bowl, rosenbrock
from vecmin.line_search import BrentMinimizer1D, GoldenSectionMinimizer1D
from vecmin.vector_function import CallableObjective, CallableVectorFunction, SumOfSquaresObjective
from vecmin.vector_function_provider import PolynomialBasisProvider

ROSENBROCK_START = [-1.2, 1.0]
COUPLED_START = [1.3, 0.7, 0.8, 1.9, 1.2]


# =============================================================================
# Benchmarks
# =============================================================================

def test_rosenbrock(minimizer):
    result = minimizer.minimize(rosenbrock, ROSENBROCK_START)

    assert isinstance(result, MinimizationResult)
    assert result.converged
    assert result.stopped_by == "f_change"
    assert result.iterations <= 100000
    np.testing.assert_allclose(result.point, [1.0, 1.0], atol=5e-6)
    assert result.value < 1e-10
    assert result.func_evals > 0


def test_rosenbrock_relative_tolerance_is_precise():
    minimizer = ConjugateDirectionVectorMinimizer(
        BrentMinimizer1D(), tolerance=1e-10, max_iterations=100000, convergence="relative"
    )
    result = minimizer.minimize(CallableVectorFunction(rosenbrock, 2), ROSENBROCK_START)
    assert result.converged
    np.testing.assert_allclose(result.point, [1.0, 1.0], atol=1e-4)
    assert result.value < 1e-8


def test_coupled_rosenbrock_reaches_joint_minimum():
    minimizer = ConjugateDirectionVectorMinimizer(
        BrentMinimizer1D(), tolerance=1e-10, max_iterations=100000, convergence="relative"
    )
    result = minimizer.minimize(coupled_rosenbrock, COUPLED_START)
    assert result.converged
    assert result.iterations <= 100000
    np.testing.assert_allclose(result.point, np.ones(5), atol=5e-6)
    assert result.value < 1e-10


def test_separable_quadratic_converges_in_few_sweeps(minimizer):
    result = minimizer.minimize(quadratic_bowl, np.zeros(3))
    assert result.converged
    assert result.iterations <= 3
    np.testing.assert_allclose(result.point, FUNCTIONS["quadratic_bowl"].minimum, atol=1e-6)


@pytest.mark.parametrize("key", ["rosenbrock", "quadratic_bowl"])
def test_registry_functions(key):
    target = FUNCTIONS[key]
    minimizer = ConjugateDirectionVectorMinimizer(
        tolerance=1e-12, max_iterations=100000, convergence="relative"
    )
    start = target.minimum - 0.5
    result = minimizer.minimize(target.func, start)
    np.testing.assert_allclose(result.point, target.minimum, atol=1e-4)


# =============================================================================
# Properties
# =============================================================================

def test_restart_from_converged_point_is_fixed_point(minimizer):
    first = minimizer.minimize(rosenbrock, ROSENBROCK_START)
    second = minimizer.minimize(rosenbrock, first.point)
    assert second.converged
    assert second.iterations <= 1
    assert second.value <= first.value


@pytest.mark.parametrize(
    "func, start",
    [
        (rosenbrock, ROSENBROCK_START),
        (coupled_rosenbrock, COUPLED_START),
        (quadratic_bowl, [10.0, -3.0, 0.5]),
    ],
)
def test_values_are_non_increasing_across_sweeps(minimizer, func, start):
    result = minimizer.minimize(func, start)
    values = result.values
    assert values.size == result.iterations + 1
    assert np.all(np.diff(values) <= 0.0)


def test_callback_sees_every_sweep(minimizer):
    seen = []
    result = minimizer.minimize(quadratic_bowl, [1.0, 2.0, 3.0], callback=seen.append)
    assert all(isinstance(rec, IterationResult) for rec in seen)
    assert [rec.index for rec in seen] == list(range(result.iterations + 1))
    assert seen[0].meta["initial"] is True


def test_minimizer_is_reusable_and_deterministic(minimizer):
    a = minimizer.minimize(rosenbrock, ROSENBROCK_START)
    b = minimizer.minimize(rosenbrock, ROSENBROCK_START)
    np.testing.assert_array_equal(a.point, b.point)
    assert a.iterations == b.iterations


def test_start_point_is_not_modified(minimizer):
    start = np.array([-1.2, 1.0])
    minimizer.minimize(rosenbrock, start)
    np.testing.assert_array_equal(start, [-1.2, 1.0])


# =============================================================================
# Configuration variants
# =============================================================================

def test_golden_section_line_minimizer_by_name():
    minimizer = ConjugateDirectionVectorMinimizer("golden_section", tolerance=1e-10)
    assert isinstance(minimizer.line_minimizer, GoldenSectionMinimizer1D)
    result = minimizer.minimize(quadratic_bowl, np.zeros(3))
    np.testing.assert_allclose(result.point, np.full(3, 4.0), atol=1e-5)


def test_oldest_direction_update():
    minimizer = ConjugateDirectionVectorMinimizer(tolerance=1e-10, direction_update="oldest")
    result = minimizer.minimize(lambda x: (x[0] - 1.0) ** 2 + (x[0] - x[1]) ** 2, [0.0, 0.0])
    assert result.converged
    np.testing.assert_allclose(result.point, [1.0, 1.0], atol=1e-4)


def test_direction_reset():
    minimizer = ConjugateDirectionVectorMinimizer(tolerance=1e-12, reset_every=1, convergence="absolute")
    result = minimizer.minimize(lambda x: (x[0] - 1.0) ** 2 + 10.0 * (x[0] - x[1]) ** 2, [0.0, 0.0])
    np.testing.assert_allclose(result.point, [1.0, 1.0], atol=1e-4)
    assert result.iterations >= 2
    assert result.trace[2].meta["directions_reset"] is True


def test_point_criterion():
    minimizer = ConjugateDirectionVectorMinimizer(tolerance=1e-8, criterion="point")
    result = minimizer.minimize(quadratic_bowl, np.zeros(3))
    assert result.converged
    assert result.stopped_by == "x_change"


def test_trace_can_be_disabled():
    minimizer = ConjugateDirectionVectorMinimizer(keep_trace=False)
    result = minimizer.minimize(quadratic_bowl, np.zeros(3))
    assert result.trace == []
    assert result.converged


def test_result_meta_holds_direction_set(minimizer):
    result = minimizer.minimize(rosenbrock, ROSENBROCK_START)
    directions = result.meta["directions"]
    assert directions.shape == (2, 2)
    assert np.linalg.matrix_rank(directions) == 2


def test_config_object_and_overrides():
    config = ConjugateDirectionConfig(tolerance=1e-6, max_iterations=50)
    minimizer = ConjugateDirectionVectorMinimizer(config=config, max_iterations=75)
    assert minimizer.tolerance == 1e-6
    assert minimizer.max_iterations == 75
    assert config.max_iterations == 50


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tolerance": 0.0},
        {"tolerance": float("nan")},
        {"max_iterations": 0},
        {"convergence": "bogus"},
        {"criterion": "gradient"},
        {"direction_update": "random"},
        {"reset_every": 0},
        {"initial_step": -1.0},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        ConjugateDirectionVectorMinimizer(**kwargs)


def test_invalid_line_minimizer_type():
    with pytest.raises(TypeError):
        ConjugateDirectionVectorMinimizer(line_minimizer=object())


# =============================================================================
# Failure modes
# =============================================================================

def test_budget_exhausted_is_reported_not_raised(caplog):
    minimizer = ConjugateDirectionVectorMinimizer(tolerance=1e-12, max_iterations=2)
    with caplog.at_level(logging.INFO, logger="vecmin"):
        result = minimizer.minimize(rosenbrock, ROSENBROCK_START)
    assert not result.converged
    assert result.stopped_by == "max_iter"
    assert result.iterations == 2
    assert result.value < rosenbrock(ROSENBROCK_START)

    budget_warnings = [
        rec for rec in caplog.records
        if rec.name == "vecmin.engine" and rec.levelno == logging.WARNING
    ]
    assert len(budget_warnings) == 1
    assert "max_iter" in budget_warnings[0].getMessage()


def test_convergence_is_logged_at_info(minimizer, caplog):
    with caplog.at_level(logging.INFO, logger="vecmin"):
        result = minimizer.minimize(quadratic_bowl, np.zeros(3))
    assert result.converged
    engine_records = [rec for rec in caplog.records if rec.name == "vecmin.engine"]
    assert [rec.levelno for rec in engine_records] == [logging.INFO]


@pytest.mark.parametrize("start", [[0.0, 0.0, 0.0], [1.0], []])
def test_dimension_mismatch_for_vector_function(minimizer, start):
    objective = CallableVectorFunction(rosenbrock, size_of_domain=2)
    with pytest.raises(ValueError):
        minimizer.minimize(objective, start)


def test_dimension_mismatch_for_scalar_objective(minimizer):
    with pytest.raises(ValueError):
        minimizer.minimize(CallableObjective(quadratic_bowl, dimension=3), [0.0, 0.0])


def test_vector_valued_objective_needs_reduction(minimizer):
    two_valued = CallableVectorFunction(lambda x: x, size_of_domain=2, size_of_range=2)
    with pytest.raises(ValueError):
        minimizer.minimize(two_valued, [1.0, 1.0])


def test_missing_arguments(minimizer):
    with pytest.raises(ValueError):
        minimizer.minimize(None, [0.0, 0.0])
    with pytest.raises(ValueError):
        minimizer.minimize(rosenbrock, None)


def test_non_finite_start_point_is_invalid(minimizer):
    with pytest.raises(ValueError):
        minimizer.minimize(rosenbrock, [np.nan, 1.0])


def test_non_finite_value_at_start(minimizer):
    with pytest.raises(NumericalDomainError):
        minimizer.minimize(lambda x: float("nan"), [0.0, 0.0])


def test_non_finite_value_during_search(minimizer):
    def objective(x):
        if x[0] < -0.5:
            return float("nan")
        return float(x[0] ** 2 + x[1] ** 2)

    with pytest.raises(NumericalInstabilityError):
        minimizer.minimize(objective, [0.0, 0.0])


# =============================================================================
# Curve fitting through a provider
# =============================================================================

def test_fit_polynomial_weights_through_sum_of_squares():
    xs = np.linspace(-1.0, 1.0, 9)
    model = PolynomialBasisProvider(degree=2).from_points(xs)
    true_weights = np.array([0.5, -1.0, 2.0])
    objective = SumOfSquaresObjective(model, observed=model.evaluate(true_weights))

    minimizer = ConjugateDirectionVectorMinimizer(tolerance=1e-14, max_iterations=1000, convergence="absolute")
    result = minimizer.minimize(objective, np.zeros(3))

    assert result.converged
    np.testing.assert_allclose(result.point, true_weights, atol=1e-4)


def test_powell_method_step_directly():
    method = PowellMethod(quadratic_bowl)
    method.reset()
    method.initialize(np.zeros(3))
    step = method.step(np.zeros(3))
    np.testing.assert_allclose(step.x_new, np.full(3, 4.0), atol=1e-6)
    assert step.meta["sweep"] == 1
    assert method.func_evals > 0


def test_powell_method_keyword_construction():
    config = ConjugateDirectionConfig(initial_step=0.5)
    method = PowellMethod(func=quadratic_bowl, line_minimizer=GoldenSectionMinimizer1D(), config=config)
    assert method.config is config
    assert isinstance(method.line_minimizer, GoldenSectionMinimizer1D)
    assert not hasattr(method, "options")
    with pytest.raises(TypeError):
        PowellMethod(func=quadratic_bowl, options={"tol": 1e-6})
