"""
Tests for the iteration engine and the scale-aware convergence checks.
"""

import numpy as np
import pytest

from vecmin.engine import (
    MinimizationResult,
    OptimizationEngine,
    converged,
    point_converged,
)
from vecmin.errors import NumericalDomainError, NumericalInstabilityError
from vecmin.optimizer_base import Optimizer, StepResult
from vecmin.vector_function import CallableObjective


class HalvingOptimizer(Optimizer):
    """x_{k+1} = x_k / 2; reaches the origin of a bowl geometrically."""

    def _step_impl(self, x_k):
        x_new = 0.5 * x_k
        return StepResult(x_new=x_new, f_new=self.eval_f(x_new), step_norm=float(np.linalg.norm(x_new - x_k)))


class StopAfterOneStep(Optimizer):
    def _step_impl(self, x_k):
        return StepResult(
            x_new=x_k,
            f_new=self.eval_f(x_k),
            step_norm=0.0,
            meta={"stopped_by": "stationary", "converged": True},
        )


class BrokenOptimizer(Optimizer):
    def _step_impl(self, x_k):
        return (x_k, 0.0)


class InfiniteStep(Optimizer):
    def _step_impl(self, x_k):
        return StepResult(x_new=x_k + 1.0, f_new=float("inf"), step_norm=1.0)


def bowl(x):
    return float(np.dot(x, x))


# =============================================================================
# Convergence checks
# =============================================================================

@pytest.mark.parametrize(
    "f_prev, f_new, tol, mode, expected",
    [
        (1.0, 1.0 - 1e-9, 1e-8, "hybrid", True),
        (1e6, 1e6 - 1e-3, 1e-8, "hybrid", True),
        (1e6, 1e6 - 1e-3, 1e-8, "absolute", False),
        (1e-3, 0.0, 1e-8, "hybrid", False),
        (1e-12, 0.0, 1e-8, "hybrid", True),
        (1e-12, 0.0, 1e-8, "relative", False),
        (0.0, 0.0, 1e-8, "relative", True),
        (2.0, 1.0, 0.5, "absolute", False),
        (1.5, 1.0, 0.5, "absolute", True),
    ],
)
def test_value_convergence_modes(f_prev, f_new, tol, mode, expected):
    assert converged(f_prev, f_new, tol, mode) is expected


def test_point_convergence():
    assert point_converged([1.0, 1.0], [1.0, 1.0 + 1e-10], 1e-8)
    assert not point_converged([0.0, 0.0], [0.0, 1e-3], 1e-8)
    assert point_converged([1e5, 0.0], [1e5 + 1e-4, 0.0], 1e-8)
    assert not point_converged([1e5, 0.0], [1e5 + 1e-4, 0.0], 1e-8, mode="absolute")


def test_unknown_convergence_mode():
    with pytest.raises(ValueError):
        converged(1.0, 0.5, 1e-8, mode="loose")


# =============================================================================
# Engine loop
# =============================================================================

def test_engine_runs_until_converged():
    engine = OptimizationEngine(tol=1e-10)
    result = engine.run(HalvingOptimizer(bowl), [4.0, -2.0])

    assert isinstance(result, MinimizationResult)
    assert result.converged
    assert result.stopped_by == "f_change"
    assert result.point.shape == (2,)
    assert result.value == pytest.approx(bowl(result.point))
    assert len(result.trace) == result.iterations + 1
    assert result.func_evals == result.iterations + 1
    assert result.method_name == "HalvingOptimizer"


def test_engine_point_criterion():
    result = OptimizationEngine(tol=1e-6, criterion="point").run(HalvingOptimizer(bowl), [1.0])
    assert result.stopped_by == "x_change"
    assert abs(result.point[0]) <= 2e-6


def test_engine_respects_iteration_budget():
    result = OptimizationEngine(tol=1e-12, max_iter=3).run(HalvingOptimizer(bowl), [1.0, 1.0])
    assert not result.converged
    assert result.stopped_by == "max_iter"
    assert result.iterations == 3
    np.testing.assert_allclose(result.point, [0.125, 0.125])


def test_run_overrides_engine_defaults():
    engine = OptimizationEngine(tol=1e-12, max_iter=10000)
    result = engine.run(HalvingOptimizer(bowl), [1.0], max_iter=2)
    assert result.iterations == 2


def test_method_can_stop_the_loop():
    result = OptimizationEngine().run(StopAfterOneStep(bowl), [1.0, 2.0])
    assert result.converged
    assert result.stopped_by == "method:stationary"
    assert result.iterations == 1


def test_callback_and_disabled_trace():
    seen = []
    engine = OptimizationEngine(tol=1e-6, keep_trace=False)
    result = engine.run(HalvingOptimizer(bowl), [1.0], callback=lambda rec: seen.append(rec.f))
    assert result.trace == []
    assert result.path.shape == (0, 1)
    assert len(seen) == result.iterations + 1
    assert seen[0] == 1.0


def test_step_must_return_step_result():
    with pytest.raises(TypeError):
        OptimizationEngine().run(BrokenOptimizer(bowl), [1.0])


def test_non_finite_step_value():
    with pytest.raises(NumericalInstabilityError):
        OptimizationEngine().run(InfiniteStep(bowl), [1.0])


def test_non_finite_start_value():
    with pytest.raises(NumericalDomainError):
        OptimizationEngine().run(HalvingOptimizer(lambda x: float("nan")), [1.0])


@pytest.mark.parametrize("x0", [None, [], [[1.0, 2.0]], [np.inf, 0.0]])
def test_invalid_start_points(x0):
    with pytest.raises(ValueError):
        OptimizationEngine().run(HalvingOptimizer(bowl), x0)


def test_start_dimension_must_match_objective():
    with pytest.raises(ValueError):
        OptimizationEngine().run(HalvingOptimizer(CallableObjective(bowl, dimension=3)), [1.0, 2.0])


def test_unknown_criterion():
    with pytest.raises(ValueError):
        OptimizationEngine(criterion="gradient").run(HalvingOptimizer(bowl), [1.0])


def test_result_path_and_values():
    result = OptimizationEngine(tol=1e-3).run(HalvingOptimizer(bowl), [2.0, 0.0])
    assert result.path.shape == (result.iterations + 1, 2)
    np.testing.assert_allclose(result.path[0], [2.0, 0.0])
    np.testing.assert_allclose(result.values, [bowl(x) for x in result.path])
