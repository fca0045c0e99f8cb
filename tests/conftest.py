"""Shared fixtures for the vecmin test suite."""

import pytest

from vecmin.conjugate_direction import ConjugateDirectionVectorMinimizer
from vecmin.line_search import BrentMinimizer1D, GoldenSectionMinimizer1D


@pytest.fixture
def brent() -> BrentMinimizer1D:
    return BrentMinimizer1D()


@pytest.fixture(params=[BrentMinimizer1D, GoldenSectionMinimizer1D], ids=["brent", "golden"])
def line_minimizer(request):
    """Every line minimizer implementation, default settings."""
    return request.param()


@pytest.fixture
def minimizer() -> ConjugateDirectionVectorMinimizer:
    return ConjugateDirectionVectorMinimizer(BrentMinimizer1D(), tolerance=5e-6, max_iterations=100000)
