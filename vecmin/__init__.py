"""
vecmin – мінімізація функцій багатьох змінних без похідних.

    VectorFunction / VectorFunctionProvider   – що мінімізувати;
    BrentMinimizer1D, GoldenSectionMinimizer1D – одномірний пошук;
    ConjugateDirectionVectorMinimizer          – метод Пауелла.
"""

import logging

from .conjugate_direction import (
    ConjugateDirectionConfig,
    ConjugateDirectionVectorMinimizer,
    PowellMethod,
)
from .engine import IterationResult, MinimizationResult, OptimizationEngine
from .errors import (
    BracketingError,
    MinimizationError,
    NumericalDomainError,
    NumericalInstabilityError,
)
from .line_search import (
    BrentMinimizer1D,
    GoldenSectionMinimizer1D,
    LineMinimizer,
    LineSearchResult,
    bracket_minimum,
    make_line_minimizer,
)
from .vector_function import (
    CallableVectorFunction,
    ConcatenatedVectorFunction,
    ScalarObjective,
    SumOfSquaresObjective,
    VectorFunction,
    as_scalar_objective,
)
from .vector_function_provider import (
    BasisFunctionProvider,
    PolynomialBasisProvider,
    VectorFunctionProvider,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ConjugateDirectionConfig",
    "ConjugateDirectionVectorMinimizer",
    "PowellMethod",
    "IterationResult",
    "MinimizationResult",
    "OptimizationEngine",
    "BracketingError",
    "MinimizationError",
    "NumericalDomainError",
    "NumericalInstabilityError",
    "BrentMinimizer1D",
    "GoldenSectionMinimizer1D",
    "LineMinimizer",
    "LineSearchResult",
    "bracket_minimum",
    "make_line_minimizer",
    "CallableVectorFunction",
    "ConcatenatedVectorFunction",
    "ScalarObjective",
    "SumOfSquaresObjective",
    "VectorFunction",
    "as_scalar_objective",
    "BasisFunctionProvider",
    "PolynomialBasisProvider",
    "VectorFunctionProvider",
]
