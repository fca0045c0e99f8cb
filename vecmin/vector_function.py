"""
vector_function.py

Абстракція "векторної функції" F: R^n -> R^m з фіксованими розмірностями
та адаптери, що зводять її до скалярної цільової функції.

Ідея:
    - VectorFunction відповідає лише за "як обчислити": перевіряє довжину
      входу та виходу і делегує обчислення в _evaluate();
    - мінімізатори працюють зі ScalarObjective (R^n -> R), тому векторну
      функцію перед пошуком потрібно звести до скаляра:
        * as_scalar_objective(...)   – якщо m = 1 або це звичайний callable;
        * SumOfSquaresObjective(...) – χ² відхилення від спостережень.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import numpy as np

from .functions import ArrayLike, numerical_jacobian


def _as_input_vector(x, expected: int, owner: str) -> np.ndarray:
    if x is None:
        raise ValueError(f"{owner}: вхідний вектор не задано (None).")
    arr = np.asarray(x, dtype=float)
    if arr.ndim != 1:
        raise ValueError(
            f"{owner}: очікується одномірний вектор, отримано масив форми {arr.shape}."
        )
    if arr.size != expected:
        raise ValueError(
            f"{owner}: довжина входу {arr.size} не відповідає розмірності області {expected}."
        )
    return arr


# ---------------------------------------------------------------------------
# Векторна функція
# ---------------------------------------------------------------------------

class VectorFunction(ABC):
    """
    Чиста функція F: R^n -> R^m.

    Атрибути:
        size_of_domain - n, довжина вхідного вектора
        size_of_range  - m, довжина результату

    Виклик evaluate() (або просто F(x)) з вектором іншої довжини – порушення
    контракту, яке завжди дає ValueError; вхід ніколи не обрізається і не
    доповнюється.
    """

    def __init__(self, size_of_domain: int, size_of_range: int) -> None:
        if int(size_of_domain) < 1 or int(size_of_range) < 1:
            raise ValueError(
                "VectorFunction: розмірності області та значень мають бути додатними."
            )
        self._size_of_domain = int(size_of_domain)
        self._size_of_range = int(size_of_range)

    @property
    def size_of_domain(self) -> int:
        return self._size_of_domain

    @property
    def size_of_range(self) -> int:
        return self._size_of_range

    def evaluate(self, x: ArrayLike) -> np.ndarray:
        """Обчислити F(x) з перевіркою розмірностей входу та виходу."""
        name = self.__class__.__name__
        arr = _as_input_vector(x, self._size_of_domain, name)
        out = np.atleast_1d(np.asarray(self._evaluate(arr.copy()), dtype=float))
        if out.ndim != 1 or out.size != self._size_of_range:
            raise ValueError(
                f"{name}._evaluate() повернув {out.size} значень, "
                f"очікувалось {self._size_of_range}."
            )
        return out

    def __call__(self, x: ArrayLike) -> np.ndarray:
        return self.evaluate(x)

    def jacobian(self, x: ArrayLike, h: float = 1e-6) -> np.ndarray:
        """
        Матриця Якобі форми (m, n) за центральними різницями.
        Підкласи з аналітичною похідною можуть переозначити метод.
        """
        arr = _as_input_vector(x, self._size_of_domain, self.__class__.__name__)
        return numerical_jacobian(self.evaluate, arr, h=h)

    @abstractmethod
    def _evaluate(self, x: np.ndarray) -> ArrayLike:
        """Обчислення для вже перевіреного вектора x довжини size_of_domain."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(size_of_domain={self._size_of_domain}, size_of_range={self._size_of_range})"
        )


class CallableVectorFunction(VectorFunction):
    """Обгортка довільного Python callable у VectorFunction."""

    def __init__(
        self,
        func: Callable[[np.ndarray], ArrayLike],
        size_of_domain: int,
        size_of_range: int = 1,
    ) -> None:
        if func is None:
            raise ValueError("CallableVectorFunction: func не задано.")
        super().__init__(size_of_domain, size_of_range)
        self._func = func

    def _evaluate(self, x: np.ndarray) -> ArrayLike:
        return self._func(x)


class ConcatenatedVectorFunction(VectorFunction):
    """
    Об'єднання кількох векторних функцій у одну.

    Вхід довжини sum(n_i) ділиться на послідовні частини за розмірностями
    областей компонентів, результати конкатенуються:
        F(x_1 | x_2 | ...) = (F_1(x_1) | F_2(x_2) | ...)
    """

    def __init__(self, functions: Sequence[VectorFunction]) -> None:
        if functions is None or len(functions) == 0:
            raise ValueError("ConcatenatedVectorFunction: потрібна хоча б одна функція.")
        for func in functions:
            if not isinstance(func, VectorFunction):
                raise TypeError(
                    f"ConcatenatedVectorFunction: очікується VectorFunction, отримано {type(func)}."
                )
        self._functions = list(functions)
        sizes = [f.size_of_domain for f in self._functions]
        self._splits = np.cumsum(sizes)[:-1]
        super().__init__(
            size_of_domain=sum(sizes),
            size_of_range=sum(f.size_of_range for f in self._functions),
        )

    @property
    def functions(self):
        return tuple(self._functions)

    def _evaluate(self, x: np.ndarray) -> ArrayLike:
        parts = np.split(x, self._splits)
        return np.concatenate(
            [func.evaluate(part) for func, part in zip(self._functions, parts)]
        )


# ---------------------------------------------------------------------------
# Скалярні цільові функції
# ---------------------------------------------------------------------------

class ScalarObjective(ABC):
    """
    Скалярна цільова функція f: R^n -> R, з якою працюють мінімізатори.

    dimension - n, якщо відома заздалегідь (None – довільна довжина).
    """

    dimension: Optional[int] = None

    @abstractmethod
    def value(self, x: np.ndarray) -> float:
        raise NotImplementedError

    def __call__(self, x: ArrayLike) -> float:
        arr = np.asarray(x, dtype=float)
        if self.dimension is not None:
            arr = _as_input_vector(arr, self.dimension, self.__class__.__name__)
        return float(self.value(arr))


class CallableObjective(ScalarObjective):
    """Звичайна функція Python f(x) -> float."""

    def __init__(self, func: Callable[[np.ndarray], float], dimension: Optional[int] = None) -> None:
        self._func = func
        self.dimension = dimension

    def value(self, x: np.ndarray) -> float:
        return float(self._func(x))


class VectorFunctionObjective(ScalarObjective):
    """Векторна функція з size_of_range == 1, що розглядається як скалярна."""

    def __init__(self, function: VectorFunction) -> None:
        if function.size_of_range != 1:
            raise ValueError(
                f"VectorFunctionObjective: функція повертає {function.size_of_range} значень; "
                "для векторного виходу використайте SumOfSquaresObjective."
            )
        self.function = function
        self.dimension = function.size_of_domain

    def value(self, x: np.ndarray) -> float:
        return float(self.function.evaluate(x)[0])


class SumOfSquaresObjective(ScalarObjective):
    """
    χ² = sum_i ((F_i(x) - y_i) / σ_i)^2

    Зводить векторну функцію моделі F до скаляра для задач підгонки кривих:
    observed – спостереження y (довжина size_of_range),
    sigma    – похибки σ_i (скаляр, вектор або None = 1).
    """

    def __init__(
        self,
        function: VectorFunction,
        observed: ArrayLike,
        sigma: Optional[ArrayLike] = None,
    ) -> None:
        if function is None or observed is None:
            raise ValueError("SumOfSquaresObjective: function та observed обов'язкові.")
        observed = np.asarray(observed, dtype=float)
        if observed.ndim != 1 or observed.size != function.size_of_range:
            raise ValueError(
                f"SumOfSquaresObjective: очікується {function.size_of_range} спостережень, "
                f"отримано {observed.size}."
            )
        if sigma is None:
            weights = np.ones_like(observed)
        else:
            weights = np.broadcast_to(np.asarray(sigma, dtype=float), observed.shape).copy()
            if np.any(weights <= 0.0):
                raise ValueError("SumOfSquaresObjective: усі σ мають бути додатними.")

        self.function = function
        self.observed = observed
        self.sigma = weights
        self.dimension = function.size_of_domain

    def residuals(self, x: ArrayLike) -> np.ndarray:
        """Нормовані відхилення (F(x) - y) / σ."""
        return (self.function.evaluate(x) - self.observed) / self.sigma

    def value(self, x: np.ndarray) -> float:
        r = self.residuals(x)
        return float(np.dot(r, r))


def as_scalar_objective(objective, dimension: Optional[int] = None) -> ScalarObjective:
    """
    Привести ціль до ScalarObjective:
        - ScalarObjective повертається як є;
        - VectorFunction з одним значенням обгортається;
        - будь-який callable стає CallableObjective.
    """
    if objective is None:
        raise ValueError("Цільову функцію не задано (None).")
    if isinstance(objective, ScalarObjective):
        return objective
    if isinstance(objective, VectorFunction):
        return VectorFunctionObjective(objective)
    if callable(objective):
        return CallableObjective(objective, dimension=dimension)
    raise TypeError(f"Непідтримуваний тип цільової функції: {type(objective)}")


__all__ = [
    "VectorFunction",
    "CallableVectorFunction",
    "ConcatenatedVectorFunction",
    "ScalarObjective",
    "CallableObjective",
    "VectorFunctionObjective",
    "SumOfSquaresObjective",
    "as_scalar_objective",
]
