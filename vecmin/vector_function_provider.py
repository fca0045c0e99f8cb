"""
vector_function_provider.py

Фабрики векторних функцій, прив'язаних до набору точок даних.

Точки можна передати у трьох рівноцінних формах:
    - список / кортеж чисел                 -> from_list()
    - numpy-масив об'єктів (dtype=object)   -> from_boxed()
    - numpy-масив float                     -> from_array()
from_points() визначає форму сам. Конкретна фабрика реалізує лише
from_array(); обидві інші форми нормалізуються тут, в базовому класі,
тому результат не залежить від способу передачі точок.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from numbers import Real
from typing import Callable, Iterable, Sequence

import numpy as np

from .vector_function import VectorFunction, _as_input_vector


def _as_points(points, owner: str) -> np.ndarray:
    if points is None:
        raise ValueError(f"{owner}: точки не задано (None).")
    arr = np.asarray(points, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{owner}: очікується одномірний набір точок, форма {arr.shape}.")
    if arr.size == 0:
        raise ValueError(f"{owner}: набір точок порожній.")
    return arr


def _unbox(values: Iterable, owner: str) -> np.ndarray:
    result = []
    for i, value in enumerate(values):
        if value is None:
            raise ValueError(f"{owner}: точка #{i} не задана (None).")
        if not isinstance(value, (Real, np.number)) or isinstance(value, bool):
            raise ValueError(f"{owner}: точка #{i} не є дійсним числом: {value!r}.")
        result.append(float(value))
    return _as_points(result, owner)


class VectorFunctionProvider(ABC):
    """
    Фабрика VectorFunction для заданого набору точок.

    Використання:
        provider = PolynomialBasisProvider(degree=2)
        vf = provider.from_points([0.0, 0.5, 1.0])
        values = vf.evaluate(weights)
    """

    @abstractmethod
    def from_array(self, points: np.ndarray) -> VectorFunction:
        """Єдина операція, яку реалізують конкретні фабрики."""
        raise NotImplementedError

    def from_list(self, points: Sequence[float]) -> VectorFunction:
        name = f"{self.__class__.__name__}.from_list"
        if points is None:
            raise ValueError(f"{name}: список точок не задано (None).")
        return self.from_array(_unbox(points, name))

    def from_boxed(self, points: np.ndarray) -> VectorFunction:
        name = f"{self.__class__.__name__}.from_boxed"
        if points is None:
            raise ValueError(f"{name}: масив точок не задано (None).")
        boxed = np.asarray(points, dtype=object)
        if boxed.ndim != 1:
            raise ValueError(f"{name}: очікується одномірний масив, форма {boxed.shape}.")
        return self.from_array(_unbox(boxed.tolist(), name))

    def from_points(self, points) -> VectorFunction:
        """Прийняти точки у будь-якій з трьох форм."""
        name = f"{self.__class__.__name__}.from_points"
        if points is None:
            raise ValueError(f"{name}: точки не задано (None).")
        if isinstance(points, np.ndarray):
            if points.dtype == object:
                return self.from_boxed(points)
            if not np.issubdtype(points.dtype, np.number) or np.issubdtype(points.dtype, np.bool_):
                raise ValueError(f"{name}: непідтримуваний тип масиву {points.dtype}.")
            return self.from_array(_as_points(points, name))
        if isinstance(points, (str, bytes)):
            raise ValueError(f"{name}: рядок не є набором точок.")
        return self.from_list(list(points))


# ---------------------------------------------------------------------------
# Розклад за базисними функціями
# ---------------------------------------------------------------------------

class BasisExpansionFunction(VectorFunction):
    """
    y = A w, де A[i, j] = b_j(x_i).

    Область – ваги w (кількість базисних функцій),
    значення – розклад у кожній прив'язаній точці x_i.
    """

    def __init__(self, design_matrix: np.ndarray) -> None:
        design_matrix = np.array(design_matrix, dtype=float)
        n_points, n_basis = design_matrix.shape
        super().__init__(size_of_domain=n_basis, size_of_range=n_points)
        self._design = design_matrix
        self._design.setflags(write=False)

    @property
    def design_matrix(self) -> np.ndarray:
        return self._design

    def _evaluate(self, x: np.ndarray) -> np.ndarray:
        return self._design @ x

    def jacobian(self, x, h: float = 1e-6) -> np.ndarray:
        _as_input_vector(x, self.size_of_domain, self.__class__.__name__)
        return self._design.copy()


class BasisFunctionProvider(VectorFunctionProvider):
    """Фабрика лінійних розкладів за довільним набором базисних функцій b_j(x)."""

    def __init__(self, basis_functions: Sequence[Callable[[float], float]]) -> None:
        if not basis_functions:
            raise ValueError("BasisFunctionProvider: потрібна хоча б одна базисна функція.")
        self.basis_functions = list(basis_functions)

    def design_matrix(self, points: np.ndarray) -> np.ndarray:
        return np.array(
            [[float(b(x)) for b in self.basis_functions] for x in points],
            dtype=float,
        )

    def from_array(self, points: np.ndarray) -> VectorFunction:
        points = _as_points(points, f"{self.__class__.__name__}.from_array")
        return BasisExpansionFunction(self.design_matrix(points))


class PolynomialBasisProvider(BasisFunctionProvider):
    """Мономіальний базис 1, x, x^2, ..., x^degree."""

    def __init__(self, degree: int) -> None:
        if int(degree) < 0:
            raise ValueError("PolynomialBasisProvider: степінь має бути невід'ємним.")
        self.degree = int(degree)
        super().__init__([lambda x, k=k: x ** k for k in range(self.degree + 1)])

    def design_matrix(self, points: np.ndarray) -> np.ndarray:
        return np.vander(points, self.degree + 1, increasing=True)


__all__ = [
    "VectorFunctionProvider",
    "BasisExpansionFunction",
    "BasisFunctionProvider",
    "PolynomialBasisProvider",
]
