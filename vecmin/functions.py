"""
functions.py

Допоміжні типи, чисельні похідні та тестові цільові функції.

Формат:
    - усі функції працюють з вектором x: numpy.ndarray форми (n,);
    - реалізовані:
        rosenbrock          – класична функція Розенброка (n = 2)
        coupled_rosenbrock  – зв'язана сума доданків Розенброка (n >= 2)
        quadratic_bowl      – зсунута квадратична форма (n довільне)
    - є реєстр FUNCTIONS для вибору функції в тестах / прикладах.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

ArrayLike = np.ndarray
ScalarFunction = Callable[[ArrayLike], float]
Scalar1DFunction = Callable[[float], float]
VectorCallable = Callable[[ArrayLike], ArrayLike]


# ---------------------------------------------------------------------------
# Чисельні похідні (центральні різниці)
# ---------------------------------------------------------------------------

def numerical_jacobian(
    func: VectorCallable,
    x: ArrayLike,
    h: float = 1e-6,
) -> ArrayLike:
    """
    Чисельна матриця Якобі за центральною різницею.

    J[:, j] ≈ (F(x + h e_j) - F(x - h e_j)) / (2h)

    Для скалярної функції повертає матрицю форми (1, n).
    """
    x = np.asarray(x, dtype=float)
    n = x.size
    columns = []

    for j in range(n):
        x_fwd = x.copy()
        x_bwd = x.copy()
        x_fwd[j] += h
        x_bwd[j] -= h
        f_fwd = np.atleast_1d(np.asarray(func(x_fwd), dtype=float))
        f_bwd = np.atleast_1d(np.asarray(func(x_bwd), dtype=float))
        columns.append((f_fwd - f_bwd) / (2.0 * h))

    if not columns:
        return np.zeros((0, 0), dtype=float)
    return np.column_stack(columns)


# ---------------------------------------------------------------------------
# Тестові цільові функції
# ---------------------------------------------------------------------------

def rosenbrock(x: ArrayLike) -> float:
    """
    f(x, y) = (1 - x)^2 + 100 * (y - x^2)^2

    Мінімум f(1, 1) = 0 на дні довгої вигнутої долини.
    """
    x1, x2 = np.asarray(x, dtype=float)
    return float((1.0 - x1) ** 2 + 100.0 * (x2 - x1 ** 2) ** 2)


def coupled_rosenbrock(x: ArrayLike) -> float:
    """
    f(x) = sum_{i=0}^{n-2} [ (1 - x_i)^2 + 100 * (x_{i+1} - x_i^2)^2 ]

    Кожен доданок зв'язує сусідні координати, тому мінімізація по блоках
    окремо неможлива. Глобальний мінімум f(1, ..., 1) = 0.
    """
    x = np.asarray(x, dtype=float)
    if x.size < 2:
        raise ValueError("coupled_rosenbrock: потрібно щонайменше 2 змінні.")
    head = x[:-1]
    tail = x[1:]
    return float(np.sum((1.0 - head) ** 2 + 100.0 * (tail - head ** 2) ** 2))


def quadratic_bowl(x: ArrayLike) -> float:
    """
    f(x) = sum_i (i + 1) * (x_i - 4)^2

    Опукла квадратична форма з різними масштабами по осях, мінімум у (4, ..., 4).
    """
    x = np.asarray(x, dtype=float)
    weights = np.arange(1, x.size + 1, dtype=float)
    return float(np.sum(weights * (x - 4.0) ** 2))


def random_points(
    count: int,
    dimension: int,
    low: float = -1.0,
    high: float = 1.0,
    seed: Optional[int] = None,
) -> ArrayLike:
    """
    Масив форми (count, dimension) рівномірно розподілених точок.

    Генератор створюється з явного seed на кожен виклик, глобальний стан
    numpy.random не використовується.
    """
    if count < 0 or dimension < 0:
        raise ValueError("random_points: count і dimension мають бути невід'ємними.")
    rng = np.random.default_rng(seed)
    return rng.uniform(low, high, size=(count, dimension))


# ---------------------------------------------------------------------------
# Реєстр функцій
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TargetFunction:
    key: str
    name: str
    func: ScalarFunction
    dimension: int
    minimum: ArrayLike


FUNCTIONS: Dict[str, TargetFunction] = {
    "rosenbrock": TargetFunction(
        key="rosenbrock",
        name="f(x, y) = (1 - x)^2 + 100 * (y - x^2)^2",
        func=rosenbrock,
        dimension=2,
        minimum=np.ones(2),
    ),
    "coupled_rosenbrock": TargetFunction(
        key="coupled_rosenbrock",
        name="f(x) = sum (1 - x_i)^2 + 100 * (x_{i+1} - x_i^2)^2, n = 5",
        func=coupled_rosenbrock,
        dimension=5,
        minimum=np.ones(5),
    ),
    "quadratic_bowl": TargetFunction(
        key="quadratic_bowl",
        name="f(x) = sum (i + 1) * (x_i - 4)^2, n = 3",
        func=quadratic_bowl,
        dimension=3,
        minimum=np.full(3, 4.0),
    ),
}

__all__ = [
    "ArrayLike",
    "ScalarFunction",
    "Scalar1DFunction",
    "VectorCallable",
    "numerical_jacobian",
    "rosenbrock",
    "coupled_rosenbrock",
    "quadratic_bowl",
    "random_points",
    "TargetFunction",
    "FUNCTIONS",
]
