"""
errors.py

Ієрархія винятків бібліотеки мінімізації.

    MinimizationError
        ├── NumericalDomainError        – нескінченне / NaN значення функції
        │       └── NumericalInstabilityError – те саме, але під час
        │                                       багатовимірного пошуку
        └── BracketingError             – не вдалося побудувати дужку мінімуму

Некоректні аргументи (None, невірна розмірність, погана конфігурація)
повідомляються стандартним ValueError. Невичерпання бюджету ітерацій НЕ є
винятком: див. MinimizationResult.converged.
"""

from __future__ import annotations


class MinimizationError(Exception):
    """Базовий клас для помилок процесу мінімізації."""


class NumericalDomainError(MinimizationError, ArithmeticError):
    """
    Функція повернула нескінченне значення або NaN.

    Атрибути:
        point - аргумент, у якому отримано значення (якщо відомий)
        value - отримане значення
    """

    def __init__(self, message: str, point=None, value=None) -> None:
        super().__init__(message)
        self.point = point
        self.value = value


class NumericalInstabilityError(NumericalDomainError):
    """Одномірний пошук всередині векторного мінімізатора дав нескінченне значення."""


class BracketingError(MinimizationError):
    """Не вдалося знайти трійку a < b < c з f(b) <= min(f(a), f(c))."""


__all__ = [
    "MinimizationError",
    "NumericalDomainError",
    "NumericalInstabilityError",
    "BracketingError",
]
