"""
optimizer_base.py

Базові класи для ітераційних методів мінімізації без похідних (Strategy).

Ідея:
    - Є абстрактний клас Optimizer, від якого наслідуються конкретні методи
      (див. conjugate_direction.PowellMethod).
    - Кожен метод реалізує _step_impl(), а движок (engine.OptimizationEngine)
      викликає step() і вирішує, коли зупинитися.

Формат:
    step(x_k: np.ndarray) -> StepResult
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from math import isfinite
from typing import Any, Dict, Optional

import numpy as np

from .errors import NumericalDomainError
from .functions import ArrayLike
from .vector_function import ScalarObjective, as_scalar_objective


@dataclass
class StepResult:
    """
    Результат одного кроку (для методу Пауелла – одного повного обходу).

    Атрибути:
        x_new     - нова точка пошуку x_{k+1}
        f_new     - значення функції f(x_{k+1})
        step_norm - норма кроку ||x_{k+1} - x_k||
        meta      - додаткова інформація (замінений напрямок, тощо)
    """
    x_new: np.ndarray
    f_new: float
    step_norm: float
    meta: Dict[str, Any] = field(default_factory=dict)


class Optimizer(ABC):
    """
    Абстрактний базовий клас для методів мінімізації.

    Використання:
        opt = PowellMethod(func=..., line_minimizer=..., config=...)
        opt.reset()
        opt.initialize(x0, f0)
        res = opt.step(x_k)  # StepResult

    Внутрішній стан (self.state) належить одному запуску і очищується
    в reset(); один екземпляр не можна використовувати з кількох потоків
    одночасно.
    """

    def __init__(
        self,
        func,
        name: Optional[str] = None,
    ) -> None:
        self.func: ScalarObjective = as_scalar_objective(func)
        self.name: str = name or self.__class__.__name__

        self.func_evals: int = 0
        self.state: Dict[str, Any] = {}

    def eval_f(self, x: ArrayLike) -> float:
        """
        Обчислити f(x) та збільшити лічильник викликів функції.
        Нескінченне значення або NaN – NumericalDomainError.
        """
        self.func_evals += 1
        x_arr = np.asarray(x, dtype=float)
        value = float(self.func(x_arr))
        if not isfinite(value):
            raise NumericalDomainError(
                f"{self.name}: f(x) = {value!r} у точці {x_arr.tolist()}.",
                point=x_arr.copy(),
                value=value,
            )
        return value

    def reset(self) -> None:
        """Скинути внутрішній стан та лічильники перед новим запуском."""
        self.func_evals = 0
        self.state.clear()

    def initialize(self, x0: ArrayLike, f0: Optional[float] = None) -> None:
        """
        Ініціалізувати внутрішній стан для початкової точки x0.
        Якщо f0 = f(x0) вже відоме (движок рахує його сам), повторно не обчислюється.
        """
        x0 = np.asarray(x0, dtype=float)
        self.state["x0"] = x0
        self.state["f0"] = self.eval_f(x0) if f0 is None else float(f0)

    def step(self, x_k: ArrayLike) -> StepResult:
        """
        Виконати один крок методу з поточної точки x_k.

        Повертає:
            StepResult(x_new, f_new, step_norm, meta)
        """
        x_k_arr = np.asarray(x_k, dtype=float)
        result = self._step_impl(x_k_arr)

        if not isinstance(result, StepResult):
            raise TypeError(
                f"{self.__class__.__name__}._step_impl() "
                f"повинен повертати StepResult, отримано: {type(result)}"
            )

        return result

    @abstractmethod
    def _step_impl(self, x_k: np.ndarray) -> StepResult:
        raise NotImplementedError


__all__ = [
    "StepResult",
    "Optimizer",
]
