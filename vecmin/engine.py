"""
engine.py

Універсальний ітераційний двигун для запуску методів мінімізації (Optimizer).

Функціонал:
    - виконує цикл x_{k+1} = step(x_k) для довільного Optimizer;
    - перевіряє збіжність за зміною функції або точки з урахуванням масштабу
      (гібридний, відносний або абсолютний допуск);
    - формує трасу ітерацій (для графіків і діагностики);
    - фіксує причину зупинки ("f_change", "x_change", "method:...", "max_iter");
    - підтримує callback на кожній ітерації.

Невичерпання бюджету ітерацій – не помилка: результат повертається з
converged=False та stopped_by="max_iter".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from math import isfinite
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .errors import NumericalInstabilityError
from .functions import ArrayLike
from .optimizer_base import Optimizer, StepResult

logger = logging.getLogger(__name__)

CONVERGENCE_HYBRID = "hybrid"
CONVERGENCE_RELATIVE = "relative"
CONVERGENCE_ABSOLUTE = "absolute"
CONVERGENCE_MODES = (CONVERGENCE_HYBRID, CONVERGENCE_RELATIVE, CONVERGENCE_ABSOLUTE)

CRITERION_VALUE = "value"
CRITERION_POINT = "point"
CRITERIA = (CRITERION_VALUE, CRITERION_POINT)

_TINY = 1e-25


# ---------------------------------------------------------------------------
# Критерії збіжності
# ---------------------------------------------------------------------------

def _within(change: float, scale_a: float, scale_b: float, tol: float, mode: str) -> bool:
    if mode == CONVERGENCE_HYBRID:
        return change <= tol * max(1.0, 0.5 * (scale_a + scale_b))
    if mode == CONVERGENCE_RELATIVE:
        return 2.0 * change <= tol * (scale_a + scale_b) + _TINY
    if mode == CONVERGENCE_ABSOLUTE:
        return change <= tol
    raise ValueError(f"Невідомий режим збіжності '{mode}'. Доступні: {CONVERGENCE_MODES}.")


def converged(f_prev: float, f_new: float, tol: float, mode: str = CONVERGENCE_HYBRID) -> bool:
    """
    Чи мала зміна значення функції.

        hybrid   : |Δf| <= tol * max(1, (|f_prev| + |f_new|) / 2)
        relative : 2|Δf| <= tol * (|f_prev| + |f_new|) + 1e-25
        absolute : |Δf| <= tol

    Гібридний режим відносний для великих |f| та абсолютний поблизу нуля.
    """
    return _within(abs(f_new - f_prev), abs(f_prev), abs(f_new), tol, mode)


def point_converged(
    x_prev: ArrayLike,
    x_new: ArrayLike,
    tol: float,
    mode: str = CONVERGENCE_HYBRID,
) -> bool:
    """Те саме, що converged(), але для евклідової норми зміщення точки."""
    x_prev = np.asarray(x_prev, dtype=float)
    x_new = np.asarray(x_new, dtype=float)
    return _within(
        float(np.linalg.norm(x_new - x_prev)),
        float(np.linalg.norm(x_prev)),
        float(np.linalg.norm(x_new)),
        tol,
        mode,
    )


# ---------------------------------------------------------------------------
# Результати
# ---------------------------------------------------------------------------

@dataclass
class IterationResult:
    """
    Опис однієї ітерації (для методу Пауелла – одного обходу напрямків).

    Атрибути:
        index      - номер ітерації (0 – стартова точка)
        x          - точка x_k
        f          - значення f(x_k)
        step_norm  - ||x_k - x_{k-1}|| (для k = 0 дорівнює 0.0)
        meta       - додаткова інформація від методу
    """
    index: int
    x: np.ndarray
    f: float
    step_norm: float
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MinimizationResult:
    """
    Підсумок одного запуску мінімізації.

    Атрибути:
        point        - найкраща знайдена точка
        value        - f(point)
        iterations   - кількість виконаних ітерацій (обходів), без k = 0
        converged    - чи виконано критерій збіжності
        stopped_by   - причина зупинки ("f_change", "x_change", "max_iter", "method:...")
        func_evals   - кількість викликів цільової функції
        method_name  - назва методу
        trace        - траса ітерацій (порожня, якщо keep_trace=False)
        meta         - службова інформація методу (фінальний набір напрямків тощо)
    """
    point: np.ndarray
    value: float
    iterations: int
    converged: bool
    stopped_by: str
    func_evals: int = 0
    method_name: str = ""
    trace: List[IterationResult] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def values(self) -> np.ndarray:
        """Значення функції по ітераціях траси."""
        return np.array([rec.f for rec in self.trace], dtype=float)

    @property
    def path(self) -> np.ndarray:
        """Точки траси, масив форми (k + 1, n)."""
        if not self.trace:
            return np.empty((0, self.point.size), dtype=float)
        return np.vstack([rec.x for rec in self.trace])


IterationCallback = Callable[[IterationResult], None]


# ---------------------------------------------------------------------------
# Движок
# ---------------------------------------------------------------------------

class OptimizationEngine:
    """
    Движок, який керує ітераційним процесом для заданого Optimizer.

    Налаштування за замовчуванням (можуть бути переозначені у run()):
        tol          : допуск збіжності EPS (default: 1e-8)
        max_iter     : максимальна кількість ітерацій (default: 10000)
        convergence  : "hybrid" | "relative" | "absolute" (default: "hybrid")
        criterion    : "value" | "point" (default: "value")
        keep_trace   : чи зберігати трасу ітерацій (default: True)
    """

    def __init__(
        self,
        tol: float = 1e-8,
        max_iter: int = 10000,
        convergence: str = CONVERGENCE_HYBRID,
        criterion: str = CRITERION_VALUE,
        keep_trace: bool = True,
    ) -> None:
        self.tol_default = tol
        self.max_iter_default = max_iter
        self.convergence_default = convergence
        self.criterion_default = criterion
        self.keep_trace = keep_trace

    def run(
        self,
        optimizer: Optimizer,
        x0: ArrayLike,
        max_iter: Optional[int] = None,
        tol: Optional[float] = None,
        convergence: Optional[str] = None,
        criterion: Optional[str] = None,
        callback: Optional[IterationCallback] = None,
    ) -> MinimizationResult:
        """Запустити процес мінімізації з точки x0."""
        if x0 is None:
            raise ValueError("OptimizationEngine.run: стартову точку не задано (None).")
        x0 = np.array(x0, dtype=float)
        if x0.ndim != 1 or x0.size == 0:
            raise ValueError(
                f"OptimizationEngine.run: стартова точка має бути непорожнім вектором, форма {x0.shape}."
            )
        if not np.all(np.isfinite(x0)):
            raise ValueError("OptimizationEngine.run: стартова точка містить нескінченні значення.")

        dimension = optimizer.func.dimension
        if dimension is not None and dimension != x0.size:
            raise ValueError(
                f"OptimizationEngine.run: ціль має розмірність {dimension}, "
                f"а стартова точка – {x0.size}."
            )

        max_iter = max_iter if max_iter is not None else self.max_iter_default
        tol = tol if tol is not None else self.tol_default
        convergence = convergence or self.convergence_default
        criterion = criterion or self.criterion_default
        if criterion not in CRITERIA:
            raise ValueError(f"Невідомий критерій збіжності '{criterion}'. Доступні: {CRITERIA}.")

        optimizer.reset()
        f0 = optimizer.eval_f(x0)
        optimizer.initialize(x0, f0)

        iterations: List[IterationResult] = []

        def record(rec: IterationResult) -> None:
            if self.keep_trace:
                iterations.append(rec)
            if callback is not None:
                callback(rec)

        record(IterationResult(index=0, x=x0.copy(), f=f0, step_norm=0.0, meta={"initial": True}))

        x_k = x0.copy()
        f_k = f0
        n_iter = 0
        stopped_by = "max_iter"
        is_converged = False

        for k in range(1, max_iter + 1):
            step_res: StepResult = optimizer.step(x_k)
            x_next = np.asarray(step_res.x_new, dtype=float)
            f_next = float(step_res.f_new)
            meta = dict(step_res.meta or {})
            n_iter = k

            if not isfinite(f_next):
                raise NumericalInstabilityError(
                    f"{optimizer.name}: ітерація {k} дала f = {f_next!r}.",
                    point=x_next.copy(),
                    value=f_next,
                )

            record(
                IterationResult(
                    index=k,
                    x=x_next.copy(),
                    f=f_next,
                    step_norm=float(step_res.step_norm),
                    meta=meta,
                )
            )
            logger.debug(
                "%s: ітерація %d, f = %.12g, ||Δx|| = %.3g", optimizer.name, k, f_next, step_res.step_norm
            )

            method_stopped = meta.get("stopped_by")
            if method_stopped is not None:
                stopped_by = f"method:{method_stopped}"
                is_converged = bool(meta.get("converged", False))
                x_k, f_k = x_next, f_next
                break

            if criterion == CRITERION_VALUE:
                done = converged(f_k, f_next, tol, convergence)
            else:
                done = point_converged(x_k, x_next, tol, convergence)

            x_k, f_k = x_next, f_next

            if done:
                stopped_by = "f_change" if criterion == CRITERION_VALUE else "x_change"
                is_converged = True
                break

        if is_converged:
            logger.info("%s: збіжність за %d ітерацій, f = %.12g", optimizer.name, n_iter, f_k)
        else:
            logger.warning(
                "%s: зупинка без збіжності (%s) після %d ітерацій, f = %.12g",
                optimizer.name,
                stopped_by,
                n_iter,
                f_k,
            )

        return MinimizationResult(
            point=x_k.copy(),
            value=f_k,
            iterations=n_iter,
            converged=is_converged,
            stopped_by=stopped_by,
            func_evals=optimizer.func_evals,
            method_name=optimizer.name,
            trace=iterations,
            meta=dict(optimizer.state.get("result_meta", {})),
        )


__all__ = [
    "CONVERGENCE_HYBRID",
    "CONVERGENCE_RELATIVE",
    "CONVERGENCE_ABSOLUTE",
    "CONVERGENCE_MODES",
    "CRITERION_VALUE",
    "CRITERION_POINT",
    "CRITERIA",
    "converged",
    "point_converged",
    "IterationResult",
    "MinimizationResult",
    "IterationCallback",
    "OptimizationEngine",
]
