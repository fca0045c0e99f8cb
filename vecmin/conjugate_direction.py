"""
conjugate_direction.py

Метод спряжених напрямків Пауелла (без похідних).

Ідея:
    - стартовий набір напрямків – координатні осі e_1, ..., e_n;
    - один обхід (sweep): для кожного напрямку p_i будуємо
          φ(t) = f(x + t p_i),
      шукаємо t* одномірним мінімізатором і переходимо в x + t* p_i;
    - після обходу сумарне зміщення Δ = x_end - x_start є кандидатом у нові
      напрямки: якщо він корисний, нормований Δ замінює один зі старих
      напрямків і вздовж нього робиться ще одна одномірна мінімізація;
    - у квадратичній долині напрямки поступово стають спряженими, що
      прискорює рух по вигнутих "ярах" (функція Розенброка тощо).

Правила заміни напрямку (direction_update):
    "largest_decrease" : класичне правило Пауелла – відкидається напрямок,
                         уздовж якого був найбільший спад f (він уже
                         домінує в Δ), і лише якщо пройшов тест
                         2(f0 - 2f1 + fE)(f0 - f1 - Δf)^2 < Δf (f0 - fE)^2;
    "oldest"           : спрощений варіант – завжди відкидається перший
                         (найстаріший) напрямок.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from math import isfinite
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .engine import (
    CONVERGENCE_HYBRID,
    CONVERGENCE_MODES,
    CRITERIA,
    CRITERION_VALUE,
    IterationCallback,
    MinimizationResult,
    OptimizationEngine,
)
from .errors import NumericalDomainError, NumericalInstabilityError
from .functions import ArrayLike
from .line_search import LineMinimizer, BrentMinimizer1D, make_line_minimizer
from .optimizer_base import Optimizer, StepResult
from .vector_function import VectorFunction, as_scalar_objective

logger = logging.getLogger(__name__)

DIRECTION_UPDATE_LARGEST_DECREASE = "largest_decrease"
DIRECTION_UPDATE_OLDEST = "oldest"
DIRECTION_UPDATES = (DIRECTION_UPDATE_LARGEST_DECREASE, DIRECTION_UPDATE_OLDEST)


@dataclass(frozen=True)
class ConjugateDirectionConfig:
    """
    Налаштування мінімізатора (спільні для всіх запусків одного екземпляра).

        tolerance        : EPS для критерію збіжності (default: 1e-8)
        max_iterations   : максимум обходів (default: 10000)
        convergence      : "hybrid" | "relative" | "absolute"
        criterion        : "value" (зміна f) | "point" (зміна x)
        direction_update : "largest_decrease" | "oldest"
        reset_every      : кожні N обходів повертати напрямки до
                           координатних осей (None – ніколи)
        initial_step     : перший крок побудови дужки вздовж напрямку
        keep_trace       : зберігати трасу обходів у результаті
    """
    tolerance: float = 1e-8
    max_iterations: int = 10000
    convergence: str = CONVERGENCE_HYBRID
    criterion: str = CRITERION_VALUE
    direction_update: str = DIRECTION_UPDATE_LARGEST_DECREASE
    reset_every: Optional[int] = None
    initial_step: float = 1.0
    keep_trace: bool = True

    def __post_init__(self) -> None:
        if not (isfinite(self.tolerance) and self.tolerance > 0.0):
            raise ValueError(f"tolerance має бути додатним скінченним числом, отримано {self.tolerance!r}.")
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ValueError(f"max_iterations має бути цілим >= 1, отримано {self.max_iterations!r}.")
        if self.convergence not in CONVERGENCE_MODES:
            raise ValueError(f"convergence: '{self.convergence}', доступні {CONVERGENCE_MODES}.")
        if self.criterion not in CRITERIA:
            raise ValueError(f"criterion: '{self.criterion}', доступні {CRITERIA}.")
        if self.direction_update not in DIRECTION_UPDATES:
            raise ValueError(f"direction_update: '{self.direction_update}', доступні {DIRECTION_UPDATES}.")
        if self.reset_every is not None and self.reset_every < 1:
            raise ValueError("reset_every має бути >= 1 або None.")
        if not (isfinite(self.initial_step) and self.initial_step > 0.0):
            raise ValueError("initial_step має бути додатним.")


# ---------------------------------------------------------------------------
# Один обхід як стратегія Optimizer
# ---------------------------------------------------------------------------

class PowellMethod(Optimizer):
    """
    Метод Пауелла як стратегія Optimizer: один step() = один обхід усіх
    напрямків + оновлення набору напрямків.

    Стан (self.state):
        point, value  - поточна точка та f у ній
        directions    - матриця n x n, рядки – напрямки пошуку
        sweeps        - кількість виконаних обходів
    """

    def __init__(
        self,
        func,
        line_minimizer: Optional[LineMinimizer] = None,
        config: Optional[ConjugateDirectionConfig] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(func=func, name=name or "Powell (conjugate directions)")
        self.line_minimizer = line_minimizer or BrentMinimizer1D()
        self.config = config or ConjugateDirectionConfig()

    def initialize(self, x0: ArrayLike, f0: Optional[float] = None) -> None:
        super().initialize(x0, f0)
        x0 = self.state["x0"]
        self.state["point"] = x0.copy()
        self.state["value"] = self.state["f0"]
        self.state["directions"] = np.eye(x0.size)
        self.state["sweeps"] = 0
        self.state["line_searches"] = 0

    def _line_minimize(
        self, x: np.ndarray, fx: float, direction: np.ndarray
    ) -> Tuple[np.ndarray, float, float]:
        """Мінімізувати f(x + t p) по t. Повертає (x_new, f_new, t*)."""

        def phi(t: float) -> float:
            return self.eval_f(x + t * direction)

        try:
            res = self.line_minimizer.minimize(phi, start=0.0, initial_step=self.config.initial_step)
        except NumericalInstabilityError:
            raise
        except NumericalDomainError as exc:
            raise NumericalInstabilityError(
                f"{self.name}: одномірний пошук дав нескінченне значення: {exc}",
                point=x.copy(),
                value=exc.value,
            ) from exc

        self.state["line_searches"] += 1

        if not isfinite(res.phi_value):
            raise NumericalInstabilityError(
                f"{self.name}: одномірний пошук повернув f = {res.phi_value!r}.",
                point=x.copy(),
                value=res.phi_value,
            )
        if res.phi_value > fx:
            return x, fx, 0.0
        return x + res.alpha * direction, res.phi_value, res.alpha

    def _eval_extrapolated(self, x: np.ndarray) -> float:
        # Нескінченність тут лише означає, що напрямок Δ не корисний
        self.func_evals += 1
        value = float(self.func(x))
        return value if isfinite(value) else float("inf")

    def _ensure_current(self, x_k: np.ndarray) -> None:
        if "directions" not in self.state:
            self.initialize(x_k)
        elif not np.array_equal(self.state["point"], x_k):
            self.state["point"] = x_k.copy()
            self.state["value"] = self.eval_f(x_k)

    def _step_impl(self, x_k: np.ndarray) -> StepResult:
        self._ensure_current(x_k)
        cfg = self.config

        directions: np.ndarray = self.state["directions"]
        sweeps: int = self.state["sweeps"]
        n = directions.shape[0]

        directions_reset = False
        if cfg.reset_every is not None and sweeps > 0 and sweeps % cfg.reset_every == 0:
            directions = np.eye(n)
            directions_reset = True

        x = self.state["point"].copy()
        fx = float(self.state["value"])
        x_start, f_start = x.copy(), fx

        # 1. Обхід усіх напрямків
        largest_decrease = 0.0
        i_largest = 0
        for i in range(n):
            f_before = fx
            x, fx, _ = self._line_minimize(x, fx, directions[i])
            if f_before - fx > largest_decrease:
                largest_decrease = f_before - fx
                i_largest = i

        # 2. Чи варто замінити напрямок на сумарне зміщення
        displacement = x - x_start
        disp_norm = float(np.linalg.norm(displacement))
        replaced: Optional[int] = None

        if disp_norm > 0.0:
            if cfg.direction_update == DIRECTION_UPDATE_OLDEST:
                useful = True
                drop = 0
            else:
                f_ext = self._eval_extrapolated(2.0 * x - x_start)
                useful = False
                if f_ext < f_start:
                    t = 2.0 * (f_start - 2.0 * fx + f_ext) * (f_start - fx - largest_decrease) ** 2
                    t -= largest_decrease * (f_start - f_ext) ** 2
                    useful = t < 0.0
                drop = i_largest

            if useful:
                new_direction = displacement / disp_norm
                x, fx, _ = self._line_minimize(x, fx, new_direction)
                directions = np.vstack(
                    [np.delete(directions, drop, axis=0), new_direction[np.newaxis, :]]
                )
                replaced = drop

        sweeps += 1
        self.state["point"] = x
        self.state["value"] = fx
        self.state["directions"] = directions
        self.state["sweeps"] = sweeps
        self.state["result_meta"] = {
            "directions": directions.copy(),
            "sweeps": sweeps,
            "line_searches": self.state["line_searches"],
        }

        logger.debug(
            "%s: обхід %d, f: %.12g -> %.12g, замінено напрямок %s",
            self.name,
            sweeps,
            f_start,
            fx,
            replaced,
        )

        meta: Dict[str, Any] = {
            "sweep": sweeps,
            "f_start": f_start,
            "largest_decrease": largest_decrease,
            "largest_decrease_direction": i_largest,
            "replaced_direction": replaced,
            "directions_reset": directions_reset,
        }

        return StepResult(
            x_new=x.copy(),
            f_new=fx,
            step_norm=float(np.linalg.norm(x - x_k)),
            meta=meta,
        )


# ---------------------------------------------------------------------------
# Публічний мінімізатор
# ---------------------------------------------------------------------------

class ConjugateDirectionVectorMinimizer:
    """
    Багатовимірний мінімізатор методом спряжених напрямків.

    Використання:
        minimizer = ConjugateDirectionVectorMinimizer(
            BrentMinimizer1D(), tolerance=5e-6, max_iterations=100000
        )
        result = minimizer.minimize(rosenbrock, [-1.2, 1.0])
        result.point, result.value, result.iterations, result.converged

    Екземпляр можна повторно використовувати для послідовних запусків: увесь
    стан пошуку створюється заново в кожному виклику minimize().
    """

    def __init__(
        self,
        line_minimizer: Union[LineMinimizer, str, None] = None,
        tolerance: Optional[float] = None,
        max_iterations: Optional[int] = None,
        config: Optional[ConjugateDirectionConfig] = None,
        **options: Any,
    ) -> None:
        overrides: Dict[str, Any] = dict(options)
        if tolerance is not None:
            overrides["tolerance"] = tolerance
        if max_iterations is not None:
            overrides["max_iterations"] = max_iterations
        self.config = replace(config, **overrides) if config is not None else ConjugateDirectionConfig(**overrides)

        if line_minimizer is None:
            line_minimizer = BrentMinimizer1D()
        elif isinstance(line_minimizer, str):
            line_minimizer = make_line_minimizer(line_minimizer)
        if not isinstance(line_minimizer, LineMinimizer):
            raise TypeError(
                f"line_minimizer: очікується LineMinimizer, отримано {type(line_minimizer)}."
            )
        self.line_minimizer = line_minimizer

    @property
    def tolerance(self) -> float:
        return self.config.tolerance

    @property
    def max_iterations(self) -> int:
        return self.config.max_iterations

    def minimize(
        self,
        objective,
        start_point: ArrayLike,
        callback: Optional[IterationCallback] = None,
    ) -> MinimizationResult:
        """
        Мінімізувати objective з точки start_point.

        objective : VectorFunction (одне значення), ScalarObjective або callable.

        Raises
        ------
        ValueError
            objective / start_point не задано або розмірності не збігаються.
        NumericalDomainError
            f(start_point) не є скінченним.
        NumericalInstabilityError
            одномірний пошук зустрів нескінченне значення.
        """
        if objective is None:
            raise ValueError("minimize: цільову функцію не задано (None).")
        if start_point is None:
            raise ValueError("minimize: стартову точку не задано (None).")
        start = np.asarray(start_point, dtype=float)
        if isinstance(objective, VectorFunction) and start.ndim == 1:
            if objective.size_of_domain != start.size:
                raise ValueError(
                    f"minimize: функція очікує {objective.size_of_domain} змінних, "
                    f"стартова точка має {start.size}."
                )

        method = PowellMethod(
            as_scalar_objective(objective),
            line_minimizer=self.line_minimizer,
            config=self.config,
        )
        engine = OptimizationEngine(
            tol=self.config.tolerance,
            max_iter=self.config.max_iterations,
            convergence=self.config.convergence,
            criterion=self.config.criterion,
            keep_trace=self.config.keep_trace,
        )
        return engine.run(method, start, callback=callback)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(line_minimizer={self.line_minimizer.name!r}, "
            f"tolerance={self.tolerance!r}, max_iterations={self.max_iterations!r})"
        )


__all__ = [
    "DIRECTION_UPDATE_LARGEST_DECREASE",
    "DIRECTION_UPDATE_OLDEST",
    "DIRECTION_UPDATES",
    "ConjugateDirectionConfig",
    "PowellMethod",
    "ConjugateDirectionVectorMinimizer",
]
