"""
line_search.py

Модуль одномірної мінімізації (line minimization) вздовж напрямку.

Ідея:
    - Працюємо з допоміжною функцією φ(α) = f(x_k + α p_k), але в цьому
      модулі оперуємо абстрактною скалярною функцією одного аргументу
      φ: float -> float.
    - Спочатку будуємо дужку (bracket) a < b < c з φ(b) <= min(φ(a), φ(c)),
      або беремо дужку / інтервал, переданий користувачем.
    - Далі звужуємо дужку одним з методів:
        1) Brent: параболічна інтерполяція з відкатом на золотий переріз;
        2) золотий переріз.

Публічний інтерфейс:
    - LineSearchResult, Bracket;
    - bracket_minimum(...)            – побудова дужки зі стартової точки;
    - BrentMinimizer1D, GoldenSectionMinimizer1D;
    - make_line_minimizer(name, ...)  – вибір методу за назвою.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from math import copysign, isfinite, sqrt
from typing import Any, Dict, Optional, Sequence, Tuple

from .errors import BracketingError, NumericalDomainError
from .functions import Scalar1DFunction

logger = logging.getLogger(__name__)


LINE_MINIMIZER_BRENT = "brent"
LINE_MINIMIZER_GOLDEN_SECTION = "golden_section"
LINE_MINIMIZER_DEFAULT = LINE_MINIMIZER_BRENT

GOLDEN_RATIO = (1.0 + sqrt(5.0)) / 2.0      # ≈ 1.618...
_CGOLD = (3.0 - sqrt(5.0)) / 2.0            # ≈ 0.382..., 1/φ^2
_GROWTH_LIMIT = 100.0
_TINY = 1e-20


# ---------------------------------------------------------------------------
# Результати
# ---------------------------------------------------------------------------

@dataclass
class LineSearchResult:
    """
    Результат одномірної мінімізації.

    Атрибути:
        alpha       - знайдене значення параметра α*;
        phi_value   - значення φ(α*);
        iterations  - кількість ітерацій звуження дужки;
        func_evals  - кількість викликів φ (разом з побудовою дужки);
        meta        - службова інформація (дужка, причина зупинки, метод).
    """
    alpha: float
    phi_value: float
    iterations: int
    func_evals: int
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Bracket:
    """Трійка абсцис a, b, c (b між a і c) та значення φ у них."""
    a: float
    b: float
    c: float
    fa: float
    fb: float
    fc: float

    @property
    def interval(self) -> Tuple[float, float]:
        return (min(self.a, self.c), max(self.a, self.c))


class _CountingFunction:
    """Лічильник викликів φ, що відкидає нескінченні значення."""

    def __init__(self, phi: Scalar1DFunction) -> None:
        self._phi = phi
        self.evals = 0

    def __call__(self, alpha: float) -> float:
        self.evals += 1
        value = float(self._phi(alpha))
        if not isfinite(value):
            raise NumericalDomainError(
                f"φ({alpha!r}) = {value!r}: значення функції не є скінченним.",
                point=alpha,
                value=value,
            )
        return value


# ---------------------------------------------------------------------------
# Побудова дужки
# ---------------------------------------------------------------------------

def bracket_minimum(
    phi: Scalar1DFunction,
    a: float = 0.0,
    b: float = 1.0,
    max_iter: int = 200,
) -> Bracket:
    """
    Знайти дужку мінімуму, рухаючись від a через b у напрямку спадання φ.

    Кожен наступний крок збільшується у GOLDEN_RATIO разів; якщо можливо,
    використовується параболічна екстраполяція (не далі ніж у _GROWTH_LIMIT
    разів від поточного кроку).

    Якщо a == b (кроку немає), повертається вироджена дужка нульової
    ширини, що означає "вже зійшлися".

    Raises
    ------
    NumericalDomainError
        φ повернула нескінченне значення.
    BracketingError
        Дужку не знайдено за max_iter кроків (наприклад, φ необмежена знизу).
    """
    a = float(a)
    b = float(b)
    fa = phi(a)
    fb = phi(b)

    # Рухаємося "вниз" від a до b
    if fb > fa:
        a, b = b, a
        fa, fb = fb, fa

    c = b + GOLDEN_RATIO * (b - a)
    fc = phi(c)
    iterations = 0

    while fb > fc:
        iterations += 1
        if iterations > max_iter:
            raise BracketingError(
                f"bracket_minimum: дужку не знайдено за {max_iter} кроків "
                f"(останній інтервал [{min(a, c)}, {max(a, c)}])."
            )

        # Параболічна екстраполяція через a, b, c
        r = (b - a) * (fb - fc)
        q = (b - c) * (fb - fa)
        denom = 2.0 * copysign(max(abs(q - r), _TINY), q - r)
        u = b - ((b - c) * q - (b - a) * r) / denom
        u_limit = b + _GROWTH_LIMIT * (c - b)

        if (b - u) * (u - c) > 0.0:
            # u між b і c
            fu = phi(u)
            if fu < fc:
                a, b = b, u
                fa, fb = fb, fu
                break
            if fu > fb:
                c, fc = u, fu
                break
            u = c + GOLDEN_RATIO * (c - b)
            fu = phi(u)
        elif (c - u) * (u - u_limit) > 0.0:
            # u між c і допустимою межею
            fu = phi(u)
            if fu < fc:
                b, c, u = c, u, u + GOLDEN_RATIO * (u - c)
                fb, fc, fu = fc, fu, phi(u)
        elif (u - u_limit) * (u_limit - c) >= 0.0:
            u = u_limit
            fu = phi(u)
        else:
            u = c + GOLDEN_RATIO * (c - b)
            fu = phi(u)

        a, b, c = b, c, u
        fa, fb, fc = fb, fc, fu

    logger.debug("bracket_minimum: [%g, %g, %g] за %d кроків", a, b, c, iterations)
    return Bracket(a=a, b=b, c=c, fa=fa, fb=fb, fc=fc)


# ---------------------------------------------------------------------------
# Базовий клас одномірного мінімізатора
# ---------------------------------------------------------------------------

class LineMinimizer(ABC):
    """
    Мінімізатор скалярної функції однієї змінної.

    Параметри:
        tol              : відносна точність по α (default: 1e-8)
        abs_tol          : абсолютна точність по α поблизу нуля (default: 1e-11)
        max_iter         : максимум ітерацій звуження (default: 500)
        max_bracket_iter : максимум кроків побудови дужки (default: 200)

    Виклик:
        minimize(phi)                          – дужка будується від α = 0
        minimize(phi, start=x0, initial_step=h) – дужка від x0 з кроком h
        minimize(phi, bracket=(a, b, c))       – готова дужка
        minimize(phi, start=x0, bounds=(lo, hi)) – пошук на відрізку
    """

    name: str = "line_minimizer"

    def __init__(
        self,
        tol: float = 1e-8,
        abs_tol: float = 1e-11,
        max_iter: int = 500,
        max_bracket_iter: int = 200,
    ) -> None:
        if tol <= 0.0 or abs_tol <= 0.0:
            raise ValueError(f"{self.__class__.__name__}: tol та abs_tol мають бути додатними.")
        if max_iter < 1 or max_bracket_iter < 1:
            raise ValueError(f"{self.__class__.__name__}: ліміти ітерацій мають бути >= 1.")
        self.tol = float(tol)
        self.abs_tol = float(abs_tol)
        self.max_iter = int(max_iter)
        self.max_bracket_iter = int(max_bracket_iter)

    def minimize(
        self,
        phi: Scalar1DFunction,
        start: float = 0.0,
        bracket: Optional[Sequence[float]] = None,
        bounds: Optional[Sequence[float]] = None,
        initial_step: float = 1.0,
    ) -> LineSearchResult:
        """Знайти α*, що мінімізує φ(α). Див. опис класу."""
        if phi is None:
            raise ValueError("LineMinimizer.minimize: функцію не задано (None).")
        if not callable(phi):
            raise TypeError(f"LineMinimizer.minimize: очікується callable, отримано {type(phi)}.")
        if bracket is not None and bounds is not None:
            raise ValueError("LineMinimizer.minimize: bracket та bounds взаємовиключні.")

        f = _CountingFunction(phi)
        meta: Dict[str, Any] = {"method": self.name}

        if bounds is not None:
            lower, upper = self._check_bounds(bounds, start)
            x0 = float(start)
            lo, hi, fx0 = lower, upper, f(x0)
            meta["bounds"] = (lower, upper)
        else:
            if bracket is not None:
                br = self._check_bracket(f, bracket)
            else:
                if not isfinite(float(start)):
                    raise NumericalDomainError(
                        f"LineMinimizer.minimize: стартова точка {start!r} не є скінченною.",
                        point=start,
                    )
                if initial_step <= 0.0 or not isfinite(initial_step):
                    raise ValueError("LineMinimizer.minimize: initial_step має бути додатним.")
                br = bracket_minimum(
                    f, float(start), float(start) + float(initial_step), self.max_bracket_iter
                )
            lo, hi = br.interval
            x0, fx0 = br.b, br.fb
            meta["bracket"] = (br.a, br.b, br.c)

        if hi - lo <= 0.0:
            # Усі точки збіглися – мінімум уже знайдено
            meta["stopped_by"] = "coincident_points"
            return LineSearchResult(
                alpha=x0, phi_value=fx0, iterations=0, func_evals=f.evals, meta=meta
            )

        alpha, value, iterations, stopped_by = self._minimize_interval(f, lo, hi, x0, fx0)
        if stopped_by == "max_iter":
            logger.warning(
                "%s: досягнуто max_iter=%d, точність по α не гарантована", self.name, self.max_iter
            )
        meta["stopped_by"] = stopped_by

        return LineSearchResult(
            alpha=alpha,
            phi_value=value,
            iterations=iterations,
            func_evals=f.evals,
            meta=meta,
        )

    # ------------------------------------------------------------------
    # Перевірка аргументів
    # ------------------------------------------------------------------

    @staticmethod
    def _check_bounds(bounds: Sequence[float], start: float) -> Tuple[float, float]:
        if len(bounds) != 2:
            raise ValueError("bounds: очікується пара (lower, upper).")
        lower, upper = float(bounds[0]), float(bounds[1])
        if not lower < upper:
            raise ValueError("bounds: ліва межа повинна бути меншою за праву (lower < upper).")
        if not lower <= float(start) <= upper:
            raise ValueError(f"bounds: стартова точка {start!r} поза відрізком [{lower}, {upper}].")
        return lower, upper

    @staticmethod
    def _check_bracket(f: _CountingFunction, bracket: Sequence[float]) -> Bracket:
        if len(bracket) != 3:
            raise ValueError("bracket: очікується трійка (lower, middle, upper).")
        a, b, c = (float(v) for v in bracket)
        coincident = a == b == c
        if not coincident and not min(a, c) < b < max(a, c):
            raise ValueError(f"bracket: середня точка {b} не лежить строго між {a} та {c}.")
        fa, fb, fc = f(a), f(b), f(c)
        if fb > fa or fb > fc:
            raise ValueError(
                f"bracket: φ({b}) = {fb} більше за значення на кінцях ({fa}, {fc})."
            )
        return Bracket(a=a, b=b, c=c, fa=fa, fb=fb, fc=fc)

    # ------------------------------------------------------------------
    # Конкретний алгоритм
    # ------------------------------------------------------------------

    @abstractmethod
    def _minimize_interval(
        self,
        f: _CountingFunction,
        lower: float,
        upper: float,
        x: float,
        fx: float,
    ) -> Tuple[float, float, int, str]:
        """
        Звузити [lower, upper], маючи точку x (fx = f(x)) всередині.

        Повертає (α*, φ(α*), iterations, stopped_by), причому φ(α*) <= fx.
        """
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Метод Брента
# ---------------------------------------------------------------------------

class BrentMinimizer1D(LineMinimizer):
    """
    Метод Брента: параболічна інтерполяція по трьох найкращих точках
    з відкатом на золотий переріз.

    Параболічний крок приймається лише тоді, коли він падає всередину
    поточного інтервалу і менший за половину передостаннього кроку;
    інакше робиться крок золотого перерізу. Тому збіжність гарантована
    навіть для негладких φ, а поблизу гладкого мінімуму вона надлінійна.

    На пласкій ділянці (φ стала) параболічний крок не визначений
    (q = 0) і метод повертає будь-яку точку з цієї ділянки.
    """

    name = LINE_MINIMIZER_BRENT

    def _minimize_interval(self, f, lower, upper, x, fx):
        a, b = lower, upper
        w = v = x
        fw = fv = fx
        d = 0.0
        e = 0.0  # крок на передостанній ітерації

        for iteration in range(1, self.max_iter + 1):
            xm = 0.5 * (a + b)
            tol1 = self.tol * abs(x) + self.abs_tol
            tol2 = 2.0 * tol1

            if abs(x - xm) <= tol2 - 0.5 * (b - a):
                return x, fx, iteration - 1, "tol"

            use_golden = True
            if abs(e) > tol1:
                # Парабола через x, w, v
                r = (x - w) * (fx - fv)
                q = (x - v) * (fx - fw)
                p = (x - v) * q - (x - w) * r
                q = 2.0 * (q - r)
                if q > 0.0:
                    p = -p
                q = abs(q)
                e_prev = e
                e = d
                if abs(p) < abs(0.5 * q * e_prev) and q * (a - x) < p < q * (b - x):
                    d = p / q
                    u = x + d
                    if u - a < tol2 or b - u < tol2:
                        d = copysign(tol1, xm - x)
                    use_golden = False

            if use_golden:
                e = (a - x) if x >= xm else (b - x)
                d = _CGOLD * e

            u = x + d if abs(d) >= tol1 else x + copysign(tol1, d)
            fu = f(u)

            if fu <= fx:
                if u >= x:
                    a = x
                else:
                    b = x
                v, w, x = w, x, u
                fv, fw, fx = fw, fx, fu
            else:
                if u < x:
                    a = u
                else:
                    b = u
                if fu <= fw or w == x:
                    v, w = w, u
                    fv, fw = fw, fu
                elif fu <= fv or v == x or v == w:
                    v, fv = u, fu

        return x, fx, self.max_iter, "max_iter"


# ---------------------------------------------------------------------------
# Метод золотого перерізу
# ---------------------------------------------------------------------------

class GoldenSectionMinimizer1D(LineMinimizer):
    """
    Метод золотого перерізу на дужці.

    Ідея:
        - тримаємо дві внутрішні точки c і d:
              c = a + (1 - 1/φ) * (b - a),
              d = a + 1/φ * (b - a);
        - порівнюємо значення в c і d та звужуємо інтервал, зберігаючи одну
          з внутрішніх точок (один новий виклик функції на ітерацію);
        - довжина інтервалу зменшується у ≈ 1.618 разів за ітерацію.

    Лише лінійна збіжність, зате без жодних припущень про гладкість.
    """

    name = LINE_MINIMIZER_GOLDEN_SECTION

    def _minimize_interval(self, f, lower, upper, x, fx):
        left, right = lower, upper
        inv_phi = 1.0 / GOLDEN_RATIO

        h = right - left
        c = left + _CGOLD * h
        d = left + inv_phi * h
        fc = f(c)
        fd = f(d)
        iterations = 0

        def width_ok() -> bool:
            mid = 0.5 * (left + right)
            return (right - left) <= 2.0 * (self.tol * abs(mid) + self.abs_tol)

        while not width_ok() and iterations < self.max_iter:
            iterations += 1
            if fc < fd:
                # Мінімум у [left, d]
                right, d, fd = d, c, fc
                c = left + _CGOLD * (right - left)
                fc = f(c)
            else:
                # Мінімум у [c, right]
                left, c, fc = c, d, fd
                d = left + inv_phi * (right - left)
                fd = f(d)

        stopped_by = "tol" if width_ok() else "max_iter"

        # Найкраща з відомих точок, щоб результат не був гіршим за стартовий
        best_alpha, best_value = min(((x, fx), (c, fc), (d, fd)), key=lambda t: t[1])
        return best_alpha, best_value, iterations, stopped_by


# ---------------------------------------------------------------------------
# Реєстр
# ---------------------------------------------------------------------------

LINE_MINIMIZERS = {
    LINE_MINIMIZER_BRENT: BrentMinimizer1D,
    LINE_MINIMIZER_GOLDEN_SECTION: GoldenSectionMinimizer1D,
}


def make_line_minimizer(name: str = LINE_MINIMIZER_DEFAULT, **options: Any) -> LineMinimizer:
    """Створити одномірний мінімізатор за назвою ("brent", "golden_section")."""
    try:
        cls = LINE_MINIMIZERS[name]
    except KeyError:
        raise ValueError(
            f"Невідомий метод одномірної мінімізації '{name}'. "
            f"Доступні: {', '.join(sorted(LINE_MINIMIZERS))}."
        ) from None
    return cls(**options)


__all__ = [
    "LineSearchResult",
    "Bracket",
    "bracket_minimum",
    "LineMinimizer",
    "BrentMinimizer1D",
    "GoldenSectionMinimizer1D",
    "LINE_MINIMIZER_BRENT",
    "LINE_MINIMIZER_GOLDEN_SECTION",
    "LINE_MINIMIZER_DEFAULT",
    "LINE_MINIMIZERS",
    "GOLDEN_RATIO",
    "make_line_minimizer",
]
