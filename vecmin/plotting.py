"""
Графіки процесу мінімізації на основі matplotlib.

    - plot_convergence(result)         – f(k) по обходах;
    - plot_trajectory(func, result)    – рівні функції в R² + траєкторія.

Функції створюють matplotlib.figure.Figure без GUI-бекенда (або малюють
на переданих осях) і повертають фігуру.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np
from matplotlib.figure import Figure

from .engine import MinimizationResult

_ACCENT = "#4c9be8"
_START = "#e8a33d"
_MUTED = "#8a8f98"


def _axes_or_new(ax):
    if ax is not None:
        return ax.figure, ax
    figure = Figure(figsize=(6.0, 4.5))
    return figure, figure.add_subplot(111)


def plot_convergence(result: MinimizationResult, ax=None) -> Figure:
    if not result.trace:
        raise ValueError("plot_convergence: результат не містить траси (keep_trace=False?).")

    figure, ax = _axes_or_new(ax)

    ks = [rec.index for rec in result.trace]
    fs = result.values

    ax.plot(ks, fs, marker="o", linestyle="-", linewidth=1.5, markersize=4, color=_ACCENT)
    if np.all(fs > 0.0):
        ax.set_yscale("log")
    ax.set_xlabel("k (номер обходу)")
    ax.set_ylabel("f(xₖ)")
    ax.set_title(f"{result.method_name}: f(k)")
    ax.grid(True, linestyle="--", linewidth=0.5, alpha=0.6)
    return figure


def plot_trajectory(
    func: Callable[[np.ndarray], float],
    result: MinimizationResult,
    bounds: Optional[Sequence[Sequence[float]]] = None,
    ax=None,
    levels: int = 18,
    padding: float = 0.5,
    grid_size: int = 120,
) -> Figure:
    """
    Контурні лінії f(x₁, x₂) та траєкторія обходів.

    bounds – ((x1_min, x1_max), (x2_min, x2_max)); за замовчуванням
    охоплює траєкторію з відступом padding.
    """
    xs = result.path
    if xs.ndim != 2 or xs.shape[1] != 2 or xs.shape[0] == 0:
        raise ValueError("plot_trajectory: траєкторію можна показати лише для задачі в R².")

    if bounds is None:
        x1_min, x1_max = xs[:, 0].min(), xs[:, 0].max()
        x2_min, x2_max = xs[:, 1].min(), xs[:, 1].max()
        if abs(x1_max - x1_min) < 1e-9:
            x1_min, x1_max = x1_min - 1.0, x1_max + 1.0
        if abs(x2_max - x2_min) < 1e-9:
            x2_min, x2_max = x2_min - 1.0, x2_max + 1.0
        x1_min, x1_max = x1_min - padding, x1_max + padding
        x2_min, x2_max = x2_min - padding, x2_max + padding
    else:
        (x1_min, x1_max), (x2_min, x2_max) = bounds

    X1, X2 = np.meshgrid(
        np.linspace(x1_min, x1_max, grid_size),
        np.linspace(x2_min, x2_max, grid_size),
    )
    Z = np.array(
        [func(np.array([a, b], dtype=float)) for a, b in zip(X1.ravel(), X2.ravel())],
        dtype=float,
    ).reshape(X1.shape)

    figure, ax = _axes_or_new(ax)
    ax.contour(X1, X2, Z, levels=levels, colors=_MUTED, linewidths=0.8)
    ax.contourf(X1, X2, Z, levels=levels, cmap="magma", alpha=0.45)

    ax.plot(xs[:, 0], xs[:, 1], marker="o", linestyle="-", linewidth=1.2, markersize=4, color=_ACCENT)
    ax.scatter(xs[0, 0], xs[0, 1], color=_START, marker="s", s=50, zorder=5)
    ax.scatter(xs[-1, 0], xs[-1, 1], color=_ACCENT, marker="*", s=120, zorder=6)

    ax.set_xlabel("x₁")
    ax.set_ylabel("x₂")
    ax.set_title("Рівні функції та траєкторія")
    return figure


__all__ = ["plot_convergence", "plot_trajectory"]
