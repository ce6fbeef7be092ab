"""Matplotlib figures for solver runs.

Three public plot functions render matplotlib figures:

    plot_payoff_heatmap(game, ...)          — player-0 payoff matrix
    plot_convergence(results, ...)          — exploitability vs iteration (log-log)
    plot_average_strategies(result, ...)    — bar chart of both average strategies

Every function takes keyword-only ``show`` and ``save_path`` and returns the
Figure, so callers without a display (tests, the dashboard) pass show=False.
"""

from __future__ import annotations

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np

from matrix_cfr.engine.payoffs import PayoffTable
from matrix_cfr.solvers.equilibrium import SolveResult

# ─── Constants ────────────────────────────────────────────────────────────────

# Above this many actions per side, cell annotations are unreadable.
_ANNOTATE_MAX_SIZE: int = 12
_PLAYER_COLORS: tuple[str, str] = ("#1f77b4", "#d62728")


def _make_diverging_cmap() -> matplotlib.colors.Colormap:
    """RdBu: red = loss for player 0, blue = gain."""
    return matplotlib.colormaps["RdBu"].copy()


_DIVERGING_CMAP: matplotlib.colors.Colormap = _make_diverging_cmap()


def _finish(fig: matplotlib.figure.Figure, show: bool, save_path: str | None) -> None:
    plt.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_payoff_heatmap(
    game: PayoffTable,
    *,
    title: str = "Payoff matrix (player 0)",
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot player 0's payoff matrix on a symmetric diverging colour scale.

    The colour range is centred on zero and clipped to the 1st–99th
    percentile of |payoff| so a few heavy-tailed (Cauchy) entries do not wash
    out the rest of the matrix.

    Args:
        game:      Payoff table.
        title:     Axes title.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure.
    """
    values = game.values
    limit = float(np.percentile(np.abs(values), 99)) or 1.0

    fig, ax = plt.subplots(figsize=(6, 5))
    im = ax.imshow(values, cmap=_DIVERGING_CMAP, vmin=-limit, vmax=limit, aspect="auto")
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_xlabel("Player 1 action", fontsize=9)
    ax.set_ylabel("Player 0 action", fontsize=9)
    plt.colorbar(im, ax=ax, label="Payoff to player 0", fraction=0.046, pad=0.04)

    if game.size <= _ANNOTATE_MAX_SIZE:
        ax.set_xticks(range(game.size))
        ax.set_yticks(range(game.size))
        for r in range(game.size):
            for c in range(game.size):
                val = values[r, c]
                text_color = "white" if abs(val) > 0.6 * limit else "black"
                ax.text(c, r, f"{val:.2f}", ha="center", va="center", fontsize=8, color=text_color)

    _finish(fig, show, save_path)
    return fig


def plot_convergence(
    results: list[SolveResult] | SolveResult,
    *,
    epsilon: float | None = None,
    title: str = "Exploitability vs iteration",
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot exploitability histories on log-log axes, one line per result.

    Args:
        results:   One SolveResult or a list (e.g. one per algorithm).
        epsilon:   If given, draw the convergence threshold as a dashed line.
        title:     Axes title.
        show:      If True, call plt.show().
        save_path: If not None, save to path.

    Returns:
        matplotlib.figure.Figure.
    """
    if isinstance(results, SolveResult):
        results = [results]

    fig, ax = plt.subplots(figsize=(8, 5))
    for result in results:
        history = np.asarray(result.history)
        iterations = np.arange(1, len(history) + 1)
        # Exact zeros cannot be drawn on a log axis.
        positive = history > 0
        ax.plot(
            iterations[positive],
            history[positive],
            label=f"{result.algorithm.label} ({result.n_iterations} it.)",
            linewidth=1.2,
        )

    if epsilon is not None:
        ax.axhline(epsilon, color="grey", linestyle="--", linewidth=1.0, label=f"ε = {epsilon:g}")

    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Iteration", fontsize=9)
    ax.set_ylabel("Exploitability", fontsize=9)
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.grid(True, which="both", alpha=0.3)
    ax.legend(fontsize=9)

    _finish(fig, show, save_path)
    return fig


def plot_average_strategies(
    result: SolveResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Side-by-side bar charts of player 0 and player 1 average strategies.

    Args:
        result:    SolveResult from solve().
        show:      If True, call plt.show().
        save_path: If not None, save to path.

    Returns:
        matplotlib.figure.Figure with two axes.
    """
    fig, axes = plt.subplots(1, 2, figsize=(11, 4), sharey=True)
    fig.suptitle(
        f"{result.algorithm.label} average strategies  (e = {result.exploitability:.2e})",
        fontsize=13,
        fontweight="bold",
    )

    top = max(float(np.max(s)) for s in result.strategies)
    for player, ax in enumerate(axes):
        strategy = result.strategies[player]
        ax.bar(np.arange(len(strategy)), strategy, color=_PLAYER_COLORS[player], width=0.8)
        ax.set_title(f"Player {player}", fontsize=10)
        ax.set_xlabel("Action", fontsize=9)
        if player == 0:
            ax.set_ylabel("P(action)", fontsize=9)
        ax.set_ylim(0.0, top * 1.1)

    _finish(fig, show, save_path)
    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from matrix_cfr.engine.payoffs import Distribution, create_game
    from matrix_cfr.solvers.config import Algorithm, SolverConfig
    from matrix_cfr.solvers.equilibrium import solve

    game = create_game(20, Distribution.UNIFORM, np.random.default_rng(42))
    print("Solving a 20x20 uniform game with each algorithm …")
    runs = [
        solve(game, SolverConfig(size=20, algorithm=alg, epsilon=1e-3), max_iterations=5000)
        for alg in Algorithm
    ]

    plot_payoff_heatmap(game, show=False, save_path="payoff_matrix.png")
    plot_convergence(runs, epsilon=1e-3, show=False, save_path="convergence.png")
    plot_average_strategies(runs[-1], show=False, save_path="average_strategies.png")
    print("Saved: payoff_matrix.png, convergence.png, average_strategies.png")
