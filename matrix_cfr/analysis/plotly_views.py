"""Interactive Plotly figures for solver runs.

Four public functions:

    build_payoff_figure(game)
        — Heatmap of player 0's payoffs; hover shows actions and both payoffs.
    build_convergence_figure(results, epsilon)
        — Exploitability vs iteration, one trace per run, log-log axes.
    build_strategy_figure(result)
        — 1×2 bar charts of both average strategies with hover probabilities.
    save_figure_html(fig, path)
        — Export any figure to a self-contained HTML file.

Hover over any cell or bar for details.  Figures open in a browser via
``fig.show()`` or embed in the Streamlit dashboard.
"""

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from matrix_cfr.engine.payoffs import PayoffTable
from matrix_cfr.solvers.equilibrium import SolveResult

_PAYOFF_COLORSCALE: str = "RdBu"
_PLAYER_COLORS: tuple[str, str] = ("#1f77b4", "#d62728")


# ─── Hover text builders ──────────────────────────────────────────────────────


def _build_payoff_hover(game: PayoffTable) -> list[list[str]]:
    """Return an N×N list of hover strings for the payoff heatmap.

    Each cell shows both actions, player 0's payoff and player 1's payoff
    for the same pairing (its negation).
    """
    rows: list[list[str]] = []
    for a in range(game.size):
        row: list[str] = []
        for b in range(game.size):
            p0 = game.get_payoff(0, a, b)
            p1 = game.get_payoff(1, b, a)
            lines = [
                f"P0 action: <b>{a}</b>",
                f"P1 action: <b>{b}</b>",
                f"P0 payoff: {p0:+.4f}",
                f"P1 payoff: {p1:+.4f}",
            ]
            row.append("<br>".join(lines))
        rows.append(row)
    return rows


# ─── Public figure builders ───────────────────────────────────────────────────


def build_payoff_figure(game: PayoffTable) -> go.Figure:
    """Build an interactive heatmap of player 0's payoff matrix.

    The colour range is symmetric around zero and clipped at the 99th
    percentile of |payoff| (heavy-tailed games otherwise render flat).

    Args:
        game: Payoff table.

    Returns:
        go.Figure with one heatmap trace.
    """
    limit = float(np.percentile(np.abs(game.values), 99)) or 1.0
    fig = go.Figure(
        go.Heatmap(
            z=game.values.tolist(),
            colorscale=_PAYOFF_COLORSCALE,
            zmin=-limit,
            zmax=limit,
            zmid=0.0,
            text=_build_payoff_hover(game),
            hovertemplate="%{text}<extra></extra>",
            colorbar={"title": "P0 payoff"},
            name="Payoffs",
        )
    )
    fig.update_layout(
        title_text=f"Payoff Matrix — {game.size}×{game.size}",
        title_font_size=15,
        height=520,
        width=620,
    )
    fig.update_xaxes(title_text="Player 1 action")
    fig.update_yaxes(title_text="Player 0 action", autorange="reversed")
    return fig


def build_convergence_figure(
    results: list[SolveResult] | SolveResult,
    epsilon: float | None = None,
) -> go.Figure:
    """Build an interactive exploitability-vs-iteration figure.

    Args:
        results: One SolveResult or a list of them.
        epsilon: If given, draw the threshold as a dashed horizontal line.

    Returns:
        go.Figure with one scatter trace per result.
    """
    if isinstance(results, SolveResult):
        results = [results]

    fig = go.Figure()
    for result in results:
        history = np.asarray(result.history)
        iterations = np.arange(1, len(history) + 1)
        positive = history > 0
        fig.add_trace(
            go.Scatter(
                x=iterations[positive],
                y=history[positive],
                mode="lines",
                name=result.algorithm.label,
                hovertemplate="i=%{x}<br>e=%{y:.3e}<extra>" + result.algorithm.label + "</extra>",
            )
        )

    if epsilon is not None:
        fig.add_hline(y=epsilon, line_dash="dash", line_color="grey", annotation_text=f"ε={epsilon:g}")

    fig.update_layout(
        title_text="Exploitability vs Iteration",
        title_font_size=15,
        height=450,
        width=820,
    )
    fig.update_xaxes(title_text="Iteration", type="log")
    fig.update_yaxes(title_text="Exploitability", type="log")
    return fig


def build_strategy_figure(result: SolveResult) -> go.Figure:
    """Build 1×2 interactive bar charts of both average strategies.

    Args:
        result: SolveResult from solve().

    Returns:
        go.Figure with two bar traces.
    """
    fig = make_subplots(
        rows=1,
        cols=2,
        subplot_titles=["Player 0", "Player 1"],
        horizontal_spacing=0.08,
        shared_yaxes=True,
    )
    for player, strategy in enumerate(result.strategies):
        fig.add_trace(
            go.Bar(
                x=np.arange(len(strategy)),
                y=strategy,
                marker_color=_PLAYER_COLORS[player],
                name=f"Player {player}",
                hovertemplate="action %{x}<br>P=%{y:.4f}<extra></extra>",
            ),
            row=1,
            col=player + 1,
        )

    fig.update_layout(
        title_text=f"{result.algorithm.label} Average Strategies",
        title_font_size=15,
        height=420,
        width=900,
        showlegend=False,
    )
    fig.update_xaxes(title_text="Action")
    fig.update_yaxes(title_text="P(action)", col=1)
    return fig


# ─── HTML export ───────────────────────────────────────────────────────────────


def save_figure_html(fig: go.Figure, path: str) -> None:
    """Save a Plotly figure to an HTML file (Plotly JS loaded from the CDN)."""
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from matrix_cfr.engine.payoffs import Distribution, create_game
    from matrix_cfr.solvers.config import Algorithm, SolverConfig
    from matrix_cfr.solvers.equilibrium import solve

    game = create_game(20, Distribution.NORMAL, np.random.default_rng(7))
    runs = [
        solve(game, SolverConfig(size=20, algorithm=alg, epsilon=1e-3), max_iterations=5000)
        for alg in Algorithm
    ]
    save_figure_html(build_payoff_figure(game), "payoff_matrix.html")
    save_figure_html(build_convergence_figure(runs, epsilon=1e-3), "convergence.html")
    save_figure_html(build_strategy_figure(runs[-1]), "strategies.html")
    print("Saved: payoff_matrix.html, convergence.html, strategies.html")
