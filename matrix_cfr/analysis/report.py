"""Text reports for solver runs.

    print_config_header(config)        — algorithm, size, epsilon banner
    format_progress(i, elapsed, e)     — one "i=.. t=.. e=.." progress line
    print_solve_summary(result)        — final exploitability / convergence
    print_strategy_table(result, top)  — top-weighted actions per player
    print_dump(solver)                 — payoff matrix + average strategies
"""

from __future__ import annotations

import numpy as np

from matrix_cfr.solvers.config import Algorithm, SolverConfig
from matrix_cfr.solvers.equilibrium import EquilibriumSolver, SolveResult


def print_config_header(config: SolverConfig) -> None:
    print(f"Algorithm: {config.algorithm.label}")
    print(f"Matrix size: {config.size}")
    print(f"Epsilon: {config.epsilon:f}")
    print(f"Distribution: {config.distribution.value}")
    if config.algorithm is Algorithm.CFR_PLUS:
        print(f"Averaging: {config.weighting.value}, delay {config.delay}")


def format_progress(iteration: int, elapsed: float, exploitability: float) -> str:
    """Format a progress line.

    Examples:
        >>> format_progress(12, 0.5, 0.0123456)
        'i=12 t=0.50 e=0.012346'
    """
    return f"i={iteration} t={elapsed:.2f} e={exploitability:.6f}"


def print_solve_summary(result: SolveResult) -> None:
    """Print exploitability, iteration count and convergence status."""
    print("=" * 56)
    print(f"{result.algorithm.label} Solve Summary")
    print("=" * 56)
    print(f"  Matrix size:     {result.size}")
    print(f"  Iterations:      {result.n_iterations}")
    print(f"  Exploitability:  {result.exploitability:.6f}")
    print(f"  Converged:       {'yes' if result.converged else 'no'}")
    print(f"  Time:            {result.elapsed:.2f}s")
    if result.elapsed > 0 and result.n_iterations > 0:
        print(f"  Iterations/s:    {result.n_iterations / result.elapsed:,.0f}")
    print()


def print_strategy_table(result: SolveResult, top: int = 10) -> None:
    """Print each player's highest-probability actions.

    Args:
        result: SolveResult from solve().
        top:    Maximum number of actions listed per player.
    """
    print("=" * 56)
    print("Average Strategies")
    print("=" * 56)
    for player, strategy in enumerate(result.strategies):
        support = int(np.count_nonzero(strategy > 1e-6))
        print(f"  Player {player}  (support {support}/{len(strategy)})")
        print(f"    {'Action':>6}  {'P(action)':>10}")
        print(f"    {'------':>6}  {'----------':>10}")
        # Stable sort keeps lower indices first among equal probabilities.
        order = np.argsort(-strategy, kind="stable")[:top]
        for action in order:
            print(f"    {int(action):>6}  {strategy[action]:>10.6f}")
    print()


def print_dump(solver: EquilibriumSolver) -> None:
    print(solver.dump())
