"""Self-play equilibrium solver for two-player zero-sum matrix games.

Finds approximate Nash equilibria by repeated self-play under one of three
update rules, then measures the exploitability of the average strategies.

Algorithms
----------
Fictitious Play
    Each player best-responds (pure action, lowest index on ties) to the
    opponent's normalized average strategy and adds one unit of mass to
    that action.  No regrets are kept.

CFR (regret matching)
    sp = own current strategy, so = opponent current strategy.
        cfu[a] = Σ_b so[b] · payoff(player, a, b)
        ev     = Σ_a sp[a] · cfu[a]
        R[a]  += cfu[a] - ev
        S[a]  += sp[a]

CFR+
    Same cfu / ev, but R[a] = max(0, R[a] + cfu[a] - ev).  Strategy sums use
    delayed weighting: with t = iteration - delay (only when iteration >
    delay), S[a] += sp[a] · w(t), w ∈ {1, t, t²}.

Update order
------------
Every iteration increments the counter once and then updates player 0
followed by player 1.  Player 1 therefore reads player 0's state from the
same iteration; this ordering is part of the algorithm's reproducible output.

The solver never stops on its own.  Callers decide when to stop, usually by
checking ``get_exploitability() <= epsilon`` after each ``iteration()``;
``solve()`` packages that loop.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from matrix_cfr.engine.payoffs import PayoffTable
from matrix_cfr.solvers.accumulators import RegretAccumulator, StrategyAccumulator
from matrix_cfr.solvers.best_response import BestResponseOracle
from matrix_cfr.solvers.config import Algorithm, SolverConfig, WeightingMode

# ─── Result type ───────────────────────────────────────────────────────────────


@dataclass
class SolveResult:
    """Output of solve().

    Attributes:
        algorithm:      Update rule used.
        size:           Actions per player.
        strategies:     (player 0, player 1) normalized average strategies.
        n_iterations:   Iterations completed.
        exploitability: Exploitability after the last iteration.
        converged:      True if exploitability <= epsilon was reached.
        history:        Exploitability after each iteration (index i = iteration i+1).
        elapsed:        Wall-clock seconds spent iterating.
    """

    algorithm: Algorithm
    size: int
    strategies: tuple[np.ndarray, np.ndarray]
    n_iterations: int
    exploitability: float
    converged: bool
    history: list[float] = field(default_factory=list)
    elapsed: float = 0.0


# ─── Solver ────────────────────────────────────────────────────────────────────


class EquilibriumSolver:
    """Runs one self-play algorithm on a fixed payoff table.

    Args:
        game:      Payoff table (never modified).
        algorithm: Update rule applied by iteration().
        delay:     CFR+ averaging delay (ignored by the other algorithms).
        weighting: CFR+ averaging weight mode (ignored by the others).

    Examples:
        >>> from matrix_cfr.engine.payoffs import rock_paper_scissors
        >>> solver = EquilibriumSolver(rock_paper_scissors(), Algorithm.CFR)
        >>> solver.iteration()
        >>> solver.get_iteration_count()
        1
    """

    def __init__(
        self,
        game: PayoffTable,
        algorithm: Algorithm = Algorithm.CFR_PLUS,
        delay: int = 0,
        weighting: WeightingMode = WeightingMode.QUADRATIC,
    ) -> None:
        self.game = game
        self.algorithm = algorithm
        self.delay = delay
        self.weighting = weighting
        self.iteration_count = 0

        self.oracle = BestResponseOracle(game)
        self.strategy_sums = StrategyAccumulator(game.size)
        self.regrets = RegretAccumulator(
            game.size, clamp_negative=algorithm is Algorithm.CFR_PLUS
        )

        self._update_player: Callable[[int], None] = {
            Algorithm.FICTITIOUS_PLAY: self._fictitious_play,
            Algorithm.CFR: self._cfr,
            Algorithm.CFR_PLUS: self._cfr_plus,
        }[algorithm]

    @classmethod
    def from_config(cls, game: PayoffTable, config: SolverConfig) -> EquilibriumSolver:
        return cls(
            game,
            algorithm=config.algorithm,
            delay=config.delay,
            weighting=config.weighting,
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def iteration(self) -> None:
        """Advance one joint iteration: player 0, then player 1."""
        self.iteration_count += 1
        self._update_player(0)
        self._update_player(1)

    def get_iteration_count(self) -> int:
        return self.iteration_count

    def get_exploitability(self) -> float:
        """Exploitability of the current average strategy profile."""
        return self.oracle.exploitability(self.average_strategy(0), self.average_strategy(1))

    def average_strategy(self, player: int) -> np.ndarray:
        """Normalized long-run average strategy (uniform before any mass)."""
        return self.strategy_sums.normalized_average(player)

    def current_strategy(self, player: int) -> np.ndarray:
        """Regret-matched per-iteration strategy (CFR / CFR+)."""
        return self.regrets.current_strategy(player)

    def dump(self) -> str:
        """Return the payoff matrix and both average strategies as text."""
        with np.printoptions(precision=6, suppress=True, linewidth=120):
            lines = [
                f"Payoff matrix (player 0), {self.game.size}x{self.game.size}:",
                str(self.game.values),
                f"Average strategy, player 0 (iteration {self.iteration_count}):",
                str(self.average_strategy(0)),
                f"Average strategy, player 1 (iteration {self.iteration_count}):",
                str(self.average_strategy(1)),
            ]
        return "\n".join(lines)

    # ── Per-player updates ────────────────────────────────────────────────────

    def _fictitious_play(self, player: int) -> None:
        opponent_average = self.average_strategy(player ^ 1)
        action, _ = self.oracle.best_response_action(player, opponent_average)
        self.strategy_sums.increment(player, action)

    def _counterfactual_regret(self, player: int) -> tuple[np.ndarray, np.ndarray]:
        """Return (own current strategy, instantaneous regret cfu - ev)."""
        sp = self.regrets.current_strategy(player)
        so = self.regrets.current_strategy(player ^ 1)
        cfu = self.oracle.action_values(player, so)
        ev = float(sp @ cfu)
        return sp, cfu - ev

    def _cfr(self, player: int) -> None:
        sp, instant = self._counterfactual_regret(player)
        self.regrets.update(player, instant)
        self.strategy_sums.add(player, sp)

    def _cfr_plus(self, player: int) -> None:
        sp, instant = self._counterfactual_regret(player)
        self.regrets.update(player, instant)
        if self.iteration_count > self.delay:
            t = self.iteration_count - self.delay
            self.strategy_sums.add(player, sp, self.weighting.weight(t))


# ─── Driver ────────────────────────────────────────────────────────────────────


def run_until_converged(
    solver: EquilibriumSolver,
    epsilon: float,
    *,
    max_iterations: int | None = None,
    callback: Callable[[int, float, float], None] | None = None,
    record_history: bool = True,
) -> SolveResult:
    """Iterate *solver* until its exploitability is <= epsilon.

    Args:
        solver:         Solver to advance (mutated in place).
        epsilon:        Convergence threshold.
        max_iterations: Optional stop once the solver's iteration count
                        reaches this value.  None runs until convergence,
                        which may never happen (e.g. epsilon below floating
                        precision).
        callback:       Called after every iteration with
                        (iteration, elapsed_seconds, exploitability).
        record_history: Keep every exploitability in SolveResult.history.
                        Pass False for unbounded runs so memory stays
                        constant; history is then left empty.

    Returns:
        SolveResult with the final average strategies and history.
    """
    history: list[float] = []
    exploitability = solver.get_exploitability()
    converged = False
    t0 = time.time()

    while max_iterations is None or solver.get_iteration_count() < max_iterations:
        solver.iteration()
        exploitability = solver.get_exploitability()
        if record_history:
            history.append(exploitability)

        if callback is not None:
            callback(solver.get_iteration_count(), time.time() - t0, exploitability)

        if exploitability <= epsilon:
            converged = True
            break

    return SolveResult(
        algorithm=solver.algorithm,
        size=solver.game.size,
        strategies=(solver.average_strategy(0), solver.average_strategy(1)),
        n_iterations=solver.get_iteration_count(),
        exploitability=exploitability,
        converged=converged,
        history=history,
        elapsed=time.time() - t0,
    )


def solve(
    game: PayoffTable,
    config: SolverConfig,
    *,
    max_iterations: int | None = None,
    callback: Callable[[int, float, float], None] | None = None,
    record_history: bool = True,
) -> SolveResult:
    """Build a solver for *game* from *config* and run it to config.epsilon.

    Examples:
        >>> from matrix_cfr.engine.payoffs import rock_paper_scissors
        >>> result = solve(rock_paper_scissors(), SolverConfig(size=3, epsilon=0.01))
        >>> result.converged
        True
    """
    solver = EquilibriumSolver.from_config(game, config)
    return run_until_converged(
        solver,
        config.epsilon,
        max_iterations=max_iterations,
        callback=callback,
        record_history=record_history,
    )
