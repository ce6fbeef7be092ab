"""Per-player strategy and regret accumulators.

Both accumulators hold a float64[2, N] array (row = player) and are updated
in place by the solver each iteration.

    StrategyAccumulator  — cumulative (possibly weighted) strategy mass.
                           Normalized, it is the long-run average strategy
                           whose exploitability is reported.
    RegretAccumulator    — cumulative regret per action.  Signed for CFR;
                           floored at 0 after every update for CFR+.
                           Regret matching turns it into the current
                           (per-iteration) strategy.
"""

from __future__ import annotations

import numpy as np


def _uniform(size: int) -> np.ndarray:
    return np.full(size, 1.0 / size)


class StrategyAccumulator:
    """Running sum of per-iteration strategies for both players."""

    def __init__(self, size: int) -> None:
        self.size = size
        self.totals = np.zeros((2, size))

    def add(self, player: int, strategy: np.ndarray, weight: float = 1.0) -> None:
        """Accumulate ``strategy * weight`` into *player*'s row."""
        self.totals[player] += strategy * weight

    def increment(self, player: int, action: int) -> None:
        """Add one unit of mass to a single action (pure-strategy play)."""
        self.totals[player, action] += 1.0

    def normalized_average(self, player: int) -> np.ndarray:
        """Return the average strategy; uniform if no positive mass yet.

        Examples:
            >>> acc = StrategyAccumulator(4)
            >>> acc.normalized_average(0)
            array([0.25, 0.25, 0.25, 0.25])
            >>> acc.increment(0, 2)
            >>> acc.normalized_average(0)
            array([0., 0., 1., 0.])
        """
        row = self.totals[player]
        total = row.sum()
        if total <= 0.0:
            return _uniform(self.size)
        return row / total


class RegretAccumulator:
    """Cumulative regret for both players with optional CFR+ flooring.

    Args:
        size:           Number of actions per player.
        clamp_negative: If True, regrets are floored at 0 after each update
                        (regret-matching+).  If False, regrets may go negative.
    """

    def __init__(self, size: int, clamp_negative: bool = False) -> None:
        self.size = size
        self.clamp_negative = clamp_negative
        self.regrets = np.zeros((2, size))

    def update(self, player: int, instant_regret: np.ndarray) -> None:
        """Add this iteration's per-action regret to *player*'s row.

        CFR:  R[a] = R[a] + r[a]
        CFR+: R[a] = max(0, R[a] + r[a])
        """
        row = self.regrets[player] + instant_regret
        if self.clamp_negative:
            np.maximum(row, 0.0, out=row)
        self.regrets[player] = row

    def current_strategy(self, player: int) -> np.ndarray:
        """Regret matching: probability proportional to positive regret.

        Falls back to uniform when no action has positive regret (including
        the initial all-zero state).
        """
        positive = np.maximum(self.regrets[player], 0.0)
        total = positive.sum()
        if total <= 0.0:
            return _uniform(self.size)
        return positive / total
