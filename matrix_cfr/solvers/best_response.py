"""Best-response oracle and exploitability for matrix games.

Exploitability summary
----------------------
For average strategies (x, y) of players 0 and 1:

    exploitability = (max_a (P0 @ y)[a] + max_b (P1 @ x)[b]) / 2

where P0 = M and P1 = -Mᵀ.  The game value cancels between the two terms, so
the result is the mean gain a best-responding opponent earns against each
player's average.  It is >= 0 and equals 0 exactly at a Nash equilibrium.
"""

from __future__ import annotations

import numpy as np

from matrix_cfr.engine.payoffs import PayoffTable


class BestResponseOracle:
    """Computes best responses against a fixed opponent distribution."""

    def __init__(self, game: PayoffTable) -> None:
        self.game = game

    def action_values(self, player: int, opponent_distribution: np.ndarray) -> np.ndarray:
        """Expected value of each of *player*'s actions against the opponent mix.

        value[a] = Σ_b opponent_distribution[b] · payoff(player, a, b)
        """
        return self.game.player_matrix(player) @ opponent_distribution

    def best_response_value(self, player: int, opponent_distribution: np.ndarray) -> float:
        """Maximum expected value *player* can earn against the opponent mix."""
        return float(np.max(self.action_values(player, opponent_distribution)))

    def best_response_action(
        self, player: int, opponent_distribution: np.ndarray
    ) -> tuple[int, float]:
        """Return (action, value) of the best response.

        Ties resolve to the lowest action index: np.argmax returns the first
        occurrence of the maximum.

        Examples:
            >>> from matrix_cfr.engine.payoffs import rock_paper_scissors
            >>> oracle = BestResponseOracle(rock_paper_scissors())
            >>> oracle.best_response_action(0, np.full(3, 1 / 3))
            (0, 0.0)
        """
        values = self.action_values(player, opponent_distribution)
        action = int(np.argmax(values))
        return action, float(values[action])

    def exploitability(self, average0: np.ndarray, average1: np.ndarray) -> float:
        """Mean best-response gain against each player's average strategy.

        Args:
            average0: Player 0's normalized average strategy.
            average1: Player 1's normalized average strategy.

        Returns:
            Non-negative exploitability.  Rounding can push an exact
            equilibrium a few ulps below zero; that is clamped to 0.0.
        """
        gain0 = self.best_response_value(0, average1)
        gain1 = self.best_response_value(1, average0)
        return max(0.0, (gain0 + gain1) / 2.0)
