"""
Payoff tables for two-player zero-sum matrix games.

The table stores only player 0's payoffs as an N×N float64 array:
    values[a, b] = payoff to player 0 for playing a against opponent action b

Player 1's payoff is derived by antisymmetry: for player 1 playing a against
player 0's action b, the payoff is -values[b, a].  Both per-player matrices
are precomputed once and marked read-only so the table cannot change after
construction.
"""

from __future__ import annotations

from enum import Enum

import numpy as np


class Distribution(Enum):
    """Random distribution used to fill a generated payoff table."""

    UNIFORM = "uniform"  # U(-1, 1)
    NORMAL = "normal"  # N(0, 1)
    CAUCHY = "cauchy"  # standard Cauchy, heavy-tailed

    @classmethod
    def parse(cls, text: str) -> Distribution:
        """Look up a distribution by its value string (case-insensitive).

        Raises:
            ValueError: If the name is not a known distribution.
        """
        key = text.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown distribution {text!r}; expected one of: {valid}.")


class PayoffTable:
    """Immutable N×N zero-sum payoff table.

    Examples:
        >>> table = PayoffTable.from_matrix([[0, 1], [-1, 0]])
        >>> table.size
        2
        >>> table.get_payoff(0, 0, 1), table.get_payoff(1, 1, 0)
        (1.0, -1.0)
    """

    def __init__(self, values: np.ndarray) -> None:
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError(f"Payoff matrix must be square, got shape {values.shape}.")
        if values.shape[0] < 2:
            raise ValueError(f"Payoff matrix needs at least 2 actions, got {values.shape[0]}.")
        if not np.all(np.isfinite(values)):
            raise ValueError("Payoff matrix contains non-finite values.")

        values.flags.writeable = False
        player1 = -values.T
        player1 = np.ascontiguousarray(player1)
        player1.flags.writeable = False

        self._values = values
        self._matrices = (values, player1)

    @classmethod
    def from_matrix(cls, values) -> PayoffTable:
        """Wrap an explicit square matrix of player-0 payoffs."""
        return cls(np.asarray(values, dtype=np.float64))

    @property
    def size(self) -> int:
        return self._values.shape[0]

    @property
    def values(self) -> np.ndarray:
        """Player 0's payoff matrix (read-only view)."""
        return self._values

    def get_payoff(self, player: int, a: int, b: int) -> float:
        """Payoff to *player* for action *a* against opponent action *b*."""
        if player == 0:
            return float(self._values[a, b])
        return float(-self._values[b, a])

    def player_matrix(self, player: int) -> np.ndarray:
        """Return the N×N matrix of *player*'s payoffs, indexed [own, opponent]."""
        return self._matrices[player]

    def __repr__(self) -> str:
        return f"PayoffTable(size={self.size})"


# ─── Construction ─────────────────────────────────────────────────────────────


def create_game(
    size: int,
    distribution: Distribution,
    rng: np.random.Generator,
) -> PayoffTable:
    """Generate a random size×size payoff table.

    Values are drawn row-major from *rng* using the selected distribution.
    This is the only place randomness enters the solver.

    Args:
        size:         Number of actions per player (>= 2).
        distribution: Value distribution.
        rng:          NumPy random generator supplied by the caller.

    Returns:
        A new PayoffTable.

    Raises:
        ValueError: If size < 2.

    Examples:
        >>> table = create_game(3, Distribution.UNIFORM, np.random.default_rng(0))
        >>> table.size
        3
    """
    if size < 2:
        raise ValueError(f"Matrix size must be at least 2, got {size}.")

    shape = (size, size)
    if distribution is Distribution.UNIFORM:
        values = rng.uniform(-1.0, 1.0, size=shape)
    elif distribution is Distribution.NORMAL:
        values = rng.standard_normal(size=shape)
    elif distribution is Distribution.CAUCHY:
        values = rng.standard_cauchy(size=shape)
    else:
        raise ValueError(f"Unsupported distribution: {distribution!r}")
    return PayoffTable(values)


# ─── Classic games ────────────────────────────────────────────────────────────


def rock_paper_scissors() -> PayoffTable:
    """Rock-paper-scissors; unique equilibrium is uniform (1/3 each)."""
    return PayoffTable.from_matrix(
        [
            [0.0, 1.0, -1.0],
            [-1.0, 0.0, 1.0],
            [1.0, -1.0, 0.0],
        ]
    )


def matching_pennies() -> PayoffTable:
    """Matching pennies; unique equilibrium is (1/2, 1/2) for both players."""
    return PayoffTable.from_matrix(
        [
            [1.0, -1.0],
            [-1.0, 1.0],
        ]
    )
