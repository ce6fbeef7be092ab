"""
Shared pytest fixtures for the matrix-game solver tests.

Provides classic games and seeded random payoff tables.
"""

from __future__ import annotations

import numpy as np
import pytest

from matrix_cfr.engine.payoffs import (
    Distribution,
    PayoffTable,
    create_game,
    matching_pennies,
    rock_paper_scissors,
)

# Skew-symmetric RPS variant with interior equilibrium (1/4, 1/2, 1/4) for
# both players.  Uniform play is not an equilibrium here, so the update rules
# have real work to do (unlike plain RPS).
BIASED_RPS: list[list[float]] = [
    [0.0, -1.0, 2.0],
    [1.0, 0.0, -1.0],
    [-2.0, 1.0, 0.0],
]
BIASED_RPS_EQUILIBRIUM: np.ndarray = np.array([0.25, 0.5, 0.25])


def random_game(size: int, seed: int, distribution: Distribution = Distribution.UNIFORM) -> PayoffTable:
    """Build a reproducible random game."""
    return create_game(size, distribution, np.random.default_rng(seed))


@pytest.fixture
def rps() -> PayoffTable:
    return rock_paper_scissors()


@pytest.fixture
def pennies() -> PayoffTable:
    return matching_pennies()


@pytest.fixture
def biased_rps() -> PayoffTable:
    return PayoffTable.from_matrix(BIASED_RPS)


@pytest.fixture
def game10() -> PayoffTable:
    """10×10 uniform game, seed 0."""
    return random_game(10, seed=0)
