"""Solver configuration: algorithm / weighting selectors and SolverConfig.

SolverConfig is a frozen dataclass built by the caller (CLI, dashboard,
tests) and passed explicitly to the solver.

Defaults and ranges:
    algorithm  CFR+               (codes 0 = FP, 1 = CFR, 2 = CFR+)
    size       1000               (2 .. 100000)
    epsilon    1e-4               (1e-12 .. 1)
    weighting  quadratic, delay 0 (CFR+ averaging weight t²)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from matrix_cfr.engine.payoffs import Distribution

MIN_SIZE: int = 2
MAX_SIZE: int = 100_000
MIN_EPSILON: float = 1e-12
MAX_EPSILON: float = 1.0


class Algorithm(Enum):
    FICTITIOUS_PLAY = "fp"
    CFR = "cfr"
    CFR_PLUS = "cfr+"

    @property
    def label(self) -> str:
        return _ALGORITHM_LABELS[self]

    @classmethod
    def parse(cls, text: str | int) -> Algorithm:
        """Parse a value string ('fp', 'cfr', 'cfr+') or integer code (0, 1, 2).

        Raises:
            ValueError: If *text* names no algorithm.
        """
        key = str(text).strip().lower()
        if key in _ALGORITHM_ALIASES:
            return _ALGORITHM_ALIASES[key]
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown algorithm {text!r}; expected one of: {valid} (or 0/1/2).")


_ALGORITHM_LABELS: dict[Algorithm, str] = {
    Algorithm.FICTITIOUS_PLAY: "Fictitious play",
    Algorithm.CFR: "CFR",
    Algorithm.CFR_PLUS: "CFR+",
}

_ALGORITHM_ALIASES: dict[str, Algorithm] = {
    "0": Algorithm.FICTITIOUS_PLAY,
    "1": Algorithm.CFR,
    "2": Algorithm.CFR_PLUS,
    "fp": Algorithm.FICTITIOUS_PLAY,
    "fictitious-play": Algorithm.FICTITIOUS_PLAY,
    "cfr": Algorithm.CFR,
    "cfr+": Algorithm.CFR_PLUS,
    "cfr-plus": Algorithm.CFR_PLUS,
}


class WeightingMode(Enum):
    """CFR+ averaging weight applied to iteration t (after the delay)."""

    CONSTANT = "constant"  # w = 1
    LINEAR = "linear"  # w = t
    QUADRATIC = "quadratic"  # w = t²

    def weight(self, t: int) -> float:
        if self is WeightingMode.CONSTANT:
            return 1.0
        if self is WeightingMode.LINEAR:
            return float(t)
        if self is WeightingMode.QUADRATIC:
            return float(t) * float(t)
        raise ValueError(f"Unsupported weighting mode: {self!r}")

    @classmethod
    def parse(cls, text: str) -> WeightingMode:
        """Raises ValueError for an unknown mode name."""
        key = str(text).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown weighting mode {text!r}; expected one of: {valid}.")


@dataclass(frozen=True)
class SolverConfig:
    """Caller-tunable solver settings.

    Attributes:
        size:         Actions per player (N).
        distribution: Payoff distribution for generated games.
        algorithm:    Self-play update rule.
        delay:        CFR+ averaging delay; iterations <= delay add nothing
                      to the average strategy.
        weighting:    CFR+ averaging weight mode.
        epsilon:      Convergence threshold on exploitability.
    """

    size: int = 1000
    distribution: Distribution = Distribution.UNIFORM
    algorithm: Algorithm = Algorithm.CFR_PLUS
    delay: int = 0
    weighting: WeightingMode = WeightingMode.QUADRATIC
    epsilon: float = 1e-4

    def validate(self) -> SolverConfig:
        """Check every field and return self.

        Raises:
            ValueError: On the first out-of-range field, naming it.
        """
        if not isinstance(self.size, int) or not MIN_SIZE <= self.size <= MAX_SIZE:
            raise ValueError(
                f"size must be an integer in [{MIN_SIZE}, {MAX_SIZE}], got {self.size!r}."
            )
        if not isinstance(self.distribution, Distribution):
            raise ValueError(f"distribution must be a Distribution, got {self.distribution!r}.")
        if not isinstance(self.algorithm, Algorithm):
            raise ValueError(f"algorithm must be an Algorithm, got {self.algorithm!r}.")
        if not isinstance(self.delay, int) or self.delay < 0:
            raise ValueError(f"delay must be a non-negative integer, got {self.delay!r}.")
        if not isinstance(self.weighting, WeightingMode):
            raise ValueError(f"weighting must be a WeightingMode, got {self.weighting!r}.")
        if not MIN_EPSILON <= self.epsilon <= MAX_EPSILON:
            raise ValueError(
                f"epsilon must be in [{MIN_EPSILON:g}, {MAX_EPSILON:g}], got {self.epsilon!r}."
            )
        return self
