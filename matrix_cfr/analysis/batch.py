"""Batch runs: solve many independent random games and summarise convergence.

Provides:
- run_batch()               — solve n_runs freshly generated games
- compute_iteration_stats() — mean / std / median / percentiles / skewness of
                              iterations-to-converge plus a t-based
                              confidence interval for the mean
- print_batch_report()      — human-readable summary

Each run draws its payoff table from its own numpy Generator spawned from a
single SeedSequence, so a batch is reproducible from one seed and runs share
no state.

Usage (standalone report):
    python -m matrix_cfr.analysis.batch
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy import stats

from matrix_cfr.engine.payoffs import create_game
from matrix_cfr.solvers.config import SolverConfig
from matrix_cfr.solvers.equilibrium import SolveResult, solve

# ─── Dataclasses ──────────────────────────────────────────────────────────────


@dataclass
class RunSummary:
    """Outcome of one run in a batch.

    Attributes:
        run_index:      Position in the batch (0-based).
        n_iterations:   Iterations performed.
        exploitability: Final exploitability.
        converged:      True if epsilon was reached before any cap.
        elapsed:        Seconds spent iterating.
    """

    run_index: int
    n_iterations: int
    exploitability: float
    converged: bool
    elapsed: float


@dataclass
class IterationStats:
    """Descriptive statistics of iterations-to-converge across a batch.

    Attributes:
        n_runs:      Number of runs included.
        mean:        Mean iteration count.
        std:         Sample standard deviation (0.0 for a single run).
        median:      Median iteration count.
        minimum:     Fewest iterations.
        maximum:     Most iterations.
        skewness:    Fisher skewness (0.0 when undefined).
        ci_low:      Lower bound of the confidence interval for the mean.
        ci_high:     Upper bound of the confidence interval for the mean.
        confidence:  Confidence level of the interval.
        percentiles: Keys 'p5', 'p25', 'p50', 'p75', 'p95'.
    """

    n_runs: int
    mean: float
    std: float
    median: float
    minimum: int
    maximum: int
    skewness: float
    ci_low: float
    ci_high: float
    confidence: float
    percentiles: dict[str, float]


@dataclass
class BatchResult:
    """All runs of a batch plus aggregated statistics.

    Attributes:
        config:          Configuration shared by every run.
        seed:            Root seed of the batch.
        runs:            Per-run summaries in run order.
        iteration_stats: Statistics over runs that converged (None if none did).
        total_elapsed:   Sum of per-run iteration time.
    """

    config: SolverConfig
    seed: int | None
    runs: list[RunSummary]
    iteration_stats: IterationStats | None
    total_elapsed: float

    @property
    def n_converged(self) -> int:
        return sum(1 for r in self.runs if r.converged)


# ─── Computation functions ────────────────────────────────────────────────────


def compute_iteration_stats(
    iteration_counts: list[int] | np.ndarray,
    confidence: float = 0.95,
) -> IterationStats:
    """Summarise a sample of iteration counts.

    The confidence interval uses Student's t with n-1 degrees of freedom;
    with a single run it collapses to the observed value.

    Raises:
        ValueError: If the sample is empty.
    """
    counts = np.asarray(iteration_counts, dtype=np.float64)
    n = len(counts)
    if n == 0:
        raise ValueError("compute_iteration_stats() needs at least one iteration count.")

    mean = float(np.mean(counts))
    median = float(np.median(counts))
    if n > 1:
        std = float(np.std(counts, ddof=1))
        sem = std / np.sqrt(n)
        t_crit = float(stats.t.ppf((1.0 + confidence) / 2.0, df=n - 1))
        ci_low, ci_high = mean - t_crit * sem, mean + t_crit * sem
    else:
        std = 0.0
        ci_low = ci_high = mean

    skewness = float(stats.skew(counts)) if n > 2 and std > 0 else 0.0
    pct_values = np.percentile(counts, [5, 25, 50, 75, 95])
    percentiles = {
        "p5": float(pct_values[0]),
        "p25": float(pct_values[1]),
        "p50": float(pct_values[2]),
        "p75": float(pct_values[3]),
        "p95": float(pct_values[4]),
    }
    return IterationStats(
        n_runs=n,
        mean=mean,
        std=std,
        median=median,
        minimum=int(counts.min()),
        maximum=int(counts.max()),
        skewness=skewness,
        ci_low=float(ci_low),
        ci_high=float(ci_high),
        confidence=confidence,
        percentiles=percentiles,
    )


def run_batch(
    config: SolverConfig,
    n_runs: int,
    *,
    seed: int | None = None,
    max_iterations: int | None = None,
    on_run_complete: Callable[[RunSummary], None] | None = None,
) -> BatchResult:
    """Solve *n_runs* independent random games with the same configuration.

    Args:
        config:          Game size, distribution, algorithm and epsilon.
        n_runs:          Number of independent games (>= 1).
        seed:            Root seed; None draws fresh OS entropy.
        max_iterations:  Optional per-run iteration cap.
        on_run_complete: Called with each RunSummary as soon as it finishes.

    Returns:
        BatchResult with per-run summaries and iteration statistics.

    Raises:
        ValueError: If n_runs < 1.
    """
    if n_runs < 1:
        raise ValueError(f"run_batch() requires n_runs >= 1, got {n_runs}.")

    children = np.random.SeedSequence(seed).spawn(n_runs)
    runs: list[RunSummary] = []

    for i, child in enumerate(children):
        rng = np.random.default_rng(child)
        game = create_game(config.size, config.distribution, rng)
        result: SolveResult = solve(game, config, max_iterations=max_iterations, record_history=False)
        summary = RunSummary(
            run_index=i,
            n_iterations=result.n_iterations,
            exploitability=result.exploitability,
            converged=result.converged,
            elapsed=result.elapsed,
        )
        runs.append(summary)
        if on_run_complete is not None:
            on_run_complete(summary)

    converged_counts = [r.n_iterations for r in runs if r.converged]
    iteration_stats = compute_iteration_stats(converged_counts) if converged_counts else None

    return BatchResult(
        config=config,
        seed=seed,
        runs=runs,
        iteration_stats=iteration_stats,
        total_elapsed=sum(r.elapsed for r in runs),
    )


# ─── Report ───────────────────────────────────────────────────────────────────


def print_batch_report(batch: BatchResult) -> None:
    """Print a summary table of a batch run."""
    cfg = batch.config
    print("=" * 56)
    print("Batch Convergence Summary")
    print("=" * 56)
    print(f"  Algorithm:     {cfg.algorithm.label}")
    print(f"  Matrix size:   {cfg.size}")
    print(f"  Distribution:  {cfg.distribution.value}")
    print(f"  Epsilon:       {cfg.epsilon:g}")
    print(f"  Runs:          {len(batch.runs)}  (converged: {batch.n_converged})")
    print(f"  Total time:    {batch.total_elapsed:.2f}s")
    print()

    st = batch.iteration_stats
    if st is None:
        print("  No run converged; no iteration statistics.")
        print()
        return

    pct = int(round(st.confidence * 100))
    print("  Iterations to converge:")
    print(f"    mean      {st.mean:12.1f}   ({pct}% CI {st.ci_low:.1f} .. {st.ci_high:.1f})")
    print(f"    std       {st.std:12.1f}")
    print(f"    median    {st.median:12.1f}")
    print(f"    min / max {st.minimum:>6} / {st.maximum:<6}")
    print(f"    skewness  {st.skewness:12.3f}")
    for label, value in st.percentiles.items():
        print(f"    {label:<9} {value:12.1f}")
    print()


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from matrix_cfr.solvers.config import Algorithm

    for algorithm in Algorithm:
        cfg = SolverConfig(size=10, algorithm=algorithm, epsilon=1e-3).validate()
        print_batch_report(run_batch(cfg, n_runs=20, seed=42, max_iterations=100_000))
