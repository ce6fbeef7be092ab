"""Command-line driver for the matrix-game equilibrium solver.

Single run (prints one progress line per iteration until converged):
    python -m matrix_cfr.cli -a cfr+ -s 1000 -e 0.0001

Batch of independent games (prints an iterations-to-converge summary):
    python -m matrix_cfr.cli -a cfr -s 50 -e 0.001 --batch 20 --seed 1

Invalid options exit with status 2 and a message naming the bad value.
"""

from __future__ import annotations

import argparse
import sys

import numpy as np

from matrix_cfr.analysis.batch import RunSummary, print_batch_report, run_batch
from matrix_cfr.analysis.report import (
    format_progress,
    print_config_header,
    print_dump,
    print_solve_summary,
    print_strategy_table,
)
from matrix_cfr.engine.payoffs import Distribution, create_game
from matrix_cfr.solvers.config import Algorithm, SolverConfig, WeightingMode
from matrix_cfr.solvers.equilibrium import EquilibriumSolver, run_until_converged


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matrix-cfr",
        description="Approximate Nash equilibria of random zero-sum matrix games by self-play.",
    )
    parser.add_argument(
        "-a",
        "--algorithm",
        type=str,
        default="cfr+",
        help="Algorithm: fp, cfr, cfr+ (or 0 = fictitious play, 1 = CFR, 2 = CFR+)",
    )
    parser.add_argument("-s", "--size", type=int, default=1000, help="Matrix size (actions per player)")
    parser.add_argument("-e", "--epsilon", type=float, default=1e-4, help="Exploitability threshold")
    parser.add_argument(
        "-d",
        "--distribution",
        type=str,
        default="uniform",
        help="Payoff distribution: uniform, normal, cauchy",
    )
    parser.add_argument("--delay", type=int, default=0, help="CFR+ averaging delay (iterations)")
    parser.add_argument(
        "-w",
        "--weighting",
        type=str,
        default="quadratic",
        help="CFR+ averaging weight: constant, linear, quadratic",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for payoff generation")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Stop after this many iterations even if not converged (default: no limit)",
    )
    parser.add_argument("--batch", type=int, default=0, help="Solve this many independent games")
    parser.add_argument("--dump", action="store_true", help="Print payoff matrix and strategies at the end")
    parser.add_argument("--quiet", action="store_true", help="Suppress per-iteration progress lines")
    return parser


def config_from_args(args: argparse.Namespace) -> SolverConfig:
    """Build and validate a SolverConfig; raises ValueError on bad input."""
    return SolverConfig(
        size=args.size,
        distribution=Distribution.parse(args.distribution),
        algorithm=Algorithm.parse(args.algorithm),
        delay=args.delay,
        weighting=WeightingMode.parse(args.weighting),
        epsilon=args.epsilon,
    ).validate()


def _print_run(run: RunSummary) -> None:
    print(f"run={run.run_index} i={run.n_iterations} e={run.exploitability:.6f}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        if args.max_iterations is not None and args.max_iterations < 1:
            raise ValueError(f"--max-iterations must be >= 1, got {args.max_iterations}.")
        if args.batch < 0:
            raise ValueError(f"--batch must be >= 0, got {args.batch}.")
        if args.seed is not None and args.seed < 0:
            raise ValueError(f"--seed must be >= 0, got {args.seed}.")
    except ValueError as exc:
        parser.error(str(exc))

    print_config_header(config)

    if args.batch:
        batch = run_batch(
            config,
            args.batch,
            seed=args.seed,
            max_iterations=args.max_iterations,
            on_run_complete=None if args.quiet else _print_run,
        )
        print_batch_report(batch)
        return 0 if batch.n_converged == len(batch.runs) else 1

    print("init")
    game = create_game(config.size, config.distribution, np.random.default_rng(args.seed))
    solver = EquilibriumSolver.from_config(game, config)

    print("start")
    progress = None if args.quiet else lambda i, t, e: print(format_progress(i, t, e))
    result = run_until_converged(
        solver,
        config.epsilon,
        max_iterations=args.max_iterations,
        callback=progress,
        record_history=False,
    )
    print_solve_summary(result)
    print_strategy_table(result)

    if args.dump:
        print_dump(solver)

    return 0 if result.converged else 1


if __name__ == "__main__":
    sys.exit(main())
