"""Tests for matrix_cfr/solvers/equilibrium.py — the self-play solver.

Test structure mirrors the module structure:

    TestIterationCounter    — counter starts at 0, +1 per joint iteration
    TestFictitiousPlay      — best-response increments, lowest-index ties
    TestCfrUpdates          — exact first-iteration regrets, update order
    TestCfrPlusUpdates      — clamped regrets, delayed weighted averaging
    TestInvariants          — distributions, non-negativity, determinism
    TestConvergence         — RPS scenarios, 2×2 games, decreasing trend
    TestSolveDriver         — solve() / run_until_converged() results
    TestDump                — diagnostic text
"""

from __future__ import annotations

import numpy as np
import pytest

from matrix_cfr.engine.payoffs import PayoffTable
from matrix_cfr.solvers.config import Algorithm, SolverConfig, WeightingMode
from matrix_cfr.solvers.equilibrium import (
    EquilibriumSolver,
    SolveResult,
    run_until_converged,
    solve,
)
from tests.conftest import BIASED_RPS_EQUILIBRIUM, random_game

ALL_ALGORITHMS = list(Algorithm)


def _run(solver: EquilibriumSolver, n: int) -> list[float]:
    history = []
    for _ in range(n):
        solver.iteration()
        history.append(solver.get_exploitability())
    return history


# ─── TestIterationCounter ──────────────────────────────────────────────────────


class TestIterationCounter:
    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_starts_at_zero(self, rps: PayoffTable, algorithm: Algorithm) -> None:
        assert EquilibriumSolver(rps, algorithm).get_iteration_count() == 0

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_one_per_iteration(self, rps: PayoffTable, algorithm: Algorithm) -> None:
        solver = EquilibriumSolver(rps, algorithm)
        for expected in range(1, 6):
            solver.iteration()
            assert solver.get_iteration_count() == expected

    def test_exploitability_does_not_advance(self, rps: PayoffTable) -> None:
        solver = EquilibriumSolver(rps)
        solver.get_exploitability()
        assert solver.get_iteration_count() == 0

    def test_from_config(self, rps: PayoffTable) -> None:
        cfg = SolverConfig(size=3, algorithm=Algorithm.CFR, delay=4, weighting=WeightingMode.LINEAR)
        solver = EquilibriumSolver.from_config(rps, cfg)
        assert solver.algorithm is Algorithm.CFR
        assert solver.delay == 4
        assert solver.weighting is WeightingMode.LINEAR


# ─── TestFictitiousPlay ────────────────────────────────────────────────────────


class TestFictitiousPlay:
    def test_first_iteration_rps(self, rps: PayoffTable) -> None:
        solver = EquilibriumSolver(rps, Algorithm.FICTITIOUS_PLAY)
        solver.iteration()
        # Player 0 faces uniform: all actions tie at 0 → action 0.
        assert np.array_equal(solver.strategy_sums.totals[0], [1.0, 0.0, 0.0])
        # Player 1 then faces player 0's average (pure action 0); its payoffs
        # are column 0 of -Mᵀ = M for RPS: [0, -1, 1] → action 2.
        assert np.array_equal(solver.strategy_sums.totals[1], [0.0, 0.0, 1.0])

    def test_ties_pick_lowest_index(self) -> None:
        solver = EquilibriumSolver(PayoffTable.from_matrix(np.zeros((4, 4))), Algorithm.FICTITIOUS_PLAY)
        _run(solver, 5)
        for player in (0, 1):
            assert np.array_equal(solver.strategy_sums.totals[player], [5.0, 0.0, 0.0, 0.0])

    def test_one_unit_per_player_per_iteration(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.FICTITIOUS_PLAY)
        _run(solver, 25)
        for player in (0, 1):
            assert solver.strategy_sums.totals[player].sum() == 25.0

    def test_regrets_unused(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.FICTITIOUS_PLAY)
        _run(solver, 10)
        assert np.array_equal(solver.regrets.regrets, np.zeros((2, 10)))


# ─── TestCfrUpdates ────────────────────────────────────────────────────────────


class TestCfrUpdates:
    def test_first_iteration_regrets(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR)
        solver.iteration()
        # Player 0: so = uniform, cfu = M @ u = (1/3, 0, -1/3), ev = 0.
        assert np.allclose(solver.regrets.regrets[0], [1 / 3, 0.0, -1 / 3])
        # Player 1 reads player 0's updated regrets: so = (1, 0, 0).
        # -Mᵀ = M (skew-symmetric), cfu = M[:, 0] = (0, 1, -2), ev = -1/3.
        assert np.allclose(solver.regrets.regrets[1], [1 / 3, 4 / 3, -5 / 3])

    def test_regrets_can_go_negative(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR)
        solver.iteration()
        assert solver.regrets.regrets.min() < 0.0

    def test_unweighted_strategy_accumulation(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR)
        _run(solver, 7)
        # Each iteration adds a probability vector of mass 1.
        for player in (0, 1):
            assert abs(solver.strategy_sums.totals[player].sum() - 7.0) < 1e-9

    def test_first_iteration_adds_uniform(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR)
        solver.iteration()
        for player in (0, 1):
            assert np.allclose(solver.strategy_sums.totals[player], 1 / 3)


# ─── TestCfrPlusUpdates ────────────────────────────────────────────────────────


class TestCfrPlusUpdates:
    def test_first_iteration_regrets_clamped(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR_PLUS)
        solver.iteration()
        assert np.allclose(solver.regrets.regrets[0], [1 / 3, 0.0, 0.0])
        assert np.allclose(solver.regrets.regrets[1], [1 / 3, 4 / 3, 0.0])

    @pytest.mark.parametrize("weighting", list(WeightingMode))
    def test_regrets_non_negative_every_iteration(
        self, game10: PayoffTable, weighting: WeightingMode
    ) -> None:
        solver = EquilibriumSolver(game10, Algorithm.CFR_PLUS, weighting=weighting)
        for _ in range(200):
            solver.iteration()
            assert solver.regrets.regrets.min() >= 0.0

    @pytest.mark.parametrize(
        "weighting, weights",
        [
            (WeightingMode.CONSTANT, [1, 1, 1, 1]),
            (WeightingMode.LINEAR, [1, 2, 3, 4]),
            (WeightingMode.QUADRATIC, [1, 4, 9, 16]),
        ],
    )
    def test_weighted_mass_without_delay(
        self, biased_rps: PayoffTable, weighting: WeightingMode, weights: list[int]
    ) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR_PLUS, delay=0, weighting=weighting)
        expected = 0.0
        for w in weights:
            solver.iteration()
            expected += w
            for player in (0, 1):
                assert abs(solver.strategy_sums.totals[player].sum() - expected) < 1e-9

    @pytest.mark.parametrize("weighting", list(WeightingMode))
    def test_delay_holds_average_fixed(self, biased_rps: PayoffTable, weighting: WeightingMode) -> None:
        delay = 5
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR_PLUS, delay=delay, weighting=weighting)
        for _ in range(delay):
            solver.iteration()
            assert np.array_equal(solver.strategy_sums.totals, np.zeros((2, 3)))

        previous = 0.0
        expected = 0.0
        for t in range(1, 6):
            solver.iteration()
            expected += weighting.weight(t)
            for player in (0, 1):
                mass = solver.strategy_sums.totals[player].sum()
                assert abs(mass - expected) < 1e-9
            assert mass > previous
            previous = mass

    def test_delay_reports_uniform_average(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR_PLUS, delay=3)
        _run(solver, 3)
        for player in (0, 1):
            assert np.allclose(solver.average_strategy(player), 1 / 3)

    def test_delay_does_not_affect_regrets(self, game10: PayoffTable) -> None:
        a = EquilibriumSolver(game10, Algorithm.CFR_PLUS, delay=0)
        b = EquilibriumSolver(game10, Algorithm.CFR_PLUS, delay=20)
        _run(a, 30)
        _run(b, 30)
        assert np.array_equal(a.regrets.regrets, b.regrets.regrets)


# ─── TestInvariants ────────────────────────────────────────────────────────────


class TestInvariants:
    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_average_is_distribution_every_iteration(
        self, game10: PayoffTable, algorithm: Algorithm
    ) -> None:
        solver = EquilibriumSolver(game10, algorithm)
        for _ in range(100):
            solver.iteration()
            for player in (0, 1):
                avg = solver.average_strategy(player)
                assert np.all(avg >= 0.0)
                assert abs(avg.sum() - 1.0) < 1e-9

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_exploitability_non_negative(self, game10: PayoffTable, algorithm: Algorithm) -> None:
        solver = EquilibriumSolver(game10, algorithm)
        assert solver.get_exploitability() >= 0.0
        assert all(e >= 0.0 for e in _run(solver, 100))

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_payoff_table_unchanged(self, game10: PayoffTable, algorithm: Algorithm) -> None:
        before = game10.values.copy()
        _run(EquilibriumSolver(game10, algorithm), 50)
        assert np.array_equal(game10.values, before)
        for a in range(10):
            for b in range(10):
                assert game10.get_payoff(0, a, b) == -game10.get_payoff(1, b, a)

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_deterministic(self, algorithm: Algorithm) -> None:
        game = random_game(12, seed=3)
        first = _run(EquilibriumSolver(game, algorithm, delay=2, weighting=WeightingMode.LINEAR), 150)
        second = _run(EquilibriumSolver(game, algorithm, delay=2, weighting=WeightingMode.LINEAR), 150)
        assert first == second

    def test_current_strategy_is_distribution(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.CFR)
        _run(solver, 20)
        for player in (0, 1):
            s = solver.current_strategy(player)
            assert np.all(s >= 0.0)
            assert abs(s.sum() - 1.0) < 1e-9


# ─── TestConvergence ───────────────────────────────────────────────────────────


class TestConvergence:
    @pytest.mark.parametrize("algorithm", [Algorithm.CFR, Algorithm.CFR_PLUS])
    def test_rps_below_threshold(self, rps: PayoffTable, algorithm: Algorithm) -> None:
        cfg = SolverConfig(size=3, algorithm=algorithm, epsilon=0.01)
        result = solve(rps, cfg, max_iterations=10_000)
        assert result.converged
        assert result.exploitability < 0.01
        assert result.n_iterations < 10_000

    def test_biased_rps_cfr_plus(self, biased_rps: PayoffTable) -> None:
        cfg = SolverConfig(size=3, algorithm=Algorithm.CFR_PLUS, epsilon=0.01)
        result = solve(biased_rps, cfg, max_iterations=10_000)
        assert result.converged
        for strategy in result.strategies:
            assert np.allclose(strategy, BIASED_RPS_EQUILIBRIUM, atol=0.05)

    def test_biased_rps_cfr(self, biased_rps: PayoffTable) -> None:
        solver = EquilibriumSolver(biased_rps, Algorithm.CFR)
        history = _run(solver, 10_000)
        assert history[-1] < 0.07
        assert history[-1] < history[9]

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    def test_matching_pennies(self, pennies: PayoffTable, algorithm: Algorithm) -> None:
        history = _run(EquilibriumSolver(pennies, algorithm), 5_000)
        assert history[-1] < 0.2
        assert history[-1] <= history[0]

    @pytest.mark.parametrize("algorithm", ALL_ALGORITHMS)
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_random_2x2_runs(self, algorithm: Algorithm, seed: int) -> None:
        game = random_game(2, seed=seed)
        history = _run(EquilibriumSolver(game, algorithm), 2_000)
        assert all(e >= 0.0 for e in history)
        assert min(history[-100:]) <= max(history[:10])

    @pytest.mark.parametrize("algorithm", [Algorithm.CFR, Algorithm.CFR_PLUS])
    def test_decreasing_trend(self, game10: PayoffTable, algorithm: Algorithm) -> None:
        history = _run(EquilibriumSolver(game10, algorithm), 2_000)
        early = float(np.mean(history[:100]))
        late = float(np.mean(history[-100:]))
        assert late < early
        assert history[-1] < history[9]


# ─── TestSolveDriver ───────────────────────────────────────────────────────────


class TestSolveDriver:
    def test_result_fields(self, biased_rps: PayoffTable) -> None:
        cfg = SolverConfig(size=3, algorithm=Algorithm.CFR_PLUS, epsilon=0.01)
        result = solve(biased_rps, cfg, max_iterations=10_000)
        assert isinstance(result, SolveResult)
        assert result.algorithm is Algorithm.CFR_PLUS
        assert result.size == 3
        assert len(result.history) == result.n_iterations
        assert result.history[-1] == result.exploitability
        assert result.elapsed >= 0.0

    def test_stops_at_first_iteration_under_epsilon(self, biased_rps: PayoffTable) -> None:
        cfg = SolverConfig(size=3, algorithm=Algorithm.CFR_PLUS, epsilon=0.01)
        result = solve(biased_rps, cfg, max_iterations=10_000)
        assert all(e > cfg.epsilon for e in result.history[:-1])

    def test_max_iterations_cap(self, game10: PayoffTable) -> None:
        cfg = SolverConfig(size=10, algorithm=Algorithm.FICTITIOUS_PLAY, epsilon=1e-12)
        result = solve(game10, cfg, max_iterations=25)
        assert result.n_iterations == 25
        assert not result.converged
        assert len(result.history) == 25

    def test_callback_called_each_iteration(self, game10: PayoffTable) -> None:
        calls: list[tuple[int, float, float]] = []
        cfg = SolverConfig(size=10, algorithm=Algorithm.CFR, epsilon=1e-12)
        result = solve(game10, cfg, max_iterations=10, callback=lambda i, t, e: calls.append((i, t, e)))
        assert [c[0] for c in calls] == list(range(1, 11))
        assert [c[2] for c in calls] == result.history

    def test_run_until_converged_continues_existing_solver(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.CFR_PLUS)
        _run(solver, 5)
        result = run_until_converged(solver, 1e-12, max_iterations=8)
        assert result.n_iterations == 8
        assert len(result.history) == 3

    def test_history_can_be_disabled(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.FICTITIOUS_PLAY)
        result = run_until_converged(solver, 1e-12, max_iterations=500, record_history=False)
        assert result.n_iterations == 500
        assert result.history == []
        assert result.exploitability == solver.get_exploitability()

    def test_callback_still_runs_without_history(self, game10: PayoffTable) -> None:
        seen: list[int] = []
        cfg = SolverConfig(size=10, algorithm=Algorithm.CFR, epsilon=1e-12)
        solve(game10, cfg, max_iterations=12, callback=lambda i, t, e: seen.append(i), record_history=False)
        assert seen == list(range(1, 13))

    def test_strategies_match_solver(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.CFR)
        result = run_until_converged(solver, 1e-12, max_iterations=20)
        for player in (0, 1):
            assert np.array_equal(result.strategies[player], solver.average_strategy(player))


# ─── TestDump ──────────────────────────────────────────────────────────────────


class TestDump:
    def test_contains_matrix_and_strategies(self, rps: PayoffTable) -> None:
        solver = EquilibriumSolver(rps, Algorithm.FICTITIOUS_PLAY)
        _run(solver, 3)
        text = solver.dump()
        assert "Payoff matrix" in text
        assert "player 0" in text
        assert "player 1" in text
        assert "iteration 3" in text

    def test_dump_has_no_side_effects(self, game10: PayoffTable) -> None:
        solver = EquilibriumSolver(game10, Algorithm.CFR)
        _run(solver, 4)
        before = solver.get_exploitability()
        solver.dump()
        assert solver.get_iteration_count() == 4
        assert solver.get_exploitability() == before
