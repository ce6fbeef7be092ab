"""Tests for matrix_cfr/cli.py — argument parsing and the run / batch drivers."""

from __future__ import annotations

import pytest

from matrix_cfr.cli import build_parser, config_from_args, main
from matrix_cfr.engine.payoffs import Distribution
from matrix_cfr.solvers.config import Algorithm, WeightingMode

_FAST = ["-s", "5", "-e", "0.01", "--seed", "3", "--max-iterations", "20000"]


class TestParser:
    def test_defaults(self) -> None:
        cfg = config_from_args(build_parser().parse_args([]))
        assert cfg.size == 1000
        assert cfg.algorithm is Algorithm.CFR_PLUS
        assert cfg.distribution is Distribution.UNIFORM
        assert cfg.weighting is WeightingMode.QUADRATIC
        assert cfg.delay == 0
        assert cfg.epsilon == 1e-4

    def test_all_options(self) -> None:
        args = build_parser().parse_args(
            ["-a", "fp", "-s", "12", "-e", "0.5", "-d", "cauchy", "--delay", "4", "-w", "linear"]
        )
        cfg = config_from_args(args)
        assert cfg.algorithm is Algorithm.FICTITIOUS_PLAY
        assert cfg.size == 12
        assert cfg.epsilon == 0.5
        assert cfg.distribution is Distribution.CAUCHY
        assert cfg.delay == 4
        assert cfg.weighting is WeightingMode.LINEAR

    def test_numeric_algorithm(self) -> None:
        cfg = config_from_args(build_parser().parse_args(["-a", "1"]))
        assert cfg.algorithm is Algorithm.CFR


class TestInvalidOptions:
    @pytest.mark.parametrize(
        "argv",
        [
            ["-s", "1"],
            ["-s", "100001"],
            ["-a", "cfr++"],
            ["-a", "5"],
            ["-e", "0"],
            ["-e", "2"],
            ["-d", "poisson"],
            ["-w", "cubic"],
            ["--delay", "-1"],
            ["--max-iterations", "0"],
            ["--batch", "-2"],
            ["-s", "ten"],
            ["--seed", "-1"],
        ],
    )
    def test_exit_code_2(self, argv: list[str], capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(argv)
        assert excinfo.value.code == 2
        assert capsys.readouterr().err

    def test_error_names_bad_option(self, capsys) -> None:
        with pytest.raises(SystemExit):
            main(["-s", "1"])
        assert "size" in capsys.readouterr().err


class TestSingleRun:
    def test_converges(self, capsys) -> None:
        assert main(_FAST + ["--quiet"]) == 0
        out = capsys.readouterr().out
        assert "Algorithm: CFR+" in out
        assert "init" in out
        assert "start" in out
        assert "Converged:       yes" in out
        assert "i=" not in out

    def test_progress_lines(self, capsys) -> None:
        assert main(_FAST) == 0
        lines = capsys.readouterr().out.splitlines()
        progress = [ln for ln in lines if ln.startswith("i=")]
        assert progress
        assert progress[0].startswith("i=1 t=")
        assert " e=" in progress[-1]

    def test_dump(self, capsys) -> None:
        assert main(_FAST + ["--quiet", "--dump"]) == 0
        out = capsys.readouterr().out
        assert "Payoff matrix (player 0), 5x5:" in out
        assert "Average strategy, player 1" in out

    def test_cap_returns_1(self, capsys) -> None:
        code = main(["-s", "5", "-e", "1e-12", "-a", "fp", "--seed", "0", "--max-iterations", "10", "--quiet"])
        assert code == 1
        assert "Converged:       no" in capsys.readouterr().out


class TestBatch:
    def test_batch_report(self, capsys) -> None:
        assert main(_FAST + ["--batch", "3"]) == 0
        out = capsys.readouterr().out
        assert "Batch Convergence Summary" in out
        assert out.count("run=") == 3

    def test_batch_quiet(self, capsys) -> None:
        assert main(_FAST + ["--batch", "2", "--quiet"]) == 0
        assert "run=" not in capsys.readouterr().out


class TestMemory:
    def test_single_run_keeps_no_history(self, monkeypatch, capsys) -> None:
        import matrix_cfr.cli as cli

        results = []
        real = cli.run_until_converged

        def _recording(*args, **kwargs):
            result = real(*args, **kwargs)
            results.append(result)
            return result

        monkeypatch.setattr(cli, "run_until_converged", _recording)
        main(["-s", "4", "-a", "fp", "-e", "1e-12", "--seed", "0", "--max-iterations", "300", "--quiet"])
        capsys.readouterr()
        assert len(results) == 1
        assert results[0].n_iterations == 300
        assert results[0].history == []
