"""Matrix-game equilibrium solver — Streamlit Dashboard.

Four-tab interactive dashboard for exploring self-play convergence:
  Tab 1 — Convergence       (Plotly exploitability curves, one per algorithm)
  Tab 2 — Payoff Matrix     (Plotly heatmap, hover for both players' payoffs)
  Tab 3 — Strategies        (average strategy bars + solve reports)
  Tab 4 — Batch Summary     (iterations-to-converge over many random games)

Run:
    streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Matrix Game Equilibrium Solver",
    page_icon="🎲",
    layout="wide",
)

# ─── Cached computations ──────────────────────────────────────────────────────


@st.cache_resource
def _make_game(size: int, distribution_value: str, seed: int):
    """Generate the payoff table once per (size, distribution, seed)."""
    import numpy as np

    from matrix_cfr.engine.payoffs import Distribution, create_game

    return create_game(size, Distribution(distribution_value), np.random.default_rng(seed))


@st.cache_resource
def _run_solver(
    size: int,
    distribution_value: str,
    seed: int,
    algorithm_value: str,
    delay: int,
    weighting_value: str,
    epsilon: float,
    max_iterations: int,
):
    """Solve one configuration and cache the result."""
    from matrix_cfr.engine.payoffs import Distribution
    from matrix_cfr.solvers.config import Algorithm, SolverConfig, WeightingMode
    from matrix_cfr.solvers.equilibrium import solve

    config = SolverConfig(
        size=size,
        distribution=Distribution(distribution_value),
        algorithm=Algorithm(algorithm_value),
        delay=delay,
        weighting=WeightingMode(weighting_value),
        epsilon=epsilon,
    ).validate()
    game = _make_game(size, distribution_value, seed)
    return solve(game, config, max_iterations=max_iterations)


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🎲 Equilibrium Solver")
    st.markdown("---")

    size = st.slider("Matrix size", min_value=2, max_value=200, value=20, step=1)
    distribution_value = st.selectbox("Payoff distribution", ["uniform", "normal", "cauchy"], index=0)
    seed = st.number_input("Seed", min_value=0, max_value=2**31 - 1, value=42, step=1)

    st.markdown("---")
    algorithm_values = st.multiselect(
        "Algorithms",
        options=["fp", "cfr", "cfr+"],
        default=["fp", "cfr", "cfr+"],
        format_func=lambda v: {"fp": "Fictitious play", "cfr": "CFR", "cfr+": "CFR+"}[v],
    )
    weighting_value = st.selectbox("CFR+ weighting", ["constant", "linear", "quadratic"], index=2)
    delay = st.number_input("CFR+ averaging delay", min_value=0, max_value=10_000, value=0, step=1)

    epsilon = st.select_slider(
        "Epsilon",
        options=[1e-1, 1e-2, 1e-3, 1e-4, 1e-5, 1e-6],
        value=1e-3,
        format_func=lambda v: f"{v:g}",
    )
    max_iterations = st.slider(
        "Max iterations",
        min_value=100,
        max_value=50_000,
        value=5_000,
        step=100,
    )

    run_solver = st.button("Run Solver", type="primary")

    st.markdown("---")
    n_batch_runs = st.slider("Batch runs (batch tab)", min_value=2, max_value=100, value=10, step=1)
    run_batch_button = st.button("Run Batch")

# ─── Solver results ───────────────────────────────────────────────────────────

results = []
if run_solver or "solver_results_cached" in st.session_state:
    with st.spinner(f"Solving {size}×{size} game with {len(algorithm_values)} algorithm(s) …"):
        for algorithm_value in algorithm_values:
            results.append(
                _run_solver(
                    size,
                    distribution_value,
                    int(seed),
                    algorithm_value,
                    int(delay),
                    weighting_value,
                    float(epsilon),
                    int(max_iterations),
                )
            )
    st.session_state["solver_results_cached"] = True
    for r in results:
        st.sidebar.success(
            f"{r.algorithm.label}: {r.n_iterations} it. | e = {r.exploitability:.2e}"
        )

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3, tab4 = st.tabs(
    [
        "Convergence",
        "Payoff Matrix",
        "Strategies",
        "Batch Summary",
    ]
)

from matrix_cfr.analysis.plotly_views import (  # noqa: E402
    build_convergence_figure,
    build_payoff_figure,
    build_strategy_figure,
)
from matrix_cfr.analysis.report import print_solve_summary, print_strategy_table  # noqa: E402

# ── Tab 1: Convergence ────────────────────────────────────────────────────────

with tab1:
    st.header("Exploitability vs Iteration")
    st.caption("Log-log axes. The dashed line is the convergence threshold ε.")

    if results:
        st.plotly_chart(build_convergence_figure(results, epsilon=float(epsilon)), use_container_width=True)
    else:
        st.info("Press **Run Solver** in the sidebar to see convergence curves.")

# ── Tab 2: Payoff Matrix ──────────────────────────────────────────────────────

with tab2:
    st.header("Payoff Matrix")
    st.caption("Player 0's payoffs; player 1 receives the negation. Hover for details.")

    game = _make_game(size, distribution_value, int(seed))
    st.plotly_chart(build_payoff_figure(game), use_container_width=True)

# ── Tab 3: Strategies ─────────────────────────────────────────────────────────

with tab3:
    st.header("Average Strategies")

    if results:
        for r in results:
            st.subheader(r.algorithm.label)
            st.plotly_chart(build_strategy_figure(r), use_container_width=True)
            buf = io.StringIO()
            with contextlib.redirect_stdout(buf):
                print_solve_summary(r)
                print_strategy_table(r, top=5)
            st.code(buf.getvalue(), language=None)
    else:
        st.info("Press **Run Solver** in the sidebar to see the average strategies.")

# ── Tab 4: Batch Summary ──────────────────────────────────────────────────────

with tab4:
    st.header("Batch Summary")
    st.caption(
        "Solves independent random games (one per run, seeded from the sidebar seed) "
        "and summarises iterations-to-converge."
    )

    if run_batch_button:
        import pandas as pd

        from matrix_cfr.analysis.batch import print_batch_report, run_batch
        from matrix_cfr.engine.payoffs import Distribution
        from matrix_cfr.solvers.config import Algorithm, SolverConfig, WeightingMode

        rows = []
        report_buf = io.StringIO()
        for algorithm_value in algorithm_values:
            config = SolverConfig(
                size=size,
                distribution=Distribution(distribution_value),
                algorithm=Algorithm(algorithm_value),
                delay=int(delay),
                weighting=WeightingMode(weighting_value),
                epsilon=float(epsilon),
            ).validate()
            with st.spinner(f"{config.algorithm.label}: {n_batch_runs} runs …"):
                batch = run_batch(config, n_batch_runs, seed=int(seed), max_iterations=int(max_iterations))
            with contextlib.redirect_stdout(report_buf):
                print_batch_report(batch)

            stats = batch.iteration_stats
            rows.append(
                {
                    "Algorithm": config.algorithm.label,
                    "Converged": f"{batch.n_converged}/{len(batch.runs)}",
                    "Mean iterations": f"{stats.mean:.1f}" if stats else "—",
                    "Median": f"{stats.median:.1f}" if stats else "—",
                    "Std": f"{stats.std:.1f}" if stats else "—",
                    "Time (s)": f"{batch.total_elapsed:.2f}",
                }
            )

        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
        st.subheader("Full Batch Report (stdout capture)")
        st.code(report_buf.getvalue(), language=None)
    else:
        st.info("Press **Run Batch** in the sidebar to solve a batch of random games.")
