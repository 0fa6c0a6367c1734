"""Visualization utilities for annealing experiment outputs.

Charts are written as PNG files into ``out_dir`` with a two-digit prefix for
stable ordering and the optional run suffix from ``settings``:

- 01_success_rate_vs_N.png: fraction of solved runs per board size.
- 02_steps_vs_N.png: mean ± std of iterations to a solution (log scale).
- 03_steps_histogram_N{N}.png: distribution of iterations to a solution at N,
  mean and ±1σ annotated.
- trace_N{N}.png: temperature and cost of one traced run against iteration.

Every function draws on the non-interactive Agg backend and returns the path
of the written file.
"""
from __future__ import annotations

import os
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from . import settings  # noqa: E402
from .stats import ExperimentResults  # noqa: E402
from nqanneal.simulated_annealing import SAResult  # noqa: E402


def _target(out_dir: str, name: str) -> str:
    os.makedirs(out_dir, exist_ok=True)
    return os.path.join(out_dir, f"{name}{settings.filename_suffix()}.png")


def plot_success_rate(results: ExperimentResults, N_values: List[int], out_dir: str) -> str:
    """Plot the success rate of SA against the board size."""
    sizes = [n for n in N_values if n in results]
    rates = [results[n].get("success_rate", 0.0) for n in sizes]

    plt.figure(figsize=(12, 8))
    plt.plot(sizes, rates, marker="s", linewidth=2, markersize=8, label="Simulated Annealing")
    for n, rate in zip(sizes, rates):
        plt.annotate(f"{rate:.2f}", (n, rate), textcoords="offset points", xytext=(0, 8), ha="center", fontsize=9)
    plt.xlabel("N (board size)", fontsize=12)
    plt.ylabel("Success rate", fontsize=12)
    plt.title("Success Rate vs Problem Size", fontsize=14)
    plt.ylim(-0.05, 1.05)
    plt.xticks(sizes)
    plt.grid(True, alpha=0.7)
    plt.legend(fontsize=11)
    fname = _target(out_dir, "01_success_rate_vs_N")
    plt.savefig(fname, bbox_inches="tight", dpi=300)
    plt.close()
    return fname


def plot_steps(results: ExperimentResults, N_values: List[int], out_dir: str) -> str:
    """Plot mean ± std of iterations needed by successful runs (log scale)."""
    sizes: List[int] = []
    means: List[float] = []
    stds: List[float] = []
    for n in N_values:
        summary = results.get(n, {}).get("success_steps") or {}
        if summary.get("count"):
            sizes.append(n)
            means.append(max(float(summary["mean"]), 1.0))
            stds.append(float(summary["std"] or 0.0))

    plt.figure(figsize=(12, 8))
    if sizes:
        plt.errorbar(sizes, means, yerr=stds, marker="s", linewidth=2, markersize=8, capsize=5,
                     label="SA iterations to solution")
        plt.yscale("log")
        plt.xticks(sizes)
        plt.legend(fontsize=11)
    plt.xlabel("N (board size)", fontsize=12)
    plt.ylabel("Iterations (successful runs)", fontsize=12)
    plt.title("Logical Cost vs Problem Size", fontsize=14)
    plt.grid(True, alpha=0.7)
    fname = _target(out_dir, "02_steps_vs_N")
    plt.savefig(fname, bbox_inches="tight", dpi=300)
    plt.close()
    return fname


def plot_steps_histogram(results: ExperimentResults, N: int, out_dir: str, bins: int = 20) -> Optional[str]:
    """Plot the distribution of iterations to a solution at size ``N``.

    Returns None when fewer than two runs of that size succeeded.
    """
    runs = results.get(N, {}).get("raw_runs", [])
    steps = np.array([run["steps"] for run in runs if run["success"]], dtype=float)
    if steps.size < 2:
        return None

    mean_steps = float(np.mean(steps))
    std_steps = float(np.std(steps))

    plt.figure(figsize=(12, 8))
    plt.hist(steps, bins=bins, alpha=0.75, edgecolor="black")
    plt.axvline(mean_steps, color="red", linestyle="--", linewidth=2, label=f"Mean: {mean_steps:.0f}")
    plt.axvline(mean_steps - std_steps, color="orange", linestyle=":", linewidth=2, label=f"±1σ: {std_steps:.0f}")
    plt.axvline(mean_steps + std_steps, color="orange", linestyle=":", linewidth=2)
    plt.xlabel("Iterations to solution", fontsize=12)
    plt.ylabel("Runs", fontsize=12)
    plt.title(f"SA Iterations Distribution (N={N})", fontsize=14)
    plt.legend(fontsize=11)
    plt.grid(True, alpha=0.5)
    fname = _target(out_dir, f"03_steps_histogram_N{N}")
    plt.savefig(fname, bbox_inches="tight", dpi=300)
    plt.close()
    return fname


def plot_trace(result: SAResult, out_dir: str) -> str:
    """Plot temperature (log scale) and costs recorded in ``result.history``.

    Raises
    ------
    ValueError
        If the run was not traced.
    """
    if not result.history:
        raise ValueError("run has no trace; pass trace_every to record one")

    trace = np.asarray(result.history, dtype=float)
    iterations, temperature, cost, best_cost = trace[:, 0], trace[:, 1], trace[:, 2], trace[:, 3]
    n = len(result.board)

    fig, ax_cost = plt.subplots(figsize=(12, 8))
    ax_cost.plot(iterations, cost, linewidth=1.5, label="Current cost")
    ax_cost.plot(iterations, best_cost, linewidth=2, linestyle="--", label="Best cost")
    ax_cost.set_xlabel("Iteration", fontsize=12)
    ax_cost.set_ylabel("Attacking pairs", fontsize=12)
    ax_cost.grid(True, alpha=0.5)

    ax_temp = ax_cost.twinx()
    ax_temp.semilogy(iterations, temperature, color="red", alpha=0.6, label="Temperature")
    ax_temp.set_ylabel("Temperature (log scale)", fontsize=12)

    lines = ax_cost.get_legend_handles_labels()
    temp_lines = ax_temp.get_legend_handles_labels()
    ax_cost.legend(lines[0] + temp_lines[0], lines[1] + temp_lines[1], fontsize=11)
    status = "solved" if result.solved else f"best cost {result.cost}"
    ax_cost.set_title(f"Annealing Trace (N={n}, {status})", fontsize=14)

    fname = _target(out_dir, f"trace_N{n}")
    fig.savefig(fname, bbox_inches="tight", dpi=300)
    plt.close(fig)
    return fname


def plot_and_save(results: ExperimentResults, N_values: List[int], out_dir: str) -> List[str]:
    """Generate every aggregate chart and return the written paths."""
    written = [
        plot_success_rate(results, N_values, out_dir),
        plot_steps(results, N_values, out_dir),
    ]
    for N in N_values:
        path = plot_steps_histogram(results, N, out_dir)
        if path:
            written.append(path)
    return written
