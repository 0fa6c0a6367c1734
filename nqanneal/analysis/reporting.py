"""CSV export utilities for experiment outputs (aggregates and raw runs).

These helpers materialize a concise per-N summary as well as full per-run raw
data for downstream analysis or spreadsheet inspection. Column names follow
lowercase snake_case with an ``sa_`` prefix for annealing metrics.
"""
from __future__ import annotations

import csv
import os
from typing import Any, List, Optional

from . import settings
from .stats import ExperimentResults, StatsSummary


def _stat(summary: Optional[StatsSummary], key: str) -> Any:
    """Return ``summary[key]`` or an empty cell when the group had no runs."""
    if not summary:
        return ""
    value = summary.get(key)
    return "" if value is None else value


def save_results_to_csv(results: ExperimentResults, N_values: List[int], out_dir: str) -> str:
    """Write compact per-N aggregate metrics to ``results_SA<suffix>.csv``.

    Returns the path of the written file.
    """
    os.makedirs(out_dir, exist_ok=True)
    filename = os.path.join(out_dir, f"results_SA{settings.filename_suffix()}.csv")

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([
            "n",
            "sa_max_iter",
            "sa_initial_temperature",
            "sa_total_runs",
            "sa_successes",
            "sa_success_rate",
            "sa_failure_rate",
            "sa_success_steps_mean",
            "sa_success_steps_median",
            "sa_success_steps_std",
            "sa_success_time_mean",
            "sa_success_evals_mean",
            "sa_all_accepted_mean",
            "sa_failure_best_conflicts_mean",
            "sa_failure_best_conflicts_min",
        ])
        for N in N_values:
            entry = results.get(N)
            if not entry:
                continue
            writer.writerow([
                N,
                entry.get("max_iter", ""),
                entry.get("T0", ""),
                entry.get("total_runs", 0),
                entry.get("successes", 0),
                entry.get("success_rate", 0.0),
                entry.get("failure_rate", 0.0),
                _stat(entry.get("success_steps"), "mean"),
                _stat(entry.get("success_steps"), "median"),
                _stat(entry.get("success_steps"), "std"),
                _stat(entry.get("success_time"), "mean"),
                _stat(entry.get("success_evals"), "mean"),
                _stat(entry.get("all_accepted"), "mean"),
                _stat(entry.get("failure_best_conflicts"), "mean"),
                _stat(entry.get("failure_best_conflicts"), "min"),
            ])

    print(f"Saved SA summary: {filename}")
    return filename


def save_raw_data_to_csv(results: ExperimentResults, N_values: List[int], out_dir: str) -> str:
    """Write every recorded run to ``raw_data_SA<suffix>.csv``.

    Returns the path of the written file.
    """
    os.makedirs(out_dir, exist_ok=True)
    filename = os.path.join(out_dir, f"raw_data_SA{settings.filename_suffix()}.csv")

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([
            "n",
            "run_id",
            "seed",
            "success",
            "steps",
            "time_seconds",
            "evals",
            "accepted",
            "best_conflicts",
        ])
        for N in N_values:
            entry = results.get(N)
            if not entry:
                continue
            for i, run in enumerate(entry.get("raw_runs", [])):
                writer.writerow([
                    N,
                    i + 1,
                    "" if run.get("seed") is None else run["seed"],
                    run["success"],
                    run["steps"],
                    run["time"],
                    run["evals"],
                    run.get("accepted", ""),
                    run["best_conflicts"],
                ])

    print(f"Saved SA raw data: {filename}")
    return filename
