"""Command-line interface and pipeline for repeated annealing experiments.

This module wires together configuration loading, the sequential or parallel
experiment runners, CSV reporting and plotting. It isolates I/O, argument
parsing and progress reporting from the algorithmic modules so that the rest
of the codebase remains easy to test programmatically.
"""
from __future__ import annotations

import argparse
import math
import os
import tempfile
from pathlib import Path
from time import perf_counter
from typing import List, Optional

from . import settings
from .experiments import run_sa_experiments, run_sa_experiments_parallel, solve_with_restarts
from .reporting import save_raw_data_to_csv, save_results_to_csv
from config_manager import ConfigManager
from nqanneal.cli import configure_logging
from nqanneal.simulated_annealing import sa_nqueens
from nqanneal.utils import INIT_METHODS, SCHEDULES, InvalidInputError, is_valid_solution, validate_parameters


# ------------- Utils --------------------------------------------------------

def parse_n_values(n_args: Optional[List[str]]) -> Optional[List[int]]:
    """Normalize ``--n`` inputs into a sorted list of unique board sizes.

    Accepts repeated flags (e.g., ``--n 8 --n 16``) and comma-separated lists
    (e.g., ``--n 8,16``). Returns ``None`` when no filter is provided so that
    callers can fall back to the configured sizes.
    """
    if not n_args:
        return None
    selected: List[int] = []
    for entry in n_args:
        for token in entry.split(","):
            token = token.strip()
            if not token:
                continue
            try:
                value = int(token)
            except ValueError as exc:
                raise InvalidInputError(f"board size must be an integer, got '{token}'") from exc
            if value <= 0:
                raise InvalidInputError(f"board size must be positive, got {value}")
            selected.append(value)
    return sorted(set(selected)) or None


def apply_configuration(config_path: str) -> ConfigManager:
    """Load configuration, validate it, then copy its values into ``settings``.

    ``settings`` is left untouched when any value is rejected.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        For malformed files or out-of-range values.
    """
    config_mgr = ConfigManager(config_path)
    annealing = config_mgr.get_annealing_settings()
    experiment_settings = config_mgr.get_experiment_settings()
    parallel = config_mgr.get_parallel_settings()

    temperature_per_queen = float(annealing.get("temperature_per_queen", settings.TEMPERATURE_PER_QUEEN))
    temperature_floor = float(annealing.get("temperature_floor", settings.TEMPERATURE_FLOOR))
    schedule = annealing.get("schedule", settings.SCHEDULE)
    init_method = annealing.get("init", settings.INIT_METHOD)
    n_values = [int(n) for n in experiment_settings.get("N_values", settings.N_VALUES)]
    runs = int(experiment_settings.get("runs_sa_final", settings.RUNS_SA_FINAL))
    iteration_factor = int(experiment_settings.get("iteration_factor", settings.ITERATION_FACTOR))
    out_dir = experiment_settings.get("output_dir", settings.OUT_DIR)
    base_seed = experiment_settings.get("base_seed", settings.BASE_SEED)
    num_processes = max(1, int(parallel.get("num_processes", settings.NUM_PROCESSES)))

    if schedule not in SCHEDULES:
        raise ValueError(f"Unknown schedule in configuration: {schedule}")
    if init_method not in INIT_METHODS:
        raise ValueError(f"Unknown init method in configuration: {init_method}")
    for temperature in (temperature_per_queen, temperature_floor):
        if not math.isfinite(temperature) or temperature <= 0:
            raise ValueError(f"Temperatures in configuration must be positive and finite, got {temperature}")
    if not n_values or any(n <= 0 for n in n_values):
        raise ValueError(f"Board sizes in configuration must be positive, got {n_values}")
    if runs <= 0 or iteration_factor <= 0:
        raise ValueError("Run count and iteration factor must be positive.")
    if base_seed is not None and (isinstance(base_seed, bool) or not isinstance(base_seed, int)):
        raise ValueError(f"Base seed in configuration must be an integer or null, got {base_seed!r}")

    settings.TEMPERATURE_PER_QUEEN = temperature_per_queen
    settings.TEMPERATURE_FLOOR = temperature_floor
    settings.SCHEDULE = schedule
    settings.INIT_METHOD = init_method
    settings.N_VALUES = n_values
    settings.RUNS_SA_FINAL = runs
    settings.ITERATION_FACTOR = iteration_factor
    settings.OUT_DIR = out_dir
    settings.BASE_SEED = base_seed
    settings.NUM_PROCESSES = num_processes
    return config_mgr


# ------------- Pipeline -----------------------------------------------------

def run_pipeline(
    N_values: List[int],
    runs: int,
    parallel: bool = False,
    validate: bool = False,
    plots: bool = False,
) -> None:
    """Run the experiments for every N, then write CSV reports and optional charts."""
    os.makedirs(settings.OUT_DIR, exist_ok=True)
    mode = "parallel" if parallel else "sequential"
    print(f"\nStarting {mode} SA experiments: N={N_values}, runs={runs}")
    print(
        f"   - T0 = {settings.TEMPERATURE_PER_QUEEN} * N, floor = {settings.TEMPERATURE_FLOOR}, "
        f"schedule = {settings.SCHEDULE}, init = {settings.INIT_METHOD}"
    )
    print(f"   - max_iter = {settings.ITERATION_FACTOR} * N^2, base seed = {settings.BASE_SEED}")

    start_total = perf_counter()
    if parallel:
        results = run_sa_experiments_parallel(
            N_values, runs, progress_label="Experiments SA", validate=validate, base_seed=settings.BASE_SEED
        )
    else:
        results = run_sa_experiments(
            N_values, runs, progress_label="Experiments SA", validate=validate, base_seed=settings.BASE_SEED
        )

    completed = [n for n in N_values if n in results]
    for n in completed:
        entry = results[n]
        print(f"  N={n}: success rate {entry['success_rate']:.3f} ({entry['successes']}/{entry['total_runs']})")

    save_results_to_csv(results, completed, settings.OUT_DIR)
    save_raw_data_to_csv(results, completed, settings.OUT_DIR)
    if plots:
        from .plots import plot_and_save, plot_trace

        print("Generating charts...")
        plot_and_save(results, completed, settings.OUT_DIR)
        if completed:
            largest = completed[-1]
            traced = sa_nqueens(
                largest,
                max_iter=settings.max_iter_for(largest),
                T0=settings.temperature_for(largest),
                seed=settings.BASE_SEED,
                init=settings.INIT_METHOD,
                schedule=settings.SCHEDULE,
                floor=settings.TEMPERATURE_FLOOR,
                trace_every=max(1, settings.max_iter_for(largest) // 1000),
            )
            plot_trace(traced, settings.OUT_DIR)

    total_time = perf_counter() - start_total
    print(f"\nPipeline completed in {total_time:.1f}s. Output: {settings.OUT_DIR}")


# ------------- Quick regression -------------------------------------------

def run_quick_regression_tests() -> None:
    """Execute a fast, deterministic smoke test at N=8.

    Verifies that:
    - Seeded SA runs (T0=4000, 10000 iterations) solve N=8 with valid boards.
    - Restarts return a valid board.
    - The experiment pipeline produces a non-empty CSV in a temporary folder.
    """
    print("Running quick regression tests (N=8)...")

    solved = 0
    for seed in range(10):
        result = sa_nqueens(8, max_iter=10000, T0=4000.0, seed=seed)
        if result.solved:
            if not is_valid_solution(result.board):
                raise AssertionError(f"Simulated Annealing reported an invalid solution for N=8: {result.board}")
            solved += 1
    if solved < 8:
        raise AssertionError(f"Simulated Annealing solved N=8 in only {solved}/10 seeded runs.")
    print(f"  Simulated Annealing: {solved}/10 seeded runs solved")

    restarted = solve_with_restarts(8, 6400, restarts=3, seed=7)
    if not restarted.solved or not is_valid_solution(restarted.board):
        raise AssertionError("Restarted SA did not solve N=8.")
    print("  Restarts: solved")

    results = run_sa_experiments([8], runs=3, validate=True, base_seed=0)
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(save_results_to_csv(results, [8], tmpdir))
        if not csv_path.exists() or csv_path.stat().st_size == 0:
            raise AssertionError("Results CSV was not generated successfully during quick tests.")

    print("Quick regression tests passed.")


# ------------- CLI wiring --------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the experiment entry point."""
    parser = argparse.ArgumentParser(
        prog="nqanneal-bench",
        description="Run repeated N-Queens simulated annealing experiments.",
    )
    parser.add_argument("--config", default=None, help="Path to configuration file (default: built-in settings).")
    parser.add_argument(
        "--n",
        action="append",
        help="Board sizes to run (comma-separated or multiple flags). Default: configured N values.",
    )
    parser.add_argument("--runs", type=int, default=None, help="Runs per board size (default: configured value).")
    parser.add_argument("--parallel", action="store_true", help="Distribute runs over a process pool.")
    parser.add_argument("--plots", action="store_true", help="Write PNG charts next to the CSV reports.")
    parser.add_argument("--quick-test", action="store_true", help="Run quick regression tests (N=8) and exit.")
    parser.add_argument("--validate", action="store_true", help="Re-check every reported board with the pairwise counter.")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log verbosity (-v, -vv).")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point: parse arguments and dispatch to the pipeline."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.quick_test:
        run_quick_regression_tests()
        return 0

    try:
        if args.config:
            apply_configuration(args.config)
        n_values = parse_n_values(args.n) or settings.N_VALUES
        runs = args.runs if args.runs is not None else settings.RUNS_SA_FINAL
        if runs <= 0:
            raise InvalidInputError(f"run count must be positive, got {runs}")
        for n in n_values:
            validate_parameters(
                n,
                settings.max_iter_for(n),
                temperature=settings.temperature_for(n),
                floor=settings.TEMPERATURE_FLOOR,
                init=settings.INIT_METHOD,
                schedule=settings.SCHEDULE,
            )
    except FileNotFoundError as exc:
        print(exc)
        return 2
    except (TypeError, ValueError) as exc:
        print(f"Configuration error: {exc}")
        return 2

    try:
        run_pipeline(n_values, runs, parallel=args.parallel, validate=args.validate, plots=args.plots)
    except InvalidInputError as exc:
        print(f"Invalid input: {exc}")
        return 2
    except KeyboardInterrupt:
        print("\nExecution interrupted by user. Cleaning up workers...")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
