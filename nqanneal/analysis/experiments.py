"""Repeated-run experiment runners and independent restarts for SA.

These routines execute batches of annealing runs for a set of board sizes and
shape the outcomes into dictionaries suitable for CSV export and plotting.
Runs never share state, so they can be distributed over a process pool with
no synchronization. Validation hooks optionally re-check solved boards with
the pairwise conflict counter.
"""
from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from . import settings
from .stats import (
    ExperimentResults,
    ProgressPrinter,
    SAResultEntry,
    compute_grouped_statistics,
)
from nqanneal.simulated_annealing import DEFAULT_TEMPERATURE_FLOOR, SAResult, sa_nqueens
from nqanneal.utils import InvalidInputError, conflicts_on2, validate_parameters

logger = logging.getLogger(__name__)

RunParams = Tuple[int, int, Optional[float], Optional[int], str, str, float]


# Reusable workers -----------------------------------------------------------

def run_single_sa_experiment(params: RunParams) -> SAResult:
    """Worker wrapper to invoke a single SA run (top-level for process pools)."""
    N, max_iter, T0, seed, init, schedule, floor = params
    return sa_nqueens(N, max_iter=max_iter, T0=T0, seed=seed, init=init, schedule=schedule, floor=floor)


def _seed_for(base_seed: Optional[int], index: int) -> Optional[int]:
    return None if base_seed is None else base_seed + index


def _run_params(N: int, runs: int, base_seed: Optional[int]) -> List[RunParams]:
    max_iter = settings.max_iter_for(N)
    T0 = settings.temperature_for(N)
    return [
        (N, max_iter, T0, _seed_for(base_seed, k), settings.INIT_METHOD, settings.SCHEDULE, settings.TEMPERATURE_FLOOR)
        for k in range(runs)
    ]


def _summarize(N: int, sa_results: List[SAResult], validate: bool) -> SAResultEntry:
    if validate:
        for idx, result in enumerate(sa_results):
            if result.solved and conflicts_on2(result.board) != 0:
                raise AssertionError(
                    f"SA validation failed for N={N}, run {idx}: reported solved but board {result.board} has conflicts"
                )
            if not result.solved and conflicts_on2(result.board) != result.cost:
                raise AssertionError(
                    f"SA validation failed for N={N}, run {idx}: reported cost {result.cost} does not match board"
                )

    sa_runs: List[Dict[str, Any]] = [result.as_record() for result in sa_results]
    sa_stats = compute_grouped_statistics(sa_runs, "success")
    entry: Dict[str, Any] = dict(sa_stats)
    entry["max_iter"] = settings.max_iter_for(N)
    entry["T0"] = settings.temperature_for(N)
    entry["raw_runs"] = sa_runs
    return entry  # type: ignore[return-value]


# Sequential runner ----------------------------------------------------------

def run_sa_experiments(
    N_values: List[int],
    runs: int,
    progress_label: Optional[str] = None,
    validate: bool = False,
    base_seed: Optional[int] = None,
) -> ExperimentResults:
    """Run ``runs`` seeded SA runs for every N in ``N_values``, one after another.

    Run ``k`` of size N uses seed ``base_seed + k`` (fresh entropy when
    ``base_seed`` is None) and the budget/temperature from ``settings``.
    A ``KeyboardInterrupt`` stops the batch and returns the sizes completed so far.
    """
    results: ExperimentResults = {}
    progress = ProgressPrinter(len(N_values), progress_label) if progress_label else None

    for index, N in enumerate(N_values, start=1):
        try:
            if progress:
                progress.update(index, f"N={N}")
            print(f"=== N = {N}: {runs} SA runs, max_iter={settings.max_iter_for(N)} ===")
            sa_results = [run_single_sa_experiment(params) for params in _run_params(N, runs, base_seed)]
            results[N] = _summarize(N, sa_results, validate)
            logger.info("N=%d success rate %.3f over %d runs", N, results[N]["success_rate"], runs)
        except KeyboardInterrupt:
            print("\nInterrupted by user (sequential). Returning partial results...")
            break

    return results


# Parallel runner ------------------------------------------------------------

def run_sa_experiments_parallel(
    N_values: List[int],
    runs: int,
    progress_label: Optional[str] = None,
    validate: bool = False,
    base_seed: Optional[int] = None,
    num_processes: Optional[int] = None,
) -> ExperimentResults:
    """Parallel version of ``run_sa_experiments`` using a process pool.

    Seeds are assigned exactly as in the sequential runner, so both produce
    the same records apart from wall times.
    """
    workers = num_processes or settings.NUM_PROCESSES
    results: ExperimentResults = {}
    progress = ProgressPrinter(len(N_values), progress_label) if progress_label else None

    for index, N in enumerate(N_values, start=1):
        if progress:
            progress.update(index, f"N={N}")
        try:
            print(f"=== (Parallel) N = {N}: {runs} SA runs on {workers} processes ===")
            with ProcessPoolExecutor(max_workers=workers) as executor:
                sa_results = list(executor.map(run_single_sa_experiment, _run_params(N, runs, base_seed)))
            results[N] = _summarize(N, sa_results, validate)
            logger.info("N=%d success rate %.3f over %d runs", N, results[N]["success_rate"], runs)
        except KeyboardInterrupt:
            print("\nInterrupted by user (parallel). Returning partial results...")
            break

    return results


# Independent restarts -------------------------------------------------------

def solve_with_restarts(
    size: int,
    max_iter: int,
    T0: Optional[float] = None,
    restarts: int = 4,
    seed: Optional[int] = None,
    workers: Optional[int] = None,
    init: str = "permutation",
    schedule: str = "geometric",
    floor: float = DEFAULT_TEMPERATURE_FLOOR,
) -> SAResult:
    """Run up to ``restarts`` independent annealers and keep the best outcome.

    Restart ``k`` uses seed ``seed + k``. With ``workers > 1`` all restarts run
    in a process pool; otherwise they run in order and stop at the first
    solved board.

    Returns
    -------
    SAResult
        The first solved run in seed order, or the lowest-cost run when none
        solved the board.

    Raises
    ------
    InvalidInputError
        For malformed run parameters or a non-positive restart/worker count.
    """
    validate_parameters(size, max_iter, temperature=T0, floor=floor, init=init, schedule=schedule)
    if isinstance(restarts, bool) or not isinstance(restarts, int) or restarts <= 0:
        raise InvalidInputError(f"restart count must be a positive integer, got {restarts!r}")
    if workers is not None and (isinstance(workers, bool) or not isinstance(workers, int) or workers <= 0):
        raise InvalidInputError(f"worker count must be a positive integer, got {workers!r}")

    params = [(size, max_iter, T0, _seed_for(seed, k), init, schedule, floor) for k in range(restarts)]

    sa_results: List[SAResult] = []
    if workers is not None and workers > 1 and restarts > 1:
        with ProcessPoolExecutor(max_workers=min(workers, restarts)) as executor:
            sa_results = list(executor.map(run_single_sa_experiment, params))
    else:
        for run_params in params:
            result = run_single_sa_experiment(run_params)
            sa_results.append(result)
            if result.solved:
                break

    for attempt, result in enumerate(sa_results):
        if result.solved:
            logger.info("N=%d solved by restart %d of %d", size, attempt + 1, restarts)
            return result

    best = min(sa_results, key=lambda r: r.cost)
    logger.info("N=%d unsolved after %d restarts, best cost %d", size, len(sa_results), best.cost)
    return best
