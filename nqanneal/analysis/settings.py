"""Global settings for the N-Queens annealing experiments.

This module centralizes tunable constants used across the orchestration code.
Values can be overridden at runtime via the configuration loader in
`nqanneal.analysis.cli.apply_configuration`.
"""
from __future__ import annotations

import multiprocessing
from datetime import datetime
from typing import List, Optional

from nqanneal.simulated_annealing import (
    DEFAULT_TEMPERATURE_FLOOR,
    DEFAULT_TEMPERATURE_PER_QUEEN,
)

# Board sizes to evaluate (in ascending order) for scalability analysis
N_VALUES: List[int] = [4, 8, 16, 32, 64]

# Number of independent SA runs per N (higher = more robust stats)
RUNS_SA_FINAL: int = 20

# Iteration budget per run is ITERATION_FACTOR * N^2
ITERATION_FACTOR: int = 100

# Initial temperature per queen (T0 = TEMPERATURE_PER_QUEEN * N)
TEMPERATURE_PER_QUEEN: float = DEFAULT_TEMPERATURE_PER_QUEEN

# Temperature reached at the end of each run's budget
TEMPERATURE_FLOOR: float = DEFAULT_TEMPERATURE_FLOOR

# Cooling schedule ('geometric' | 'linear') and board initialization ('permutation' | 'random')
SCHEDULE: str = "geometric"
INIT_METHOD: str = "permutation"

# Seed of the first run; run k of size N uses BASE_SEED + k (None = fresh entropy)
BASE_SEED: Optional[int] = 0

# Output directory for CSV and charts
OUT_DIR: str = "results_nqanneal"

# Number of worker processes to use (leave one core for the OS)
NUM_PROCESSES: int = max(1, multiprocessing.cpu_count() - 1)

# When True, results and plots carry the RUN_ID suffix (e.g., _20251113-142530)
DATE_IN_FILENAMES: bool = False

# Unique run identifier used for filename stamping; set once at import time.
RUN_ID: str = datetime.now().strftime("%Y%m%d-%H%M%S")


def max_iter_for(n: int) -> int:
    """Return the iteration budget used for board size ``n``."""
    return ITERATION_FACTOR * n * n


def temperature_for(n: int) -> float:
    """Return the initial temperature used for board size ``n``."""
    return TEMPERATURE_PER_QUEEN * n


def filename_suffix() -> str:
    """Return the suffix appended to every artifact name of this run."""
    return f"_{RUN_ID}" if DATE_IN_FILENAMES else ""
