"""
Analysis and orchestration package for N-Queens annealing experiments.

This package contains:
- settings: global knobs for experiment batches
- stats: typed summaries and aggregation helpers
- experiments: sequential/parallel batch runners and independent restarts
- reporting: CSV exports of aggregates and raw runs
- plots: matplotlib charts
- cli: experiment pipeline entry point and argument parser
"""

from . import settings as settings  # re-export for convenience
from .stats import (
    StatsSummary,
    SARecord,
    SAResultEntry,
    ExperimentResults,
    compute_detailed_statistics,
    compute_grouped_statistics,
    ProgressPrinter,
)

__all__ = [
    # types
    "StatsSummary",
    "SARecord",
    "SAResultEntry",
    "ExperimentResults",
    # utils
    "compute_detailed_statistics",
    "compute_grouped_statistics",
    "ProgressPrinter",
    # settings module
    "settings",
]
