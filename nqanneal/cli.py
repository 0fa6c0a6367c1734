"""Command-line entry point solving one board with simulated annealing.

Usage: ``nqanneal N ITERATIONS [-t TEMPERATURE] [--seed S] [--restarts K]``.

The board is printed as an N×N grid (``Q`` for a queen, ``-`` for an empty
square) followed by a status line. Exit codes:

- 0: a conflict-free board was found;
- 1: the iteration budget was exhausted (the best board seen is printed);
- 2: invalid input or configuration (same code argparse uses for usage errors);
- 130: interrupted by the user.
"""
from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

from config_manager import ConfigManager
from nqanneal.analysis.experiments import solve_with_restarts
from nqanneal.simulated_annealing import DEFAULT_TEMPERATURE_FLOOR, sa_nqueens
from nqanneal.utils import INIT_METHODS, SCHEDULES, render_board

EXIT_SOLVED = 0
EXIT_UNSOLVED = 1
EXIT_INVALID = 2
EXIT_INTERRUPTED = 130

logger = logging.getLogger(__name__)


def configure_logging(verbosity: int) -> None:
    """Route log records to stderr: WARNING by default, INFO with -v, DEBUG with -vv."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)-5s | %(name)s | %(message)s")


def load_annealing_defaults(config_path: Optional[str]) -> Dict[str, Any]:
    """Return the ``annealing`` section of the configuration file, or {} without one."""
    if config_path is None:
        return {}
    return ConfigManager(config_path).get_annealing_settings()


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the solve entry point."""
    parser = argparse.ArgumentParser(
        prog="nqanneal",
        description="Find a placement of N non-attacking queens on an NxN board using simulated annealing.",
    )
    parser.add_argument("n", type=int, help="Number of queens (board size).")
    parser.add_argument("iterations", type=int, help="Iteration budget of each annealing run.")
    parser.add_argument(
        "--temperature",
        "-t",
        type=float,
        default=None,
        help="Initial temperature (default: proportional to N).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed of the random generator (default: fresh entropy).")
    parser.add_argument("--restarts", type=int, default=1, help="Independent runs to attempt (default: 1).")
    parser.add_argument("--workers", type=int, default=None, help="Worker processes for restarts (default: sequential).")
    parser.add_argument("--init", choices=INIT_METHODS, default=None, help="Initial board: permutation (default) or random.")
    parser.add_argument("--schedule", choices=SCHEDULES, default=None, help="Cooling schedule: geometric (default) or linear.")
    parser.add_argument("--floor", type=float, default=None, help="Temperature reached at the end of the budget.")
    parser.add_argument("--config", default=None, help="Optional JSON configuration file with an 'annealing' section.")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log verbosity (-v, -vv).")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the search, print the board and return the exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        defaults = load_annealing_defaults(args.config)
        temperature = args.temperature
        if temperature is None and "temperature_per_queen" in defaults:
            temperature = float(defaults["temperature_per_queen"]) * args.n
        init = args.init or defaults.get("init", "permutation")
        schedule = args.schedule or defaults.get("schedule", "geometric")
        floor = args.floor if args.floor is not None else defaults.get("temperature_floor", DEFAULT_TEMPERATURE_FLOOR)

        logger.info(
            "Solving N=%d with %d iterations, T0=%s, restarts=%d", args.n, args.iterations, temperature, args.restarts
        )
        if args.restarts == 1 and args.workers is None:
            result = sa_nqueens(
                args.n,
                max_iter=args.iterations,
                T0=temperature,
                seed=args.seed,
                init=init,
                schedule=schedule,
                floor=floor,
            )
        else:
            result = solve_with_restarts(
                args.n,
                args.iterations,
                T0=temperature,
                restarts=args.restarts,
                seed=args.seed,
                workers=args.workers,
                init=init,
                schedule=schedule,
                floor=floor,
            )
    except FileNotFoundError as exc:
        print(exc)
        return EXIT_INVALID
    except (TypeError, ValueError) as exc:
        print(f"Invalid input: {exc}")
        return EXIT_INVALID
    except KeyboardInterrupt:
        print("\nExecution interrupted by user.")
        return EXIT_INTERRUPTED

    print(render_board(result.board))
    if result.solved:
        print(f"Solved N={args.n} in {result.iterations} iterations ({result.elapsed:.3f}s).")
        return EXIT_SOLVED
    print(
        f"No solution found for N={args.n} within {args.iterations} iterations; "
        f"best board has {result.cost} conflicting pairs."
    )
    return EXIT_UNSOLVED


if __name__ == "__main__":
    raise SystemExit(main())
