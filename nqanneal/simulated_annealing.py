"""Simulated Annealing solver for the N-Queens problem.

The configuration is a length-N list ``board[col] = row``. At each step a
random column is selected and its queen is proposed to move to another row.
The move is accepted if it does not worsen the objective, or with Metropolis
probability ``exp(-delta / T)`` otherwise. The temperature then follows a
cooling schedule from ``T0`` down to a small positive floor reached at the end
of the iteration budget.

Contract (public API)
---------------------
- Input: problem size ``size >= 1``, iteration budget ``max_iter >= 1`` and an
  optional initial temperature ``T0 > 0`` (defaults to ``default_temperature``).
- Output: an ``SAResult`` holding the best board seen during the run and a
  ``solved`` flag (True when that board has zero conflicts).

A run that exhausts its budget is a normal outcome (``solved=False``); it is
not retried. Invalid parameters raise ``InvalidInputError`` before any board
is created.

Determinism
-----------
Each ``Annealer`` owns a ``random.Random`` seeded at construction. Two
annealers built with the same seed and parameters produce identical runs; the
module-level ``random`` state is never touched.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from .utils import (
    INIT_METHODS,
    InvalidInputError,
    apply_move,
    conflicts,
    move_delta,
    validate_parameters,
)

logger = logging.getLogger(__name__)

# Initial temperature used when none is given: DEFAULT_TEMPERATURE_PER_QUEEN * N
DEFAULT_TEMPERATURE_PER_QUEEN: float = 1.0

# Temperature reached at the end of the iteration budget
DEFAULT_TEMPERATURE_FLOOR: float = 1e-3

# At or below this temperature every worsening move is rejected
MIN_TEMPERATURE: float = 1e-12

TracePoint = Tuple[int, float, int, int]


@dataclass
class SAResult:
    """Outcome of a single annealing run.

    Attributes
    ----------
    board : List[int]
        Best board observed during the run (the solution when ``solved``).
    solved : bool
        True when ``board`` has no attacking pair.
    cost : int
        Number of attacking pairs on ``board``.
    iterations : int
        Number of proposed moves before the run ended.
    evaluations : int
        Number of cost evaluations (initial full count plus one delta per move).
    accepted : int
        Number of accepted moves.
    initial_temperature, final_temperature : float
        Temperature at the start and at the end of the run.
    elapsed : float
        Wall time measured via ``perf_counter()``.
    seed : int | None
        Seed of the annealer that produced the run.
    history : List[TracePoint] | None
        ``(iteration, temperature, current_cost, best_cost)`` samples when
        tracing was requested.
    """

    board: List[int]
    solved: bool
    cost: int
    iterations: int
    evaluations: int
    accepted: int
    initial_temperature: float
    final_temperature: float
    elapsed: float
    seed: Optional[int] = None
    history: Optional[List[TracePoint]] = field(default=None, repr=False)

    def as_record(self) -> Dict[str, Any]:
        """Return the flat per-run record consumed by ``nqanneal.analysis``."""
        return {
            "success": self.solved,
            "steps": self.iterations,
            "time": self.elapsed,
            "best_conflicts": self.cost,
            "evals": self.evaluations,
            "accepted": self.accepted,
            "seed": self.seed,
        }


def default_temperature(size: int) -> float:
    """Return the initial temperature used when the caller gives none.

    Proportional to the board size: ``DEFAULT_TEMPERATURE_PER_QUEEN * size``.
    For N >= 4 a move adding one or two conflicting pairs is initially accepted
    with probability of at least ~0.6.
    """
    return DEFAULT_TEMPERATURE_PER_QUEEN * size


def initial_board(size: int, rng: random.Random, method: str = "permutation") -> List[int]:
    """Build a starting board with one queen per column.

    Parameters
    ----------
    size : int
        Board dimension N.
    rng : random.Random
        Source of randomness; the same seeded generator yields the same board.
    method : str, default "permutation"
        ``"permutation"`` places queens on distinct rows (no row conflicts at
        start); ``"random"`` draws each row independently.
    """
    if method == "permutation":
        return rng.sample(range(size), size)
    if method == "random":
        return [rng.randrange(size) for _ in range(size)]
    raise InvalidInputError(f"unknown initialization '{method}'. Allowed: {', '.join(INIT_METHODS)}")


def acceptance_probability(current_cost: float, candidate_cost: float, temperature: float) -> float:
    """Return the Metropolis probability of moving to the candidate.

    Moves that do not increase the cost are always accepted. Worsening moves
    are accepted with ``exp(-(candidate_cost - current_cost) / temperature)``;
    at or below ``MIN_TEMPERATURE`` they are rejected outright.
    """
    delta = candidate_cost - current_cost
    if delta <= 0:
        return 1.0
    if temperature <= MIN_TEMPERATURE:
        return 0.0
    return math.exp(-delta / temperature)


def cooling_schedule(
    temperature: float,
    iteration: int,
    max_iter: int,
    T0: float,
    floor: float = DEFAULT_TEMPERATURE_FLOOR,
    kind: str = "geometric",
) -> float:
    """Return the temperature to use after ``iteration`` of ``max_iter``.

    Parameters
    ----------
    temperature : float
        Current temperature; the result never exceeds it.
    iteration : int
        Number of completed iterations (0 yields ``T0``).
    max_iter : int
        Iteration budget; at ``iteration == max_iter`` the result is ``floor``.
    T0 : float
        Initial temperature.
    floor : float
        Positive lower bound of the schedule. Lowered to ``T0`` when larger.
    kind : str, default "geometric"
        ``"geometric"`` multiplies by ``alpha = (floor / T0) ** (1 / max_iter)``
        each iteration; ``"linear"`` subtracts a constant step.

    Raises
    ------
    InvalidInputError
        For an unknown schedule name.
    """
    floor = min(floor, T0)
    progress = min(1.0, max(0.0, iteration / max_iter))
    if kind == "geometric":
        scheduled = T0 * (floor / T0) ** progress
    elif kind == "linear":
        scheduled = T0 - (T0 - floor) * progress
    else:
        raise InvalidInputError(f"unknown cooling schedule '{kind}'")
    return max(floor, min(temperature, scheduled))


class Annealer:
    """Owns the random source and policies of an annealing search on one board size.

    Parameters
    ----------
    size : int
        Board dimension N.
    seed : int | None
        Seed for the private ``random.Random``. ``None`` draws fresh entropy.
    init : str, default "permutation"
        Initialization method (see ``initial_board``).
    schedule : str, default "geometric"
        Cooling schedule kind (see ``cooling_schedule``).
    floor : float
        Temperature reached at the end of the budget.
    """

    def __init__(
        self,
        size: int,
        seed: Optional[int] = None,
        init: str = "permutation",
        schedule: str = "geometric",
        floor: float = DEFAULT_TEMPERATURE_FLOOR,
    ):
        validate_parameters(size, 1, floor=floor, init=init, schedule=schedule)
        self.size = size
        self.seed = seed
        self.init = init
        self.schedule = schedule
        self.floor = floor
        self.rng = random.Random(seed)

    def initialize(self) -> List[int]:
        """Return a fresh starting board drawn from the annealer's generator."""
        return initial_board(self.size, self.rng, self.init)

    def propose_move(self, board: List[int]) -> Tuple[int, int]:
        """Pick a uniform column and a uniform new row different from the current one.

        Returns ``(column, new_row)``; the board is left untouched.
        """
        if self.size < 2:
            raise ValueError("no move exists on a board with a single row")
        column = self.rng.randrange(self.size)
        new_row = self.rng.randrange(self.size - 1)
        if new_row >= board[column]:
            new_row += 1
        return column, new_row

    def run(self, max_iter: int, T0: Optional[float] = None, trace_every: Optional[int] = None) -> SAResult:
        """Anneal from a fresh board until it is solved or the budget is spent.

        Parameters
        ----------
        max_iter : int
            Maximum number of proposed moves.
        T0 : float | None
            Initial temperature; ``default_temperature(size)`` when None.
        trace_every : int | None
            When set, record a ``(iteration, temperature, cost, best_cost)``
            sample every ``trace_every`` iterations into ``SAResult.history``.

        Returns
        -------
        SAResult
            The best board seen, with ``solved`` True when it has zero conflicts.

        Raises
        ------
        InvalidInputError
            For a non-positive budget, a malformed temperature or trace step.
        """
        validate_parameters(self.size, max_iter, temperature=T0)
        if trace_every is not None and (not isinstance(trace_every, int) or trace_every <= 0):
            raise InvalidInputError(f"trace step must be a positive integer, got {trace_every!r}")

        initial_temperature = default_temperature(self.size) if T0 is None else float(T0)
        temperature = initial_temperature
        start = perf_counter()

        board = self.initialize()
        current_cost = conflicts(board)
        best_board = list(board)
        best_cost = current_cost
        evaluations = 1
        accepted = 0
        iteration = 0
        history: Optional[List[TracePoint]] = [] if trace_every else None
        if history is not None:
            history.append((0, temperature, current_cost, best_cost))

        logger.debug(
            "SA start: N=%d max_iter=%d T0=%.4g schedule=%s seed=%s cost=%d",
            self.size, max_iter, initial_temperature, self.schedule, self.seed, current_cost,
        )

        while iteration < max_iter and current_cost > 0:
            iteration += 1
            column, new_row = self.propose_move(board)
            candidate_cost = current_cost + move_delta(board, column, new_row)
            evaluations += 1

            probability = acceptance_probability(current_cost, candidate_cost, temperature)
            if probability >= 1.0 or self.rng.random() < probability:
                apply_move(board, column, new_row)
                current_cost = candidate_cost
                accepted += 1
                if current_cost < best_cost:
                    best_cost = current_cost
                    best_board = list(board)

            temperature = cooling_schedule(
                temperature, iteration, max_iter, initial_temperature, self.floor, self.schedule
            )

            if history is not None and (iteration % trace_every == 0 or current_cost == 0):
                history.append((iteration, temperature, current_cost, best_cost))

        elapsed = perf_counter() - start
        result = SAResult(
            board=best_board,
            solved=best_cost == 0,
            cost=best_cost,
            iterations=iteration,
            evaluations=evaluations,
            accepted=accepted,
            initial_temperature=initial_temperature,
            final_temperature=temperature,
            elapsed=elapsed,
            seed=self.seed,
            history=history,
        )
        logger.debug(
            "SA end: N=%d solved=%s best_cost=%d iterations=%d accepted=%d elapsed=%.4fs",
            self.size, result.solved, best_cost, iteration, accepted, elapsed,
        )
        return result


def sa_nqueens(
    size: int,
    max_iter: int = 20000,
    T0: Optional[float] = None,
    seed: Optional[int] = None,
    init: str = "permutation",
    schedule: str = "geometric",
    floor: float = DEFAULT_TEMPERATURE_FLOOR,
    trace_every: Optional[int] = None,
) -> SAResult:
    """Run Simulated Annealing to minimize conflicts in the N-Queens problem.

    Convenience wrapper building an ``Annealer`` and running it once.

    Parameters
    ----------
    size : int
        Board dimension N.
    max_iter : int, default 20000
        Maximum number of iterations.
    T0 : float | None
        Initial temperature; proportional to ``size`` when omitted.
    seed : int | None
        Seed of the run's private random generator.
    init, schedule, floor, trace_every
        Forwarded to ``Annealer`` and ``Annealer.run``.

    Returns
    -------
    SAResult
        Best board seen and whether it is a solution.
    """
    validate_parameters(size, max_iter, temperature=T0, floor=floor, init=init, schedule=schedule)
    annealer = Annealer(size, seed=seed, init=init, schedule=schedule, floor=floor)
    return annealer.run(max_iter, T0=T0, trace_every=trace_every)
