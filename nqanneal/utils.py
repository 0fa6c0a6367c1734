"""Board primitives shared by the annealer and the analysis pipeline.

Representation
--------------
Boards are encoded as a 1D list where ``board[col] = row``. Every column holds
exactly one queen, so only row and diagonal attacks can occur.

The module provides two ways of counting attacking pairs: ``conflicts`` is the
O(N) hash-map version used inside the search loop, ``conflicts_on2`` is the
pairwise O(N^2) reference kept as ground truth. ``move_delta`` gives the cost
change of a single-column move without touching the board.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import List, Optional, Sequence

INIT_METHODS = ("permutation", "random")
SCHEDULES = ("geometric", "linear")


class InvalidInputError(ValueError):
    """Raised when run parameters are rejected before any search starts."""


def conflicts(board: Sequence[int]) -> int:
    """Compute the number of attacking queen pairs in O(N).

    Counts queens per row and per diagonal and sums ``k * (k - 1) / 2`` over
    every line holding ``k > 1`` queens.
    """
    row_count: Counter[int] = Counter()
    diag1: Counter[int] = Counter()
    diag2: Counter[int] = Counter()

    for column, row in enumerate(board):
        row_count[row] += 1
        diag1[row - column] += 1
        diag2[row + column] += 1

    def _pairs(counter: Counter[int]) -> int:
        total = 0
        for count in counter.values():
            if count > 1:
                total += count * (count - 1) // 2
        return total

    return _pairs(row_count) + _pairs(diag1) + _pairs(diag2)


def conflicts_on2(board: Sequence[int]) -> int:
    """Compute the number of attacking queen pairs in O(N^2).

    Reference implementation for validation and testing. Prefer ``conflicts``
    in performance-sensitive code.
    """
    n = len(board)
    conflicts_count = 0
    for i in range(n):
        for j in range(i + 1, n):
            if board[i] == board[j] or abs(board[i] - board[j]) == abs(i - j):
                conflicts_count += 1
    return conflicts_count


def queen_conflicts(board: Sequence[int], column: int, row: int) -> int:
    """Count the queens attacking square ``(column, row)``, ignoring ``column`` itself."""
    attacks = 0
    for other_column, other_row in enumerate(board):
        if other_column == column:
            continue
        if other_row == row or abs(other_row - row) == abs(other_column - column):
            attacks += 1
    return attacks


def move_delta(board: Sequence[int], column: int, new_row: int) -> int:
    """Return the cost change caused by moving the queen of ``column`` to ``new_row``.

    Only pairs involving the moved queen can change, so the delta is the
    difference between its attack counts at the new and the old square.
    """
    return queen_conflicts(board, column, new_row) - queen_conflicts(board, column, board[column])


def apply_move(board: List[int], column: int, row: int) -> int:
    """Place the queen of ``column`` on ``row`` in place and return the previous row.

    Applying ``(column, previous_row)`` afterwards restores the original board.
    """
    previous = board[column]
    board[column] = row
    return previous


def is_valid_solution(board: Sequence[int]) -> bool:
    """Return True if the board represents a valid N-Queens solution.

    Contract
    - Input: sequence of length N where board[col] = row (0-based indices)
    - Valid if: all 0 <= row < N and no pairs of queens attack each other
    """
    n = len(board)
    if n == 0:
        return False
    for row in board:
        if not isinstance(row, int):
            return False
        if row < 0 or row >= n:
            return False
    return conflicts(board) == 0


def render_board(board: Sequence[int], queen: str = "Q", empty: str = "-") -> str:
    """Render the board as text, one line per board row, top row first."""
    n = len(board)
    lines = []
    for row in range(n):
        cells = [queen if board[column] == row else empty for column in range(n)]
        lines.append(" ".join(cells))
    return "\n".join(lines)


def validate_parameters(
    size: int,
    max_iter: int,
    temperature: Optional[float] = None,
    floor: Optional[float] = None,
    init: Optional[str] = None,
    schedule: Optional[str] = None,
) -> None:
    """Reject malformed run parameters before any board is created.

    Raises
    ------
    InvalidInputError
        When ``size`` or ``max_iter`` is not a positive integer, when a
        temperature or floor is not a positive finite number, or when the
        initialization method or cooling schedule is unknown.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidInputError(f"board size must be a positive integer, got {size!r}")
    if isinstance(max_iter, bool) or not isinstance(max_iter, int) or max_iter <= 0:
        raise InvalidInputError(f"iteration budget must be a positive integer, got {max_iter!r}")
    for label, value in (("initial temperature", temperature), ("temperature floor", floor)):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputError(f"{label} must be a number, got {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise InvalidInputError(f"{label} must be a positive finite number, got {value!r}")
    if init is not None and init not in INIT_METHODS:
        raise InvalidInputError(f"unknown initialization '{init}'. Allowed: {', '.join(INIT_METHODS)}")
    if schedule is not None and schedule not in SCHEDULES:
        raise InvalidInputError(f"unknown cooling schedule '{schedule}'. Allowed: {', '.join(SCHEDULES)}")
