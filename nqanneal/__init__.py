"""N-Queens placement by simulated annealing."""

from .simulated_annealing import (
    Annealer,
    SAResult,
    acceptance_probability,
    cooling_schedule,
    default_temperature,
    initial_board,
    sa_nqueens,
)
from .utils import (
    InvalidInputError,
    apply_move,
    conflicts,
    conflicts_on2,
    is_valid_solution,
    move_delta,
    render_board,
)

__all__ = [
    "Annealer",
    "SAResult",
    "acceptance_probability",
    "cooling_schedule",
    "default_temperature",
    "initial_board",
    "sa_nqueens",
    "InvalidInputError",
    "apply_move",
    "conflicts",
    "conflicts_on2",
    "is_valid_solution",
    "move_delta",
    "render_board",
]
