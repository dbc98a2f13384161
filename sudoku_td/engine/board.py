from __future__ import annotations

import copy
import logging
import random
from typing import TYPE_CHECKING

from sudoku_td.common.constants import DEFAULT_DIFFICULTY, DIFFICULTY_REVEALS, GRID_SIZE
from sudoku_td.common.types import Cell, EventType, Grid, Mask
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.generator import generate_enemy_path, generate_puzzle
from sudoku_td.engine.state import Puzzle
from sudoku_td.engine.validator import get_possible_values, is_valid_move

if TYPE_CHECKING:
    from sudoku_td.engine.completion import CompletionTracker

logger = logging.getLogger(__name__)


def _blank_puzzle() -> Puzzle:
    return Puzzle(
        board=[[0] * GRID_SIZE for _ in range(GRID_SIZE)],
        solution=[[0] * GRID_SIZE for _ in range(GRID_SIZE)],
        fixed=[[False] * GRID_SIZE for _ in range(GRID_SIZE)],
        path=[],
    )


class BoardState:
    """Sole owner of the live board, solution, fixed mask and enemy path."""

    def __init__(
        self, bus: EventBus, rng: random.Random, difficulty: str = DEFAULT_DIFFICULTY
    ) -> None:
        self.bus = bus
        self.rng = rng
        self.difficulty = difficulty if difficulty in DIFFICULTY_REVEALS else DEFAULT_DIFFICULTY
        self.puzzle = _blank_puzzle()
        self.tracker: CompletionTracker | None = None

    # Accessors

    @property
    def board(self) -> Grid:
        return self.puzzle.board

    @property
    def solution(self) -> Grid:
        return self.puzzle.solution

    @property
    def fixed(self) -> Mask:
        return self.puzzle.fixed

    @property
    def path(self) -> list[Cell]:
        return list(self.puzzle.path)

    def path_set(self) -> set[Cell]:
        return self.puzzle.path_set

    def is_fixed(self, row: int, col: int) -> bool:
        return self.puzzle.fixed[row][col]

    def is_path(self, row: int, col: int) -> bool:
        return (row, col) in self.puzzle.path_set

    def value_at(self, row: int, col: int) -> int:
        return self.puzzle.board[row][col]

    # Lifecycle

    def init(self, difficulty: str | None = None) -> Puzzle:
        """Generate a fresh puzzle and path and announce it."""
        if difficulty is not None:
            self.set_difficulty(difficulty)
        self.puzzle = generate_puzzle(self.difficulty, self.rng)
        self.bus.publish(EventType.PUZZLE_GENERATED, self.snapshot())
        return self.puzzle

    def reset(self) -> Puzzle:
        return self.init()

    def load(self, puzzle: Puzzle) -> None:
        """Install an existing puzzle, e.g. a fixture or a restored game."""
        self.puzzle = puzzle
        self.bus.publish(EventType.PUZZLE_GENERATED, self.snapshot())

    def get_difficulty(self) -> str:
        return self.difficulty

    def set_difficulty(self, difficulty: str) -> bool:
        if difficulty not in DIFFICULTY_REVEALS:
            self.bus.status(f"Unknown difficulty: {difficulty}")
            return False
        self.difficulty = difficulty
        return True

    def regenerate_path(self) -> list[Cell]:
        """Replace the enemy path; the board and fixed mask are left as they are."""
        path = generate_enemy_path(self.rng)
        overlaps = [(r, c) for r, c in path if self.puzzle.fixed[r][c] or self.puzzle.board[r][c]]
        if overlaps:
            # Cells only get cleared at puzzle generation; new paths may cover givens.
            logger.warning("Regenerated path covers %d filled or fixed cells", len(overlaps))
        self.puzzle.path = path
        return list(path)

    def snapshot(self) -> dict:
        return {
            "board": copy.deepcopy(self.puzzle.board),
            "solution": copy.deepcopy(self.puzzle.solution),
            "fixed": copy.deepcopy(self.puzzle.fixed),
            "path": [list(cell) for cell in self.puzzle.path],
        }

    # Mutation

    def set_cell_value(self, row: int, col: int, value: int) -> bool:
        if self.puzzle.fixed[row][col]:
            self.bus.status("Cannot place a tower on a fixed Sudoku cell!")
            return False
        if self.is_path(row, col):
            self.bus.status("Cannot place a tower on the enemy path!")
            return False

        if value == 0:
            self.puzzle.board[row][col] = 0
            self._recheck()
            return True

        if not self.can_place(row, col, value):
            self.bus.publish(EventType.CELL_INVALID, {"row": row, "col": col, "value": value})
            self.bus.status(self.rule_violation_message(row, col, value))
            return False

        self.puzzle.board[row][col] = value
        logger.debug("Set cell (%d,%d) to %d", row, col, value)
        self.bus.publish(EventType.CELL_VALID, {"row": row, "col": col, "value": value})
        if self._recheck() and self.tracker.is_complete():
            self.bus.publish(EventType.SUDOKU_COMPLETE, None)
        return True

    def clear_cell(self, row: int, col: int) -> None:
        """Empty a cell left behind by a removed tower, even if a new path now covers it."""
        if self.puzzle.fixed[row][col]:
            return
        self.puzzle.board[row][col] = 0
        self._recheck()

    def can_place(self, row: int, col: int, value: int) -> bool:
        return is_valid_move(self.puzzle.board, row, col, value)

    def rule_violation_message(self, row: int, col: int, value: int) -> str:
        options = get_possible_values(self.puzzle.board, row, col)
        if options:
            listed = ", ".join(str(v) for v in options)
            return f"Invalid tower placement: Cannot place {value} here. Valid options: {listed}"
        return "Invalid tower placement according to Sudoku rules!"

    def _recheck(self) -> bool:
        if self.tracker is None:
            logger.warning("No completion tracker attached; skipping completion check")
            return False
        self.tracker.check_completions()
        return True
