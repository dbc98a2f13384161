from __future__ import annotations

import logging
import math

from sudoku_td.common.constants import DEFAULT_CELL_SIZE, PIXELS_PER_SPEED_UNIT
from sudoku_td.common.types import Cell, Point
from sudoku_td.engine.state import Enemy

logger = logging.getLogger(__name__)


class PathWalker:
    """Moves enemies along the ordered path cells in pixel space."""

    def __init__(self, cell_size: int = DEFAULT_CELL_SIZE, path: list[Cell] | None = None) -> None:
        self.cell_size = cell_size
        self.path: list[Cell] = list(path or [])

    def set_path(self, path: list[Cell]) -> None:
        if path:
            self.path = [tuple(cell) for cell in path]  # type: ignore[misc]

    def get_path(self) -> list[Cell]:
        return list(self.path)

    def set_cell_size(self, size: int) -> None:
        self.cell_size = size

    def cell_center(self, cell: Cell) -> Point:
        row, col = cell
        half = self.cell_size / 2
        return col * self.cell_size + half, row * self.cell_size + half

    def get_starting_position(self) -> tuple[float, float, int, float]:
        """Return ``(x, y, path_index, progress)`` for a freshly spawned enemy."""
        if not self.path:
            logger.error("Path is empty, cannot get starting position")
            return 0.0, 0.0, 0, 0.0
        x, y = self.cell_center(self.path[0])
        return x, y, 0, 0.0

    def move_enemy(self, enemy: Enemy, delta_time: float) -> bool:
        """Advance ``enemy``; return True once it has passed the final segment."""
        if not enemy.active:
            return False
        last = len(self.path) - 1
        if enemy.path_index >= last:
            return True

        start = self.cell_center(self.path[enemy.path_index])
        end = self.cell_center(self.path[enemy.path_index + 1])
        segment = math.dist(start, end)
        enemy.progress += enemy.speed * PIXELS_PER_SPEED_UNIT * delta_time / segment

        if enemy.progress >= 1:
            # Whole-segment steps; any overshoot is dropped
            enemy.path_index += 1
            enemy.progress = 0.0
            if enemy.path_index >= last:
                return True
            start = self.cell_center(self.path[enemy.path_index])
            end = self.cell_center(self.path[enemy.path_index + 1])

        enemy.x = start[0] + (end[0] - start[0]) * enemy.progress
        enemy.y = start[1] + (end[1] - start[1]) * enemy.progress
        return False
