from __future__ import annotations

import logging

from sudoku_td.common.constants import BOX_SIZE, GRID_SIZE
from sudoku_td.common.types import Cell, EventType, UnitType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import CompletionStatus
from sudoku_td.engine.validator import box_cells, column_cells, is_board_valid, row_cells

logger = logging.getLogger(__name__)


class CompletionTracker:
    """Tracks which rows, columns and boxes are fully and validly filled."""

    def __init__(self, board: BoardState, bus: EventBus) -> None:
        self.board = board
        self.bus = bus
        self.status = CompletionStatus()

    def reset(self) -> None:
        self.status = CompletionStatus()

    def check_completions(self) -> CompletionStatus:
        """Recompute unit completion and announce units that just became complete."""
        path = self.board.path_set()
        for row in range(GRID_SIZE):
            self._update(UnitType.ROW, row, self.status.rows, row_cells(row), path)
        for col in range(GRID_SIZE):
            self._update(UnitType.COLUMN, col, self.status.columns, column_cells(col), path)
        for box_row in range(GRID_SIZE // BOX_SIZE):
            for box_col in range(GRID_SIZE // BOX_SIZE):
                self._update(
                    UnitType.BOX,
                    (box_row, box_col),
                    self.status.boxes,
                    box_cells(box_row, box_col),
                    path,
                )
        return self.status.copy()

    def _update(
        self,
        unit_type: UnitType,
        index: int | Cell,
        completed: set,
        cells: list[Cell],
        path: set[Cell],
    ) -> None:
        complete = self._unit_complete(cells, path)
        if complete and index not in completed:
            completed.add(index)
            logger.debug("%s %s completed", unit_type.value, index)
            self.bus.publish(
                EventType.UNIT_COMPLETED, {"unit_type": unit_type, "index": index}
            )
        elif not complete and index in completed:
            completed.discard(index)

    def _unit_complete(self, cells: list[Cell], path: set[Cell]) -> bool:
        open_cells = [cell for cell in cells if cell not in path]
        if not open_cells:
            return False
        values = [self.board.value_at(r, c) for r, c in open_cells]
        if 0 in values:
            return False
        return len(set(values)) == len(values)

    def is_unit_complete(self, unit_type: UnitType, index: int | Cell) -> bool:
        return self.status.contains(unit_type, index)

    def is_complete(self) -> bool:
        path = self.board.path_set()
        for row in range(GRID_SIZE):
            for col in range(GRID_SIZE):
                if (row, col) not in path and self.board.value_at(row, col) == 0:
                    return False
        return is_board_valid(self.board.board, path)

    def completion_status(self) -> dict:
        return {
            "rows": sorted(self.status.rows),
            "columns": sorted(self.status.columns),
            "boxes": [list(box) for box in sorted(self.status.boxes)],
        }
