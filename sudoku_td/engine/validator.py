"""Pure Sudoku rule checks. Nothing here mutates its arguments."""

from __future__ import annotations

from typing import Iterable

from sudoku_td.common.constants import BOX_SIZE, GRID_SIZE
from sudoku_td.common.types import Cell, Grid


def box_origin(row: int, col: int) -> Cell:
    return (row // BOX_SIZE) * BOX_SIZE, (col // BOX_SIZE) * BOX_SIZE


def row_cells(row: int) -> list[Cell]:
    return [(row, col) for col in range(GRID_SIZE)]


def column_cells(col: int) -> list[Cell]:
    return [(row, col) for row in range(GRID_SIZE)]


def box_cells(box_row: int, box_col: int) -> list[Cell]:
    return [
        (box_row * BOX_SIZE + i, box_col * BOX_SIZE + j)
        for i in range(BOX_SIZE)
        for j in range(BOX_SIZE)
    ]


def all_units() -> list[list[Cell]]:
    units = [row_cells(r) for r in range(GRID_SIZE)]
    units += [column_cells(c) for c in range(GRID_SIZE)]
    units += [
        box_cells(br, bc)
        for br in range(GRID_SIZE // BOX_SIZE)
        for bc in range(GRID_SIZE // BOX_SIZE)
    ]
    return units


def is_valid_move(board: Grid, row: int, col: int, value: int) -> bool:
    """True if ``value`` appears nowhere else in the cell's row, column or box."""
    for i in range(GRID_SIZE):
        if i != col and board[row][i] == value:
            return False
        if i != row and board[i][col] == value:
            return False
    start_row, start_col = box_origin(row, col)
    for r in range(start_row, start_row + BOX_SIZE):
        for c in range(start_col, start_col + BOX_SIZE):
            if (r, c) != (row, col) and board[r][c] == value:
                return False
    return True


def get_possible_values(board: Grid, row: int, col: int) -> list[int]:
    return [v for v in range(1, GRID_SIZE + 1) if is_valid_move(board, row, col, v)]


def _has_duplicate(board: Grid, cells: Iterable[Cell], excluded: set[Cell]) -> bool:
    seen: set[int] = set()
    for row, col in cells:
        if (row, col) in excluded:
            continue
        value = board[row][col]
        if value == 0:
            continue
        if value in seen:
            return True
        seen.add(value)
    return False


def is_board_valid(board: Grid, path_cells: Iterable[Cell] = ()) -> bool:
    excluded = set(path_cells)
    return not any(_has_duplicate(board, unit, excluded) for unit in all_units())


def validate_solution(board: Grid, solution: Grid, path_cells: Iterable[Cell] = ()) -> bool:
    """True if every filled non-path cell agrees with ``solution``."""
    excluded = set(path_cells)
    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            if (row, col) in excluded:
                continue
            value = board[row][col]
            if value != 0 and value != solution[row][col]:
                return False
    return True


def is_correct_value(row: int, col: int, value: int, solution: Grid) -> bool:
    return solution[row][col] == value
