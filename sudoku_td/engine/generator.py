from __future__ import annotations

import copy
import logging
import random

from sudoku_td.common.constants import BOX_SIZE, DIFFICULTY_REVEALS, GRID_SIZE
from sudoku_td.common.types import Cell, Grid, Mask
from sudoku_td.engine.state import Puzzle
from sudoku_td.engine.validator import is_valid_move

logger = logging.getLogger(__name__)

# Path steps: up, down, right. Never left, so the path cannot cross itself.
PATH_DIRECTIONS = ((-1, 0), (1, 0), (0, 1))


class GenerationFailure(RuntimeError):
    """The backtracking solver could not complete a Sudoku grid."""


def empty_grid() -> Grid:
    return [[0] * GRID_SIZE for _ in range(GRID_SIZE)]


def find_empty_cell(grid: Grid) -> Cell | None:
    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            if grid[row][col] == 0:
                return row, col
    return None


def solve_grid(grid: Grid) -> bool:
    """Fill ``grid`` in place by backtracking; return False on a dead end."""
    cell = find_empty_cell(grid)
    if cell is None:
        return True
    row, col = cell
    for value in range(1, GRID_SIZE + 1):
        if is_valid_move(grid, row, col, value):
            grid[row][col] = value
            if solve_grid(grid):
                return True
            grid[row][col] = 0
    return False


def generate_complete_solution(rng: random.Random) -> Grid:
    """Return a fully solved random grid.

    The three diagonal boxes share no row, column or box with each other, so
    they are seeded with independent permutations before solving the rest.
    """
    grid = empty_grid()
    for box in range(GRID_SIZE // BOX_SIZE):
        values = list(range(1, GRID_SIZE + 1))
        rng.shuffle(values)
        for i in range(BOX_SIZE):
            for j in range(BOX_SIZE):
                grid[box * BOX_SIZE + i][box * BOX_SIZE + j] = values[i * BOX_SIZE + j]
    if not solve_grid(grid):
        raise GenerationFailure("Backtracking could not complete the Sudoku solution")
    return grid


def generate_enemy_path(rng: random.Random) -> list[Cell]:
    """Build an ordered left-to-right path of unique, orthogonally adjacent cells."""
    last_col = GRID_SIZE - 1
    row = rng.randrange(GRID_SIZE)
    end_row = rng.randrange(GRID_SIZE)
    col = 0
    path: list[Cell] = [(row, col)]
    visited: set[Cell] = {(row, col)}

    while col < last_col:
        moves: list[Cell] = []
        for dr, dc in PATH_DIRECTIONS:
            nr, nc = row + dr, col + dc
            if not (0 <= nr < GRID_SIZE and 0 <= nc < GRID_SIZE) or (nr, nc) in visited:
                continue
            if col == last_col - 1 and nc > col:
                # Only step into the last column on the chosen exit row
                if nr == end_row:
                    moves = [(nr, nc)]
                    break
            else:
                moves.append((nr, nc))
        if moves:
            row, col = rng.choice(moves)
        else:
            # Boxed in vertically: force a step right
            col += 1
        path.append((row, col))
        visited.add((row, col))

    # Reached the last column off the exit row: run straight down/up to it
    if row != end_row:
        step = 1 if end_row > row else -1
        for r in range(row + step, end_row + step, step):
            path.append((r, last_col))
    return path


def create_puzzle_from_solution(
    solution: Grid, path: list[Cell], num_to_reveal: int, rng: random.Random
) -> tuple[Grid, Mask]:
    """Blank the path, keep ``num_to_reveal`` random non-path cells as fixed givens."""
    puzzle = copy.deepcopy(solution)
    fixed = [[False] * GRID_SIZE for _ in range(GRID_SIZE)]
    path_cells = set(path)
    positions = [(r, c) for r in range(GRID_SIZE) for c in range(GRID_SIZE)]
    rng.shuffle(positions)

    for row, col in path_cells:
        puzzle[row][col] = 0

    revealed = 0
    for row, col in positions:
        if (row, col) in path_cells:
            continue
        if revealed < num_to_reveal:
            fixed[row][col] = True
            revealed += 1
        else:
            puzzle[row][col] = 0
    return puzzle, fixed


def generate_puzzle(difficulty: str, rng: random.Random) -> Puzzle:
    if difficulty not in DIFFICULTY_REVEALS:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    solution = generate_complete_solution(rng)
    path = generate_enemy_path(rng)
    board, fixed = create_puzzle_from_solution(
        solution, path, DIFFICULTY_REVEALS[difficulty], rng
    )
    logger.debug("Generated %s puzzle with %d path cells", difficulty, len(path))
    return Puzzle(board=board, solution=solution, fixed=fixed, path=path)
