import random

from sudoku_td.common.types import EventType, UnitType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.completion import CompletionTracker
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import Puzzle

PATH = [(4, col) for col in range(9)]


def _solution():
    return [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


def _setup(board_values=None):
    bus = EventBus()
    board = BoardState(bus, random.Random(0))
    tracker = CompletionTracker(board, bus)
    board.tracker = tracker
    grid = board_values or [[0] * 9 for _ in range(9)]
    board.load(
        Puzzle(
            board=grid,
            solution=_solution(),
            fixed=[[False] * 9 for _ in range(9)],
            path=list(PATH),
        )
    )
    completed = []
    bus.subscribe(EventType.UNIT_COMPLETED, completed.append)
    return board, tracker, completed


def _fill_row(board, row):
    solution = _solution()
    for col in range(9):
        board.set_cell_value(row, col, solution[row][col])


def test_row_completion_is_announced_once():
    board, tracker, completed = _setup()
    _fill_row(board, 0)
    assert completed == [{"unit_type": UnitType.ROW, "index": 0}]

    first = tracker.check_completions()
    second = tracker.check_completions()
    assert first == second
    assert len(completed) == 1
    assert tracker.is_unit_complete(UnitType.ROW, 0)


def test_units_entirely_on_path_never_complete():
    grid = _solution()
    for row, col in PATH:
        grid[row][col] = 0
    board, tracker, _ = _setup(grid)
    status = tracker.check_completions()
    assert 4 not in status.rows
    assert status.columns == set(range(9))
    assert tracker.is_complete()


def test_clearing_a_cell_drops_completion_silently():
    board, tracker, completed = _setup()
    _fill_row(board, 0)
    board.set_cell_value(0, 3, 0)
    assert not tracker.is_unit_complete(UnitType.ROW, 0)
    assert len(completed) == 1


def test_completion_status_lists_sorted_units():
    grid = _solution()
    for row, col in PATH:
        grid[row][col] = 0
    grid[0][0] = 0
    _, tracker, _ = _setup(grid)
    tracker.check_completions()
    status = tracker.completion_status()
    assert status["rows"] == [1, 2, 3, 5, 6, 7, 8]
    assert status["columns"] == list(range(1, 9))
    assert [0, 0] not in status["boxes"]
    assert [2, 2] in status["boxes"]
