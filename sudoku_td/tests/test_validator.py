import copy

from sudoku_td.engine.validator import (
    get_possible_values,
    is_board_valid,
    is_correct_value,
    is_valid_move,
    validate_solution,
)


def _solution():
    return [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


def test_only_the_solution_value_fits_a_cleared_cell():
    solution = _solution()
    for row, col in [(0, 0), (4, 4), (8, 2), (6, 7)]:
        board = copy.deepcopy(solution)
        board[row][col] = 0
        for value in range(1, 10):
            assert is_valid_move(board, row, col, value) == (value == solution[row][col])


def test_possible_values_on_empty_board():
    board = [[0] * 9 for _ in range(9)]
    board[0][3] = 4
    board[2][0] = 9
    board[1][1] = 2
    assert get_possible_values(board, 0, 0) == [1, 3, 5, 6, 7, 8]


def test_board_validity_ignores_path_cells():
    board = [[0] * 9 for _ in range(9)]
    board[0][0] = 5
    board[0][8] = 5
    assert not is_board_valid(board)
    assert is_board_valid(board, [(0, 8)])


def test_validate_solution_checks_filled_cells_only():
    solution = _solution()
    board = [[0] * 9 for _ in range(9)]
    board[0][0] = solution[0][0]
    assert validate_solution(board, solution)
    board[5][5] = solution[5][5] % 9 + 1
    assert not validate_solution(board, solution)
    assert validate_solution(board, solution, [(5, 5)])


def test_is_correct_value():
    solution = _solution()
    assert is_correct_value(0, 6, 7, solution)
    assert not is_correct_value(0, 6, 5, solution)
