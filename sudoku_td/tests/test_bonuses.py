import random

from sudoku_td.common.types import BonusKind, EventType, UnitType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.bonuses import BonusEngine
from sudoku_td.engine.completion import CompletionTracker
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import Enemy, Puzzle, Tower

PATH = [(4, col) for col in range(9)]
SOLUTION = [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


def _setup():
    bus = EventBus()
    board = BoardState(bus, random.Random(0))
    tracker = CompletionTracker(board, bus)
    board.tracker = tracker
    board.load(
        Puzzle(
            board=[[0] * 9 for _ in range(9)],
            solution=[list(row) for row in SOLUTION],
            fixed=[[False] * 9 for _ in range(9)],
            path=list(PATH),
        )
    )
    bonuses = BonusEngine(tracker, bus)
    bus.subscribe(EventType.UNIT_COMPLETED, bonuses.on_unit_completed)
    return board, bonuses, bus


def _fill(board, cells):
    for row, col in cells:
        board.set_cell_value(row, col, SOLUTION[row][col])


def _tower(row, col, damage=100):
    return Tower(
        tower_id="t", kind=1, row=row, col=col, x=0.0, y=0.0,
        damage=damage, range=100.0, attack_speed=0.7,
    )


def _enemy():
    return Enemy(
        enemy_id="e", kind=1, health=60, max_health=60, speed=1.0,
        reward=15, points=5, x=0.0, y=0.0,
    )


def test_completed_row_offers_all_three_bonuses():
    board, bonuses, bus = _setup()
    offers = []
    bus.subscribe(EventType.BONUS_OFFERED, offers.append)
    _fill(board, [(0, col) for col in range(9)])
    assert len(offers) == 1
    assert offers[0]["key"] == "row-0"
    assert set(offers[0]["options"]) == {"DAMAGE", "POINTS", "CURRENCY"}
    assert bonuses.has_pending()
    assert bonuses.pending_offers() == [{"unit_type": "row", "index": 0, "key": "row-0"}]


def test_choosing_a_bonus_activates_it():
    board, bonuses, _ = _setup()
    _fill(board, [(0, col) for col in range(9)])
    assert bonuses.choose_bonus("row", 0, "damage")
    assert not bonuses.has_pending()
    assert bonuses.active_kind(UnitType.ROW, 0) == BonusKind.DAMAGE
    assert bonuses.get_bonuses() == {"rows": {"row-0": "DAMAGE"}, "columns": {}, "boxes": {}}


def test_choice_without_offer_is_rejected():
    _, bonuses, bus = _setup()
    messages = []
    bus.subscribe(EventType.STATUS_MESSAGE, messages.append)
    assert bonuses.choose_bonus("column", 2, "POINTS") is False
    assert bonuses.choose_bonus("row", 0, "luck") is False
    assert len(messages) == 2


def test_box_bonus_accepts_list_index_and_stacks_with_row():
    board, bonuses, _ = _setup()
    _fill(board, [(r, c) for r in range(3) for c in range(3, 6)])
    _fill(board, [(0, col) for col in range(9)])
    assert bonuses.choose_bonus("box", [0, 1], "DAMAGE")
    assert bonuses.choose_bonus(UnitType.ROW, 0, BonusKind.DAMAGE)

    effects = bonuses.apply_effects(_tower(0, 3), _enemy(), 5, 15)
    assert effects.damage == 182
    assert effects.points == 5
    assert effects.currency == 15


def test_points_and_currency_multipliers_floor():
    board, bonuses, _ = _setup()
    _fill(board, [(0, col) for col in range(9)])
    bonuses.choose_bonus("row", 0, "CURRENCY")
    effects = bonuses.apply_effects(_tower(0, 8), _enemy(), 5, 15)
    assert effects.currency == 26
    assert effects.damage == 100


def test_clearing_a_cell_revokes_the_row_bonus():
    board, bonuses, bus = _setup()
    revoked = []
    bus.subscribe(EventType.BONUS_REVOKED, revoked.append)
    _fill(board, [(0, col) for col in range(9)])
    bonuses.choose_bonus("row", 0, "POINTS")

    board.set_cell_value(0, 2, 0)
    assert bonuses.check_board_completions() == ["row-0"]
    assert revoked == [{"key": "row-0", "kind": "POINTS"}]
    assert bonuses.get_bonuses()["rows"] == {}
    assert bonuses.check_board_completions() == []


def test_pending_offer_is_withdrawn_when_unit_breaks():
    board, bonuses, _ = _setup()
    _fill(board, [(0, col) for col in range(9)])
    board.set_cell_value(0, 0, 0)
    bonuses.check_board_completions()
    assert not bonuses.has_pending()


def test_malformed_index_is_rejected_with_status():
    board, bonuses, bus = _setup()
    messages = []
    bus.subscribe(EventType.STATUS_MESSAGE, messages.append)
    _fill(board, [(0, col) for col in range(9)])

    assert bonuses.choose_bonus("box", 3, "DAMAGE") is False
    assert bonuses.choose_bonus("row", [1, 2], "DAMAGE") is False
    assert bonuses.choose_bonus("box", [0, 1, 2], "DAMAGE") is False
    assert messages == [
        "Invalid box index: 3",
        "Invalid row index: [1, 2]",
        "Invalid box index: [0, 1, 2]",
    ]
    assert bonuses.has_pending()
