from __future__ import annotations

from enum import Enum
from typing import List, Tuple, Union

Cell = Tuple[int, int]
Grid = List[List[int]]
Mask = List[List[bool]]
Point = Tuple[float, float]
TowerKind = Union[int, str]
EnemyKind = Union[int, str]

SPECIAL_TOWER = "special"
BOSS_ENEMY = "boss"


class UnitType(str, Enum):
    ROW = "row"
    COLUMN = "column"
    BOX = "box"


class BonusKind(str, Enum):
    DAMAGE = "DAMAGE"
    POINTS = "POINTS"
    CURRENCY = "CURRENCY"


class EventType(str, Enum):
    # Game lifecycle
    GAME_PAUSE = "game:pause"
    GAME_RESUME = "game:resume"
    GAME_RESET = "game:reset"
    GAME_OVER = "game:over"

    # Player
    PLAYER_UPDATE = "player:update"
    CURRENCY_CHANGE = "player:currency:change"
    LIVES_CHANGE = "player:lives:change"
    SCORE_CHANGE = "player:score:change"

    # Sudoku
    PUZZLE_GENERATED = "sudoku:generated"
    CELL_VALID = "sudoku:cell:valid"
    CELL_INVALID = "sudoku:cell:invalid"
    SUDOKU_COMPLETE = "sudoku:complete"
    UNIT_COMPLETED = "sudoku:unit:completed"
    PATH_UPDATED = "path:updated"

    # Bonuses
    BONUS_OFFERED = "bonus:offered"
    BONUS_APPLIED = "bonus:applied"
    BONUS_REVOKED = "bonus:revoked"

    # Towers
    TOWER_PLACED = "tower:placed"
    TOWER_REMOVED = "tower:removed"
    TOWER_UPGRADED = "tower:upgrade"
    TOWER_ATTACKED = "tower:attack"

    # Enemies
    ENEMY_SPAWN = "enemy:spawn"
    ENEMY_MOVE = "enemy:move"
    ENEMY_DAMAGE = "enemy:damage"
    ENEMY_DEFEATED = "enemy:defeated"
    ENEMY_REACHED_END = "enemy:reached:end"

    # Waves
    WAVE_START = "wave:start"
    WAVE_COMPLETE = "wave:complete"

    STATUS_MESSAGE = "ui:status:message"


def unit_key(unit_type: UnitType, index: int | Cell) -> str:
    """Stable identity for a row, column or box, e.g. ``row-3`` or ``box-1-2``."""
    if unit_type == UnitType.BOX:
        box_row, box_col = index  # type: ignore[misc]
        return f"{unit_type.value}-{box_row}-{box_col}"
    return f"{unit_type.value}-{index}"
