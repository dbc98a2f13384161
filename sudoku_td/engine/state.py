from __future__ import annotations

from dataclasses import dataclass, field

from sudoku_td.common.types import BonusKind, Cell, EnemyKind, Grid, Mask, TowerKind, UnitType


@dataclass
class Puzzle:
    board: Grid
    solution: Grid
    fixed: Mask
    path: list[Cell]

    @property
    def path_set(self) -> set[Cell]:
        return set(self.path)


@dataclass
class Tower:
    tower_id: str
    kind: TowerKind
    row: int
    col: int
    x: float
    y: float
    damage: int
    range: float
    attack_speed: float  # seconds between attacks
    cooldown: float = 0.0
    level: int = 1
    correct: bool = True

    @property
    def numeric_kind(self) -> int | None:
        return self.kind if isinstance(self.kind, int) else None


@dataclass
class Enemy:
    enemy_id: str
    kind: EnemyKind
    health: int
    max_health: int
    speed: float
    reward: int
    points: int
    x: float
    y: float
    path_index: int = 0
    progress: float = 0.0
    active: bool = True

    @property
    def numeric_kind(self) -> int | None:
        return self.kind if isinstance(self.kind, int) else None


@dataclass
class CompletionStatus:
    rows: set[int] = field(default_factory=set)
    columns: set[int] = field(default_factory=set)
    boxes: set[Cell] = field(default_factory=set)

    def contains(self, unit_type: UnitType, index: int | Cell) -> bool:
        if unit_type == UnitType.ROW:
            return index in self.rows
        if unit_type == UnitType.COLUMN:
            return index in self.columns
        return index in self.boxes

    def copy(self) -> CompletionStatus:
        return CompletionStatus(set(self.rows), set(self.columns), set(self.boxes))


@dataclass
class BonusBinding:
    unit_type: UnitType
    index: int | Cell
    kind: BonusKind | None = None  # None while the player has not chosen

    @property
    def pending(self) -> bool:
        return self.kind is None


@dataclass
class PlayerState:
    lives: int
    score: int
    currency: int
