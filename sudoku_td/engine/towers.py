from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from sudoku_td.common.types import SPECIAL_TOWER, TowerKind
from sudoku_td.engine.state import Tower

UPGRADE_COST_FACTOR = 0.75
UPGRADE_DAMAGE_FACTOR = 1.8
UPGRADE_RANGE_FACTOR = 1.3
UPGRADE_PERIOD_FACTOR = 0.7


@dataclass(frozen=True)
class TowerType:
    damage: int
    range: float  # in cells
    attack_speed: float  # seconds between attacks
    cost: int
    description: str


@dataclass(frozen=True)
class UpgradedStats:
    damage: int
    range: float
    attack_speed: float


def _number_tower(damage: int, cost: int, value: int, range_: float = 2.5) -> TowerType:
    return TowerType(
        damage=damage,
        range=range_,
        attack_speed=0.7,
        cost=cost,
        description=f"Attacks enemies with value {value}",
    )


DEFAULT_TOWER_TYPES: dict[TowerKind, TowerType] = {
    1: _number_tower(60, 30, 1),
    2: _number_tower(70, 30, 2),
    3: _number_tower(80, 30, 3),
    4: _number_tower(90, 35, 4),
    5: _number_tower(100, 35, 5),
    6: _number_tower(110, 35, 6),
    7: _number_tower(120, 40, 7),
    8: _number_tower(130, 40, 8),
    9: _number_tower(140, 40, 9, range_=3.0),
    # 0.3 attacks per second
    SPECIAL_TOWER: TowerType(
        damage=80,
        range=4.0,
        attack_speed=1 / 0.3,
        cost=100,
        description="Attacks all enemy types",
    ),
}


def parse_tower_kind(kind: TowerKind | str) -> TowerKind:
    """Normalize ``"5"`` to ``5``; other strings pass through unchanged."""
    if isinstance(kind, str) and kind.strip().isdigit():
        return int(kind.strip())
    return kind


class TowerRegistry:
    """Static stat table for tower kinds plus the upgrade curves."""

    def __init__(self, types: Mapping[TowerKind, TowerType] | None = None) -> None:
        self._types = dict(types if types is not None else DEFAULT_TOWER_TYPES)

    def get_tower_type(self, kind: TowerKind | str) -> TowerType | None:
        return self._types.get(parse_tower_kind(kind))

    def get_tower_cost(self, kind: TowerKind | str) -> int:
        tower_type = self.get_tower_type(kind)
        return tower_type.cost if tower_type else 0

    def get_all_tower_types(self) -> dict[TowerKind, TowerType]:
        return dict(self._types)

    def get_upgrade_cost(self, kind: TowerKind | str, current_level: int) -> int:
        tower_type = self.get_tower_type(kind)
        if tower_type is None:
            return 0
        return math.floor(tower_type.cost * UPGRADE_COST_FACTOR * current_level)

    def get_upgraded_stats(self, tower: Tower) -> UpgradedStats:
        return UpgradedStats(
            damage=math.floor(tower.damage * UPGRADE_DAMAGE_FACTOR),
            range=math.floor(tower.range * UPGRADE_RANGE_FACTOR),
            attack_speed=tower.attack_speed * UPGRADE_PERIOD_FACTOR,
        )
