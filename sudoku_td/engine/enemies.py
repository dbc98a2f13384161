from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from sudoku_td.common.constants import BOSS_WAVE_INTERVAL, GRID_SIZE
from sudoku_td.common.types import BOSS_ENEMY, EnemyKind


@dataclass(frozen=True)
class EnemyType:
    health: int
    speed: float
    reward: int
    points: int


@dataclass(frozen=True)
class EnemyStats:
    health: int
    max_health: int
    speed: float
    reward: int
    points: int


DEFAULT_ENEMY_TYPES: dict[EnemyKind, EnemyType] = {
    1: EnemyType(health=60, speed=0.9, reward=15, points=5),
    2: EnemyType(health=70, speed=1.0, reward=18, points=7),
    3: EnemyType(health=80, speed=1.1, reward=21, points=9),
    4: EnemyType(health=90, speed=1.2, reward=24, points=11),
    5: EnemyType(health=100, speed=1.3, reward=27, points=13),
    6: EnemyType(health=120, speed=1.4, reward=30, points=15),
    7: EnemyType(health=140, speed=1.5, reward=33, points=17),
    8: EnemyType(health=160, speed=1.6, reward=36, points=19),
    9: EnemyType(health=180, speed=1.7, reward=39, points=21),
    BOSS_ENEMY: EnemyType(health=300, speed=0.7, reward=75, points=50),
}


def apply_wave_scaling(base: EnemyType, wave_number: int) -> EnemyStats:
    """Scale health by 20%, reward by 10% and points by 5% per wave after the first."""
    steps = wave_number - 1
    health = math.floor(base.health * (1 + 0.2 * steps))
    return EnemyStats(
        health=health,
        max_health=health,
        speed=base.speed,
        reward=math.floor(base.reward * (1 + 0.1 * steps)),
        points=math.floor(base.points * (1 + 0.05 * steps)),
    )


class EnemyRegistry:
    def __init__(self, types: Mapping[EnemyKind, EnemyType] | None = None) -> None:
        self._types = dict(types if types is not None else DEFAULT_ENEMY_TYPES)

    def get_enemy_type(self, kind: EnemyKind) -> EnemyType | None:
        return self._types.get(kind)

    def get_all_enemy_types(self) -> dict[EnemyKind, EnemyType]:
        return dict(self._types)

    def get_available_types_for_wave(self, wave_number: int) -> dict[EnemyKind, EnemyType]:
        """Kind N unlocks at wave 2N-1; the boss joins every third wave."""
        unlocked = min(GRID_SIZE, math.ceil(wave_number / 2))
        available: dict[EnemyKind, EnemyType] = {
            kind: self._types[kind] for kind in range(1, unlocked + 1) if kind in self._types
        }
        if wave_number % BOSS_WAVE_INTERVAL == 0 and BOSS_ENEMY in self._types:
            available[BOSS_ENEMY] = self._types[BOSS_ENEMY]
        return available

    def scaled(self, kind: EnemyKind, wave_number: int) -> EnemyStats | None:
        base = self.get_enemy_type(kind)
        if base is None:
            return None
        return apply_wave_scaling(base, wave_number)
