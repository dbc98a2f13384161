from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Iterable

from sudoku_td.common.types import BOSS_ENEMY, SPECIAL_TOWER, EventType
from sudoku_td.engine.bonuses import BonusEffects, BonusEngine
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.placement import TowerManager
from sudoku_td.engine.state import Enemy, Tower
from sudoku_td.engine.waves import WaveDirector

logger = logging.getLogger(__name__)

# A number tower N hits enemy kinds N..N+2
TARGET_SPAN = 2


@dataclass(frozen=True)
class AttackResult:
    tower_id: str
    enemy_id: str
    damage: int
    killed: bool
    points: int
    currency: int


def can_target(tower: Tower, enemy: Enemy) -> bool:
    if tower.kind == SPECIAL_TOWER or enemy.kind == BOSS_ENEMY:
        return True
    number = tower.numeric_kind
    enemy_number = enemy.numeric_kind
    if number is None or enemy_number is None:
        return False
    return number <= enemy_number <= number + TARGET_SPAN


def find_closest_enemy(tower: Tower, enemies: Iterable[Enemy]) -> Enemy | None:
    closest = None
    closest_distance = math.inf
    for enemy in enemies:
        distance = math.hypot(enemy.x - tower.x, enemy.y - tower.y)
        if distance <= tower.range and distance < closest_distance:
            closest = enemy
            closest_distance = distance
    return closest


def find_target(tower: Tower, enemies: Iterable[Enemy]) -> Enemy | None:
    eligible = [e for e in enemies if e.active and can_target(tower, e)]
    return find_closest_enemy(tower, eligible)


class CombatResolver:
    """Per-tick tower targeting and attack resolution."""

    def __init__(
        self,
        towers: TowerManager,
        waves: WaveDirector,
        bonuses: BonusEngine | None,
        bus: EventBus,
    ) -> None:
        self.towers = towers
        self.waves = waves
        self.bonuses = bonuses
        self.bus = bus

    def update(self, delta_time: float) -> list[AttackResult]:
        results = []
        for tower in self.towers.get_towers():
            tower.cooldown -= delta_time
            if tower.cooldown > 0:
                continue
            target = find_target(tower, self.waves.get_enemies())
            if target is None:
                continue
            results.append(self.attack_enemy(tower, target))
            tower.cooldown = tower.attack_speed
        return results

    def _effects(self, tower: Tower, enemy: Enemy) -> BonusEffects:
        if self.bonuses is None:
            logger.warning("No bonus engine attached; using base attack values")
            return BonusEffects(damage=tower.damage, points=enemy.points, currency=enemy.reward)
        return self.bonuses.apply_effects(tower, enemy, enemy.points, enemy.reward)

    def attack_enemy(self, tower: Tower, enemy: Enemy) -> AttackResult:
        effects = self._effects(tower, enemy)
        killed = self.waves.damage_enemy(
            enemy.enemy_id, effects.damage, reward=effects.currency, points=effects.points
        )
        result = AttackResult(
            tower_id=tower.tower_id,
            enemy_id=enemy.enemy_id,
            damage=effects.damage,
            killed=killed,
            points=effects.points if killed else 0,
            currency=effects.currency if killed else 0,
        )
        self.bus.publish(EventType.TOWER_ATTACKED, asdict(result))
        return result
