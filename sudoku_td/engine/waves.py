from __future__ import annotations

import logging
import math
import random
from dataclasses import asdict

from sudoku_td.common.constants import (
    BASE_ENEMY_COUNT,
    BOSS_SPAWN_FRACTION,
    ENEMIES_PER_WAVE,
    PATH_REGEN_DELAY,
)
from sudoku_td.common.types import BOSS_ENEMY, EnemyKind, EventType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.enemies import EnemyRegistry
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.movement import PathWalker
from sudoku_td.engine.state import Enemy

logger = logging.getLogger(__name__)


def enemy_count_for_wave(wave_number: int) -> int:
    return BASE_ENEMY_COUNT + ENEMIES_PER_WAVE * (wave_number - 1)


def spawn_period_for_wave(wave_number: int) -> float:
    return 1 / math.sqrt(wave_number)


class WaveDirector:
    """Spawns and advances enemies and drives wave start/complete transitions.

    The spawn timer is advanced from ``update`` so that pausing the tick also
    pauses spawning.
    """

    def __init__(
        self,
        registry: EnemyRegistry,
        walker: PathWalker,
        board: BoardState,
        bus: EventBus,
        rng: random.Random,
    ) -> None:
        self.registry = registry
        self.walker = walker
        self.board = board
        self.bus = bus
        self.rng = rng
        self.reset()

    def reset(self) -> None:
        self.enemies: dict[str, Enemy] = {}
        self.wave_number = 1
        self.wave_active = False
        self.enemies_remaining = 0
        self._next_id = 0
        self._spawn_total = 0
        self._spawned = 0
        self._spawn_period = 0.0
        self._spawn_elapsed = 0.0
        self._regen_countdown: float | None = None

    # Accessors

    def get_enemies(self) -> list[Enemy]:
        return [e for e in self.enemies.values() if e.active]

    def get_wave_number(self) -> int:
        return self.wave_number

    def set_wave_number(self, number: int) -> None:
        if isinstance(number, int) and number > 0:
            self.wave_number = number

    def is_wave_in_progress(self) -> bool:
        return self.wave_active

    @property
    def spawning(self) -> bool:
        return self._spawned < self._spawn_total

    # Wave lifecycle

    def create_enemy(self, kind: EnemyKind) -> Enemy | None:
        stats = self.registry.scaled(kind, self.wave_number)
        if stats is None:
            logger.error("Invalid enemy type: %s", kind)
            return None
        x, y, path_index, progress = self.walker.get_starting_position()
        self._next_id += 1
        enemy = Enemy(
            enemy_id=f"enemy_{self._next_id}",
            kind=kind,
            health=stats.health,
            max_health=stats.max_health,
            speed=stats.speed,
            reward=stats.reward,
            points=stats.points,
            x=x,
            y=y,
            path_index=path_index,
            progress=progress,
        )
        self.enemies[enemy.enemy_id] = enemy
        self.bus.publish(EventType.ENEMY_SPAWN, asdict(enemy))
        return enemy

    def start_wave(self) -> bool:
        if self.wave_active:
            self.bus.status("A wave is already in progress!")
            return False
        if self._regen_countdown is not None:
            self._regen_countdown = None
            self._regenerate_path()
        if not self.walker.get_path():
            self.bus.status("Cannot start wave: No path defined!")
            return False

        count = enemy_count_for_wave(self.wave_number)
        self.wave_active = True
        self.enemies_remaining = count
        self._spawn_total = count
        self._spawned = 0
        self._spawn_period = spawn_period_for_wave(self.wave_number)
        self._spawn_elapsed = 0.0
        logger.info("Wave %d started with %d enemies", self.wave_number, count)
        self.bus.publish(
            EventType.WAVE_START, {"wave_number": self.wave_number, "enemy_count": count}
        )
        self.bus.status(f"Wave {self.wave_number} started! Enemies: {count}")
        return True

    def next_spawn_kind(self) -> EnemyKind:
        available = self.registry.get_available_types_for_wave(self.wave_number)
        if BOSS_ENEMY in available and self._spawned >= self._spawn_total * BOSS_SPAWN_FRACTION:
            return BOSS_ENEMY
        normal = [kind for kind in available if kind != BOSS_ENEMY]
        return self.rng.choice(normal)

    def _advance_spawner(self, delta_time: float) -> None:
        if not self.spawning:
            return
        self._spawn_elapsed += delta_time
        while self.spawning and self._spawn_elapsed >= self._spawn_period:
            self._spawn_elapsed -= self._spawn_period
            self.create_enemy(self.next_spawn_kind())
            self._spawned += 1

    def update(self, delta_time: float) -> None:
        if self._regen_countdown is not None:
            self._regen_countdown -= delta_time
            if self._regen_countdown <= 0:
                self._regen_countdown = None
                self._regenerate_path()
        if not self.wave_active:
            return

        for enemy in list(self.enemies.values()):
            if not enemy.active:
                continue
            if self.walker.move_enemy(enemy, delta_time):
                self._enemy_reached_end(enemy)
            else:
                self.bus.publish(EventType.ENEMY_MOVE, asdict(enemy))

        self._advance_spawner(delta_time)

        if not self.enemies and not self.spawning:
            self._wave_complete()

    def damage_enemy(
        self,
        enemy_id: str,
        amount: int,
        *,
        reward: int | None = None,
        points: int | None = None,
    ) -> bool:
        """Apply damage; return True if it killed the enemy.

        ``reward`` and ``points`` override the enemy's own values in the
        defeat event, so bonus-adjusted rewards reach the wallet.
        """
        enemy = self.enemies.get(enemy_id)
        if enemy is None or not enemy.active:
            return False
        enemy.health -= amount
        if enemy.health <= 0:
            enemy.active = False
            del self.enemies[enemy_id]
            self.enemies_remaining -= 1
            self.bus.publish(
                EventType.ENEMY_DEFEATED,
                {
                    "enemy": asdict(enemy),
                    "reward": enemy.reward if reward is None else reward,
                    "points": enemy.points if points is None else points,
                },
            )
            return True
        self.bus.publish(EventType.ENEMY_DAMAGE, {"enemy": asdict(enemy), "damage": amount})
        return False

    def _enemy_reached_end(self, enemy: Enemy) -> None:
        enemy.active = False
        del self.enemies[enemy.enemy_id]
        self.enemies_remaining -= 1
        self.bus.publish(EventType.ENEMY_REACHED_END, asdict(enemy))

    def _wave_complete(self) -> None:
        self.wave_active = False
        self.enemies = {}
        completed = self.wave_number
        logger.info("Wave %d complete", completed)
        self.bus.publish(EventType.WAVE_COMPLETE, {"wave_number": completed})
        self.wave_number += 1
        self._regen_countdown = PATH_REGEN_DELAY

    def _regenerate_path(self) -> None:
        path = self.board.regenerate_path()
        self.walker.set_path(path)
        self.bus.publish(EventType.PATH_UPDATED, [list(cell) for cell in path])
