from __future__ import annotations

import logging
import random
from dataclasses import asdict

from sudoku_td.common.constants import (
    DEFAULT_CELL_SIZE,
    DEFAULT_CURRENCY,
    DEFAULT_DIFFICULTY,
    DEFAULT_LIVES,
)
from sudoku_td.common.types import Cell, EventType, TowerKind, UnitType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.bonuses import BonusEngine
from sudoku_td.engine.combat import CombatResolver
from sudoku_td.engine.completion import CompletionTracker
from sudoku_td.engine.economy import Economy
from sudoku_td.engine.enemies import EnemyRegistry
from sudoku_td.engine.events import EventBus, GameEvent
from sudoku_td.engine.movement import PathWalker
from sudoku_td.engine.placement import TowerManager
from sudoku_td.engine.state import Puzzle, Tower
from sudoku_td.engine.towers import TowerRegistry
from sudoku_td.engine.waves import WaveDirector
from sudoku_td.persist.base import Storage
from sudoku_td.persist.save import SaveSystem

logger = logging.getLogger(__name__)


class GameEngine:
    """Authoritative game engine.

    Owns one of each component, wires them together over a shared
    :class:`EventBus` and advances them in a fixed order on every tick:
    waves, combat, completion tracking, bonus revocation.
    """

    def __init__(
        self,
        storage: Storage | None = None,
        seed: int | None = None,
        difficulty: str = DEFAULT_DIFFICULTY,
        cell_size: int = DEFAULT_CELL_SIZE,
        lives: int = DEFAULT_LIVES,
        currency: int = DEFAULT_CURRENCY,
        event_backlog: int = 0,
    ) -> None:
        self.rng = random.Random(seed)
        self.bus = EventBus(backlog=event_backlog)
        self.difficulty = difficulty
        self.cell_size = cell_size
        self.starting_lives = lives
        self.starting_currency = currency
        self.save_system = SaveSystem(storage) if storage is not None else None
        if self.save_system is None:
            logger.warning("No storage configured; scores will not be persisted")
        self.tower_registry = TowerRegistry()
        self.enemy_registry = EnemyRegistry()
        self.last_status: str | None = None
        self._build()

    def _build(self) -> None:
        self.paused = False
        self.over = False
        self._bonus_pause = False

        self.board = BoardState(self.bus, self.rng, self.difficulty)
        self.tracker = CompletionTracker(self.board, self.bus)
        self.board.tracker = self.tracker
        self.bonuses = BonusEngine(self.tracker, self.bus)
        self.economy = Economy(self.bus, self.starting_lives, self.starting_currency)
        self.towers = TowerManager(
            self.board, self.tower_registry, self.economy, self.bus, self.cell_size
        )
        self.walker = PathWalker(self.cell_size)
        self.waves = WaveDirector(
            self.enemy_registry, self.walker, self.board, self.bus, self.rng
        )
        self.combat = CombatResolver(self.towers, self.waves, self.bonuses, self.bus)

        bus = self.bus
        bus.subscribe(EventType.STATUS_MESSAGE, self._on_status)
        bus.subscribe(EventType.UNIT_COMPLETED, self.bonuses.on_unit_completed)
        bus.subscribe(EventType.BONUS_OFFERED, self._on_bonus_offered)
        bus.subscribe(EventType.TOWER_PLACED, self._on_board_changed)
        bus.subscribe(EventType.TOWER_REMOVED, self._on_board_changed)
        bus.subscribe(EventType.ENEMY_DEFEATED, self.economy.on_enemy_defeated)
        bus.subscribe(EventType.ENEMY_REACHED_END, self.economy.on_enemy_reached_end)
        bus.subscribe(EventType.WAVE_COMPLETE, self._on_wave_complete)
        bus.subscribe(EventType.GAME_OVER, self._on_game_over)
        bus.subscribe(EventType.SCORE_CHANGE, self._on_score_change)
        bus.subscribe(EventType.SUDOKU_COMPLETE, self._on_sudoku_complete)

    # Lifecycle

    def new_game(self, puzzle: Puzzle | None = None) -> None:
        """Generate (or install) a puzzle and publish the starting player state."""
        if puzzle is None:
            self.board.init()
        else:
            self.board.load(puzzle)
        self.walker.set_path(self.board.path)
        self.tracker.check_completions()
        self.economy.publish_state()
        logger.info("New %s game started", self.board.difficulty)

    def reset(self, puzzle: Puzzle | None = None) -> None:
        """Tear every component down and start over with fresh subscriptions."""
        self.bus.clear_all()
        self._build()
        self.new_game(puzzle)
        self.bus.publish(EventType.GAME_RESET, None)
        self.bus.status("New game started!")

    def tick(self, delta_time: float) -> bool:
        """Advance one frame; return False when the game is paused or over."""
        if self.paused or self.over:
            return False
        self.waves.update(delta_time)
        self.combat.update(delta_time)
        self.tracker.check_completions()
        self.bonuses.check_board_completions()
        self._release_bonus_pause()
        return True

    # Commands

    def place_tower(self, kind: TowerKind | str, row: int, col: int) -> Tower | None:
        if self.over:
            self.bus.status("Game over! Start a new game to keep playing.")
            return None
        return self.towers.create_tower(kind, row, col)

    def remove_tower(self, tower_id: str) -> bool:
        if not self.towers.remove_tower(tower_id):
            self.bus.status(f"Tower not found: {tower_id}")
            return False
        return True

    def upgrade_tower(self, tower_id: str) -> bool:
        return self.towers.upgrade_tower(tower_id)

    def start_wave(self) -> bool:
        if self.over:
            self.bus.status("Game over! Start a new game to keep playing.")
            return False
        if self.paused:
            self.bus.status("Resume the game before starting a wave.")
            return False
        return self.waves.start_wave()

    def pause(self) -> bool:
        if self.paused:
            return False
        self.paused = True
        self.bus.publish(EventType.GAME_PAUSE, None)
        return True

    def resume(self) -> bool:
        if not self.paused:
            return False
        if self.bonuses.has_pending():
            self.bus.status("Choose a bonus before resuming.")
            return False
        self.paused = False
        self._bonus_pause = False
        self.bus.publish(EventType.GAME_RESUME, None)
        return True

    def choose_bonus(
        self, unit_type: UnitType | str, index: int | Cell | list[int], kind: str
    ) -> bool:
        if not self.bonuses.choose_bonus(unit_type, index, kind):
            return False
        self._release_bonus_pause()
        return True

    def set_difficulty(self, difficulty: str) -> bool:
        """Select the difficulty used by the next reset."""
        if not self.board.set_difficulty(difficulty):
            return False
        self.difficulty = difficulty
        self.bus.status(f"Difficulty set to {difficulty}. Start a new game to apply it.")
        return True

    # Event handlers

    def _on_status(self, message: str) -> None:
        self.last_status = message

    def _on_bonus_offered(self, _payload: dict) -> None:
        if not self.paused:
            self._bonus_pause = True
            self.pause()

    def _on_board_changed(self, _payload: dict) -> None:
        self.bonuses.check_board_completions()
        self._release_bonus_pause()

    def _release_bonus_pause(self) -> None:
        if self._bonus_pause and not self.bonuses.has_pending():
            self.resume()

    def _on_wave_complete(self, payload: dict) -> None:
        if self.over:
            return
        wave_number = payload["wave_number"]
        self.economy.apply_wave_bonus(wave_number)
        self.towers.remove_incorrect_towers()
        self._save(wave_number + 1)

    def _on_game_over(self, payload: dict) -> None:
        if self.over:
            return
        self.over = True
        self.bus.status(f"Game Over! Final score: {payload['score']}")
        self._save(self.waves.get_wave_number())

    def _on_score_change(self, score: int) -> None:
        if self.save_system is not None:
            self.save_system.record_score(score)

    def _on_sudoku_complete(self, _payload: None) -> None:
        self.bus.status("Sudoku solved! Every row, column and box is complete.")

    def _save(self, wave_number: int) -> None:
        if self.save_system is None:
            logger.debug("No storage configured; skipping save")
            return
        self.save_system.save_score(self.economy.score, wave_number, self.difficulty)

    # Views

    def high_score(self) -> int:
        if self.save_system is None:
            return self.economy.score
        return max(self.save_system.high_score(), self.economy.score)

    def drain_events(self) -> list[GameEvent]:
        return self.bus.drain()

    def render_state(self) -> dict:
        return {
            "board": [list(row) for row in self.board.board],
            "fixed": [list(row) for row in self.board.fixed],
            "path": [list(cell) for cell in self.board.path],
            "difficulty": self.board.difficulty,
            "towers": [asdict(t) for t in self.towers.get_towers()],
            "enemies": [asdict(e) for e in self.waves.get_enemies()],
            "player": asdict(self.economy.state),
            "wave": {
                "number": self.waves.get_wave_number(),
                "in_progress": self.waves.is_wave_in_progress(),
                "enemies_remaining": self.waves.enemies_remaining,
            },
            "completion": self.tracker.completion_status(),
            "bonuses": self.bonuses.get_bonuses(),
            "pending_bonuses": self.bonuses.pending_offers(),
            "paused": self.paused,
            "over": self.over,
            "high_score": self.high_score(),
            "status": self.last_status,
        }
