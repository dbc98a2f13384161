from __future__ import annotations

import logging
import math
from dataclasses import asdict

from sudoku_td.common.constants import (
    WAVE_BONUS_BASE,
    WAVE_BONUS_SCALE_PER_WAVE,
    WAVE_BONUS_SCORE_MULTIPLIER,
)
from sudoku_td.common.types import EventType
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import PlayerState

logger = logging.getLogger(__name__)


def calculate_wave_bonus(wave_number: int) -> tuple[int, int]:
    """Return ``(currency, score)`` granted for clearing ``wave_number``."""
    scale = 1 + (wave_number - 1) * WAVE_BONUS_SCALE_PER_WAVE
    currency = math.floor(WAVE_BONUS_BASE * wave_number * scale)
    score = math.floor(WAVE_BONUS_BASE * wave_number * WAVE_BONUS_SCORE_MULTIPLIER * scale)
    return currency, score


class Economy:
    """Player wallet: score, lives and currency."""

    def __init__(self, bus: EventBus, lives: int, currency: int, score: int = 0) -> None:
        self.bus = bus
        self.state = PlayerState(lives=lives, score=score, currency=currency)

    @property
    def lives(self) -> int:
        return self.state.lives

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def currency(self) -> int:
        return self.state.currency

    def publish_state(self) -> None:
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))
        self.bus.publish(EventType.LIVES_CHANGE, self.state.lives)
        self.bus.publish(EventType.SCORE_CHANGE, self.state.score)
        self.bus.publish(EventType.CURRENCY_CHANGE, self.state.currency)

    def add_currency(self, amount: int) -> None:
        self.state.currency += amount
        self.bus.publish(EventType.CURRENCY_CHANGE, self.state.currency)
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))

    def spend_currency(self, amount: int) -> bool:
        if amount > self.state.currency:
            logger.debug("Cannot spend %d with %d available", amount, self.state.currency)
            return False
        self.state.currency -= amount
        self.bus.publish(EventType.CURRENCY_CHANGE, self.state.currency)
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))
        return True

    def add_score(self, points: int) -> None:
        self.state.score += points
        self.bus.publish(EventType.SCORE_CHANGE, self.state.score)
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))

    def lose_life(self) -> bool:
        """Take one life; return False once none are left."""
        if self.state.lives <= 0:
            return False
        self.state.lives -= 1
        self.bus.publish(EventType.LIVES_CHANGE, self.state.lives)
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))
        if self.state.lives <= 0:
            logger.info("Game over with score %d", self.state.score)
            self.bus.publish(EventType.GAME_OVER, {"score": self.state.score})
            return False
        return True

    def add_life(self, count: int = 1) -> None:
        self.state.lives += count
        self.bus.publish(EventType.LIVES_CHANGE, self.state.lives)
        self.bus.publish(EventType.PLAYER_UPDATE, asdict(self.state))

    # Event handlers

    def on_enemy_defeated(self, payload: dict) -> None:
        self.add_currency(payload["reward"])
        self.add_score(payload["points"])

    def on_enemy_reached_end(self, _payload: dict) -> None:
        self.lose_life()

    def apply_wave_bonus(self, wave_number: int) -> tuple[int, int]:
        currency, score = calculate_wave_bonus(wave_number)
        self.add_currency(currency)
        self.add_score(score)
        self.bus.status(
            f"Wave {wave_number} completed! Bonus: {currency} currency, {score} points"
        )
        return currency, score
