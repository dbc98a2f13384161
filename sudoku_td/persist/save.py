from __future__ import annotations

import logging

from sudoku_td.common.constants import DEFAULT_DIFFICULTY
from sudoku_td.persist.base import Storage

logger = logging.getLogger(__name__)

HIGH_SCORE = "sudoku_td_high_score"
CURRENT_SCORE = "sudoku_td_current_score"
LAST_WAVE = "sudoku_td_last_wave"
DIFFICULTY = "sudoku_td_difficulty"


def _as_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


class SaveSystem:
    """Reads and writes the persisted scalars: scores, last wave and difficulty."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._high_score: int | None = None

    def high_score(self) -> int:
        # Writes are queued, so the best score seen is kept in memory once read
        if self._high_score is None:
            self._high_score = _as_int(self.storage.get(HIGH_SCORE), 0)
        return self._high_score

    def record_score(self, score: int) -> bool:
        """Store the running score; return True if it set a new high score."""
        self.storage.set(CURRENT_SCORE, str(score))
        if score > self.high_score():
            self._high_score = score
            self.storage.set(HIGH_SCORE, str(score))
            logger.info("New high score: %d", score)
            return True
        return False

    def save_score(self, score: int, wave: int, difficulty: str) -> bool:
        new_high = self.record_score(score)
        self.storage.set(LAST_WAVE, str(wave))
        self.storage.set(DIFFICULTY, difficulty)
        return new_high

    def last_saved_state(self) -> dict:
        return {
            "high_score": self.high_score(),
            "current_score": _as_int(self.storage.get(CURRENT_SCORE), 0),
            "last_wave": _as_int(self.storage.get(LAST_WAVE), 1),
            "difficulty": self.storage.get(DIFFICULTY) or DEFAULT_DIFFICULTY,
        }

    def clear(self) -> None:
        for key in (HIGH_SCORE, CURRENT_SCORE, LAST_WAVE, DIFFICULTY):
            self.storage.delete(key)
        self._high_score = 0
