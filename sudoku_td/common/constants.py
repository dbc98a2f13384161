from __future__ import annotations

GRID_SIZE = 9
BOX_SIZE = 3

DIFFICULTY_REVEALS = {
    "easy": 40,
    "medium": 30,
    "hard": 25,
}
DEFAULT_DIFFICULTY = "medium"

DEFAULT_CELL_SIZE = 55
# Enemy speed is expressed in cells-ish units; one unit moves this many pixels/s.
PIXELS_PER_SPEED_UNIT = 50

DEFAULT_LIVES = 3
DEFAULT_CURRENCY = 150

BASE_ENEMY_COUNT = 6
ENEMIES_PER_WAVE = 3
BOSS_WAVE_INTERVAL = 3
BOSS_SPAWN_FRACTION = 0.9
PATH_REGEN_DELAY = 0.5

WAVE_BONUS_BASE = 20
WAVE_BONUS_SCORE_MULTIPLIER = 2.0
WAVE_BONUS_SCALE_PER_WAVE = 0.1

INCORRECT_REFUND_RATE = 0.5
UPGRADE_REFUND_RATE = 0.75
