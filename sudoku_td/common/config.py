from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(value: str, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _env_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


def _parse_origins(value: str | None) -> list[str]:
    if not value:
        return [
            "http://localhost:8000",
            "http://127.0.0.1:8000",
        ]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    db_path: str = os.getenv("SUDOKU_TD_DB_PATH", "sudoku_td.db")
    tick_seconds: float = float(os.getenv("SUDOKU_TD_TICK_SECONDS", "0.033"))
    enable_tick_loop: bool = _env_bool(os.getenv("SUDOKU_TD_ENABLE_TICK_LOOP", "1"))
    random_seed: int | None = _env_int(os.getenv("SUDOKU_TD_RANDOM_SEED"))
    difficulty: str = os.getenv("SUDOKU_TD_DIFFICULTY", "medium")
    cell_size: int = int(os.getenv("SUDOKU_TD_CELL_SIZE", "55"))
    starting_lives: int = int(os.getenv("SUDOKU_TD_STARTING_LIVES", "3"))
    starting_currency: int = int(os.getenv("SUDOKU_TD_STARTING_CURRENCY", "150"))
    event_backlog: int = int(os.getenv("SUDOKU_TD_EVENT_BACKLOG", "500"))
    cors_origins: list[str] = field(
        default_factory=lambda: _parse_origins(os.getenv("SUDOKU_TD_CORS_ORIGINS"))
    )
    api_key: str | None = os.getenv("SUDOKU_TD_API_KEY")


settings = Settings()
