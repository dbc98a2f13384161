from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class PlaceTowerRequest(BaseModel):
    kind: Union[int, str]
    row: int = Field(ge=0, le=8)
    col: int = Field(ge=0, le=8)


class BonusChoiceRequest(BaseModel):
    unit_type: str
    index: Union[int, List[int]]
    kind: str


class DifficultyRequest(BaseModel):
    difficulty: str


class CommandResponse(BaseModel):
    status: str
    message: Optional[str] = None


class TowerResponse(BaseModel):
    tower_id: str
    kind: Union[int, str]
    row: int
    col: int
    level: int
    damage: int
    range: float
    attack_speed: float
    correct: bool


class GameStateResponse(BaseModel):
    board: List[List[int]]
    fixed: List[List[bool]]
    path: List[List[int]]
    difficulty: str
    towers: List[dict]
    enemies: List[dict]
    player: dict
    wave: dict
    completion: dict
    bonuses: dict
    pending_bonuses: List[dict] = Field(default_factory=list)
    paused: bool
    over: bool
    high_score: int
    status: Optional[str] = None


class GameEventResponse(BaseModel):
    kind: str
    payload: object = None
    timestamp_ms: int


class ScoresResponse(BaseModel):
    high_score: int
    current_score: int
    last_wave: int
    difficulty: str
