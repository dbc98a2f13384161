from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List

from fastapi import FastAPI, Header, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware

from sudoku_td.api.models import (
    BonusChoiceRequest,
    CommandResponse,
    DifficultyRequest,
    GameEventResponse,
    GameStateResponse,
    PlaceTowerRequest,
    ScoresResponse,
    TowerResponse,
)
from sudoku_td.common.config import settings
from sudoku_td.engine.engine import GameEngine
from sudoku_td.persist.save import SaveSystem
from sudoku_td.persist.sqlite import SqliteStorage

app = FastAPI(title="Sudoku Tower Defense")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)

STATE_SEND_TIMEOUT = 1.0

storage: SqliteStorage | None = None
engine: GameEngine | None = None
engine_lock = asyncio.Lock()

state_clients: set[WebSocket] = set()
state_clients_lock = asyncio.Lock()


def _get_engine() -> GameEngine:
    assert engine is not None
    return engine


def _get_storage() -> SqliteStorage:
    assert storage is not None
    return storage


def _check_api_key(provided: str | None) -> None:
    if settings.api_key and provided != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def _rejected(game_engine: GameEngine, code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    return HTTPException(status_code=code, detail=game_engine.last_status or "Request rejected")


@app.on_event("startup")
async def _startup() -> None:
    global storage, engine
    storage = SqliteStorage(settings.db_path)
    engine = GameEngine(
        storage,
        seed=settings.random_seed,
        difficulty=settings.difficulty,
        cell_size=settings.cell_size,
        lives=settings.starting_lives,
        currency=settings.starting_currency,
        event_backlog=settings.event_backlog,
    )
    engine.new_game()
    if settings.enable_tick_loop:
        asyncio.create_task(tick_loop())
    else:
        logger.warning("Tick loop disabled via SUDOKU_TD_ENABLE_TICK_LOOP")


@app.on_event("shutdown")
async def _shutdown() -> None:
    if storage is not None:
        storage.close()


async def tick_loop() -> None:
    game_engine = _get_engine()
    last = time.monotonic()
    while True:
        await asyncio.sleep(settings.tick_seconds)
        now = time.monotonic()
        delta = now - last
        last = now
        async with state_clients_lock:
            clients = list(state_clients)
        try:
            async with engine_lock:
                game_engine.tick(delta)
                state = game_engine.render_state() if clients else None
        except Exception:
            logger.exception("Game tick failed")
            continue
        if state is not None:
            await _broadcast_state(clients, state)


async def _send_state(ws: WebSocket, state: Dict[str, object]) -> bool:
    try:
        await asyncio.wait_for(ws.send_json(state), timeout=STATE_SEND_TIMEOUT)
        return True
    except Exception:
        logger.exception("Failed to send state update")
        return False


async def _broadcast_state(clients: List[WebSocket], state: Dict[str, object]) -> None:
    payload = GameStateResponse(**state).model_dump(mode="json")
    results = await asyncio.gather(
        *(_send_state(ws, payload) for ws in clients), return_exceptions=True
    )
    stale = [ws for ws, ok in zip(clients, results) if ok is not True]
    if stale:
        async with state_clients_lock:
            for ws in stale:
                state_clients.discard(ws)


@app.get("/game/state", response_model=GameStateResponse)
async def game_state(x_api_key: str | None = Header(default=None)) -> GameStateResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        data = game_engine.render_state()
    return GameStateResponse(**data)


@app.get("/game/events", response_model=List[GameEventResponse])
async def game_events(x_api_key: str | None = Header(default=None)) -> List[GameEventResponse]:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        events = game_engine.drain_events()
    return [
        GameEventResponse(kind=e.kind.value, payload=e.payload, timestamp_ms=e.timestamp_ms)
        for e in events
    ]


@app.post("/game/towers", response_model=TowerResponse)
async def place_tower(
    req: PlaceTowerRequest, x_api_key: str | None = Header(default=None)
) -> TowerResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        tower = game_engine.place_tower(req.kind, req.row, req.col)
        if tower is None:
            raise _rejected(game_engine)
    return TowerResponse(
        tower_id=tower.tower_id,
        kind=tower.kind,
        row=tower.row,
        col=tower.col,
        level=tower.level,
        damage=tower.damage,
        range=tower.range,
        attack_speed=tower.attack_speed,
        correct=tower.correct,
    )


@app.delete("/game/towers/{tower_id}", response_model=CommandResponse)
async def remove_tower(
    tower_id: str, x_api_key: str | None = Header(default=None)
) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.remove_tower(tower_id):
            raise _rejected(game_engine)
    return CommandResponse(status="ok")


@app.get("/game/towers/{tower_id}/upgrade")
async def upgrade_preview(
    tower_id: str, x_api_key: str | None = Header(default=None)
) -> Dict[str, object]:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        info = game_engine.towers.upgrade_info(tower_id)
    if info is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tower not found")
    return info


@app.post("/game/towers/{tower_id}/upgrade", response_model=CommandResponse)
async def upgrade_tower(
    tower_id: str, x_api_key: str | None = Header(default=None)
) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.upgrade_tower(tower_id):
            raise _rejected(game_engine)
        message = game_engine.last_status
    return CommandResponse(status="ok", message=message)


@app.post("/game/wave", response_model=CommandResponse)
async def start_wave(x_api_key: str | None = Header(default=None)) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.start_wave():
            raise _rejected(game_engine, status.HTTP_409_CONFLICT)
        message = game_engine.last_status
    return CommandResponse(status="ok", message=message)


@app.post("/game/pause", response_model=CommandResponse)
async def pause_game(x_api_key: str | None = Header(default=None)) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.pause():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already paused")
    return CommandResponse(status="ok")


@app.post("/game/resume", response_model=CommandResponse)
async def resume_game(x_api_key: str | None = Header(default=None)) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.resume():
            if game_engine.paused:
                raise _rejected(game_engine, status.HTTP_409_CONFLICT)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Not paused")
    return CommandResponse(status="ok")


@app.post("/game/reset", response_model=CommandResponse)
async def reset_game(
    req: DifficultyRequest | None = None, x_api_key: str | None = Header(default=None)
) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if req is not None and not game_engine.set_difficulty(req.difficulty):
            raise _rejected(game_engine)
        game_engine.reset()
        message = game_engine.last_status
    return CommandResponse(status="ok", message=message)


@app.post("/game/bonus", response_model=CommandResponse)
async def choose_bonus(
    req: BonusChoiceRequest, x_api_key: str | None = Header(default=None)
) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        if not game_engine.choose_bonus(req.unit_type, req.index, req.kind):
            raise _rejected(game_engine)
        message = game_engine.last_status
    return CommandResponse(status="ok", message=message)


@app.get("/scores", response_model=ScoresResponse)
async def scores(x_api_key: str | None = Header(default=None)) -> ScoresResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        save_system = game_engine.save_system or SaveSystem(_get_storage())
        saved = save_system.last_saved_state()
    return ScoresResponse(**saved)


@app.websocket("/game/ws")
async def game_ws(ws: WebSocket, key: str | None = None) -> None:
    _check_api_key(key)
    await ws.accept()
    async with state_clients_lock:
        state_clients.add(ws)
    try:
        while True:
            try:
                await ws.receive_text()
            except WebSocketDisconnect:
                break
            except Exception:
                logger.exception("Game websocket receive failed")
                break
    finally:
        async with state_clients_lock:
            state_clients.discard(ws)
