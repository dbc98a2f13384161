import random

from sudoku_td.common.types import BOSS_ENEMY, EventType
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.enemies import EnemyRegistry
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.movement import PathWalker
from sudoku_td.engine.waves import WaveDirector, enemy_count_for_wave


def _director(path=((0, 0), (0, 1))):
    bus = EventBus()
    rng = random.Random(11)
    board = BoardState(bus, rng)
    walker = PathWalker(55, list(path))
    return WaveDirector(EnemyRegistry(), walker, board, bus, rng), bus


def _record(bus, kind):
    seen = []
    bus.subscribe(kind, seen.append)
    return seen


def test_enemy_count_grows_by_three_per_wave():
    assert enemy_count_for_wave(1) == 6
    assert enemy_count_for_wave(3) == 12


def test_boss_spawns_last_on_third_wave():
    waves, bus = _director()
    spawned = _record(bus, EventType.ENEMY_SPAWN)
    started = _record(bus, EventType.WAVE_START)
    waves.set_wave_number(3)
    assert waves.start_wave()
    assert started == [{"wave_number": 3, "enemy_count": 12}]

    waves.update(100.0)
    kinds = [enemy["kind"] for enemy in spawned]
    assert len(kinds) == 12
    assert kinds[-1] == BOSS_ENEMY
    assert BOSS_ENEMY not in kinds[:-1]
    assert set(kinds[:-1]) <= {1, 2}


def test_first_spawn_waits_one_period():
    waves, bus = _director()
    spawned = _record(bus, EventType.ENEMY_SPAWN)
    waves.start_wave()
    waves.update(0.5)
    assert spawned == []
    waves.update(0.6)
    assert len(spawned) == 1
    assert spawned[0]["enemy_id"] == "enemy_1"


def test_wave_rejections():
    waves, bus = _director()
    messages = _record(bus, EventType.STATUS_MESSAGE)
    waves.start_wave()
    assert waves.start_wave() is False
    assert messages[-1] == "A wave is already in progress!"

    empty, bus = _director(path=())
    messages = _record(bus, EventType.STATUS_MESSAGE)
    assert empty.start_wave() is False
    assert messages == ["Cannot start wave: No path defined!"]


def test_wave_completes_and_path_regenerates():
    waves, bus = _director()
    leaked = _record(bus, EventType.ENEMY_REACHED_END)
    completed = _record(bus, EventType.WAVE_COMPLETE)
    paths = _record(bus, EventType.PATH_UPDATED)

    waves.start_wave()
    waves.update(10.0)
    assert len(waves.get_enemies()) == 6
    waves.update(10.0)
    assert len(leaked) == 6
    assert completed == [{"wave_number": 1}]
    assert waves.get_wave_number() == 2
    assert not waves.is_wave_in_progress()

    waves.update(0.4)
    assert paths == []
    waves.update(0.2)
    assert len(paths) == 1
    assert waves.walker.get_path() == waves.board.path


def test_starting_during_pending_regeneration_regenerates_first():
    waves, bus = _director()
    paths = _record(bus, EventType.PATH_UPDATED)
    waves.start_wave()
    waves.update(10.0)
    waves.update(10.0)
    assert waves.start_wave()
    assert len(paths) == 1
    waves.update(1.0)
    assert len(paths) == 1


def test_damage_and_defeat():
    waves, bus = _director()
    damaged = _record(bus, EventType.ENEMY_DAMAGE)
    defeated = _record(bus, EventType.ENEMY_DEFEATED)
    waves.start_wave()
    enemy = waves.create_enemy(1)

    assert waves.damage_enemy(enemy.enemy_id, 30) is False
    assert damaged[0]["damage"] == 30
    assert waves.damage_enemy(enemy.enemy_id, 40, reward=26, points=10) is True
    assert defeated[0]["reward"] == 26
    assert defeated[0]["points"] == 10
    assert waves.get_enemies() == []
    assert waves.damage_enemy(enemy.enemy_id, 40) is False


def test_unknown_enemy_kind_is_not_created():
    waves, _ = _director()
    assert waves.create_enemy("ghost") is None
