from sudoku_td.common.types import BOSS_ENEMY
from sudoku_td.engine.enemies import EnemyRegistry


def test_kinds_unlock_every_other_wave():
    registry = EnemyRegistry()
    assert list(registry.get_available_types_for_wave(1)) == [1]
    assert list(registry.get_available_types_for_wave(4)) == [1, 2]
    assert list(registry.get_available_types_for_wave(20)) == list(range(1, 10))


def test_boss_joins_every_third_wave():
    registry = EnemyRegistry()
    assert BOSS_ENEMY in registry.get_available_types_for_wave(3)
    assert BOSS_ENEMY in registry.get_available_types_for_wave(21)
    assert BOSS_ENEMY not in registry.get_available_types_for_wave(5)


def test_wave_scaling():
    registry = EnemyRegistry()
    stats = registry.scaled(1, 2)
    assert stats.health == 72
    assert stats.max_health == 72
    assert stats.reward == 16
    assert stats.points == 5
    assert stats.speed == 0.9
    assert registry.scaled(1, 1).health == 60


def test_unknown_kind():
    registry = EnemyRegistry()
    assert registry.get_enemy_type(12) is None
    assert registry.scaled("ghost", 2) is None
    assert len(registry.get_all_enemy_types()) == 10
