from sudoku_td.common.types import EventType
from sudoku_td.engine.economy import Economy, calculate_wave_bonus
from sudoku_td.engine.events import EventBus


def test_spend_never_goes_negative():
    economy = Economy(EventBus(), lives=3, currency=50)
    assert economy.spend_currency(60) is False
    assert economy.currency == 50
    assert economy.spend_currency(50)
    assert economy.currency == 0


def test_losing_last_life_ends_game():
    bus = EventBus()
    over = []
    bus.subscribe(EventType.GAME_OVER, over.append)
    economy = Economy(bus, lives=2, currency=0, score=40)
    assert economy.lose_life()
    assert over == []
    assert economy.lose_life() is False
    assert over == [{"score": 40}]


def test_defeat_credits_reward_and_points():
    bus = EventBus()
    updates = []
    bus.subscribe(EventType.PLAYER_UPDATE, updates.append)
    economy = Economy(bus, lives=3, currency=100)
    economy.on_enemy_defeated({"enemy": {}, "reward": 26, "points": 10})
    assert economy.currency == 126
    assert economy.score == 10
    assert updates[-1] == {"lives": 3, "score": 10, "currency": 126}


def test_wave_bonus_scales_with_wave():
    assert calculate_wave_bonus(1) == (20, 40)
    assert calculate_wave_bonus(2) == (44, 88)


def test_apply_wave_bonus_announces_status():
    bus = EventBus()
    messages = []
    bus.subscribe(EventType.STATUS_MESSAGE, messages.append)
    economy = Economy(bus, lives=3, currency=0)
    economy.apply_wave_bonus(1)
    assert (economy.currency, economy.score) == (20, 40)
    assert messages == ["Wave 1 completed! Bonus: 20 currency, 40 points"]


def test_lives_stop_at_zero_and_game_over_fires_once():
    bus = EventBus()
    over = []
    bus.subscribe(EventType.GAME_OVER, over.append)
    economy = Economy(bus, lives=1, currency=0)
    assert economy.lose_life() is False
    assert economy.lose_life() is False
    assert economy.lose_life() is False
    assert economy.lives == 0
    assert over == [{"score": 0}]
