from sudoku_td.common.types import EventType
from sudoku_td.engine.engine import GameEngine
from sudoku_td.engine.state import Puzzle
from sudoku_td.persist.base import Storage

PATH = [(4, col) for col in range(9)]
SOLUTION = [[(r * 3 + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


class DummyStorage(Storage):
    def __init__(self) -> None:
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


def _puzzle() -> Puzzle:
    return Puzzle(
        board=[[0] * 9 for _ in range(9)],
        solution=[list(row) for row in SOLUTION],
        fixed=[[False] * 9 for _ in range(9)],
        path=list(PATH),
    )


def _engine(**kwargs) -> GameEngine:
    kwargs.setdefault("currency", 1000)
    engine = GameEngine(seed=5, **kwargs)
    engine.new_game(_puzzle())
    return engine


def _fill_row(engine, row):
    for col in range(9):
        assert engine.place_tower(SOLUTION[row][col], row, col) is not None


def _run_wave(engine, max_ticks=50):
    wave = engine.waves.get_wave_number()
    for _ in range(max_ticks):
        engine.tick(10.0)
        if engine.over or engine.waves.get_wave_number() > wave:
            return


def test_completed_row_pauses_until_bonus_chosen():
    engine = _engine()
    _fill_row(engine, 0)
    assert engine.paused
    assert engine.tick(0.1) is False
    assert engine.resume() is False
    assert engine.last_status == "Choose a bonus before resuming."

    assert engine.choose_bonus("row", 0, "POINTS")
    assert not engine.paused
    assert engine.render_state()["bonuses"]["rows"] == {"row-0": "POINTS"}


def test_manual_pause_survives_bonus_choice():
    engine = _engine()
    assert engine.pause()
    _fill_row(engine, 0)
    engine.choose_bonus("row", 0, "DAMAGE")
    assert engine.paused
    assert engine.resume()


def test_removing_tower_withdraws_offer_and_resumes():
    engine = _engine()
    _fill_row(engine, 0)
    tower = engine.towers.get_tower_at(0, 4)
    assert engine.remove_tower(tower.tower_id)
    assert not engine.bonuses.has_pending()
    assert not engine.paused


def test_wave_completion_sweeps_incorrect_towers():
    engine = _engine(lives=10)
    tower = engine.place_tower(5, 0, 6)
    assert not tower.correct
    assert engine.start_wave()
    _run_wave(engine)

    assert engine.waves.get_wave_number() == 2
    assert engine.towers.get_towers() == []
    assert engine.board.value_at(0, 6) == 0
    assert engine.economy.lives == 4
    assert engine.economy.currency == 1000 - 35 + 17 + 20
    assert engine.economy.score == 40


def test_game_over_stops_ticks_and_saves_high_score():
    storage = DummyStorage()
    engine = _engine(storage=storage, lives=1)
    engine.economy.add_score(75)
    engine.start_wave()
    _run_wave(engine)

    assert engine.over
    assert engine.tick(0.1) is False
    assert engine.start_wave() is False
    assert engine.save_system.high_score() == 75
    assert engine.render_state()["high_score"] == 75
    assert storage.data["sudoku_td_last_wave"] == "1"


def test_reset_rebuilds_everything():
    engine = _engine(event_backlog=200)
    engine.place_tower(1, 0, 0)
    engine.pause()
    engine.drain_events()

    engine.reset(_puzzle())
    kinds = [event.kind for event in engine.drain_events()]
    assert EventType.GAME_RESET in kinds
    assert engine.last_status == "New game started!"
    assert engine.towers.get_towers() == []
    assert engine.economy.currency == 1000
    assert engine.board.value_at(0, 0) == 0
    assert not engine.paused

    # Handlers from before the reset must not fire twice
    engine.place_tower(1, 0, 0)
    assert engine.economy.currency == 970


def test_difficulty_applies_on_reset():
    engine = _engine()
    assert engine.set_difficulty("hard")
    assert engine.set_difficulty("brutal") is False
    engine.reset()
    fixed = sum(cell for row in engine.board.fixed for cell in row)
    assert engine.board.difficulty == "hard"
    assert fixed == 25


def test_render_state_shape():
    engine = _engine()
    engine.place_tower(1, 0, 0)
    state = engine.render_state()
    assert state["board"][0][0] == 1
    assert state["path"][0] == [4, 0]
    assert state["player"] == {"lives": 3, "score": 0, "currency": 970}
    assert state["wave"] == {"number": 1, "in_progress": False, "enemies_remaining": 0}
    assert state["towers"][0]["tower_id"] == "tower_1"
    assert state["paused"] is False


def test_simultaneous_breaches_end_the_game_once():
    engine = _engine(lives=1)
    over = []
    engine.bus.subscribe(EventType.GAME_OVER, over.append)
    engine.start_wave()
    _run_wave(engine)

    assert engine.over
    assert engine.economy.lives == 0
    assert len(over) == 1


def test_bad_bonus_index_is_rejected_not_raised():
    engine = _engine()
    _fill_row(engine, 0)
    assert engine.choose_bonus("box", 3, "DAMAGE") is False
    assert engine.choose_bonus("row", [1, 2], "DAMAGE") is False
    assert engine.paused
