from __future__ import annotations

from dataclasses import dataclass

import pytest

from brain_trainer.cognitive_core import SeededRng
from brain_trainer.symbol_match import (
    MSG_LEVEL_UP,
    MSG_TIMEOUT,
    Outcome,
    Phase,
    SymbolMatchConfig,
    SymbolMatchGame,
    SymbolMatchGenerator,
    build_symbol_match_game,
)


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


@dataclass
class ExitCounter:
    calls: int = 0

    def __call__(self) -> None:
        self.calls += 1


def _run_for(clock: FakeClock, game: SymbolMatchGame, seconds: float, *, step: float = 0.25) -> None:
    for _ in range(int(round(seconds / step))):
        clock.advance(step)
        game.update()


def _advance_until(clock: FakeClock, game: SymbolMatchGame, phase: Phase, *, limit_s: float = 60.0) -> None:
    waited = 0.0
    while game.phase is not phase:
        assert waited < limit_s, f"stuck in {game.phase}"
        clock.advance(0.25)
        game.update()
        waited += 0.25


def _wrong_index(game: SymbolMatchGame) -> int:
    r = game.current_round
    assert r is not None
    return next(i for i, c in enumerate(r.candidates) if not c.is_match)


def _play_correct_round(clock: FakeClock, game: SymbolMatchGame) -> None:
    assert game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    r = game.current_round
    assert r is not None
    assert game.select(r.match_index())
    _advance_until(clock, game, Phase.RESULT)
    assert game.continue_game()


def _make_game(seed: int = 5, **kwargs) -> tuple[FakeClock, ExitCounter, SymbolMatchGame]:
    clock = FakeClock()
    on_exit = ExitCounter()
    game = build_symbol_match_game(on_exit=on_exit, clock=clock, seed=seed, **kwargs)
    return clock, on_exit, game


def test_game_is_ready_in_preparation_without_timers() -> None:
    _, _, game = _make_game()

    assert game.phase is Phase.PREPARATION
    assert game.current_round is not None
    assert len(game.current_round.candidates) == 3
    assert game.pending_timers() == 0
    assert game.seconds_left() is None

    snap = game.snapshot()
    assert snap.title == "Symbol Match"
    assert snap.totem is None
    assert snap.stones is None
    assert "Press Enter to begin" in snap.prompt


def test_same_seed_gives_same_first_round() -> None:
    _, _, a = _make_game(seed=1234)
    _, _, b = _make_game(seed=1234)
    assert a.current_round == b.current_round
    assert a.seed == 1234


def test_level_one_memorization_lasts_eight_ticks_then_selection_twelve() -> None:
    clock, _, game = _make_game()

    assert game.begin_round()
    assert game.phase is Phase.MEMORIZATION
    assert game.seconds_left() == 8
    assert game.begin_round() is False

    snap = game.snapshot()
    assert snap.totem == game.current_round.totem
    assert snap.stones is None

    _run_for(clock, game, 7.0)
    assert game.phase is Phase.MEMORIZATION
    assert game.seconds_left() == 1

    _run_for(clock, game, 1.0)
    assert game.phase is Phase.SELECTION
    assert game.seconds_left() == 12
    assert game.pending_timers() == 1

    snap = game.snapshot()
    assert snap.totem is None
    assert snap.stones is not None
    assert len(snap.stones) == 3


def test_correct_pick_scores_then_result_after_feedback_delay() -> None:
    clock, _, game = _make_game()
    game.begin_round()
    _run_for(clock, game, 8.0)
    _run_for(clock, game, 1.0)

    match = game.current_round.match_index()
    assert game.select(match) is True

    # Resolved, but the result phase waits for the feedback delay.
    assert game.phase is Phase.SELECTION
    assert game.current_round.outcome is Outcome.CORRECT
    assert game.current_round.selected_index == match
    assert game.stats.score == 100
    assert game.stats.correct_count == 1
    assert game.stats.average_response_time_ms == pytest.approx(9000.0)
    assert game.snapshot().resolution is not None

    _run_for(clock, game, 0.25)
    assert game.phase is Phase.SELECTION
    _run_for(clock, game, 0.25)
    assert game.phase is Phase.RESULT
    assert game.seconds_left() is None
    assert game.pending_timers() == 0
    assert "Press Enter to next round." in game.snapshot().prompt


def test_second_pick_and_out_of_range_picks_are_ignored() -> None:
    clock, _, game = _make_game()
    assert game.select(0) is False

    game.begin_round()
    assert game.select(0) is False
    _advance_until(clock, game, Phase.SELECTION)

    assert game.select(-1) is False
    assert game.select(3) is False
    assert game.current_round.resolved is False

    wrong = _wrong_index(game)
    assert game.select(wrong) is True
    stats_after = game.stats
    assert game.select(game.current_round.match_index()) is False
    assert game.stats == stats_after
    assert len(game.events()) == 1
    assert game.current_round.outcome is Outcome.INCORRECT
    assert game.current_round.selected_index == wrong


def test_selection_timeout_counts_as_incorrect() -> None:
    clock, _, game = _make_game()
    _play_correct_round(clock, game)
    assert game.stats.score == 100

    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)

    _run_for(clock, game, 11.75)
    assert game.current_round.resolved is False
    assert game.seconds_left() == 1

    _run_for(clock, game, 0.25)
    assert game.current_round.resolved is True
    assert game.current_round.outcome is Outcome.INCORRECT
    assert game.current_round.selected_index is None
    assert game.last_resolution is not None
    assert game.last_resolution.timed_out is True
    assert game.last_resolution.message == MSG_TIMEOUT
    assert game.stats.score == 75
    assert game.stats.incorrect_count == 1
    assert game.select(0) is False

    _run_for(clock, game, 0.5)
    assert game.phase is Phase.RESULT
    assert "try again" in game.snapshot().prompt

    _run_for(clock, game, 30.0)
    assert game.phase is Phase.RESULT
    assert len(game.events()) == 2


def test_pick_arriving_after_the_deadline_counts_as_timeout() -> None:
    clock, _, game = _make_game()
    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)

    # Deadline passes between frames; the pick lands before the next update().
    clock.advance(12.1)
    assert game.select(game.current_round.match_index()) is False

    assert game.current_round.outcome is Outcome.INCORRECT
    assert game.current_round.selected_index is None
    assert game.last_resolution.timed_out is True
    assert game.stats.correct_count == 0
    assert len(game.events()) == 1


def test_pick_just_before_the_deadline_still_counts() -> None:
    clock, _, game = _make_game()
    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)

    clock.advance(11.9)
    assert game.select(game.current_round.match_index()) is True
    assert game.current_round.outcome is Outcome.CORRECT


def test_continue_applies_an_overdue_result_transition() -> None:
    clock, _, game = _make_game()
    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    game.select(game.current_round.match_index())

    clock.advance(0.6)
    assert game.continue_game() is True
    assert game.phase is Phase.PREPARATION


def test_continue_starts_fresh_round_in_preparation() -> None:
    clock, _, game = _make_game()
    first = game.current_round
    assert game.continue_game() is False

    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    game.select(first.match_index())
    _advance_until(clock, game, Phase.RESULT)

    assert game.continue_game() is True
    assert game.phase is Phase.PREPARATION
    assert game.current_round is not first
    assert game.current_round.resolved is False
    assert game.last_resolution is None
    assert game.pending_timers() == 0


def test_three_correct_rounds_level_up_and_grow_the_board() -> None:
    clock, _, game = _make_game(seed=77)
    _play_correct_round(clock, game)
    _play_correct_round(clock, game)

    assert game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    game.select(game.current_round.match_index())
    assert game.last_resolution.leveled_up is True
    assert game.last_resolution.message == MSG_LEVEL_UP
    assert game.stats.level == 2
    _advance_until(clock, game, Phase.RESULT)
    game.continue_game()

    assert len(game.current_round.candidates) == 4

    # Level 2 memorization is 7.6s, so selection still starts on the 8th tick.
    game.begin_round()
    _run_for(clock, game, 7.75)
    assert game.phase is Phase.MEMORIZATION
    _run_for(clock, game, 0.25)
    assert game.phase is Phase.SELECTION
    game.select(game.current_round.match_index())
    assert game.stats.score == 500

    levels = [e.level for e in game.events()]
    assert levels == [1, 1, 1, 2]
    assert [e.score_after for e in game.events()] == [100, 200, 300, 500]


def test_response_time_is_measured_from_memorization_start() -> None:
    clock, _, game = _make_game()
    clock.advance(42.0)
    game.update()

    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    _run_for(clock, game, 2.5)
    game.select(game.current_round.match_index())

    assert game.events()[0].elapsed_ms == pytest.approx(10500.0)
    assert game.stats.average_response_time_ms == pytest.approx(10500.0)


@pytest.mark.parametrize("leave_in", [Phase.PREPARATION, Phase.MEMORIZATION, Phase.SELECTION, Phase.RESULT])
def test_exit_from_any_phase_cancels_everything(leave_in: Phase) -> None:
    clock, on_exit, game = _make_game()
    if leave_in is not Phase.PREPARATION:
        game.begin_round()
        _run_for(clock, game, 2.0)
    if leave_in in (Phase.SELECTION, Phase.RESULT):
        _advance_until(clock, game, Phase.SELECTION)
    if leave_in is Phase.RESULT:
        game.select(game.current_round.match_index())
        _advance_until(clock, game, Phase.RESULT)
    assert game.phase is leave_in

    stats_before = game.stats
    events_before = game.events()
    game.exit()

    assert on_exit.calls == 1
    assert game.exited is True
    assert game.phase is Phase.PAUSED
    assert game.pending_timers() == 0
    assert game.current_round is None
    assert game.seconds_left() is None
    assert game.snapshot().prompt == "Session ended."

    _run_for(clock, game, 40.0)
    assert game.phase is Phase.PAUSED
    assert game.stats == stats_before
    assert game.events() == events_before

    game.exit()
    assert on_exit.calls == 1
    assert game.begin_round() is False
    assert game.select(0) is False
    assert game.continue_game() is False


def test_exit_during_feedback_delay_keeps_the_outcome_but_never_shows_result() -> None:
    clock, on_exit, game = _make_game()
    game.begin_round()
    _advance_until(clock, game, Phase.SELECTION)
    game.select(_wrong_index(game))
    game.exit()

    _run_for(clock, game, 2.0)
    assert game.phase is Phase.PAUSED
    assert game.stats.incorrect_count == 1
    assert on_exit.calls == 1


def test_large_clock_jump_does_not_double_resolve() -> None:
    clock, _, game = _make_game()
    game.begin_round()

    clock.advance(120.0)
    game.update()

    # The memorization tick hands over to selection; stale ticks from it are dropped.
    assert game.phase is Phase.SELECTION
    assert game.current_round.resolved is False
    assert game.pending_timers() == 1

    clock.advance(120.0)
    game.update()
    assert len(game.events()) == 1
    assert game.events()[0].timed_out is True


def test_invalid_config_is_rejected() -> None:
    gen = SymbolMatchGenerator(SeededRng(1))
    for cfg in (
        SymbolMatchConfig(feedback_delay_s=-1.0),
        SymbolMatchConfig(tick_s=0.0),
        SymbolMatchConfig(level_up_every=0),
        SymbolMatchConfig(wrong_answer_penalty=-5),
    ):
        with pytest.raises(ValueError):
            SymbolMatchGame(clock=FakeClock(), generator=gen, on_exit=lambda: None, config=cfg)
