"""Symbol Match: memorize a three-symbol totem, then pick the matching stone.

Rounds come from ``SymbolMatchGenerator``. ``SymbolMatchGame`` walks each round
through preparation -> memorization -> selection -> result using a
``Scheduler`` pumped by ``update()``, and scores it with ``score_round()``.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum
from functools import partial

from .clock import Clock, RealClock, Scheduler, TimerHandle
from .cognitive_core import RandomSource, SeededRng, ceil_seconds, clamp_int, new_seed

logger = logging.getLogger(__name__)


class Symbol(StrEnum):
    RED_TRIANGLE_UP = "red_triangle_up"
    RED_TRIANGLE_DOWN = "red_triangle_down"
    BLUE_DIAMOND = "blue_diamond"
    ORANGE_DIAMOND = "orange_diamond"
    STAR = "star"
    GLOWING_STAR = "glowing_star"
    DOTTED_DIAMOND = "dotted_diamond"
    SMALL_ORANGE_DIAMOND = "small_orange_diamond"
    SMALL_BLUE_DIAMOND = "small_blue_diamond"
    SOLID_DIAMOND = "solid_diamond"
    HOLLOW_DIAMOND = "hollow_diamond"
    SOLID_CIRCLE = "solid_circle"
    HOLLOW_CIRCLE = "hollow_circle"
    SOLID_SQUARE = "solid_square"
    HOLLOW_SQUARE = "hollow_square"
    SOLID_TRIANGLE_UP = "solid_triangle_up"
    SOLID_TRIANGLE_DOWN = "solid_triangle_down"
    SOLID_TRIANGLE_LEFT = "solid_triangle_left"
    SOLID_TRIANGLE_RIGHT = "solid_triangle_right"
    BLUE_CIRCLE = "blue_circle"
    YELLOW_CIRCLE = "yellow_circle"
    ORANGE_CIRCLE = "orange_circle"
    RED_CIRCLE = "red_circle"
    GREEN_CIRCLE = "green_circle"


ALPHABET: tuple[Symbol, ...] = tuple(Symbol)
TOTEM_SIZE = 3
MIN_CANDIDATES = 3
MAX_CANDIDATES = 8

MSG_CORRECT = "Excellent! Those are the right symbols."
MSG_LEVEL_UP = "Excellent! You moved up a level."
MSG_INCORRECT = "Wrong symbols. Try again!"
MSG_TIMEOUT = "Time expired!"


class Phase(StrEnum):
    PREPARATION = "preparation"
    MEMORIZATION = "memorization"
    SELECTION = "selection"
    RESULT = "result"
    PAUSED = "paused"


class Outcome(StrEnum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class RoundInvariantError(RuntimeError):
    """A generated round does not have exactly one stone matching its totem."""


@dataclass(frozen=True, slots=True)
class Candidate:
    symbols: tuple[Symbol, ...]
    is_match: bool


@dataclass(frozen=True, slots=True)
class RoundState:
    totem: tuple[Symbol, ...]
    candidates: tuple[Candidate, ...]
    selected_index: int | None = None
    outcome: Outcome | None = None

    @property
    def resolved(self) -> bool:
        return self.outcome is not None

    def match_index(self) -> int:
        return next(i for i, c in enumerate(self.candidates) if c.is_match)


@dataclass(frozen=True, slots=True)
class GameStats:
    level: int = 1
    score: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    average_response_time_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class RoundResolution:
    outcome: Outcome
    timed_out: bool
    leveled_up: bool
    points_delta: int
    message: str
    elapsed_ms: float


@dataclass(frozen=True, slots=True)
class RoundEvent:
    index: int
    level: int
    candidate_count: int
    selected_index: int | None
    outcome: Outcome
    timed_out: bool
    elapsed_ms: float
    score_after: int


@dataclass(frozen=True, slots=True)
class SymbolMatchConfig:
    feedback_delay_s: float = 0.5
    tick_s: float = 1.0
    points_per_level: int = 100
    wrong_answer_penalty: int = 25
    level_up_every: int = 3


@dataclass(frozen=True, slots=True)
class SymbolMatchSnapshot:
    """View model for the UI (pure data). Stones carry no match flag."""

    title: str
    phase: Phase
    prompt: str
    stats: GameStats
    seconds_left: int | None
    totem: tuple[Symbol, ...] | None
    stones: tuple[tuple[Symbol, ...], ...] | None
    selected_index: int | None
    resolution: RoundResolution | None


def candidate_count(level: int) -> int:
    return clamp_int(MIN_CANDIDATES + int(level) // 2, MIN_CANDIDATES, MAX_CANDIDATES)


def memorization_time_s(level: int) -> float:
    # Whole milliseconds keep the floor exact: level 25 gives 3.0, not 2.9999...
    return max(3000, 8000 - 200 * int(level)) / 1000.0


def selection_time_s(level: int) -> float:
    return max(5000, 12000 - 300 * int(level)) / 1000.0


def validate_round(state: RoundState) -> None:
    totem = Counter(state.totem)
    if len(state.totem) != TOTEM_SIZE or len(totem) != TOTEM_SIZE:
        raise RoundInvariantError(f"totem must hold {TOTEM_SIZE} distinct symbols: {state.totem!r}")

    matches = sum(1 for c in state.candidates if c.is_match)
    if matches != 1:
        raise RoundInvariantError(f"expected exactly one matching stone, got {matches}")

    for idx, stone in enumerate(state.candidates):
        same_symbols = Counter(stone.symbols) == totem
        if stone.is_match and not same_symbols:
            raise RoundInvariantError(f"stone {idx} is flagged as the match but differs from the totem")
        if not stone.is_match and same_symbols:
            raise RoundInvariantError(f"stone {idx} duplicates the totem but is not flagged as the match")


class SymbolMatchGenerator:
    """Deterministic round generator.

    One stone is the totem in a new order. Every other stone swaps one, two or
    all three totem symbols for symbols outside the totem (40% / 30% / 30%),
    then is shuffled on its own. The full set of stones is shuffled last so the
    match position says nothing.
    """

    def __init__(self, rng: RandomSource, *, alphabet: Sequence[Symbol] = ALPHABET) -> None:
        if len(set(alphabet)) != len(alphabet):
            raise ValueError("alphabet symbols must be distinct")
        if len(alphabet) < TOTEM_SIZE:
            raise ValueError(f"alphabet needs at least {TOTEM_SIZE} symbols")
        self._rng = rng
        self._alphabet = tuple(alphabet)

    def next_round(self, *, level: int) -> RoundState:
        if level < 1:
            raise ValueError("level must be >= 1")

        totem = tuple(self._draw(TOTEM_SIZE, exclude=()))

        stones = [Candidate(symbols=tuple(self._rng.shuffled(totem)), is_match=True)]
        for _ in range(candidate_count(level) - 1):
            decoy = self._perturb(totem)
            stones.append(Candidate(symbols=tuple(self._rng.shuffled(decoy)), is_match=False))

        state = RoundState(totem=totem, candidates=tuple(self._rng.shuffled(stones)))
        validate_round(state)
        return state

    def _perturb(self, totem: tuple[Symbol, ...]) -> list[Symbol]:
        roll = self._rng.random()
        out = list(totem)
        if roll < 0.4:
            pos = self._rng.randrange(TOTEM_SIZE)
            out[pos] = self._draw(1, exclude=totem)[0]
        elif roll < 0.7:
            positions = self._rng.shuffled(range(TOTEM_SIZE))[:2]
            for pos, sym in zip(positions, self._draw(2, exclude=totem)):
                out[pos] = sym
        else:
            out = self._draw(TOTEM_SIZE, exclude=totem)
        return out

    def _draw(self, k: int, *, exclude: Sequence[Symbol]) -> list[Symbol]:
        pool = [s for s in self._alphabet if s not in exclude]
        if len(pool) < k:
            raise RoundInvariantError(f"need {k} symbols outside the totem, only {len(pool)} available")
        return self._rng.sample(pool, k)


def score_round(
    stats: GameStats,
    *,
    correct: bool,
    elapsed_ms: float,
    timed_out: bool = False,
    config: SymbolMatchConfig | None = None,
) -> tuple[GameStats, RoundResolution]:
    """Apply one round outcome. Old stats in, new stats and the resolution out."""

    cfg = config or SymbolMatchConfig()
    if correct and timed_out:
        raise ValueError("a timed-out round cannot be correct")
    elapsed_ms = max(0.0, float(elapsed_ms))

    if correct:
        points = cfg.points_per_level * stats.level
        correct_count = stats.correct_count + 1
        # Incremental mean over correct answers only, using the pre-increment count.
        average = (stats.average_response_time_ms * stats.correct_count + elapsed_ms) / correct_count
        leveled_up = correct_count % cfg.level_up_every == 0
        new_stats = replace(
            stats,
            level=stats.level + 1 if leveled_up else stats.level,
            score=stats.score + points,
            correct_count=correct_count,
            average_response_time_ms=average,
        )
        return new_stats, RoundResolution(
            outcome=Outcome.CORRECT,
            timed_out=False,
            leveled_up=leveled_up,
            points_delta=points,
            message=MSG_LEVEL_UP if leveled_up else MSG_CORRECT,
            elapsed_ms=elapsed_ms,
        )

    score = max(0, stats.score - cfg.wrong_answer_penalty)
    new_stats = replace(stats, score=score, incorrect_count=stats.incorrect_count + 1)
    return new_stats, RoundResolution(
        outcome=Outcome.INCORRECT,
        timed_out=timed_out,
        leveled_up=False,
        points_delta=score - stats.score,
        message=MSG_TIMEOUT if timed_out else MSG_INCORRECT,
        elapsed_ms=elapsed_ms,
    )


class SymbolMatchGame:
    """Phase state machine for one Symbol Match session.

    - Self-initializing: the first round is ready as soon as the game exists.
    - All timing goes through one Scheduler on the injected Clock; the host
      calls ``update()`` to let due timers fire.
    - At most one countdown handle is live. Every scheduled callback carries the
      epoch it was scheduled in and is dropped if the game moved on since.
    - ``exit()`` works from any phase and leaves nothing scheduled.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        generator: SymbolMatchGenerator,
        on_exit: Callable[[], None],
        config: SymbolMatchConfig | None = None,
        seed: int | None = None,
    ) -> None:
        cfg = config or SymbolMatchConfig()
        if cfg.feedback_delay_s < 0.0:
            raise ValueError("feedback_delay_s must be >= 0")
        if cfg.tick_s <= 0.0:
            raise ValueError("tick_s must be > 0")
        if cfg.points_per_level < 0:
            raise ValueError("points_per_level must be >= 0")
        if cfg.wrong_answer_penalty < 0:
            raise ValueError("wrong_answer_penalty must be >= 0")
        if cfg.level_up_every < 1:
            raise ValueError("level_up_every must be >= 1")

        self._title = "Symbol Match"
        self._clock = clock
        self._scheduler = Scheduler(clock)
        self._generator = generator
        self._on_exit = on_exit
        self._config = cfg
        self._seed = seed

        self._phase = Phase.PREPARATION
        self._stats = GameStats()
        self._round: RoundState | None = None
        self._resolution: RoundResolution | None = None
        self._events: list[RoundEvent] = []

        self._epoch = 0
        self._countdown: TimerHandle | None = None
        self._remaining_s = 0.0
        self._memorization_started_at_s: float | None = None
        self._exited = False

        self._new_round()

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def stats(self) -> GameStats:
        return self._stats

    @property
    def current_round(self) -> RoundState | None:
        return self._round

    @property
    def last_resolution(self) -> RoundResolution | None:
        return self._resolution

    @property
    def seed(self) -> int | None:
        return self._seed

    @property
    def exited(self) -> bool:
        return self._exited

    def events(self) -> list[RoundEvent]:
        return list(self._events)

    def pending_timers(self) -> int:
        return self._scheduler.pending_count()

    def seconds_left(self) -> int | None:
        if self._phase not in (Phase.MEMORIZATION, Phase.SELECTION):
            return None
        return ceil_seconds(self._remaining_s)

    def update(self) -> None:
        if self._exited:
            return
        self._scheduler.run_due()

    def begin_round(self) -> bool:
        self.update()
        if self._exited or self._phase is not Phase.PREPARATION:
            return False
        assert self._round is not None

        self._phase = Phase.MEMORIZATION
        self._epoch += 1
        self._memorization_started_at_s = self._clock.now()
        self._start_countdown(memorization_time_s(self._stats.level))
        logger.debug("memorization started (level=%d, %.1fs)", self._stats.level, self._remaining_s)
        return True

    def select(self, index: int) -> bool:
        """Pick a stone. Returns True only for the first valid pick of a round."""

        # A timeout that is already due wins over a late pick.
        self.update()
        if self._exited or self._phase is not Phase.SELECTION:
            return False
        assert self._round is not None
        if self._round.resolved:
            return False
        if not (0 <= int(index) < len(self._round.candidates)):
            return False
        self._resolve(int(index))
        return True

    def continue_game(self) -> bool:
        self.update()
        if self._exited or self._phase is not Phase.RESULT:
            return False
        self._new_round()
        return True

    def exit(self) -> None:
        if self._exited:
            return
        self._exited = True
        self._scheduler.cancel_all()
        self._countdown = None
        self._epoch += 1
        left_from = self._phase
        self._round = None
        self._memorization_started_at_s = None
        self._remaining_s = 0.0
        self._phase = Phase.PAUSED
        logger.info("Symbol Match exited from %s (score=%d)", left_from.value, self._stats.score)
        self._on_exit()

    def snapshot(self) -> SymbolMatchSnapshot:
        r = self._round
        totem = r.totem if r is not None and self._phase is Phase.MEMORIZATION else None
        stones = None
        if r is not None and self._phase is Phase.SELECTION:
            stones = tuple(c.symbols for c in r.candidates)
        return SymbolMatchSnapshot(
            title=self._title,
            phase=self._phase,
            prompt=self._prompt_text(),
            stats=self._stats,
            seconds_left=self.seconds_left(),
            totem=totem,
            stones=stones,
            selected_index=None if r is None else r.selected_index,
            resolution=self._resolution if r is not None and r.resolved else None,
        )

    def _new_round(self) -> None:
        self._epoch += 1
        self._round = self._generator.next_round(level=self._stats.level)
        self._resolution = None
        self._memorization_started_at_s = None
        self._remaining_s = 0.0
        self._phase = Phase.PREPARATION

    def _start_countdown(self, seconds: float) -> None:
        self._cancel_countdown()
        self._remaining_s = float(seconds)
        self._countdown = self._scheduler.call_every(self._config.tick_s, partial(self._on_tick, self._epoch))

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _on_tick(self, epoch: int) -> None:
        if epoch != self._epoch or self._phase not in (Phase.MEMORIZATION, Phase.SELECTION):
            return
        if self._round is None or self._round.resolved:
            return
        if self._remaining_s > 1.0:
            self._remaining_s -= 1.0
            return

        self._remaining_s = 0.0
        if self._phase is Phase.MEMORIZATION:
            self._enter_selection()
        else:
            self._resolve(None)

    def _enter_selection(self) -> None:
        self._cancel_countdown()
        self._phase = Phase.SELECTION
        self._epoch += 1
        self._start_countdown(selection_time_s(self._stats.level))
        logger.debug("selection started (%.1fs)", self._remaining_s)

    def _resolve(self, selected_index: int | None) -> None:
        self._cancel_countdown()
        assert self._round is not None
        assert self._memorization_started_at_s is not None

        timed_out = selected_index is None
        correct = selected_index is not None and self._round.candidates[selected_index].is_match
        elapsed_ms = (self._clock.now() - self._memorization_started_at_s) * 1000.0
        level_played = self._stats.level

        self._stats, resolution = score_round(
            self._stats,
            correct=correct,
            elapsed_ms=elapsed_ms,
            timed_out=timed_out,
            config=self._config,
        )
        self._round = replace(self._round, selected_index=selected_index, outcome=resolution.outcome)
        self._resolution = resolution
        self._events.append(
            RoundEvent(
                index=len(self._events),
                level=level_played,
                candidate_count=len(self._round.candidates),
                selected_index=selected_index,
                outcome=resolution.outcome,
                timed_out=timed_out,
                elapsed_ms=resolution.elapsed_ms,
                score_after=self._stats.score,
            )
        )
        logger.info(
            "round %d %s%s (level=%d, score=%d, %.0fms)",
            len(self._events),
            resolution.outcome.value,
            " (timeout)" if timed_out else "",
            self._stats.level,
            self._stats.score,
            resolution.elapsed_ms,
        )

        self._scheduler.call_later(self._config.feedback_delay_s, partial(self._enter_result, self._epoch))

    def _enter_result(self, epoch: int) -> None:
        if epoch != self._epoch or self._phase is not Phase.SELECTION:
            return
        self._phase = Phase.RESULT

    def _prompt_text(self) -> str:
        if self._phase is Phase.PREPARATION:
            return "\n".join(
                [
                    "Get ready!",
                    "",
                    "You will see a totem with 3 symbols. Memorize them.",
                    "Then find the stone that holds exactly the same symbols.",
                    "",
                    "Press Enter to begin the round.",
                ]
            )
        if self._phase is Phase.MEMORIZATION:
            return "Memorize these symbols"
        if self._phase is Phase.SELECTION:
            if self._resolution is not None:
                return self._resolution.message
            return "Find the stone with exactly the same symbols as the totem"
        if self._phase is Phase.RESULT:
            assert self._resolution is not None
            follow = "next round" if self._resolution.outcome is Outcome.CORRECT else "try again"
            return f"{self._resolution.message}\n\nPress Enter to {follow}."
        return "Session ended."


def build_symbol_match_game(
    *,
    on_exit: Callable[[], None],
    clock: Clock | None = None,
    seed: int | None = None,
    config: SymbolMatchConfig | None = None,
) -> SymbolMatchGame:
    resolved_seed = new_seed() if seed is None else int(seed)
    return SymbolMatchGame(
        clock=clock or RealClock(),
        generator=SymbolMatchGenerator(SeededRng(resolved_seed)),
        on_exit=on_exit,
        config=config,
        seed=resolved_seed,
    )
