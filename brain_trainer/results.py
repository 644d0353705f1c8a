from __future__ import annotations

from dataclasses import dataclass

from .symbol_match import Outcome, RoundEvent, SymbolMatchGame


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """End-of-session summary + event log for a Symbol Match session.

    Response times only count correct rounds, matching the running average the
    game keeps in GameStats.
    """

    seed: int | None
    rounds: int
    correct: int
    incorrect: int
    timeouts: int
    accuracy: float
    final_level: int
    final_score: int
    mean_rt_ms: float | None
    median_rt_ms: float | None

    events: list[RoundEvent]


def summarize_events(
    events: list[RoundEvent],
    *,
    seed: int | None = None,
    final_level: int = 1,
    final_score: int = 0,
) -> SessionSummary:
    correct_events = [e for e in events if e.outcome is Outcome.CORRECT]
    rts_ms = sorted(float(e.elapsed_ms) for e in correct_events)

    mean_ms: float | None
    median_ms: float | None
    if not rts_ms:
        mean_ms = None
        median_ms = None
    else:
        mean_ms = sum(rts_ms) / float(len(rts_ms))
        mid = len(rts_ms) // 2
        if len(rts_ms) % 2 == 1:
            median_ms = rts_ms[mid]
        else:
            median_ms = (rts_ms[mid - 1] + rts_ms[mid]) / 2.0

    rounds = len(events)
    correct = len(correct_events)
    return SessionSummary(
        seed=seed,
        rounds=rounds,
        correct=correct,
        incorrect=rounds - correct,
        timeouts=sum(1 for e in events if e.timed_out),
        accuracy=0.0 if rounds == 0 else correct / rounds,
        final_level=int(final_level),
        final_score=int(final_score),
        mean_rt_ms=mean_ms,
        median_rt_ms=median_ms,
        events=list(events),
    )


def session_summary_from_game(game: SymbolMatchGame) -> SessionSummary:
    """Build a SessionSummary from a (running or exited) SymbolMatchGame."""

    stats = game.stats
    return summarize_events(
        game.events(),
        seed=game.seed,
        final_level=stats.level,
        final_score=stats.score,
    )


def format_summary(summary: SessionSummary) -> list[str]:
    mean = "-" if summary.mean_rt_ms is None else f"{summary.mean_rt_ms:.0f} ms"
    median = "-" if summary.median_rt_ms is None else f"{summary.median_rt_ms:.0f} ms"
    return [
        f"Rounds:    {summary.rounds}",
        f"Correct:   {summary.correct}",
        f"Incorrect: {summary.incorrect} ({summary.timeouts} timed out)",
        f"Accuracy:  {summary.accuracy * 100.0:.1f}%",
        f"Level:     {summary.final_level}",
        f"Score:     {summary.final_score}",
        f"Mean RT:   {mean}",
        f"Median RT: {median}",
    ]
