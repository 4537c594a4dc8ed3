from __future__ import annotations

from typing import Any

from .runtime_constants import (
    FAST_POLL_INTERVAL_MS,
    GUESS_COUNTDOWN_SEC,
    GUESS_RESULT_SEC,
    IDLE_POLL_INTERVAL_MS,
)
from .runtime_types import GuessRoom, Room


def remaining_seconds(started_at: int | None, duration_sec: int, now: int) -> int | None:
    """Whole seconds left on a timer that started at `started_at` (epoch ms).

    Clients compute the same value from the shared timestamp, so it never goes
    below zero even when their clock runs ahead.
    """
    if started_at is None:
        return None
    elapsed_sec = max(0, now - started_at) // 1000
    return max(0, duration_sec - elapsed_sec)


def room_timers(room: Room, now: int) -> dict[str, int]:
    timers: dict[str, int] = {}

    if isinstance(room, GuessRoom):
        if room.status == "lobby":
            countdown = remaining_seconds(room.guess_countdown_started_at, GUESS_COUNTDOWN_SEC, now)
            if countdown is not None:
                timers["countdown"] = countdown
            return timers
        if room.status != "inGame":
            return timers
        if room.guess_showing_result:
            result = remaining_seconds(room.guess_result_shown_at, GUESS_RESULT_SEC, now)
            if result is not None:
                timers["result"] = result
            return timers
        question = remaining_seconds(
            room.guess_started_at,
            room.guess_per_question_sec or room.settings.round_duration_sec,
            now,
        )
        if question is not None:
            timers["question"] = question
        return timers

    state = room.teams_game_state
    if room.status == "inGame" and state and state.phase == "round":
        round_left = remaining_seconds(state.round_started_at, room.settings.round_duration_sec, now)
        if round_left is not None:
            timers["round"] = round_left
    return timers


def is_timer_expired(started_at: int | None, duration_sec: int, now: int) -> bool:
    left = remaining_seconds(started_at, duration_sec, now)
    return left is not None and left <= 0


def suggested_poll_interval_ms(room: Room) -> int:
    if isinstance(room, GuessRoom) and room.status == "inGame":
        return FAST_POLL_INTERVAL_MS
    return IDLE_POLL_INTERVAL_MS


def build_timer_view(room: Room, now: int) -> dict[str, Any]:
    return {
        "serverNow": now,
        "timers": room_timers(room, now),
        "pollIntervalMs": suggested_poll_interval_ms(room),
    }
