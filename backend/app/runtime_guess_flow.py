from __future__ import annotations

import logging
from typing import Any

from .card_catalog import CardCatalog
from .runtime_constants import CORRECT_ANSWER_POINTS, HINT_PENALTY_POINTS
from .runtime_errors import InsufficientCards
from .runtime_types import GuessLastResult, GuessResult, GuessRoom
from .runtime_utils import clamp_score, normalize_answer, now_ms, score_value

logger = logging.getLogger(__name__)


def start_guess_countdown(room: GuessRoom) -> None:
    if room.status != "lobby":
        return
    room.guess_countdown_started_at = now_ms()


def _clear_result(room: GuessRoom) -> None:
    room.guess_showing_result = False
    room.guess_last_result = None
    room.guess_result_shown_at = None


def start_guess_session(room: GuessRoom, catalog: CardCatalog) -> None:
    if room.status != "lobby":
        return

    total = room.settings.total_questions
    source_cards = catalog.cards_by_categories(room.settings.categories)
    if len(source_cards) < total:
        raise InsufficientCards(total, len(source_cards))

    drawn = catalog.pick_random_distinct(source_cards, total)
    for player in room.players:
        player.score = 0

    room.used_card_ids = [card.id for card in drawn]
    room.status = "inGame"
    room.current_question_index = 0
    room.guess_started_at = now_ms()
    room.guess_per_question_sec = room.settings.round_duration_sec
    room.guess_countdown_started_at = None
    _clear_result(room)
    logger.info("guess session started room=%s questions=%s", room.id, len(drawn))


def submit_guess(
    room: GuessRoom,
    catalog: CardCatalog,
    user_id: str,
    answer: str,
    used_hint: bool = False,
) -> GuessResult | None:
    if room.status != "inGame" or room.guess_showing_result:
        return None
    if not 0 <= room.current_question_index < len(room.used_card_ids):
        return None

    card = catalog.card_by_id(room.used_card_ids[room.current_question_index])
    player = room.find_player(user_id)
    if card is None or player is None:
        return None

    correct = normalize_answer(answer) == normalize_answer(card.word)
    delta = (CORRECT_ANSWER_POINTS if correct else 0.0) - (HINT_PENALTY_POINTS if used_hint else 0.0)
    player.score = clamp_score(player.score + delta)

    room.guess_showing_result = True
    room.guess_last_result = GuessLastResult(
        correct=correct,
        card_id=card.id,
        answered_by_name=player.name,
    )
    room.guess_result_shown_at = now_ms()
    return GuessResult(correct=correct, card=card)


def _question_count(room: GuessRoom) -> int:
    if room.used_card_ids:
        return min(room.settings.total_questions, len(room.used_card_ids))
    return room.settings.total_questions


def advance_guess_question(room: GuessRoom) -> None:
    if room.status != "inGame" or not room.guess_showing_result:
        return

    next_index = room.current_question_index + 1
    _clear_result(room)
    if next_index >= _question_count(room):
        room.status = "finished"
        room.guess_started_at = None
        logger.info("guess session finished room=%s", room.id)
        return

    room.current_question_index = next_index
    room.guess_started_at = now_ms()


def guess_standings(room: GuessRoom) -> list[dict[str, Any]]:
    ordered = sorted(room.players, key=lambda player: player.score, reverse=True)
    standings: list[dict[str, Any]] = []
    place = 0
    previous_score: float | None = None
    for position, player in enumerate(ordered, start=1):
        if player.score != previous_score:
            place = position
            previous_score = player.score
        standings.append(
            {
                "place": place,
                "playerId": player.id,
                "name": player.name,
                "score": score_value(player.score),
            }
        )
    return standings
