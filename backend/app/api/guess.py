from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.deps import get_runtime
from app.runtime import RoomUpdate, SessionRuntime
from app.schemas.game import SubmitGuessRequest

router = APIRouter(prefix="/api/rooms/{room_id}/guess", tags=["guess"])


def _update_payload(runtime: SessionRuntime, update: RoomUpdate) -> dict[str, Any]:
    return {"applied": update.applied, "room": runtime.room_view(update.room)}


@router.post("/countdown")
async def start_countdown(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    return _update_payload(runtime, await runtime.start_guess_countdown(room_id))


@router.post("/start")
async def start_session(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    return _update_payload(runtime, await runtime.start_guess_session(room_id))


@router.post("/submit")
async def submit_guess(
    room_id: str,
    payload: SubmitGuessRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.submit_guess(room_id, payload.userId, payload.answer, payload.usedHint)
    result = None
    if update.result is not None:
        card = update.result.card
        result = {
            "correct": update.result.correct,
            "card": {
                "id": card.id,
                "word": card.word,
                "category": card.category,
                "forbidden": list(card.forbidden),
                "fact": card.fact,
            },
        }
    return {"result": result, "room": runtime.room_view(update.room)}


@router.post("/advance")
async def advance_question(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    return _update_payload(runtime, await runtime.advance_guess_question(room_id))
