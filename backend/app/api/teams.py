from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.deps import get_runtime
from app.runtime import SessionRuntime
from app.schemas.game import ConfirmRoundRequest, NextRoundRequest, TeamsCardActionRequest

router = APIRouter(prefix="/api/rooms/{room_id}/teams", tags=["teams"])


@router.post("/start")
async def start_game(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    update = await runtime.start_teams_game(room_id)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}


@router.post("/card")
async def card_action(
    room_id: str,
    payload: TeamsCardActionRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.process_teams_card_action(room_id, payload.action, payload.endRound)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}


@router.post("/confirm")
async def confirm_round(
    room_id: str,
    payload: ConfirmRoundRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.apply_round_word_confirmation(room_id, payload.counted)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}


@router.post("/next-round")
async def next_round(
    room_id: str,
    payload: NextRoundRequest | None = None,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    expected_round = payload.expectedRound if payload else None
    update = await runtime.start_teams_round(room_id, expected_round)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}


@router.post("/finish")
async def finish_game(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    update = await runtime.finish_teams_game(room_id)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}
