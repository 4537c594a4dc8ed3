from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_runtime
from app.runtime import SessionRuntime
from app.runtime_utils import as_optional_int
from app.schemas.rooms import CreateRoomRequest, JoinTeamRequest, LeaveRoomRequest, UserPayload

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.post("")
async def create_room(
    payload: CreateRoomRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    room = await runtime.create_room(payload.host.to_user(), payload.settings.to_settings())
    return runtime.room_view(room)


@router.get("/{room_id}")
async def get_room(room_id: str, runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, Any]:
    room = await runtime.get_room(room_id)
    return runtime.room_view(room)


@router.patch("/{room_id}")
async def replace_room(
    room_id: str,
    document: dict[str, Any] = Body(...),
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    # Clients that never read a version get last-writer-wins, as before versions existed.
    expected_version = as_optional_int(document.get("version"))
    room = await runtime.replace_room(room_id, document, expected_version)
    return runtime.room_view(room)


@router.post("/{room_id}/join")
async def join_room(
    room_id: str,
    user: UserPayload,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.join_room(room_id, user.to_user())
    return runtime.room_view(update.room)


@router.post("/{room_id}/leave")
async def leave_room(
    room_id: str,
    payload: LeaveRoomRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.leave_room(room_id, payload.userId)
    return {
        "deleted": update.deleted,
        "room": runtime.room_view(update.room) if update.room else None,
    }


@router.post("/{room_id}/teams/join")
async def join_team(
    room_id: str,
    payload: JoinTeamRequest,
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    update = await runtime.join_team(room_id, payload.userId, payload.teamId)
    return {"applied": update.applied, "room": runtime.room_view(update.room)}
