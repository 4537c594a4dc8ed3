from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from app.schemas.game import TelegramValidateRequest
from app.telegram_auth import verify_init_data

router = APIRouter(prefix="/api/telegram", tags=["telegram"])


@router.post("/validate")
async def validate_init_data(payload: TelegramValidateRequest, request: Request) -> dict[str, object]:
    if not payload.initData:
        raise HTTPException(status_code=400, detail="initData required")

    validation = verify_init_data(payload.initData, request.app.state.config.telegram_bot_token)
    if not validation.ok:
        raise HTTPException(status_code=401, detail="invalid initData")
    return {"ok": True, "user": validation.user}
