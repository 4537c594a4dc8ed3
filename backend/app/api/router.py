from __future__ import annotations

from fastapi import APIRouter

from app.api.guess import router as guess_router
from app.api.rooms import router as rooms_router
from app.api.system import router as system_router
from app.api.teams import router as teams_router
from app.api.telegram import router as telegram_router


def build_api_router(include_telegram: bool) -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(system_router)
    api_router.include_router(rooms_router)
    api_router.include_router(guess_router)
    api_router.include_router(teams_router)
    if include_telegram:
        api_router.include_router(telegram_router)
    return api_router
