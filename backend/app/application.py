from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import room_error_handler
from app.api.router import build_api_router
from app.config import Settings, settings
from app.runtime import SessionRuntime, build_runtime
from app.runtime_errors import RoomError


def create_app(
    runtime: SessionRuntime | None = None,
    config: Settings | None = None,
) -> FastAPI:
    config = config or settings
    app = FastAPI(title="MedAlias Backend", version="1.0.0")
    app.state.config = config
    app.state.runtime = runtime or build_runtime(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RoomError, room_error_handler)
    app.include_router(build_api_router(include_telegram=bool(config.telegram_bot_token)))

    @app.on_event("startup")
    async def on_startup() -> None:
        await app.state.runtime.open()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.runtime.shutdown()

    return app
