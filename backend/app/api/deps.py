from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from app.runtime import SessionRuntime
from app.runtime_errors import RoomError


def get_runtime(request: Request) -> SessionRuntime:
    return request.app.state.runtime


async def room_error_handler(_request: Request, exc: RoomError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )
