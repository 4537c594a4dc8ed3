from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_runtime
from app.runtime import SessionRuntime
from app.runtime_constants import CATEGORIES, DEFAULT_TOTAL_QUESTIONS
from app.runtime_types import CategoryId

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health(runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, object]:
    storage_ok = await runtime.store.ping()
    return {
        "ok": storage_ok,
        "storage": runtime.store.name,
        "storageStatus": "up" if storage_ok else "down",
        "cards": len(runtime.catalog),
    }


@router.get("/api/categories")
async def categories(runtime: SessionRuntime = Depends(get_runtime)) -> dict[str, object]:
    return {"categories": runtime.categories_view()}


@router.get("/api/cards/availability")
async def cards_availability(
    categories: str = Query(default="", max_length=200),
    count: int = Query(default=DEFAULT_TOTAL_QUESTIONS, ge=1, le=1000),
    runtime: SessionRuntime = Depends(get_runtime),
) -> dict[str, object]:
    selected: list[CategoryId] = [
        part  # type: ignore[misc]
        for part in dict.fromkeys(item.strip() for item in categories.split(","))
        if part in CATEGORIES
    ]
    return runtime.card_availability(selected, count)
