from __future__ import annotations

import math
import random
import time
from typing import Any, Iterable

from .runtime_constants import CATEGORY_IDS, ROOM_ID_MAX, ROOM_ID_MIN, ROOM_ID_PREFIX
from .runtime_types import CategoryId


def now_ms() -> int:
    return int(time.time() * 1000)


def random_room_code(rng: random.Random | None = None) -> str:
    source = rng or random
    return f"{ROOM_ID_PREFIX}{source.randint(ROOM_ID_MIN, ROOM_ID_MAX)}"


def sanitize_room_id(raw: str | None) -> str:
    value = (raw or "").strip().upper()
    return "".join(ch for ch in value if ch.isalnum())[:8]


def normalize_answer(value: str | None) -> str:
    return str(value or "").strip().casefold()


def resolve_categories(categories: Iterable[CategoryId]) -> tuple[CategoryId, ...]:
    selected = tuple(dict.fromkeys(categories))
    return selected or CATEGORY_IDS


def clamp_score(value: float) -> float:
    return max(0.0, float(value))


def score_value(value: float) -> int | float:
    number = float(value or 0)
    if number.is_integer():
        return int(number)
    return number


def as_optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def as_score(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return clamp_score(number) if math.isfinite(number) else 0.0
