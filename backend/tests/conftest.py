from __future__ import annotations

import random

import pytest
from fastapi.testclient import TestClient

from app.application import create_app
from app.card_catalog import CardCatalog
from app.config import Settings
from app.room_storage import MemoryRoomStore
from app.runtime import SessionRuntime
from app.runtime_lifecycle import create_room
from app.runtime_types import (
    AuthUser,
    Card,
    GameSubModes,
    GuessRoom,
    GuessSettings,
    TeamsRoom,
    TeamsSettings,
)

TOOLS_WORDS = ["скальпель", "Стетоскоп", "Шприц", "Тонометр", "Пинцет", "Зажим"]
ANATOMY_WORDS = ["Сердце", "Печень", "Почка", "Лёгкое", "Желудок", "Селезёнка"]

HOST = AuthUser(id="host-1", name="Анна")
GUEST = AuthUser(id="guest-2", name="Борис")
THIRD = AuthUser(id="guest-3", name="Вера")


def build_cards() -> list[Card]:
    cards = [
        Card(id=f"tools-{index}", word=word, category="tools", forbidden=("врач",), fact=f"факт {word}")
        for index, word in enumerate(TOOLS_WORDS)
    ]
    cards[0] = Card(id="tools-scalpel", word="скальпель", category="tools", forbidden=("нож",), fact="Лезвие.")
    cards.extend(
        Card(id=f"anatomy-{index}", word=word, category="anatomy")
        for index, word in enumerate(ANATOMY_WORDS)
    )
    return cards


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def catalog() -> CardCatalog:
    return CardCatalog(build_cards(), rng=random.Random(7))


@pytest.fixture
def runtime(catalog: CardCatalog) -> SessionRuntime:
    return SessionRuntime(store=MemoryRoomStore(), catalog=catalog)


@pytest.fixture
def guess_room() -> GuessRoom:
    room = create_room(
        HOST,
        GuessSettings(categories=("tools",), round_duration_sec=30, total_questions=5),
    )
    assert isinstance(room, GuessRoom)
    return room


@pytest.fixture
def teams_room() -> TeamsRoom:
    room = create_room(
        HOST,
        TeamsSettings(
            categories=("anatomy", "tools"),
            round_duration_sec=60,
            points_to_win=10,
            team_names=("Красные", "Синие"),
            game_sub_modes=GameSubModes(),
        ),
    )
    assert isinstance(room, TeamsRoom)
    return room


@pytest.fixture
def client(runtime: SessionRuntime, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
    monkeypatch.setenv("ROOM_STORAGE", "memory")
    app = create_app(runtime=runtime, config=Settings())
    with TestClient(app) as test_client:
        yield test_client
