from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from app.room_storage import FileRoomStore, MemoryRoomStore
from app.runtime import SessionRuntime
from app.runtime_errors import Conflict, InsufficientCards, RoomNotFound
from app.runtime_snapshot import parse_room, serialize_room
from app.runtime_types import AuthUser, GuessSettings, TeamsSettings
from conftest import GUEST, HOST

pytestmark = pytest.mark.anyio


async def _started_guess_room(runtime: SessionRuntime, players: int) -> str:
    room = await runtime.create_room(HOST, GuessSettings(categories=("tools",), total_questions=5))
    for index in range(players):
        await runtime.join_room(room.id, AuthUser(id=f"p{index}", name=f"Игрок {index}"))
    await runtime.start_guess_session(room.id)
    return room.id


async def test_create_and_fetch(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, TeamsSettings(team_names=("А", "Б")))
    fetched = await runtime.get_room(room.id.lower())
    assert fetched == room


async def test_unknown_room_raises(runtime: SessionRuntime) -> None:
    with pytest.raises(RoomNotFound):
        await runtime.get_room("MED000")
    with pytest.raises(RoomNotFound):
        await runtime.join_room("MED000", GUEST)


async def test_concurrent_creates_get_distinct_ids(runtime: SessionRuntime) -> None:
    rooms = await asyncio.gather(
        *(runtime.create_room(HOST, GuessSettings()) for _ in range(40))
    )
    assert len({room.id for room in rooms}) == 40
    assert len(await runtime.repository.list_rooms()) == 40


async def test_concurrent_joins_are_not_lost(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings())
    await asyncio.gather(
        *(runtime.join_room(room.id, AuthUser(id=f"p{index}", name="Игрок")) for index in range(20))
    )
    stored = await runtime.get_room(room.id)
    assert len(stored.players) == 21
    assert stored.version == 21


async def test_concurrent_commits_in_different_rooms(runtime: SessionRuntime) -> None:
    first = await runtime.create_room(HOST, GuessSettings())
    second = await runtime.create_room(HOST, GuessSettings())
    await asyncio.gather(
        *(
            runtime.join_room(room.id, AuthUser(id=f"p{index}", name="Игрок"))
            for index in range(10)
            for room in (first, second)
        )
    )
    assert len((await runtime.get_room(first.id)).players) == 11
    assert len((await runtime.get_room(second.id)).players) == 11


async def test_simultaneous_guesses_apply_exactly_one_delta(runtime: SessionRuntime) -> None:
    room_id = await _started_guess_room(runtime, players=5)
    room = await runtime.get_room(room_id)
    card = runtime.catalog.card_by_id(room.used_card_ids[0])
    assert card is not None

    updates = await asyncio.gather(
        *(runtime.submit_guess(room_id, f"p{index}", card.word) for index in range(5))
    )

    assert sum(1 for update in updates if update.result is not None) == 1
    stored = await runtime.get_room(room_id)
    assert sum(player.score for player in stored.players) == 1


async def test_noop_does_not_bump_version(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings())
    update = await runtime.advance_guess_question(room.id)
    assert update.applied is False
    again = await runtime.join_room(room.id, HOST)
    assert again.applied is False
    assert (await runtime.get_room(room.id)).version == 1


async def test_mode_mismatch_is_a_noop(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings())
    update = await runtime.start_teams_game(room.id)
    assert update.applied is False
    assert update.room is not None and update.room.status == "lobby"


async def test_failed_transform_is_not_committed(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings(categories=("anatomy",), total_questions=10))
    with pytest.raises(InsufficientCards):
        await runtime.start_guess_session(room.id)
    stored = await runtime.get_room(room.id)
    assert stored.status == "lobby"
    assert stored.version == 1


async def test_replace_checks_version(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings())
    document = serialize_room(room)
    await runtime.join_room(room.id, GUEST)

    with pytest.raises(Conflict) as exc_info:
        await runtime.replace_room(room.id, document, expected_version=1)
    assert exc_info.value.actual == 2

    fresh = serialize_room(await runtime.get_room(room.id))
    fresh["players"][1]["score"] = 4
    replaced = await runtime.replace_room(room.id, fresh, expected_version=2)
    assert replaced.version == 3
    assert replaced.players[1].score == 4


async def test_last_leave_deletes_room(runtime: SessionRuntime) -> None:
    room = await runtime.create_room(HOST, GuessSettings())
    await runtime.join_room(room.id, GUEST)

    update = await runtime.leave_room(room.id, HOST.id)
    assert update.room is not None and update.room.host_id == GUEST.id

    update = await runtime.leave_room(room.id, GUEST.id)
    assert update.deleted
    with pytest.raises(RoomNotFound):
        await runtime.get_room(room.id)


async def test_malformed_entry_is_skipped(catalog) -> None:
    store = MemoryRoomStore({"MED111": {"id": "MED111", "settings": {"mode": "guess"}}})
    runtime = SessionRuntime(store=store, catalog=catalog)
    assert await runtime.repository.list_rooms() == {}
    with pytest.raises(RoomNotFound):
        await runtime.get_room("MED111")


async def test_file_store_persists_rooms(tmp_path: Path, catalog) -> None:
    path = tmp_path / "nested" / "rooms.json"
    store = FileRoomStore(path)
    runtime = SessionRuntime(store=store, catalog=catalog)
    await runtime.open()

    room = await runtime.create_room(HOST, GuessSettings())
    await runtime.join_room(room.id, GUEST)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert list(payload) == [room.id]
    assert [player["id"] for player in payload[room.id]["players"]] == [HOST.id, GUEST.id]

    reopened = SessionRuntime(store=FileRoomStore(path), catalog=catalog)
    assert (await reopened.get_room(room.id)).version == 2


async def test_unparseable_file_loads_as_empty(tmp_path: Path, caplog) -> None:
    path = tmp_path / "rooms.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileRoomStore(path)

    assert await store.load() == {}
    assert "Failed to read rooms file" in caplog.text


async def test_overflowing_numbers_in_file_are_recovered(tmp_path: Path, catalog) -> None:
    path = tmp_path / "rooms.json"
    path.write_text(
        '{"MED222": {"id": "MED222", "hostId": "host-1", "settings": {"mode": "guess"},'
        ' "createdAt": 1e400, "version": 1e400,'
        ' "players": [{"id": "host-1", "name": "Анна", "score": 1e400}]}}',
        encoding="utf-8",
    )
    runtime = SessionRuntime(store=FileRoomStore(path), catalog=catalog)

    room = await runtime.get_room("MED222")

    assert room.created_at is None
    assert room.version == 1
    assert room.players[0].score == 0


async def test_unreadable_entry_is_skipped(runtime: SessionRuntime, monkeypatch, caplog) -> None:
    kept = await runtime.create_room(HOST, GuessSettings())
    broken = await runtime.create_room(HOST, GuessSettings())

    def parse(document):
        if document["id"] == broken.id:
            raise OverflowError("cannot convert float infinity to integer")
        return parse_room(document)

    monkeypatch.setattr("app.room_repository.parse_room", parse)

    assert list(await runtime.repository.list_rooms()) == [kept.id]
    assert f"Skipping unreadable room {broken.id}" in caplog.text


async def test_room_locks_are_released(runtime: SessionRuntime) -> None:
    for index in range(200):
        with pytest.raises(RoomNotFound):
            await runtime.join_room(f"MED{index:03d}X", GUEST)
    assert runtime.repository._room_locks == {}

    room = await runtime.create_room(HOST, GuessSettings())
    await asyncio.gather(
        *(runtime.join_room(room.id, AuthUser(id=f"p{index}", name="Игрок")) for index in range(10))
    )
    await runtime.leave_room(room.id, HOST.id)
    assert runtime.repository._room_locks == {}
