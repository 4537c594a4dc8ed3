from __future__ import annotations


class RoomError(RuntimeError):
    status_code = 400
    code = "room_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class RoomNotFound(RoomError):
    status_code = 404
    code = "room_not_found"

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class RoomFull(RoomError):
    status_code = 409
    code = "room_full"


class Conflict(RoomError):
    """The stored room changed since the caller read it; re-read and retry."""

    status_code = 409
    code = "version_conflict"

    def __init__(self, room_id: str, expected: int, actual: int) -> None:
        super().__init__(f"Room {room_id} is at version {actual}, expected {expected}")
        self.room_id = room_id
        self.expected = expected
        self.actual = actual


class InsufficientCards(RoomError):
    status_code = 422
    code = "insufficient_cards"

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(f"Need {requested} cards, only {available} available")
        self.requested = requested
        self.available = available


class InvalidSettings(RoomError):
    status_code = 422
    code = "invalid_settings"


class InvalidRoomDocument(RoomError):
    status_code = 400
    code = "invalid_room"


class RoomIdsExhausted(RoomError):
    status_code = 503
    code = "room_ids_exhausted"


class MalformedPersistedState(RoomError):
    code = "malformed_state"
