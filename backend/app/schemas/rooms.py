from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.runtime_constants import (
    DEFAULT_GUESS_MAX_PLAYERS,
    DEFAULT_POINTS_TO_WIN,
    DEFAULT_ROUND_DURATION_SEC,
    DEFAULT_TEAMS_MAX_PLAYERS,
    DEFAULT_TOTAL_QUESTIONS,
)
from app.runtime_types import AuthUser, GameSubModes, GuessSettings, RoomSettings, TeamsSettings


class UserPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=64)

    @model_validator(mode="after")
    def strip_fields(self) -> "UserPayload":
        self.id = self.id.strip()
        self.name = self.name.strip()
        if not self.id or not self.name:
            raise ValueError("id и name обязательны")
        return self

    def to_user(self) -> AuthUser:
        return AuthUser(id=self.id, name=self.name)


class GameSubModesPayload(BaseModel):
    classic: bool = True
    gestures: bool = False
    charades: bool = False


class RoomSettingsPayload(BaseModel):
    mode: Literal["guess", "teams"]
    categories: list[str] = Field(default_factory=list, max_length=16)
    roundDurationSec: int = Field(default=DEFAULT_ROUND_DURATION_SEC)
    maxPlayers: int | None = None
    totalQuestions: int = Field(default=DEFAULT_TOTAL_QUESTIONS)
    pointsToWin: int = Field(default=DEFAULT_POINTS_TO_WIN)
    teamNames: list[str] = Field(default_factory=list, max_length=16)
    gameSubModes: GameSubModesPayload = Field(default_factory=GameSubModesPayload)
    skipPenalty: bool = False
    playerCount: int | None = None

    @model_validator(mode="after")
    def normalize_team_names(self) -> "RoomSettingsPayload":
        self.teamNames = [name.strip()[:32] for name in self.teamNames if name.strip()]
        return self

    def to_settings(self) -> RoomSettings:
        # Category ids are checked by the lifecycle layer so unknown ones surface as invalid_settings.
        categories = tuple(dict.fromkeys(self.categories))
        if self.mode == "guess":
            return GuessSettings(
                categories=categories,  # type: ignore[arg-type]
                round_duration_sec=self.roundDurationSec,
                max_players=self.maxPlayers or DEFAULT_GUESS_MAX_PLAYERS,
                total_questions=self.totalQuestions,
            )
        return TeamsSettings(
            categories=categories,  # type: ignore[arg-type]
            round_duration_sec=self.roundDurationSec,
            max_players=self.maxPlayers or DEFAULT_TEAMS_MAX_PLAYERS,
            points_to_win=self.pointsToWin,
            team_names=tuple(self.teamNames),
            game_sub_modes=GameSubModes(
                classic=self.gameSubModes.classic,
                gestures=self.gameSubModes.gestures,
                charades=self.gameSubModes.charades,
            ),
            skip_penalty=self.skipPenalty,
            player_count=self.playerCount,
        )


class CreateRoomRequest(BaseModel):
    host: UserPayload
    settings: RoomSettingsPayload


class LeaveRoomRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=64)


class JoinTeamRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=64)
    teamId: str = Field(min_length=1, max_length=32)
