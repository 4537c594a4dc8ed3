from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SubmitGuessRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=64)
    answer: str = Field(default="", max_length=200)
    usedHint: bool = False


class TeamsCardActionRequest(BaseModel):
    action: Literal["skip", "accept", "fact"]
    endRound: bool = False


class ConfirmRoundRequest(BaseModel):
    counted: dict[str, bool] = Field(default_factory=dict)


class NextRoundRequest(BaseModel):
    expectedRound: int | None = Field(default=None, ge=1)


class TelegramValidateRequest(BaseModel):
    initData: str = Field(default="", max_length=8192)
