from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

GameMode = Literal["guess", "teams"]
RoomStatus = Literal["lobby", "inGame", "finished"]
CategoryId = Literal["anatomy", "dental", "diseases", "tools", "facts", "professions"]
TeamsPhase = Literal["round", "wordConfirmation", "roundResults"]
TeamsCardAction = Literal["skip", "accept", "fact"]
GameSubMode = Literal["classic", "gestures", "charades"]


@dataclass(frozen=True)
class Card:
    id: str
    word: str
    category: CategoryId
    forbidden: tuple[str, ...] = ()
    fact: str = ""


@dataclass(frozen=True)
class AuthUser:
    id: str
    name: str


@dataclass
class Player:
    id: str
    name: str
    score: float = 0


@dataclass
class Team:
    id: str
    name: str
    player_ids: list[str] = field(default_factory=list)
    score: float = 0


@dataclass
class GameSubModes:
    classic: bool = True
    gestures: bool = False
    charades: bool = False

    def active(self) -> GameSubMode:
        if self.gestures:
            return "gestures"
        if self.charades:
            return "charades"
        return "classic"


@dataclass(frozen=True)
class GuessSettings:
    categories: tuple[CategoryId, ...] = ()
    round_duration_sec: int = 60
    max_players: int = 50
    total_questions: int = 25
    mode: Literal["guess"] = "guess"


@dataclass(frozen=True)
class TeamsSettings:
    categories: tuple[CategoryId, ...] = ()
    round_duration_sec: int = 60
    max_players: int = 6
    points_to_win: int = 25
    team_names: tuple[str, ...] = ()
    game_sub_modes: GameSubModes = field(default_factory=GameSubModes)
    skip_penalty: bool = False
    player_count: int | None = None
    mode: Literal["teams"] = "teams"


RoomSettings = Union[GuessSettings, TeamsSettings]


@dataclass
class GuessLastResult:
    correct: bool
    card_id: str
    answered_by_name: str


@dataclass
class GuessResult:
    correct: bool
    card: Card


@dataclass
class TeamsGameState:
    round_card_ids: list[str]
    current_round: int = 1
    current_card_index_in_round: int = 0
    current_team_index: int = 0
    current_explainer_player_id: str = ""
    used_card_ids_in_game: list[str] = field(default_factory=list)
    last3_round_card_ids: list[list[str]] = field(default_factory=list)
    phase: TeamsPhase = "round"
    round_card_actions: dict[str, TeamsCardAction] = field(default_factory=dict)
    round_started_at: int | None = None


@dataclass
class RoomBase:
    id: str
    host_id: str
    players: list[Player] = field(default_factory=list)
    status: RoomStatus = "lobby"
    current_question_index: int = 0
    used_card_ids: list[str] = field(default_factory=list)
    version: int = 1
    created_at: int | None = None

    def find_player(self, user_id: str) -> Player | None:
        for player in self.players:
            if player.id == user_id:
                return player
        return None


@dataclass
class GuessRoom(RoomBase):
    settings: GuessSettings = field(default_factory=GuessSettings)
    guess_started_at: int | None = None
    guess_per_question_sec: int | None = None
    guess_showing_result: bool = False
    guess_last_result: GuessLastResult | None = None
    guess_result_shown_at: int | None = None
    guess_countdown_started_at: int | None = None


@dataclass
class TeamsRoom(RoomBase):
    settings: TeamsSettings = field(default_factory=TeamsSettings)
    teams: list[Team] = field(default_factory=list)
    teams_game_state: TeamsGameState | None = None

    def find_team(self, team_id: str) -> Team | None:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None


Room = Union[GuessRoom, TeamsRoom]
