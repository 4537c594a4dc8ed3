from __future__ import annotations

from dataclasses import dataclass

from .runtime_types import CategoryId


@dataclass(frozen=True)
class CategoryMeta:
    id: CategoryId
    label: str
    icon: str
    points: int
    description: str


CATEGORIES: dict[CategoryId, CategoryMeta] = {
    "anatomy": CategoryMeta(
        id="anatomy",
        label="Анатомия и органы",
        icon="🦴",
        points=1,
        description="Органы и анатомические структуры человека.",
    ),
    "dental": CategoryMeta(
        id="dental",
        label="Стоматология и ортодонтия",
        icon="🦷",
        points=2,
        description="Зубы, лечение и исправление прикуса.",
    ),
    "diseases": CategoryMeta(
        id="diseases",
        label="Болезни и симптомы",
        icon="🏥",
        points=1,
        description="Заболевания и их проявления.",
    ),
    "tools": CategoryMeta(
        id="tools",
        label="Лекарства и инструменты",
        icon="💊",
        points=2,
        description="Медикаменты и врачебный инструментарий.",
    ),
    "facts": CategoryMeta(
        id="facts",
        label="Интересные факты",
        icon="🧬",
        points=3,
        description="Научные и занимательные факты о медицине.",
    ),
    "professions": CategoryMeta(
        id="professions",
        label="Медицинские профессии",
        icon="🩺",
        points=1,
        description="Специальности и роли в здравоохранении.",
    ),
}
CATEGORY_IDS: tuple[CategoryId, ...] = tuple(CATEGORIES.keys())

ROOM_ID_PREFIX = "MED"
ROOM_ID_MIN = 100
ROOM_ID_MAX = 999

DEFAULT_ROUND_DURATION_SEC = 60
DEFAULT_TOTAL_QUESTIONS = 25
DEFAULT_POINTS_TO_WIN = 25
DEFAULT_GUESS_MAX_PLAYERS = 50
DEFAULT_TEAMS_MAX_PLAYERS = 6

MIN_ROUND_SEC = 10
MAX_ROUND_SEC = 600
MAX_PLAYERS_LIMIT = 50
MAX_TEAMS = 10

GUESS_COUNTDOWN_SEC = 5
GUESS_RESULT_SEC = 5

CORRECT_ANSWER_POINTS = 1.0
HINT_PENALTY_POINTS = 0.5
TEAMS_ACCEPT_POINTS = 1.0
TEAMS_GESTURES_ACCEPT_POINTS = 0.5
TEAMS_FACT_POINTS = 0.5
TEAMS_SKIP_PENALTY_POINTS = 1.0

LAST_ROUNDS_HISTORY = 3

FAST_POLL_INTERVAL_MS = 800
IDLE_POLL_INTERVAL_MS = 2500
