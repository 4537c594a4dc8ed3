from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Iterable, Sequence, cast

from .runtime_constants import CATEGORIES
from .runtime_types import Card, CategoryId
from .runtime_utils import resolve_categories

logger = logging.getLogger(__name__)

DEFAULT_CARDS_PATH = Path(__file__).resolve().parent / "data" / "cards.json"


def _sanitize_card_entry(raw: Any) -> Card | None:
    if not isinstance(raw, dict):
        return None

    card_id = str(raw.get("id") or "").strip()[:64]
    word = str(raw.get("word") or "").strip()[:80]
    category = str(raw.get("category") or "").strip()
    if not card_id or not word or category not in CATEGORIES:
        return None

    forbidden_raw = raw.get("forbidden")
    forbidden: tuple[str, ...] = ()
    if isinstance(forbidden_raw, list):
        forbidden = tuple(str(item).strip() for item in forbidden_raw if str(item).strip())[:10]

    return Card(
        id=card_id,
        word=word,
        category=cast(CategoryId, category),
        forbidden=forbidden,
        fact=str(raw.get("fact") or "").strip()[:500],
    )


class CardCatalog:
    """Read-only card source grouped by category."""

    def __init__(self, cards: Iterable[Card], rng: random.Random | None = None) -> None:
        self._cards: list[Card] = []
        self._by_id: dict[str, Card] = {}
        for card in cards:
            if card.id in self._by_id:
                logger.warning("Duplicate card id %s skipped", card.id)
                continue
            self._cards.append(card)
            self._by_id[card.id] = card
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._cards)

    def cards_by_categories(self, categories: Iterable[CategoryId]) -> list[Card]:
        selected = set(resolve_categories(categories))
        return [card for card in self._cards if card.category in selected]

    def card_by_id(self, card_id: str) -> Card | None:
        return self._by_id.get(card_id)

    def has_enough_cards(self, categories: Iterable[CategoryId], count: int) -> bool:
        return len(self.cards_by_categories(categories)) >= count

    def pick_random_distinct(
        self,
        source_cards: Sequence[Card],
        count: int,
        exclude_ids: Iterable[str] = (),
    ) -> list[Card]:
        excluded = set(exclude_ids)
        pool: list[Card] = []
        seen: set[str] = set()
        for card in source_cards:
            if card.id in excluded or card.id in seen:
                continue
            seen.add(card.id)
            pool.append(card)
        self._rng.shuffle(pool)
        return pool[: max(0, count)]

    def card_count_by_category(self) -> dict[CategoryId, int]:
        counts: dict[CategoryId, int] = {category_id: 0 for category_id in CATEGORIES}
        for card in self._cards:
            counts[card.category] += 1
        return counts


def load_card_catalog(path: Path | str | None = None) -> CardCatalog:
    catalog_path = Path(path) if path else DEFAULT_CARDS_PATH
    payload = json.loads(catalog_path.read_text(encoding="utf-8"))
    cards_raw = payload.get("cards") if isinstance(payload, dict) else None
    if not isinstance(cards_raw, list):
        raise RuntimeError(f"{catalog_path.name} must contain a 'cards' list")

    cards = [card for card in (_sanitize_card_entry(item) for item in cards_raw) if card]
    if not cards:
        raise RuntimeError(f"No valid cards were loaded from {catalog_path.name}")

    logger.info("Loaded %s cards from %s", len(cards), catalog_path)
    return CardCatalog(cards)
