from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from .errors import NotFoundError

Side = Literal["host", "guest"]
Direction = Literal["forward", "backward", "left", "right"]
CardKind = Literal["movement", "attack"]

# 3x3 area of effect. Row index is the caster's lateral axis (0 = left,
# 2 = right); column index is the facing axis (0 = behind, 2 = forward).
# The centre cell (1, 1) is the caster.
Pattern = tuple[tuple[bool, bool, bool], tuple[bool, bool, bool], tuple[bool, bool, bool]]


@dataclass(frozen=True)
class MovementCard:
    id: str
    name: str
    mana_cost: int
    direction: Direction
    range: int
    kind: Literal["movement"] = "movement"


@dataclass(frozen=True)
class AttackCard:
    id: str
    name: str
    mana_cost: int
    damage: int
    pattern: Pattern
    kind: Literal["attack"] = "attack"


Card = MovementCard | AttackCard


@dataclass(frozen=True)
class Character:
    id: str
    name: str
    max_health: int
    max_mana: int
    card_pool: tuple[str, ...]


@dataclass(frozen=True)
class CardCatalog:
    """Immutable card and character registry used by the engine."""

    cards: dict[str, Card]
    characters: dict[str, Character]

    def get_card(self, card_id: str) -> Card:
        try:
            return self.cards[card_id]
        except KeyError:
            raise NotFoundError(f"Unknown card: {card_id}") from None

    def get_character(self, character_id: str) -> Character:
        try:
            return self.characters[character_id]
        except KeyError:
            raise NotFoundError(f"Unknown character: {character_id}") from None

    def has_card(self, card_id: str) -> bool:
        return card_id in self.cards

    def character_cards(self, character_id: str) -> list[Card]:
        character = self.get_character(character_id)
        return [self.cards[cid] for cid in character.card_pool if cid in self.cards]

    def draw_hand(self, character_id: str, count: int, rng: random.Random) -> list[Card]:
        character = self.get_character(character_id)
        return [self.get_card(cid) for cid in draw_random_hand(character.card_pool, count, rng)]

    def all_card_ids(self) -> Sequence[str]:
        return list(self.cards.keys())

    def all_character_ids(self) -> Sequence[str]:
        return list(self.characters.keys())


def draw_random_hand(card_pool: Sequence[str], count: int, rng: random.Random) -> list[str]:
    """Sample up to `count` distinct entries of card_pool in random order.

    All randomness of a match goes through the rng passed in here.
    """
    if count <= 0:
        return []
    shuffled = list(card_pool)
    rng.shuffle(shuffled)
    return shuffled[: min(count, len(shuffled))]
