from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from gridduel.engine.types import (
    AttackCard,
    Card,
    CardCatalog,
    Character,
    MovementCard,
    Pattern,
)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: e.path)
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_list(obj: Mapping[str, object], key: str) -> list[object]:
    v = obj.get(key)
    if not isinstance(v, list):
        raise ContentError(f"Expected list for {key}")
    return v


def _parse_pattern(raw: object) -> Pattern:
    if not isinstance(raw, list) or len(raw) != 3:
        raise ContentError("pattern must be a 3x3 matrix")
    rows = []
    for row in raw:
        if not isinstance(row, list) or len(row) != 3:
            raise ContentError("pattern must be a 3x3 matrix")
        rows.append(tuple(bool(v) for v in row))
    return tuple(rows)  # type: ignore[return-value]


def parse_card(raw: Mapping[str, object]) -> Card:
    t = raw.get("type")
    if t == "movement":
        return MovementCard(
            id=_require_str(raw, "id"),
            name=_require_str(raw, "name"),
            mana_cost=_require_int(raw, "mana_cost"),
            direction=_require_str(raw, "direction"),  # type: ignore[arg-type]
            range=_require_int(raw, "range"),
        )
    if t == "attack":
        return AttackCard(
            id=_require_str(raw, "id"),
            name=_require_str(raw, "name"),
            mana_cost=_require_int(raw, "mana_cost"),
            damage=_require_int(raw, "damage"),
            pattern=_parse_pattern(raw.get("pattern")),
        )
    raise ContentError(f"Unknown card type: {t}")


def parse_character(raw: Mapping[str, object]) -> Character:
    pool = [c for c in _require_list(raw, "card_pool") if isinstance(c, str)]
    return Character(
        id=_require_str(raw, "id"),
        name=_require_str(raw, "name"),
        max_health=_require_int(raw, "max_health"),
        max_mana=_require_int(raw, "max_mana"),
        card_pool=tuple(pool),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def _load_validated(self, name: str) -> dict[str, object]:
        path = self._data_dir / f"{name}.json"
        raw = _load_json(path)
        schema = _load_json(self._schema_dir / f"{name}.schema.json")
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError(f"{name}.json must be an object")
        return raw

    def load_cards(self) -> dict[str, Card]:
        raw = self._load_validated("cards")
        cards: dict[str, Card] = {}
        for item in _require_list(raw, "cards"):
            if not isinstance(item, dict):
                continue
            card = parse_card(item)
            if card.id in cards:
                raise ContentError(f"Duplicate card id: {card.id}")
            cards[card.id] = card
        return cards

    def load_characters(self) -> dict[str, Character]:
        raw = self._load_validated("characters")
        characters: dict[str, Character] = {}
        for item in _require_list(raw, "characters"):
            if not isinstance(item, dict):
                continue
            character = parse_character(item)
            if character.id in characters:
                raise ContentError(f"Duplicate character id: {character.id}")
            characters[character.id] = character
        return characters

    def load_catalog(self) -> CardCatalog:
        cards = self.load_cards()
        characters = self.load_characters()
        for character in characters.values():
            missing = [cid for cid in character.card_pool if cid not in cards]
            if missing:
                raise ContentError(
                    f"Character {character.id} references unknown cards: {', '.join(missing)}"
                )
        return CardCatalog(cards=cards, characters=characters)

    def validate_all(self) -> None:
        # Load is validation (schema + parse + cross references)
        _ = self.load_catalog()
