from __future__ import annotations

import random
import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence

from gridduel.engine.actions import ActionLog
from gridduel.engine.errors import InvalidStateError, NotFoundError
from gridduel.engine.match import (
    MatchConfig,
    MatchState,
    RoundResult,
    begin_round,
    deal_hands,
    join_match,
    new_match,
    resolve_round,
    select_cards,
)
from gridduel.engine.serialize import action_log_to_list
from gridduel.engine.types import Card, CardCatalog
from gridduel.services.telemetry import TelemetryService

Subscriber = Callable[[MatchState, ActionLog], None]


def _unlock_players(state: MatchState) -> MatchState:
    players = tuple(replace(p, selected_cards=(), ready=False) for p in state.players)
    return replace(state, players=players, status="ready_for_selection")


@dataclass
class _MatchSlot:
    state: MatchState
    rng: random.Random
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_log: ActionLog = ()
    subscribers: list[Subscriber] = field(default_factory=list)


class MatchService:
    """In-memory match registry that serializes round resolution per match.

    Selections from both players may arrive on different threads. Each
    match has its own lock, and the move into "executing" happens once,
    when the second ready flag is observed under that lock.
    """

    def __init__(
        self,
        catalog: CardCatalog,
        *,
        rng: random.Random | None = None,
        telemetry: TelemetryService | None = None,
        config: MatchConfig | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or MatchConfig()
        self._rng = rng or random.Random()
        self._telemetry = telemetry
        self._matches: dict[str, _MatchSlot] = {}
        self._registry_lock = threading.Lock()

    def _log(self, event_type: str, payload: dict[str, object]) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event_type, payload)

    def _slot(self, match_id: str) -> _MatchSlot:
        with self._registry_lock:
            slot = self._matches.get(match_id)
        if slot is None:
            raise NotFoundError(f"Unknown match: {match_id}")
        return slot

    # -------- Lifecycle --------
    def create_match(
        self,
        host_id: str,
        character_id: str,
        *,
        name: str | None = None,
        match_id: str | None = None,
    ) -> MatchState:
        mid = match_id or uuid.uuid4().hex
        state = new_match(self.catalog, mid, host_id, character_id, name=name, config=self.config)
        with self._registry_lock:
            if mid in self._matches:
                raise InvalidStateError(f"Match {mid} already exists")
            # Each match draws from its own stream so concurrent matches stay reproducible.
            seed = self._rng.getrandbits(64)
            self._matches[mid] = _MatchSlot(state=state, rng=random.Random(seed))
        self._log("match_created", {"match_id": mid, "host": host_id, "character": character_id})
        return state

    def join_match(
        self,
        match_id: str,
        player_id: str,
        character_id: str,
        *,
        name: str | None = None,
    ) -> MatchState:
        slot = self._slot(match_id)
        with slot.lock:
            state = join_match(slot.state, self.catalog, player_id, character_id, name=name)
            state = deal_hands(state, self.catalog, slot.rng)
            slot.state = state
        self._log("player_joined", {"match_id": match_id, "player": player_id, "character": character_id})
        return state

    def close_match(self, match_id: str) -> MatchState:
        with self._registry_lock:
            slot = self._matches.pop(match_id, None)
        if slot is None:
            raise NotFoundError(f"Unknown match: {match_id}")
        return slot.state

    # -------- Queries --------
    def get(self, match_id: str) -> MatchState:
        return self._slot(match_id).state

    def last_log(self, match_id: str) -> ActionLog:
        return self._slot(match_id).last_log

    def hand(self, match_id: str, player_id: str) -> list[Card]:
        state = self.get(match_id)
        return [self.catalog.get_card(cid) for cid in state.player(player_id).hand]

    def match_ids(self) -> list[str]:
        with self._registry_lock:
            return sorted(self._matches.keys())

    # -------- Rounds --------
    def submit_selection(
        self, match_id: str, player_id: str, card_ids: Sequence[str]
    ) -> RoundResult | None:
        """Record a player's cards; resolve the round if both players are now ready.

        Returns the RoundResult when this call triggered resolution, else None.
        If resolution fails, both players are unlocked so the round can be
        submitted again.
        """
        slot = self._slot(match_id)
        result: RoundResult | None = None
        with slot.lock:
            state = select_cards(slot.state, self.catalog, player_id, card_ids)
            slot.state = state
            if state.all_ready and state.status == "ready_for_selection":
                slot.state = begin_round(state)
                try:
                    result = resolve_round(slot.state, self.catalog)
                except Exception:
                    slot.state = _unlock_players(state)
                    raise
                nxt = result.state
                if not nxt.is_over:
                    nxt = deal_hands(nxt, self.catalog, slot.rng)
                    result = RoundResult(state=nxt, log=result.log)
                slot.state = nxt
                slot.last_log = result.log
            subscribers = list(slot.subscribers)

        self._log(
            "cards_selected",
            {"match_id": match_id, "player": player_id, "round": state.round, "count": len(card_ids)},
        )
        if result is None:
            return None

        self._log(
            "round_resolved",
            {
                "match_id": match_id,
                "round": state.round,
                "actions": action_log_to_list(result.log),
            },
        )
        if result.state.is_over:
            self._log(
                "match_finished",
                {"match_id": match_id, "winner": result.state.winner, "outcome": result.state.outcome},
            )
        for callback in subscribers:
            callback(result.state, result.log)
        return result

    def subscribe(self, match_id: str, callback: Subscriber) -> Callable[[], None]:
        slot = self._slot(match_id)
        with slot.lock:
            slot.subscribers.append(callback)

        def unsubscribe() -> None:
            with slot.lock:
                if callback in slot.subscribers:
                    slot.subscribers.remove(callback)

        return unsubscribe
