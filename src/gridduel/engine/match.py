from __future__ import annotations

import random
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Literal

from .actions import ActionLog, ActionRecord, Hit, QueuedAction
from .board import Board, PlayerId, Position, move_occupant, place_occupant
from .errors import InvalidActionError, InvalidStateError, NotFoundError, ValidationError
from .geometry import check_movement, resolve_attack_pattern
from .types import AttackCard, CardCatalog, MovementCard, Side, draw_random_hand

Status = Literal["waiting", "ready_for_selection", "executing", "finished"]
MatchOutcome = Literal["win", "draw"]


@dataclass(frozen=True)
class MatchConfig:
    board_size: int = 5
    slots_per_round: int = 3
    hand_size: int = 10
    mana_regen_divisor: int = 2
    host_start: Position = Position(2, 0)
    guest_start: Position = Position(2, 4)

    def start_for(self, side: Side) -> Position:
        return self.host_start if side == "host" else self.guest_start


@dataclass(frozen=True)
class PlayerState:
    id: PlayerId
    character_id: str
    side: Side
    position: Position
    health: int
    mana: int
    name: str = ""
    hand: tuple[str, ...] = ()
    selected_cards: tuple[str, ...] = ()
    ready: bool = False


@dataclass(frozen=True)
class MatchState:
    match_id: str
    config: MatchConfig
    board: Board
    players: tuple[PlayerState, ...]  # join order: host first
    round: int = 0
    status: Status = "waiting"
    winner: PlayerId | None = None
    outcome: MatchOutcome | None = None

    def player(self, player_id: PlayerId) -> PlayerState:
        for p in self.players:
            if p.id == player_id:
                return p
        raise NotFoundError(f"Player {player_id} is not in match {self.match_id}")

    def has_player(self, player_id: PlayerId) -> bool:
        return any(p.id == player_id for p in self.players)

    def opponent(self, player_id: PlayerId) -> PlayerState | None:
        for p in self.players:
            if p.id != player_id:
                return p
        return None

    @property
    def all_ready(self) -> bool:
        return len(self.players) == 2 and all(p.ready for p in self.players)

    @property
    def is_over(self) -> bool:
        return self.status == "finished"


@dataclass(frozen=True)
class RoundResult:
    state: MatchState
    log: ActionLog = field(default_factory=tuple)


def _replace_player(state: MatchState, updated: PlayerState) -> MatchState:
    players = tuple(updated if p.id == updated.id else p for p in state.players)
    return replace(state, players=players)


def _spawn_player(
    catalog: CardCatalog,
    config: MatchConfig,
    player_id: PlayerId,
    character_id: str,
    side: Side,
    name: str | None,
) -> PlayerState:
    character = catalog.get_character(character_id)
    return PlayerState(
        id=player_id,
        name=name or player_id,
        character_id=character.id,
        side=side,
        position=config.start_for(side),
        health=character.max_health,
        mana=character.max_mana,
    )


def new_match(
    catalog: CardCatalog,
    match_id: str,
    host_id: PlayerId,
    character_id: str,
    *,
    name: str | None = None,
    config: MatchConfig | None = None,
) -> MatchState:
    cfg = config or MatchConfig()
    host = _spawn_player(catalog, cfg, host_id, character_id, "host", name)
    board = place_occupant(Board.empty(cfg.board_size), host.position, host.id)
    return MatchState(match_id=match_id, config=cfg, board=board, players=(host,))


def join_match(
    state: MatchState,
    catalog: CardCatalog,
    player_id: PlayerId,
    character_id: str,
    *,
    name: str | None = None,
) -> MatchState:
    if state.has_player(player_id):
        raise InvalidActionError(f"{player_id} already joined match {state.match_id}")
    if state.status != "waiting" or len(state.players) != 1:
        raise InvalidActionError(f"Match {state.match_id} is not accepting players")
    guest = _spawn_player(catalog, state.config, player_id, character_id, "guest", name)
    board = place_occupant(state.board, guest.position, guest.id)
    return replace(
        state,
        board=board,
        players=state.players + (guest,),
        status="ready_for_selection",
    )


def deal_hands(state: MatchState, catalog: CardCatalog, rng: random.Random) -> MatchState:
    """Draw a fresh hand for every player who has not locked in yet.

    Players are served in join order so a seeded rng gives the same hands.
    """
    if state.status != "ready_for_selection":
        raise InvalidActionError(f"Cannot deal hands while match is {state.status}")
    for p in state.players:
        if p.ready:
            continue
        character = catalog.get_character(p.character_id)
        hand = draw_random_hand(character.card_pool, state.config.hand_size, rng)
        state = _replace_player(state, replace(p, hand=tuple(hand)))
    return state


def _validate_selection(
    state: MatchState,
    catalog: CardCatalog,
    player: PlayerState,
    card_ids: Sequence[str],
) -> None:
    """Check that a player owns every known card they picked.

    Cards come from the dealt hand (copies limited by the hand) or, when no
    hand was dealt, from the character's pool. Ids missing from the catalog
    are left for resolution to log.
    """
    if len(card_ids) > state.config.slots_per_round:
        raise ValidationError(
            f"At most {state.config.slots_per_round} cards per round, got {len(card_ids)}"
        )
    character = catalog.get_character(player.character_id)
    available = Counter(player.hand) if player.hand else None
    known = [c for c in card_ids if isinstance(c, str) and catalog.has_card(c)]
    wanted = Counter(known)
    for card_id in known:
        if available is not None:
            if wanted[card_id] > available[card_id]:
                raise ValidationError(f"{card_id} is not in {player.id}'s hand")
        elif card_id not in character.card_pool:
            raise ValidationError(f"{card_id} is not in {character.id}'s card pool")


def select_cards(
    state: MatchState,
    catalog: CardCatalog,
    player_id: PlayerId,
    card_ids: Sequence[str],
) -> MatchState:
    """Lock in a player's cards for this round and mark them ready."""
    if state.status != "ready_for_selection":
        raise InvalidActionError(f"Cannot select cards while match is {state.status}")
    player = state.player(player_id)
    if player.ready:
        raise InvalidActionError(f"{player_id} already locked in cards for round {state.round}")

    for card_id in card_ids:
        if not isinstance(card_id, str):
            raise ValidationError(f"Card ids must be strings, got {card_id!r}")
    _validate_selection(state, catalog, player, card_ids)
    for card_id in card_ids:
        card = catalog.get_card(card_id)
        if card.mana_cost > player.mana:
            raise ValidationError(
                f"{card_id} costs {card.mana_cost} mana, {player_id} has {player.mana}"
            )

    return _replace_player(state, replace(player, selected_cards=tuple(card_ids), ready=True))


def _check_round_ready(state: MatchState) -> None:
    if len(state.players) != 2:
        raise InvalidStateError(f"Match {state.match_id} needs exactly two players")
    if not all(p.ready for p in state.players):
        raise InvalidStateError(f"Not every player in {state.match_id} is ready")


def begin_round(state: MatchState) -> MatchState:
    if state.status != "ready_for_selection":
        raise InvalidStateError(f"Cannot start a round while match is {state.status}")
    _check_round_ready(state)
    return replace(state, status="executing")


def build_action_queue(
    state: MatchState,
    selections: Mapping[PlayerId, Sequence[str]] | None = None,
) -> list[QueuedAction]:
    """Interleave selections by slot: A1, B1, A2, B2, A3, B3.

    Every submitted slot is queued, blank or malformed ids included, so each
    one gets a record in the round log.
    """
    chosen: dict[PlayerId, Sequence[str]] = {}
    for p in state.players:
        if selections is not None and p.id in selections:
            chosen[p.id] = selections[p.id]
        else:
            chosen[p.id] = p.selected_cards

    queue: list[QueuedAction] = []
    for slot in range(state.config.slots_per_round):
        for p in state.players:
            cards = chosen[p.id]
            if slot < len(cards):
                queue.append(
                    QueuedAction(player_id=p.id, card_id=cards[slot], slot=slot, sequence=len(queue))
                )
    return queue


def _apply_movement(
    board: Board,
    player: PlayerState,
    card: MovementCard,
    action: QueuedAction,
) -> tuple[Board, PlayerState, ActionRecord]:
    start = player.position
    target, result = check_movement(board, player.side, start, card)
    spent = 0
    if result == "moved":
        # A rejected move leaves the player untouched, mana included.
        spent = card.mana_cost
        board = move_occupant(board, start, target, player.id)
        player = replace(player, position=target, mana=player.mana - spent)
    record = ActionRecord(
        player_id=player.id,
        card_id=card.id,
        slot=action.slot,
        sequence=action.sequence,
        kind="move",
        outcome=result,  # type: ignore[arg-type]
        mana_spent=spent,
        mana_after=player.mana,
        from_pos=start,
        to_pos=target,
    )
    return board, player, record


def _apply_attack(
    board: Board,
    players: dict[PlayerId, PlayerState],
    caster: PlayerState,
    card: AttackCard,
    action: QueuedAction,
) -> tuple[dict[PlayerId, PlayerState], ActionRecord]:
    cells = resolve_attack_pattern(caster.side, caster.position, card.pattern, board.size)
    hits: list[Hit] = []
    for cell in cells:
        occupant = board.occupant(cell)
        if occupant is None or occupant == caster.id:
            continue
        target = players[occupant]
        health = max(0, target.health - card.damage)
        players[occupant] = replace(target, health=health)
        hits.append(Hit(player_id=occupant, damage=card.damage, health_after=health))
    record = ActionRecord(
        player_id=caster.id,
        card_id=card.id,
        slot=action.slot,
        sequence=action.sequence,
        kind="attack",
        outcome="hit" if hits else "missed",
        mana_spent=card.mana_cost,
        mana_after=caster.mana,
        from_pos=caster.position,
        cells=tuple(cells),
        hits=tuple(hits),
    )
    return players, record


def _apply_action(
    board: Board,
    players: dict[PlayerId, PlayerState],
    catalog: CardCatalog,
    action: QueuedAction,
) -> tuple[Board, dict[PlayerId, PlayerState], ActionRecord]:
    player = players[action.player_id]
    card_id = action.card_id
    if not isinstance(card_id, str) or not catalog.has_card(card_id):
        return board, players, ActionRecord(
            player_id=player.id,
            card_id=card_id if isinstance(card_id, str) else "",
            slot=action.slot,
            sequence=action.sequence,
            kind=None,
            outcome="unknown_card",
            mana_after=player.mana,
        )

    card = catalog.get_card(action.card_id)
    kind = "move" if isinstance(card, MovementCard) else "attack"
    if card.mana_cost > player.mana:
        return board, players, ActionRecord(
            player_id=player.id,
            card_id=card.id,
            slot=action.slot,
            sequence=action.sequence,
            kind=kind,
            outcome="insufficient_mana",
            mana_after=player.mana,
            from_pos=player.position,
        )

    players = dict(players)
    if isinstance(card, MovementCard):
        board, player, record = _apply_movement(board, player, card, action)
        players[player.id] = player
        return board, players, record

    # Attacks are paid up front and cost mana even when nothing is hit.
    player = replace(player, mana=player.mana - card.mana_cost)
    players[player.id] = player
    players, record = _apply_attack(board, players, player, card, action)
    return board, players, record


def check_outcome(
    players: Sequence[PlayerState],
) -> tuple[Status | None, PlayerId | None, MatchOutcome | None]:
    """Return (status, winner, outcome) if the match is decided, else Nones."""
    alive = [p for p in players if p.health > 0]
    if len(players) < 2 or len(alive) == len(players):
        return None, None, None
    if not alive:
        return "finished", None, "draw"
    if len(alive) == 1:
        return "finished", alive[0].id, "win"
    return None, None, None


def _regenerate(player: PlayerState, max_mana: int, divisor: int) -> PlayerState:
    mana = min(max_mana, player.mana + max_mana // divisor)
    return replace(player, mana=mana, selected_cards=(), hand=(), ready=False)


def resolve_round(
    state: MatchState,
    catalog: CardCatalog,
    selections: Mapping[PlayerId, Sequence[str]] | None = None,
) -> RoundResult:
    """Resolve one round and return the next state with its action log.

    `state` is never modified. Passing `selections` overrides the cards
    stored on the players; they are held to the same hand and pool rules
    as `select_cards` before anything resolves.
    """
    if state.status not in ("ready_for_selection", "executing"):
        raise InvalidStateError(f"Cannot resolve a round while match is {state.status}")
    _check_round_ready(state)
    if selections is not None:
        for pid, cards in selections.items():
            _validate_selection(state, catalog, state.player(pid), cards)

    queue = build_action_queue(state, selections)
    board = state.board
    players = {p.id: p for p in state.players}
    log: list[ActionRecord] = []
    for action in queue:
        board, players, record = _apply_action(board, players, catalog, action)
        log.append(record)

    ordered = tuple(players[p.id] for p in state.players)
    status, winner, outcome = check_outcome(ordered)
    if status == "finished":
        final = replace(
            state,
            board=board,
            players=ordered,
            status="finished",
            winner=winner,
            outcome=outcome,
        )
        return RoundResult(state=final, log=tuple(log))

    regenerated = tuple(
        _regenerate(
            p,
            catalog.get_character(p.character_id).max_mana,
            state.config.mana_regen_divisor,
        )
        for p in ordered
    )
    nxt = replace(
        state,
        board=board,
        players=regenerated,
        round=state.round + 1,
        status="ready_for_selection",
    )
    return RoundResult(state=nxt, log=tuple(log))


def replay(
    catalog: CardCatalog,
    state: MatchState,
    rounds: Sequence[Mapping[PlayerId, Sequence[str]]],
) -> tuple[MatchState, list[ActionLog]]:
    """Resolve a sequence of rounds from an initial two-player state."""
    logs: list[ActionLog] = []
    for selections in rounds:
        if state.is_over:
            break
        for p in state.players:
            state = _replace_player(state, replace(p, ready=True))
        result = resolve_round(state, catalog, selections)
        state = result.state
        logs.append(result.log)
    return state, logs
