from __future__ import annotations

from dataclasses import replace

from gridduel.engine.board import Board, Position, place_occupant
from gridduel.engine.match import (
    MatchState,
    build_action_queue,
    join_match,
    new_match,
    resolve_round,
    select_cards,
)
from gridduel.paths import get_paths
from gridduel.services.content import ContentService


def _load_catalog():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_catalog()


def _start(catalog, host: str = "warrior", guest: str = "mage") -> MatchState:
    state = new_match(catalog, "m1", "alice", host)
    return join_match(state, catalog, "bob", guest)


def _arrange(
    state: MatchState,
    *,
    positions: dict[str, Position] | None = None,
    health: dict[str, int] | None = None,
    mana: dict[str, int] | None = None,
) -> MatchState:
    """Rebuild the board and mark every player ready."""
    board = Board.empty(state.config.board_size)
    players = []
    for p in state.players:
        p = replace(
            p,
            position=(positions or {}).get(p.id, p.position),
            health=(health or {}).get(p.id, p.health),
            mana=(mana or {}).get(p.id, p.mana),
            ready=True,
        )
        board = place_occupant(board, p.position, p.id)
        players.append(p)
    return replace(state, board=board, players=tuple(players))


def test_host_moves_forward_two() -> None:
    catalog = _load_catalog()
    state = _start(catalog)
    state = select_cards(state, catalog, "alice", ["move_forward_2"])
    state = select_cards(state, catalog, "bob", [])

    result = resolve_round(state, catalog)

    (record,) = result.log
    assert record.outcome == "moved"
    assert record.to_pos == Position(2, 2)
    assert record.mana_spent == 15
    assert record.mana_after == 65
    alice = result.state.player("alice")
    assert alice.position == Position(2, 2)
    assert result.state.board.occupant(Position(2, 2)) == "alice"
    assert result.state.board.occupant(Position(2, 0)) is None


def test_guest_frost_nova_hits_adjacent_host() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog), positions={"alice": Position(2, 3)})

    result = resolve_round(state, catalog, {"alice": [], "bob": ["attack_frost_nova"]})

    (record,) = result.log
    assert record.kind == "attack"
    assert record.outcome == "hit"
    assert record.mana_after == 80
    assert [h.player_id for h in record.hits] == ["alice"]
    assert result.state.player("alice").health == 100
    # frost nova from the right edge covers five cells
    assert len(record.cells) == 5


def test_attack_hits_each_target_once() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog, host="mage", guest="warrior"),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
    )
    result = resolve_round(state, catalog, {"alice": ["attack_frost_nova"], "bob": []})
    assert result.state.player("bob").health == 120 - 20


def test_attack_that_misses_still_costs_mana() -> None:
    catalog = _load_catalog()
    state = _start(catalog)
    result = resolve_round(_arrange(state), catalog, {"alice": ["attack_bash"], "bob": []})
    (record,) = result.log
    assert record.outcome == "missed"
    assert record.mana_after == 60
    assert result.state.player("bob").health == 80


def test_simultaneous_knockout_is_a_draw() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
        health={"alice": 20, "bob": 20},
    )

    result = resolve_round(state, catalog, {"alice": ["attack_bash"], "bob": ["attack_fireball"]})

    assert result.state.status == "finished"
    assert result.state.outcome == "draw"
    assert result.state.winner is None
    assert result.state.player("alice").health == 0
    assert result.state.player("bob").health == 0


def test_single_knockout_names_winner() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
        health={"bob": 30},
    )
    result = resolve_round(state, catalog, {"alice": ["attack_bash"], "bob": []})
    assert result.state.status == "finished"
    assert result.state.outcome == "win"
    assert result.state.winner == "alice"
    assert result.state.round == 0


def test_insufficient_mana_skips_action() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
        mana={"alice": 5},
    )

    result = resolve_round(state, catalog, {"alice": ["attack_straight_line"], "bob": []})

    (record,) = result.log
    assert record.outcome == "insufficient_mana"
    assert record.mana_spent == 0
    assert record.mana_after == 5
    assert result.state.board == state.board
    assert result.state.player("bob").health == 80


def test_cumulative_cost_is_checked_per_action() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog), mana={"alice": 30})
    result = resolve_round(
        state, catalog, {"alice": ["attack_bash", "attack_bash"], "bob": []}
    )
    assert [r.outcome for r in result.log] == ["missed", "insufficient_mana"]
    assert result.log[1].mana_after == 10


def test_rejected_moves_leave_state_untouched() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog, guest="rogue"),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
    )
    result = resolve_round(
        state,
        catalog,
        {"alice": ["move_forward_1", "move_right_1"], "bob": ["move_forward_2"]},
    )
    blocked, bob_move, sidestep = result.log
    assert blocked.player_id == "alice"
    assert blocked.outcome == "blocked"
    assert blocked.mana_spent == 0
    assert blocked.mana_after == 80
    # bob forward 2 from (2,3) lands on (2,1)
    assert bob_move.player_id == "bob"
    assert bob_move.outcome == "moved"
    assert sidestep.outcome == "moved"
    assert result.state.player("alice").position == Position(3, 2)


def test_out_of_bounds_move_is_a_no_op() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog))
    result = resolve_round(state, catalog, {"alice": ["move_backward_1"], "bob": []})
    (record,) = result.log
    assert record.outcome == "out_of_bounds"
    assert record.to_pos == Position(2, -1)
    assert result.state.board == state.board
    assert result.state.player("alice").mana == 80


def test_interleaves_by_slot() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog))
    queue = build_action_queue(
        state,
        {"alice": ["a1", "a2", "a3"], "bob": ["b1", "b2", "b3"]},
    )
    assert [q.card_id for q in queue] == ["a1", "b1", "a2", "b2", "a3", "b3"]
    assert [q.sequence for q in queue] == list(range(6))

    queue = build_action_queue(state, {"alice": ["a1", "a2", "a3"], "bob": ["b1"]})
    assert [q.card_id for q in queue] == ["a1", "b1", "a2", "a3"]
    assert [q.slot for q in queue] == [0, 0, 1, 2]


def test_move_into_cell_vacated_earlier_in_same_slot() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 1), "bob": Position(2, 2)},
    )
    result = resolve_round(state, catalog, {"alice": ["move_right_1"], "bob": ["move_forward_1"]})
    assert [r.outcome for r in result.log] == ["moved", "moved"]
    assert result.state.player("alice").position == Position(3, 1)
    assert result.state.player("bob").position == Position(2, 1)


def test_move_into_cell_not_yet_vacated_is_blocked() -> None:
    catalog = _load_catalog()
    state = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
    )
    result = resolve_round(state, catalog, {"alice": ["move_forward_1"], "bob": ["move_left_1"]})
    assert [r.outcome for r in result.log] == ["blocked", "moved"]
    assert result.state.player("alice").position == Position(2, 2)
    assert result.state.player("bob").position == Position(3, 3)


def test_unknown_card_is_logged_and_round_continues() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog))
    result = resolve_round(state, catalog, {"alice": ["no_such_card", "move_forward_1"], "bob": []})
    assert [r.outcome for r in result.log] == ["unknown_card", "moved"]
    assert result.log[0].kind is None
    assert result.state.status == "ready_for_selection"


def test_every_submitted_slot_is_logged() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog))
    result = resolve_round(state, catalog, {"alice": ["", None, "move_forward_1"], "bob": []})
    assert len(result.log) == 3
    assert [r.slot for r in result.log] == [0, 1, 2]
    assert [r.outcome for r in result.log] == ["unknown_card", "unknown_card", "moved"]
    assert [r.card_id for r in result.log[:2]] == ["", ""]
    assert result.state.player("alice").position == Position(2, 1)


def test_straight_line_only_hits_in_front() -> None:
    catalog = _load_catalog()
    behind = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 1)},
    )
    result = resolve_round(behind, catalog, {"alice": ["attack_straight_line"], "bob": []})
    assert result.log[0].outcome == "missed"
    assert result.log[0].cells == (Position(2, 3),)

    ahead = _arrange(
        _start(catalog),
        positions={"alice": Position(2, 2), "bob": Position(2, 3)},
    )
    result = resolve_round(ahead, catalog, {"alice": ["attack_straight_line"], "bob": []})
    assert result.log[0].outcome == "hit"
    assert result.state.player("bob").health == 80 - 30


def test_round_end_resets_and_regenerates_half_max_mana() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog))
    result = resolve_round(
        state,
        catalog,
        {"alice": ["attack_bash", "attack_straight_line"], "bob": ["attack_frost_nova"]},
    )
    nxt = result.state
    assert nxt.round == 1
    assert nxt.status == "ready_for_selection"
    alice = nxt.player("alice")
    bob = nxt.player("bob")
    # 80 - 20 - 25 = 35, plus half of max (40)
    assert alice.mana == 75
    # 120 - 40 = 80, plus 60 capped at 120
    assert bob.mana == 120
    for p in nxt.players:
        assert p.ready is False
        assert p.selected_cards == ()


def test_input_state_is_not_modified() -> None:
    catalog = _load_catalog()
    state = _arrange(_start(catalog), positions={"alice": Position(2, 3)})
    before = (state.board, state.players)
    resolve_round(state, catalog, {"alice": ["move_left_1"], "bob": ["attack_frost_nova"]})
    assert (state.board, state.players) == before
