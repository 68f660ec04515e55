"""Visibility and view generation for Hanabi.

Core principle: A player can see ALL other players' hands but NOT their own cards.
They only know about their own cards through hints received and the belief
distributions derived from what they can see.
"""

from __future__ import annotations

from typing import Any

from .belief import expected_entropy, knowledge_for, probability_playable
from .models import FullGameState, HistoryEntry
from .rules import playable_ranks


# Keys that must NEVER appear in any player view
FORBIDDEN_KEYS = {
    "deck",
    "deck_order",
    "hands",
    "rng",
    "seed",
    "random",
    "debug",
    "_internal",
}


def _public_turn_summary(entry: HistoryEntry) -> dict[str, Any]:
    """
    Create a public summary of a history entry.
    Every action and its result is public in Hanabi.
    """
    return {
        "turn_number": entry.turn_number,
        "player": entry.player,
        "outcome": entry.outcome,
        "message": entry.message,
        "action": entry.action.model_dump(mode="json") if entry.action is not None else None,
        "card": str(entry.card) if entry.card is not None else None,
        "target_color": entry.target_color,
        "slots_touched": entry.slots_touched,
        "info_tokens_after": entry.info_tokens_after,
        "explosion_tokens_after": entry.explosion_tokens_after,
        "score_after": entry.score_after,
    }


def view_for_player(game: FullGameState, player: int) -> dict[str, Any]:
    """
    Build the redacted game state view for a specific player.

    CRITICAL: The player can see ALL other players' hands but NOT their own cards.
    Their own slots are described only by hint knowledge and beliefs.

    Args:
        game: Current game state
        player: The player requesting the view

    Returns:
        JSON-safe view dictionary safe for the player to see
    """
    knowledge = knowledge_for(game, player)
    public = game.public

    # Other players' hands - VISIBLE
    visible_hands = {
        str(pid): [{"color": card.color, "rank": card.rank} for card in hand]
        for pid, hand in knowledge.other_hands.items()
    }

    my_hand_beliefs = [
        {
            "slot": slot,
            "probs": belief.model_dump(mode="json")["probs"],
            "known_color": belief.known_color,
            "known_rank": belief.known_rank,
            "p_playable": round(probability_playable(belief, public), 4),
        }
        for slot, belief in enumerate(knowledge.own_hand)
    ]

    # What each teammate can work out about their own cards
    teammate_beliefs = {
        str(pid): [
            {
                "known_color": belief.known_color,
                "known_rank": belief.known_rank,
                "p_playable": round(probability_playable(belief, public), 4),
            }
            for belief in beliefs
        ]
        for pid, beliefs in knowledge.theory_of_mind.items()
    }

    return {
        "role": "player",
        "player": player,
        "turn_number": game.turn_number,

        "visible_hands": visible_hands,

        # Own hand - only hints and beliefs, NOT actual cards
        "my_hand_knowledge": [k.model_dump(mode="json") for k in game.knowledge[player]],
        "my_hand_beliefs": my_hand_beliefs,
        "my_hand_size": len(knowledge.own_hand),
        "my_hand_entropy": round(expected_entropy(knowledge.own_hand), 4),
        "teammate_beliefs": teammate_beliefs,

        # Public game state
        "played_stacks": dict(knowledge.played_stacks),
        "played_cards": [str(card) for card in knowledge.played_cards],
        "playable_next": playable_ranks(public),
        "discard_pile": [str(card) for card in knowledge.discard_pile],
        "deck_remaining": knowledge.deck_size,
        "info_tokens": knowledge.info_tokens,
        "explosion_tokens": knowledge.explosion_tokens,
        "score": game.score,

        "history": [_public_turn_summary(e) for e in game.history],

        "current_player": game.current_player,
        "num_players": game.num_players,
        "is_my_turn": game.current_player == player,

        "final_round_started": game.final_round_player is not None,
        "game_over": game.game_over,
        "game_over_reason": game.game_over_reason.value,
    }


def assert_no_leaks(payload: Any, path: str = "") -> None:
    """
    Recursively assert that no forbidden keys appear in a payload.

    Raises AssertionError if any leak is detected.
    """
    if isinstance(payload, dict):
        for key, value in payload.items():
            key_str = str(key).lower()
            current_path = f"{path}.{key}" if path else str(key)

            if key_str in FORBIDDEN_KEYS:
                raise AssertionError(f"Forbidden key '{key}' found at {current_path}")

            if key_str == "my_hand" or key_str == "own_hand":
                raise AssertionError(f"Direct hand access found at {current_path}")

            assert_no_leaks(value, current_path)

    elif isinstance(payload, list):
        for i, item in enumerate(payload):
            assert_no_leaks(item, f"{path}[{i}]")


def assert_view_safe(view: dict[str, Any]) -> None:
    """
    Validate that a player view is safe (no information leaks).

    Checks:
    1. No forbidden keys anywhere in the payload
    2. Player's own cards are not directly visible
    3. Own-hand entries carry knowledge and beliefs only
    """
    if not isinstance(view, dict):
        raise AssertionError("View must be a dictionary")

    if view.get("role") != "player":
        raise AssertionError(f"Unknown role in view: {view.get('role')}")

    player = view.get("player")
    if player is None:
        raise AssertionError("View missing player")

    if str(player) in view.get("visible_hands", {}):
        raise AssertionError(f"Player {player}'s own hand found in visible_hands - LEAK!")

    for i, belief in enumerate(view.get("my_hand_beliefs", [])):
        if "color" in belief or "rank" in belief:
            raise AssertionError(f"Actual card data found in my_hand_beliefs[{i}] - LEAK!")

    assert_no_leaks(view)
