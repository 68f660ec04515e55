"""Orchestrator for running Hanabi games."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Sequence

from .agents.base import HanabiAgent
from .deck import ShuffleSource
from .game import PlacementPolicy, RandomPlacement, create_game, execute
from .metrics import compute_episode_metrics
from .models import (
    EpisodeRecord,
    FullGameState,
    GameOverReason,
    HanabiConfig,
    HistoryEntry,
)

logger = logging.getLogger(__name__)

EmitFn = Callable[[str, dict[str, Any]], None]


def _state_payload(game: FullGameState) -> dict[str, Any]:
    """Full state for an observer that sees everything (viewer, logs)."""
    return {
        "hands": [[str(c) for c in hand] for hand in game.hands],
        "knowledge": [
            [k.model_dump(mode="json") for k in knowledge]
            for knowledge in game.knowledge
        ],
        "played_stacks": dict(game.public.played_stacks),
        "discard_pile": [str(c) for c in game.public.discard_pile],
        "info_tokens": game.public.info_tokens,
        "explosion_tokens": game.public.explosion_tokens,
        "deck_remaining": len(game.deck),
        "score": game.score,
        "current_player": game.current_player,
    }


def run_turn(
    game: FullGameState,
    agent: HanabiAgent,
    placement: PlacementPolicy | None = None,
    emit_fn: EmitFn | None = None,
) -> tuple[HistoryEntry, str]:
    """
    Execute a single turn.

    Args:
        game: Current game state, updated in place
        agent: The agent whose turn it is
        placement: Policy for multicolor placement
        emit_fn: Optional callback for emitting events

    Returns:
        (history_entry, rationale)
    """
    action, rationale = agent.decide_action(game)
    entry = execute(game, action, placement=placement)

    if emit_fn is not None:
        emit_fn("turn", {
            "turn_number": entry.turn_number,
            "player": entry.player,
            "action": action.model_dump(mode="json"),
            "outcome": entry.outcome,
            "message": entry.message,
            "rationale": rationale,
            **_state_payload(game),
        })

    return entry, rationale


def run_episode(
    config: HanabiConfig,
    agents: Sequence[HanabiAgent],
    emit_fn: EmitFn | None = None,
    episode_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    shuffle: ShuffleSource | None = None,
    placement: PlacementPolicy | None = None,
) -> EpisodeRecord:
    """
    Run a complete Hanabi episode.

    Args:
        config: Game configuration
        agents: One agent per seat, in seat order
        emit_fn: Optional callback for emitting events
        episode_id: Optional episode ID (generated if not provided)
        metadata: Optional metadata to include in record
        shuffle: Optional deck permutation source
        placement: Optional multicolor placement policy (seeded random by default)

    Returns:
        Complete episode record
    """
    if len(agents) != config.num_players:
        raise ValueError(f"Expected {config.num_players} agents, got {len(agents)}")
    for seat, agent in enumerate(agents):
        if agent.player != seat:
            raise ValueError(f"Agent at seat {seat} is configured for player {agent.player}")

    if episode_id is None:
        episode_id = str(uuid.uuid4())[:8]

    game = create_game(config, shuffle)
    seed = game.config.seed
    if placement is None:
        placement = RandomPlacement(seed)

    initial_hands = [list(hand) for hand in game.hands]
    logger.info("Starting episode %s (seed=%d, %d players)", episode_id, seed, game.num_players)

    if emit_fn is not None:
        emit_fn("init", {
            "game_type": "hanabi",
            "episode_id": episode_id,
            "config": game.config.model_dump(mode="json"),
            **_state_payload(game),
        })

    turns = 0
    while not game.game_over:
        if turns >= config.max_turns:
            game.game_over = True
            game.game_over_reason = GameOverReason.TURN_LIMIT
            logger.warning("Episode %s hit the turn limit (%d)", episode_id, config.max_turns)
            break
        run_turn(game, agents[game.current_player], placement, emit_fn)
        turns += 1

    episode = EpisodeRecord(
        episode_id=episode_id,
        config=game.config,
        seed=seed,
        initial_hands=initial_hands,
        history=list(game.history),
        final_score=game.score,
        final_played_stacks=dict(game.public.played_stacks),
        game_over_reason=game.game_over_reason,
        metadata=metadata or {},
    )
    logger.info(
        "Episode %s finished: score %d (%s) after %d turns",
        episode_id, episode.final_score, episode.game_over_reason.value, turns,
    )

    if emit_fn is not None:
        emit_fn("done", {
            "episode_id": episode_id,
            "final_score": episode.final_score,
            "game_over_reason": episode.game_over_reason.value,
            "total_turns": turns,
            "metrics": compute_episode_metrics(episode),
        })

    return episode
