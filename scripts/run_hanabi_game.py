#!/usr/bin/env python3
"""Run Hanabi games between rule-based agents and report scores."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add repo root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from src.hanabi.agents import BeliefAgent, RandomAgent
from src.hanabi.metrics import compute_episode_metrics, summarize_episodes
from src.hanabi.models import EpisodeRecord, HanabiConfig
from src.hanabi.orchestrator import run_episode

logger = logging.getLogger("run_hanabi_game")


class Colors:
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def print_event(event: str, payload: dict) -> None:
    if event == "turn":
        print(f"  T{payload['turn_number']:>3} {payload['message']}  ({payload['rationale']})")
    elif event == "done":
        print(f"{Colors.BOLD}Final score: {payload['final_score']}{Colors.RESET} ({payload['game_over_reason']})")


def build_agents(kind: str, num_players: int, seed: int | None) -> list:
    if kind == "random":
        return [RandomAgent(player=i, seed=None if seed is None else seed + i) for i in range(num_players)]
    return [BeliefAgent(player=i) for i in range(num_players)]


def main() -> None:
    env_seed = os.environ.get("HANABI_SEED")
    parser = argparse.ArgumentParser(description="Run Hanabi games with rule-based agents")
    parser.add_argument("--players", type=int, default=3)
    parser.add_argument("--hand-size", type=int, default=5)
    parser.add_argument("--games", type=int, default=1, help="Number of games to play")
    parser.add_argument("--seed", type=int, default=int(env_seed) if env_seed else None)
    parser.add_argument("--agent", choices=["belief", "random"], default="belief")
    parser.add_argument("--no-final-round", action="store_true", help="Deck exhaustion does not end the game")
    parser.add_argument("--output-dir", default=os.environ.get("HANABI_OUTPUT_DIR"))
    parser.add_argument("--log-level", default=os.environ.get("HANABI_LOG_LEVEL", "WARNING"))
    parser.add_argument("--verbose", "-v", action="store_true", help="Print every turn")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    episodes: list[EpisodeRecord] = []
    for game_index in range(args.games):
        seed = None if args.seed is None else args.seed + game_index
        config = HanabiConfig(
            num_players=args.players,
            hand_size=args.hand_size,
            seed=seed,
            final_round=not args.no_final_round,
        )
        agents = build_agents(args.agent, args.players, seed)
        episode = run_episode(
            config,
            agents,
            emit_fn=print_event if args.verbose else None,
            metadata={"agent": args.agent},
        )
        episodes.append(episode)

        metrics = compute_episode_metrics(episode)
        color = Colors.GREEN if episode.final_score >= 20 else Colors.YELLOW
        if episode.game_over_reason.value == "explosion_loss":
            color = Colors.RED
        print(
            f"Game {game_index + 1}: {color}{episode.final_score}/25{Colors.RESET} "
            f"({episode.game_over_reason.value}, {metrics['total_turns']} turns, "
            f"{metrics['explosions']} explosions)"
        )

        if args.output_dir:
            path = episode.save(args.output_dir)
            logger.info("Saved episode to %s", path)

    if len(episodes) > 1:
        print(json.dumps(summarize_episodes(episodes), indent=2))


if __name__ == "__main__":
    main()
