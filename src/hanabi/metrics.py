"""Metrics calculation for Hanabi games."""

from __future__ import annotations

from typing import Any

from .models import MAX_RANK, MAX_SCORE, EpisodeRecord


def compute_episode_metrics(episode: EpisodeRecord) -> dict[str, Any]:
    """
    Compute metrics for a completed Hanabi episode.

    Returns dict with:
    - score: Final score (0-25)
    - score_percentage: Score as percentage of max (25)
    - total_turns: Number of actions taken
    - hints_given / plays_attempted / plays_successful / plays_failed / discards
    - multicolor_placements: Stack chosen for each successfully played multicolor card
    - hint_efficiency: Successful plays per hint given
    - per_player: Per-player breakdown
    """
    hints_given = 0
    plays_attempted = 0
    plays_successful = 0
    plays_failed = 0
    discards = 0
    multicolor_placements: dict[str, int] = {}

    per_player: dict[int, dict[str, int]] = {}

    turns = [e for e in episode.history if e.outcome != "started"]
    for entry in turns:
        stats = per_player.setdefault(entry.player, {  # type: ignore[arg-type]
            "hints": 0,
            "plays": 0,
            "plays_successful": 0,
            "plays_failed": 0,
            "discards": 0,
        })

        if entry.outcome == "hinted":
            hints_given += 1
            stats["hints"] += 1
        elif entry.outcome in ("played", "exploded"):
            plays_attempted += 1
            stats["plays"] += 1
            if entry.outcome == "played":
                plays_successful += 1
                stats["plays_successful"] += 1
                if entry.target_color is not None:
                    multicolor_placements[entry.target_color] = (
                        multicolor_placements.get(entry.target_color, 0) + 1
                    )
            else:
                plays_failed += 1
                stats["plays_failed"] += 1
        elif entry.outcome == "discarded":
            discards += 1
            stats["discards"] += 1

    hint_efficiency = plays_successful / hints_given if hints_given > 0 else 0.0
    play_success_rate = plays_successful / plays_attempted if plays_attempted > 0 else 0.0

    return {
        "score": episode.final_score,
        "score_percentage": round(episode.final_score / MAX_SCORE * 100, 1),
        "max_possible_score": MAX_SCORE,
        "total_turns": len(turns),
        "game_over_reason": episode.game_over_reason.value,

        # Action counts
        "hints_given": hints_given,
        "plays_attempted": plays_attempted,
        "plays_successful": plays_successful,
        "plays_failed": plays_failed,
        "discards": discards,
        "multicolor_placements": multicolor_placements,

        # Derived metrics
        "hint_efficiency": round(hint_efficiency, 3),
        "play_success_rate": round(play_success_rate, 3),
        "explosions": plays_failed,

        # Per-color breakdown
        "stacks_completed": sum(1 for v in episode.final_played_stacks.values() if v == MAX_RANK),
        "per_color": dict(episode.final_played_stacks),

        "per_player": per_player,
    }


def summarize_episodes(episodes: list[EpisodeRecord]) -> dict[str, Any]:
    """Aggregate scores across several episodes."""
    if not episodes:
        return {"episodes": 0, "mean_score": 0.0, "perfect_games": 0, "reasons": {}}

    scores = [e.final_score for e in episodes]
    reasons: dict[str, int] = {}
    for e in episodes:
        reasons[e.game_over_reason.value] = reasons.get(e.game_over_reason.value, 0) + 1

    return {
        "episodes": len(episodes),
        "mean_score": round(sum(scores) / len(scores), 2),
        "min_score": min(scores),
        "max_score": max(scores),
        "perfect_games": sum(1 for s in scores if s == MAX_SCORE),
        "reasons": reasons,
    }
