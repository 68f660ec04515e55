"""Tests for Hanabi agents, the episode runner and metrics."""

import json
from pathlib import Path

import pytest

from src.hanabi.agents import BeliefAgent, RandomAgent
from src.hanabi.game import execute, legal_actions
from src.hanabi.metrics import compute_episode_metrics, summarize_episodes
from src.hanabi.models import (
    DiscardCard,
    EpisodeRecord,
    GameOverReason,
    GiveHint,
    HanabiConfig,
    PlayCard,
)
from src.hanabi.orchestrator import run_episode, run_turn

from hanabi_helpers import IdentityShuffle, make_game


class TestRandomAgent:
    """Tests for the random baseline."""

    def test_only_picks_legal_actions(self):
        game = make_game([["R1", "B2"], ["G1", "Y1"]], deck=["W1", "W2"])
        agent = RandomAgent(player=0, seed=3)
        legal = legal_actions(game, 0)
        for _ in range(20):
            action, _ = agent.decide_action(game)
            assert action in legal

    def test_seeded_agents_agree(self):
        game = make_game([["R1", "B2"], ["G1", "Y1"]], deck=["W1", "W2"])
        game.public.info_tokens = 4
        first = [RandomAgent(player=0, seed=11).decide_action(game)[0] for _ in range(3)]
        second = [RandomAgent(player=0, seed=11).decide_action(game)[0] for _ in range(3)]
        assert first == second


class TestBeliefAgent:
    """Tests for the belief-driven agent."""

    def test_plays_a_card_known_to_be_playable(self):
        game = make_game([["R3", "B2"], ["G1", "Y4"]], deck=["W1", "W2"])
        execute(game, GiveHint(giver=0, receiver=1, hint_kind="rank", hint_value=1))
        action, rationale = BeliefAgent(player=1).decide_action(game)
        assert action == PlayCard(player=1, slot=0)
        assert "playable" in rationale

    def test_hints_a_playable_teammate_card(self):
        game = make_game([["R3", "B2"], ["G1", "Y4"]], deck=["W1", "W2"])
        action, _ = BeliefAgent(player=0).decide_action(game)
        assert action == GiveHint(giver=0, receiver=1, hint_kind="rank", hint_value=1)

    def test_discards_without_tokens(self):
        game = make_game([["R3", "B2"], ["G1", "Y4"]], deck=["W1", "W2"])
        game.public.info_tokens = 0
        action, _ = BeliefAgent(player=0).decide_action(game)
        assert isinstance(action, DiscardCard)

    def test_discards_a_known_dead_card(self):
        game = make_game([["R4", "B2"], ["G3", "Y4"]], deck=["W1", "W2"])
        game.public.played_stacks.update({"red": 2, "white": 2, "green": 2, "blue": 2, "yellow": 2})
        game.public.info_tokens = 0
        game.knowledge[0][1].apply_rank_hint(2, touched=True)
        game.knowledge[0][1].apply_color_hint("blue", touched=True)
        game.knowledge[0][1].apply_color_hint("red", touched=False)
        action, _ = BeliefAgent(player=0).decide_action(game)
        assert action == DiscardCard(player=0, slot=1)

    def test_cautious_when_one_explosion_from_losing(self):
        game = make_game([["R3", "B2"], ["G1", "Y4"]], deck=["W1", "W2"])
        game.public.explosion_tokens = 3
        agent = BeliefAgent(player=0, play_threshold=0.0)
        action, _ = agent.decide_action(game)
        assert not isinstance(action, PlayCard)

    def test_empty_hand_falls_back_to_a_legal_hint(self):
        game = make_game([["R1"], ["G3", "Y4"]], final_round=False)
        game.hands[0].clear()
        game.knowledge[0].clear()
        action, _ = BeliefAgent(player=0).decide_action(game)
        assert isinstance(action, GiveHint)
        assert action in legal_actions(game, 0)


class TestRunEpisode:
    """Tests for the episode runner."""

    def test_belief_agents_complete_a_game(self):
        config = HanabiConfig(num_players=3, seed=7)
        agents = [BeliefAgent(player=i) for i in range(3)]
        episode = run_episode(config, agents, episode_id="ep1")

        assert episode.episode_id == "ep1"
        assert episode.seed == 7
        assert episode.game_over_reason != GameOverReason.ONGOING
        assert 0 <= episode.final_score <= 25
        assert episode.final_score == sum(episode.final_played_stacks.values())
        assert episode.history[0].outcome == "started"

    def test_same_seed_same_episode(self):
        config = HanabiConfig(num_players=2, seed=123)
        first = run_episode(config, [BeliefAgent(player=i) for i in range(2)], episode_id="a")
        second = run_episode(config, [BeliefAgent(player=i) for i in range(2)], episode_id="b")
        assert [e.message for e in first.history] == [e.message for e in second.history]
        assert first.initial_hands == second.initial_hands

    def test_emits_events(self):
        events = []
        config = HanabiConfig(num_players=2, seed=1)
        agents = [RandomAgent(player=i, seed=i) for i in range(2)]
        run_episode(config, agents, emit_fn=lambda event, payload: events.append((event, payload)))

        kinds = [event for event, _ in events]
        assert kinds[0] == "init"
        assert kinds[-1] == "done"
        assert set(kinds[1:-1]) == {"turn"}
        assert events[-1][1]["metrics"]["total_turns"] == len(kinds) - 2

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_belief_agents_finish_without_final_round(self, seed):
        config = HanabiConfig(num_players=3, seed=seed, final_round=False)
        episode = run_episode(config, [BeliefAgent(player=i) for i in range(3)])
        assert episode.game_over_reason in (
            GameOverReason.NO_LEGAL_ACTIONS,
            GameOverReason.EXPLOSION_LOSS,
            GameOverReason.VICTORY,
        )

    def test_random_agents_finish_without_final_round(self):
        config = HanabiConfig(num_players=2, seed=6, final_round=False)
        episode = run_episode(config, [RandomAgent(player=i, seed=i) for i in range(2)])
        assert episode.game_over_reason not in (GameOverReason.ONGOING, GameOverReason.TURN_LIMIT)

    def test_turn_limit(self):
        config = HanabiConfig(num_players=2, seed=5, max_turns=3)
        agents = [BeliefAgent(player=i) for i in range(2)]
        episode = run_episode(config, agents, shuffle=IdentityShuffle())
        assert episode.game_over_reason == GameOverReason.TURN_LIMIT
        assert len(episode.history) == 4

    def test_agent_count_must_match(self):
        with pytest.raises(ValueError, match="Expected 3 agents"):
            run_episode(HanabiConfig(num_players=3), [BeliefAgent(player=0)])

    def test_agents_must_sit_in_order(self):
        with pytest.raises(ValueError, match="seat 0"):
            run_episode(HanabiConfig(num_players=2), [BeliefAgent(player=1), BeliefAgent(player=0)])

    def test_run_turn_returns_rationale(self):
        game = make_game([["R1", "B2"], ["G1", "Y1"]], deck=["W1", "W2"])
        entry, rationale = run_turn(game, BeliefAgent(player=0))
        assert entry.player == 0
        assert rationale
        assert game.current_player == 1


class TestEpisodeRecord:
    """Tests for episode persistence."""

    def test_save_writes_json(self, tmp_path: Path):
        config = HanabiConfig(num_players=2, seed=9)
        episode = run_episode(config, [RandomAgent(player=i, seed=i) for i in range(2)], episode_id="save")
        path = Path(episode.save(str(tmp_path / "episodes")))

        assert path.exists()
        assert path.name.startswith("hanabi_episode_save_")
        data = json.loads(path.read_text())
        assert data["seed"] == 9
        assert data["final_score"] == episode.final_score

        loaded = EpisodeRecord.model_validate_json(path.read_text())
        assert loaded.initial_hands == episode.initial_hands
        assert len(loaded.history) == len(episode.history)


class TestMetrics:
    """Tests for episode metrics."""

    def test_counts_match_history(self):
        config = HanabiConfig(num_players=3, seed=4)
        episode = run_episode(config, [RandomAgent(player=i, seed=i) for i in range(3)])
        metrics = compute_episode_metrics(episode)

        assert metrics["total_turns"] == len(episode.history) - 1
        assert (
            metrics["hints_given"] + metrics["plays_attempted"] + metrics["discards"]
            == metrics["total_turns"]
        )
        assert metrics["plays_attempted"] == metrics["plays_successful"] + metrics["plays_failed"]
        assert metrics["score"] == episode.final_score
        assert sum(p["plays"] for p in metrics["per_player"].values()) == metrics["plays_attempted"]

    def test_summary(self):
        config = HanabiConfig(num_players=2)
        episodes = [
            run_episode(config.model_copy(update={"seed": s}), [BeliefAgent(player=i) for i in range(2)])
            for s in range(3)
        ]
        summary = summarize_episodes(episodes)
        assert summary["episodes"] == 3
        assert summary["min_score"] <= summary["mean_score"] <= summary["max_score"]
        assert sum(summary["reasons"].values()) == 3

    def test_empty_summary(self):
        assert summarize_episodes([])["episodes"] == 0
