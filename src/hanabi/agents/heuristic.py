"""Rule-based Hanabi players driven by the belief model."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from ..belief import knowledge_for, probability_dead, probability_playable
from ..game import legal_actions
from ..models import (
    MAX_EXPLOSIONS,
    MAX_INFO_TOKENS,
    Action,
    DiscardCard,
    FullGameState,
    GiveHint,
    PlayCard,
)
from ..rules import can_play


@dataclass
class RandomAgent:
    """Uniformly random over legal actions."""

    player: int
    seed: int | None = None
    rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.rng = random.Random(self.seed)

    def decide_action(self, game: FullGameState) -> tuple[Action, str]:
        actions = legal_actions(game, self.player)
        if not actions:
            raise ValueError(f"No legal actions for player {self.player}")
        return self.rng.choice(actions), "random choice"


@dataclass(frozen=True)
class BeliefAgent:
    """
    Plays when confident, otherwise hints teammates towards playable cards,
    otherwise discards the card most likely to be useless.

    Attributes:
        player: Seat index
        play_threshold: Minimum probability of being playable before playing
        cautious_threshold: Threshold used when one more explosion loses the game
    """

    player: int
    play_threshold: float = 0.8
    cautious_threshold: float = 1.0

    def _threshold(self, game: FullGameState) -> float:
        if game.public.explosion_tokens >= MAX_EXPLOSIONS - 1:
            return self.cautious_threshold
        return self.play_threshold

    def decide_action(self, game: FullGameState) -> tuple[Action, str]:
        knowledge = knowledge_for(game, self.player)
        public = game.public
        threshold = self._threshold(game)

        # 1. Play the slot most likely to be playable
        if knowledge.own_hand:
            scores = [probability_playable(b, public) for b in knowledge.own_hand]
            best = max(range(len(scores)), key=lambda i: scores[i])
            if scores[best] >= threshold:
                return (
                    PlayCard(player=self.player, slot=best),
                    f"slot {best} playable with p={scores[best]:.2f}",
                )

        # 2. Point a teammate at a playable card they cannot yet identify
        if public.info_tokens > 0:
            hint = self._find_hint(game, knowledge.theory_of_mind, threshold)
            if hint is not None:
                return hint

        # 3. Discard the slot most likely to be dead
        if public.info_tokens < MAX_INFO_TOKENS and knowledge.own_hand:
            dead = [probability_dead(b, public) for b in knowledge.own_hand]
            slot = max(range(len(dead)), key=lambda i: dead[i])
            return (
                DiscardCard(player=self.player, slot=slot),
                f"slot {slot} dead with p={dead[slot]:.2f}",
            )

        # 4. Nothing useful: any legal hint, else whatever the rules still allow
        actions = legal_actions(game, self.player)
        for action in actions:
            if isinstance(action, GiveHint):
                return action, "filler hint"
        if not actions:
            raise ValueError(f"No legal actions for player {self.player}")
        return actions[0], "no other legal action"

    def _find_hint(
        self, game: FullGameState, theory_of_mind: dict, threshold: float
    ) -> tuple[Action, str] | None:
        n = game.num_players
        for offset in range(1, n):
            teammate = (self.player + offset) % n
            beliefs = theory_of_mind[teammate]
            for slot, card in enumerate(game.hands[teammate]):
                if not can_play(game.public, card):
                    continue
                if probability_playable(beliefs[slot], game.public) >= threshold:
                    continue  # they already know
                action = GiveHint(
                    giver=self.player,
                    receiver=teammate,
                    hint_kind="rank",
                    hint_value=card.rank,
                )
                return action, f"player {teammate} slot {slot} ({card}) is playable"
        return None
