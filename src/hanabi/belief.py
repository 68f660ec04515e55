"""Belief tracking over hidden cards.

Every hidden slot gets a distribution over card identities derived from the
copies an observer has not yet seen. Cards still unseen are treated as
exchangeable, so the posterior is the remaining count of each identity
normalised over all identities the slot's hint knowledge still admits.

Played stacks are accounted by the cards actually played
(``PublicGameState.played_cards``), not by synthetic ``(color, 1..h)`` cards:
a multicolor card on the red stack is one fewer unseen multicolor card, and
counting it as a red card would over-count reds on a legal state.

The nested layer (``theory_of_mind``) computes the same distribution from
another player's point of view. It uses ground truth about what that player
can see, not the requesting observer's own uncertainty about it.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

from .deck import DECK_COMPOSITION
from .errors import EmptyBelief, InvalidSlot, OverobservedCard
from .models import (
    Card,
    CardBelief,
    CardKnowledge,
    FullGameState,
    PlayerKnowledge,
    PublicGameState,
)
from .rules import can_play

logger = logging.getLogger(__name__)


def compute_remaining(observed_cards: Iterable[Card]) -> dict[Card, int]:
    """Copies of each identity left after removing the observed cards."""
    remaining = dict(DECK_COMPOSITION)
    for card in observed_cards:
        count = remaining.get(card, 0) - 1
        if count < 0:
            raise OverobservedCard(card, DECK_COMPOSITION.get(card, 0))
        remaining[card] = count
    return remaining


def _belief_from_remaining(
    remaining: dict[Card, int], knowledge: CardKnowledge | None = None
) -> CardBelief:
    candidates = {
        card: count
        for card, count in remaining.items()
        if count > 0 and (knowledge is None or knowledge.admits(card))
    }
    total = sum(candidates.values())
    if total == 0:
        raise EmptyBelief("No card identity is consistent with the observations and hints")

    probs = {card: count / total for card, count in candidates.items()}
    colors = {card.color for card in probs}
    ranks = {card.rank for card in probs}
    return CardBelief(
        probs=probs,
        known=len(probs) == 1,
        known_color=next(iter(colors)) if len(colors) == 1 else None,
        known_rank=next(iter(ranks)) if len(ranks) == 1 else None,
    )


def belief_from(
    observed_cards: Iterable[Card], knowledge: CardKnowledge | None = None
) -> CardBelief:
    """Posterior over one hidden slot given the observed cards and optional hint knowledge."""
    return _belief_from_remaining(compute_remaining(observed_cards), knowledge)


def visible_cards(game: FullGameState, observer: int) -> list[Card]:
    """Every card ``observer`` can see: other hands, discards and played cards."""
    visible: list[Card] = []
    for player, hand in enumerate(game.hands):
        if player != observer:
            visible.extend(hand)
    visible.extend(game.public.discard_pile)
    visible.extend(game.public.played_cards)
    return visible


def hand_beliefs(game: FullGameState, player: int) -> list[CardBelief]:
    """What ``player`` believes about each slot of their own hand."""
    remaining = compute_remaining(visible_cards(game, player))
    return [_belief_from_remaining(remaining, k) for k in game.knowledge[player]]


def knowledge_for(game: FullGameState, observer: int) -> PlayerKnowledge:
    """
    Build the knowledge snapshot for one observer.

    Args:
        game: Game state to read. It must not be mid-action.
        observer: Player index

    Returns:
        A fresh snapshot; later changes to ``game`` do not affect it
    """
    if not 0 <= observer < game.num_players:
        raise InvalidSlot(f"Unknown player: {observer}")

    other_players = [p for p in range(game.num_players) if p != observer]
    public = game.public
    logger.debug("Computing knowledge for player %d at turn %d", observer, game.turn_number)

    return PlayerKnowledge(
        observer=observer,
        own_hand=hand_beliefs(game, observer),
        other_hands={p: list(game.hands[p]) for p in other_players},
        discard_pile=list(public.discard_pile),
        played_stacks=dict(public.played_stacks),
        played_cards=list(public.played_cards),
        info_tokens=public.info_tokens,
        explosion_tokens=public.explosion_tokens,
        deck_size=public.deck_size,
        theory_of_mind={p: hand_beliefs(game, p) for p in other_players},
    )


def probability_playable(belief: CardBelief, public: PublicGameState) -> float:
    """Chance the slot would extend a stack if played now."""
    return sum(p for card, p in belief.probs.items() if can_play(public, card))


def probability_dead(belief: CardBelief, public: PublicGameState) -> float:
    """Chance the slot can never be played because its rank is already on the stack."""
    heights = public.played_stacks
    total = 0.0
    for card, p in belief.probs.items():
        if card.is_multicolor:
            if all(height >= card.rank for height in heights.values()):
                total += p
        elif heights[card.color] >= card.rank:  # type: ignore[index]
            total += p
    return total


def expected_entropy(beliefs: Sequence[CardBelief]) -> float:
    """Mean Shannon entropy in bits across a hand, a rough measure of uncertainty."""
    if not beliefs:
        return 0.0
    total = 0.0
    for belief in beliefs:
        total -= sum(p * math.log2(p) for p in belief.probs.values() if p > 0)
    return total / len(beliefs)
