"""Deck composition and shuffling."""

from __future__ import annotations

import random
from types import MappingProxyType
from typing import Mapping, Protocol, Sequence

from .models import COLORS, RANK_COUNTS, Card


def _build_composition() -> Mapping[Card, int]:
    composition: dict[Card, int] = {}
    for color in COLORS:
        for rank, count in RANK_COUNTS.items():
            composition[Card(color=color, rank=rank)] = count  # type: ignore[arg-type]
    return MappingProxyType(composition)


# Full 60-card composition, fixed for the lifetime of the process
DECK_COMPOSITION: Mapping[Card, int] = _build_composition()
DECK_SIZE: int = sum(DECK_COMPOSITION.values())


def create_full_deck() -> list[Card]:
    """One physical copy of every card, in composition order."""
    deck: list[Card] = []
    for card, count in DECK_COMPOSITION.items():
        deck.extend([card] * count)
    return deck


class ShuffleSource(Protocol):
    """Produces a uniformly random permutation of a card sequence."""

    def permute(self, cards: Sequence[Card]) -> list[Card]:
        ...


class FisherYatesShuffle:
    """Unbiased Fisher-Yates shuffle on a private random generator."""

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def permute(self, cards: Sequence[Card]) -> list[Card]:
        deck = list(cards)
        for i in range(len(deck) - 1, 0, -1):
            j = self.rng.randint(0, i)
            deck[i], deck[j] = deck[j], deck[i]
        return deck


def create_deck(shuffle: ShuffleSource | None = None, seed: int | None = None) -> list[Card]:
    """Create and shuffle a full deck."""
    if shuffle is None:
        shuffle = FisherYatesShuffle(seed)
    return shuffle.permute(create_full_deck())
