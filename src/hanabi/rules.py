"""Rule predicates and mutators over the public game state.

Predicates are pure. Mutators update the state in place and raise a
``RuleViolation`` when their precondition does not hold; callers are expected
to check the matching predicate first.
"""

from __future__ import annotations

from .errors import (
    DiscardNotAllowed,
    IllegalPlay,
    InvalidTarget,
    NoTokensAvailable,
    WrongCardKind,
)
from .models import (
    MAX_EXPLOSIONS,
    MAX_INFO_TOKENS,
    MAX_RANK,
    STACK_COLORS,
    Card,
    GameOverReason,
    PublicGameState,
    StackColor,
)


def can_play(state: PublicGameState, card: Card) -> bool:
    """Check whether a card would extend a stack."""
    if card.is_multicolor:
        return bool(valid_targets(state, card.rank))
    return card.rank == state.played_stacks[card.color] + 1  # type: ignore[index]


def valid_targets(state: PublicGameState, rank: int) -> set[StackColor]:
    """Stacks a multicolor card of ``rank`` could be placed on."""
    return {color for color, height in state.played_stacks.items() if height == rank - 1}


def _commit(state: PublicGameState, card: Card, color: StackColor) -> None:
    state.played_stacks[color] = card.rank
    state.played_cards.append(card)
    if card.rank == MAX_RANK and state.info_tokens < MAX_INFO_TOKENS:
        state.info_tokens += 1


def play_ordinary(state: PublicGameState, card: Card) -> PublicGameState:
    if card.is_multicolor:
        raise WrongCardKind(f"Use play_multicolor for multicolor card {card}")
    if not can_play(state, card):
        raise IllegalPlay(
            f"Cannot play {card}: {card.color} stack is at {state.played_stacks[card.color]}"  # type: ignore[index]
        )
    _commit(state, card, card.color)  # type: ignore[arg-type]
    return state


def play_multicolor(state: PublicGameState, card: Card, target_color: str) -> PublicGameState:
    if not card.is_multicolor:
        raise WrongCardKind(f"play_multicolor called with ordinary card {card}")
    targets = valid_targets(state, card.rank)
    if target_color not in targets:
        raise InvalidTarget(
            f"Invalid target {target_color!r} for {card}; valid targets: {sorted(targets)}"
        )
    _commit(state, card, target_color)  # type: ignore[arg-type]
    return state


def discard(state: PublicGameState, card: Card) -> PublicGameState:
    """Append to the discard pile. The info-token cap is the caller's concern."""
    state.discard_pile.append(card)
    return state


def fail_play(state: PublicGameState, card: Card) -> PublicGameState:
    """Resolve an unplayable card: one explosion, card goes to the discard pile."""
    state.explosion_tokens += 1
    state.discard_pile.append(card)
    return state


def use_info_token(state: PublicGameState) -> PublicGameState:
    if state.info_tokens <= 0:
        raise NoTokensAvailable("No information tokens available")
    state.info_tokens -= 1
    return state


def refund_info_token(state: PublicGameState) -> PublicGameState:
    if state.info_tokens >= MAX_INFO_TOKENS:
        raise DiscardNotAllowed(
            f"Info tokens already at maximum ({MAX_INFO_TOKENS}); discarding would waste the refund"
        )
    state.info_tokens += 1
    return state


def is_game_over(state: PublicGameState) -> tuple[bool, GameOverReason]:
    if state.explosion_tokens >= MAX_EXPLOSIONS:
        return True, GameOverReason.EXPLOSION_LOSS
    if all(state.played_stacks[color] == MAX_RANK for color in STACK_COLORS):
        return True, GameOverReason.VICTORY
    return False, GameOverReason.ONGOING


def score(state: PublicGameState) -> int:
    return sum(state.played_stacks.values())


def playable_ranks(state: PublicGameState) -> dict[StackColor, int]:
    """Next rank each unfinished stack needs."""
    return {
        color: height + 1
        for color, height in state.played_stacks.items()
        if height < MAX_RANK
    }
