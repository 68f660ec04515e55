"""Core game logic for Hanabi: setup and the action engine."""

from __future__ import annotations

import logging
import random
from typing import Callable, Sequence

from .deck import DECK_SIZE, FisherYatesShuffle, ShuffleSource, create_full_deck
from .errors import (
    ConfigurationError,
    DiscardNotAllowed,
    GameAlreadyOver,
    InvalidHint,
    InvalidSlot,
    NotYourTurn,
)
from .models import (
    MAX_INFO_TOKENS,
    RANKS,
    STACK_COLORS,
    Action,
    Card,
    CardKnowledge,
    DiscardCard,
    FullGameState,
    GameOverReason,
    GiveHint,
    HanabiConfig,
    HistoryEntry,
    Outcome,
    PlayCard,
    PublicGameState,
    StackColor,
)
from .rules import (
    can_play,
    discard,
    fail_play,
    is_game_over,
    play_multicolor,
    play_ordinary,
    refund_info_token,
    use_info_token,
    valid_targets,
)

logger = logging.getLogger(__name__)


# Chooses the stack a playable multicolor card lands on. Called with the
# sorted, non-empty list of legal targets; must return one of them.
PlacementPolicy = Callable[[Sequence[StackColor], FullGameState], StackColor]


class RandomPlacement:
    """Uniformly random placement."""

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def __call__(self, options: Sequence[StackColor], game: FullGameState) -> StackColor:
        return self.rng.choice(list(options))


def first_valid_placement(options: Sequence[StackColor], game: FullGameState) -> StackColor:
    """Deterministic placement on the first legal stack in table order."""
    return options[0]


DEFAULT_PLACEMENT: PlacementPolicy = RandomPlacement()


def create_game(config: HanabiConfig, shuffle: ShuffleSource | None = None) -> FullGameState:
    """
    Create a new Hanabi game.

    Args:
        config: Game configuration
        shuffle: Optional permutation source. If None, a Fisher-Yates shuffle
            seeded from ``config.seed`` is used.

    Returns:
        Initial game state with dealt hands
    """
    if config.num_players < 2:
        raise ConfigurationError(f"Need at least 2 players, got {config.num_players}")
    if config.hand_size < 1:
        raise ConfigurationError(f"Hand size must be positive, got {config.hand_size}")
    if config.num_players * config.hand_size > DECK_SIZE:
        raise ConfigurationError(
            f"Cannot deal {config.hand_size} cards to {config.num_players} players "
            f"from a {DECK_SIZE}-card deck"
        )

    seed = config.seed if config.seed is not None else random.randint(0, 2**31 - 1)
    config = config.model_copy(update={"seed": seed})

    if shuffle is None:
        shuffle = FisherYatesShuffle(seed)
    deck = shuffle.permute(create_full_deck())

    # Each player takes the next hand_size cards from the front of the deck
    hands: list[list[Card]] = []
    for player in range(config.num_players):
        start = player * config.hand_size
        hands.append(deck[start:start + config.hand_size])
    deck = deck[config.num_players * config.hand_size:]

    knowledge = [[CardKnowledge() for _ in hand] for hand in hands]
    public = PublicGameState.initial(deck_size=len(deck))

    game = FullGameState(
        config=config,
        public=public,
        hands=hands,
        knowledge=knowledge,
        deck=deck,
    )
    if not deck and config.final_round:
        # Everything was dealt: one round remains, starting with player 0
        game.final_round_player = 0
    game.history.append(
        _entry(game, None, None, "started", f"Game started with {config.num_players} players")
    )
    logger.info(
        "Created game: %d players, %d cards each, seed=%d",
        config.num_players, config.hand_size, seed,
    )
    return game


def init_game(
    num_players: int = 3,
    cards_per_player: int = 5,
    *,
    seed: int | None = None,
    shuffle: ShuffleSource | None = None,
) -> FullGameState:
    """Deal a fresh game with default rules."""
    config = HanabiConfig(num_players=num_players, hand_size=cards_per_player, seed=seed)
    return create_game(config, shuffle)


def snapshot(game: FullGameState) -> FullGameState:
    """Point-in-time copy, safe to read while the original keeps changing."""
    return game.model_copy(deep=True)


def _entry(
    game: FullGameState,
    player: int | None,
    action: Action | None,
    outcome: Outcome,
    message: str,
    **extra,
) -> HistoryEntry:
    return HistoryEntry(
        turn_number=game.turn_number,
        player=player,
        action=action,
        outcome=outcome,
        message=message,
        info_tokens_after=game.public.info_tokens,
        explosion_tokens_after=game.public.explosion_tokens,
        score_after=game.score,
        **extra,
    )


def _check_player(game: FullGameState, player: int) -> None:
    if not 0 <= player < game.num_players:
        raise InvalidSlot(f"Unknown player: {player}")


def _card_at(game: FullGameState, player: int, slot: int) -> Card:
    hand = game.hands[player]
    if not 0 <= slot < len(hand):
        raise InvalidSlot(f"Invalid slot {slot} for player {player} (hand size {len(hand)})")
    return hand[slot]


def _remove_and_draw(game: FullGameState, player: int, slot: int) -> None:
    """
    Take the card out of the hand and refill from the front of the deck.

    The final round is keyed on seat rotation: drawing the last card records
    the seat whose turn it is (``current_player``), which differs from the
    acting player only when turn order is not enforced.
    """
    game.hands[player].pop(slot)
    game.knowledge[player].pop(slot)

    if game.deck:
        game.hands[player].append(game.deck.pop(0))
        game.knowledge[player].append(CardKnowledge())

        if not game.deck and game.config.final_round and game.final_round_player is None:
            game.final_round_player = game.current_player
            logger.info(
                "Deck exhausted on seat %d's turn; final round begins", game.current_player
            )

    game.public.deck_size = len(game.deck)


def _apply_play(
    game: FullGameState, action: PlayCard, placement: PlacementPolicy
) -> HistoryEntry:
    card = _card_at(game, action.player, action.slot)
    public = game.public
    target: StackColor | None = None

    if can_play(public, card):
        if card.is_multicolor:
            options = sorted(valid_targets(public, card.rank), key=STACK_COLORS.index)
            target = placement(options, game)
            play_multicolor(public, card, target)
            result = f"successful, placed on {target}"
        else:
            play_ordinary(public, card)
            result = "successful"
        outcome: Outcome = "played"
    else:
        fail_play(public, card)
        result = "failed (explosion)"
        outcome = "exploded"

    _remove_and_draw(game, action.player, action.slot)
    return _entry(
        game,
        action.player,
        action,
        outcome,
        f"Player {action.player} attempts to play {card}: {result}",
        card=card,
        target_color=target,
    )


def _apply_discard(game: FullGameState, action: DiscardCard) -> HistoryEntry:
    card = _card_at(game, action.player, action.slot)
    if game.public.info_tokens >= MAX_INFO_TOKENS:
        raise DiscardNotAllowed(
            f"Cannot discard when info tokens are at maximum ({MAX_INFO_TOKENS})"
        )

    discard(game.public, card)
    refund_info_token(game.public)
    _remove_and_draw(game, action.player, action.slot)
    return _entry(
        game,
        action.player,
        action,
        "discarded",
        f"Player {action.player} discards {card}",
        card=card,
    )


def hint_matches(card: Card, hint_kind: str, hint_value: object) -> bool:
    """Whether a hint touches a card. Multicolor cards answer to every color."""
    if hint_kind == "color":
        return card.color == hint_value or card.is_multicolor
    return card.rank == hint_value


def _validate_hint(game: FullGameState, action: GiveHint) -> None:
    if not 0 <= action.receiver < game.num_players:
        raise InvalidHint(f"Unknown receiver: {action.receiver}")
    if action.receiver == action.giver:
        raise InvalidHint("Cannot give a hint to yourself")
    if action.hint_kind == "color":
        if action.hint_value not in STACK_COLORS:
            raise InvalidHint(f"Invalid color hint: {action.hint_value!r}")
    elif isinstance(action.hint_value, bool) or action.hint_value not in RANKS:
        raise InvalidHint(f"Invalid rank hint: {action.hint_value!r}")


def _apply_hint(game: FullGameState, action: GiveHint) -> HistoryEntry:
    _validate_hint(game, action)

    target_hand = game.hands[action.receiver]
    touched = [
        i for i, card in enumerate(target_hand)
        if hint_matches(card, action.hint_kind, action.hint_value)
    ]
    if not touched:
        raise InvalidHint(
            f"Hint must touch at least one card. No cards match "
            f"{action.hint_kind}={action.hint_value}"
        )

    use_info_token(game.public)

    for i, knowledge in enumerate(game.knowledge[action.receiver]):
        if action.hint_kind == "color":
            knowledge.apply_color_hint(action.hint_value, i in touched)  # type: ignore[arg-type]
        else:
            knowledge.apply_rank_hint(action.hint_value, i in touched)  # type: ignore[arg-type]

    return _entry(
        game,
        action.giver,
        action,
        "hinted",
        f"Player {action.giver} tells player {action.receiver} about "
        f"{action.hint_kind}={action.hint_value}, touching slots {touched}",
        slots_touched=touched,
    )


def execute(
    game: FullGameState,
    action: Action,
    *,
    placement: PlacementPolicy | None = None,
) -> HistoryEntry:
    """
    Apply an action to the game state in place.

    Every precondition is checked before the first mutation, so a raised
    ``RuleViolation`` leaves the game untouched. An unplayable card is not an
    error: it costs an explosion token and is reported as ``"exploded"``.

    Returns:
        The history entry appended for this action
    """
    if game.game_over:
        raise GameAlreadyOver(f"Game is already over ({game.game_over_reason.value})")

    _check_player(game, action.player)
    if game.config.enforce_turn_order and action.player != game.current_player:
        raise NotYourTurn(
            f"Not player {action.player}'s turn (current: {game.current_player})"
        )

    match action:
        case PlayCard():
            entry = _apply_play(game, action, placement or DEFAULT_PLACEMENT)
        case DiscardCard():
            entry = _apply_discard(game, action)
        case GiveHint():
            entry = _apply_hint(game, action)
        case _:
            raise TypeError(f"Unknown action type: {type(action).__name__}")

    game.history.append(entry)
    logger.debug(entry.message)

    over, reason = check_terminal(game)
    if over:
        game.game_over = True
        game.game_over_reason = reason
        logger.info("Game over after turn %d: %s (score %d)", game.turn_number, reason.value, game.score)
    else:
        game.current_player = (game.current_player + 1) % game.num_players
        game.turn_number += 1

    return entry


def can_act(game: FullGameState, player: int) -> bool:
    """Whether ``player`` has at least one legal action.

    Any card in another hand can be touched by a hint naming its rank, so a
    seat with an empty hand can still act while it holds a token and a
    teammate holds a card.
    """
    if game.hands[player]:
        return True
    return game.public.info_tokens > 0 and any(
        hand for other, hand in enumerate(game.hands) if other != player
    )


def check_terminal(game: FullGameState) -> tuple[bool, GameOverReason]:
    """
    Check if the game has ended.

    Evaluated after ``current_player`` has acted. Explosion loss and victory
    come from the public state. Once the deck is exhausted, the game also ends
    after the player seated before the one who drew the last card has taken
    their final turn. Without a final round hands shrink instead, and the game
    ends as soon as the next seat in rotation has no legal action.
    """
    over, reason = is_game_over(game.public)
    if over:
        return over, reason

    if game.final_round_player is not None:
        last_turn = (game.final_round_player - 1) % game.num_players
        if game.current_player == last_turn:
            return True, GameOverReason.FINAL_ROUND_COMPLETE

    next_player = (game.current_player + 1) % game.num_players
    if not game.deck and not can_act(game, next_player):
        return True, GameOverReason.NO_LEGAL_ACTIONS

    return False, GameOverReason.ONGOING


def legal_actions(game: FullGameState, player: int) -> list[Action]:
    """All actions ``player`` could take now without raising."""
    if game.game_over:
        return []

    actions: list[Action] = [PlayCard(player=player, slot=i) for i in range(len(game.hands[player]))]

    if game.public.info_tokens < MAX_INFO_TOKENS:
        actions.extend(DiscardCard(player=player, slot=i) for i in range(len(game.hands[player])))

    if game.public.info_tokens > 0:
        for receiver, hand in enumerate(game.hands):
            if receiver == player:
                continue
            for color in STACK_COLORS:
                if any(hint_matches(card, "color", color) for card in hand):
                    actions.append(GiveHint(giver=player, receiver=receiver, hint_kind="color", hint_value=color))
            for rank in RANKS:
                if any(card.rank == rank for card in hand):
                    actions.append(GiveHint(giver=player, receiver=receiver, hint_kind="rank", hint_value=rank))

    return actions
