"""Hanabi game engine with belief tracking and theory-of-mind modelling."""

from .models import (
    Card,
    CardKnowledge,
    CardBelief,
    PlayerKnowledge,
    PlayCard,
    DiscardCard,
    GiveHint,
    Action,
    GameOverReason,
    HistoryEntry,
    HanabiConfig,
    PublicGameState,
    FullGameState,
    EpisodeRecord,
)
from .errors import (
    HanabiError,
    RuleViolation,
    InvariantViolation,
    OverobservedCard,
)
from .deck import (
    DECK_COMPOSITION,
    create_full_deck,
    create_deck,
    FisherYatesShuffle,
)
from .game import (
    create_game,
    init_game,
    execute,
    check_terminal,
    can_act,
    legal_actions,
    RandomPlacement,
)
from .belief import (
    compute_remaining,
    belief_from,
    knowledge_for,
)
from .visibility import (
    view_for_player,
    assert_no_leaks,
)

__all__ = [
    # Models
    "Card",
    "CardKnowledge",
    "CardBelief",
    "PlayerKnowledge",
    "PlayCard",
    "DiscardCard",
    "GiveHint",
    "Action",
    "GameOverReason",
    "HistoryEntry",
    "HanabiConfig",
    "PublicGameState",
    "FullGameState",
    "EpisodeRecord",
    # Errors
    "HanabiError",
    "RuleViolation",
    "InvariantViolation",
    "OverobservedCard",
    # Deck
    "DECK_COMPOSITION",
    "create_full_deck",
    "create_deck",
    "FisherYatesShuffle",
    # Game
    "create_game",
    "init_game",
    "execute",
    "check_terminal",
    "can_act",
    "legal_actions",
    "RandomPlacement",
    # Belief
    "compute_remaining",
    "belief_from",
    "knowledge_for",
    # Visibility
    "view_for_player",
    "assert_no_leaks",
]
