"""Data models for the Hanabi game engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer


# Card colors and ranks
StackColor = Literal["red", "white", "green", "blue", "yellow"]
Color = Literal["red", "white", "green", "blue", "yellow", "multicolor"]
Rank = Literal[1, 2, 3, 4, 5]

STACK_COLORS: tuple[StackColor, ...] = ("red", "white", "green", "blue", "yellow")
MULTICOLOR: Color = "multicolor"
COLORS: tuple[Color, ...] = (*STACK_COLORS, MULTICOLOR)
RANKS: tuple[Rank, ...] = (1, 2, 3, 4, 5)

# Per color: 1s x3, 2s x2, 3s x2, 4s x2, 5s x1 = 10 cards, 60 across six colors
RANK_COUNTS: dict[int, int] = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}

MAX_RANK = 5
MAX_INFO_TOKENS = 8
MAX_EXPLOSIONS = 4
MAX_SCORE = MAX_RANK * len(STACK_COLORS)

COLOR_CODES: dict[str, str] = {
    "red": "R",
    "white": "W",
    "green": "G",
    "blue": "B",
    "yellow": "Y",
    "multicolor": "M",
}
CODE_COLORS: dict[str, str] = {v: k for k, v in COLOR_CODES.items()}


class Card(BaseModel):
    """A card identity. Copies with the same color and rank are interchangeable."""

    model_config = ConfigDict(frozen=True)

    color: Color
    rank: Rank

    def __str__(self) -> str:
        return f"{COLOR_CODES[self.color]}{self.rank}"

    @property
    def is_multicolor(self) -> bool:
        return self.color == MULTICOLOR

    @classmethod
    def from_code(cls, code: str) -> "Card":
        """Parse a short code such as ``"R3"`` or ``"M5"``."""
        code = code.strip().upper()
        if len(code) != 2 or code[0] not in CODE_COLORS or not code[1].isdigit():
            raise ValueError(f"Invalid card code: {code!r}")
        return cls(color=CODE_COLORS[code[0]], rank=int(code[1]))  # type: ignore[arg-type]


class CardKnowledge(BaseModel):
    """What a player has learned about one of their own slots from hints."""

    possible_colors: set[Color] = Field(default_factory=lambda: set(COLORS))
    possible_ranks: set[Rank] = Field(default_factory=lambda: set(RANKS))
    hinted_colors: set[StackColor] = Field(default_factory=set)
    hinted_ranks: set[Rank] = Field(default_factory=set)

    @property
    def known_color(self) -> Color | None:
        if len(self.possible_colors) == 1:
            return next(iter(self.possible_colors))
        return None

    @property
    def known_rank(self) -> Rank | None:
        if len(self.possible_ranks) == 1:
            return next(iter(self.possible_ranks))
        return None

    def admits(self, card: Card) -> bool:
        return card.color in self.possible_colors and card.rank in self.possible_ranks

    def apply_color_hint(self, color: StackColor, touched: bool) -> None:
        # Multicolor cards answer to every color hint
        if touched:
            self.possible_colors &= {color, MULTICOLOR}
            self.hinted_colors.add(color)
        else:
            self.possible_colors -= {color, MULTICOLOR}

    def apply_rank_hint(self, rank: Rank, touched: bool) -> None:
        if touched:
            self.possible_ranks &= {rank}
            self.hinted_ranks.add(rank)
        else:
            self.possible_ranks.discard(rank)

    @field_serializer("possible_colors", "hinted_colors")
    def _serialize_colors(self, colors: set[str]) -> list[str]:
        return [c for c in COLORS if c in colors]

    @field_serializer("possible_ranks", "hinted_ranks")
    def _serialize_ranks(self, ranks: set[int]) -> list[int]:
        return sorted(ranks)


# Action types
class PlayCard(BaseModel):
    """Play the card in ``slot`` (0-indexed) of the player's hand."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["play"] = "play"
    player: int = Field(ge=0)
    slot: int = Field(ge=0)


class DiscardCard(BaseModel):
    """Discard the card in ``slot`` (0-indexed) to regain an info token."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["discard"] = "discard"
    player: int = Field(ge=0)
    slot: int = Field(ge=0)


class GiveHint(BaseModel):
    """Tell ``receiver`` which of their cards match a color or a rank."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["hint"] = "hint"
    giver: int = Field(ge=0)
    receiver: int = Field(ge=0)
    hint_kind: Literal["color", "rank"]
    hint_value: Color | int

    @property
    def player(self) -> int:
        return self.giver


Action = Annotated[Union[PlayCard, DiscardCard, GiveHint], Field(discriminator="action_type")]
ACTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Action)


class GameOverReason(str, Enum):
    ONGOING = "ongoing"
    VICTORY = "victory"
    EXPLOSION_LOSS = "explosion_loss"
    FINAL_ROUND_COMPLETE = "final_round_complete"
    TURN_LIMIT = "turn_limit"
    # Deck exhausted without a final round and the next seat cannot act
    NO_LEGAL_ACTIONS = "no_legal_actions"


Outcome = Literal["played", "exploded", "discarded", "hinted", "started"]


class HistoryEntry(BaseModel):
    """Audit record of one event. Never consulted by the rules."""

    turn_number: int
    player: int | None = None
    action: Action | None = None
    outcome: Outcome
    message: str
    card: Card | None = None
    target_color: StackColor | None = None  # multicolor placement
    slots_touched: list[int] | None = None  # hint actions

    # Snapshot after the event
    info_tokens_after: int
    explosion_tokens_after: int
    score_after: int


class HanabiConfig(BaseModel):
    """Configuration for a Hanabi game."""

    num_players: int = 3
    hand_size: int = 5
    seed: int | None = None

    # Reject actions from anyone but the current player
    enforce_turn_order: bool = True
    # After the last card is drawn every player gets one more turn
    final_round: bool = True
    # Orchestrator safety limit
    max_turns: int = 200


class PublicGameState(BaseModel):
    """Facts every player can see. Card identities in hands or deck never appear here."""

    model_config = ConfigDict(validate_assignment=True)

    played_stacks: dict[StackColor, Annotated[int, Field(ge=0, le=MAX_RANK)]] = Field(
        default_factory=lambda: {color: 0 for color in STACK_COLORS}
    )
    info_tokens: int = Field(default=MAX_INFO_TOKENS, ge=0, le=MAX_INFO_TOKENS)
    explosion_tokens: int = Field(default=0, ge=0, le=MAX_EXPLOSIONS)
    discard_pile: list[Card] = Field(default_factory=list)
    # Cards successfully played, in order. Multicolor cards keep their own
    # identity here even though they count towards an ordinary stack.
    played_cards: list[Card] = Field(default_factory=list)
    deck_size: int = Field(default=0, ge=0)

    @classmethod
    def initial(cls, deck_size: int) -> "PublicGameState":
        return cls(deck_size=deck_size)


class FullGameState(BaseModel):
    """Authoritative game state including hidden hands and deck order."""

    config: HanabiConfig
    public: PublicGameState

    # Player index -> cards by slot
    hands: list[list[Card]]

    # Hint knowledge, parallel to hands
    knowledge: list[list[CardKnowledge]]

    # Front of the list is the next card drawn
    deck: list[Card]

    current_player: int = 0
    turn_number: int = 1
    history: list[HistoryEntry] = Field(default_factory=list)

    # Player who drew the last card, once the deck has run out
    final_round_player: int | None = None
    game_over: bool = False
    game_over_reason: GameOverReason = GameOverReason.ONGOING

    @property
    def num_players(self) -> int:
        return len(self.hands)

    @property
    def score(self) -> int:
        return sum(self.public.played_stacks.values())

    def card_count(self) -> int:
        """Cards accounted for across hands, deck, discard pile and stacks."""
        in_hands = sum(len(hand) for hand in self.hands)
        return (
            in_hands
            + len(self.deck)
            + len(self.public.discard_pile)
            + len(self.public.played_cards)
        )


class CardBelief(BaseModel):
    """Probability distribution over the identity of one hidden slot."""

    model_config = ConfigDict(frozen=True)

    probs: dict[Card, float]
    known: bool = False
    known_color: Color | None = None
    known_rank: Rank | None = None

    def probability(self, card: Card) -> float:
        return self.probs.get(card, 0.0)

    def color_marginals(self) -> dict[Color, float]:
        marginals: dict[Color, float] = {}
        for card, p in self.probs.items():
            marginals[card.color] = marginals.get(card.color, 0.0) + p
        return marginals

    def rank_marginals(self) -> dict[Rank, float]:
        marginals: dict[Rank, float] = {}
        for card, p in self.probs.items():
            marginals[card.rank] = marginals.get(card.rank, 0.0) + p
        return marginals

    @field_serializer("probs")
    def _serialize_probs(self, probs: dict[Card, float]) -> dict[str, float]:
        return {str(card): p for card, p in probs.items()}


class PlayerKnowledge(BaseModel):
    """One observer's view of the game, recomputed on every query."""

    model_config = ConfigDict(frozen=True)

    observer: int
    own_hand: list[CardBelief]
    other_hands: dict[int, list[Card]]
    discard_pile: list[Card]
    played_stacks: dict[StackColor, int]
    played_cards: list[Card]
    info_tokens: int
    explosion_tokens: int
    deck_size: int

    # What each other player would believe about their own hand
    theory_of_mind: dict[int, list[CardBelief]]


class EpisodeRecord(BaseModel):
    """Complete record of a Hanabi game episode."""

    episode_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    config: HanabiConfig
    seed: int

    # Initial hands (for replay)
    initial_hands: list[list[Card]]

    history: list[HistoryEntry]

    # Final state
    final_score: int
    final_played_stacks: dict[StackColor, int]
    game_over_reason: GameOverReason

    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_filename(self) -> str:
        ts = self.timestamp.strftime("%Y%m%d_%H%M%S")
        return f"hanabi_episode_{self.episode_id}_{ts}.json"

    def save(self, directory: str) -> str:
        """Save episode JSON to a directory. Returns the written filepath."""
        from pathlib import Path

        d = Path(directory)
        d.mkdir(parents=True, exist_ok=True)
        fp = d / self.to_filename()
        fp.write_text(self.model_dump_json(indent=2))
        return str(fp)
