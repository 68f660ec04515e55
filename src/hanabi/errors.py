"""Exception hierarchy for the Hanabi engine.

Rule violations are caller-contract faults: the caller should have checked the
matching predicate first. Invariant violations mean the card accounting is
broken and the game state can no longer be trusted.
"""

from __future__ import annotations


class HanabiError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(HanabiError, ValueError):
    """Invalid arguments when setting up a game."""


class RuleViolation(HanabiError, ValueError):
    """An action or mutation whose precondition does not hold."""


class IllegalPlay(RuleViolation):
    """Committing a card that does not extend its stack."""


class InvalidTarget(RuleViolation):
    """A multicolor card placed on a stack it cannot extend."""


class WrongCardKind(IllegalPlay):
    """Ordinary card passed to the multicolor path or vice versa."""


class NoTokensAvailable(RuleViolation):
    """Spending an info token when none are left."""


class DiscardNotAllowed(RuleViolation):
    """Discarding while info tokens are at their cap."""


class InvalidHint(RuleViolation):
    """A hint that names a bad receiver or value, or touches no card."""


class InvalidSlot(RuleViolation):
    """Unknown player or hand slot index."""


class NotYourTurn(RuleViolation):
    """Acting player is not the current player."""


class GameAlreadyOver(RuleViolation):
    """Action submitted after the game reached a terminal state."""


class InvariantViolation(HanabiError, RuntimeError):
    """Internal accounting inconsistency. Not recoverable."""


class OverobservedCard(InvariantViolation):
    """More copies of a card were observed than the deck contains."""

    def __init__(self, card: object, composition_count: int):
        self.card = card
        self.composition_count = composition_count
        super().__init__(
            f"Observed more copies of {card} than exist in the deck ({composition_count})"
        )


class EmptyBelief(InvariantViolation):
    """No card identity is consistent with the observations and hints."""
