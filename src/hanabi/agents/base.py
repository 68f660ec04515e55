"""Agent protocol for Hanabi players."""

from __future__ import annotations

from typing import Protocol

from ..models import Action, FullGameState


class HanabiAgent(Protocol):
    """A player seated at index ``player``.

    Agents receive the full game state but must only read what their seat is
    allowed to see (``knowledge_for`` / ``view_for_player``).
    """

    player: int

    def decide_action(self, game: FullGameState) -> tuple[Action, str]:
        """Return the chosen action and a short rationale."""
        ...
