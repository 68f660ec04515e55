from .base import HanabiAgent
from .heuristic import BeliefAgent, RandomAgent

__all__ = ["HanabiAgent", "BeliefAgent", "RandomAgent"]
