"""
Pokersite - Texas Hold'em Table Server

A multi-table Texas Hold'em project with:
- Pure Python rules engine (hand evaluation, betting, side pots, showdown)
- FastAPI + WebSocket table server that drives the engine

Usage:
    from pokersite.core import HoldemEngine, SeatedPlayer, TableConfig
"""

__version__ = "0.2.0"

from pokersite.core.card import Card, Deck
from pokersite.core.player import SeatedPlayer
from pokersite.core.game import HoldemEngine
from pokersite.core.hand import HandRank, best_hand_of, evaluate_five
from pokersite.core.rules import ActionType, GamePhase, TableConfig

__all__ = [
    "Card",
    "Deck",
    "SeatedPlayer",
    "HoldemEngine",
    "HandRank",
    "best_hand_of",
    "evaluate_five",
    "ActionType",
    "GamePhase",
    "TableConfig",
    "__version__",
]
