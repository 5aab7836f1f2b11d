"""
Pokersite Core - Pure Python Texas Hold'em Rules Engine

This module contains all game logic without any network dependencies.
"""

from pokersite.core.card import Card, Deck, Rank, Suit, parse_cards
from pokersite.core.player import Player, SeatedPlayer
from pokersite.core.hand import (
    HandRank, HandScore, BestHand, evaluate_five, compare_scores, best_hand_of,
)
from pokersite.core.pots import Pot, compute_side_pots
from pokersite.core.rules import GamePhase, ActionType, TableConfig
from pokersite.core.game import HoldemEngine

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "parse_cards",
    "Player",
    "SeatedPlayer",
    "HandRank",
    "HandScore",
    "BestHand",
    "evaluate_five",
    "compare_scores",
    "best_hand_of",
    "Pot",
    "compute_side_pots",
    "GamePhase",
    "ActionType",
    "TableConfig",
    "HoldemEngine",
]
