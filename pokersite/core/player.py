"""
Player records for Texas Hold'em.

``SeatedPlayer`` is what the table hands the engine when a hand starts;
``Player`` is the engine's own per-hand copy, discarded when the next hand
starts.
"""

from __future__ import annotations
from typing import List, Dict, Any
from dataclasses import dataclass, field

from pokersite.core.card import Card


@dataclass(frozen=True)
class SeatedPlayer:
    """Snapshot of a seated player taken at the start of a hand."""
    seat_index: int
    username: str
    chips: int


@dataclass
class Player:
    """
    A player in the current hand.

    Attributes:
        seat_index: Seat at the table
        username: Display name
        chips: Chips behind (not yet committed)
        hand: Hole cards, empty until dealt
        current_bet: Amount committed on the current street
        total_bet: Amount committed this hand (for pot calculations)
        folded: Has folded this hand
        all_in: Has committed every chip
    """
    seat_index: int
    username: str
    chips: int
    hand: List[Card] = field(default_factory=list)
    current_bet: int = 0
    total_bet: int = 0
    folded: bool = False
    all_in: bool = False

    @classmethod
    def from_seat(cls, seat: SeatedPlayer) -> Player:
        return cls(seat_index=seat.seat_index, username=seat.username, chips=seat.chips)

    def commit(self, amount: int) -> int:
        """
        Move chips from the stack into this street's bet.

        Args:
            amount: Chips requested

        Returns:
            Chips actually committed, capped at the stack
        """
        actual = min(max(amount, 0), self.chips)
        self.chips -= actual
        self.current_bet += actual
        self.total_bet += actual
        if self.chips == 0:
            self.all_in = True
        return actual

    @property
    def in_hand(self) -> bool:
        """Still holding cards."""
        return not self.folded

    @property
    def can_act(self) -> bool:
        return not self.folded and not self.all_in

    def to_public_dict(self) -> Dict[str, Any]:
        """Information visible to the whole table."""
        return {
            "seat_index": self.seat_index,
            "username": self.username,
            "chips": self.chips,
            "current_bet": self.current_bet,
            "total_bet": self.total_bet,
            "folded": self.folded,
            "all_in": self.all_in,
        }

    def to_private_dict(self) -> Dict[str, Any]:
        """Public information plus hole cards, for the owner only."""
        return {
            **self.to_public_dict(),
            "hand": [card.to_dict() for card in self.hand],
        }

    def __str__(self) -> str:
        cards_str = " ".join(str(c) for c in self.hand) if self.hand else "??"
        return f"Seat {self.seat_index} {self.username} [{cards_str}] ${self.chips}"
