"""
Card and Deck classes for Texas Hold'em.

Ranks carry their poker ordinal directly (2..14, Ace high) so the hand
evaluator can do arithmetic on them without a lookup table.

The deck takes its randomness from an injectable shuffle source. Any object
with a ``shuffle(list)`` method works: ``random.Random(seed)`` for
reproducible deals, ``random.SystemRandom()`` (the default) for live play.
"""

from __future__ import annotations
import random
from typing import List, Optional
from enum import IntEnum


class Suit(IntEnum):
    """Card suits."""
    SPADES = 0    # ♠
    HEARTS = 1    # ♥
    DIAMONDS = 2  # ♦
    CLUBS = 3     # ♣


class Rank(IntEnum):
    """Card ranks, valued by their poker ordinal."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}

SUIT_CHARS = {
    Suit.SPADES: "s",
    Suit.HEARTS: "h",
    Suit.DIAMONDS: "d",
    Suit.CLUBS: "c",
}

RANK_CHARS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

# Display form used by the table UI ("10" rather than "T")
RANK_DISPLAY = {**RANK_CHARS, Rank.TEN: "10"}

CHAR_TO_RANK = {v: k for k, v in RANK_CHARS.items()}
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
SYMBOL_TO_SUIT = {v: k for k, v in SUIT_SYMBOLS.items()}

DECK_SIZE = 52


class Card:
    """
    An immutable playing card.

    Cards can be created from:
    - Rank and Suit enums: Card(Rank.ACE, Suit.SPADES)
    - String notation: Card.from_string("As"), "A♠" or "10s"
    """

    __slots__ = ("rank", "suit")

    def __init__(self, rank: Rank, suit: Suit):
        object.__setattr__(self, "rank", Rank(rank))
        object.__setattr__(self, "suit", Suit(suit))

    def __setattr__(self, name, value):
        raise AttributeError("Card is immutable")

    @classmethod
    def from_string(cls, s: str) -> Card:
        """
        Create a card from string notation.

        Accepts "As", "Kh", "Td", "10d" or the symbol forms "A♠", "10♦".
        """
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        if s[:2] == "10":
            rank_part, suit_part = "T", s[2:]
        else:
            rank_part, suit_part = s[0].upper(), s[1:]

        if rank_part not in CHAR_TO_RANK:
            raise ValueError(f"Invalid rank: {rank_part}")

        if suit_part.lower() in CHAR_TO_SUIT:
            suit = CHAR_TO_SUIT[suit_part.lower()]
        elif suit_part in SYMBOL_TO_SUIT:
            suit = SYMBOL_TO_SUIT[suit_part]
        else:
            raise ValueError(f"Invalid suit: {suit_part}")

        return cls(CHAR_TO_RANK[rank_part], suit)

    @property
    def value(self) -> int:
        """Rank ordinal, 2..14."""
        return int(self.rank)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Card):
            return self.rank == other.rank and self.suit == other.suit
        return False

    def __hash__(self) -> int:
        return int(self.rank) * 4 + int(self.suit)

    def __lt__(self, other: Card) -> bool:
        """Compare by rank only (for sorting)."""
        return self.rank < other.rank

    def __repr__(self) -> str:
        return f"Card({self.short_str})"

    def __str__(self) -> str:
        return f"{RANK_DISPLAY[self.rank]}{SUIT_SYMBOLS[self.suit]}"

    @property
    def short_str(self) -> str:
        """Short string like 'As', 'Th'."""
        return f"{RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]}"

    @property
    def color(self) -> str:
        return "red" if self.suit in (Suit.HEARTS, Suit.DIAMONDS) else "black"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rank": RANK_DISPLAY[self.rank],
            "suit": SUIT_SYMBOLS[self.suit],
            "text": str(self),
            "color": self.color,
        }


class Deck:
    """
    A standard 52-card deck, permuted once at creation.

    The end of the internal list is the top of the deck.

    Usage:
        deck = Deck(rng=random.Random(7))
        hole = deck.draw_many(2)
        deck.burn()
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.SystemRandom()
        self._cards: List[Card] = [
            Card(rank, suit)
            for suit in Suit
            for rank in Rank
        ]
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Remove and return the top card."""
        if not self._cards:
            raise ValueError("Cannot draw from an empty deck")
        return self._cards.pop()

    def draw_many(self, n: int) -> List[Card]:
        if n > len(self._cards):
            raise ValueError(f"Cannot draw {n} cards, only {len(self._cards)} remain")
        return [self.draw() for _ in range(n)]

    def burn(self) -> Card:
        """Discard the top card."""
        return self.draw()

    @property
    def remaining(self) -> int:
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __repr__(self) -> str:
        return f"Deck({self.remaining} cards remaining)"


def parse_cards(cards_str: str) -> List[Card]:
    """
    Parse multiple cards from a string.

    Accepts "As Kh Td", "AsKhTd" or "A♠ K♥ 10♦".
    """
    cards_str = cards_str.strip()
    if not cards_str:
        return []

    if " " in cards_str:
        return [Card.from_string(s) for s in cards_str.split()]

    result = []
    i = 0
    while i < len(cards_str):
        width = 3 if cards_str[i:i + 2] == "10" else 2
        chunk = cards_str[i:i + width]
        if len(chunk) < width:
            raise ValueError(f"Cannot parse card at position {i}: {cards_str[i:]}")
        result.append(Card.from_string(chunk))
        i += width

    return result
