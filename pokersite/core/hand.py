"""
Hand Evaluation for Texas Hold'em.

A five-card hand is scored as a category (0 = High Card .. 9 = Royal Flush)
plus a tiebreak sequence. Two scores compare lexicographically over
``[rank, *tiebreak]``; a missing trailing position counts as 0.

Hand Rankings (best to worst):
9. Royal Flush: A♠ K♠ Q♠ J♠ T♠
8. Straight Flush: 5 consecutive cards of same suit
7. Four of a Kind: 4 cards of same rank
6. Full House: 3 of a kind + pair
5. Flush: 5 cards of same suit
4. Straight: 5 consecutive cards
3. Three of a Kind: 3 cards of same rank
2. Two Pair: 2 different pairs
1. One Pair: 2 cards of same rank
0. High Card: No made hand

Note: Ace can be low in A-2-3-4-5 straight (wheel), recorded as 5-high.
"""

from __future__ import annotations
from typing import Tuple, Sequence
from dataclasses import dataclass
from itertools import combinations
from enum import IntEnum
from collections import Counter

from pokersite.core.card import Card, Rank


class HandRank(IntEnum):
    """Hand categories, higher is better."""
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9


HAND_RANK_NAMES = {
    HandRank.HIGH_CARD: "High Card",
    HandRank.ONE_PAIR: "Pair",
    HandRank.TWO_PAIR: "Two Pair",
    HandRank.THREE_OF_A_KIND: "Three of a Kind",
    HandRank.STRAIGHT: "Straight",
    HandRank.FLUSH: "Flush",
    HandRank.FULL_HOUSE: "Full House",
    HandRank.FOUR_OF_A_KIND: "Four of a Kind",
    HandRank.STRAIGHT_FLUSH: "Straight Flush",
    HandRank.ROYAL_FLUSH: "Royal Flush",
}

WHEEL = [14, 5, 4, 3, 2]


@dataclass(frozen=True)
class HandScore:
    """Category plus tiebreak values for one five-card hand."""
    rank: HandRank
    tiebreak: Tuple[int, ...]
    name: str

    @property
    def key(self) -> Tuple[int, ...]:
        return (int(self.rank),) + self.tiebreak

    def to_dict(self) -> dict:
        return {
            "rank": int(self.rank),
            "tiebreak": list(self.tiebreak),
            "name": self.name,
        }


@dataclass(frozen=True)
class BestHand:
    """The best five-card hand found within a larger card set."""
    score: HandScore
    cards: Tuple[Card, ...]

    def to_dict(self) -> dict:
        return {
            **self.score.to_dict(),
            "cards": [c.to_dict() for c in self.cards],
            "description": describe_hand(self),
        }


def _score(rank: HandRank, *tiebreak: int) -> HandScore:
    return HandScore(rank, tuple(tiebreak), HAND_RANK_NAMES[rank])


def evaluate_five(cards: Sequence[Card]) -> HandScore:
    """
    Score exactly five cards.

    Raises:
        ValueError: If not exactly 5 cards are given
    """
    if len(cards) != 5:
        raise ValueError(f"Need exactly 5 cards, got {len(cards)}")

    values = sorted((c.value for c in cards), reverse=True)
    is_flush = len({c.suit for c in cards}) == 1

    is_straight = False
    straight_high = values[0]
    if len(set(values)) == 5:
        if values[0] - values[4] == 4:
            is_straight = True
        elif values == WHEEL:
            is_straight = True
            straight_high = 5

    # (count, value) pairs, most frequent first, then highest value
    groups = sorted(Counter(values).items(), key=lambda g: (g[1], g[0]), reverse=True)
    counts = [count for _, count in groups]
    group_values = [value for value, _ in groups]

    if is_straight and is_flush:
        rank = HandRank.ROYAL_FLUSH if straight_high == Rank.ACE else HandRank.STRAIGHT_FLUSH
        return _score(rank, straight_high)

    if counts[0] == 4:
        return _score(HandRank.FOUR_OF_A_KIND, group_values[0], group_values[1])

    if counts == [3, 2]:
        return _score(HandRank.FULL_HOUSE, group_values[0], group_values[1])

    if is_flush:
        return _score(HandRank.FLUSH, *values)

    if is_straight:
        return _score(HandRank.STRAIGHT, straight_high)

    if counts[0] == 3:
        return _score(HandRank.THREE_OF_A_KIND, *group_values)

    if counts == [2, 2, 1]:
        return _score(HandRank.TWO_PAIR, *group_values)

    if counts[0] == 2:
        return _score(HandRank.ONE_PAIR, *group_values)

    return _score(HandRank.HIGH_CARD, *values)


def compare_scores(a: HandScore, b: HandScore) -> int:
    """
    Compare two scores.

    Returns:
        1 if a is better, -1 if b is better, 0 if they tie
    """
    key_a, key_b = a.key, b.key
    for i in range(max(len(key_a), len(key_b))):
        va = key_a[i] if i < len(key_a) else 0
        vb = key_b[i] if i < len(key_b) else 0
        if va != vb:
            return 1 if va > vb else -1
    return 0


def best_hand_of(cards: Sequence[Card]) -> BestHand:
    """
    Find the best five-card hand within 5-7 cards.

    Every five-card subset is scored; on equal scores the first subset in
    enumeration order is kept.

    Raises:
        ValueError: If not 5-7 cards provided
    """
    if len(cards) < 5 or len(cards) > 7:
        raise ValueError(f"Need 5-7 cards, got {len(cards)}")

    best = None
    for combo in combinations(cards, 5):
        score = evaluate_five(combo)
        if best is None or compare_scores(score, best.score) > 0:
            best = BestHand(score, tuple(combo))
    return best


def describe_hand(best: BestHand) -> str:
    """Get a human-readable description of a scored hand."""
    score = best.score
    values = score.tiebreak

    if score.rank == HandRank.ROYAL_FLUSH:
        return "Royal Flush"
    if score.rank == HandRank.STRAIGHT_FLUSH:
        return f"Straight Flush, {_rank_name(values[0])} high"
    if score.rank == HandRank.FOUR_OF_A_KIND:
        return f"Four of a Kind, {_plural(values[0])}"
    if score.rank == HandRank.FULL_HOUSE:
        return f"Full House, {_plural(values[0])} full of {_plural(values[1])}"
    if score.rank == HandRank.FLUSH:
        return f"Flush, {_rank_name(values[0])} high"
    if score.rank == HandRank.STRAIGHT:
        return f"Straight, {_rank_name(values[0])} high"
    if score.rank == HandRank.THREE_OF_A_KIND:
        return f"Three of a Kind, {_plural(values[0])}"
    if score.rank == HandRank.TWO_PAIR:
        return f"Two Pair, {_plural(values[0])} and {_plural(values[1])}"
    if score.rank == HandRank.ONE_PAIR:
        return f"Pair of {_plural(values[0])}"
    return f"High Card, {_rank_name(values[0])}"


_RANK_NAMES = {
    2: "Two", 3: "Three", 4: "Four", 5: "Five", 6: "Six", 7: "Seven",
    8: "Eight", 9: "Nine", 10: "Ten", 11: "Jack", 12: "Queen",
    13: "King", 14: "Ace",
}


def _rank_name(value: int) -> str:
    return _RANK_NAMES[value]


def _plural(value: int) -> str:
    return "Sixes" if value == 6 else f"{_RANK_NAMES[value]}s"
