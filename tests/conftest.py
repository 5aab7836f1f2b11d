"""
Pytest configuration and shared fixtures for Pokersite tests.
"""

import pytest
from pokersite.core.card import Card, Rank, Suit, parse_cards
from pokersite.core.game import HoldemEngine
from pokersite.core.player import SeatedPlayer
from pokersite.core.rules import TableConfig


class StackedShuffle:
    """
    Shuffle source that puts known cards on top of the deck.

    ``top_down`` is drawn first-to-last; every other card sits underneath.
    """

    def __init__(self, top_down):
        self.top_down = list(top_down)

    def shuffle(self, cards):
        rest = [c for c in cards if c not in self.top_down]
        cards[:] = rest + self.top_down[::-1]


def stacked(holes, board=""):
    """
    Build a StackedShuffle for a hand.

    Args:
        holes: Hole card strings in deal order, starting left of the dealer,
            e.g. ["Ks Kh", "As Ah"]
        board: Up to five community cards; burn cards are filled in
    """
    hole_cards = [parse_cards(h) for h in holes]
    board_cards = parse_cards(board)
    used = {c for h in hole_cards for c in h} | set(board_cards)
    spare = iter(Card(r, s) for s in Suit for r in Rank if Card(r, s) not in used)

    top = [h[0] for h in hole_cards] + [h[1] for h in hole_cards]
    if board_cards:
        top += [next(spare)] + board_cards[:3]
    for card in board_cards[3:]:
        top += [next(spare), card]
    return StackedShuffle(top)


def seat(seat_index, chips=1000, username=None):
    return SeatedPlayer(seat_index, username or f"p{seat_index}", chips)


def chips_in_play(engine):
    return sum(p.chips for p in engine.players) + engine.pot


@pytest.fixture
def config():
    """Blinds 5/10, eight seats."""
    return TableConfig(small_blind=5, big_blind=10)


@pytest.fixture
def heads_up(config):
    """A started heads-up hand: seat 0 alice (dealer/SB), seat 1 bob (BB)."""
    engine = HoldemEngine(config, rng=stacked(["Ks Kh", "As Ah"], "2d 3c 4d 9c Jh"))
    engine.start_hand([
        SeatedPlayer(0, "alice", 1000),
        SeatedPlayer(1, "bob", 1000),
    ])
    return engine


@pytest.fixture
def three_handed(config):
    """A started 3-player hand: dealer seat 0, SB seat 1, BB seat 2."""
    engine = HoldemEngine(config)
    engine.start_hand([seat(0), seat(1), seat(2)])
    return engine


@pytest.fixture
def royal_flush():
    return parse_cards("As Ks Qs Js Ts")


@pytest.fixture
def straight_flush():
    return parse_cards("9h 8h 7h 6h 5h")


@pytest.fixture
def wheel_straight():
    return parse_cards("As 2h 3d 4c 5s")
