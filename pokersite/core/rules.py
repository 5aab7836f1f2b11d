"""
Texas Hold'em Rules and Constants.

Seat order conventions used by the engine:

1. The dealer button moves to the next occupied seat with a higher index,
   wrapping to the lowest occupied seat.

2. Heads-up (2 players): Dealer posts small blind and acts first preflop;
   the other player posts big blind and acts first postflop.

3. Three or more players: the seat after the dealer posts small blind, the
   seat after that posts big blind, and the seat after the big blind acts
   first preflop.

4. Postflop the first player still able to act after the dealer acts first.
"""

from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Tuple


class GamePhase(str, Enum):
    """Phases of a Texas Hold'em hand."""
    WAITING = "waiting"
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"
    COMPLETE = "complete"


class ActionType(str, Enum):
    """Possible player actions."""
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"
    ALL_IN = "allin"


# Default table settings
DEFAULT_SMALL_BLIND = 5
DEFAULT_BIG_BLIND = 10
DEFAULT_STARTING_STACK = 1000
DEFAULT_MAX_SEATS = 8
DEFAULT_RUNOUT_DELAY = 1.8
MIN_PLAYERS = 2

# Cards per phase
HOLE_CARDS = 2
FLOP_CARDS = 3
TURN_CARDS = 1
RIVER_CARDS = 1
TOTAL_COMMUNITY_CARDS = 5

# Street that follows each betting phase
NEXT_STREET = {
    GamePhase.PREFLOP: GamePhase.FLOP,
    GamePhase.FLOP: GamePhase.TURN,
    GamePhase.TURN: GamePhase.RIVER,
    GamePhase.RIVER: GamePhase.SHOWDOWN,
}

STREET_CARDS = {
    GamePhase.FLOP: FLOP_CARDS,
    GamePhase.TURN: TURN_CARDS,
    GamePhase.RIVER: RIVER_CARDS,
}


@dataclass
class TableConfig:
    """
    Settings for one table.

    Attributes:
        small_blind: Small blind amount
        big_blind: Big blind amount, also the minimum raise increment
        starting_stack: Chips given to a newly seated player
        max_seats: Number of seats; valid seat indices are 0..max_seats-1
        short_all_in_reopens: Whether an all-in raise smaller than the
            minimum raise reopens betting for players who already acted
        merge_dead_tiers: Whether chips of a pot tier with no eligible
            player are folded into a neighbouring pot instead of dropped
        turn_timeout: Seconds a driver waits before acting for a stalled
            seat, None to wait forever
        runout_delay: Seconds a driver waits between streets of an all-in
            run-out
    """
    small_blind: int = DEFAULT_SMALL_BLIND
    big_blind: int = DEFAULT_BIG_BLIND
    starting_stack: int = DEFAULT_STARTING_STACK
    max_seats: int = DEFAULT_MAX_SEATS
    short_all_in_reopens: bool = True
    merge_dead_tiers: bool = False
    turn_timeout: Optional[float] = None
    runout_delay: float = DEFAULT_RUNOUT_DELAY

    def __post_init__(self):
        if self.small_blind <= 0 or self.big_blind <= 0:
            raise ValueError("Blinds must be positive")
        if self.max_seats < MIN_PLAYERS:
            raise ValueError(f"A table needs at least {MIN_PLAYERS} seats")


def next_dealer_seat(seats: List[int], previous: Optional[int]) -> int:
    """
    Get the seat index that holds the button this hand.

    Args:
        seats: Seat indices of the players in the hand, ascending
        previous: Previous dealer seat, None before the first hand
    """
    if previous is None:
        return seats[0]
    for seat in seats:
        if seat > previous:
            return seat
    return seats[0]


def get_blind_positions(num_players: int, dealer_position: int) -> Tuple[int, int, int]:
    """
    Calculate blind and first-to-act positions.

    Positions are indices into the seat-ordered player list.

    Returns:
        Tuple of (small_blind, big_blind, first_to_act_preflop)
    """
    if num_players < MIN_PLAYERS:
        raise ValueError("Need at least 2 players")

    if num_players == 2:
        sb_pos = dealer_position
        bb_pos = (dealer_position + 1) % num_players
        first = dealer_position
    else:
        sb_pos = (dealer_position + 1) % num_players
        bb_pos = (dealer_position + 2) % num_players
        first = (bb_pos + 1) % num_players

    return sb_pos, bb_pos, first
