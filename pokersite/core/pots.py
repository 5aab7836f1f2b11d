"""
Side pot calculation.

Pots are built from each player's total contribution for the hand. Every
distinct contribution level closes a tier: all players who put in more than
the previous level pay into it (folded players included, their chips are
still in the middle) but only the players still holding cards can win it.
"""

from __future__ import annotations
from typing import Iterable, List, Protocol
from dataclasses import dataclass, field
import logging


logger = logging.getLogger(__name__)


class Contributor(Protocol):
    seat_index: int
    total_bet: int
    folded: bool


@dataclass
class Pot:
    """A main pot or side pot."""
    amount: int = 0
    eligible_seats: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"amount": self.amount, "eligible_seats": list(self.eligible_seats)}


def compute_side_pots(
    players: Iterable[Contributor],
    merge_dead_tiers: bool = False,
) -> List[Pot]:
    """
    Split the chips committed this hand into an ordered list of pots.

    Args:
        players: Objects with ``seat_index``, ``total_bet`` and ``folded``
        merge_dead_tiers: A tier where every contributor has folded has no
            one to award it to. When False those chips are left out of every
            pot. When True they are added to the previous pot, or to the
            next one if no pot has been emitted yet.

    Returns:
        Pots from the main pot upwards, each with its eligible seats
    """
    considered = sorted(
        (p for p in players if p.total_bet > 0),
        key=lambda p: p.total_bet,
    )

    pots: List[Pot] = []
    prev_level = 0
    carried = 0

    for level in sorted({p.total_bet for p in considered}):
        contributors = [p for p in considered if p.total_bet > prev_level]
        amount = (level - prev_level) * len(contributors)
        eligible = [p.seat_index for p in contributors if not p.folded]
        prev_level = level

        if amount <= 0:
            continue

        if not eligible:
            if not merge_dead_tiers:
                logger.warning(f"Tier at level {level} has no eligible player, {amount} chips unassigned")
            elif pots:
                pots[-1].amount += amount
            else:
                carried += amount
            continue

        pots.append(Pot(amount=amount + carried, eligible_seats=eligible))
        carried = 0

    if carried:
        # Only reachable when nobody at all is eligible
        logger.warning(f"{carried} chips unassigned, no eligible player in any tier")

    return pots
