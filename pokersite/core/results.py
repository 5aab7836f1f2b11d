"""
Result records returned by the engine.

Every operation answers with exactly one of these records. Each variant has
a ``type`` tag (also emitted by ``to_dict``) so a driver can dispatch on it
or forward the dictionary straight to clients. Apart from ``CardsRevealed``
and the showdown hands, records only carry public information; private hole
cards live in ``StartHandResult.hole_cards`` and are left out of
``to_dict``.
"""

from __future__ import annotations
from typing import ClassVar, Dict, List, Optional, Any, Union
from dataclasses import dataclass, field

from pokersite.core.card import Card
from pokersite.core.hand import BestHand
from pokersite.core.rules import ActionType, GamePhase


def _cards(cards: List[Card]) -> List[Dict[str, Any]]:
    return [c.to_dict() for c in cards]


@dataclass
class ActionError:
    """A rejected request; the table state is unchanged."""
    type: ClassVar[str] = "error"
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass
class CardsRevealed:
    """Hole cards made public when an all-in run-out begins."""
    type: ClassVar[str] = "cards_revealed"
    hands: Dict[int, List[Card]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "hands": [
                {"seat_index": seat, "hand": _cards(cards)}
                for seat, cards in sorted(self.hands.items())
            ],
        }


@dataclass
class StartHandResult:
    """A new hand has been dealt and blinds posted."""
    type: ClassVar[str] = "hand_started"
    hand_number: int
    dealer_seat: int
    sb_seat: int
    bb_seat: int
    pot: int
    current_bet: int
    current_player_seat: Optional[int]
    players: List[Dict[str, Any]]
    hole_cards: Dict[int, List[Card]] = field(repr=False)
    all_in_runout: bool = False
    reveal: Optional[CardsRevealed] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "hand_number": self.hand_number,
            "dealer_seat": self.dealer_seat,
            "sb_seat": self.sb_seat,
            "bb_seat": self.bb_seat,
            "pot": self.pot,
            "current_bet": self.current_bet,
            "current_player_seat": self.current_player_seat,
            "players": self.players,
            "all_in_runout": self.all_in_runout,
        }
        if self.reveal is not None:
            result["reveal"] = self.reveal.to_dict()
        return result


@dataclass
class ActionMenu:
    """What the current actor may do."""
    type: ClassVar[str] = "your_turn"
    seat_index: int
    actions: List[ActionType]
    to_call: int
    min_raise: int
    max_raise: int
    pot: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "seat_index": self.seat_index,
            "actions": [a.value for a in self.actions],
            "to_call": self.to_call,
            "min_raise": self.min_raise,
            "max_raise": self.max_raise,
            "pot": self.pot,
        }


@dataclass
class ActionApplied:
    """An action was applied and the same street continues."""
    type: ClassVar[str] = "action"
    seat_index: int
    action: ActionType
    bet_amount: int
    chips: int
    pot: int
    current_bet: int
    next_player_seat: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "seat_index": self.seat_index,
            "action": self.action.value,
            "bet_amount": self.bet_amount,
            "chips": self.chips,
            "pot": self.pot,
            "current_bet": self.current_bet,
            "next_player_seat": self.next_player_seat,
        }


@dataclass
class PhaseAdvanced:
    """A new street was dealt."""
    type: ClassVar[str] = "new_phase"
    phase: GamePhase
    community_cards: List[Card]
    pot: int
    current_player_seat: Optional[int]
    all_in_runout: bool = False
    reveal: Optional[CardsRevealed] = None
    last_action: Optional[ActionApplied] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "phase": self.phase.value,
            "community_cards": _cards(self.community_cards),
            "pot": self.pot,
            "current_player_seat": self.current_player_seat,
            "all_in_runout": self.all_in_runout,
        }
        if self.reveal is not None:
            result["reveal"] = self.reveal.to_dict()
        if self.last_action is not None:
            result["last_action"] = self.last_action.to_dict()
        return result


@dataclass
class PotWinner:
    seat_index: int
    username: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"seat_index": self.seat_index, "username": self.username, "amount": self.amount}


@dataclass
class HandComplete:
    """Everyone else folded; the last player takes the pot without a showdown."""
    type: ClassVar[str] = "hand_complete"
    winners: List[PotWinner]
    players: List[Dict[str, Any]]
    last_action: Optional[ActionApplied] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "winners": [w.to_dict() for w in self.winners],
            "players": self.players,
        }
        if self.last_action is not None:
            result["last_action"] = self.last_action.to_dict()
        return result


@dataclass
class PotResult:
    amount: int
    eligible_seats: List[int]
    winners: List[PotWinner]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "eligible_seats": list(self.eligible_seats),
            "winners": [w.to_dict() for w in self.winners],
        }


@dataclass
class ShowdownPlayer:
    seat_index: int
    username: str
    chips: int
    folded: bool
    hand: Optional[List[Card]] = None
    best_hand: Optional[BestHand] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seat_index": self.seat_index,
            "username": self.username,
            "chips": self.chips,
            "folded": self.folded,
            "hand": _cards(self.hand) if self.hand is not None else None,
            "best_hand": self.best_hand.to_dict() if self.best_hand is not None else None,
        }


@dataclass
class Showdown:
    """Remaining hands were compared and every pot awarded."""
    type: ClassVar[str] = "showdown"
    community_cards: List[Card]
    pot_results: List[PotResult]
    players: List[ShowdownPlayer]
    last_action: Optional[ActionApplied] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "community_cards": _cards(self.community_cards),
            "pot_results": [p.to_dict() for p in self.pot_results],
            "players": [p.to_dict() for p in self.players],
        }
        if self.last_action is not None:
            result["last_action"] = self.last_action.to_dict()
        return result


HandResult = Union[ActionApplied, PhaseAdvanced, HandComplete, Showdown, ActionError]
