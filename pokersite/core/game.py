"""
Texas Hold'em Game Engine - State Machine Implementation.

This module implements the per-table hand state machine. It handles:
- Dealer button rotation and blind posting (heads-up rules included)
- Dealing hole cards and community cards
- Turn order and action legality (fold, check, call, raise, all-in)
- Street changes, automatic all-in run-outs and showdown
- Side pots and split pots with deterministic odd-chip assignment

One engine models one table. It does no I/O and never blocks; a driver
calls ``start_hand`` and then ``get_available_actions``/``handle_action``
for whoever is to act, forwarding the returned records to clients.

States:
    waiting -> preflop -> flop -> turn -> river -> showdown -> complete
    any betting street -> complete when one player is left holding cards
"""

from __future__ import annotations
from typing import List, Dict, Optional, Sequence, Any, Union
import random
import logging

from pokersite.core.card import Card, Deck
from pokersite.core.player import Player, SeatedPlayer
from pokersite.core.hand import best_hand_of, compare_scores, describe_hand, BestHand
from pokersite.core.pots import compute_side_pots
from pokersite.core.rules import (
    GamePhase, ActionType, TableConfig,
    get_blind_positions, next_dealer_seat,
    HOLE_CARDS, MIN_PLAYERS, NEXT_STREET, STREET_CARDS,
)
from pokersite.core.results import (
    ActionApplied, ActionError, ActionMenu, CardsRevealed, HandComplete,
    HandResult, PhaseAdvanced, PotResult, PotWinner, Showdown,
    ShowdownPlayer, StartHandResult,
)


logger = logging.getLogger(__name__)

BETTING_PHASES = (GamePhase.PREFLOP, GamePhase.FLOP, GamePhase.TURN, GamePhase.RIVER)


class HoldemEngine:
    """
    Texas Hold'em hand engine for a single table.

    Usage:
        engine = HoldemEngine(TableConfig(small_blind=5, big_blind=10))
        start = engine.start_hand([
            SeatedPlayer(0, "alice", 1000),
            SeatedPlayer(3, "bob", 1000),
        ])

        while engine.is_hand_running():
            if engine.all_in_runout:
                result = engine.advance_runout()
                continue
            seat = engine.current_player_seat
            menu = engine.get_available_actions(seat)
            result = engine.handle_action(seat, choose(menu), amount)

    Action application is strictly serial: callers must not interleave
    calls on one instance.
    """

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize an idle table.

        Args:
            config: Table settings, defaults to TableConfig()
            rng: Shuffle source passed to every new Deck; any object with a
                ``shuffle(list)`` method. Defaults to the system RNG.
        """
        self.config = config or TableConfig()
        self._rng = rng

        self.phase = GamePhase.WAITING
        self.hand_number = 0
        self.deck: Optional[Deck] = None
        self.community_cards: List[Card] = []
        self.players: List[Player] = []

        # Position tracking (seat indices)
        self.dealer_seat: Optional[int] = None
        self.sb_seat: Optional[int] = None
        self.bb_seat: Optional[int] = None
        self.current_player_index = -1

        # Betting state
        self.pot = 0
        self.current_bet = 0
        self.min_raise = self.config.big_blind

        # Indexed by seat, max_seats long
        self.needs_to_act: List[bool] = [False] * self.config.max_seats
        # Seats that may only call or fold after an incomplete all-in raise
        self._capped: List[bool] = [False] * self.config.max_seats

        self.all_in_runout = False
        self.revealed: Dict[int, List[Card]] = {}
        self._chip_total = 0

    # ------------------------------------------------------------------
    # Queries

    @property
    def current_player(self) -> Optional[Player]:
        """The player whose turn it is to act."""
        if not self.is_hand_running() or self.current_player_index < 0:
            return None
        return self.players[self.current_player_index]

    @property
    def current_player_seat(self) -> Optional[int]:
        player = self.current_player
        return player.seat_index if player else None

    @property
    def needs_to_act_seats(self) -> List[int]:
        return [seat for seat, flag in enumerate(self.needs_to_act) if flag]

    def is_hand_running(self) -> bool:
        """Check if a hand is currently in progress."""
        return self.phase in BETTING_PHASES

    def get_player(self, seat_index: int) -> Optional[Player]:
        for player in self.players:
            if player.seat_index == seat_index:
                return player
        return None

    def _index_of(self, seat_index: int) -> Optional[int]:
        for i, player in enumerate(self.players):
            if player.seat_index == seat_index:
                return i
        return None

    # ------------------------------------------------------------------
    # Hand start

    def start_hand(self, seated: Sequence[SeatedPlayer]) -> Optional[StartHandResult]:
        """
        Start a new hand.

        Args:
            seated: Players taking part, at least two, each with chips

        Returns:
            The public start record with each player's hole cards in
            ``hole_cards``, or None if fewer than two players were given
        """
        if len(seated) < MIN_PLAYERS:
            logger.warning(f"Cannot start hand: {len(seated)} player(s), need {MIN_PLAYERS}")
            return None

        seats = [p.seat_index for p in seated]
        if len(set(seats)) != len(seats):
            raise ValueError(f"Duplicate seat indices: {seats}")
        for p in seated:
            if not 0 <= p.seat_index < self.config.max_seats:
                raise ValueError(f"Seat index {p.seat_index} outside 0..{self.config.max_seats - 1}")
            if p.chips <= 0:
                raise ValueError(f"Seat {p.seat_index} has no chips")

        self.hand_number += 1
        if self.pot:
            logger.warning(f"Discarding {self.pot} unassigned chips from hand #{self.hand_number - 1}")

        self.deck = Deck(rng=self._rng)
        self.community_cards = []
        self.pot = 0
        self.current_bet = 0
        self.min_raise = self.config.big_blind
        self.all_in_runout = False
        self.revealed = {}
        self.needs_to_act = [False] * self.config.max_seats
        self._capped = [False] * self.config.max_seats
        self.players = [
            Player.from_seat(p) for p in sorted(seated, key=lambda p: p.seat_index)
        ]
        self._chip_total = sum(p.chips for p in self.players)
        self.phase = GamePhase.PREFLOP

        # Move dealer button
        self.dealer_seat = next_dealer_seat([p.seat_index for p in self.players], self.dealer_seat)
        dealer_idx = self._index_of(self.dealer_seat)
        sb_idx, bb_idx, first_idx = get_blind_positions(len(self.players), dealer_idx)
        self.sb_seat = self.players[sb_idx].seat_index
        self.bb_seat = self.players[bb_idx].seat_index

        logger.info(
            f"Starting hand #{self.hand_number}: dealer={self.dealer_seat} "
            f"sb={self.sb_seat} bb={self.bb_seat} players={len(self.players)}"
        )

        self._post_blind(self.players[sb_idx], self.config.small_blind)
        self._post_blind(self.players[bb_idx], self.config.big_blind)
        self.current_bet = self.config.big_blind

        self._deal_hole_cards(dealer_idx)

        for player in self.players:
            self.needs_to_act[player.seat_index] = not player.all_in

        self.current_player_index = first_idx
        if not self.players[first_idx].can_act:
            self.current_player_index = self._next_active(first_idx)

        reveal = None
        if self.current_player_index < 0:
            # Blinds put everyone all-in
            self.all_in_runout = True
            reveal = self._reveal_once()

        self._check_invariants()

        return StartHandResult(
            hand_number=self.hand_number,
            dealer_seat=self.dealer_seat,
            sb_seat=self.sb_seat,
            bb_seat=self.bb_seat,
            pot=self.pot,
            current_bet=self.current_bet,
            current_player_seat=self.current_player_seat,
            players=[p.to_public_dict() for p in self.players],
            hole_cards={p.seat_index: list(p.hand) for p in self.players},
            all_in_runout=self.all_in_runout,
            reveal=reveal,
        )

    def _post_blind(self, player: Player, amount: int) -> None:
        posted = player.commit(amount)
        self.pot += posted
        logger.debug(f"Seat {player.seat_index} posts blind {posted}")

    def _deal_hole_cards(self, dealer_idx: int) -> None:
        """Deal one card at a time, starting left of the dealer."""
        n = len(self.players)
        for _ in range(HOLE_CARDS):
            for i in range(n):
                self.players[(dealer_idx + 1 + i) % n].hand.append(self.deck.draw())

    # ------------------------------------------------------------------
    # Actions

    def get_available_actions(self, seat_index: int) -> Optional[ActionMenu]:
        """
        Get the action menu for a seat.

        Returns:
            The menu if ``seat_index`` is the current actor, else None
        """
        player = self.current_player
        if player is None or player.seat_index != seat_index:
            return None

        to_call = self.current_bet - player.current_bet
        capped = self._capped[seat_index]

        actions = [ActionType.FOLD]
        actions.append(ActionType.CHECK if to_call <= 0 else ActionType.CALL)
        if player.chips > to_call and not capped:
            actions.append(ActionType.RAISE)
        if player.chips > 0 and (not capped or player.chips <= to_call):
            actions.append(ActionType.ALL_IN)

        return ActionMenu(
            seat_index=seat_index,
            actions=actions,
            to_call=max(0, min(to_call, player.chips)),
            min_raise=self.current_bet + self.min_raise,
            max_raise=player.current_bet + player.chips,
            pot=self.pot,
        )

    def handle_action(
        self,
        seat_index: int,
        action: Union[ActionType, str],
        amount: Optional[int] = 0,
    ) -> HandResult:
        """
        Apply an action for the current actor.

        Args:
            seat_index: Seat of the acting player
            action: ActionType or its string value
            amount: For RAISE, the total bet to raise to on this street

        Returns:
            ActionApplied, PhaseAdvanced, HandComplete or Showdown on
            success; ActionError (with no state change) otherwise
        """
        if not self.is_hand_running():
            return self._reject(seat_index, "No hand in progress")

        player = self.current_player
        if player is None or player.seat_index != seat_index:
            return self._reject(seat_index, "Not your turn")

        try:
            action_type = ActionType(action)
        except ValueError:
            return self._reject(seat_index, f"Unknown action: {action}")

        amount = amount or 0
        to_call = self.current_bet - player.current_bet

        if action_type == ActionType.FOLD:
            player.folded = True

        elif action_type == ActionType.CHECK:
            if to_call > 0:
                return self._reject(seat_index, f"Cannot check, must call {to_call}")

        elif action_type == ActionType.CALL:
            self.pot += player.commit(min(to_call, player.chips))

        elif action_type == ActionType.RAISE:
            if self._capped[seat_index]:
                return self._reject(seat_index, "Raise not allowed after an incomplete all-in")
            min_to = self.current_bet + self.min_raise
            max_to = player.current_bet + player.chips
            if amount < min_to:
                if max_to >= min_to:
                    return self._reject(seat_index, f"Minimum raise is to {min_to}")
                # Short stack: the raise becomes an all-in for less
                raise_to = max_to
            else:
                raise_to = min(amount, max_to)
            self._raise_to(player, raise_to)

        elif action_type == ActionType.ALL_IN:
            if self._capped[seat_index] and player.chips > to_call:
                return self._reject(seat_index, "Raise not allowed after an incomplete all-in")
            self._raise_to(player, player.current_bet + player.chips)

        self.needs_to_act[seat_index] = False
        self._capped[seat_index] = False

        logger.debug(
            f"Seat {seat_index} {action_type.value}: bet={player.current_bet} "
            f"chips={player.chips} pot={self.pot}"
        )
        self._check_invariants()

        applied = ActionApplied(
            seat_index=seat_index,
            action=action_type,
            bet_amount=player.current_bet,
            chips=player.chips,
            pot=self.pot,
            current_bet=self.current_bet,
        )

        remaining = [p for p in self.players if p.in_hand]
        if len(remaining) == 1:
            return self._end_last_man(remaining[0], applied)

        if not any(self.needs_to_act):
            return self._next_phase(applied)

        self.current_player_index = self._next_active(self.current_player_index)
        if self.current_player_index < 0:
            return self._next_phase(applied)

        applied.next_player_seat = self.current_player_seat
        return applied

    def timeout_action(self, seat_index: int) -> HandResult:
        """
        Act for a seat whose turn timer expired: check if legal, else fold.
        """
        menu = self.get_available_actions(seat_index)
        if menu is None:
            return self._reject(seat_index, "Not your turn")
        action = ActionType.CHECK if ActionType.CHECK in menu.actions else ActionType.FOLD
        logger.info(f"Seat {seat_index} timed out, auto-{action.value}")
        return self.handle_action(seat_index, action)

    def _reject(self, seat_index: int, message: str) -> ActionError:
        logger.debug(f"Rejected action from seat {seat_index}: {message}")
        return ActionError(message)

    def _raise_to(self, player: Player, raise_to: int) -> None:
        """Bring the player's street bet up to ``raise_to`` (capped at their stack)."""
        if raise_to > self.current_bet:
            raise_by = raise_to - self.current_bet
            full_raise = raise_by >= self.min_raise
            if full_raise:
                self.min_raise = raise_by
            self.current_bet = raise_to
            self._reopen_action(player, full_raise)
        self.pot += player.commit(raise_to - player.current_bet)

    def _reopen_action(self, raiser: Player, full_raise: bool) -> None:
        """Put everyone who can still act back on the hook after a raise."""
        reopen = full_raise or self.config.short_all_in_reopens
        for other in self.players:
            if other is raiser or not other.can_act:
                continue
            seat = other.seat_index
            if reopen:
                self.needs_to_act[seat] = True
                self._capped[seat] = False
            elif not self.needs_to_act[seat]:
                # Already acted at this level: may call or fold, not re-raise
                self.needs_to_act[seat] = True
                self._capped[seat] = True

    def _next_active(self, from_idx: int) -> int:
        """Index of the next seat after ``from_idx`` that still needs to act, or -1."""
        n = len(self.players)
        for step in range(1, n + 1):
            idx = (from_idx + step) % n
            player = self.players[idx]
            if self.needs_to_act[player.seat_index] and player.can_act:
                return idx
        return -1

    # ------------------------------------------------------------------
    # Streets

    def advance_runout(self) -> Optional[HandResult]:
        """
        Deal the next street of an all-in run-out.

        Returns:
            PhaseAdvanced or Showdown, or None if no run-out is pending
        """
        if not self.all_in_runout or not self.is_hand_running():
            return None
        return self._next_phase()

    def _next_phase(self, last_action: Optional[ActionApplied] = None) -> HandResult:
        for player in self.players:
            player.current_bet = 0
        self.current_bet = 0
        self.min_raise = self.config.big_blind
        self._capped = [False] * self.config.max_seats

        next_phase = NEXT_STREET[self.phase]
        if next_phase == GamePhase.SHOWDOWN:
            return self._showdown(last_action)

        self.deck.burn()
        self.community_cards.extend(self.deck.draw_many(STREET_CARDS[next_phase]))
        self.phase = next_phase
        logger.debug(f"Dealt {self.phase.value}: {' '.join(str(c) for c in self.community_cards)}")

        self.needs_to_act = [False] * self.config.max_seats
        can_act = [p for p in self.players if p.can_act]
        self.current_player_index = -1
        if len(can_act) > 1:
            for player in can_act:
                self.needs_to_act[player.seat_index] = True
            self.current_player_index = self._next_active(self._index_of(self.dealer_seat))

        reveal = None
        if self.current_player_index < 0:
            self.all_in_runout = True
            reveal = self._reveal_once()

        self._check_invariants()

        return PhaseAdvanced(
            phase=self.phase,
            community_cards=list(self.community_cards),
            pot=self.pot,
            current_player_seat=self.current_player_seat,
            all_in_runout=self.all_in_runout,
            reveal=reveal,
            last_action=last_action,
        )

    def _reveal_once(self) -> Optional[CardsRevealed]:
        """Expose every live hand the first time betting closes early."""
        if self.revealed:
            return None
        self.revealed = {p.seat_index: list(p.hand) for p in self.players if p.in_hand}
        logger.info(f"All-in run-out, revealing seats {sorted(self.revealed)}")
        return CardsRevealed(hands=dict(self.revealed))

    # ------------------------------------------------------------------
    # Hand end

    def _end_last_man(self, winner: Player, last_action: Optional[ActionApplied]) -> HandComplete:
        """Award the whole pot to the only player left holding cards."""
        amount = self.pot
        winner.chips += amount
        self.pot = 0
        self._finish()
        logger.info(f"Hand #{self.hand_number}: seat {winner.seat_index} wins {amount} uncontested")

        return HandComplete(
            winners=[PotWinner(winner.seat_index, winner.username, amount)],
            players=[
                {"seat_index": p.seat_index, "chips": p.chips, "folded": p.folded}
                for p in self.players
            ],
            last_action=last_action,
        )

    def _showdown(self, last_action: Optional[ActionApplied]) -> Showdown:
        """Compare live hands and award every pot."""
        self.phase = GamePhase.SHOWDOWN
        live = [p for p in self.players if p.in_hand]
        best: Dict[int, BestHand] = {
            p.seat_index: best_hand_of(p.hand + self.community_cards) for p in live
        }

        pot_results = []
        for pot in compute_side_pots(self.players, merge_dead_tiers=self.config.merge_dead_tiers):
            # Seat order, so odd chips go to the lowest seats first
            contenders = [p for p in live if p.seat_index in pot.eligible_seats]
            top = contenders[0]
            for p in contenders[1:]:
                if compare_scores(best[p.seat_index].score, best[top.seat_index].score) > 0:
                    top = p
            winners = [
                p for p in contenders
                if compare_scores(best[p.seat_index].score, best[top.seat_index].score) == 0
            ]

            share, remainder = divmod(pot.amount, len(winners))
            pot_winners = []
            for i, winner in enumerate(winners):
                prize = share + (1 if i < remainder else 0)
                winner.chips += prize
                self.pot -= prize
                pot_winners.append(PotWinner(winner.seat_index, winner.username, prize))
                logger.info(
                    f"Hand #{self.hand_number}: seat {winner.seat_index} wins {prize} "
                    f"with {describe_hand(best[winner.seat_index])}"
                )
            pot_results.append(PotResult(pot.amount, list(pot.eligible_seats), pot_winners))

        if self.pot:
            logger.warning(f"Hand #{self.hand_number}: {self.pot} chips left unawarded")

        community = list(self.community_cards)
        self._finish()

        return Showdown(
            community_cards=community,
            pot_results=pot_results,
            players=[
                ShowdownPlayer(
                    seat_index=p.seat_index,
                    username=p.username,
                    chips=p.chips,
                    folded=p.folded,
                    hand=None if p.folded else list(p.hand),
                    best_hand=best.get(p.seat_index),
                )
                for p in self.players
            ],
            last_action=last_action,
        )

    def _finish(self) -> None:
        self.phase = GamePhase.COMPLETE
        self.current_player_index = -1
        self.all_in_runout = False
        self.needs_to_act = [False] * self.config.max_seats
        self._capped = [False] * self.config.max_seats
        self._check_invariants()

    # ------------------------------------------------------------------
    # State

    def get_state(self, for_seat: Optional[int] = None) -> Dict[str, Any]:
        """
        Get the current table state.

        Args:
            for_seat: If given, include that seat's hole cards

        Returns:
            Dictionary with ``public_info`` and ``private_info``
        """
        public_info = {
            "phase": self.phase.value,
            "hand_number": self.hand_number,
            "pot": self.pot,
            "current_bet": self.current_bet,
            "min_raise": self.min_raise,
            "board": [c.to_dict() for c in self.community_cards],
            "dealer_seat": self.dealer_seat,
            "sb_seat": self.sb_seat,
            "bb_seat": self.bb_seat,
            "current_player_seat": self.current_player_seat,
            "all_in_runout": self.all_in_runout,
            "players": [p.to_public_dict() for p in self.players],
            "revealed": [
                {"seat_index": seat, "hand": [c.to_dict() for c in cards]}
                for seat, cards in sorted(self.revealed.items())
            ],
        }

        private_info: Dict[str, Any] = {}
        if for_seat is not None:
            player = self.get_player(for_seat)
            if player is not None:
                menu = self.get_available_actions(for_seat)
                private_info = {
                    "seat_index": for_seat,
                    "hand": [c.to_dict() for c in player.hand],
                    "actions": menu.to_dict() if menu else None,
                }

        return {"public_info": public_info, "private_info": private_info}

    def _check_invariants(self) -> None:
        """Assert the table invariants; a failure is a bug in the engine."""
        assert len(self.players) >= MIN_PLAYERS
        assert sum(p.chips for p in self.players) + self.pot == self._chip_total, "chips not conserved"
        for p in self.players:
            assert p.chips >= 0
            assert not p.all_in or p.chips == 0
            if p.folded or p.all_in:
                assert not self.needs_to_act[p.seat_index]
        if self.is_hand_running():
            assert sum(p.total_bet for p in self.players) == self.pot
            assert all(p.current_bet <= self.current_bet for p in self.players if p.in_hand)
