"""
Table driver for the engine.

This module provides:
- Table: seats, one HoldemEngine and the connections watching it
- TableManager: creates and looks up tables by code

Every engine call on a table happens under that table's asyncio.Lock, so
actions are applied strictly one at a time. Tables share nothing, so many
can run side by side on one event loop.

Identity is token based: opening a table hands out a host token, taking a
seat hands out a seat token. Private information and seat actions need the
seat's token; settings, kicks and dealing need the host token.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import asyncio
import logging
import random
import secrets

from pokersite.core.game import HoldemEngine
from pokersite.core.player import SeatedPlayer
from pokersite.core.results import (
    ActionError, HandComplete, HandResult, PhaseAdvanced, Showdown, StartHandResult,
)
from pokersite.core.rules import ActionType
from pokersite.server.schemas import TableSettings


logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6


def new_token() -> str:
    return secrets.token_urlsafe(16)


def token_matches(expected: str, given: Optional[str]) -> bool:
    return given is not None and secrets.compare_digest(expected, given)


class TableError(Exception):
    """A table request that cannot be honoured (seat taken, no hand, ...)."""


@dataclass
class Seat:
    """A player sitting at the table between hands."""
    seat_index: int
    username: str
    chips: int
    pending_leave: bool = False
    wins: int = 0
    # Never serialised; only returned to whoever took the seat
    token: str = field(default_factory=new_token, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seat_index": self.seat_index,
            "username": self.username,
            "chips": self.chips,
            "pending_leave": self.pending_leave,
            "wins": self.wins,
        }


@dataclass
class Connection:
    """A client watching the table, optionally bound to a seat."""
    conn_id: str
    websocket: Any
    seat_index: Optional[int] = None
    is_host: bool = False


@dataclass
class Table:
    """One table: its seats, its engine and the clients watching it."""
    table_id: str
    settings: TableSettings
    rng: Optional[random.Random] = None
    engine: HoldemEngine = field(init=False)
    seats: List[Optional[Seat]] = field(init=False)
    connections: Dict[str, Connection] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    host_token: str = field(default_factory=new_token, repr=False)

    def __post_init__(self):
        self.config = self.settings.to_config()
        self.engine = HoldemEngine(self.config, rng=self.rng)
        self.seats = [None] * self.config.max_seats
        self._timer: Optional[asyncio.Task] = None
        self._runout: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Identity

    def is_host(self, token: Optional[str]) -> bool:
        return token_matches(self.host_token, token)

    def owns_seat(self, seat_index: int, token: Optional[str]) -> bool:
        """Check a seat token against the player currently in that seat."""
        if not 0 <= seat_index < len(self.seats):
            return False
        seat = self.seats[seat_index]
        return seat is not None and token_matches(seat.token, token)

    # ------------------------------------------------------------------
    # Messaging

    async def broadcast(self, message: Dict[str, Any]) -> None:
        """Send a message to every connection."""
        for conn in list(self.connections.values()):
            await self._send(conn, message)

    async def send_to_seat(self, seat_index: int, message: Dict[str, Any]) -> None:
        """Send a message only to connections bound to a seat."""
        for conn in list(self.connections.values()):
            if conn.seat_index == seat_index:
                await self._send(conn, message)

    async def _send(self, conn: Connection, message: Dict[str, Any]) -> None:
        try:
            await conn.websocket.send_json(message)
        except Exception as e:
            logger.error(f"Error sending to {conn.conn_id}: {e}")

    # ------------------------------------------------------------------
    # Seating

    def occupied(self) -> List[Seat]:
        return [s for s in self.seats if s is not None]

    async def sit(self, seat_index: int, username: str) -> Seat:
        """Seat a new player with the starting stack; they join from the next hand."""
        async with self.lock:
            if not 0 <= seat_index < len(self.seats):
                raise TableError("Seat unavailable")
            if self.seats[seat_index] is not None:
                raise TableError("Seat unavailable")
            if any(s.username == username for s in self.occupied()):
                raise TableError("Already seated")

            seat = Seat(seat_index, username, self.config.starting_stack)
            self.seats[seat_index] = seat
            logger.info(f"{self.table_id}: {username} sits at seat {seat_index}")
            await self.broadcast({"type": "player_seated", **seat.to_dict()})
            return seat

    async def leave(self, seat_index: int) -> None:
        """
        Free a seat.

        A player still in the running hand folds now if it is their turn,
        otherwise when their turn comes (or at hand end if all-in).
        """
        async with self.lock:
            await self._leave(seat_index)

    async def kick(self, seat_index: int) -> None:
        """Remove a player on the host's behalf, folding them like a leave."""
        async with self.lock:
            if not 0 <= seat_index < len(self.seats) or self.seats[seat_index] is None:
                raise TableError("Seat is empty")
            logger.info(f"{self.table_id}: host kicks seat {seat_index}")
            await self.send_to_seat(seat_index, {"type": "kicked", "seat_index": seat_index})
            await self._leave(seat_index)

    async def _leave(self, seat_index: int) -> None:
        seat = self.seats[seat_index] if 0 <= seat_index < len(self.seats) else None
        if seat is None:
            raise TableError("Seat is empty")

        player = self.engine.get_player(seat_index)
        in_hand = (
            self.engine.is_hand_running()
            and player is not None
            and player.username == seat.username
            and player.in_hand
        )
        if not in_hand:
            await self._free_seat(seat_index)
            return

        seat.pending_leave = True
        if self.engine.current_player_seat == seat_index:
            await self._dispatch(self.engine.handle_action(seat_index, ActionType.FOLD))

    async def _free_seat(self, seat_index: int) -> None:
        seat = self.seats[seat_index]
        self.seats[seat_index] = None
        # Sockets of the old occupant must not see the next one's cards
        for conn in self.connections.values():
            if conn.seat_index == seat_index:
                conn.seat_index = None
        logger.info(f"{self.table_id}: seat {seat_index} ({seat.username}) left")
        await self.broadcast({"type": "player_left", "seat_index": seat_index})

    # ------------------------------------------------------------------
    # Settings

    async def update_settings(self, settings: TableSettings) -> None:
        """Replace the table settings; only allowed between hands."""
        async with self.lock:
            if self.engine.is_hand_running():
                raise TableError("Cannot change settings during a hand")
            self.settings = settings
            self.config = settings.to_config()
            self.engine.config = self.config
            logger.info(f"{self.table_id}: settings updated")
            await self.broadcast({"type": "settings_updated", "settings": settings.model_dump()})

    # ------------------------------------------------------------------
    # Hands

    async def start_hand(self) -> StartHandResult:
        """Deal a new hand to every seated player with chips."""
        async with self.lock:
            if self.engine.is_hand_running():
                raise TableError("A hand is already in progress")

            seated = [
                SeatedPlayer(s.seat_index, s.username, s.chips)
                for s in self.occupied()
                if s.chips > 0 and not s.pending_leave
            ]
            if len(seated) < 2:
                raise TableError("Need at least 2 seated players with chips")

            result = self.engine.start_hand(seated)
            if result is None:
                raise TableError("Could not start hand")

            for seat_index, cards in result.hole_cards.items():
                await self.send_to_seat(seat_index, {
                    "type": "your_hand",
                    "hand": [c.to_dict() for c in cards],
                })
            await self._dispatch(result)
            return result

    async def act(self, seat_index: int, action: str, amount: Optional[int] = 0) -> HandResult:
        """Apply an action from a seat; errors are returned, not broadcast."""
        async with self.lock:
            result = self.engine.handle_action(seat_index, action, amount)
            if isinstance(result, ActionError):
                return result
            await self._dispatch(result)
            return result

    def state(self, for_seat: Optional[int] = None) -> Dict[str, Any]:
        state = self.engine.get_state(for_seat=for_seat)
        state["table"] = {
            "table_id": self.table_id,
            "settings": self.settings.model_dump(),
            "seats": [s.to_dict() if s else None for s in self.seats],
        }
        return state

    def close(self) -> None:
        """Stop the turn timer and any pending run-out."""
        self._cancel_timer()
        if self._runout is not None:
            self._runout.cancel()
            self._runout = None

    # ------------------------------------------------------------------
    # Driving the engine (callers hold the lock)

    async def _dispatch(self, result: Any) -> None:
        """Broadcast a record and do whatever the table owes the engine next."""
        self._cancel_timer()
        await self.broadcast(result.to_dict())

        if isinstance(result, (HandComplete, Showdown)):
            await self._settle(result)
            return

        if isinstance(result, (StartHandResult, PhaseAdvanced)) and result.all_in_runout:
            if self.config.runout_delay <= 0:
                await self._dispatch(self.engine.advance_runout())
            else:
                self._runout = asyncio.create_task(self._advance_runout_later())
            return

        seat_index = self.engine.current_player_seat
        if seat_index is None:
            return

        seat = self.seats[seat_index]
        if seat is None or seat.pending_leave:
            await self._dispatch(self.engine.handle_action(seat_index, ActionType.FOLD))
            return

        menu = self.engine.get_available_actions(seat_index)
        await self.send_to_seat(seat_index, menu.to_dict())
        if self.config.turn_timeout:
            self._timer = asyncio.create_task(
                self._expire_turn(seat_index, self.engine.hand_number)
            )

    async def _settle(self, result: Any) -> None:
        """Copy stacks back to the seats and clear out busted or leaving players."""
        for player in self.engine.players:
            seat = self.seats[player.seat_index]
            if seat is not None and seat.username == player.username:
                seat.chips = player.chips

        if isinstance(result, HandComplete):
            winner_seats = {w.seat_index for w in result.winners}
        else:
            winner_seats = {w.seat_index for pot in result.pot_results for w in pot.winners}
        for seat_index in winner_seats:
            seat = self.seats[seat_index]
            if seat is not None:
                seat.wins += 1

        for seat in self.occupied():
            if seat.chips <= 0:
                await self.broadcast({
                    "type": "player_busted",
                    "seat_index": seat.seat_index,
                    "username": seat.username,
                })
                await self._free_seat(seat.seat_index)
            elif seat.pending_leave:
                await self._free_seat(seat.seat_index)

    async def _advance_runout_later(self) -> None:
        await asyncio.sleep(self.config.runout_delay)
        async with self.lock:
            result = self.engine.advance_runout()
            if result is not None:
                await self._dispatch(result)

    async def _expire_turn(self, seat_index: int, hand_number: int) -> None:
        await asyncio.sleep(self.config.turn_timeout)
        async with self.lock:
            if (
                self.engine.hand_number != hand_number
                or self.engine.current_player_seat != seat_index
            ):
                return
            result = self.engine.timeout_action(seat_index)
            if not isinstance(result, ActionError):
                await self._dispatch(result)

    def _cancel_timer(self) -> None:
        if self._timer is not None and self._timer is not asyncio.current_task():
            self._timer.cancel()
        self._timer = None


class TableManager:
    """
    Manages tables by code.

    Usage:
        manager = TableManager()
        table = manager.create_table(TableSettings())
        seat = await table.sit(0, "alice")
    """

    def __init__(self):
        self.tables: Dict[str, Table] = {}

    def create_table(
        self,
        settings: Optional[TableSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> Table:
        """Open a table under a fresh six-character code."""
        code = self._new_code()
        table = Table(table_id=code, settings=settings or TableSettings(), rng=rng)
        self.tables[code] = table
        logger.info(f"Created table {code}")
        return table

    def get_table(self, table_id: str) -> Optional[Table]:
        return self.tables.get(table_id.upper().strip())

    def remove_table(self, table_id: str) -> None:
        table = self.tables.pop(table_id, None)
        if table is not None:
            table.close()
            logger.info(f"Removed table {table_id}")

    def _new_code(self) -> str:
        while True:
            code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
            if code not in self.tables:
                return code


# Global manager instance shared by the HTTP routes and WebSocket endpoint
table_manager = TableManager()
