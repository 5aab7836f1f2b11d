"""
WebSocket handling for real-time table communication.

Protocol:
1. Client connects to /ws/{table_id} and sends
   {"type": "join", "seat_index": 3, "token": "..."} (omit seat_index to
   spectate, add "host_token" to get host controls)
2. Server sends the table state (with the seat's hole cards if any)
3. Client sends {"type": "action", "action": "call", "amount": 0},
   {"type": "get_state"} or {"type": "leave"}; the host may also send
   {"type": "start_hand"}, {"type": "kick", "seat_index": 2} or
   {"type": "update_settings", "settings": {...}}
4. Server broadcasts every engine record to the whole table and sends
   hole cards and action menus only to the owning seat
"""

from __future__ import annotations
from typing import Any, Dict, Optional
import logging
import uuid

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from pokersite.core.results import ActionError
from pokersite.server.schemas import WSActionMessage, WSJoinMessage, WSKickMessage, WSSettingsMessage
from pokersite.server.tables import Connection, Table, TableError, table_manager


logger = logging.getLogger(__name__)

HOST_MESSAGES = ("start_hand", "kick", "update_settings")


async def handle_message(table: Table, conn: Connection, message: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle one frame from a client.

    Returns:
        The direct reply for the sender
    """
    msg_type = message.get("type")

    if msg_type in HOST_MESSAGES and not conn.is_host:
        return {"type": "error", "message": "Host only"}

    if msg_type == "action":
        if conn.seat_index is None:
            return {"type": "error", "message": "Spectators cannot act"}
        try:
            msg = WSActionMessage.model_validate(message)
        except ValidationError as e:
            return {"type": "error", "message": str(e)}
        result = await table.act(conn.seat_index, msg.action.lower(), msg.amount)
        if isinstance(result, ActionError):
            return result.to_dict()
        return {"type": "action_result", "success": True, "action": msg.action.lower()}

    if msg_type == "start_hand":
        try:
            result = await table.start_hand()
        except TableError as e:
            return {"type": "error", "message": str(e)}
        return {"type": "action_result", "success": True, "hand_number": result.hand_number}

    if msg_type == "kick":
        try:
            msg = WSKickMessage.model_validate(message)
            await table.kick(msg.seat_index)
        except (ValidationError, TableError) as e:
            return {"type": "error", "message": str(e)}
        return {"type": "action_result", "success": True, "kicked": msg.seat_index}

    if msg_type == "update_settings":
        try:
            msg = WSSettingsMessage.model_validate(message)
            await table.update_settings(msg.settings)
        except (ValidationError, TableError) as e:
            return {"type": "error", "message": str(e)}
        return {"type": "action_result", "success": True}

    if msg_type == "leave":
        if conn.seat_index is None:
            return {"type": "error", "message": "Not seated"}
        try:
            await table.leave(conn.seat_index)
        except TableError as e:
            return {"type": "error", "message": str(e)}
        conn.seat_index = None
        return {"type": "action_result", "success": True}

    if msg_type == "get_state":
        return {"type": "state", **table.state(for_seat=conn.seat_index)}

    return {"type": "error", "message": f"Unknown message type: {msg_type}"}


async def websocket_endpoint(websocket: WebSocket, table_id: str):
    """WebSocket endpoint for one table."""
    conn: Optional[Connection] = None
    table = table_manager.get_table(table_id)

    try:
        await websocket.accept()
        if table is None:
            await websocket.send_json({"type": "error", "message": "Table not found"})
            await websocket.close()
            return

        join_msg = await websocket.receive_json()
        if join_msg.get("type") != "join":
            await websocket.send_json({"type": "error", "message": "First message must be join"})
            await websocket.close()
            return

        try:
            join = WSJoinMessage.model_validate(join_msg)
        except ValidationError as e:
            await websocket.send_json({"type": "error", "message": str(e)})
            await websocket.close()
            return

        if join.seat_index is not None:
            if table.seats[join.seat_index] is None:
                error = "Seat is empty"
            elif not table.owns_seat(join.seat_index, join.token):
                error = "Invalid seat token"
            else:
                error = None
            if error:
                await websocket.send_json({"type": "error", "message": error})
                await websocket.close()
                return

        if join.host_token is not None and not table.is_host(join.host_token):
            await websocket.send_json({"type": "error", "message": "Invalid host token"})
            await websocket.close()
            return

        conn = Connection(
            conn_id=uuid.uuid4().hex,
            websocket=websocket,
            seat_index=join.seat_index,
            is_host=join.host_token is not None,
        )
        table.connections[conn.conn_id] = conn
        logger.info(f"Connection {conn.conn_id} joined {table.table_id} (seat {conn.seat_index})")

        await websocket.send_json({"type": "state", **table.state(for_seat=conn.seat_index)})

        while True:
            message = await websocket.receive_json()
            reply = await handle_message(table, conn, message)
            await websocket.send_json(reply)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {conn.conn_id if conn else table_id}")
    finally:
        if table is not None and conn is not None:
            await drop_connection(table, conn)


async def drop_connection(table: Table, conn: Connection) -> None:
    """
    Forget a closed connection.

    A seat is only given up when this was the last socket bound to it.
    Only sockets that proved the seat token are ever bound, so nobody else's
    disconnect can free it.
    """
    table.connections.pop(conn.conn_id, None)
    seat_index = conn.seat_index
    if seat_index is None or table.seats[seat_index] is None:
        return
    if any(c.seat_index == seat_index for c in table.connections.values()):
        return
    # A dropped player is folded out like one who stood up
    try:
        await table.leave(seat_index)
    except TableError as e:
        logger.warning(f"Leave after disconnect failed: {e}")
