"""
HTTP API Routes for Pokersite.

These routes manage tables and seats and let a client act over plain HTTP.
Real-time updates are pushed over the WebSocket endpoint.

Opening a table returns a host token and taking a seat returns a seat
token. Seat routes expect the seat token in ``X-Seat-Token``; host
controls expect the host token in ``X-Host-Token``.
"""

from typing import Dict, Any, Optional
from fastapi import APIRouter, Header, HTTPException

from pokersite.core.results import ActionError
from pokersite.server.schemas import ActionRequest, CreateTableRequest, SeatRequest, TableSettings
from pokersite.server.tables import Table, TableError, table_manager

router = APIRouter()


def get_table(table_id: str) -> Table:
    """Get a table or fail with 404."""
    table = table_manager.get_table(table_id)
    if table is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


def require_seat(table: Table, seat_index: int, token: Optional[str]) -> None:
    if not table.owns_seat(seat_index, token):
        raise HTTPException(status_code=403, detail="Invalid seat token")


def require_host(table: Table, token: Optional[str]) -> None:
    if not table.is_host(token):
        raise HTTPException(status_code=403, detail="Host only")


@router.post("/tables")
async def create_table(req: Optional[CreateTableRequest] = None) -> Dict[str, Any]:
    """Open a new table; the caller becomes its host."""
    req = req or CreateTableRequest()
    table = table_manager.create_table(req.settings)
    return {
        "success": True,
        "table_id": table.table_id,
        "host_token": table.host_token,
        "settings": table.settings.model_dump(),
    }


@router.get("/tables/{table_id}")
async def get_table_info(table_id: str) -> Dict[str, Any]:
    """Get table settings, seats and phase."""
    table = get_table(table_id)
    return {
        "table_id": table.table_id,
        "phase": table.engine.phase.value,
        "hand_number": table.engine.hand_number,
        "settings": table.settings.model_dump(),
        "seats": [s.to_dict() if s else None for s in table.seats],
    }


@router.delete("/tables/{table_id}")
async def close_table(
    table_id: str,
    x_host_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    table = get_table(table_id)
    require_host(table, x_host_token)
    table_manager.remove_table(table.table_id)
    return {"success": True}


@router.put("/tables/{table_id}/settings")
async def update_settings(
    table_id: str,
    settings: TableSettings,
    x_host_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """Replace the table settings between hands."""
    table = get_table(table_id)
    require_host(table, x_host_token)
    try:
        await table.update_settings(settings)
    except TableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "settings": table.settings.model_dump()}


@router.get("/tables/{table_id}/state")
async def get_table_state(
    table_id: str,
    seat: Optional[int] = None,
    x_seat_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """Public table state, plus private info for ``seat`` if its token is given."""
    table = get_table(table_id)
    if seat is not None:
        require_seat(table, seat, x_seat_token)
    return table.state(for_seat=seat)


@router.post("/tables/{table_id}/seats")
async def take_seat(table_id: str, req: SeatRequest) -> Dict[str, Any]:
    """Take a seat; the returned token is the only proof of owning it."""
    table = get_table(table_id)
    try:
        seat = await table.sit(req.seat_index, req.username)
    except TableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "seat": seat.to_dict(), "token": seat.token}


@router.delete("/tables/{table_id}/seats/{seat_index}")
async def leave_seat(
    table_id: str,
    seat_index: int,
    x_seat_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    table = get_table(table_id)
    require_seat(table, seat_index, x_seat_token)
    try:
        await table.leave(seat_index)
    except TableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


@router.post("/tables/{table_id}/seats/{seat_index}/kick")
async def kick_seat(
    table_id: str,
    seat_index: int,
    x_host_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    table = get_table(table_id)
    require_host(table, x_host_token)
    try:
        await table.kick(seat_index)
    except TableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


@router.post("/tables/{table_id}/hands")
async def start_hand(
    table_id: str,
    x_host_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """
    Start a new hand.

    The response carries only public information; hole cards are sent to
    each seat over its WebSocket.
    """
    table = get_table(table_id)
    require_host(table, x_host_token)
    try:
        result = await table.start_hand()
    except TableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@router.get("/tables/{table_id}/seats/{seat_index}/actions")
async def get_available_actions(table_id: str, seat_index: int) -> Dict[str, Any]:
    """Action menu for a seat, or null when it is not that seat's turn."""
    table = get_table(table_id)
    menu = table.engine.get_available_actions(seat_index)
    return {"menu": menu.to_dict() if menu else None}


@router.post("/tables/{table_id}/seats/{seat_index}/actions")
async def take_action(
    table_id: str,
    seat_index: int,
    req: ActionRequest,
    x_seat_token: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """Act for a seat and return the resulting record."""
    table = get_table(table_id)
    require_seat(table, seat_index, x_seat_token)
    result = await table.act(seat_index, req.action.lower(), req.amount)
    if isinstance(result, ActionError):
        raise HTTPException(status_code=400, detail=result.message)
    return result.to_dict()
