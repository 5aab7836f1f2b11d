"""
Pydantic schemas for API request validation and table settings.
"""

from typing import Optional
from pydantic import BaseModel, Field, model_validator

from pokersite.core.rules import TableConfig, DEFAULT_MAX_SEATS


# ============= Settings =============

class TableSettings(BaseModel):
    """Table settings, bounded like the lobby form; the host may change them between hands."""
    starting_stack: int = Field(default=1000, ge=100, le=100000)
    small_blind: int = Field(default=5, ge=1, le=10000)
    big_blind: int = Field(default=10, ge=2, le=20000)
    turn_timeout: Optional[float] = Field(default=None, gt=0, description="Seconds before a stalled seat is auto-acted")
    runout_delay: float = Field(default=1.8, ge=0, le=10)
    short_all_in_reopens: bool = True
    merge_dead_tiers: bool = False

    @model_validator(mode="after")
    def check_blinds(self) -> "TableSettings":
        if self.big_blind < self.small_blind:
            raise ValueError("big_blind must be at least small_blind")
        return self

    def to_config(self) -> TableConfig:
        return TableConfig(
            small_blind=self.small_blind,
            big_blind=self.big_blind,
            starting_stack=self.starting_stack,
            max_seats=DEFAULT_MAX_SEATS,
            short_all_in_reopens=self.short_all_in_reopens,
            merge_dead_tiers=self.merge_dead_tiers,
            turn_timeout=self.turn_timeout,
            runout_delay=self.runout_delay,
        )


# ============= Request Schemas =============

class CreateTableRequest(BaseModel):
    """Request to open a new table."""
    settings: TableSettings = Field(default_factory=TableSettings)


class SeatRequest(BaseModel):
    """Request to take a seat."""
    seat_index: int = Field(ge=0, lt=DEFAULT_MAX_SEATS)
    username: str = Field(min_length=1, max_length=24)


class ActionRequest(BaseModel):
    """Request to act for a seat."""
    action: str = Field(..., description="Action: fold, check, call, raise, allin")
    amount: Optional[int] = Field(default=0, ge=0, description="Total bet to raise to")


# ============= WebSocket Message Schemas =============

class WSJoinMessage(BaseModel):
    """
    First frame on a table socket.

    No seat means spectator. A seat needs the token handed out when it was
    taken; the host token unlocks dealing and host controls.
    """
    type: str = "join"
    seat_index: Optional[int] = Field(default=None, ge=0, lt=DEFAULT_MAX_SEATS)
    token: Optional[str] = None
    host_token: Optional[str] = None


class WSActionMessage(BaseModel):
    """WebSocket action message."""
    type: str = "action"
    action: str
    amount: Optional[int] = Field(default=0, ge=0)


class WSKickMessage(BaseModel):
    type: str = "kick"
    seat_index: int = Field(ge=0, lt=DEFAULT_MAX_SEATS)


class WSSettingsMessage(BaseModel):
    type: str = "update_settings"
    settings: TableSettings
