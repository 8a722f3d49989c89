"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Literal


class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: int = Field(..., ge=1, description="Chips to add to the current bet")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double"]


class NewSessionResponse(BaseModel):
    session_id: str


class CardResponse(BaseModel):
    """Card representation. Face-down cards carry no rank or suit."""

    rank: str
    suit: str
    value: int
    color: Literal["red", "black"] | None = None
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    score: int | None


class SessionResponse(BaseModel):
    """Everything a client needs to render the table."""

    phase: str
    bankroll: int
    current_bet: int
    wins: int
    losses: int
    pushes: int
    player_hand: HandResponse
    dealer_hand: HandResponse
    message: str
    last_outcome: Literal["win", "loss", "push"] | None
    available_actions: list[str]
    chip_values: list[int]


class GameConfigResponse(BaseModel):
    """Table settings shown by the client."""

    starting_bankroll: int
    dealer_stands_on: int
    allow_double: bool
    chip_values: list[int]
