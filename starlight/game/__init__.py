"""Round engine and session state."""

from starlight.game.events import EventEmitter, EventType, GameEvent
from starlight.game.state import Action, Phase
from starlight.game.session import Session, SessionSnapshot
from starlight.game.engine import RoundEngine

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "Action",
    "Phase",
    "Session",
    "SessionSnapshot",
    "RoundEngine",
]
