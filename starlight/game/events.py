"""Engine notifications.

The round engine never talks to a display directly. Every card, state
change and refused action is published as a :class:`GameEvent`, and the
HTTP and WebSocket layers render from those.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from itertools import count
from typing import Any, Callable


class EventType(Enum):
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    GAME_RESET = auto()

    BET_PLACED = auto()
    BET_DOUBLED = auto()
    CARD_DEALT = auto()

    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_BUSTS = auto()

    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()

    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Refused operations; the session is left untouched
    INVALID_BET = auto()
    PREMATURE_DEAL = auto()
    OUT_OF_PHASE_ACTION = auto()

    # Last event of every accepted operation
    STATE_CHANGED = auto()


REJECTION_EVENTS = frozenset(
    {EventType.INVALID_BET, EventType.PREMATURE_DEAL, EventType.OUT_OF_PHASE_ACTION}
)


@dataclass(frozen=True)
class GameEvent:
    """One notification from the engine.

    ``sequence`` increases by one per event within an emitter, so a client
    that reconnects can tell which events it has already rendered.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"#{self.sequence} {self.event_type.name} {self.data}"

    @property
    def is_rejection(self) -> bool:
        return self.event_type in REJECTION_EVENTS


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """Dispatches events to observers in the order they subscribed.

    An observer registered for a single event type only sees that type;
    one registered with ``event_type=None`` sees everything. A bounded
    history of recent events is kept for late subscribers.
    """

    def __init__(self, history_limit: int = 500) -> None:
        self._observers: list[tuple[EventType | None, EventHandler]] = []
        self._recent: deque[GameEvent] = deque(maxlen=history_limit)
        self._sequence = count(1)

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        self._observers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Remove a subscription; unknown handlers are ignored."""
        try:
            self._observers.remove((event_type, handler))
        except ValueError:
            pass

    def emit(self, event: GameEvent) -> None:
        self._recent.append(event)
        # Observers may unsubscribe themselves while handling
        for wanted, handler in tuple(self._observers):
            if wanted is None or wanted is event.event_type:
                handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build the next numbered event, publish it and return it."""
        event = GameEvent(event_type, data, next(self._sequence))
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        return list(self._recent)

    def clear_history(self) -> None:
        self._recent.clear()
