"""Typed table events and the emitter that dispatches them."""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of game events."""

    # Game flow events
    GAME_STARTED = auto()
    GAME_RESET = auto()
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    PHASE_CHANGED = auto()
    TURN_STARTED = auto()

    # Betting events
    BET_PLACED = auto()
    BET_RESOLVED = auto()

    # Card events
    CARD_DEALT = auto()
    SHOE_SHUFFLED = auto()

    # Super Match events
    SUPER_MATCH_OFFERED = auto()
    SUPER_MATCH_TAKEN = auto()
    SUPER_MATCH_DECLINED = auto()
    SUPER_MATCH_RESOLVED = auto()

    # Switch events
    SWITCH_OFFERED = auto()
    HANDS_SWITCHED = auto()
    HANDS_KEPT = auto()

    # Player action events
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    PLAYER_BUSTS = auto()

    # Dealer events
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()

    # Outcome events
    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Bankroll events
    PLAYER_LOCKED = auto()
    PLAYER_UNLOCKED = auto()
    BANKROLLS_RESET = auto()

    # Error events
    INVALID_ACTION = auto()
    INSUFFICIENT_FUNDS = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    Events are how the engine tells the presentation layer what happened;
    the snapshot tells it where things stand now.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """Dispatch table events to subscribers and keep a bounded history."""

    def __init__(self, history_limit: int = 1000) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = defaultdict(list)
        self._history: deque[GameEvent] = deque(maxlen=history_limit)

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """
        Subscribe to events.

        Args:
            handler: Called with each matching event
            event_type: Only this type, or None for every event
        """
        self._handlers[event_type].append(handler)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Create an event, record it and call its handlers (typed first, then catch-all)."""
        event = GameEvent(event_type=event_type, data=data)
        self._history.append(event)
        logger.debug("%s", event)

        for handler in [*self._handlers.get(event_type, ()), *self._handlers.get(None, ())]:
            handler(event)
        return event

    def last(self, *event_types: EventType) -> GameEvent | None:
        """Most recent event of any of the given types."""
        for event in reversed(self._history):
            if event.event_type in event_types:
                return event
        return None

    @property
    def history(self) -> list[GameEvent]:
        """Recorded events, oldest first."""
        return list(self._history)
