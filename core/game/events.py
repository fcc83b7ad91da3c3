"""Table events published by the engine."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of table events. Values are stable names for renderers."""

    # Round lifecycle
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    ROUND_RESET = "round_reset"

    # Chips on the felt
    BET_PLACED = "bet_placed"
    BETS_CLEARED = "bets_cleared"

    # Shoe
    CARD_DEALT = "card_dealt"
    SHOE_SHUFFLED = "shoe_shuffled"

    # Perfect Pairs and 21+3
    SIDE_BET_WON = "side_bet_won"
    SIDE_BET_LOST = "side_bet_lost"

    # Player actions
    PLAYER_HIT = "player_hit"
    PLAYER_STAND = "player_stand"
    PLAYER_DOUBLE = "player_double"
    PLAYER_SPLIT = "player_split"

    # Dealer
    DEALER_TURN_STARTED = "dealer_turn_started"
    DEALER_REVEALS = "dealer_reveals"
    DEALER_HITS = "dealer_hits"
    DEALER_STANDS = "dealer_stands"
    DEALER_BUSTS = "dealer_busts"
    DEALER_BLACKJACK = "dealer_blackjack"

    # Outcomes
    PLAYER_BLACKJACK = "player_blackjack"
    PLAYER_BUSTS = "player_busts"
    PLAYER_WINS = "player_wins"
    PLAYER_LOSES = "player_loses"
    PUSH = "push"
    CROWNS_AWARDED = "crowns_awarded"

    # Rejected actions; nothing changed
    INVALID_ACTION = "invalid_action"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    The engine never calls the presentation layer directly; renderers,
    sound and the economy layer all learn what happened from these.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def get(self, key: str, default: Any = None) -> Any:
        """Read one payload field."""
        return self.data.get(key, default)

    def __str__(self) -> str:
        return f"{self.event_type.value}: {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Dispatches table events to subscribers and keeps a bounded history.

    Handlers registered for a specific type run before catch-all handlers
    (registered with ``event_type=None``). A handler may subscribe or
    unsubscribe while an event is being dispatched.
    """

    def __init__(self, max_history: int = 1000) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._history: deque[GameEvent] = deque(maxlen=max_history)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Called with every matching event
            event_type: Only deliver this type, or every event if None

        Returns:
            A callable that removes the handler again
        """
        self._handlers.setdefault(event_type, []).append(handler)
        return lambda: self.unsubscribe(handler, event_type)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record an event and call its subscribers."""
        logger.debug("Event %s", event)
        self._history.append(event)

        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)
        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build an event from keyword data, emit it and return it."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Recorded events, oldest first."""
        return list(self._history)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        """Recorded events of one type."""
        return [e for e in self._history if e.event_type == event_type]

    def last(self, event_type: EventType) -> GameEvent | None:
        """Most recent recorded event of one type."""
        for event in reversed(self._history):
            if event.event_type == event_type:
                return event
        return None

    def clear_history(self) -> None:
        self._history.clear()
