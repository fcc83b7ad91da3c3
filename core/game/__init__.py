"""Table engine and round state management."""

from core.game.events import GameEvent, EventType
from core.game.state import GamePhase
from core.game.engine import BetZone, BlackjackTable, Round
from core.game.pacing import DealerPacer, DealerTiming
from core.game.schemas import MatchResult, TableSnapshot
from core.game.settlement import HandOutcome, RoundSettlement, settle_hands

__all__ = [
    "GameEvent",
    "EventType",
    "GamePhase",
    "BetZone",
    "BlackjackTable",
    "Round",
    "DealerPacer",
    "DealerTiming",
    "MatchResult",
    "TableSnapshot",
    "HandOutcome",
    "RoundSettlement",
    "settle_hands",
]
