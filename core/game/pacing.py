"""Timed, cancellable dealer play for tables with paced_dealer=True."""

import asyncio
import logging
from dataclasses import dataclass

from core.game.engine import BlackjackTable
from core.game.events import EventType, GameEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealerTiming:
    """Pauses, in seconds, between the steps of the dealer's turn."""

    reveal_delay: float = 0.6
    draw_delay: float = 0.5
    settle_delay: float = 0.4


class DealerPacer:
    """
    Plays the dealer turn as an asyncio task with pauses between draws.

    The task is started when the table enters the dealer turn and is bound
    to that round's ``round_id``. ``new_round()`` cancels it, and every step
    re-checks the round before touching the table, so a stale step never
    applies to a later round.
    """

    def __init__(self, table: BlackjackTable, timing: DealerTiming | None = None) -> None:
        """
        Attach a pacer to a table.

        Must be called from a running event loop; the dealer turn is
        scheduled on that loop when the player turn ends.

        Raises:
            RuntimeError: If there is no running event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise RuntimeError(
                "DealerPacer must be created inside a running event loop"
            ) from exc
        self.table = table
        self.timing = timing or DealerTiming()
        self._task: asyncio.Task[bool] | None = None
        table.subscribe(self._on_dealer_turn, EventType.DEALER_TURN_STARTED)
        table.on_reset(self.cancel)

    @property
    def task(self) -> "asyncio.Task[bool] | None":
        """The running dealer task, if any."""
        return self._task

    def _on_dealer_turn(self, event: GameEvent) -> None:
        self.start(event.data["round_id"])

    def start(self, round_id: int) -> "asyncio.Task[bool]":
        """Schedule the dealer turn of ``round_id`` on the running loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._play(round_id))
        return self._task

    def cancel(self) -> None:
        """Drop any pending dealer steps."""
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling dealer turn of round %d", self.table.round_id)
            self._task.cancel()
        self._task = None

    def _current(self, round_id: int) -> bool:
        return self.table.round_id == round_id

    async def _play(self, round_id: int) -> bool:
        """Reveal, draw with pauses, then settle. Returns True if it settled."""
        if not self._current(round_id) or not self.table.reveal_hole_card():
            return False

        await asyncio.sleep(self.timing.reveal_delay)

        while self._current(round_id) and self.table.dealer_should_draw:
            await asyncio.sleep(self.timing.draw_delay)
            if not self._current(round_id):
                return False
            self.table.dealer_draw()

        await asyncio.sleep(self.timing.settle_delay)
        if not self._current(round_id):
            return False
        return self.table.finish_dealer_turn()

    async def wait(self) -> bool:
        """Wait for the scheduled dealer turn; False if none ran to the end."""
        task = self._task
        if task is None:
            return False
        await asyncio.wait({task})
        return not task.cancelled() and task.result()
