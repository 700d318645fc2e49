"""
Per-slot initialization gate modelling the warmup of an inference backend.
"""
import asyncio
from typing import Callable, Optional

from ..domain.entities import GateState
from ...common.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_GATE_DELAY_SECONDS = 2.5


class InitializationGate:
    """
    One-shot timed transition closed -> connecting -> open.

    The timer is armed on the event loop when inferencing turns on. Turning it
    off cancels a pending timer and closes the gate. Every arm bumps the gate
    generation so a timer that fires late cannot open a newer activation.
    """

    def __init__(
        self,
        slot_index: int,
        delay_seconds: float = DEFAULT_GATE_DELAY_SECONDS,
        on_open: Optional[Callable[[], None]] = None,
        on_close: Optional[Callable[[], None]] = None
    ):
        self.slot_index = slot_index
        self.delay_seconds = delay_seconds
        self.on_open = on_open
        self.on_close = on_close

        self._state = GateState.CLOSED
        self._inferencing = False
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == GateState.OPEN

    @property
    def is_connecting(self) -> bool:
        return self._state == GateState.CONNECTING

    def set_inferencing(self, active: bool):
        """Feeds the slot's inferencing flag. Only edges change the gate."""
        if active and not self._inferencing:
            self._inferencing = True
            self._arm()
        elif not active and self._inferencing:
            self._inferencing = False
            self.reset()

    def reset(self):
        """Cancels any pending timer and closes the gate."""
        self._cancel_timer()
        was_open = self._state == GateState.OPEN
        self._state = GateState.CLOSED
        if was_open and self.on_close:
            self.on_close()

    def _arm(self):
        self._cancel_timer()
        self._generation += 1
        self._state = GateState.CONNECTING
        logger.info(f"Slot {self.slot_index}: connecting for {self.delay_seconds:.1f}s")

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_seconds, self._open, self._generation)

    def _open(self, generation: int):
        if generation != self._generation or self._state != GateState.CONNECTING:
            return
        self._timer = None
        self._state = GateState.OPEN
        logger.info(f"Slot {self.slot_index}: gate open")
        if self.on_open:
            self.on_open()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
