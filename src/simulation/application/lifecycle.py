"""
Registry of the fixed stream slots.
"""
from dataclasses import replace
from typing import Callable, List, Tuple

from ..domain.entities import StreamSlot, StreamSource
from ...common.exceptions import CapacityExceeded, EmptySource, InvalidSlot
from ...common.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_CAPACITY = 4


class StreamLifecycleManager:
    """
    Binds sources to the first free slot and clears them again.
    Failed operations leave every slot untouched.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._slots: List[StreamSlot] = [StreamSlot(index=i) for i in range(capacity)]

    @property
    def slots(self) -> Tuple[StreamSlot, ...]:
        """Copies of all slots, safe to hand out."""
        return tuple(replace(slot) for slot in self._slots)

    def get(self, index: int) -> StreamSlot:
        self._check_index(index)
        return replace(self._slots[index])

    def active_slots(self) -> List[StreamSlot]:
        return [replace(slot) for slot in self._slots if not slot.is_empty]

    def first_empty_index(self) -> int:
        for slot in self._slots:
            if slot.is_empty:
                return slot.index
        return -1

    def assign(self, source: StreamSource) -> int:
        """
        Binds source to the first empty slot and marks it inferencing.
        Returns the slot index.
        """
        if source is None or not source.reference.strip():
            raise EmptySource("Please enter a video stream URL or upload a local file.")

        index = self.first_empty_index()
        if index == -1:
            raise CapacityExceeded("All video slots are in use. Stop a stream to add a new one.")

        slot = self._slots[index]
        slot.source = source
        slot.is_inferencing = True
        slot.generation += 1
        logger.info(f"Slot {index}: bound to {source.label}")
        return index

    def stop(self, index: int) -> bool:
        """
        Clears a slot and releases its transient handle.
        Returns False, without releasing anything, when the slot was already empty.
        """
        self._check_index(index)
        slot = self._slots[index]
        if slot.is_empty:
            return False

        source = slot.source
        slot.source = None
        slot.is_inferencing = False
        slot.generation += 1

        if source.handle is not None:
            source.handle.release()
        logger.info(f"Slot {index}: stopped")
        return True

    def stop_all(self, confirm: Callable[[], bool]) -> int:
        """
        Stops every occupied slot once confirm() agrees.
        Returns the number of slots stopped.
        """
        if not any(slot.is_inferencing for slot in self._slots):
            logger.info("No active streams to stop.")
            return 0
        if not confirm():
            return 0

        stopped = 0
        for slot in self._slots:
            if self.stop(slot.index):
                stopped += 1
        return stopped

    def _check_index(self, index: int):
        if not 0 <= index < self.capacity:
            raise InvalidSlot(f"Slot index {index} is outside 0..{self.capacity - 1}")
