import asyncio
from typing import Dict, Set
from datetime import datetime

from ...domain.entities import TickSnapshot
from ....common.logging import setup_logger

logger = setup_logger(__name__)


class RealtimeBroadcaster:
    """
    Pub/sub system to transmit tick snapshots to connected clients.
    Keyed by slot index, asynchronous.
    """

    def __init__(self):
        # Subscribers per slot
        self._subscribers: Dict[int, Set[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()

        # Cache latest state per slot (for new subscribers)
        self._latest_state: Dict[int, dict] = {}

    @property
    def latest_states(self) -> Dict[int, dict]:
        return dict(self._latest_state)

    async def subscribe(self, slot_index: int, queue_size: int = 50) -> asyncio.Queue:
        """
        Subscribes a client to updates from a specific slot.
        Returns an async queue that will receive the data.
        """
        queue = asyncio.Queue(maxsize=queue_size)

        async with self._lock:
            if slot_index not in self._subscribers:
                self._subscribers[slot_index] = set()
            self._subscribers[slot_index].add(queue)

        # Send latest known state immediately
        if slot_index in self._latest_state:
            try:
                queue.put_nowait(self._latest_state[slot_index])
            except asyncio.QueueFull:
                pass

        return queue

    async def unsubscribe(self, slot_index: int, queue: asyncio.Queue):
        """Removes a subscriber."""
        async with self._lock:
            if slot_index in self._subscribers:
                self._subscribers[slot_index].discard(queue)
                if not self._subscribers[slot_index]:
                    del self._subscribers[slot_index]

    def publish(self, slot_index: int, data: dict):
        """
        Transmits data to all subscribers of a slot without awaiting.
        Safe to call from timer callbacks on the event loop. Slow clients are skipped.
        """
        self._latest_state[slot_index] = data

        for queue in list(self._subscribers.get(slot_index, ())):
            try:
                queue.put_nowait(data)
            except asyncio.QueueFull:
                logger.warning(f"Skipping slow client for slot {slot_index}")

    def clear(self, slot_index: int):
        """Forgets the cached state of a slot that was stopped."""
        self._latest_state.pop(slot_index, None)

    def serialize_snapshot(self, snapshot: TickSnapshot) -> dict:
        """
        Converts a TickSnapshot to a JSON-serializable dict.
        """
        aggregate = snapshot.aggregate
        return {
            "slot": snapshot.slot_index,
            "generation": snapshot.generation,
            "tick": snapshot.tick,
            "timestamp": datetime.fromtimestamp(snapshot.timestamp).isoformat(),
            "total_vehicles": aggregate.total,
            "breakdown": [
                {"type": vehicle_type, "count": count}
                for vehicle_type, count in aggregate.breakdown.items()
            ],
            "fps": aggregate.fps,
            "vehicles": [
                {
                    "id": track.id,
                    "type": track.vehicle_type,
                    "confidence": round(track.confidence, 2),
                    "box": [round(v, 4) for v in track.box]
                }
                for track in snapshot.tracks
            ]
        }
