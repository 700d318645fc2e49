"""
Produces persisted session records from the active slots.
"""
import time
from datetime import datetime
from typing import Dict, List, Optional

from ..domain.entities import VEHICLE_TYPES, StreamSlot
from ..domain.repositories import SessionRepository
from ...common.exceptions import NoActiveStreams
from ...common.logging import setup_logger
from ...common.metrics import StreamMetrics
from ...common.schemas import SessionSnapshot, VehicleCount

logger = setup_logger(__name__)


def format_duration(seconds: float) -> str:
    total = int(max(0.0, seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def default_session_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Session {now.strftime('%H:%M:%S')}"


class SessionSnapshotProducer:
    """
    Summarizes the occupied slots into a SessionSnapshot and hands it to the repository.
    """

    def __init__(self, repository: Optional[SessionRepository] = None, clock=time.time):
        self.repository = repository
        self._clock = clock

    def produce(
        self,
        slots: List[StreamSlot],
        model_name: str,
        session_name: str,
        metrics: Dict[int, StreamMetrics]
    ) -> SessionSnapshot:
        active = [slot for slot in slots if not slot.is_empty]
        if not active:
            raise NoActiveStreams("No active streams to save.")

        counts = {t: 0 for t in VEHICLE_TYPES}
        fps_values = []
        longest = 0.0
        for slot in active:
            stream_metrics = metrics.get(slot.index)
            if stream_metrics is None:
                continue
            for vehicle_type, count in stream_metrics.vehicle_counts.items():
                counts[vehicle_type] = counts.get(vehicle_type, 0) + count
            if stream_metrics.ticks_processed:
                fps_values.append(stream_metrics.avg_fps)
            longest = max(longest, stream_metrics.elapsed_seconds)

        now = self._clock()
        return SessionSnapshot(
            id=f"sess_{int(now * 1000)}",
            timestamp=datetime.fromtimestamp(now).strftime("%Y-%m-%d %H:%M"),
            model_used=model_name,
            duration=format_duration(longest),
            total_vehicles=sum(counts.values()),
            vehicle_counts=[VehicleCount(type=t, count=counts[t]) for t in VEHICLE_TYPES],
            source_label=session_name,
            avg_fps=round(sum(fps_values) / len(fps_values), 1) if fps_values else 0.0
        )

    def save(
        self,
        slots: List[StreamSlot],
        model_name: str,
        session_name: Optional[str],
        metrics: Dict[int, StreamMetrics]
    ) -> Optional[SessionSnapshot]:
        """
        Produces and persists a session. A blank name cancels and returns None.
        """
        if not any(not slot.is_empty for slot in slots):
            raise NoActiveStreams("No active streams to save.")
        if session_name is None or not session_name.strip():
            logger.info("Session save cancelled, no name given")
            return None

        session = self.produce(slots, model_name, session_name.strip(), metrics)
        if self.repository is not None:
            self.repository.save(session)
        return session
