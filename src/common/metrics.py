from dataclasses import dataclass, field
from typing import Dict, List
import time

@dataclass
class StreamMetrics:
    """Per-slot simulation metrics"""
    avg_fps: float
    avg_tick_time_ms: float
    ticks_processed: int
    vehicles_seen: int
    vehicle_counts: Dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'avg_fps': self.avg_fps,
            'avg_tick_time_ms': self.avg_tick_time_ms,
            'ticks_processed': self.ticks_processed,
            'vehicles_seen': self.vehicles_seen,
            'vehicle_counts': dict(self.vehicle_counts),
            'elapsed_seconds': self.elapsed_seconds
        }


class MetricsCollector:
    """Collects and aggregates metrics for one bound stream"""

    def __init__(self, clock=time.time):
        self._clock = clock
        self.tick_times: List[float] = []
        self.reported_fps: List[float] = []
        self.ticks_processed = 0
        self.vehicle_counts: Dict[str, int] = {}
        self.start_time = clock()

    def record_tick(self, duration_ms: float, fps: float):
        self.tick_times.append(duration_ms)
        self.reported_fps.append(fps)
        self.ticks_processed += 1
        # Keep buffer size manageable
        if len(self.tick_times) > 1000:
            self.tick_times.pop(0)
        if len(self.reported_fps) > 1000:
            self.reported_fps.pop(0)

    def record_spawns(self, spawned: Dict[str, int]):
        for vehicle_type, count in spawned.items():
            self.vehicle_counts[vehicle_type] = self.vehicle_counts.get(vehicle_type, 0) + count

    def get_metrics(self) -> StreamMetrics:
        elapsed = max(0.0, self._clock() - self.start_time)
        avg_fps = sum(self.reported_fps) / len(self.reported_fps) if self.reported_fps else 0.0
        avg_tick = sum(self.tick_times) / len(self.tick_times) if self.tick_times else 0.0

        return StreamMetrics(
            avg_fps=avg_fps,
            avg_tick_time_ms=avg_tick,
            ticks_processed=self.ticks_processed,
            vehicles_seen=sum(self.vehicle_counts.values()),
            vehicle_counts=dict(self.vehicle_counts),
            elapsed_seconds=elapsed
        )
