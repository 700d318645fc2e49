"""
Domain entities for the detection simulation module.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .protocols import SourceHandle

VEHICLE_TYPES: Tuple[str, ...] = ('Car', 'Truck', 'Bus', 'Motorcycle')
LARGE_VEHICLE_TYPES = frozenset({'Bus', 'Truck'})


@dataclass(frozen=True)
class TrackedObject:
    """
    A simulated vehicle whose identity persists across ticks.
    Box coordinates are normalized to the viewport: (x, y, w, h) in [0, 1].
    """
    id: str
    vehicle_type: str
    box: Tuple[float, float, float, float]
    confidence: float


@dataclass(frozen=True)
class AggregateSnapshot:
    """
    Per-tick summary of one slot. breakdown follows VEHICLE_TYPES order.
    """
    total: int
    breakdown: Dict[str, int]
    fps: float

    @classmethod
    def empty(cls) -> 'AggregateSnapshot':
        return cls(total=0, breakdown={t: 0 for t in VEHICLE_TYPES}, fps=0.0)


@dataclass(frozen=True)
class TickSnapshot:
    """
    Immutable result of one simulator tick. Renderers and broadcasters only see this.
    """
    slot_index: int
    generation: int
    tick: int
    timestamp: float
    tracks: Tuple[TrackedObject, ...]
    aggregate: AggregateSnapshot


class GateState(str, Enum):
    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"


@dataclass
class StreamSource:
    """
    A source bound (or about to be bound) to a slot.
    handle is set for uploaded local files and must be released once.
    """
    reference: str
    label: str = ""
    handle: Optional[SourceHandle] = None

    def __post_init__(self):
        if not self.label:
            self.label = self.reference

    @property
    def is_local(self) -> bool:
        return self.handle is not None


@dataclass
class StreamSlot:
    """
    One of the fixed-capacity stream units.
    generation increases on every bind and every clear.
    """
    index: int
    source: Optional[StreamSource] = None
    is_inferencing: bool = False
    generation: int = 0

    @property
    def is_empty(self) -> bool:
        return self.source is None


@dataclass
class SlotStatus:
    """
    Readout of a slot for status endpoints.
    """
    index: int
    source: Optional[str]
    label: Optional[str]
    is_inferencing: bool
    gate: GateState
    generation: int
    aggregate: AggregateSnapshot = field(default_factory=AggregateSnapshot.empty)
