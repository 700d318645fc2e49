"""
Domain module initialization.
"""
from .entities import (
    VEHICLE_TYPES,
    LARGE_VEHICLE_TYPES,
    TrackedObject,
    AggregateSnapshot,
    TickSnapshot,
    GateState,
    StreamSource,
    StreamSlot,
    SlotStatus
)
from .protocols import (
    SourceHandle,
    MediaViewport,
    SnapshotListener
)
from .repositories import SessionRepository
