"""
Domain protocols for the detection simulation module.
"""
from typing import TYPE_CHECKING, Optional, Protocol, Tuple

if TYPE_CHECKING:
    from .entities import TickSnapshot

class SourceHandle(Protocol):
    """
    Transient resource behind an uploaded source. release() must be safe to call twice.
    """
    @property
    def released(self) -> bool:
        ...

    def release(self) -> bool:
        ...

class MediaViewport(Protocol):
    """
    Host media primitive: exposes the displayable frame and its pixel size.
    """
    @property
    def size(self) -> Tuple[int, int]:
        ...

    def read(self) -> Optional[object]:
        ...

    def release(self):
        ...

class SnapshotListener(Protocol):
    """
    Receives every tick snapshot produced for a slot.
    """
    def __call__(self, snapshot: 'TickSnapshot') -> None:
        ...
