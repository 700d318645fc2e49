"""
Domain repositories for the detection simulation module.
"""
from typing import List, Protocol
from ...common.schemas import SessionSnapshot

class SessionRepository(Protocol):
    """
    Key-value persistence boundary for saved sessions.
    """
    def save(self, session: SessionSnapshot):
        ...

    def list(self) -> List[SessionSnapshot]:
        ...
