import json
import os
from typing import List

from ...domain.repositories import SessionRepository
from ....common.logging import setup_logger
from ....common.schemas import SessionSnapshot

logger = setup_logger(__name__)

SESSIONS_KEY = "traffic_ai_sessions"


class JsonSessionRepository(SessionRepository):
    """
    Key-value store kept in a single JSON file.
    Sessions live under one key, newest first.
    """
    def __init__(self, path: str, key: str = SESSIONS_KEY):
        self.path = path
        self.key = key
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _read_store(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, mode='r', encoding='utf-8') as f:
            content = f.read()
        if not content.strip():
            return {}
        return json.loads(content)

    def _write_store(self, store: dict):
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, mode='w', encoding='utf-8') as f:
            json.dump(store, f, indent=2)
        os.replace(tmp_path, self.path)

    def save(self, session: SessionSnapshot):
        store = self._read_store()
        existing = store.get(self.key, [])
        store[self.key] = [session.model_dump(by_alias=True)] + existing
        self._write_store(store)
        logger.info(f"Saved session {session.id} ({session.source_label})")

    def list(self) -> List[SessionSnapshot]:
        store = self._read_store()
        return [SessionSnapshot.model_validate(raw) for raw in store.get(self.key, [])]
