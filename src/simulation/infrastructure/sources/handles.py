"""
Transient local files backing uploaded sources.
"""
import os
import uuid
from pathlib import Path

from ....common.exceptions import SourceError
from ....common.logging import setup_logger

logger = setup_logger(__name__)


class LocalFileHandle:
    """
    Owns an uploaded file on disk. The file is deleted on the first release();
    later calls do nothing.
    """

    def __init__(self, path: str, filename: str):
        self.path = path
        self.filename = filename
        self._released = False

    @classmethod
    def write(cls, uploads_dir: str, filename: str, data: bytes) -> 'LocalFileHandle':
        safe_name = os.path.basename(filename) or "upload"
        target_dir = Path(uploads_dir)
        path = target_dir / f"{uuid.uuid4().hex[:12]}_{safe_name}"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise SourceError(f"Could not store upload {safe_name}: {e}") from e
        logger.info(f"Stored upload {safe_name} ({len(data)} bytes)")
        return cls(str(path), safe_name)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def reference(self) -> str:
        return Path(self.path).resolve().as_uri()

    def release(self) -> bool:
        """Deletes the file. Returns False when it was already released."""
        if self._released:
            return False
        self._released = True
        try:
            os.remove(self.path)
        except FileNotFoundError:
            logger.warning(f"Upload {self.filename} was already gone on release")
        logger.info(f"Released upload {self.filename}")
        return True

    def __repr__(self) -> str:
        return f"LocalFileHandle({self.filename!r}, released={self._released})"
