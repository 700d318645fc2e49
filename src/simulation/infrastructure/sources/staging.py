"""
The source currently entered in the configuration input.
"""
from typing import Optional

from ...domain.entities import StreamSource
from ....common.exceptions import EmptySource, SourceError
from ....common.logging import setup_logger
from .base import SourceConfig
from .handles import LocalFileHandle

logger = setup_logger(__name__)


class SourceStager:
    """
    Holds either a typed reference or an uploaded file waiting to be started.

    An upload that is replaced before being started is released right away.
    Once an upload is bound to a slot the stager forgets it and the slot owns
    the release.
    """

    def __init__(self, config: Optional[SourceConfig] = None, initial_reference: str = ""):
        self.config = config or SourceConfig()
        self._reference = initial_reference or ""
        self._upload: Optional[LocalFileHandle] = None

    @property
    def reference(self) -> str:
        if self._upload is not None:
            return self._upload.reference
        return self._reference

    @property
    def local_file_name(self) -> Optional[str]:
        return self._upload.filename if self._upload is not None else None

    def stage_reference(self, text: str):
        """Typing a reference supersedes a pending upload."""
        self._supersede()
        self._reference = text or ""

    def stage_upload(self, filename: str, data: bytes) -> LocalFileHandle:
        limit = self.config.max_upload_mb * 1024 * 1024
        if len(data) > limit:
            raise SourceError(f"Upload {filename} exceeds {self.config.max_upload_mb} MB")

        handle = LocalFileHandle.write(self.config.uploads_dir, filename, data)
        self._supersede()
        self._upload = handle
        return handle

    def peek(self, create) -> StreamSource:
        """
        Builds the StreamSource for the staged input without consuming it.
        create turns a plain reference into a StreamSource.
        """
        if self._upload is not None:
            return StreamSource(
                reference=self._upload.reference,
                label=self._upload.filename,
                handle=self._upload
            )
        if not self._reference.strip():
            raise EmptySource("Please enter a video stream URL or upload a local file.")
        return create(self._reference)

    def mark_bound(self, source: StreamSource):
        """Hands a staged upload over to the slot it was bound to."""
        if self._upload is not None and source.handle is self._upload:
            self._upload = None
            self._reference = ""

    def clear(self):
        self._supersede()
        self._reference = ""

    def _supersede(self):
        if self._upload is not None:
            logger.info(f"Staged upload {self._upload.filename} superseded")
            self._upload.release()
            self._upload = None
