"""
Request-scoped staging of uploaded document bytes.

Uploads are staged on disk under the configured temp directory (or kept in
memory) for the lifetime of one pipeline invocation and released on every
exit path.
"""

import io
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from app.utils.logger import get_logger

logger = get_logger("upload_buffer")


class UploadBuffer:
    """Holds one uploaded document until it is released."""

    def __init__(self, content: bytes, storage: str = "disk", temp_dir: str = "uploads"):
        self.storage = storage
        self.byte_length = len(content)
        self.path: Optional[Path] = None
        self._memory: Optional[io.BytesIO] = None

        if storage == "disk":
            directory = Path(temp_dir)
            directory.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(dir=directory, prefix="upload-")
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            self.path = Path(name)
        else:
            self._memory = io.BytesIO(content)

    @property
    def released(self) -> bool:
        return self.path is None and self._memory is None

    @property
    def source(self) -> Union[Path, bytes]:
        """Something the document extractor can read."""
        if self.path is not None:
            return self.path
        if self._memory is not None:
            return self._memory.getvalue()
        raise RuntimeError("Upload buffer already released")

    def release(self) -> None:
        """Delete the staged copy. Safe to call more than once."""
        if self.path is not None:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            logger.debug("Staged upload deleted", path=str(self.path))
            self.path = None
        if self._memory is not None:
            self._memory.close()
            self._memory = None


@contextmanager
def staged_upload(
    content: bytes,
    storage: str = "disk",
    temp_dir: str = "uploads"
) -> Iterator[UploadBuffer]:
    """Stage ``content`` for the duration of the block."""
    buffer = UploadBuffer(content, storage=storage, temp_dir=temp_dir)
    try:
        yield buffer
    finally:
        buffer.release()
