"""
Output stream for generated PDFs

A thin wrapper around the output file that reports completion and failure
to registered observers, so the generator can tell a fully flushed file
from a partial one.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Union

from .errors import PdfOutputError, PdfStreamError


logger = logging.getLogger(__name__)

# Size in bytes of each write to the output file
FILE_CHUNK_SIZE = 8192


class PdfOutputStream:
    """Write stream for a single PDF file."""

    def __init__(self, file_obj, path: Path):
        self.path = path
        self._file = file_obj
        self._finish_listeners: list[Callable[[], None]] = []
        self._error_listeners: list[Callable[[Exception], None]] = []
        self._finished = False

    @classmethod
    def open(cls, path: Union[str, Path]) -> 'PdfOutputStream':
        """
        Open (truncating) the output file for writing.

        Raises:
            PdfOutputError: If the file cannot be opened
        """
        path = Path(path)
        try:
            file_obj = open(path, 'wb')
        except OSError as e:
            raise PdfOutputError(f"Failed to open PDF output file {path}: {e}") from e
        return cls(file_obj, path)

    @property
    def closed(self) -> bool:
        return self._file.closed

    @property
    def finished(self) -> bool:
        return self._finished

    def writable(self) -> bool:
        return not self._file.closed and not self._finished

    def on_finish(self, callback: Callable[[], None]) -> None:
        self._finish_listeners.append(callback)

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        self._error_listeners.append(callback)

    def write(self, data) -> int:
        try:
            return self._file.write(data)
        except (OSError, ValueError) as e:
            self._emit_error(e)
            raise PdfStreamError(f"PDF stream error: {e}") from e

    def end(self) -> None:
        """Flush everything to disk, close the file and notify finish observers."""
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
            self._file.close()
        except (OSError, ValueError) as e:
            self._emit_error(e)
            raise PdfStreamError(f"PDF stream error: {e}") from e

        self._finished = True
        for callback in self._finish_listeners:
            callback()

    def close(self) -> None:
        """Close the file without marking it finished (used when abandoning output)."""
        if not self._file.closed:
            self._file.close()

    def _emit_error(self, error: Exception) -> None:
        for callback in self._error_listeners:
            try:
                callback(error)
            except Exception:
                logger.error("PDF stream error observer failed", exc_info=True)
