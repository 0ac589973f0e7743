"""Durable sinks for the operation log.

A sink is where the audit trail is mirrored outside the process. The
``OperationLog`` talks to it through the ``LogSink`` interface only, so a
store can be built against a real file or an in-memory double.

Sinks are append-only: once a line is written it is never rewritten. Any
``OSError`` raised here, or ``ValueError`` for text the encoding cannot
represent, is absorbed by the caller.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class LogSink(ABC):
    """Abstract interface for an append-only log destination."""

    @abstractmethod
    def open_session(self, header: str) -> None:
        """Start a new logging session by writing the session header.

        Args:
            header: Banner text, already newline-terminated.

        Raises:
            OSError: If the destination cannot be written.
        """
        pass

    @abstractmethod
    def append(self, line: str) -> None:
        """Append one formatted record.

        Args:
            line: Record text without trailing newline.

        Raises:
            OSError: If the destination cannot be written.
            ValueError: If line cannot be encoded for the destination.
        """
        pass

    @property
    def description(self) -> str:
        """Short human-readable identity used in diagnostics."""
        return self.__class__.__name__


class FileLogSink(LogSink):
    """Plain-text log file on the local filesystem.

    The file is opened per write, so nothing stays locked between records
    and a failure on one write does not poison later ones.

    Args:
        path: Location of the log file.
        append: If False (the default) the file is truncated when a session
            opens; if True earlier sessions are kept above the new header.
        encoding: Text encoding of the file.
    """

    def __init__(
        self,
        path: Union[str, Path],
        append: bool = False,
        encoding: str = "utf-8",
    ):
        self.path = Path(path)
        self.append_sessions = append
        self.encoding = encoding

    def open_session(self, header: str) -> None:
        mode = "a" if self.append_sessions else "w"
        with open(self.path, mode, encoding=self.encoding) as f:
            f.write(header)
        logger.info(f"Opened operation log at {self.path} (mode={mode!r})")

    def append(self, line: str) -> None:
        with open(self.path, "a", encoding=self.encoding) as f:
            f.write(line + "\n")

    @property
    def description(self) -> str:
        return str(self.path)


class MemoryLogSink(LogSink):
    """In-memory sink that keeps everything it was sent.

    Useful for tests and for embedding a store without touching disk.
    Setting ``fail`` makes every write raise ``OSError``, to exercise the
    failure path.

    Args:
        fail: Whether writes should raise OSError.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.headers: list[str] = []
        self.lines: list[str] = []
        self._chunks: list[str] = []

    def _check(self) -> None:
        if self.fail:
            raise OSError("memory sink is configured to fail")

    def open_session(self, header: str) -> None:
        self._check()
        self.headers.append(header)
        self._chunks.append(header)

    def append(self, line: str) -> None:
        self._check()
        self.lines.append(line)
        self._chunks.append(line + "\n")

    def getvalue(self) -> str:
        """Return everything written so far as a single text blob."""
        return "".join(self._chunks)
