"""Audit trail models.

This module provides the append-only record of everything a store was
asked to do:
- OperationKind: The category of a record (CREATE_FILE, ERROR, ...)
- LogRecord: One timestamped entry
- OperationLog: The in-memory sequence, mirrored to a durable LogSink

Visibility and durability are separate. A record always lands
in memory and is always visible to the caller; writing it to the sink is
best-effort and a sink failure only produces a warning on the diagnostic
logger.
"""

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, Field, field_validator

from filestore.base_item import utc_now
from filestore.sinks import LogSink, MemoryLogSink

logger = logging.getLogger(__name__)

LOG_TITLE = "READ-ONLY FILE SYSTEM SIMULATOR - OPERATION LOG"
BANNER_RULE = "=" * 80
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(when: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    return f"{when.strftime(TIMESTAMP_FORMAT)}.{when.microsecond // 1000:03d}"


class OperationKind(str, Enum):
    """Category of an audit record."""

    SYSTEM = "SYSTEM"
    CREATE_FILE = "CREATE_FILE"
    CREATE_FOLDER = "CREATE_FOLDER"
    DELETE = "DELETE"
    MODIFY_FILE = "MODIFY_FILE"
    RENAME = "RENAME"
    MODE_CHANGE = "MODE_CHANGE"
    ERROR = "ERROR"


class LogRecord(BaseModel):
    """One entry of the audit trail.

    Args:
        timestamp: When the operation was attempted.
        kind: Category of the operation.
        description: Human-readable detail (paths, sizes, modes).
    """

    timestamp: datetime = Field(description="When the operation was attempted")
    kind: OperationKind = Field(description="Category of the operation")
    description: str = Field(description="Human-readable detail")

    class Config:
        frozen = True

    def format(self) -> str:
        """Render as ``[timestamp] [KIND] description``."""
        return f"[{format_timestamp(self.timestamp)}] [{self.kind.value}] {self.description}"

    def to_dict(self) -> dict[str, Any]:
        """Convert this record to a dictionary.

        Returns:
            Dictionary representation suitable for serialization.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind.value,
            "description": self.description,
        }

    def __str__(self) -> str:
        return self.format()


class OperationLog(BaseModel):
    """Append-only, timestamped record of store operations.

    The log opens a session on its sink as soon as it is created, writing a
    banner with the session start time. Each ``record()`` call then appends
    to the in-memory list and mirrors the formatted line to the sink.

    ``clear()`` only forgets the in-memory records; whatever reached the
    sink stays there.

    Args:
        sink: Durable destination for formatted records.
        records: Records kept in memory, oldest first.
        recent_limit: Default number of records returned by recent().
        clock: Time source for record timestamps.

    Examples:
        log = OperationLog(sink=MemoryLogSink())
        log.record(OperationKind.SYSTEM, "started")
        log.recent(10)
    """

    sink: LogSink = Field(
        default_factory=MemoryLogSink, description="Durable destination for records"
    )
    records: list[LogRecord] = Field(
        default_factory=list, description="Records kept in memory, oldest first"
    )
    recent_limit: int = Field(
        default=100, description="Default number of records returned by recent()"
    )
    clock: Callable[[], datetime] = Field(
        default=utc_now, description="Time source for record timestamps"
    )

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, **data):
        """Initialize and open a logging session on the sink."""
        super().__init__(**data)
        self._session_started_at = self.clock()
        self._write_header(
            f"Session started: {format_timestamp(self._session_started_at)}\n"
        )

    @property
    def session_started_at(self) -> datetime:
        """When this log opened its session on the sink."""
        return self._session_started_at

    @field_validator("recent_limit")
    @classmethod
    def validate_recent_limit(cls, v: int) -> int:
        """Validate that recent_limit is positive.

        Raises:
            ValueError: If recent_limit is zero or negative.
        """
        if v <= 0:
            raise ValueError("recent_limit must be positive")
        return v

    @staticmethod
    def build_banner(details: str) -> str:
        """Build the banner block that opens a log file.

        Args:
            details: Newline-terminated lines placed under the title.

        Returns:
            Banner text ending in a blank line.
        """
        return (
            f"{BANNER_RULE}\n"
            f"{LOG_TITLE}\n"
            f"{BANNER_RULE}\n"
            f"{details}"
            f"{BANNER_RULE}\n\n"
        )

    def _write_header(self, details: str) -> None:
        try:
            self.sink.open_session(self.build_banner(details))
        except (OSError, ValueError) as e:
            logger.warning(
                f"Could not initialize operation log at {self.sink.description}: {e}"
            )

    def record(self, kind: OperationKind, description: str) -> LogRecord:
        """Append a record and mirror it to the sink.

        The in-memory append always happens. A sink failure is reported on
        the diagnostic logger and otherwise ignored.

        Args:
            kind: Category of the operation.
            description: Human-readable detail.

        Returns:
            The appended record.
        """
        entry = LogRecord(timestamp=self.clock(), kind=kind, description=description)
        self.records.append(entry)

        try:
            self.sink.append(entry.format())
        except (OSError, ValueError) as e:
            logger.warning(
                f"Could not write to operation log at {self.sink.description}: {e}"
            )

        return entry

    def get_entries(self) -> list[str]:
        """Return every in-memory record formatted as a log line, oldest first."""
        return [entry.format() for entry in self.records]

    def recent(self, count: Optional[int] = None) -> list[LogRecord]:
        """Return the last count records, oldest first.

        Args:
            count: How many records to return (defaults to recent_limit).

        Returns:
            The most recent records; all of them if fewer exist.

        Raises:
            ValueError: If count is negative.
        """
        if count is None:
            count = self.recent_limit
        if count < 0:
            raise ValueError("count cannot be negative")
        if count == 0:
            return []
        return list(self.records[-count:])

    def clear(self) -> None:
        """Forget the in-memory records. The sink is left untouched."""
        self.records.clear()

    def save_to_file(self, path: Union[str, Path]) -> bool:
        """Export the in-memory records to a standalone log file.

        The export starts with the same banner as the durable sink, giving
        the generation time and record count instead of the session start.

        Args:
            path: Destination file, overwritten if it exists.

        Returns:
            True on success, False if the destination could not be written.
        """
        details = (
            f"Generated: {format_timestamp(self.clock())}\n"
            f"Total entries: {len(self.records)}\n"
        )
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.build_banner(details))
                for entry in self.records:
                    f.write(entry.format() + "\n")
        except (OSError, ValueError) as e:
            logger.error(f"Error saving operation log to {path}: {e}")
            return False

        logger.info(f"Saved {len(self.records)} log records to {path}")
        return True

    def __len__(self) -> int:
        return len(self.records)
