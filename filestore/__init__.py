"""Read-only file store simulator.

This package models an in-memory hierarchical file store that can be
switched between read-write and read-only modes, the way compressed ROM
and optical-disc filesystems refuse every write. It contains the item tree
(files and folders), the mode-gated Store that mutates it, and the
append-only operation log that audits every attempt.
"""

from filestore.base_item import Item, ItemKind
from filestore.config import StoreConfig
from filestore.exceptions import (
    AlreadyExistsError,
    FileStoreError,
    InvalidOperationError,
    NotFoundError,
    ReadOnlyError,
)
from filestore.items import File, Folder, TreeItem
from filestore.operation_log import LogRecord, OperationKind, OperationLog
from filestore.sinks import FileLogSink, LogSink, MemoryLogSink
from filestore.store import Store

__all__ = [
    "Item",
    "ItemKind",
    "File",
    "Folder",
    "TreeItem",
    "Store",
    "StoreConfig",
    "OperationLog",
    "OperationKind",
    "LogRecord",
    "LogSink",
    "FileLogSink",
    "MemoryLogSink",
    "FileStoreError",
    "ReadOnlyError",
    "AlreadyExistsError",
    "NotFoundError",
    "InvalidOperationError",
]
