"""Store orchestration.

The Store owns the item tree, the read-only flag and the operation log.
Every mutation follows the same protocol under one lock:

1. Check the read-only gate (a blocked attempt is itself logged as ERROR)
2. Validate structural preconditions (names, uniqueness, root protection)
3. Apply the tree change
4. Append exactly one audit record

Queries never touch the gate and never write audit records.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, Field

from filestore.base_item import Item, ItemKind, check_item_name, utc_now
from filestore.config import StoreConfig
from filestore.exceptions import (
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
    ReadOnlyError,
)
from filestore.items import File, Folder, TreeItem, to_bytes
from filestore.operation_log import LogRecord, OperationKind, OperationLog
from filestore.sinks import FileLogSink, LogSink, MemoryLogSink

logger = logging.getLogger(__name__)

ROOT_NAME = "root"

DEMO_FOLDERS = ("documents", "images", "config")
DEMO_FILES = (
    ("documents", "readme.txt", "Welcome to Read-Only File System Simulator"),
    ("config", "settings.conf", "mode=read-write\nversion=1.0"),
)


def mode_label(read_only: bool) -> str:
    """Return the display label for a mode flag."""
    return "READ-ONLY" if read_only else "READ-WRITE"


class Store(BaseModel):
    """In-memory hierarchical file store with a read-only switch.

    The store behaves like a mounted filesystem that can be flipped between
    read-write and read-only, the way SquashFS or ISO 9660 media refuse all
    writes. Mutations are atomic: they either fully apply and log one record,
    or raise and leave the tree untouched.

    Responsibilities:
    - Own the root folder and track the current folder
    - Gate every mutation on the read-only flag
    - Enforce sibling-name uniqueness and root protection
    - Drive the operation log
    - Answer listing, statistics and path lookup queries

    Attributes:
        root_folder: The root of the tree. Never deleted or renamed.
        operation_log: Audit trail of every attempted operation.
        clock: Time source for item timestamps.

    Example:
        >>> store = Store()
        >>> docs = store.create_folder("docs")
        >>> store.create_file("a.txt", "hi", parent=docs)
        >>> store.set_read_only(True)
        >>> store.statistics()["total_size"]
        2
    """

    root_folder: Folder
    operation_log: OperationLog
    clock: Callable[[], datetime] = Field(default=utc_now)

    def __init__(
        self,
        sink: Optional[LogSink] = None,
        read_only: bool = False,
        seed_demo: bool = False,
        recent_limit: int = 100,
        **data,
    ):
        """Initialize the tree, the log session and the private state.

        Args:
            sink: Durable log destination (defaults to an in-memory sink).
            read_only: Initial mode.
            seed_demo: Whether to build the demo tree.
            recent_limit: Default size of recent_log().
            **data: Model fields (root_folder, operation_log, clock).
        """
        clock = data.get("clock") or utc_now
        data["clock"] = clock
        if data.get("operation_log") is None:
            data["operation_log"] = OperationLog(
                sink=sink if sink is not None else MemoryLogSink(),
                recent_limit=recent_limit,
                clock=clock,
            )
        if data.get("root_folder") is None:
            now = clock()
            data["root_folder"] = Folder(name=ROOT_NAME, created_at=now, modified_at=now)
        super().__init__(**data)

        self._lock = threading.RLock()
        self._read_only = read_only
        self._current_folder: Folder = self.root_folder

        self.operation_log.record(
            OperationKind.SYSTEM,
            f"File store initialized in {mode_label(read_only)} mode",
        )
        logger.info(f"File store initialized in {mode_label(read_only)} mode")

        if seed_demo:
            self._create_demo_structure()

    @classmethod
    def from_config(
        cls, config: StoreConfig, sink: Optional[LogSink] = None, **data
    ) -> "Store":
        """Build a store from a StoreConfig.

        Args:
            config: Settings to apply.
            sink: Log destination; defaults to a FileLogSink at config.log_path.
            **data: Extra model fields, e.g. clock.

        Returns:
            New Store.
        """
        if sink is None:
            sink = FileLogSink(config.log_path, append=config.append_log)
        return cls(
            sink=sink,
            read_only=config.read_only,
            seed_demo=config.seed_demo,
            recent_limit=config.recent_limit,
            **data,
        )

    def _create_demo_structure(self) -> None:
        now = self.clock()
        folders = {}
        for name in DEMO_FOLDERS:
            folder = Folder(name=name, created_at=now, modified_at=now)
            self.root_folder.add_child(folder, when=now)
            folders[name] = folder
        for folder_name, file_name, content in DEMO_FILES:
            demo_file = File(
                name=file_name, content=content, created_at=now, modified_at=now
            )
            folders[folder_name].add_child(demo_file, when=now)

        self.operation_log.record(OperationKind.SYSTEM, "Demo structure created")

    # ===== State Accessors =====

    @property
    def root(self) -> Folder:
        """The root folder."""
        return self.root_folder

    @property
    def current_folder(self) -> Folder:
        """Default target folder for creates."""
        with self._lock:
            return self._current_folder

    @property
    def is_read_only(self) -> bool:
        """Whether mutations are currently blocked."""
        with self._lock:
            return self._read_only

    def owns(self, item: Item) -> bool:
        """Check whether item is reachable from this store's root."""
        if item is self.root_folder:
            return True
        return self.root_folder.contains(item)

    # ===== Permission Gate =====

    def _check_write_permission(self, operation: str) -> None:
        """Refuse a mutation while in read-only mode.

        Works like the kernel's may_write() check: it runs before any other
        validation, and a refusal is itself recorded in the audit trail.

        Args:
            operation: Name of the operation being attempted.

        Raises:
            ReadOnlyError: If the store is read-only.
        """
        if self._read_only:
            self.operation_log.record(
                OperationKind.ERROR,
                f"Attempted '{operation}' in read-only mode - BLOCKED",
            )
            logger.warning(f"Blocked '{operation}': store is read-only")
            raise ReadOnlyError(operation)

    def _check_name(self, name: str) -> str:
        try:
            return check_item_name(name)
        except ValueError as e:
            raise InvalidOperationError(f"Invalid name {name!r}: {e}") from None

    def _check_content(self, content: Any) -> bytes:
        try:
            return to_bytes(content)
        except ValueError as e:
            raise InvalidOperationError(f"Invalid content: {e}") from None

    def _check_owned(self, item: Item, role: str) -> None:
        if not self.owns(item):
            raise InvalidOperationError(
                f"{role.capitalize()} '{item.name}' is not part of this store"
            )

    def _target_folder(self, parent: Optional[Folder]) -> Folder:
        target = parent if parent is not None else self._current_folder
        if target.kind is not ItemKind.FOLDER:
            raise InvalidOperationError(f"'{target.path()}' is not a folder")
        self._check_owned(target, "target folder")
        return target

    # ===== Mutations =====

    def create_file(
        self,
        name: str,
        content: Union[str, bytes, None] = "",
        parent: Optional[Folder] = None,
    ) -> File:
        """Create a file.

        Args:
            name: File name, unique within the target folder.
            content: Initial content; text is stored UTF-8 encoded.
            parent: Target folder (defaults to the current folder).

        Returns:
            The created file.

        Raises:
            ReadOnlyError: If the store is read-only.
            InvalidOperationError: If the name or content is invalid, or the
                target is not a folder of this store.
            AlreadyExistsError: If the target already has a child with name.
        """
        with self._lock:
            self._check_write_permission("create_file")
            name = self._check_name(name)
            target = self._target_folder(parent)
            if target.has_child(name):
                raise AlreadyExistsError(name)

            data = self._check_content(content)
            now = self.clock()
            new_file = File(name=name, content=data, created_at=now, modified_at=now)
            new_path = f"{target.path()}/{name}"
            target.add_child(new_file, when=now)

            self.operation_log.record(
                OperationKind.CREATE_FILE,
                f"Created file: {new_path} ({new_file.size()} bytes)",
            )
            logger.debug(f"Created file {new_path}")
            return new_file

    def create_folder(self, name: str, parent: Optional[Folder] = None) -> Folder:
        """Create a folder.

        Args:
            name: Folder name, unique within the target folder.
            parent: Target folder (defaults to the current folder).

        Returns:
            The created folder.

        Raises:
            ReadOnlyError: If the store is read-only.
            InvalidOperationError: If the name is invalid or the target is
                not a folder of this store.
            AlreadyExistsError: If the target already has a child with name.
        """
        with self._lock:
            self._check_write_permission("create_folder")
            name = self._check_name(name)
            target = self._target_folder(parent)
            if target.has_child(name):
                raise AlreadyExistsError(name)

            now = self.clock()
            new_folder = Folder(name=name, created_at=now, modified_at=now)
            new_path = f"{target.path()}/{name}"
            target.add_child(new_folder, when=now)

            self.operation_log.record(
                OperationKind.CREATE_FOLDER,
                f"Created folder: {new_path}",
            )
            logger.debug(f"Created folder {new_path}")
            return new_folder

    def delete_item(self, item: TreeItem) -> None:
        """Delete a file or a folder with its whole subtree.

        Deleting an item that is no longer in the tree does nothing.

        Args:
            item: The item to delete.

        Raises:
            ReadOnlyError: If the store is read-only.
            InvalidOperationError: If item is the root.
        """
        with self._lock:
            self._check_write_permission("delete_item")
            if item is self.root_folder:
                raise InvalidOperationError("Cannot delete root folder")

            parent = item.parent
            if parent is None or not self.owns(item):
                logger.debug(f"delete_item: '{item.name}' is already detached")
                return

            item_path = item.path()
            current = self._current_folder
            if current is item or (
                item.kind is ItemKind.FOLDER and item.contains(current)
            ):
                self._current_folder = self.root_folder

            parent.remove_child(item, when=self.clock())

            self.operation_log.record(
                OperationKind.DELETE,
                f"Deleted {item.kind.value}: {item_path}",
            )
            logger.debug(f"Deleted {item_path}")

    def modify_file(self, file: File, new_content: Union[str, bytes, None]) -> None:
        """Replace the content of a file.

        Args:
            file: The file to modify.
            new_content: Replacement content; text is stored UTF-8 encoded.

        Raises:
            ReadOnlyError: If the store is read-only.
            InvalidOperationError: If file is a folder or not in this store, or
                new_content is not text or bytes.
        """
        with self._lock:
            self._check_write_permission("modify_file")
            if file.kind is not ItemKind.FILE:
                raise InvalidOperationError(f"'{file.path()}' is not a file")
            self._check_owned(file, "file")

            data = self._check_content(new_content)
            file_path = file.path()
            old_size = file.size()
            file.set_content(data, when=self.clock())
            new_size = file.size()

            self.operation_log.record(
                OperationKind.MODIFY_FILE,
                f"Modified file: {file_path} (size: {old_size} -> {new_size} bytes)",
            )
            logger.debug(f"Modified {file_path}: {old_size} -> {new_size} bytes")

    def rename_item(self, item: TreeItem, new_name: str) -> None:
        """Rename a file or folder in place.

        Renaming an item to its own current name succeeds and is logged like
        any other rename. Descendant paths change along with the item.

        Args:
            item: The item to rename.
            new_name: The new name.

        Raises:
            ReadOnlyError: If the store is read-only.
            InvalidOperationError: If item is the root, the name is invalid,
                or item is not in this store.
            AlreadyExistsError: If a different sibling already has new_name.
        """
        with self._lock:
            self._check_write_permission("rename_item")
            if item is self.root_folder:
                raise InvalidOperationError("Cannot rename root folder")
            new_name = self._check_name(new_name)
            self._check_owned(item, "item")

            parent = item.parent
            if parent is not None:
                sibling = parent.get_child(new_name)
                if sibling is not None and sibling is not item:
                    raise AlreadyExistsError(new_name)

            old_path = item.path()
            new_path = old_path.rsplit("/", 1)[0] + "/" + new_name
            item.rename(new_name, when=self.clock())

            self.operation_log.record(
                OperationKind.RENAME,
                f"Renamed {item.kind.value}: {old_path} -> {new_path}",
            )
            logger.debug(f"Renamed {old_path} -> {new_path}")

    def set_read_only(self, enabled: bool) -> None:
        """Switch between read-only and read-write mode.

        Always succeeds and is always logged, even if the mode does not
        change. Earlier mutations are left as they are.

        Args:
            enabled: True for read-only, False for read-write.
        """
        with self._lock:
            old_mode = self._read_only
            self._read_only = bool(enabled)

            self.operation_log.record(
                OperationKind.MODE_CHANGE,
                f"File store changed from {mode_label(old_mode)} "
                f"to {mode_label(self._read_only)}",
            )
            logger.info(
                f"Mode changed from {mode_label(old_mode)} "
                f"to {mode_label(self._read_only)}"
            )

    # ===== Navigation =====

    def change_folder(self, folder: Union[Folder, str]) -> Folder:
        """Make folder the default target for creates.

        Navigation is neither gated nor audited.

        Args:
            folder: A folder of this store, or a path resolving to one.

        Returns:
            The new current folder.

        Raises:
            NotFoundError: If a path does not resolve.
            InvalidOperationError: If the target is not a folder of this store.
        """
        with self._lock:
            if isinstance(folder, str):
                folder = self.resolve_folder(folder)
            elif folder.kind is not ItemKind.FOLDER:
                raise InvalidOperationError(f"'{folder.path()}' is not a folder")
            self._check_owned(folder, "folder")

            self._current_folder = folder
            logger.debug(f"Current folder is now {folder.path()}")
            return folder

    # ===== Queries =====

    def list_all(self, folder: Optional[Folder] = None) -> list[TreeItem]:
        """List every item below folder in pre-order.

        Parents come before their children and siblings keep insertion
        order. The starting folder itself is not included.

        Args:
            folder: Where to start (defaults to the root).

        Returns:
            Flat list of descendants.
        """
        with self._lock:
            start = folder if folder is not None else self.root_folder
            return list(start.walk())

    def statistics(self) -> dict[str, Any]:
        """Summarise the whole tree in one traversal.

        Returns:
            Dict with total_items, files, folders, total_size and read_only.
            The root itself is not counted.
        """
        with self._lock:
            files = 0
            folders = 0
            total_size = 0
            for item in self.root_folder.walk():
                if item.kind is ItemKind.FILE:
                    files += 1
                    total_size += item.size()
                else:
                    folders += 1

            return {
                "total_items": files + folders,
                "files": files,
                "folders": folders,
                "total_size": total_size,
                "read_only": self._read_only,
            }

    def find(self, path: str) -> TreeItem:
        """Resolve a path to an item.

        Absolute paths start at the root (``/root/docs/a.txt``). Relative
        paths start at the current folder; ``.`` and ``..`` are understood.
        A trailing slash is ignored.

        Args:
            path: Path to resolve.

        Returns:
            The item at path.

        Raises:
            NotFoundError: If any component does not resolve.
        """
        with self._lock:
            if not path or not path.strip():
                raise NotFoundError(path)

            if path.startswith("/"):
                parts = [p for p in path.split("/") if p]
                if not parts or parts[0] != self.root_folder.name:
                    raise NotFoundError(path)
                node: Item = self.root_folder
                parts = parts[1:]
            else:
                node = self._current_folder
                parts = [p for p in path.split("/") if p]

            for part in parts:
                if part == ".":
                    continue
                if part == "..":
                    node = node.parent or node
                    continue
                if node.kind is not ItemKind.FOLDER:
                    raise NotFoundError(path)
                child = node.get_child(part)
                if child is None:
                    raise NotFoundError(path)
                node = child

            return node

    def resolve_folder(self, path: str) -> Folder:
        """Resolve a path that must name a folder.

        Raises:
            NotFoundError: If the path does not resolve.
            InvalidOperationError: If it resolves to a file.
        """
        item = self.find(path)
        if item.kind is not ItemKind.FOLDER:
            raise InvalidOperationError(f"'{item.path()}' is not a folder")
        return item

    # ===== Audit Log =====

    def get_log_entries(self) -> list[str]:
        """Return every in-memory audit record as a formatted line."""
        with self._lock:
            return self.operation_log.get_entries()

    def recent_log(self, count: Optional[int] = None) -> list[LogRecord]:
        """Return the most recent audit records, oldest first."""
        with self._lock:
            return self.operation_log.recent(count)

    def clear_log(self) -> None:
        """Forget in-memory audit records, then record that the log was cleared.

        The durable sink keeps the full history.
        """
        with self._lock:
            self.operation_log.clear()
            self.operation_log.record(OperationKind.SYSTEM, "Log cleared")

    def export_log(self, path: Union[str, Path]) -> bool:
        """Write the in-memory audit records to a standalone file.

        Returns:
            True on success, False if the file could not be written.
        """
        with self._lock:
            return self.operation_log.save_to_file(path)
