"""Base class for every node in the simulated file store."""

import weakref
from abc import abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from filestore.items import Folder


INFO_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Return the current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(when: datetime) -> datetime:
    """Return when as an aware UTC datetime; naive values are taken as UTC."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def check_item_name(name: str) -> str:
    """Validate that name is non-empty and holds no path separator.

    Args:
        name: Candidate item name.

    Returns:
        The validated name.

    Raises:
        ValueError: If name is empty, blank or contains '/'.
    """
    if not name or not name.strip():
        raise ValueError("name cannot be empty")
    if "/" in name:
        raise ValueError("name cannot contain '/'")
    return name


class ItemKind(str, Enum):
    """Kind of a store item. Fixed at creation."""

    FILE = "file"
    FOLDER = "folder"


class Item(BaseModel):
    """Attributes shared by files and folders.

    Items form a tree. A Folder owns its children through its ``children``
    list; the child only keeps a weak back-reference to its parent, used for
    path derivation and sibling lookups. Dropping a child from its parent's
    ``children`` is what destroys it.

    Paths and sizes are always derived from the current tree shape and never
    stored, so renaming a folder is immediately visible in every descendant
    path.

    Items compare by identity: two files with the same name and content in
    different folders are still different nodes.

    Args:
        name: Item name, unique among its siblings.
        kind: File or folder.
        created_at: When the item was created. Never changes.
        modified_at: Last content, name or child-set change.
    """

    name: str = Field(description="Item name, unique among siblings")
    kind: ItemKind = Field(description="File or folder")
    created_at: datetime = Field(
        default_factory=utc_now, description="When the item was created"
    )
    modified_at: datetime = Field(
        default_factory=utc_now, description="Last content, name or child-set change"
    )

    def __init__(self, **data):
        """Initialize with a detached parent link."""
        super().__init__(**data)
        self._parent_ref: Optional[weakref.ref] = None
        if self.modified_at < self.created_at:
            self.modified_at = self.created_at

    __eq__ = object.__eq__
    __hash__ = object.__hash__

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that name is a legal item name."""
        return check_item_name(v)

    @field_validator("created_at", "modified_at")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        """Normalise timestamps to aware UTC."""
        return as_utc(v)

    @property
    def parent(self) -> Optional["Folder"]:
        """The enclosing folder, or None for the root and detached items."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def _attach(self, parent: Optional["Folder"]) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def is_file(self) -> bool:
        return self.kind is ItemKind.FILE

    @property
    def is_folder(self) -> bool:
        return self.kind is ItemKind.FOLDER

    def touch(self, when: Optional[datetime] = None) -> None:
        """Mark the item as modified.

        modified_at never moves backwards, even if the supplied clock does.

        Args:
            when: Modification time (defaults to now, UTC).
        """
        when = as_utc(when) if when is not None else utc_now()
        if when > self.modified_at:
            self.modified_at = when

    def rename(self, new_name: str, when: Optional[datetime] = None) -> None:
        """Change the name in place. Uniqueness is checked by the caller.

        Args:
            new_name: The new name.
            when: Modification time (defaults to now, UTC).

        Raises:
            ValueError: If new_name is not a valid item name.
        """
        self.name = check_item_name(new_name)
        self.touch(when)

    def path(self) -> str:
        """Return the absolute path of this item.

        The root renders as ``/root``; every other item is its parent's path
        plus ``/`` plus its own name.

        Returns:
            Absolute path string, recomputed on every call.
        """
        names = [ancestor.name for ancestor in reversed(self.ancestors())]
        names.append(self.name)
        return "/" + "/".join(names)

    def ancestors(self) -> list["Folder"]:
        """Return enclosing folders from the direct parent up to the root."""
        chain = []
        parent = self.parent
        while parent is not None:
            chain.append(parent)
            parent = parent.parent
        return chain

    @abstractmethod
    def size(self) -> int:
        """Return the size in bytes.

        Files report their content length; folders report the sum over their
        whole subtree.
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """Return a display-ready summary of this item.

        Returns:
            Dictionary with name, type, size, path, created and modified keys.
        """
        return {
            "name": self.name,
            "type": self.kind.value,
            "size": self.size(),
            "path": self.path(),
            "created": self.created_at.strftime(INFO_DATE_FORMAT),
            "modified": self.modified_at.strftime(INFO_DATE_FORMAT),
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.path()}"
