"""File and folder models.

The two concrete item kinds form a closed variant: every node in a store is
either a ``File`` (leaf holding bytes) or a ``Folder`` (ordered, owned list
of children). Code that needs to tell them apart matches on ``kind``.
"""

from datetime import datetime
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import Field, field_validator

from filestore.base_item import Item, ItemKind


def to_bytes(content: Union[str, bytes, bytearray, memoryview, None]) -> bytes:
    """Normalise file content to bytes (text is UTF-8 encoded).

    Raises:
        ValueError: If content is not text or a bytes-like buffer, or text
            cannot be encoded as UTF-8.
    """
    if content is None:
        return b""
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    raise ValueError(
        f"content must be str or bytes, got {type(content).__name__}"
    )


class File(Item):
    """A leaf item holding byte content.

    Args:
        name: File name.
        kind: Always FILE.
        content: Stored bytes. Text is accepted and encoded as UTF-8.
    """

    kind: Literal[ItemKind.FILE] = Field(default=ItemKind.FILE, frozen=True)
    content: bytes = Field(default=b"", description="File content")

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> bytes:
        """Accept str, bytes or None as content."""
        return to_bytes(v)

    @property
    def text(self) -> str:
        """Content decoded as UTF-8, undecodable bytes replaced."""
        return self.content.decode("utf-8", errors="replace")

    def size(self) -> int:
        return len(self.content)

    def set_content(
        self, content: Union[str, bytes, None], when: Optional[datetime] = None
    ) -> None:
        """Replace the content and bump modified_at."""
        self.content = to_bytes(content)
        self.touch(when)


class Folder(Item):
    """A composite item owning an ordered list of children.

    Children keep insertion order. ``add_child`` and ``remove_child`` are the
    only ways to attach or detach an item; both update ``modified_at``. They
    do not check read-only mode or name uniqueness, which is the Store's job.

    Args:
        name: Folder name.
        kind: Always FOLDER.
        children: Owned child items in insertion order.
    """

    kind: Literal[ItemKind.FOLDER] = Field(default=ItemKind.FOLDER, frozen=True)
    children: list["TreeItem"] = Field(
        default_factory=list, description="Owned child items in insertion order"
    )

    def __init__(self, **data):
        """Initialize and claim any children passed at construction."""
        super().__init__(**data)
        for child in self.children:
            child._attach(self)

    def add_child(self, item: "TreeItem", when: Optional[datetime] = None) -> None:
        """Attach an item as the last child of this folder.

        Args:
            item: Detached item to adopt.
            when: Modification time for this folder (defaults to now, UTC).
        """
        item._attach(self)
        self.children.append(item)
        self.touch(when)

    def remove_child(self, item: "TreeItem", when: Optional[datetime] = None) -> bool:
        """Detach a child from this folder.

        Args:
            item: The child to detach.
            when: Modification time for this folder (defaults to now, UTC).

        Returns:
            True if the item was a child and has been removed, False otherwise.
        """
        for index, child in enumerate(self.children):
            if child is item:
                del self.children[index]
                item._attach(None)
                self.touch(when)
                return True
        return False

    def get_child(self, name: str) -> Optional["TreeItem"]:
        """Return the direct child called name, or None."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def has_child(self, name: str) -> bool:
        return self.get_child(name) is not None

    def size(self) -> int:
        return sum(item.size() for item in self.walk() if item.kind is ItemKind.FILE)

    def walk(self) -> Iterator["TreeItem"]:
        """Yield every descendant in pre-order, children in insertion order.

        The folder itself is not yielded. Uses an explicit stack, so depth
        is not bounded by the interpreter's recursion limit.
        """
        stack = list(reversed(self.children))
        while stack:
            item = stack.pop()
            yield item
            if item.kind is ItemKind.FOLDER:
                stack.extend(reversed(item.children))

    def depth_of(self, item: Item) -> int:
        """Return how many levels below this folder item sits (children are 1)."""
        depth = 0
        for ancestor in item.ancestors():
            depth += 1
            if ancestor is self:
                return depth
        raise ValueError(f"'{item.name}' is not below '{self.name}'")

    def contains(self, item: Item) -> bool:
        """Check whether item lives somewhere below this folder."""
        return any(ancestor is self for ancestor in item.ancestors())

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info["items"] = len(self.children)
        return info

    def render(self, indent: str = "  ") -> str:
        """Render this folder's subtree as indented text.

        Folders are shown as ``name/`` and files as ``name (N B)``.

        Args:
            indent: String repeated once per depth level.

        Returns:
            Multi-line tree listing starting with this folder.
        """
        lines = [f"{self.name}/"]
        for item in self.walk():
            prefix = indent * self.depth_of(item)
            if item.kind is ItemKind.FOLDER:
                lines.append(f"{prefix}{item.name}/")
            else:
                lines.append(f"{prefix}{item.name} ({item.size()} B)")
        return "\n".join(lines)


TreeItem = Annotated[Union[File, Folder], Field(discriminator="kind")]

Folder.model_rebuild()
