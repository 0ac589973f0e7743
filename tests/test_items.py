"""Unit tests for the File and Folder tree primitives.

This module tests the item tree independently of the Store:
- Item: names, identity, timestamps, path derivation
- File: content handling and size
- Folder: child management, recursive size, traversal, rendering
"""

from datetime import datetime, timedelta, timezone

import pytest

from filestore.base_item import ItemKind, check_item_name
from filestore.items import File, Folder


T0 = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def build_tree() -> tuple[Folder, Folder, File]:
    """Build root -> docs -> a.txt by hand.

    Returns:
        (root, docs, a_txt)
    """
    root = Folder(name="root")
    docs = Folder(name="docs")
    a_txt = File(name="a.txt", content="hi")
    root.add_child(docs)
    docs.add_child(a_txt)
    return root, docs, a_txt


# =============================================================================
# Item Tests
# =============================================================================


class TestItemInstantiation:
    """Test construction of files and folders."""

    def test_file_defaults(self):
        """Verify a file starts empty, detached and of kind FILE."""
        f = File(name="empty.txt")

        assert f.kind is ItemKind.FILE
        assert f.content == b""
        assert f.size() == 0
        assert f.parent is None
        assert f.is_file
        assert not f.is_folder

    def test_folder_defaults(self):
        """Verify a folder starts with no children and kind FOLDER."""
        folder = Folder(name="docs")

        assert folder.kind is ItemKind.FOLDER
        assert folder.children == []
        assert folder.size() == 0
        assert folder.is_folder

    def test_text_content_is_stored_as_utf8_bytes(self):
        """Verify str content is encoded as UTF-8."""
        f = File(name="u.txt", content="héllo")

        assert f.content == "héllo".encode("utf-8")
        assert f.size() == 6
        assert f.text == "héllo"

    def test_none_content_becomes_empty(self):
        f = File(name="n.txt", content=None)

        assert f.content == b""

    def test_kind_is_frozen(self):
        """Verify kind cannot change after creation."""
        f = File(name="a.txt")

        with pytest.raises(Exception):  # Pydantic raises ValidationError
            f.kind = ItemKind.FOLDER

    def test_modified_at_never_precedes_created_at(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0 - timedelta(hours=1))

        assert f.modified_at == T0


class TestItemNames:
    """Test name validation."""

    @pytest.mark.parametrize("bad_name", ["", "   ", "a/b", "/"])
    def test_invalid_names_rejected_at_construction(self, bad_name):
        with pytest.raises(ValueError):
            File(name=bad_name)

    def test_check_item_name_returns_valid_name(self):
        assert check_item_name("notes.txt") == "notes.txt"

    def test_rename_rejects_invalid_name(self):
        f = File(name="a.txt")

        with pytest.raises(ValueError, match="cannot contain"):
            f.rename("x/y")
        assert f.name == "a.txt"


class TestItemIdentity:
    """Items compare by identity, not by field values."""

    def test_equal_fields_are_still_distinct(self):
        a = File(name="same.txt", content="x", created_at=T0, modified_at=T0)
        b = File(name="same.txt", content="x", created_at=T0, modified_at=T0)

        assert a != b
        assert a == a

    def test_items_are_hashable(self):
        f = File(name="a.txt")

        assert {f: 1}[f] == 1


class TestItemPath:
    """Test derived paths."""

    def test_root_path(self):
        root = Folder(name="root")

        assert root.path() == "/root"

    def test_nested_paths(self):
        root, docs, a_txt = build_tree()

        assert docs.path() == "/root/docs"
        assert a_txt.path() == "/root/docs/a.txt"

    def test_path_tracks_ancestor_rename(self):
        """Verify renaming a folder changes descendant paths with no propagation."""
        root, docs, a_txt = build_tree()

        docs.rename("papers")

        assert a_txt.path() == "/root/papers/a.txt"

    def test_detached_item_path_is_its_own_name(self):
        root, docs, a_txt = build_tree()

        docs.remove_child(a_txt)

        assert a_txt.parent is None
        assert a_txt.path() == "/a.txt"

    def test_ancestors_run_from_parent_to_root(self):
        root, docs, a_txt = build_tree()

        assert a_txt.ancestors() == [docs, root]
        assert root.ancestors() == []

    def test_str_shows_kind_and_path(self):
        root, docs, a_txt = build_tree()

        assert str(a_txt) == "file: /root/docs/a.txt"


class TestItemTimestamps:
    """Test created_at/modified_at handling."""

    def test_touch_moves_forward(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0)

        f.touch(T0 + timedelta(seconds=5))

        assert f.modified_at == T0 + timedelta(seconds=5)
        assert f.created_at == T0

    def test_touch_never_moves_backwards(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0)

        f.touch(T0 - timedelta(seconds=5))

        assert f.modified_at == T0

    def test_set_content_updates_modified_at(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0)

        f.set_content("new", when=T0 + timedelta(minutes=1))

        assert f.content == b"new"
        assert f.modified_at == T0 + timedelta(minutes=1)

    def test_rename_updates_modified_at(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0)

        f.rename("b.txt", when=T0 + timedelta(minutes=1))

        assert f.name == "b.txt"
        assert f.modified_at == T0 + timedelta(minutes=1)


class TestItemInfo:
    """Test get_info() summaries."""

    def test_file_info(self):
        root, docs, a_txt = build_tree()
        a_txt.created_at = T0
        a_txt.modified_at = T0

        info = a_txt.get_info()

        assert info == {
            "name": "a.txt",
            "type": "file",
            "size": 2,
            "path": "/root/docs/a.txt",
            "created": "2025-01-15 10:00:00",
            "modified": "2025-01-15 10:00:00",
        }

    def test_folder_info_counts_direct_children(self):
        root, docs, a_txt = build_tree()
        docs.add_child(File(name="b.txt", content="abc"))

        info = root.get_info()

        assert info["type"] == "folder"
        assert info["items"] == 1
        assert info["size"] == 5


# =============================================================================
# Folder Tests
# =============================================================================


class TestFolderChildren:
    """Test add_child/remove_child/get_child."""

    def test_add_child_sets_parent_and_keeps_order(self):
        folder = Folder(name="docs")
        first = File(name="1.txt")
        second = File(name="2.txt")

        folder.add_child(first)
        folder.add_child(second)

        assert folder.children == [first, second]
        assert first.parent is folder

    def test_add_child_touches_folder(self):
        folder = Folder(name="docs", created_at=T0, modified_at=T0)

        folder.add_child(File(name="a.txt"), when=T0 + timedelta(seconds=1))

        assert folder.modified_at == T0 + timedelta(seconds=1)

    def test_remove_child_detaches(self):
        root, docs, a_txt = build_tree()

        assert docs.remove_child(a_txt) is True
        assert docs.children == []
        assert a_txt.parent is None

    def test_remove_child_uses_identity(self):
        """Verify a look-alike item is not removed in place of the real child."""
        folder = Folder(name="docs")
        real = File(name="a.txt", content="x", created_at=T0, modified_at=T0)
        twin = File(name="a.txt", content="x", created_at=T0, modified_at=T0)
        folder.add_child(real)

        assert folder.remove_child(twin) is False
        assert folder.children == [real]

    def test_remove_missing_child_does_not_touch(self):
        folder = Folder(name="docs", created_at=T0, modified_at=T0)

        folder.remove_child(File(name="x"), when=T0 + timedelta(hours=1))

        assert folder.modified_at == T0

    def test_get_child(self):
        root, docs, a_txt = build_tree()

        assert docs.get_child("a.txt") is a_txt
        assert docs.get_child("missing") is None
        assert docs.has_child("a.txt")
        assert not docs.has_child("missing")


class TestFolderSize:
    """Test recursive size aggregation."""

    def test_size_sums_subtree(self):
        root, docs, a_txt = build_tree()
        sub = Folder(name="sub")
        docs.add_child(sub)
        sub.add_child(File(name="b.bin", content=b"\x00" * 10))

        assert sub.size() == 10
        assert docs.size() == 12
        assert root.size() == 12

    def test_size_follows_content_changes(self):
        root, docs, a_txt = build_tree()

        a_txt.set_content("hello")

        assert root.size() == 5

    def test_size_drops_after_removal(self):
        root, docs, a_txt = build_tree()

        root.remove_child(docs)

        assert root.size() == 0


class TestFolderTraversal:
    """Test walk(), contains() and render()."""

    def test_walk_is_preorder_in_insertion_order(self):
        root = Folder(name="root")
        a = Folder(name="a")
        a1 = File(name="a1")
        b = Folder(name="b")
        b1 = Folder(name="b1")
        b1x = File(name="x")
        root.add_child(a)
        a.add_child(a1)
        root.add_child(b)
        b.add_child(b1)
        b1.add_child(b1x)

        names = [item.name for item in root.walk()]

        assert names == ["a", "a1", "b", "b1", "x"]

    def test_contains(self):
        root, docs, a_txt = build_tree()

        assert root.contains(a_txt)
        assert docs.contains(a_txt)
        assert not docs.contains(root)
        assert not docs.contains(docs)

    def test_render(self):
        root, docs, a_txt = build_tree()
        root.add_child(Folder(name="empty"))

        assert root.render() == "root/\n  docs/\n    a.txt (2 B)\n  empty/"

    def test_deep_chain_path_size_walk_render(self):
        """Traversal does not depend on the interpreter's recursion limit."""
        root = Folder(name="root")
        folder = root
        for i in range(1500):
            child = Folder(name=f"d{i}")
            folder.add_child(child)
            folder = child
        folder.add_child(File(name="leaf", content="abc"))

        assert folder.path().startswith("/root/d0/d1/")
        assert root.size() == 3
        assert sum(1 for _ in root.walk()) == 1501
        assert root.render().splitlines()[-1] == "  " * 1501 + "leaf (3 B)"


class TestFileContentTypes:
    """Test which content types a File accepts."""

    @pytest.mark.parametrize("bad_content", [5, [1, 2], 2.0])
    def test_non_bytes_content_rejected(self, bad_content):
        with pytest.raises(ValueError, match="content must be str or bytes"):
            File(name="n.txt", content=bad_content)

    def test_set_content_rejects_int(self):
        f = File(name="a.txt", content="hi")

        with pytest.raises(ValueError):
            f.set_content(3)

        assert f.content == b"hi"


class TestItemTimezones:
    """Naive timestamps are treated as UTC."""

    def test_naive_timestamps_become_utc(self):
        f = File(name="a.txt", created_at=datetime(2025, 1, 15, 10, 0))

        assert f.created_at == T0
        assert f.created_at.tzinfo is not None

    def test_touch_accepts_naive_datetime(self):
        f = File(name="a.txt", created_at=T0, modified_at=T0)

        f.touch(datetime(2025, 1, 15, 11, 0))

        assert f.modified_at == T0 + timedelta(hours=1)
