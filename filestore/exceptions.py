"""Exception hierarchy for the file store.

Every error a Store operation can raise derives from ``FileStoreError`` so
callers can catch one type or the specific kind they care about. Each kind
also names the POSIX errno a real filesystem would return for it.

Exception Hierarchy:
    FileStoreError (base)
    ├── ReadOnlyError - mutation attempted while the store is read-only (EROFS)
    ├── AlreadyExistsError - create or rename collides with a sibling (EEXIST)
    ├── NotFoundError - lookup by path or name failed (ENOENT)
    └── InvalidOperationError - structurally disallowed request (EINVAL)

Example:
    Handling a blocked write::

        try:
            store.create_file("notes.txt", "hello")
        except ReadOnlyError as e:
            print(f"blocked: {e.operation}")
        except FileStoreError as e:
            print(f"failed: {e}")

Failures writing the audit log file are never raised; see
``filestore.operation_log``.
"""


class FileStoreError(Exception):
    """Base exception for all file store errors.

    Attributes:
        message: Human-readable error description.
        errno_name: Symbolic POSIX errno closest to this error.
    """

    errno_name: str = "EIO"

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ReadOnlyError(FileStoreError):
    """A mutating operation was attempted while the store is read-only.

    Mirrors how SquashFS, ISO 9660 and CRAMFS reject writes.

    Attributes:
        operation: Name of the blocked operation (e.g. "create_file").
    """

    errno_name = "EROFS"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Operation '{operation}' not allowed: file store is mounted read-only"
        )


class AlreadyExistsError(FileStoreError):
    """A create or rename collides with an existing sibling name.

    Attributes:
        name: The colliding name.
    """

    errno_name = "EEXIST"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Item '{name}' already exists")


class NotFoundError(FileStoreError):
    """A lookup by path, name or selection did not resolve.

    Attributes:
        identifier: What was looked up.
    """

    errno_name = "ENOENT"

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Item '{identifier}' not found")


class InvalidOperationError(FileStoreError):
    """The request is structurally disallowed, e.g. deleting the root.

    Attributes:
        reason: Why the request was refused.
    """

    errno_name = "EINVAL"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
