from typing import Optional

from humanfriendly import format_size

from treecopy.types import PathType


class TreeCopyError(Exception):
    """
    Base class for all treecopy errors.

    Example:
        >>> issubclass(ConfigurationError, TreeCopyError)
        True
    """

    pass


class ConfigurationError(TreeCopyError):
    """
    Exception raised when the run configuration is invalid.

    Configuration errors are fatal and are always raised before any traversal starts:
    a missing source root, an exclusion entry that is not an absolute path to an existing
    directory, an empty suffix rule, or a destination root that cannot be used.

    Example:
        >>> error = ConfigurationError("Exclusion path is not absolute: tmp")
        >>> str(error)
        'Exclusion path is not absolute: tmp'
    """

    pass


class InsufficientSpaceError(ConfigurationError):
    """
    Exception raised when the planned copy does not fit on the destination filesystem.

    Attributes:
        needed_bytes (int): Total size of all planned files.
        available_bytes (int): Free space reported for the destination filesystem.

    Example:
        >>> error = InsufficientSpaceError(2000, 1000)
        >>> str(error)
        'Not enough space to copy all files: needed 2 KB, available 1 KB'
    """

    def __init__(self, needed_bytes: int, available_bytes: int) -> None:
        """
        Initialize the exception with the needed and available byte counts.

        Args:
            needed_bytes (int): Total size of all planned files.
            available_bytes (int): Free space on the destination filesystem.
        """
        self.needed_bytes = needed_bytes
        self.available_bytes = available_bytes
        super().__init__(
            f"Not enough space to copy all files: needed {format_size(needed_bytes)}, "
            f"available {format_size(available_bytes)}"
        )


class CopyError(TreeCopyError):
    """
    Exception raised when a single copy task fails.

    Copy errors never abort a run. The executor records them against the failing task
    and continues with the next one.

    Attributes:
        path (str): Path of the file or directory the failure refers to.
        reason (str): Human-readable explanation of the failure.

    Example:
        >>> error = CopyError("/dst/a.txt", "Permission denied")
        >>> str(error)
        '/dst/a.txt: Permission denied'
    """

    def __init__(self, path: PathType, reason: str, message: Optional[str] = None) -> None:
        """
        Initialize the exception with the offending path and a reason.

        Args:
            path: Path the failure refers to.
            reason (str): Human-readable explanation of the failure.
            message (str, optional): Full message. Defaults to "<path>: <reason>".
        """
        self.path = str(path)
        self.reason = reason
        super().__init__(message or f"{self.path}: {reason}")


class CreateDirError(CopyError):
    """
    Exception raised when a destination directory cannot be created.

    This typically happens when a regular file occupies one of the path segments
    of the destination directory.

    Example:
        >>> error = CreateDirError("/dst/child", "File exists")
        >>> str(error)
        'Failed to create directory /dst/child: File exists'
    """

    def __init__(self, path: PathType, reason: str) -> None:
        super().__init__(path, reason, f"Failed to create directory {path}: {reason}")
