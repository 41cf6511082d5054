"""Node representation for entries of a copy plan tree."""

from typing import Any, Optional

from anytree import Node


class FileSystemNode(Node):  # type: ignore
    """Node class representing a planned file or an intermediate directory.

    Extends anytree.Node with a directory flag and, for files, the size that will be
    copied. Inherits tree traversal and manipulation capabilities from anytree.Node.

    Attributes:
        name (str): The name of the file or directory (just the basename).
        parent (Optional[FileSystemNode]): The parent node in the tree.
        is_dir (bool): True if this node represents a directory, False for files.
        size (Optional[int]): Size in bytes of a planned file, if known.

    Example:
        >>> root = FileSystemNode("backup", is_dir=True)
        >>> child = FileSystemNode("notes.txt", parent=root, size=12)
        >>> child.path[0].name
        'backup'
        >>> child.size
        12
    """

    def __init__(
        self,
        name: str,
        parent: Optional["FileSystemNode"] = None,
        is_dir: bool = False,
        size: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, parent, **kwargs)
        self.is_dir = is_dir
        self.size = size
