"""Tree rendering of a copy plan for dry-run previews."""

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from humanfriendly import format_size

from treecopy.file_system_tree.file_system_node import FileSystemNode

if TYPE_CHECKING:
    from treecopy.copy_planner import CopyTask


def build_plan_tree(
    tasks: Iterable["CopyTask"], root_name: str, sizes: Optional[Mapping[Path, int]] = None
) -> FileSystemNode:
    """Build an anytree of the destination layout a copy plan will produce.

    Intermediate directories are created once per distinct relative directory.

    Args:
        tasks: The planned copy tasks.
        root_name: Name shown for the destination root.
        sizes: Optional mapping of relative path to file size.

    Returns:
        The root node of the tree.
    """
    root = FileSystemNode(root_name, is_dir=True)
    directories: Dict[Tuple[str, ...], FileSystemNode] = {(): root}

    for task in tasks:
        parts = task.relative_path.parts
        parent = root
        for depth in range(1, len(parts)):
            key = parts[:depth]
            node = directories.get(key)
            if node is None:
                node = FileSystemNode(parts[depth - 1], parent=parent, is_dir=True)
                directories[key] = node
            parent = node
        size = sizes.get(task.relative_path) if sizes else None
        FileSystemNode(parts[-1], parent=parent, size=size)

    return root


def stream_tree_representation(root: FileSystemNode) -> Iterator[str]:
    """Generate a tree listing one line at a time, similar to the Unix ``tree`` command.

    Directories are listed before files, both alphabetically.

    Example:
        >>> root = FileSystemNode("dst", is_dir=True)
        >>> child = FileSystemNode("child", parent=root, is_dir=True)
        >>> _ = FileSystemNode("child_file.txt", parent=child, size=5)
        >>> _ = FileSystemNode("root_file.txt", parent=root)
        >>> print("\\n".join(stream_tree_representation(root)))
        dst/
        ├── child/
        │   └── child_file.txt (5 bytes)
        └── root_file.txt
    """

    def write_children(node: FileSystemNode, prefix: str) -> Iterator[str]:
        children = sorted(node.children, key=lambda n: (not n.is_dir, n.name.lower()))
        for i, child in enumerate(children):
            is_last = i == len(children) - 1
            connector = "└── " if is_last else "├── "
            if child.is_dir:
                label = f"{child.name}/"
            elif child.size is not None:
                label = f"{child.name} ({format_size(child.size)})"
            else:
                label = child.name
            yield f"{prefix}{connector}{label}"
            if child.is_dir:
                yield from write_children(child, prefix + ("    " if is_last else "│   "))

    yield f"{root.name}/"
    yield from write_children(root, "")
