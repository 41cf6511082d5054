"""Copy planning: mapping selected source files to destination paths.

Planning never writes to the filesystem. A plan can be enumerated and logged in
full before anything is copied, which is what the dry-run mode relies on.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Sequence

from treecopy.exceptions import InsufficientSpaceError
from treecopy.file_system_tree.tree_walker import ExclusionRulesLike, SuffixRulesLike, TraversalWarning, TreeWalker
from treecopy.types import PathType


@dataclass(frozen=True)
class CopyTask:
    """A single planned copy.

    Attributes:
        relative_path: Path of the file relative to both roots.
        source_path: Absolute path of the file to read.
        destination_path: Absolute path of the file to write.

    Example:
        >>> task = CopyTask.for_relative_path(Path("child/a.txt"), Path("/src"), Path("/dst"))
        >>> str(task.destination_path)
        '/dst/child/a.txt'
    """

    relative_path: Path
    source_path: Path
    destination_path: Path

    @classmethod
    def for_relative_path(cls, relative_path: Path, source_root: Path, destination_root: Path) -> "CopyTask":
        return cls(relative_path, source_root / relative_path, destination_root / relative_path)


def plan_with_walker(walker: TreeWalker, destination_root: PathType) -> Iterator[CopyTask]:
    """Lazily map every file the walker selects to a CopyTask."""
    destination = Path(os.path.abspath(destination_root))
    for relative_path in walker.walk():
        yield CopyTask.for_relative_path(relative_path, walker.root_path, destination)


def plan(
    root: PathType,
    destination_root: PathType,
    suffix_rules: SuffixRulesLike = None,
    exclusion_rules: ExclusionRulesLike = None,
) -> Iterator[CopyTask]:
    """Lazily produce the copy plan for a source tree.

    Example:
        >>> for task in plan("/home/me/docs", "/mnt/backup", [".txt"]):  # doctest: +SKIP
        ...     print(task.source_path, "->", task.destination_path)
        /home/me/docs/a.txt -> /mnt/backup/a.txt
    """
    yield from plan_with_walker(TreeWalker(root, suffix_rules, exclusion_rules), destination_root)


class CopyPlan:
    """A fully materialized copy plan.

    Holds the ordered tasks together with everything learned while computing them:
    traversal warnings, skipped symlinks and the size of each planned file.

    Attributes:
        source_root (Path): Resolved source root.
        destination_root (Path): Absolute destination root.
        tasks (List[CopyTask]): Planned tasks, in traversal order.
        warnings (List[TraversalWarning]): Traversal and size warnings.
        skipped_symlink_count (int): Symbolic links the walk did not follow.

    Example:
        >>> walker = TreeWalker("/home/me/docs", [".txt"])  # doctest: +SKIP
        >>> copy_plan = CopyPlan.from_walker(walker, "/mnt/backup")  # doctest: +SKIP
        >>> len(copy_plan), copy_plan.total_size  # doctest: +SKIP
        (2, 1536)
    """

    def __init__(
        self,
        source_root: Path,
        destination_root: Path,
        tasks: Sequence[CopyTask],
        warnings: Optional[Sequence[TraversalWarning]] = None,
        skipped_symlink_count: int = 0,
    ) -> None:
        self.source_root = source_root
        self.destination_root = destination_root
        self.tasks = list(tasks)
        self.warnings = list(warnings or [])
        self.skipped_symlink_count = skipped_symlink_count
        self._sizes: Optional[Dict[Path, int]] = None

    @classmethod
    def from_walker(cls, walker: TreeWalker, destination_root: PathType) -> "CopyPlan":
        """Run the walker to completion and materialize its plan."""
        tasks = list(plan_with_walker(walker, destination_root))
        return cls(
            walker.root_path,
            Path(os.path.abspath(destination_root)),
            tasks,
            walker.warnings,
            walker.skipped_symlink_count,
        )

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[CopyTask]:
        return iter(self.tasks)

    @property
    def sizes(self) -> Dict[Path, int]:
        """Size of each planned file keyed by relative path.

        Computed on first access. Files whose size cannot be read are recorded as
        warnings and left out of the mapping.
        """
        if self._sizes is None:
            self._sizes = {}
            for task in self.tasks:
                try:
                    self._sizes[task.relative_path] = task.source_path.stat().st_size
                except OSError as e:
                    self.warnings.append(
                        TraversalWarning(str(task.source_path), f"Cannot read file size: {e.strerror or e}")
                    )
        return self._sizes

    @property
    def total_size(self) -> int:
        """Total size in bytes of all planned files whose size could be read."""
        return sum(self.sizes.values())

    def check_free_space(self) -> None:
        """Make sure the destination filesystem can hold the whole plan.

        Raises:
            InsufficientSpaceError: If the planned size exceeds the free space.
        """
        available = available_space(self.destination_root)
        needed = self.total_size
        if needed > available:
            raise InsufficientSpaceError(needed, available)


def nearest_existing_ancestor(path: Path) -> Path:
    """Return ``path`` itself if it exists, otherwise its closest existing parent.

    Example:
        >>> str(nearest_existing_ancestor(Path("/no/such/dir/for/sure")))
        '/'
    """
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return Path(path.anchor)


def available_space(path: Path) -> int:
    """Free bytes available on the filesystem that holds (or will hold) ``path``."""
    return shutil.disk_usage(nearest_existing_ancestor(path)).free
