"""Deterministic directory traversal with suffix filtering and directory exclusions.

This module provides the TreeWalker class, which enumerates the files under a
source root that are selected for backup. Traversal uses an explicit stack of
pending directories, so arbitrarily deep trees never exhaust the interpreter's
recursion limit.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple, Union

from treecopy.exceptions import ConfigurationError
from treecopy.file_system_tree.permission_action import PermissionAction
from treecopy.selection_rules.git_rules import GitIgnoreExclusionRules
from treecopy.selection_rules.path_rules import PathExclusionRules
from treecopy.selection_rules.suffix_rules import SuffixRules
from treecopy.types import PathType

SuffixRulesLike = Union[SuffixRules, Iterable[str], None]
ExclusionRulesLike = Union[PathExclusionRules, Iterable[PathType], None]


@dataclass(frozen=True)
class TraversalWarning:
    """A non-fatal problem encountered while walking the source tree.

    Attributes:
        path: The path that triggered the warning.
        message: Human-readable explanation suitable for the run log.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class FileIdentifier(NamedTuple):
    """Device and inode pair identifying a directory independently of the path used to reach it."""

    device_id: int
    inode_number: int


class TreeWalker:
    """Enumerates the files under a source root that pass the selection rules.

    Directories are pruned when they equal or descend from an excluded directory (or
    match a directory pattern of the optional ignore rules). Files are emitted when
    their name passes the suffix allow-list and no ignore pattern matches them.

    Ordering:
        Entries of a directory are sorted by name. A directory's own files are emitted
        first, then its subdirectories are walked depth-first in sorted order. The
        sequence is therefore reproducible for an unchanged filesystem.

    Symbolic Link Behavior:
        By default symbolic links are not followed: symlinked files and directories are
        skipped and counted in ``skipped_symlink_count``. With ``follow_symlinks=True``
        links are followed, and a directory already entered during this walk (identified
        by device and inode) is not entered again, which breaks symlink loops.

    Permission Handling:
        - WARN (default): an unreadable directory is recorded in ``warnings`` and its
          subtree omitted; the walk continues with its siblings
        - RAISE: a PermissionError is raised immediately; other listing errors, such as a
          directory removed during the walk, are still recorded as warnings

    Attributes:
        root_path (Path): Resolved absolute path of the source root.
        suffix_rules (SuffixRules): Allow-list applied to file names.
        exclusion_rules (PathExclusionRules): Excluded absolute directories.
        ignore_rules (Optional[GitIgnoreExclusionRules]): Optional relative patterns.
        permission_action (PermissionAction): How unreadable directories are handled.
        follow_symlinks (bool): Whether symbolic links are followed.
        warnings (List[TraversalWarning]): Warnings of the most recent walk.

    Example:
        >>> walker = TreeWalker("/srv/photos", suffix_rules=[".jpg"])  # doctest: +SKIP
        >>> [str(p) for p in walker.walk()]  # doctest: +SKIP
        ['cover.jpg', '2023/beach.jpg', '2023/party/cake.jpg']
    """

    def __init__(
        self,
        root_path: PathType,
        suffix_rules: SuffixRulesLike = None,
        exclusion_rules: ExclusionRulesLike = None,
        ignore_rules: Optional[GitIgnoreExclusionRules] = None,
        permission_action: PermissionAction = PermissionAction.WARN,
        follow_symlinks: bool = False,
    ) -> None:
        """Initialize a TreeWalker.

        Args:
            root_path: Source directory to walk.
            suffix_rules: Suffix allow-list, as SuffixRules or plain strings. None or an
                empty collection selects every file.
            exclusion_rules: Excluded directories, as PathExclusionRules or plain absolute
                paths (validated here).
            ignore_rules: Optional gitignore-style patterns relative to the root.
            permission_action: How to handle unreadable directories. Defaults to WARN.
            follow_symlinks: Whether to follow symbolic links. Defaults to False.

        Raises:
            ConfigurationError: If a suffix or exclusion entry is invalid.
        """
        self.root_path = Path(os.path.abspath(root_path)).resolve()
        self.suffix_rules = suffix_rules if isinstance(suffix_rules, SuffixRules) else SuffixRules(suffix_rules)
        self.exclusion_rules = (
            exclusion_rules if isinstance(exclusion_rules, PathExclusionRules) else PathExclusionRules(exclusion_rules)
        )
        self.ignore_rules = ignore_rules
        self.permission_action = permission_action
        self.follow_symlinks = follow_symlinks
        self.warnings: List[TraversalWarning] = []
        self._skipped_symlink_count = 0

    @property
    def skipped_symlink_count(self) -> int:
        """Number of symbolic links skipped by the most recent walk."""
        return self._skipped_symlink_count

    def walk(self) -> Iterator[Path]:
        """Lazily yield the relative paths of all selected files.

        Each call starts a fresh walk and resets ``warnings``.

        Yields:
            Paths relative to the root, in traversal order.

        Raises:
            ConfigurationError: If the root does not exist or is not a directory.
            PermissionError: If a directory is unreadable and permission_action is RAISE.
        """
        if not self.root_path.exists():
            raise ConfigurationError(f"Source directory does not exist: {self.root_path}")
        if not self.root_path.is_dir():
            raise ConfigurationError(f"Source directory is not a directory: {self.root_path}")

        self.warnings = []
        self._skipped_symlink_count = 0
        visited: Set[FileIdentifier] = set()
        pending: List[Tuple[Path, Path]] = [(self.root_path, Path())]

        while pending:
            directory, relative_dir = pending.pop()
            if self._is_excluded_dir(directory, relative_dir):
                continue

            if self.follow_symlinks:
                file_id = self._get_file_identifier(directory)
                if file_id is not None:
                    if file_id in visited:
                        self._warn(directory, "Directory already visited, not following symlink loop")
                        continue
                    visited.add(file_id)

            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda entry: entry.name)
            except OSError as e:
                if isinstance(e, PermissionError) and self.permission_action == PermissionAction.RAISE:
                    raise PermissionError(f"Access denied to {directory}: {e}") from e
                self._warn(directory, f"Cannot read directory, skipping its contents: {e.strerror or e}")
                continue

            subdirectories: List[Tuple[Path, Path]] = []
            for entry in entries:
                relative_path = relative_dir / entry.name
                try:
                    if entry.is_symlink() and not self.follow_symlinks:
                        self._skipped_symlink_count += 1
                        continue
                    if entry.is_dir(follow_symlinks=self.follow_symlinks):
                        subdirectories.append((Path(entry.path), relative_path))
                        continue
                    if not entry.is_file(follow_symlinks=self.follow_symlinks):
                        if entry.is_symlink():
                            self._warn(entry.path, "Broken symbolic link, skipping")
                        continue
                except OSError as e:
                    self._warn(entry.path, f"Cannot inspect entry, skipping: {e.strerror or e}")
                    continue

                if self._is_selected_file(entry.name, relative_path):
                    yield relative_path

            # Reversed so the first subdirectory in sorted order is walked first
            pending.extend(reversed(subdirectories))

    def _is_excluded_dir(self, directory: Path, relative_dir: Path) -> bool:
        if self.exclusion_rules.is_excluded(directory):
            return True
        if self.follow_symlinks and directory.is_symlink():
            # A followed link may point into an excluded directory
            try:
                if self.exclusion_rules.is_excluded(directory.resolve()):
                    return True
            except OSError:
                pass
        if self.ignore_rules is not None and relative_dir.parts:
            return self.ignore_rules.exclude_dir(relative_dir.as_posix())
        return False

    def _is_selected_file(self, name: str, relative_path: Path) -> bool:
        if not self.suffix_rules.includes(name):
            return False
        if self.ignore_rules is not None and self.ignore_rules.exclude(relative_path.as_posix()):
            return False
        return True

    def _get_file_identifier(self, path: Path) -> Optional[FileIdentifier]:
        try:
            stat_info = path.stat()
        except OSError:
            return None
        return FileIdentifier(stat_info.st_dev, stat_info.st_ino)

    def _warn(self, path: PathType, message: str) -> None:
        self.warnings.append(TraversalWarning(str(path), message))


def walk(
    root: PathType,
    suffix_rules: SuffixRulesLike = None,
    exclusion_rules: ExclusionRulesLike = None,
    **kwargs: object,
) -> Iterator[Path]:
    """Lazily yield the relative paths of the files under ``root`` selected for backup.

    Convenience wrapper around :class:`TreeWalker`. Use the class directly to inspect
    traversal warnings after the walk.

    Example:
        >>> list(walk("/srv/photos", [".jpg"], ["/srv/photos/cache"]))  # doctest: +SKIP
        [PosixPath('cover.jpg'), PosixPath('2023/beach.jpg')]
    """
    yield from TreeWalker(root, suffix_rules, exclusion_rules, **kwargs).walk()  # type: ignore[arg-type]
