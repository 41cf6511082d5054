"""Validated run configuration.

A BackupConfig is built once from plain values (or rule files), validated in
full before any traversal starts, and then treated as read-only for the run.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from treecopy.copy_planner import nearest_existing_ancestor
from treecopy.exceptions import ConfigurationError
from treecopy.file_system_tree.permission_action import PermissionAction
from treecopy.selection_rules.git_rules import GitIgnoreExclusionRules
from treecopy.selection_rules.path_rules import PathExclusionRules, normalize_path
from treecopy.selection_rules.suffix_rules import SuffixRules
from treecopy.types import PathType


@dataclass(frozen=True)
class BackupConfig:
    """Everything a backup run needs, already validated.

    Attributes:
        source_root: Resolved absolute path of the directory being backed up.
        destination_root: Absolute path of the mirror. May not exist yet.
        suffix_rules: Suffix allow-list; empty means every file.
        exclusion_rules: Excluded absolute directories.
        ignore_rules: Optional gitignore-style patterns relative to the source root.
        dry_run: Stop after previewing the plan; never write.
        follow_symlinks: Follow symbolic links during traversal.
        permission_action: How unreadable directories are handled.
        jobs: Number of files copied concurrently.
        check_free_space: Compare the planned size with the destination's free space.
    """

    source_root: Path
    destination_root: Path
    suffix_rules: SuffixRules
    exclusion_rules: PathExclusionRules
    ignore_rules: Optional[GitIgnoreExclusionRules] = None
    dry_run: bool = False
    follow_symlinks: bool = False
    permission_action: PermissionAction = PermissionAction.WARN
    jobs: int = 1
    check_free_space: bool = True

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise ConfigurationError(f"Number of jobs must be at least 1, got {self.jobs}")

    @classmethod
    def from_values(
        cls,
        source_root: PathType,
        destination_root: PathType,
        suffixes: Optional[Iterable[str]] = None,
        exclusions: Optional[Iterable[PathType]] = None,
        ignore_patterns: Optional[Sequence[str]] = None,
        ignore_files: Optional[Sequence[PathType]] = None,
        dry_run: bool = False,
        follow_symlinks: bool = False,
        permission_action: PermissionAction = PermissionAction.WARN,
        jobs: int = 1,
        check_free_space: bool = True,
    ) -> "BackupConfig":
        """Build a configuration from already-parsed values.

        Args:
            source_root: Directory to back up.
            destination_root: Directory receiving the mirror.
            suffixes: Suffix rules. None or empty selects every file.
            exclusions: Absolute paths of directories to prune.
            ignore_patterns: Individual gitignore-style patterns.
            ignore_files: Files of gitignore-style patterns.
            dry_run: Only compute and report the plan.
            follow_symlinks: Follow symbolic links during traversal.
            permission_action: How unreadable directories are handled.
            jobs: Number of files copied concurrently.
            check_free_space: Compare the planned size with the free space.

        Returns:
            The validated configuration.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        source = validate_source_root(source_root)
        destination = validate_destination_root(destination_root, source)

        ignore_rules: Optional[GitIgnoreExclusionRules] = None
        if ignore_files or ignore_patterns:
            ignore_rules = GitIgnoreExclusionRules(list(ignore_files or []))
            for pattern in ignore_patterns or []:
                ignore_rules.add_rule(pattern)

        return cls(
            source_root=source,
            destination_root=destination,
            suffix_rules=SuffixRules(suffixes),
            exclusion_rules=PathExclusionRules(exclusions),
            ignore_rules=ignore_rules,
            dry_run=dry_run,
            follow_symlinks=follow_symlinks,
            permission_action=permission_action,
            jobs=jobs,
            check_free_space=check_free_space,
        )

    @classmethod
    def from_files(
        cls,
        source_root: PathType,
        destination_root: PathType,
        include_suffixes_file: Optional[PathType] = None,
        exclude_paths_file: Optional[PathType] = None,
        **options: object,
    ) -> "BackupConfig":
        """Build a configuration, reading suffixes and exclusions from rule files.

        A missing ``include_suffixes_file`` means no suffix filter; a missing
        ``exclude_paths_file`` means no exclusions. Remaining keyword arguments are
        passed to :meth:`from_values`.

        Raises:
            ConfigurationError: If a rule file cannot be read or holds an invalid entry.
        """
        suffix_rules = SuffixRules()
        if include_suffixes_file is not None:
            suffix_rules.load_rules(include_suffixes_file)
        exclusion_rules = PathExclusionRules()
        if exclude_paths_file is not None:
            exclusion_rules.load_rules(exclude_paths_file)

        return cls.from_values(
            source_root,
            destination_root,
            suffixes=suffix_rules.suffixes,
            exclusions=exclusion_rules.paths,
            **options,  # type: ignore[arg-type]
        )

    @property
    def effective_exclusion_rules(self) -> PathExclusionRules:
        """Exclusions used for traversal.

        An existing destination inside the source root is pruned as well, so a run never
        backs up its own previous output.
        """
        destination = self.destination_root
        if destination.is_dir() and self.source_root in destination.resolve().parents:
            rules = PathExclusionRules(self.exclusion_rules.paths)
            rules.add_rule(destination)
            return rules
        return self.exclusion_rules


def validate_source_root(source_root: PathType) -> Path:
    """Return the resolved source root.

    Raises:
        ConfigurationError: If the path does not exist or is not a directory.
    """
    source = Path(os.path.abspath(source_root))
    if not source.exists():
        raise ConfigurationError(f"Source directory does not exist: {source_root}")
    if not source.is_dir():
        raise ConfigurationError(f"Source directory is not a directory: {source_root}")
    return source.resolve()


def validate_destination_root(destination_root: PathType, source_root: Path) -> Path:
    """Return the absolute destination root after checking that it is usable.

    The destination may not exist yet; in that case its nearest existing ancestor must
    be a writable directory so the root can be created later.

    Raises:
        ConfigurationError: If the destination is a file, the source itself, or cannot
            be written or created.
    """
    destination = normalize_path(os.path.abspath(destination_root))
    if destination.exists():
        if not destination.is_dir():
            raise ConfigurationError(f"Destination is not a directory: {destination_root}")
        if destination.resolve() == source_root:
            raise ConfigurationError(f"Destination directory is the source directory: {destination_root}")
        if not os.access(destination, os.W_OK | os.X_OK):
            raise ConfigurationError(f"Destination directory is not writable: {destination_root}")
        return destination

    ancestor = nearest_existing_ancestor(destination)
    if not ancestor.is_dir():
        raise ConfigurationError(
            f"Destination directory cannot be created, {ancestor} is not a directory: {destination_root}"
        )
    if not os.access(ancestor, os.W_OK | os.X_OK):
        raise ConfigurationError(f"Destination directory cannot be created in {ancestor}: {destination_root}")
    return destination
