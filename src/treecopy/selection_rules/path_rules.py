"""Exclusion rules based on absolute directory paths."""

import os
from os import PathLike
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from treecopy.exceptions import ConfigurationError
from treecopy.io.rule_file_reader import read_rule_lines
from treecopy.types import PathType

from .base_rules import BaseExclusionRules


def normalize_path(path: PathType) -> Path:
    """Collapse ``.``/``..`` segments and redundant separators without touching the filesystem.

    Example:
        >>> str(normalize_path("/data/./photos/../music/"))
        '/data/music'
    """
    return Path(os.path.normpath(os.fspath(path)))


def is_excluded(candidate_dir: PathType, rules: Iterable[PathType]) -> bool:
    """Check whether a directory equals or lies beneath any excluded directory.

    Paths are compared component by component after normalization, so an excluded
    ``/data/foo`` does not exclude ``/data/foobar``.

    Args:
        candidate_dir: Absolute path of the directory being considered.
        rules: Absolute paths of excluded directories.

    Returns:
        True if the directory is pruned.

    Example:
        >>> is_excluded("/data/cache", ["/data/cache"])
        True
        >>> is_excluded("/data/cache/thumbs/", ["/data/cache"])
        True
        >>> is_excluded("/data/cache2", ["/data/cache"])
        False
        >>> is_excluded("/data", ["/data/cache"])
        False
    """
    candidate = normalize_path(candidate_dir)
    for rule in rules:
        excluded = normalize_path(rule)
        if candidate == excluded or excluded in candidate.parents:
            return True
    return False


class PathExclusionRules(BaseExclusionRules):
    """A validated set of absolute directory exclusions.

    Every entry must be an absolute path to an existing directory. Invalid entries are
    rejected as soon as they are added, so a mistyped exclusion can never silently
    turn into backing up everything. Entries are stored resolved, which makes them
    comparable with the resolved paths produced during traversal.

    Attributes:
        paths (List[Path]): The excluded directories, resolved, in first-seen order.

    Example:
        >>> import tempfile
        >>> with tempfile.TemporaryDirectory() as tmpdir:
        ...     rules = PathExclusionRules([tmpdir])
        ...     rules.exclude(os.path.join(rules.paths[0], "sub", "dir"))
        True
        >>> PathExclusionRules(["relative/dir"])
        Traceback (most recent call last):
        ...
        treecopy.exceptions.ConfigurationError: Exclusion path is not absolute: relative/dir
    """

    def __init__(self, paths: Optional[Iterable[PathType]] = None) -> None:
        """Initialize the rule set.

        Args:
            paths: Initial excluded directories.

        Raises:
            ConfigurationError: If any entry is not an absolute path to an existing directory.
        """
        self.paths: List[Path] = []
        for path in paths or ():
            self.add_rule(path)

    def add_rule(self, rule: PathType) -> None:  # type: ignore[override]
        """Validate and add a single excluded directory.

        Raises:
            ConfigurationError: If the entry is relative, missing, or not a directory.
        """
        path = Path(rule)
        if not path.is_absolute():
            raise ConfigurationError(f"Exclusion path is not absolute: {rule}")
        if not path.exists():
            raise ConfigurationError(f"Exclusion path does not exist: {rule}")
        if not path.is_dir():
            raise ConfigurationError(f"Exclusion path is not a directory: {rule}")

        resolved = path.resolve()
        if resolved not in self.paths:
            self.paths.append(resolved)

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """Validate and add the directories listed in one or more rule files.

        Raises:
            ConfigurationError: If a file cannot be read or contains an invalid entry.
        """
        if isinstance(rules_files, (str, PathLike)):
            rules_files = [rules_files]
        for rules_file in rules_files:
            for rule in read_rule_lines(rules_file):
                self.add_rule(rule)

    def exclude(self, path: str) -> bool:
        return self.is_excluded(path)

    def is_excluded(self, candidate_dir: PathType) -> bool:
        """Check whether a directory equals or lies beneath any excluded directory."""
        return is_excluded(candidate_dir, self.paths)

    def has_rules(self) -> bool:
        return bool(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __repr__(self) -> str:
        return f"PathExclusionRules({[str(p) for p in self.paths]!r})"
