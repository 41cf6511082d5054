"""Pattern exclusions using .gitignore syntax, matched relative to the source root."""

from os import PathLike
from pathlib import Path
from typing import Optional, Sequence, Union

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern  # type: ignore

from treecopy.exceptions import ConfigurationError
from treecopy.types import PathType

from .base_rules import BaseExclusionRules


class GitIgnoreExclusionRules(BaseExclusionRules):
    """Exclusion rules using .gitignore pattern syntax.

    Complements the absolute directory exclusions with patterns such as ``*.tmp``,
    ``__pycache__/`` or ``!keep.tmp``. Paths handed to :meth:`exclude` are relative
    to the source root and use forward slashes; directories are checked with a
    trailing slash so directory-only patterns prune them during traversal.

    Patterns from files and individual patterns are evaluated in the order they were
    added, so later negations can re-include earlier matches.

    Attributes:
        spec (PathSpec): Compiled pattern matcher from the pathspec library.

    Example:
        >>> rules = GitIgnoreExclusionRules()
        >>> rules.add_rule("__pycache__/")
        >>> rules.add_rule("*.tmp")
        >>> rules.add_rule("!keep.tmp")
        >>> rules.exclude_dir("src/__pycache__")
        True
        >>> rules.exclude("src/build.tmp")
        True
        >>> rules.exclude("keep.tmp")
        False
    """

    def __init__(self, rules_files: Optional[Union[PathType, Sequence[PathType]]] = None):
        """Initialize the rules, optionally loading pattern files.

        Raises:
            ConfigurationError: If any pattern file does not exist or cannot be read.
        """
        self.spec = PathSpec.from_lines(GitWildMatchPattern, [])
        if rules_files is not None:
            self.load_rules(rules_files)

    def exclude(self, path: str) -> bool:
        return bool(self.spec.match_file(path))

    def exclude_dir(self, path: str) -> bool:
        """Check a directory path, relative to the source root, against the patterns."""
        return self.exclude(path.rstrip("/") + "/")

    def has_rules(self) -> bool:
        return len(self.spec.patterns) > 0

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """Append the patterns from one or more .gitignore-style files.

        Raises:
            ConfigurationError: If any pattern file does not exist or cannot be read.
        """
        if isinstance(rules_files, (str, PathLike)):
            rules_files = [rules_files]

        for rules_file in rules_files:
            path = Path(rules_file)
            if not path.is_file():
                raise ConfigurationError(f"Ignore file not found: {path}")
            try:
                with open(path, "r", encoding="utf-8") as f:
                    lines = f.read().splitlines()
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigurationError(f"Cannot read ignore file {path}: {e}") from e

            new_patterns = PathSpec.from_lines(GitWildMatchPattern, lines).patterns
            # pathspec may hand back an immutable sequence
            if not hasattr(self.spec.patterns, "extend"):
                self.spec.patterns = list(self.spec.patterns)
            self.spec.patterns.extend(new_patterns)

    def add_rule(self, rule: str) -> None:
        """Append a single .gitignore pattern."""
        if not hasattr(self.spec.patterns, "append"):
            self.spec.patterns = list(self.spec.patterns)
        self.spec.patterns.append(GitWildMatchPattern(rule))
