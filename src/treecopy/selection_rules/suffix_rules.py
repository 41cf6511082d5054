"""Suffix allow-list for deciding which files are backed up."""

from os import PathLike
from typing import AbstractSet, Dict, Iterable, Optional, Sequence, Tuple, Union

from treecopy.exceptions import ConfigurationError
from treecopy.io.rule_file_reader import read_rule_lines
from treecopy.types import PathType


def includes(filename: str, rules: AbstractSet[str]) -> bool:
    """Check whether a filename passes a suffix allow-list.

    An empty rule set disables filtering. Otherwise the filename must end with at
    least one rule string. Matching is a literal, case-sensitive comparison of the
    trailing characters; rules are not globs and need not be dotted extensions.

    Args:
        filename: Name of the file (not a path).
        rules: Suffix strings.

    Returns:
        True if the file should be included.

    Example:
        >>> includes("report.txt", set())
        True
        >>> includes("report.txt", {".txt", ".md"})
        True
        >>> includes("holiday_screenshot", {"_screenshot"})
        True
        >>> includes("report.TXT", {".txt"})
        False
    """
    if not rules:
        return True
    return any(filename.endswith(suffix) for suffix in rules)


class SuffixRules:
    """A validated set of suffix rules.

    Suffixes are kept in first-seen order for display; duplicates collapse. Empty
    suffixes are rejected when they are added, so matching never has to deal with
    malformed rules.

    Attributes:
        suffixes (Tuple[str, ...]): The configured suffixes, in first-seen order.

    Example:
        >>> rules = SuffixRules([".txt", ".drawio.png", ".txt"])
        >>> rules.suffixes
        ('.txt', '.drawio.png')
        >>> rules.includes("diagram.drawio.png")
        True
        >>> rules.includes("photo.png")
        False
        >>> SuffixRules().includes("anything")
        True
    """

    def __init__(self, suffixes: Optional[Iterable[str]] = None) -> None:
        """Initialize the rule set.

        Args:
            suffixes: Initial suffixes. Defaults to none, which includes every file.

        Raises:
            ConfigurationError: If any suffix is an empty string.
        """
        self._suffixes: Dict[str, None] = {}
        for suffix in suffixes or ():
            self.add_rule(suffix)

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return tuple(self._suffixes)

    def add_rule(self, rule: str) -> None:
        """Add a single suffix.

        Raises:
            ConfigurationError: If the suffix is empty.
        """
        if not isinstance(rule, str) or rule == "":
            raise ConfigurationError(f"Suffix rule must be a non-empty string, got {rule!r}")
        self._suffixes[rule] = None

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """Add the suffixes listed in one or more rule files.

        Raises:
            ConfigurationError: If a file cannot be read.
        """
        if isinstance(rules_files, (str, PathLike)):
            rules_files = [rules_files]
        for rules_file in rules_files:
            for rule in read_rule_lines(rules_file):
                self.add_rule(rule)

    def has_rules(self) -> bool:
        return bool(self._suffixes)

    def includes(self, filename: str) -> bool:
        """Check whether a filename passes this allow-list."""
        return includes(filename, self._suffixes.keys())

    def __len__(self) -> int:
        return len(self._suffixes)

    def __repr__(self) -> str:
        return f"SuffixRules({list(self._suffixes)!r})"
