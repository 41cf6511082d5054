from abc import ABC, abstractmethod
from typing import Sequence, Union

from treecopy.types import PathType


class BaseExclusionRules(ABC):
    """
    Interface shared by the rule sets that prune paths from a backup.

    Each rule set interprets paths in its own frame of reference: absolute directory
    rules expect absolute paths, pattern rules expect paths relative to the source root
    with forward slashes. The walker asks :meth:`exclude_dir` before descending into a
    directory and never looks inside a pruned one.

    Example:
        >>> from treecopy.selection_rules.git_rules import GitIgnoreExclusionRules
        >>> rules = GitIgnoreExclusionRules()
        >>> rules.add_rule('node_modules/')
        >>> rules.exclude_dir('web/node_modules')
        True
        >>> rules.exclude('web/index.html')
        False
    """

    @abstractmethod
    def exclude(self, path: str) -> bool:
        """
        Check a single path against the rules.

        Args:
            path (str): The path to check.

        Returns:
            bool: True if the path is pruned from the backup.
        """

    def exclude_dir(self, path: str) -> bool:
        """
        Check a directory before the walker descends into it.

        Rule sets that distinguish files from directories override this; the default
        treats directories like any other path.
        """
        return self.exclude(path)

    @abstractmethod
    def has_rules(self) -> bool:
        """Return True if at least one rule is configured."""

    @abstractmethod
    def add_rule(self, rule: str) -> None:
        """Add one rule, validating it immediately."""

    @abstractmethod
    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """
        Add the rules listed in one or more files.

        Raises:
            ConfigurationError: If a file cannot be read or holds an invalid rule.
        """
