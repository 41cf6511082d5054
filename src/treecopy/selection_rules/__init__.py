"""Selection rules for deciding which files and directories are backed up."""

from .base_rules import BaseExclusionRules
from .git_rules import GitIgnoreExclusionRules
from .path_rules import PathExclusionRules, is_excluded
from .suffix_rules import SuffixRules, includes

__all__ = [
    "BaseExclusionRules",
    "GitIgnoreExclusionRules",
    "PathExclusionRules",
    "SuffixRules",
    "includes",
    "is_excluded",
]
