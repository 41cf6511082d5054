"""Permission action enum for handling unreadable directories during traversal."""

from enum import Enum


class PermissionAction(str, Enum):
    """Action to take when a directory cannot be read during traversal.

    Values:
        WARN: Record a traversal warning, omit the directory's subtree and continue with
            its siblings (default behavior)
        RAISE: Raise a PermissionError immediately, aborting the walk
    """

    WARN = "warn"
    RAISE = "raise"
