from enum import Enum
from os import PathLike
from typing import Union

# Complete path type including strings and any path-like object
PathType = Union[str, PathLike[str]]


class CopyOutcome(Enum):
    """Outcome of a single copy task.

    Attributes:
        COPIED: The file was copied to its destination.
        FAILED: The file could not be copied; the result carries the reason.
    """

    COPIED = "copied"
    FAILED = "failed"
