"""Readers for line-based rule list files.

Suffix and exclusion lists are plain text files with one entry per line. Leading
and trailing whitespace is stripped, blank lines are skipped, and lines starting
with ``//`` are comments.
"""

from pathlib import Path
from typing import Iterable, Iterator, List

from treecopy.exceptions import ConfigurationError
from treecopy.types import PathType

COMMENT_LINE_PREFIX = "//"


def iter_rule_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield the meaningful entries of a rule list.

    Args:
        lines: Raw lines, with or without trailing newlines.

    Yields:
        Stripped entries, skipping blank lines and ``//`` comments.

    Example:
        >>> list(iter_rule_lines([".txt\\n", "", "// photos", "  _screenshot.png  "]))
        ['.txt', '_screenshot.png']
    """
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith(COMMENT_LINE_PREFIX):
            continue
        yield entry


def read_rule_lines(path: PathType) -> List[str]:
    """Read a rule list file into a list of entries.

    Args:
        path: Path to the rule list file.

    Returns:
        The entries of the file in file order.

    Raises:
        ConfigurationError: If the file does not exist, is not a regular file, or
            cannot be read.
    """
    rules_file = Path(path)
    if not rules_file.exists():
        raise ConfigurationError(f"Rules file not found: {rules_file}")
    if not rules_file.is_file():
        raise ConfigurationError(f"Rules file is not a file: {rules_file}")

    try:
        with open(rules_file, "r", encoding="utf-8") as f:
            return list(iter_rule_lines(f))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read rules file {rules_file}: {e}") from e
