"""Directory tree backup utilities.

This package provides tools for mirroring selected files from a source
directory tree into a destination directory, with suffix allow-lists,
directory exclusions and a dry-run preview of the copy plan.
"""

from importlib.metadata import PackageNotFoundError, version

# Expose the version for both programmatic use and CLI
try:
    __version__ = version("treecopy")
except PackageNotFoundError:
    __version__ = "unknown"
