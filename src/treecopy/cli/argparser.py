"""Command-line argument parsing for treecopy.

This module defines the command-line interface for treecopy,
handling argument parsing and validation.
"""

import argparse
from pathlib import Path

from treecopy import __version__
from treecopy.exceptions import ConfigurationError


def positive_int(value: str) -> int:
    """argparse type for options that need an integer of at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser.

    Returns:
        An ArgumentParser instance configured with treecopy's options.
    """
    description = """
    treecopy: copy selected files from a directory tree into a mirrored backup tree.

    Walks the source directory, keeps files whose names end with one of the configured
    suffixes, skips excluded directories, and copies the remaining files to the
    destination directory with the same relative layout. Existing destination files are
    overwritten.

    Before anything is copied, every planned copy is logged. With --no-copy the run
    stops there, so the plan can be inspected without touching the destination.

    Rule files:
    Suffix and exclusion files list one entry per line. Blank lines and lines starting
    with '//' are ignored. Exclusions must be absolute paths of existing directories.
    """

    epilog = """
    Examples:
      # Copy every file
      treecopy -s ~/projects -d /mnt/backup/projects

      # Only copy files ending with the suffixes listed in suffixes.txt
      treecopy -s ~/projects -d /mnt/backup/projects -i suffixes.txt

      # Skip the directories listed in exclusions.txt
      treecopy -s ~/projects -d /mnt/backup/projects -e exclusions.txt

      # Preview the plan as a tree without copying anything
      treecopy -s ~/projects -d /mnt/backup/projects --no-copy --tree

      # Skip files and directories matching gitignore-style patterns
      treecopy -s ~/projects -d /mnt/backup/projects -x "__pycache__/" -x "*.tmp"

      # Copy with four workers and keep the log in a file
      treecopy -s ~/projects -d /mnt/backup/projects -j 4 -o backup.log

    Exit status:
      0    all planned files copied, or dry run completed
      1    unexpected error
      2    invalid configuration (or command-line usage error)
      3    one or more files failed to copy
      126  unreadable directory with -P fail
      130  interrupted (Ctrl+C)
      141  broken pipe
    """

    parser = argparse.ArgumentParser(
        prog="treecopy",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"treecopy {__version__}", help="Show the version and exit"
    )
    parser.add_argument(
        "-s",
        "--src-directory",
        type=Path,
        required=True,
        metavar="DIR",
        help="Source directory. Files are copied starting from this place.",
    )
    parser.add_argument(
        "-d",
        "--dst-directory",
        type=Path,
        required=True,
        metavar="DIR",
        help="Destination directory. Created if it does not exist.",
    )
    parser.add_argument(
        "-i",
        "--include-suffixes-file",
        type=Path,
        metavar="FILE",
        help=(
            "File listing the suffixes of files to copy, one per line (e.g. '.txt', '.drawio.png', "
            "'_backup.txt'). Without it, every file is copied."
        ),
    )
    parser.add_argument(
        "-e",
        "--exclude-paths-file",
        type=Path,
        metavar="FILE",
        help="File listing absolute paths of directories to skip, one per line.",
    )
    parser.add_argument(
        "--no-copy",
        action="store_true",
        help="Only log what would be copied. Nothing is written to the destination.",
    )
    parser.add_argument(
        "-x",
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Gitignore-style pattern, relative to the source directory, of files or directories to skip.",
    )
    parser.add_argument(
        "--ignore-file",
        action="append",
        default=[],
        type=Path,
        metavar="FILE",
        help="File of gitignore-style patterns (e.g. a .gitignore). Can be specified multiple times.",
    )
    parser.add_argument(
        "-L",
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links. By default symbolic links are skipped.",
    )
    parser.add_argument(
        "-P",
        "--permission-action",
        choices=["warn", "fail"],
        default="warn",
        help="What to do with unreadable directories: log a warning and skip them, or stop (default: warn).",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=positive_int,
        default=1,
        metavar="N",
        help="Number of files copied concurrently (default: 1).",
    )
    parser.add_argument(
        "--tree",
        action="store_true",
        help="Also log the planned destination layout as a tree.",
    )
    parser.add_argument(
        "--skip-space-check",
        action="store_true",
        help="Do not compare the planned size with the free space of the destination.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Write the log to FILE instead of stdout.",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Performs additional validation beyond what argparse can handle.

    Args:
        args: Parsed command-line arguments.

    Raises:
        ConfigurationError: If any arguments fail validation.
    """
    for option, path in (
        ("--include-suffixes-file", args.include_suffixes_file),
        ("--exclude-paths-file", args.exclude_paths_file),
    ):
        if path is not None and not path.is_file():
            raise ConfigurationError(f"{option} '{path}' is not a file")

    if args.output is not None and args.output.is_dir():
        raise ConfigurationError(f"--output '{args.output}' is a directory")
