"""Command-line interface for treecopy.

This module provides the ``treecopy`` command. It parses arguments, builds the run
configuration, logs the copy plan, copies the files unless ``--no-copy`` is given,
and finishes with a summary.

Signal Handling Notes:
    - SIGINT: Copying stops before the next file; the summary is still written
    - SIGPIPE: Logging stops when the output pipe is closed (e.g. piping to `head`)

Exit Codes:
    0: All planned files copied, or dry run completed
    1: Unexpected runtime error
    2: Invalid configuration or command-line syntax error
    3: One or more files failed to copy
    126: Unreadable directory with -P fail
    130: Interrupted by SIGINT (Ctrl+C)
    141: Broken pipe (SIGPIPE)

Example:
    # Preview what would be copied
    $ treecopy -s ~/docs -d /mnt/backup/docs -i suffixes.txt --no-copy

    # Copy and keep the log
    $ treecopy -s ~/docs -d /mnt/backup/docs -i suffixes.txt -o backup.log
"""

import sys
from threading import Event
from typing import Optional

from humanfriendly import format_size

from treecopy.backup_run import BackupRun, RunSummary
from treecopy.cli.argparser import create_parser, validate_args
from treecopy.cli.safe_writer import SafeWriter
from treecopy.cli.signal_handler import setup_signal_handling, signal_handler
from treecopy.config import BackupConfig
from treecopy.exceptions import ConfigurationError
from treecopy.file_system_tree.permission_action import PermissionAction
from treecopy.file_system_tree.plan_tree import build_plan_tree, stream_tree_representation

EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_PARTIAL_FAILURE = 3
EXIT_PERMISSION_DENIED = 126
EXIT_INTERRUPTED = 130
EXIT_BROKEN_PIPE = 141


def format_summary(summary: RunSummary) -> str:
    """Format the run summary into a human-readable string."""
    result = [
        f"Planned: {summary.planned_count} files ({format_size(summary.planned_bytes)})",
    ]
    if summary.dry_run:
        result.append("Copied: 0 files (dry run)")
    else:
        result.append(f"Copied: {summary.copied_count} files ({format_size(summary.bytes_copied)})")
        result.append(f"Failed: {summary.failed_count} files")
    result.append(f"Warnings: {summary.warning_count}")
    result.append(f"Symlinks skipped: {summary.skipped_symlink_count}")
    if summary.interrupted:
        result.append("Interrupted before all files were copied")
    return "\n".join(result)


def run_backup(
    config: BackupConfig, log: SafeWriter, cancel_event: Optional[Event] = None, show_tree: bool = False
) -> int:
    """Plan, preview and (unless dry run) execute a backup, logging every step.

    Args:
        config: The validated configuration.
        log: Destination of the run log.
        cancel_event: Event that stops copying between files when set.
        show_tree: Also log the planned destination layout as a tree.

    Returns:
        EXIT_SUCCESS, or EXIT_PARTIAL_FAILURE if any file failed to copy or copying
        was cancelled before every file was attempted.

    Raises:
        ConfigurationError: If the plan does not fit on the destination, or the
            destination root cannot be created.
        PermissionError: If a directory is unreadable and permission_action is RAISE.
    """
    run = BackupRun(config, cancel_event=cancel_event)
    logged_warnings = 0

    def log_new_warnings() -> None:
        nonlocal logged_warnings
        for warning in run.warnings[logged_warnings:]:
            log.warning(str(warning))
        logged_warnings = len(run.warnings)

    log.info(f"Source directory: {config.source_root}")
    log.info(f"Destination directory: {config.destination_root}")
    if config.suffix_rules.has_rules():
        log.info(f"Including files ending with: {', '.join(config.suffix_rules.suffixes)}")
    else:
        log.info("Including all files")
    for excluded in config.exclusion_rules.paths:
        log.info(f"Excluding directory: {excluded}")
    log.info(f"Searching for files to copy starting at {config.source_root}")

    try:
        for task in run.preview():
            log.info(f"Will copy: {task.source_path} -> {task.destination_path}")
    except ConfigurationError as e:
        log_new_warnings()
        log.error(str(e))
        raise
    log_new_warnings()

    if show_tree:
        copy_plan = run.copy_plan
        root_name = str(config.destination_root)
        for line in stream_tree_representation(build_plan_tree(copy_plan, root_name, copy_plan.sizes)):
            log.info(line)
        log_new_warnings()

    if config.dry_run:
        log.info("Copying skipped")
    else:
        log.info(f"Copying {len(run.copy_plan)} files ({format_size(run.copy_plan.total_size)})")
        for result in run.stream_results():
            task = result.task
            if result.succeeded:
                log.info(f"Copied {format_size(result.bytes_copied)}: {task.source_path} -> {task.destination_path}")
            else:
                log.warning(f"Failed to copy {task.source_path} -> {task.destination_path}: {result.reason}")

    summary = run.summary()
    log_new_warnings()
    log.info("")
    log.info(format_summary(summary))

    return EXIT_SUCCESS if summary.succeeded else EXIT_PARTIAL_FAILURE


def main() -> None:
    """Main entry point for the treecopy command-line interface.

    Exit codes:
        0: All planned files copied, or dry run completed
        1: Unexpected runtime error
        2: Invalid configuration or command-line syntax error
        3: One or more files failed to copy
        126: Unreadable directory with -P fail
        130: Interrupted by SIGINT (Ctrl+C)
        141: Broken pipe (SIGPIPE)
    """
    setup_signal_handling()

    # argparse exits with 2 on syntax errors and 0 for --version
    parser = create_parser()
    args = parser.parse_args()

    exit_code = EXIT_SUCCESS
    try:
        validate_args(args)
        config = BackupConfig.from_files(
            args.src_directory,
            args.dst_directory,
            include_suffixes_file=args.include_suffixes_file,
            exclude_paths_file=args.exclude_paths_file,
            ignore_patterns=args.ignore,
            ignore_files=args.ignore_file,
            dry_run=args.no_copy,
            follow_symlinks=args.follow_symlinks,
            permission_action=PermissionAction.RAISE if args.permission_action == "fail" else PermissionAction.WARN,
            jobs=args.jobs,
            check_free_space=not args.skip_space_check,
        )

        output_file = args.output if args.output else sys.stdout.fileno()
        with SafeWriter(output_file) as log:
            try:
                exit_code = run_backup(config, log, signal_handler.sigint_received, show_tree=args.tree)
            except BrokenPipeError:
                pass  # SafeWriter will automatically close in the context manager

    except ConfigurationError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(EXIT_CONFIGURATION_ERROR)
    except PermissionError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(EXIT_PERMISSION_DENIED)
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)

    # Handle exit codes based on received signals
    if signal_handler.sigpipe_received.is_set():
        sys.exit(EXIT_BROKEN_PIPE)
    elif signal_handler.sigint_received.is_set():
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
