"""Backup runs: planning, previewing, copying and reporting.

This module ties the walker, planner and executor together. A run moves through
``CONFIGURED → PLANNED → PREVIEWED → EXECUTED → REPORTED``; a dry run goes from
``PREVIEWED`` straight to ``REPORTED`` and never writes to the filesystem.
"""

import os
from dataclasses import dataclass
from enum import Enum
from threading import Event
from typing import Iterator, List, Optional

from treecopy.config import BackupConfig
from treecopy.copy_executor import CopyExecutor, CopyReport, CopyResult
from treecopy.copy_planner import CopyPlan, CopyTask
from treecopy.exceptions import ConfigurationError, InsufficientSpaceError
from treecopy.file_system_tree.tree_walker import TraversalWarning, TreeWalker


class RunState(Enum):
    """Stages of a backup run, in order."""

    CONFIGURED = 1
    PLANNED = 2
    PREVIEWED = 3
    EXECUTED = 4
    REPORTED = 5


@dataclass(frozen=True)
class RunSummary:
    """Aggregate counts of a finished run.

    Attributes:
        planned_count: Number of planned files.
        planned_bytes: Total size of the planned files.
        copied_count: Files copied (0 for dry runs).
        failed_count: Files that failed to copy.
        bytes_copied: Bytes written.
        warning_count: Traversal and planning warnings.
        skipped_symlink_count: Symbolic links that were not followed.
        dry_run: Whether copying was skipped.
        interrupted: Whether the run was cancelled before every file was attempted.
    """

    planned_count: int
    planned_bytes: int
    copied_count: int
    failed_count: int
    bytes_copied: int
    warning_count: int
    skipped_symlink_count: int
    dry_run: bool
    interrupted: bool

    @property
    def succeeded(self) -> bool:
        """True if every planned file was copied, or the dry run completed."""
        return self.failed_count == 0 and not self.interrupted


class BackupRun:
    """A single backup run over a validated configuration.

    Streaming properties:
    - ``preview`` and ``stream_results`` can each be consumed only once
    - ``stream_results`` yields results as files are copied, in plan order
    - Counts reflect only processed files until the run is REPORTED

    Attributes:
        config (BackupConfig): The run configuration.
        state (RunState): The current stage.
        warnings (List[TraversalWarning]): Traversal, size and free space warnings.

    Example:
        >>> config = BackupConfig.from_values("/home/me/docs", "/mnt/backup", [".txt"])  # doctest: +SKIP
        >>> run = BackupRun(config)  # doctest: +SKIP
        >>> for task in run.preview():  # doctest: +SKIP
        ...     print(task.source_path, "->", task.destination_path)
        /home/me/docs/a.txt -> /mnt/backup/a.txt
        >>> for result in run.stream_results():  # doctest: +SKIP
        ...     print(result.outcome)
        CopyOutcome.COPIED
        >>> run.summary().copied_count  # doctest: +SKIP
        1
    """

    def __init__(self, config: BackupConfig, cancel_event: Optional[Event] = None) -> None:
        """Initialize a run.

        Args:
            config: The validated configuration.
            cancel_event: Optional event that stops copying between files when set.
        """
        self.config = config
        self.cancel_event = cancel_event
        self.state = RunState.CONFIGURED
        self._plan: Optional[CopyPlan] = None
        self._results: List[CopyResult] = []
        self._report: Optional[CopyReport] = None

    @property
    def warnings(self) -> List[TraversalWarning]:
        """Traversal, size and free space warnings collected so far."""
        return list(self._plan.warnings) if self._plan is not None else []

    @property
    def report(self) -> CopyReport:
        if self._report is None:
            raise RuntimeError("The run has not been executed yet")
        return self._report

    @property
    def copy_plan(self) -> CopyPlan:
        if self._plan is None:
            raise RuntimeError("The run has not been planned yet")
        return self._plan

    def plan(self) -> CopyPlan:
        """Walk the source tree and materialize the copy plan.

        Raises:
            RuntimeError: If the run was already planned.
            ConfigurationError: If the source root vanished since configuration.
            PermissionError: If a directory is unreadable and permission_action is RAISE.
        """
        self._expect(RunState.CONFIGURED)
        walker = TreeWalker(
            self.config.source_root,
            suffix_rules=self.config.suffix_rules,
            exclusion_rules=self.config.effective_exclusion_rules,
            ignore_rules=self.config.ignore_rules,
            permission_action=self.config.permission_action,
            follow_symlinks=self.config.follow_symlinks,
        )
        self._plan = CopyPlan.from_walker(walker, self.config.destination_root)
        self.state = RunState.PLANNED
        return self._plan

    def preview(self) -> Iterator[CopyTask]:
        """Yield every planned task, in traversal order, before anything is written.

        Plans the run first if needed. After the last task, the planned size is checked
        against the destination's free space when enabled: a dry run records a shortage
        as a warning, a real run raises.

        Raises:
            InsufficientSpaceError: If the plan does not fit and this is not a dry run.
        """
        if self.state is RunState.CONFIGURED:
            self.plan()
        self._expect(RunState.PLANNED)

        yield from self.copy_plan.tasks

        if self.config.check_free_space:
            try:
                self.copy_plan.check_free_space()
            except InsufficientSpaceError as e:
                if not self.config.dry_run:
                    raise
                self.copy_plan.warnings.append(TraversalWarning(str(self.config.destination_root), str(e)))
        self.state = RunState.PREVIEWED

    def stream_results(self) -> Iterator[CopyResult]:
        """Copy the planned files, yielding each result as it is produced.

        Raises:
            RuntimeError: If the plan was not previewed, or this is a dry run.
            ConfigurationError: If the destination root cannot be created.
        """
        self._expect(RunState.PREVIEWED)
        if self.config.dry_run:
            raise RuntimeError("Dry runs never copy files")

        try:
            os.makedirs(self.config.destination_root, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create destination directory {self.config.destination_root}: {e.strerror or e}"
            ) from e

        executor = CopyExecutor(jobs=self.config.jobs, cancel_event=self.cancel_event)
        for result in executor.iter_results(self.copy_plan.tasks):
            self._results.append(result)
            yield result

        self._report = CopyReport(self._results, interrupted=len(self._results) < len(self.copy_plan))
        self.state = RunState.EXECUTED

    def execute(self) -> CopyReport:
        """Copy all planned files and return the report."""
        for _ in self.stream_results():
            pass
        return self.report

    def summary(self) -> RunSummary:
        """Finish the run and return its aggregate counts.

        Raises:
            RuntimeError: If a real run has not been executed, or the plan was not previewed.
        """
        if self.config.dry_run:
            self._expect(RunState.PREVIEWED, RunState.REPORTED)
        else:
            self._expect(RunState.EXECUTED, RunState.REPORTED)

        report = self._report if self._report is not None else CopyReport([])
        planned_bytes = self.copy_plan.total_size
        self.state = RunState.REPORTED
        return RunSummary(
            planned_count=len(self.copy_plan),
            planned_bytes=planned_bytes,
            copied_count=report.copied_count,
            failed_count=report.failed_count,
            bytes_copied=report.bytes_copied,
            warning_count=len(self.warnings),
            skipped_symlink_count=self.copy_plan.skipped_symlink_count,
            dry_run=self.config.dry_run,
            interrupted=report.interrupted,
        )

    def _expect(self, *states: RunState) -> None:
        if self.state not in states:
            expected = " or ".join(state.name for state in states)
            raise RuntimeError(f"Run is {self.state.name}, expected {expected}")
