"""Execution of copy plans.

The executor copies every planned file, creating destination directories as
needed. A failing task is recorded and never aborts the remaining tasks.
"""

import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import Iterable, Iterator, List, Optional, Sequence

from treecopy.copy_planner import CopyTask
from treecopy.exceptions import CopyError, CreateDirError
from treecopy.types import CopyOutcome


@dataclass(frozen=True)
class CopyResult:
    """Outcome of one copy task.

    Attributes:
        task: The task that was attempted.
        outcome: COPIED or FAILED.
        reason: Why the task failed; None for copied files.
        bytes_copied: Size of the written file.
    """

    task: CopyTask
    outcome: CopyOutcome
    reason: Optional[str] = None
    bytes_copied: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome is CopyOutcome.COPIED


class CopyReport(Sequence[CopyResult]):
    """The results of executing a plan, in plan order, with aggregate counts.

    Attributes:
        results (List[CopyResult]): One result per attempted task.
        interrupted (bool): True if the run was cancelled before every task was attempted.

    Example:
        >>> task = CopyTask(Path("a.txt"), Path("/src/a.txt"), Path("/dst/a.txt"))
        >>> report = CopyReport([
        ...     CopyResult(task, CopyOutcome.COPIED, bytes_copied=10),
        ...     CopyResult(task, CopyOutcome.FAILED, "Permission denied"),
        ... ])
        >>> report.copied_count, report.failed_count, report.bytes_copied
        (1, 1, 10)
        >>> report.all_copied
        False
    """

    def __init__(self, results: Iterable[CopyResult], interrupted: bool = False) -> None:
        self.results: List[CopyResult] = list(results)
        self.interrupted = interrupted

    def __getitem__(self, index):  # type: ignore[no-untyped-def, override]
        return self.results[index]

    def __len__(self) -> int:
        return len(self.results)

    @property
    def copied_count(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.copied_count

    @property
    def bytes_copied(self) -> int:
        return sum(result.bytes_copied for result in self.results)

    @property
    def failures(self) -> List[CopyResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def all_copied(self) -> bool:
        return self.failed_count == 0 and not self.interrupted


class CopyExecutor:
    """Copies the files of a plan, reporting one result per task.

    Tasks are processed in plan order. With ``jobs`` greater than one, a bounded thread
    pool copies several files at a time; results are still reported in plan order.
    Destination paths of a plan are unique and directory creation tolerates existing
    directories, so workers never conflict.

    Setting ``cancel_event`` stops the executor from starting further tasks. Files that
    were already copied stay in place.

    Attributes:
        jobs (int): Number of files copied concurrently.
        cancel_event (Optional[Event]): Event that cancels the remaining tasks when set.

    Example:
        >>> executor = CopyExecutor(jobs=4)  # doctest: +SKIP
        >>> report = executor.execute(copy_plan.tasks)  # doctest: +SKIP
        >>> report.copied_count, report.failed_count  # doctest: +SKIP
        (41, 1)
    """

    def __init__(self, jobs: int = 1, cancel_event: Optional[Event] = None) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.jobs = jobs
        self.cancel_event = cancel_event

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def execute(self, tasks: Iterable[CopyTask]) -> CopyReport:
        """Copy every task and collect the results.

        Args:
            tasks: The planned tasks.

        Returns:
            A report with one result per attempted task, in plan order.
        """
        tasks = list(tasks)
        results = list(self.iter_results(tasks))
        return CopyReport(results, interrupted=len(results) < len(tasks))

    def iter_results(self, tasks: Iterable[CopyTask]) -> Iterator[CopyResult]:
        """Copy tasks and yield their results in plan order as they become available."""
        if self.jobs == 1:
            for task in tasks:
                if self.cancelled:
                    return
                yield self.copy_task(task)
            return

        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            futures = [pool.submit(self._copy_unless_cancelled, task) for task in tasks]
            try:
                for future in futures:
                    result = future.result()
                    if result is not None:
                        yield result
            finally:
                # Tasks not yet started are dropped when the consumer stops early
                pool.shutdown(cancel_futures=True)

    def copy_task(self, task: CopyTask) -> CopyResult:
        """Copy a single file, turning any failure into a FAILED result."""
        try:
            create_parent_directories(task.destination_path)
            bytes_copied = copy_file(task.source_path, task.destination_path)
        except CopyError as e:
            return CopyResult(task, CopyOutcome.FAILED, str(e))
        return CopyResult(task, CopyOutcome.COPIED, bytes_copied=bytes_copied)

    def _copy_unless_cancelled(self, task: CopyTask) -> Optional[CopyResult]:
        if self.cancelled:
            return None
        return self.copy_task(task)


def create_parent_directories(destination_path: Path) -> None:
    """Create every missing ancestor directory of ``destination_path``.

    Raises:
        CreateDirError: If a directory cannot be created, for example because a
            regular file occupies one of the path segments.
    """
    parent = destination_path.parent
    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as e:
        raise CreateDirError(parent, e.strerror or str(e)) from e


def copy_file(source_path: Path, destination_path: Path) -> int:
    """Copy file contents and permission bits, overwriting any existing destination file.

    Returns:
        The number of bytes written.

    Raises:
        CopyError: If the source cannot be read or the destination cannot be written.
    """
    try:
        shutil.copyfile(source_path, destination_path)
        shutil.copymode(source_path, destination_path)
        return destination_path.stat().st_size
    except OSError as e:
        raise CopyError(e.filename or source_path, e.strerror or str(e)) from e
