"""Signal-aware log output for the treecopy CLI.

Run logs go to stdout or to a file chosen with ``-o``. Writes go straight to the
file descriptor, and a closed pipe surfaces as BrokenPipeError so the CLI can stop
writing without a traceback.
"""

import errno
import os
import types
from pathlib import Path
from typing import Optional, Type, Union

from treecopy.cli.signal_handler import signal_handler

WARNING_PREFIX = "Warning: "
ERROR_PREFIX = "Error: "


class SafeWriter:
    """Line-oriented log writer that stops cleanly on broken pipes.

    Attributes:
        file: The file descriptor or path the writer was created with.
        fd: The file descriptor being written to.

    Example:
        >>> import sys
        >>> with SafeWriter(sys.stdout.fileno()) as log:  # doctest: +SKIP
        ...     log.info("Will copy: /src/a.txt -> /dst/a.txt")
        ...     log.warning("/src/private: Cannot read directory")
        Will copy: /src/a.txt -> /dst/a.txt
        Warning: /src/private: Cannot read directory
    """

    def __init__(self, file: Union[int, Path, str]):
        """Initialize the writer.

        Args:
            file: A file descriptor, or a path that is opened (and truncated) for writing.

        Raises:
            TypeError: If ``file`` is neither a descriptor nor a path.
            OSError: If the log file cannot be opened.
        """
        self.file = file
        self._closed = False

        if isinstance(file, int):
            self.fd = file
            self._file_obj = None
        elif isinstance(file, (str, os.PathLike)):
            self._file_obj = Path(file).open("w", encoding="utf-8")
            self.fd = self._file_obj.fileno()
        else:
            raise TypeError(f"Expected int, str, or PathLike, got {type(file).__name__}")

    def write(self, data: str) -> None:
        """Write raw text.

        Raises:
            BrokenPipeError: If SIGPIPE was received or the pipe is closed.
            OSError: If any other I/O error occurs.
            ValueError: If the writer is closed.
        """
        if self._closed:
            raise ValueError("Cannot write to closed SafeWriter")

        if signal_handler.sigpipe_received.is_set():
            raise BrokenPipeError()

        try:
            # File names may carry undecodable bytes; write them back unchanged
            os.write(self.fd, data.encode("utf-8", "surrogateescape"))
        except OSError as e:
            if e.errno == errno.EPIPE:
                raise BrokenPipeError()
            raise

    def info(self, message: str) -> None:
        self.write(message + "\n")

    def warning(self, message: str) -> None:
        self.write(WARNING_PREFIX + message + "\n")

    def error(self, message: str) -> None:
        self.write(ERROR_PREFIX + message + "\n")

    def close(self) -> None:
        """Close the log file if this writer opened it.

        The writer is marked closed even if closing fails with a broken pipe.
        """
        if self._closed:
            return

        if self._file_obj is not None:
            try:
                self._file_obj.close()
            except OSError as e:
                if e.errno != errno.EPIPE:
                    raise

        self._closed = True

    def __enter__(self) -> "SafeWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        try:
            self.close()
        except OSError:
            # An exception from the with block takes precedence over a close failure
            if exc_type is None:
                raise
