"""Handle for a spawned child process."""

import errno
import io
import logging
import os
import select
import signal
from collections.abc import Mapping
from typing import BinaryIO

from procspawn.constants import (
    DEFAULT_READ_CHUNK_SIZE,
    STDERR_FILENO,
    STDIN_FILENO,
    STDOUT_FILENO,
)
from procspawn.errors import RedirectionError
from procspawn.models import RUNNING, ProcessStatus
from procspawn.spawn.allocators import get_winsize, set_winsize
from procspawn.spawn.status import query_status

log = logging.getLogger(__name__)


def _read_chunk(fd: int, size: int) -> bytes:
    try:
        return os.read(fd, size)
    except OSError as e:
        # A pty master reports EIO once the last slave is gone.
        if e.errno != errno.EIO:
            raise
        return b""


class _TerminalReader(io.RawIOBase):
    """Raw reader over a pty master that ends at EOF instead of raising EIO."""

    def __init__(self, fd: int) -> None:
        super().__init__()
        self._fd = fd

    def fileno(self) -> int:
        return self._fd

    def readable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = _read_chunk(self._fd, len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            os.close(self._fd)
        finally:
            super().close()


class ProcessHandle:
    """Owns a child's pid, its parent-side streams and its cached status.

    The status moves one way, from ``Running`` to ``Exited`` or
    ``Signaled``, and only through :meth:`poll_status`, :meth:`wait_status`
    and :meth:`close`. A handle is meant for a single owner; callers that
    share one across threads must serialize access themselves.
    """

    def __init__(
        self,
        pid: int,
        parent_fds: Mapping[int, int] | None = None,
        read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        self._pid = pid
        self._status: ProcessStatus = RUNNING
        self._closed = False
        self._read_chunk_size = read_chunk_size
        self._streams: dict[int, BinaryIO] = {}
        # Every pty slot of one child holds a duplicate of the same master.
        self._terminal_slots: list[int] = []
        for slot, fd in sorted((parent_fds or {}).items()):
            is_terminal = os.isatty(fd)
            if is_terminal:
                self._terminal_slots.append(slot)
            if slot == STDIN_FILENO:
                self._streams[slot] = open(fd, "wb")
            elif is_terminal:
                self._streams[slot] = io.BufferedReader(_TerminalReader(fd))
            else:
                self._streams[slot] = open(fd, "rb")

    def __repr__(self) -> str:
        return f"<ProcessHandle pid={self._pid} status={self._status}>"

    @property
    def pid(self) -> int:
        return self._pid

    @property
    def status(self) -> ProcessStatus:
        """Last known status. Never waits."""
        return self._status

    @property
    def returncode(self) -> int | None:
        return self._status.returncode

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stdin(self) -> BinaryIO | None:
        return self._streams.get(STDIN_FILENO)

    @property
    def stdout(self) -> BinaryIO | None:
        return self._streams.get(STDOUT_FILENO)

    @property
    def stderr(self) -> BinaryIO | None:
        return self._streams.get(STDERR_FILENO)

    def _terminal_fd(self) -> int | None:
        for slot in self._terminal_slots:
            stream = self._streams[slot]
            if not stream.closed:
                return stream.fileno()
        return None

    @property
    def terminal_size(self) -> tuple[int, int] | None:
        """(rows, cols) of the child's pseudo-terminal, or None without one."""
        fd = self._terminal_fd()
        if fd is None:
            return None
        rows, cols, _, _ = get_winsize(fd)
        return rows, cols

    def resize_terminal(self, rows: int, cols: int) -> None:
        fd = self._terminal_fd()
        if fd is None:
            raise RedirectionError(f"pid {self._pid} has no open pseudo-terminal")
        set_winsize(fd, rows, cols)

    def poll_status(self) -> ProcessStatus:
        """Return the status without blocking; resolved statuses are cached."""
        if self._status.terminal:
            return self._status
        status = query_status(self._pid, block=False)
        if status.terminal:
            self._status = status
        return status

    def wait_status(self) -> ProcessStatus:
        """Block until the child terminates and return its status."""
        if not self._status.terminal:
            self._status = query_status(self._pid, block=True)
        return self._status

    def is_running(self) -> bool:
        return not self.poll_status().terminal

    def send_signal(self, signum: int) -> None:
        if self._status.terminal:
            # Reaped pids can be reused; never signal one.
            log.debug("pid %d already %s, not sending signal %d", self._pid, self._status, signum)
            return
        try:
            os.kill(self._pid, signum)
        except ProcessLookupError:
            log.debug("pid %d vanished before signal %d", self._pid, signum)

    def terminate(self) -> None:
        self.send_signal(signal.SIGTERM)

    def kill(self) -> None:
        self.send_signal(signal.SIGKILL)

    def communicate(
        self, input: bytes | None = None
    ) -> tuple[ProcessStatus, bytes | None, bytes | None]:
        """Feed ``input`` to stdin, read stdout/stderr to EOF, then wait.

        Reads and writes are multiplexed with ``select`` so a child filling
        one pipe while blocked on another cannot deadlock. Output for a
        stream that is not piped to the parent is returned as None. When
        stdout and stderr share the pseudo-terminal, its output is read
        once and returned as stdout; stderr is then empty.
        """
        outputs: dict[int, bytearray] = {}
        readers: dict[int, int] = {}
        terminal_read = False
        for slot in (STDOUT_FILENO, STDERR_FILENO):
            stream = self._streams.get(slot)
            if stream is None or stream.closed:
                continue
            outputs[slot] = bytearray()
            if slot in self._terminal_slots:
                if terminal_read:
                    continue
                terminal_read = True
            readers[stream.fileno()] = slot

        stdin = self.stdin
        pending = memoryview(input or b"")
        writer: int | None = None
        if stdin is not None and not stdin.closed:
            if pending:
                stdin.flush()
                writer = stdin.fileno()
            else:
                self._close_stream(STDIN_FILENO)

        while readers or writer is not None:
            rlist, wlist, _ = select.select(list(readers), [] if writer is None else [writer], [])
            if wlist:
                try:
                    written = os.write(writer, pending[: select.PIPE_BUF])
                except BrokenPipeError:
                    written = len(pending)
                pending = pending[written:]
                if not pending:
                    self._close_stream(STDIN_FILENO)
                    writer = None
            for fd in rlist:
                data = _read_chunk(fd, self._read_chunk_size)
                if data:
                    outputs[readers[fd]] += data
                else:
                    del readers[fd]

        status = self.wait_status()
        stdout = outputs.get(STDOUT_FILENO)
        stderr = outputs.get(STDERR_FILENO)
        return (
            status,
            None if stdout is None else bytes(stdout),
            None if stderr is None else bytes(stderr),
        )

    def _close_stream(self, slot: int) -> None:
        stream = self._streams.get(slot)
        if stream is None or stream.closed:
            return
        try:
            stream.close()
        except BrokenPipeError:
            # Flushing into a pipe the child already closed; the fd is released anyway.
            log.debug("pid %d closed its end of %d before we flushed", self._pid, slot)

    def close(self, force: bool = False) -> ProcessStatus:
        """Close every parent-side stream, then reap the child.

        With ``force`` the child is only polled, so closing never hangs on
        a child that is still running. Calling close again is a no-op.
        """
        if self._closed:
            return self._status
        try:
            for slot in list(self._streams):
                self._close_stream(slot)
        finally:
            self._closed = True
            status = self.poll_status() if force else self.wait_status()
        log.debug("closed pid %d with status %s", self._pid, status)
        return status

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(self, *_) -> None:
        self.close()
