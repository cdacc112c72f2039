"""Pipe and pseudo-terminal allocation."""

import fcntl
import logging
import os
import struct
import termios

from procspawn.errors import ResourceAllocationError

log = logging.getLogger(__name__)

_FIRST_FREE_FD = 3


def lift_above_stdio(fd: int) -> int:
    """Move ``fd`` to a number above 2 so it cannot collide with a standard slot.

    The returned descriptor is close-on-exec. The original is closed if it moved.
    """
    if fd >= _FIRST_FREE_FD:
        return fd
    try:
        lifted = fcntl.fcntl(fd, fcntl.F_DUPFD_CLOEXEC, _FIRST_FREE_FD)
    finally:
        os.close(fd)
    log.debug("moved fd %d to %d", fd, lifted)
    return lifted


def duplicate_above_stdio(fd: int) -> int:
    """Return a close-on-exec duplicate of ``fd`` numbered above 2."""
    try:
        return fcntl.fcntl(fd, fcntl.F_DUPFD_CLOEXEC, _FIRST_FREE_FD)
    except OSError as e:
        raise ResourceAllocationError(f"Could not duplicate fd {fd}: {e}") from e


def close_quietly(fds) -> None:
    """Close every descriptor in ``fds``, ignoring ones already gone."""
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            pass


def _lift_pair(first: int, second: int) -> tuple[int, int]:
    # lift_above_stdio always consumes its argument, so only the other fd
    # is left to close when it fails.
    try:
        first = lift_above_stdio(first)
    except OSError:
        close_quietly((second,))
        raise
    try:
        second = lift_above_stdio(second)
    except OSError:
        close_quietly((first,))
        raise
    return first, second


def allocate_pipe() -> tuple[int, int]:
    """Return a (read_fd, write_fd) pair, both close-on-exec and above stdio."""
    try:
        read_fd, write_fd = _lift_pair(*os.pipe())
    except OSError as e:
        raise ResourceAllocationError(f"Could not allocate a pipe: {e}") from e
    log.debug("allocated pipe read=%d write=%d", read_fd, write_fd)
    return read_fd, write_fd


def allocate_pty() -> tuple[int, int, str]:
    """Return (master_fd, slave_fd, slave_path) for a new pseudo-terminal.

    The child opens ``slave_path`` itself; the parent keeps ``slave_fd`` open
    only until the spawn call returns so the pair stays usable in between.
    """
    try:
        master_fd, slave_fd = _lift_pair(*os.openpty())
    except OSError as e:
        raise ResourceAllocationError(f"Could not allocate a pseudo-terminal: {e}") from e
    try:
        slave_path = os.ttyname(slave_fd)
    except OSError as e:
        close_quietly((master_fd, slave_fd))
        raise ResourceAllocationError(f"Could not allocate a pseudo-terminal: {e}") from e
    log.debug("allocated pty master=%d slave=%s", master_fd, slave_path)
    return master_fd, slave_fd, slave_path


def set_winsize(fd: int, rows: int, cols: int, xp: int = 0, yp: int = 0) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, xp, yp))


def get_winsize(fd: int) -> tuple[int, int, int, int]:
    """Return (rows, cols, xpixel, ypixel) for the given tty fd."""
    return struct.unpack("HHHH", fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\x00" * 8))
