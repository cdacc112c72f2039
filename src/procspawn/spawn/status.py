"""Decode wait statuses into process status values."""

import logging
import os

from procspawn.errors import WaitError
from procspawn.models import RUNNING, Exited, ProcessStatus, Signaled

log = logging.getLogger(__name__)


def decode_wait_status(raw: int) -> ProcessStatus:
    """Return the terminal status encoded in a raw ``waitpid`` status word."""
    if os.WIFEXITED(raw):
        return Exited(os.WEXITSTATUS(raw))
    if os.WIFSIGNALED(raw):
        return Signaled(os.WTERMSIG(raw), os.WCOREDUMP(raw))
    raise WaitError(f"Unexpected wait status {raw:#x}")


def query_status(pid: int, block: bool) -> ProcessStatus:
    """Wait for ``pid`` and return its status; ``RUNNING`` if not blocking and still alive."""
    try:
        waited, raw = os.waitpid(pid, 0 if block else os.WNOHANG)
    except OSError as e:
        raise WaitError(f"waitpid({pid}) failed: {e}") from e
    if waited == 0:
        return RUNNING
    status = decode_wait_status(raw)
    log.debug("pid %d resolved to %s", pid, status)
    return status
