"""Model package for procspawn."""

from procspawn.models.redirection import (
    CloseOnExec,
    Inherit,
    Pipe,
    Pty,
    RedirectToDescriptor,
    RedirectToNull,
    RedirectToPath,
    StreamRedirection,
    coerce_redirection,
)
from procspawn.models.spawn_config import SpawnConfig
from procspawn.models.spawn_request import STREAM_FIELDS, SpawnRequest
from procspawn.models.status import RUNNING, Exited, ProcessStatus, Running, Signaled

__all__ = [
    "CloseOnExec",
    "Exited",
    "Inherit",
    "Pipe",
    "ProcessStatus",
    "Pty",
    "RUNNING",
    "RedirectToDescriptor",
    "RedirectToNull",
    "RedirectToPath",
    "Running",
    "STREAM_FIELDS",
    "Signaled",
    "SpawnConfig",
    "SpawnRequest",
    "StreamRedirection",
    "coerce_redirection",
]
