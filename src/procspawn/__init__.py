"""Spawn child processes with per-stream redirection and a lifecycle handle."""

__version__ = "0.1.0"

from procspawn.errors import (
    ConfigError,
    ProcessError,
    RedirectionError,
    ResourceAllocationError,
    SpawnError,
    WaitError,
)
from procspawn.models import (
    CloseOnExec,
    Exited,
    Inherit,
    Pipe,
    ProcessStatus,
    Pty,
    RedirectToDescriptor,
    RedirectToNull,
    RedirectToPath,
    Running,
    Signaled,
    SpawnConfig,
    SpawnRequest,
)
from procspawn.spawn import ProcessHandle, create_process, run_program, spawn_request

__all__ = [
    "CloseOnExec",
    "ConfigError",
    "Exited",
    "Inherit",
    "Pipe",
    "ProcessError",
    "ProcessHandle",
    "ProcessStatus",
    "Pty",
    "RedirectToDescriptor",
    "RedirectToNull",
    "RedirectToPath",
    "RedirectionError",
    "ResourceAllocationError",
    "Running",
    "Signaled",
    "SpawnConfig",
    "SpawnError",
    "SpawnRequest",
    "WaitError",
    "__version__",
    "create_process",
    "run_program",
    "spawn_request",
]
