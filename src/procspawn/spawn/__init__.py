"""Spawn engine: redirection planning, process spawning and lifecycle handles."""

from procspawn.spawn.handle import ProcessHandle
from procspawn.spawn.launch import create_process, launch, run_program, spawn_request

__all__ = [
    "ProcessHandle",
    "create_process",
    "launch",
    "run_program",
    "spawn_request",
]
