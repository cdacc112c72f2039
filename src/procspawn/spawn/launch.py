"""Public entry points: build a request, spawn it, hand back a process handle."""

import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any

from procspawn.config import load_config
from procspawn.errors import SpawnError
from procspawn.models import CloseOnExec, Inherit, Pipe, ProcessStatus, SpawnConfig, SpawnRequest
from procspawn.spawn.environment import build_argv, build_environment
from procspawn.spawn.handle import ProcessHandle
from procspawn.spawn.planner import plan_redirections
from procspawn.spawn.spawner import spawn

log = logging.getLogger(__name__)

Command = str | os.PathLike | Sequence[str | os.PathLike]


def spawn_request(command: Command, **options: Any) -> SpawnRequest:
    """Build a :class:`SpawnRequest` from a command designator.

    A ``str`` runs through the shell; a sequence is ``[program, *args]``
    and runs the program directly. ``options`` are the remaining
    :class:`SpawnRequest` fields.
    """
    if isinstance(command, str):
        return SpawnRequest(program=None, arguments=(command,), **options)
    if isinstance(command, os.PathLike):
        return SpawnRequest(program=os.fspath(command), **options)
    words = [os.fspath(word) for word in command]
    if not words:
        raise SpawnError("Command must name a program")
    return SpawnRequest(program=words[0], arguments=tuple(words[1:]), **options)


def launch(request: SpawnRequest, config: SpawnConfig | None = None) -> ProcessHandle:
    """Spawn ``request`` and return a handle owning its parent-side streams.

    Pipes and the pty are allocated before the spawn call. Whatever
    happens, the child-side halves are closed in the parent once the spawn
    call returns; if it fails, the parent-side halves are closed as well.
    """
    if config is None:
        config = load_config()
    with plan_redirections(request, config) as plan:
        path, argv = build_argv(request, config)
        env = build_environment(request.environment)
        pid = spawn(request, plan.actions, path, argv, env)
        return ProcessHandle(pid, plan.release_parent_fds(), config.read_chunk_size)


def create_process(
    command: Command, *, config: SpawnConfig | None = None, **options: Any
) -> ProcessHandle:
    """Spawn ``command`` and return its :class:`ProcessHandle`.

    Keyword options are the :class:`SpawnRequest` fields: ``stdin``,
    ``stdout``, ``stderr``, ``environment``, ``new_session``, ``cwd``,
    ``uid``, ``gid``, ``reset_ids``, ``reset_signal_mask``, ``search`` and
    ``pty_size``. Streams accept redirection models or their shorthands.
    """
    return launch(spawn_request(command, **options), config)


def run_program(
    command: Command,
    *,
    environment: bool | Mapping[str, str] | None = True,
    stderr: bool = True,
    cwd: str | os.PathLike | None = None,
    encoding: str | None = None,
    config: SpawnConfig | None = None,
) -> tuple[ProcessStatus, str, str | None]:
    """Run ``command`` to completion and return (status, stdout, stderr).

    stdin is closed, stdout is captured, and stderr is captured when
    ``stderr`` is true or inherited otherwise (then returned as None).
    """
    if config is None:
        config = load_config()
    handle = create_process(
        command,
        config=config,
        environment=environment,
        cwd=cwd,
        stdin=CloseOnExec(),
        stdout=Pipe(),
        stderr=Pipe() if stderr else Inherit(),
    )
    try:
        status, out, err = handle.communicate()
    finally:
        handle.close()
    encoding = encoding or config.encoding
    log.debug("%r finished with %s", command, status)
    return (
        status,
        (out or b"").decode(encoding, errors="replace"),
        None if err is None else err.decode(encoding, errors="replace"),
    )
