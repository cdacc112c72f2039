"""Start a child process from a request and its file action plan.

Two backends share one contract, ``spawn(...) -> pid``:

* ``os.posix_spawn`` when the request needs nothing it cannot express.
  Exec and file-action failures come back as an ``OSError`` and are raised
  as :class:`SpawnError`.
* ``fork`` + ``exec`` when a working directory or uid/gid change is
  requested. The child runs setsid, chdir, setgid/setuid, identity reset,
  signal reset and the action plan in that order. Anything that fails in
  the child after the fork, exec included, makes it exit with
  ``CHILD_SETUP_FAILURE_STATUS``; the parent cannot tell which step failed.

With ``search`` on, both backends look a bare program name up on the
``PATH`` of the child's environment (``os.defpath`` when it has none),
never on the parent's.
"""

import logging
import os
import signal

from procspawn.constants import CHILD_SETUP_FAILURE_STATUS
from procspawn.errors import SpawnError
from procspawn.models import SpawnRequest
from procspawn.spawn.environment import resolve_executable
from procspawn.spawn.planner import FileActionPlan

log = logging.getLogger(__name__)


def _default_signals() -> list[int]:
    """Signals the interpreter ignores that a child should see with default handling."""
    names = ("SIGPIPE", "SIGXFZ", "SIGXFSZ")
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


def _posix_spawn(
    request: SpawnRequest, actions: FileActionPlan, path: str, argv: list[str], env: dict
) -> int:
    kwargs = {
        "file_actions": actions.to_posix_spawn(),
        "setsid": request.new_session,
        "resetids": request.reset_ids,
    }
    if request.reset_signal_mask:
        kwargs["setsigmask"] = ()
        kwargs["setsigdef"] = _default_signals()
    if request.search and os.path.sep not in path:
        # Search the child's PATH, as execvpe does for the fork backend.
        resolved = resolve_executable(path, env)
        if resolved is None:
            raise SpawnError(f"Could not spawn {path}: no such executable")
        path = resolved
    try:
        return os.posix_spawn(path, argv, env, **kwargs)
    except (OSError, ValueError) as e:
        raise SpawnError(f"Could not spawn {path}: {e}") from e


def _child_setup(request: SpawnRequest, actions: FileActionPlan) -> None:
    if request.new_session:
        os.setsid()
    if request.cwd is not None:
        os.chdir(request.cwd)
    if request.gid is not None:
        os.setgid(request.gid)
    if request.uid is not None:
        os.setuid(request.uid)
    if request.reset_ids:
        os.setegid(os.getgid())
        os.seteuid(os.getuid())
    if request.reset_signal_mask:
        for signum in _default_signals():
            signal.signal(signum, signal.SIG_DFL)
        signal.pthread_sigmask(signal.SIG_SETMASK, [])
    actions.apply()


def _can_precheck(request: SpawnRequest, path: str) -> bool:
    # Relative paths resolve against the child's new cwd, and a new uid/gid
    # changes what is executable, so only check what the parent can judge.
    if request.uid is not None or request.gid is not None:
        return False
    if os.path.isabs(path):
        return True
    return request.cwd is None or (request.search and os.path.sep not in path)


def _fork_exec(
    request: SpawnRequest, actions: FileActionPlan, path: str, argv: list[str], env: dict
) -> int:
    if _can_precheck(request, path):
        lookup = path
        if not request.search and os.path.sep not in path:
            lookup = os.path.join(os.curdir, path)
        if resolve_executable(lookup, env) is None:
            raise SpawnError(f"Could not spawn {path}: no such executable")

    try:
        pid = os.fork()
    except OSError as e:
        raise SpawnError(f"Could not fork for {path}: {e}") from e

    if pid == 0:
        # Child process: never return into the caller's stack.
        try:
            _child_setup(request, actions)
            if request.search:
                os.execvpe(path, argv, env)
            else:
                os.execve(path, argv, env)
        finally:
            os._exit(CHILD_SETUP_FAILURE_STATUS)
    return pid


def spawn(
    request: SpawnRequest, actions: FileActionPlan, path: str, argv: list[str], env: dict
) -> int:
    """Spawn the child described by ``request`` and return its pid."""
    backend = _fork_exec if request.needs_fork else _posix_spawn
    pid = backend(request, actions, path, argv, env)
    log.debug("spawned pid=%d via %s argv=%r", pid, backend.__name__.lstrip("_"), argv)
    return pid
