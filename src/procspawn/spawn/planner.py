"""Turn three stream redirections into an ordered child-side action plan.

Pipes and the pseudo-terminal are allocated here, before anything is
spawned, so an allocation failure never leaves a child behind. The
resulting :class:`RedirectionPlan` owns every descriptor it allocated:

* parent-side descriptors are handed to the process handle after a
  successful spawn with :meth:`RedirectionPlan.release_parent_fds`;
* child-side halves (and the pty master/slave the parent only needed
  while spawning) are closed when the plan's ``with`` block exits;
* on any exception inside the ``with`` block both sides are closed.
"""

import errno
import fcntl
import logging
import os
from dataclasses import dataclass

from procspawn.constants import (
    NULL_WRITE_FLAGS,
    READ_FLAGS,
    SLOT_NAMES,
    STANDARD_SLOTS,
    STDIN_FILENO,
    WRITE_FLAGS,
)
from procspawn.errors import RedirectionError, ResourceAllocationError
from procspawn.models import (
    CloseOnExec,
    Inherit,
    Pipe,
    Pty,
    RedirectToDescriptor,
    RedirectToNull,
    RedirectToPath,
    SpawnConfig,
    SpawnRequest,
)
from procspawn.spawn.allocators import (
    allocate_pipe,
    allocate_pty,
    close_quietly,
    duplicate_above_stdio,
    set_winsize,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAction:
    fd: int
    path: str
    flags: int
    mode: int


@dataclass(frozen=True)
class DupAction:
    source: int
    target: int


@dataclass(frozen=True)
class CloseAction:
    fd: int


Action = OpenAction | DupAction | CloseAction


class FileActionPlan:
    """Ordered descriptor actions run in the child between fork and exec."""

    def __init__(self) -> None:
        self._actions: list[Action] = []

    def open(self, fd: int, path: str, flags: int, mode: int) -> None:
        self._actions.append(OpenAction(fd, path, flags, mode))

    def dup2(self, source: int, target: int) -> None:
        self._actions.append(DupAction(source, target))

    def close(self, fd: int) -> None:
        self._actions.append(CloseAction(fd))

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions)

    def __iter__(self):
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def to_posix_spawn(self) -> list[tuple]:
        """Return the plan in ``os.posix_spawn(file_actions=...)`` form."""
        file_actions: list[tuple] = []
        for action in self._actions:
            if isinstance(action, OpenAction):
                file_actions.append(
                    (os.POSIX_SPAWN_OPEN, action.fd, action.path, action.flags, action.mode)
                )
            elif isinstance(action, DupAction):
                file_actions.append((os.POSIX_SPAWN_DUP2, action.source, action.target))
            else:
                file_actions.append((os.POSIX_SPAWN_CLOSE, action.fd))
        return file_actions

    def apply(self) -> None:
        """Run the plan in the current process. Only call this in a forked child."""
        for action in self._actions:
            if isinstance(action, OpenAction):
                fd = os.open(action.path, action.flags, action.mode)
                if fd == action.fd:
                    os.set_inheritable(fd, True)
                else:
                    os.dup2(fd, action.fd)
                    os.close(fd)
            elif isinstance(action, DupAction):
                os.dup2(action.source, action.target)
            else:
                try:
                    os.close(action.fd)
                except OSError as e:
                    # Closing a slot that is already closed is not an error.
                    if e.errno != errno.EBADF:
                        raise


class RedirectionPlan:
    """Action plan plus ownership of every descriptor allocated for it."""

    def __init__(self) -> None:
        self.actions = FileActionPlan()
        self.parent_fds: dict[int, int] = {}
        self._spawn_only_fds: list[int] = []

    def keep_for_parent(self, slot: int, fd: int) -> None:
        self.parent_fds[slot] = fd

    def keep_until_spawned(self, fd: int) -> None:
        self._spawn_only_fds.append(fd)

    def close_child_side(self) -> None:
        close_quietly(self._spawn_only_fds)
        self._spawn_only_fds = []

    def close_parent_side(self) -> None:
        close_quietly(self.parent_fds.values())
        self.parent_fds = {}

    def close(self) -> None:
        self.close_child_side()
        self.close_parent_side()

    def release_parent_fds(self) -> dict[int, int]:
        """Transfer the parent-side descriptors to the caller."""
        fds, self.parent_fds = self.parent_fds, {}
        return fds

    def __enter__(self) -> "RedirectionPlan":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close_child_side()
        else:
            self.close()


def _check_descriptor(fd: int, slot: int) -> None:
    if fd < 0:
        raise RedirectionError(f"Invalid descriptor {fd} for {SLOT_NAMES[slot]}")
    try:
        fcntl.fcntl(fd, fcntl.F_GETFD)
    except OSError as e:
        raise RedirectionError(f"Descriptor {fd} for {SLOT_NAMES[slot]} is not open") from e


def plan_redirections(request: SpawnRequest, config: SpawnConfig) -> RedirectionPlan:
    """Allocate resources and build the child-side action plan for ``request``."""
    plan = RedirectionPlan()
    actions = plan.actions
    source_closes: list[int] = []
    pty: tuple[int, str] | None = None
    try:
        for slot, redirection in zip(STANDARD_SLOTS, request.streams):
            is_stdin = slot == STDIN_FILENO
            if isinstance(redirection, Inherit):
                continue
            if isinstance(redirection, CloseOnExec):
                actions.close(slot)
            elif isinstance(redirection, RedirectToNull):
                flags = READ_FLAGS if is_stdin else NULL_WRITE_FLAGS
                actions.open(slot, config.null_device, flags, config.file_mode)
            elif isinstance(redirection, RedirectToPath):
                flags = redirection.flags
                if flags is None:
                    flags = READ_FLAGS if is_stdin else WRITE_FLAGS
                mode = config.file_mode if redirection.mode is None else redirection.mode
                actions.open(slot, redirection.path, flags, mode)
            elif isinstance(redirection, RedirectToDescriptor):
                _check_descriptor(redirection.fd, slot)
                if redirection.fd != slot:
                    actions.dup2(redirection.fd, slot)
                if (
                    redirection.close_source
                    and redirection.fd not in STANDARD_SLOTS
                    and redirection.fd not in source_closes
                ):
                    source_closes.append(redirection.fd)
            elif isinstance(redirection, Pipe):
                read_fd, write_fd = allocate_pipe()
                child_fd, parent_fd = (read_fd, write_fd) if is_stdin else (write_fd, read_fd)
                plan.keep_for_parent(slot, parent_fd)
                plan.keep_until_spawned(child_fd)
                actions.dup2(child_fd, slot)
                actions.close(read_fd)
                actions.close(write_fd)
            elif isinstance(redirection, Pty):
                if pty is None:
                    master_fd, slave_fd, slave_path = allocate_pty()
                    plan.keep_until_spawned(master_fd)
                    plan.keep_until_spawned(slave_fd)
                    pty = (master_fd, slave_path)
                    if request.pty_size is not None:
                        rows, cols = request.pty_size
                        try:
                            set_winsize(master_fd, rows, cols)
                        except OSError as e:
                            raise ResourceAllocationError(
                                f"Could not size pseudo-terminal {slave_path}: {e}"
                            ) from e
                master_fd, slave_path = pty
                plan.keep_for_parent(slot, duplicate_above_stdio(master_fd))
                actions.open(slot, slave_path, READ_FLAGS if is_stdin else os.O_WRONLY, 0)
            else:
                raise RedirectionError(f"Unsupported stream redirection: {redirection!r}")

        # Deferred so a source shared by two streams is still open for the second dup.
        for fd in source_closes:
            actions.close(fd)
    except BaseException:
        plan.close()
        raise

    log.debug(
        "planned %d child actions, parent keeps %s", len(actions), sorted(plan.parent_fds.items())
    )
    return plan
