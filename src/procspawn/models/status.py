"""Process status values."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessStatus:
    """Base for the states a child process moves through."""

    @property
    def terminal(self) -> bool:
        return False

    @property
    def returncode(self) -> int | None:
        """Return the status in ``subprocess`` convention, or None while running."""
        return None


@dataclass(frozen=True)
class Running(ProcessStatus):
    pass


@dataclass(frozen=True)
class Exited(ProcessStatus):
    code: int

    @property
    def terminal(self) -> bool:
        return True

    @property
    def returncode(self) -> int:
        return self.code


@dataclass(frozen=True)
class Signaled(ProcessStatus):
    signal: int
    core_dumped: bool = False

    @property
    def terminal(self) -> bool:
        return True

    @property
    def returncode(self) -> int:
        return -self.signal


RUNNING = Running()
