"""Immutable description of a process to spawn."""

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from procspawn.models.redirection import Inherit, Pty, StreamRedirection, coerce_redirection

STREAM_FIELDS = ("stdin", "stdout", "stderr")


class SpawnRequest(BaseModel):
    """Everything needed to start one child process.

    ``program=None`` runs ``arguments`` through the configured shell.
    ``environment`` is ``True`` to inherit the current environment,
    ``False``/``None`` for an empty one, or an explicit mapping.
    Requesting a pty on any stream forces ``new_session``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    program: str | None = None
    arguments: tuple[str, ...] = ()
    environment: bool | dict[str, str] | None = True
    stdin: StreamRedirection = Inherit()
    stdout: StreamRedirection = Inherit()
    stderr: StreamRedirection = Inherit()
    new_session: bool = False
    cwd: str | None = None
    uid: int | None = Field(default=None, ge=0)
    gid: int | None = Field(default=None, ge=0)
    reset_ids: bool = False
    reset_signal_mask: bool = True
    search: bool = True
    pty_size: tuple[int, int] | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_streams(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in STREAM_FIELDS:
            if name in data:
                data[name] = coerce_redirection(data[name])
        if any(isinstance(data.get(name), Pty) for name in STREAM_FIELDS):
            # A pty only becomes the controlling terminal of a session leader.
            data["new_session"] = True
        return data

    @field_validator("cwd", mode="before")
    @classmethod
    def _fspath_cwd(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @property
    def streams(self) -> tuple[StreamRedirection, StreamRedirection, StreamRedirection]:
        return (self.stdin, self.stdout, self.stderr)

    @property
    def uses_pty(self) -> bool:
        return any(isinstance(stream, Pty) for stream in self.streams)

    @property
    def needs_fork(self) -> bool:
        """Return whether the request needs setup posix_spawn cannot express."""
        return self.cwd is not None or self.uid is not None or self.gid is not None
