"""Per-stream redirection variants."""

import os
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from procspawn.errors import RedirectionError


class _Redirection(BaseModel):
    model_config = ConfigDict(frozen=True)


class Inherit(_Redirection):
    """Leave the child's descriptor exactly as the parent has it."""

    kind: Literal["inherit"] = "inherit"


class CloseOnExec(_Redirection):
    """Close the descriptor in the child before the program starts."""

    kind: Literal["close"] = "close"


class RedirectToPath(_Redirection):
    """Open ``path`` in the child and put it on the stream's slot.

    ``flags`` and ``mode`` default per stream: read-only for stdin,
    write/create/truncate with the configured file mode for stdout/stderr.
    """

    kind: Literal["path"] = "path"
    path: str
    flags: int | None = None
    mode: int | None = None


class RedirectToDescriptor(_Redirection):
    """Duplicate an existing parent descriptor onto the stream's slot."""

    kind: Literal["fd"] = "fd"
    fd: int
    close_source: bool = False

    @classmethod
    def from_stream(cls, stream: Any) -> "RedirectToDescriptor":
        """Redirect to an owned stream; its descriptor is closed in the child after dup."""
        return cls(fd=stream.fileno(), close_source=True)


class RedirectToNull(_Redirection):
    """Connect the stream to the null device."""

    kind: Literal["null"] = "null"


class Pipe(_Redirection):
    """Connect the stream to a fresh pipe; the parent keeps the other end."""

    kind: Literal["pipe"] = "pipe"


class Pty(_Redirection):
    """Connect the stream to the slave side of a pseudo-terminal."""

    kind: Literal["pty"] = "pty"


StreamRedirection = Annotated[
    Union[Inherit, CloseOnExec, RedirectToPath, RedirectToDescriptor, RedirectToNull, Pipe, Pty],
    Field(discriminator="kind"),
]

_KEYWORDS: dict[str, _Redirection] = {
    "inherit": Inherit(),
    "close": CloseOnExec(),
    "null": RedirectToNull(),
    "pipe": Pipe(),
    "pty": Pty(),
}


def coerce_redirection(value: Any) -> _Redirection:
    """Turn a shorthand stream designator into a redirection model."""
    if isinstance(value, _Redirection):
        return value
    if value is True:
        return Inherit()
    if value is False or value is None:
        return CloseOnExec()
    if isinstance(value, int):
        return RedirectToDescriptor(fd=value)
    if isinstance(value, str) and value in _KEYWORDS:
        return _KEYWORDS[value]
    if isinstance(value, (str, os.PathLike)):
        return RedirectToPath(path=os.fspath(value))
    if hasattr(value, "fileno"):
        return RedirectToDescriptor.from_stream(value)
    raise RedirectionError(f"Unsupported stream redirection: {value!r}")
