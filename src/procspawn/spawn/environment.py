"""Argument vector and environment block construction."""

import os
import shutil
from collections.abc import Mapping

from procspawn.errors import SpawnError
from procspawn.models import SpawnConfig, SpawnRequest


def build_argv(request: SpawnRequest, config: SpawnConfig) -> tuple[str, list[str]]:
    """Return (program path, argv) for ``request``."""
    if request.program is None:
        if not request.arguments:
            raise SpawnError("A shell command string is required when no program is given")
        return config.shell, [config.shell, "-c", *request.arguments]
    if not request.program:
        raise SpawnError("Program name must not be empty")
    return request.program, [request.program, *request.arguments]


def build_environment(policy: bool | Mapping[str, str] | None) -> dict[str, str]:
    """Return the environment block for the exec call.

    ``True`` copies the current process environment, ``False``/``None``
    yields an empty one, and a mapping is passed through as given.
    """
    if policy is True:
        return dict(os.environ)
    if policy is False or policy is None:
        return {}
    env = dict(policy)
    for key, value in env.items():
        if not key or "=" in key or "\0" in key or "\0" in value:
            raise SpawnError(f"Illegal environment variable: {key!r}")
    return env


def resolve_executable(candidate: str, env: Mapping[str, str]) -> str | None:
    """Resolve an executable name or path the way exec will, or None if it cannot run."""
    has_sep = os.path.sep in candidate or (
        os.path.altsep is not None and os.path.altsep in candidate
    )
    if has_sep:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
        return None
    return shutil.which(candidate, path=env.get("PATH", os.defpath))
