"""Shared CLI parsing and presentation helpers."""

import argparse
import os
import sys

from procspawn.constants import BOLD, GREEN, RED, RESET
from procspawn.errors import RedirectionError
from procspawn.models import Exited, ProcessStatus, RedirectToDescriptor, coerce_redirection

STREAM_KEYWORDS = ("inherit", "close", "null")


def supports_color() -> bool:
    """Return whether ANSI color output should be used."""
    if os.getenv("NO_COLOR") is not None:
        return False
    if os.getenv("TERM", "").lower() == "dumb":
        return False
    return sys.stderr.isatty()


def parse_stream_target(value: str):
    """Parse ``inherit``, ``close``, ``null``, ``fd:N`` or a file path."""
    if value in ("pipe", "pty"):
        raise argparse.ArgumentTypeError(
            f"{value} needs a reader in this process; use --capture instead"
        )
    if value.startswith("fd:"):
        try:
            return RedirectToDescriptor(fd=int(value[3:]))
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid descriptor: {value}") from None
    try:
        return coerce_redirection(value)
    except RedirectionError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def exit_code_for(status: ProcessStatus) -> int:
    """Return a shell-style exit code: the exit status, or 128 + signal."""
    if isinstance(status, Exited):
        return status.code
    return 128 + status.signal


def format_status(status: ProcessStatus) -> str:
    """Return a one-line description of a terminal status."""
    if isinstance(status, Exited):
        text = f"exited with status {status.code}"
    else:
        text = f"killed by signal {status.signal}"
        if status.core_dumped:
            text += " (core dumped)"
    if not supports_color():
        return text
    color = GREEN if isinstance(status, Exited) and status.code == 0 else RED
    return f"{BOLD}{color}{text}{RESET}"
