"""Spawn-and-wait CLI implementation."""

import argparse
import logging
import sys

from procspawn import __version__
from procspawn.cli.shared import exit_code_for, format_status, parse_stream_target
from procspawn.config import load_config
from procspawn.errors import ProcessError
from procspawn.models import Inherit
from procspawn.spawn import create_process, run_program

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the spawn command."""
    parser = argparse.ArgumentParser(
        prog="procspawn",
        description="Run a program with redirected standard streams and report how it ended",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    for name in ("stdin", "stdout", "stderr"):
        parser.add_argument(
            f"--{name}",
            type=parse_stream_target,
            default=None,
            metavar="TARGET",
            help=f"Redirect {name}: inherit, close, null, fd:N or a file path (default: inherit)",
        )
    parser.add_argument("--cwd", help="Working directory for the child")
    parser.add_argument(
        "--new-session",
        action="store_true",
        help="Start the child in a new session, detached from this terminal",
    )
    parser.add_argument(
        "--clear-env",
        action="store_true",
        help="Run the child with an empty environment",
    )
    parser.add_argument(
        "--capture",
        action="store_true",
        help="Capture stdout/stderr, print them after the child exits, then print its status",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Program and arguments, or a single shell command string",
    )
    return parser


def _command_from_words(words: list[str]):
    if words and words[0] == "--":
        words = words[1:]
    if len(words) == 1 and " " in words[0]:
        return words[0]
    return words


def run(argv: list[str]) -> int:
    """Execute the spawn command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = _command_from_words(args.command)
    if not command:
        parser.error("a command is required")
    if args.capture and any(s is not None for s in (args.stdin, args.stdout, args.stderr)):
        parser.error("--capture cannot be combined with --stdin/--stdout/--stderr")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    environment = not args.clear_env
    try:
        config = load_config()
        if args.capture:
            status, out, err = run_program(
                command, environment=environment, cwd=args.cwd, config=config
            )
            sys.stdout.write(out)
            sys.stdout.flush()
            sys.stderr.write(err or "")
        else:
            with create_process(
                command,
                config=config,
                environment=environment,
                cwd=args.cwd,
                new_session=args.new_session,
                stdin=args.stdin or Inherit(),
                stdout=args.stdout or Inherit(),
                stderr=args.stderr or Inherit(),
            ) as handle:
                log.debug("waiting for pid %d", handle.pid)
                status = handle.wait_status()
    except ProcessError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.capture or args.debug:
        print(format_status(status), file=sys.stderr)
    return exit_code_for(status)
