"""Top-level CLI entrypoint."""

import sys

from . import run as run_cmd


def main(argv: list[str] | None = None) -> int:
    """Run the spawn command with ``argv`` (defaults to ``sys.argv[1:]``)."""
    args = list(sys.argv[1:] if argv is None else argv)
    return run_cmd.run(args)


def entrypoint() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())
