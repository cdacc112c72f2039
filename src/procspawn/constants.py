"""Shared constants for procspawn."""

import os

STDIN_FILENO = 0
STDOUT_FILENO = 1
STDERR_FILENO = 2
STANDARD_SLOTS = (STDIN_FILENO, STDOUT_FILENO, STDERR_FILENO)
SLOT_NAMES = {STDIN_FILENO: "stdin", STDOUT_FILENO: "stdout", STDERR_FILENO: "stderr"}

DEFAULT_SHELL = "/bin/sh"
DEFAULT_FILE_MODE = 0o644
DEFAULT_READ_CHUNK_SIZE = 4096
DEFAULT_ENCODING = "utf-8"

# Exit status of a child whose pre-exec setup failed. glibc's posix_spawn
# reports the same value for an exec failure it cannot hand back.
CHILD_SETUP_FAILURE_STATUS = 127

READ_FLAGS = os.O_RDONLY
WRITE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
NULL_WRITE_FLAGS = os.O_WRONLY | os.O_CREAT

BOLD = "\033[1m"
RED = "\033[31m"
GREEN = "\033[32m"
RESET = "\033[0m"
