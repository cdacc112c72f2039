"""Exception hierarchy for procspawn."""


class ProcessError(RuntimeError):
    """Base class for every error raised by procspawn."""


class ConfigError(ProcessError):
    """Configuration file or environment overrides failed validation."""


class ResourceAllocationError(ProcessError):
    """A pipe or pseudo-terminal could not be allocated."""


class RedirectionError(ProcessError):
    """A stream redirection is malformed and was rejected while planning."""


class SpawnError(ProcessError):
    """The spawn primitive itself failed; no child process exists."""


class WaitError(ProcessError):
    """Querying the status of an owned child failed or returned garbage."""
