"""Exceptions raised by cachelens."""


class CacheLensError(Exception):
    """Base class for all cachelens errors."""


class NotDefinedError(CacheLensError):
    """A value required to issue a request is missing from the configuration."""

    def __init__(self, message: str, solution: str | None = None) -> None:
        self.message = message
        self.solution = solution
        super().__init__(f"{message}. {solution}" if solution else message)


class ConfigError(CacheLensError):
    """A configuration file could not be read or parsed."""
