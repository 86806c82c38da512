"""Exception hierarchy for configuration faults.

"No match", "below threshold" and "not found" are ordinary return values
(`NoMatch`, `UserIntent.UNKNOWN`, `None`) and never go through these classes.
"""

from __future__ import annotations


class AssistError(Exception):
    """Base class for every error raised by the retrieval core."""


class ConfigurationError(AssistError):
    """A manifest or shard file is missing or cannot be parsed."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ShardNotFoundError(AssistError, LookupError):
    """The requested shard key is not listed in the engine's manifest."""

    def __init__(self, key: str, *, engine: str) -> None:
        super().__init__(f"{engine} shard not found: {key}")
        self.key = key
        self.engine = engine
