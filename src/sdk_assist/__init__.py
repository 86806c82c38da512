"""SDK assistant retrieval core."""

from .config import AssistSettings, CacheConfig, SearchConfig
from .errors import AssistError, ConfigurationError, ShardNotFoundError

__all__ = [
    "AssistError",
    "AssistSettings",
    "CacheConfig",
    "ConfigurationError",
    "SearchConfig",
    "ShardNotFoundError",
]
