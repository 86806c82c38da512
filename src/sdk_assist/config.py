"""Configuration models for the retrieval core."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Bounds the number of materialized shards each engine keeps."""

    capacity: int = Field(default=4, ge=1)


class SearchConfig(BaseModel):
    """Configures per-shard candidate counts and result limits."""

    default_limit: int = Field(default=10, ge=1)
    oversample_factor: int = Field(default=2, ge=1)
    guide_limit: int = Field(default=5, ge=1)


class SpellConfig(BaseModel):
    """Configures edit-distance correction."""

    max_edit_distance: int = Field(default=2, ge=1)
    min_word_length: int = Field(default=3, ge=1)
    max_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    max_suggestions: int = Field(default=3, ge=0)


class ExpansionConfig(BaseModel):
    """Configures synonym expansion and query equivalence."""

    equivalence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class IntentConfig(BaseModel):
    """Configures multi-signal intent fusion."""

    semantic_fallback_below: float = Field(default=60.0, ge=0.0, le=100.0)
    semantic_accept_above: float = Field(default=0.15, ge=0.0, le=1.0)
    entity_bonus: float = Field(default=3.0, ge=0.0)
    consistency_bonus: float = Field(default=15.0, ge=0.0)
    coverage_weight: float = Field(default=20.0, ge=0.0)


class ContextConfig(BaseModel):
    """Configures session history and expiry."""

    max_history: int = Field(default=20, ge=1)
    session_timeout_seconds: float = Field(default=30 * 60, gt=0.0)
    recent_query_window: int = Field(default=5, ge=0)
    default_session_id: str = Field(default="default", min_length=1)


class AssistSettings(BaseModel):
    """Top-level settings: where the knowledge base lives and component configs."""

    data_dir: Path = Field(default=Path("data"))
    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    spell: SpellConfig = Field(default_factory=SpellConfig)
    expansion: ExpansionConfig = Field(default_factory=ExpansionConfig)
    intent: IntentConfig = Field(default_factory=IntentConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)

    @property
    def sources_dir(self) -> Path:
        return self.data_dir / "sources"

    @property
    def docs_dir(self) -> Path:
        return self.data_dir / "docs"

    @property
    def configs_dir(self) -> Path:
        return self.data_dir / "configs"

    @classmethod
    def from_env(cls) -> "AssistSettings":
        data_dir = os.getenv("SDK_ASSIST_DATA_DIR")
        capacity = os.getenv("SDK_ASSIST_CACHE_CAPACITY")
        settings = cls(data_dir=Path(data_dir)) if data_dir else cls()
        if capacity:
            settings.cache = CacheConfig(capacity=int(capacity))
        return settings
