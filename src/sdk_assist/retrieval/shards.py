"""Manifest-driven shard loading shared by the search engines."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from sdk_assist.config import CacheConfig, SearchConfig
from sdk_assist.errors import AssistError, ConfigurationError, ShardNotFoundError
from sdk_assist.obs.tracing import Timer
from sdk_assist.retrieval.cache import CachedShard, LRUCache
from sdk_assist.retrieval.index import InvertedIndex
from sdk_assist.retrieval.manifest import load_model
from sdk_assist.types import IndexedDocument

logger = logging.getLogger(__name__)

ManifestT = TypeVar("ManifestT", bound=BaseModel)
ShardT = TypeVar("ShardT", bound=BaseModel)
R = TypeVar("R")

MANIFEST_FILE = "manifest.json"


class ShardedEngine(Generic[ManifestT, ShardT]):
    """Loads shards on demand and keeps the most recently used ones indexed.

    Subclasses declare the manifest and shard models, the field weights of
    their index and how a shard turns into `IndexedDocument`s. The manifest
    is read on first use and kept for the life of the engine.
    """

    engine_name: ClassVar[str] = "shard"
    manifest_model: ClassVar[type[BaseModel]]
    shard_model: ClassVar[type[BaseModel]]
    field_weights: ClassVar[Mapping[str, float]]

    def __init__(
        self,
        data_dir: Path | str,
        *,
        cache_config: CacheConfig | None = None,
        search_config: SearchConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.cache_config = cache_config or CacheConfig()
        self.search_config = search_config or SearchConfig()
        self._clock = clock
        self._cache: LRUCache[str, CachedShard[ShardT]] = LRUCache(
            self.cache_config.capacity, clock=clock
        )
        self._manifest: ManifestT | None = None

    @property
    def manifest(self) -> ManifestT:
        if self._manifest is None:
            path = self.data_dir / MANIFEST_FILE
            if not path.is_file():
                raise ConfigurationError(
                    f"{self.engine_name} manifest not found: {path}", path=str(path)
                )
            self._manifest = load_model(path, self.manifest_model)
            logger.info(
                "loaded %s manifest with %d shards", self.engine_name, len(self.shard_keys())
            )
        return self._manifest

    def shard_keys(self) -> list[str]:
        shards: dict[str, Any] = getattr(self.manifest, "shards")
        return list(shards)

    def platforms(self) -> list[str]:
        declared: list[str] = getattr(self.manifest, "platforms", [])
        return list(declared) or self.shard_keys()

    def shard_info(self, key: str) -> Any | None:
        return getattr(self.manifest, "shards").get(key)

    def load_shard(self, key: str) -> CachedShard[ShardT]:
        cached = self._cache.get(key)
        if cached is not None:
            cached.last_access = self._clock()
            logger.debug("%s shard cache hit: %s", self.engine_name, key)
            return cached

        info = self.shard_info(key)
        if info is None:
            raise ShardNotFoundError(key, engine=self.engine_name)

        with Timer() as timer:
            shard = load_model(self.data_dir / info.path, self.shard_model)
            documents = self.build_documents(shard)
            index = InvertedIndex(self.field_weights)
            index.build(documents)

        cached = CachedShard(shard=shard, index=index, last_access=self._clock())
        self._cache.set(key, cached)
        logger.info(
            "loaded %s shard %s (%d documents) in %.1f ms",
            self.engine_name,
            key,
            len(documents),
            timer.elapsed_ms,
        )
        return cached

    def build_documents(self, shard: ShardT) -> list[IndexedDocument]:
        raise NotImplementedError

    def fan_out(
        self,
        keys: Iterable[str],
        search: Callable[[str, CachedShard[ShardT]], Iterable[R]],
    ) -> tuple[list[R], list[str]]:
        """Run `search` against each shard, skipping shards that fail to load.

        The manifest must already be readable; only per-shard faults are
        tolerated here.
        """
        results: list[R] = []
        loaded: list[str] = []
        for key in keys:
            try:
                cached = self.load_shard(key)
            except AssistError as exc:
                logger.warning("skipping %s shard %s: %s", self.engine_name, key, exc)
                continue
            loaded.append(key)
            results.extend(search(key, cached))
        return results, loaded

    def preload(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.load_shard(key)

    def cache_stats(self) -> dict[str, Any]:
        return {
            "cached_shards": self._cache.keys(),
            "cache_size": len(self._cache),
            "capacity": self._cache.capacity,
        }

    def clear_cache(self) -> None:
        self._cache.clear()
