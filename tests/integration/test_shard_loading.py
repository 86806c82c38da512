import json
from pathlib import Path

import pytest

from sdk_assist.config import CacheConfig
from sdk_assist.errors import ConfigurationError, ShardNotFoundError
from sdk_assist.retrieval.config_search import ConfigSearchEngine
from sdk_assist.retrieval.source_search import SourceSearchEngine


def test_missing_shard_file_is_skipped(data_dir: Path, write_json) -> None:
    manifest_path = data_dir / "sources" / "manifest.json"
    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    manifest["shards"]["Broken"] = {"path": "shards/Broken.json"}
    write_json(manifest_path, manifest)

    response = SourceSearchEngine(data_dir / "sources").search("MessageCell")

    assert response.results
    assert response.loaded_shards == ["EaseChatUIKit", "EaseChatroomUIKit"]


def test_malformed_shard_is_skipped_in_fan_out(data_dir: Path) -> None:
    (data_dir / "sources" / "shards" / "EaseChatroomUIKit.json").write_text("{bad", encoding="utf-8")
    engine = SourceSearchEngine(data_dir / "sources")

    response = engine.search("cell")
    assert response.loaded_shards == ["EaseChatUIKit"]
    assert {result.component for result in response.results} == {"EaseChatUIKit"}

    with pytest.raises(ConfigurationError):
        engine.load_shard("EaseChatroomUIKit")


def test_missing_manifest_is_configuration_error(tmp_path: Path) -> None:
    engine = SourceSearchEngine(tmp_path / "nowhere")
    with pytest.raises(ConfigurationError):
        engine.search("MessageCell")


def test_unknown_shard_key(data_dir: Path) -> None:
    engine = ConfigSearchEngine(data_dir / "configs")
    with pytest.raises(ShardNotFoundError) as exc_info:
        engine.load_shard("web")
    assert exc_info.value.key == "web"
    assert isinstance(exc_info.value, LookupError)


def test_cache_capacity_evicts_oldest_shard(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources", cache_config=CacheConfig(capacity=1))
    engine.search("cell")

    stats = engine.cache_stats()
    assert stats["cached_shards"] == ["EaseChatroomUIKit"]
    assert stats["capacity"] == 1

    engine.load_shard("EaseChatUIKit")
    assert engine.cache_stats()["cached_shards"] == ["EaseChatUIKit"]


def test_cached_shard_is_reused(data_dir: Path, clock) -> None:
    engine = SourceSearchEngine(data_dir / "sources", clock=clock)
    first = engine.load_shard("EaseChatUIKit")
    clock.advance(5)

    second = engine.load_shard("EaseChatUIKit")
    assert second is first
    assert second.last_access == clock.now
    assert second.index.built


def test_preload_and_clear(data_dir: Path) -> None:
    engine = SourceSearchEngine(data_dir / "sources")
    engine.preload(engine.shard_keys())
    assert engine.cache_stats()["cache_size"] == 2

    engine.clear_cache()
    assert engine.cache_stats()["cached_shards"] == []
