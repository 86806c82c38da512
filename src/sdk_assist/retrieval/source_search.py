"""Sharded search over indexed SDK source files and symbols."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from sdk_assist.config import CacheConfig, SearchConfig
from sdk_assist.intelligence.expander import QueryExpander
from sdk_assist.retrieval.ambiguity import AmbiguityDetector
from sdk_assist.retrieval.cache import CachedShard
from sdk_assist.retrieval.manifest import CodeSymbol, SourceFile, SourceManifest, SourceShard
from sdk_assist.retrieval.shards import ShardedEngine
from sdk_assist.text.tokenizer import split_identifier
from sdk_assist.types import AmbiguityDetection, IndexedDocument, SourceSearchResult

logger = logging.getLogger(__name__)

SOURCE_FIELD_WEIGHTS: dict[str, float] = {
    "className": 4.0,
    "symbolName": 3.0,
    "path": 2.5,
    "keywords": 2.0,
    "description": 1.5,
    "signature": 1.0,
}

CLASS_LIKE_TYPES = frozenset({"class", "struct", "protocol"})
MAX_MATCHED_SYMBOLS = 5


@dataclass(slots=True)
class SourceSearchResponse:
    results: list[SourceSearchResult]
    ambiguity: AmbiguityDetection
    expanded_terms: list[str] = field(default_factory=list)
    loaded_shards: list[str] = field(default_factory=list)


def file_document(shard: SourceShard, source_file: SourceFile) -> IndexedDocument:
    stem = PurePosixPath(source_file.path).stem
    return IndexedDocument(
        doc_id=f"file:{source_file.path}",
        fields={
            "path": f"{source_file.path} {split_identifier(stem)}",
            "className": " ".join(
                f"{name} {split_identifier(name)}" for name in source_file.classes
            ),
            "description": source_file.description,
            "keywords": " ".join(source_file.keywords),
        },
        metadata={
            "type": "file",
            "component": shard.component,
            "platform": source_file.platform or shard.platform,
            "classes": list(source_file.classes),
            "lines": source_file.lines,
            "path": source_file.path,
        },
    )


def symbol_document(symbol: CodeSymbol) -> IndexedDocument:
    return IndexedDocument(
        doc_id=f"symbol:{symbol.file}:{symbol.name}",
        fields={
            "symbolName": f"{symbol.name} {split_identifier(symbol.name)}",
            "signature": symbol.signature,
            "description": symbol.description,
        },
        metadata={
            "type": "symbol",
            "symbolType": symbol.type,
            "file": symbol.file,
            "line": symbol.line,
            "signature": symbol.signature,
        },
    )


class SourceSearchEngine(ShardedEngine[SourceManifest, SourceShard]):
    """One shard per UIKit component; files and symbols share an index."""

    engine_name = "source"
    manifest_model = SourceManifest
    shard_model = SourceShard
    field_weights = SOURCE_FIELD_WEIGHTS

    def __init__(
        self,
        data_dir: Path | str,
        *,
        cache_config: CacheConfig | None = None,
        search_config: SearchConfig | None = None,
        expander: QueryExpander | None = None,
        ambiguity: AmbiguityDetector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            data_dir, cache_config=cache_config, search_config=search_config, clock=clock
        )
        self.expander = expander or QueryExpander()
        self.ambiguity = ambiguity or AmbiguityDetector()

    def build_documents(self, shard: SourceShard) -> list[IndexedDocument]:
        documents = [file_document(shard, source_file) for source_file in shard.files]
        documents.extend(symbol_document(symbol) for symbol in shard.symbols)
        return documents

    def components(self) -> list[str]:
        return self.shard_keys()

    def component_stats(self) -> dict[str, dict[str, int]]:
        return {
            key: {
                "files": info.file_count,
                "symbols": info.symbol_count,
                "size_bytes": info.size_bytes,
            }
            for key, info in self.manifest.shards.items()
        }

    def search(
        self, query: str, component: str | None = None, limit: int | None = None
    ) -> SourceSearchResponse:
        """Rank source files for `query`, across every component unless one is given.

        Identifier-style queries are split (`MessageCell` also searches
        `message cell`) and synonym-expanded before hitting each shard index.
        """
        if limit is None:
            limit = self.search_config.default_limit
        expanded = self.expander.expand(f"{query} {split_identifier(query)}")
        expanded_query = " ".join(expanded.expanded)
        keys = [component] if component else self.shard_keys()
        lowered = query.lower()
        candidates = limit * self.search_config.oversample_factor

        def search_shard(key: str, cached: CachedShard[SourceShard]) -> list[SourceSearchResult]:
            results: list[SourceSearchResult] = []
            for hit in cached.index.search(expanded_query, candidates):
                if hit.metadata.get("type") != "file":
                    continue
                path = hit.metadata["path"]
                matched = [
                    symbol.name
                    for symbol in cached.shard.symbols
                    if symbol.file == path and lowered in symbol.name.lower()
                ][:MAX_MATCHED_SYMBOLS]
                results.append(
                    SourceSearchResult(
                        path=path,
                        component=key,
                        description=f"来自 {key} 的源文件",
                        classes=list(hit.metadata.get("classes", [])),
                        score=hit.score,
                        matched_symbols=matched,
                        tags=[hit.metadata.get("platform") or cached.shard.platform, key],
                    )
                )
            return results

        results, loaded = self.fan_out(keys, search_shard)
        results.sort(key=lambda result: result.score, reverse=True)
        results = results[:limit]
        logger.debug("source search %r matched %d files in %s", query, len(results), loaded)
        return SourceSearchResponse(
            results=results,
            ambiguity=self.ambiguity.detect_source_ambiguity(query, results),
            expanded_terms=expanded.expanded if expanded.synonyms_used else [],
            loaded_shards=loaded,
        )

    def find_class(self, name: str, component: str | None = None) -> CodeSymbol | None:
        keys = [component] if component else self.shard_keys()
        for key in keys:
            info = self.shard_info(key)
            if info is None or name not in info.classes:
                continue
            cached = self.load_shard(key)
            for symbol in cached.shard.symbols:
                if symbol.name == name and symbol.type in CLASS_LIKE_TYPES:
                    return symbol
        return None

    def find_class_members(self, class_name: str, component: str | None = None) -> list[CodeSymbol]:
        prefix = f"{class_name}."
        keys = [component] if component else self.shard_keys()
        members: list[CodeSymbol] = []
        for key in keys:
            info = self.shard_info(key)
            if info is None or class_name not in info.classes:
                continue
            cached = self.load_shard(key)
            members.extend(
                symbol
                for symbol in cached.shard.symbols
                if symbol.name.startswith(prefix) or symbol.owner == class_name
            )
        return members

    def read_source(self, path: str) -> str | None:
        """Return a source file's text, resolved under the sources directory."""
        root = self.data_dir.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root) or not target.is_file():
            return None
        return target.read_text(encoding="utf-8", errors="replace")

    def get_file_lines(self, path: str, start_line: int, end_line: int) -> str | None:
        """Return lines `start_line..end_line` (1-based, inclusive), clamped to the file."""
        content = self.read_source(path)
        if content is None:
            return None
        lines = content.split("\n")
        return "\n".join(lines[max(0, start_line - 1) : min(len(lines), end_line)])
