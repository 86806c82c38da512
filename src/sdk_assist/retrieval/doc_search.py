"""Sharded search over API modules, guides and the shared error-code table."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sdk_assist.config import CacheConfig, SearchConfig, SpellConfig
from sdk_assist.errors import AssistError
from sdk_assist.intelligence.expander import QueryExpander
from sdk_assist.intelligence.spell import SpellCorrector
from sdk_assist.intelligence.suggester import SearchSuggester
from sdk_assist.retrieval.ambiguity import AmbiguityDetector
from sdk_assist.retrieval.cache import CachedShard
from sdk_assist.retrieval.manifest import (
    ApiModule,
    DocsManifest,
    DocsShard,
    ErrorCode,
    ErrorCodeShard,
    Guide,
    load_model,
)
from sdk_assist.retrieval.shards import ShardedEngine
from sdk_assist.types import (
    AmbiguityDetection,
    ApiSearchResult,
    GuideSearchResult,
    IndexedDocument,
    QueryCorrection,
    SearchContext,
    SearchSuggestion,
)

logger = logging.getLogger(__name__)

DOCS_FIELD_WEIGHTS: dict[str, float] = {
    "name": 4.0,
    "title": 4.0,
    "keywords": 3.0,
    "id": 2.5,
    "description": 1.5,
}

SYMPTOM_CODES: Mapping[str, tuple[int, ...]] = {
    "消息发送失败": (500, 501, 502, 503, 504, 505, 506, 507, 508),
    "发送失败": (500, 501, 502, 503, 504, 505, 506, 507, 508),
    "消息被拦截": (508,),
    "被拉黑": (508, 221),
    "敏感词": (507,),
    "禁言": (506,),
    "不在群里": (505,),
    "群已解散": (504,),
    "登录失败": (200, 201, 202, 203, 204, 205, 206, 207),
    "登录超时": (200, 201),
    "token无效": (204, 206),
    "token过期": (206,),
    "密码错误": (204,),
    "用户不存在": (204,),
    "账号被封禁": (207, 305),
    "连接失败": (300, 301, 302, 303),
    "网络断开": (300, 301),
    "网络超时": (300,),
    "服务器错误": (302, 303),
    "加群失败": (600, 601, 602, 603),
    "群满了": (602,),
    "群不存在": (600,),
    "权限不足": (403,),
    "参数错误": (400,),
    "服务未开通": (1000,),
}

SYMPTOM_SCORE = 100
ORIGINAL_TERM_SCORE = 20
EXPANDED_TERM_SCORE = 10
NAME_TERM_SCORE = 30
MAX_DIAGNOSES = 5


@dataclass(slots=True)
class ApiSearchResponse:
    results: list[ApiSearchResult]
    ambiguity: AmbiguityDetection
    loaded_platforms: list[str]
    expanded_terms: list[str] = field(default_factory=list)
    spell_correction: QueryCorrection | None = None
    suggestion: SearchSuggestion | None = None


@dataclass(slots=True)
class GuideSearchResponse:
    results: list[GuideSearchResult]
    loaded_platforms: list[str]
    spell_correction: QueryCorrection | None = None


def module_document(module: ApiModule, platform: str) -> IndexedDocument:
    return IndexedDocument(
        doc_id=module.id,
        fields={
            "name": module.name,
            "id": module.id,
            "description": module.description,
            "keywords": " ".join(module.keywords),
        },
        metadata={
            "type": "api",
            "platform": platform,
            "docPath": module.doc_path,
            "product": module.product,
        },
    )


def guide_document(guide: Guide, platform: str) -> IndexedDocument:
    return IndexedDocument(
        doc_id=guide.id,
        fields={
            "title": guide.title,
            "id": guide.id,
            "description": guide.description,
            "keywords": " ".join(guide.keywords),
        },
        metadata={
            "type": "guide",
            "platform": platform,
            "path": guide.path,
            "product": guide.product,
        },
    )


class DocSearchEngine(ShardedEngine[DocsManifest, DocsShard]):
    """Platform-sharded API and guide search with spell correction and expansion.

    Identifiers from every loaded shard are added to this engine's own spell
    dictionary, so corrections improve as more platforms are touched. The
    error-code table lives outside the platform shards and is loaded once.
    """

    engine_name = "docs"
    manifest_model = DocsManifest
    shard_model = DocsShard
    field_weights = DOCS_FIELD_WEIGHTS

    def __init__(
        self,
        data_dir: Path | str,
        *,
        cache_config: CacheConfig | None = None,
        search_config: SearchConfig | None = None,
        spell_config: SpellConfig | None = None,
        expander: QueryExpander | None = None,
        ambiguity: AmbiguityDetector | None = None,
        suggester: SearchSuggester | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            data_dir, cache_config=cache_config, search_config=search_config, clock=clock
        )
        self.expander = expander or QueryExpander()
        self.spell = SpellCorrector(spell_config)
        self.spell.add_words(self.expander.known_terms())
        self.ambiguity = ambiguity or AmbiguityDetector()
        self.suggester = suggester or SearchSuggester()
        self._error_codes: ErrorCodeShard | None = None

    def build_documents(self, shard: DocsShard) -> list[IndexedDocument]:
        documents: list[IndexedDocument] = []
        for module in shard.api_modules:
            documents.append(module_document(module, shard.platform))
            self.spell.add_words(module.keywords)
            if module.name:
                self.spell.add_identifier(module.name)
        for guide in shard.guides:
            documents.append(guide_document(guide, shard.platform))
            self.spell.add_words(guide.keywords)
        return documents

    def detect_platforms(self, query: str) -> list[str]:
        """Platforms whose manifest keywords occur in the query, else every platform."""
        lowered = query.lower()
        detected = [
            platform
            for platform, info in self.manifest.shards.items()
            if any(keyword.lower() in lowered for keyword in info.keywords)
        ]
        return detected or self.platforms()

    def platform_stats(self) -> dict[str, dict[str, int]]:
        return {
            key: {
                "guides": info.guide_count,
                "api_modules": info.api_module_count,
                "size_bytes": info.size_bytes,
            }
            for key, info in self.manifest.shards.items()
        }

    def search_api(
        self,
        query: str,
        context: SearchContext | None = None,
        limit: int | None = None,
    ) -> ApiSearchResponse:
        context = context or SearchContext()
        if limit is None:
            limit = self.search_config.default_limit
        candidates = limit * self.search_config.oversample_factor
        correction = self.spell.correct_query(query)
        expanded = self.expander.expand(correction.corrected_query)
        expanded_query = " ".join(expanded.expanded)
        targets = [context.platform] if context.platform else self.detect_platforms(query)

        def search_shard(key: str, cached: CachedShard[DocsShard]) -> list[ApiSearchResult]:
            modules = {module.id: module for module in cached.shard.api_modules}
            results: list[ApiSearchResult] = []
            for hit in cached.index.search(expanded_query, candidates):
                if hit.metadata.get("type") != "api":
                    continue
                module = modules.get(hit.doc_id)
                if module is None:
                    continue
                results.append(
                    ApiSearchResult(
                        name=module.name,
                        module=module.id,
                        description=module.description,
                        doc_path=module.doc_path,
                        score=hit.score,
                        platform=key,
                        layer=module.layer,
                        component=module.component,
                    )
                )
            return results

        results, loaded = self.fan_out(targets, search_shard)
        results.sort(key=lambda result: result.score, reverse=True)
        results = results[:limit]
        logger.debug("api search %r matched %d modules in %s", query, len(results), loaded)

        return ApiSearchResponse(
            results=results,
            ambiguity=self.ambiguity.detect_api_ambiguity(query, results, context),
            loaded_platforms=loaded,
            expanded_terms=expanded.expanded if expanded.synonyms_used else [],
            spell_correction=correction if correction.has_corrected else None,
            suggestion=self.suggester.generate_suggestions(
                query,
                results,
                correction.corrected_query if correction.has_corrected else None,
                expanded.expanded,
            ),
        )

    def search_guide(
        self, query: str, platform: str | None = None, limit: int | None = None
    ) -> GuideSearchResponse:
        if limit is None:
            limit = self.search_config.guide_limit
        candidates = limit * self.search_config.oversample_factor
        correction = self.spell.correct_query(query)
        expanded_query = " ".join(self.expander.expand(correction.corrected_query).expanded)
        targets = [platform] if platform else self.detect_platforms(query)

        def search_shard(key: str, cached: CachedShard[DocsShard]) -> list[GuideSearchResult]:
            guides = {guide.id: guide for guide in cached.shard.guides}
            results: list[GuideSearchResult] = []
            for hit in cached.index.search(expanded_query, candidates):
                guide = guides.get(hit.doc_id)
                if hit.metadata.get("type") != "guide" or guide is None:
                    continue
                results.append(
                    GuideSearchResult(
                        id=guide.id,
                        title=guide.title,
                        description=guide.description,
                        path=guide.path,
                        score=hit.score,
                        platform=key,
                    )
                )
            return results

        results, loaded = self.fan_out(targets, search_shard)
        results.sort(key=lambda result: result.score, reverse=True)
        return GuideSearchResponse(
            results=results[:limit],
            loaded_platforms=loaded,
            spell_correction=correction if correction.has_corrected else None,
        )

    def guide_path(self, topic: str, platform: str | None = None) -> str | None:
        targets = [platform] if platform else self.platforms()
        for key in targets:
            try:
                cached = self.load_shard(key)
            except AssistError as exc:
                logger.warning("skipping docs shard %s: %s", key, exc)
                continue
            for guide in cached.shard.guides:
                if topic in guide.id or topic in guide.title:
                    return guide.path
        return None

    def read_document(self, doc_path: str) -> str | None:
        """Return the text of a document under the data directory, if present."""
        root = self.data_dir.resolve()
        path = (root / doc_path).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def error_codes(self) -> dict[str, ErrorCode]:
        if self._error_codes is None:
            path = self.data_dir / self.manifest.shared.error_codes.path
            self._error_codes = load_model(path, ErrorCodeShard)
            logger.info("loaded %d error codes", len(self._error_codes.error_codes))
        return self._error_codes.error_codes

    def lookup_error(self, code: int | str) -> ErrorCode | None:
        return self.error_codes().get(str(code))

    def diagnose(self, symptom: str) -> list[ErrorCode]:
        """Rank error codes that plausibly explain a described symptom.

        Known symptom phrases map straight to their codes. Every other code is
        scored by keyword overlap with its brief, description, causes,
        solutions and name.
        """
        codes = self.error_codes()
        if not codes or not symptom.strip():
            return []

        scored: dict[int, tuple[ErrorCode, int]] = {}
        for phrase, phrase_codes in SYMPTOM_CODES.items():
            if phrase not in symptom and symptom not in phrase:
                continue
            for code in phrase_codes:
                error = codes.get(str(code))
                if error is not None and error.code not in scored:
                    scored[error.code] = (error, SYMPTOM_SCORE)

        original_terms = [term for term in symptom.lower().split() if len(term) >= 2]
        expanded_terms = [
            term.lower() for term in self.expander.expand(symptom).expanded if len(term) >= 2
        ]
        for error in codes.values():
            if error.code in scored:
                continue
            text = error.searchable_text()
            name = error.name.lower()
            score = sum(ORIGINAL_TERM_SCORE for term in original_terms if term in text)
            score += sum(EXPANDED_TERM_SCORE for term in expanded_terms if term in text)
            score += sum(NAME_TERM_SCORE for term in original_terms if term in name)
            if score > 0:
                scored[error.code] = (error, score)

        ranked = sorted(scored.values(), key=lambda item: item[1], reverse=True)
        return [error for error, _ in ranked[:MAX_DIAGNOSES]]

    def clear_cache(self) -> None:
        super().clear_cache()
        self._error_codes = None
