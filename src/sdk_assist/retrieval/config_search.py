"""Sharded lookup of UIKit component configuration properties and extension points."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypeVar

from sdk_assist.config import CacheConfig, SearchConfig, SpellConfig
from sdk_assist.errors import AssistError
from sdk_assist.intelligence.expander import QueryExpander
from sdk_assist.intelligence.spell import SpellCorrector
from sdk_assist.retrieval.cache import CachedShard
from sdk_assist.retrieval.manifest import (
    ComponentConfig,
    ConfigImpact,
    ConfigManifest,
    ConfigProperty,
    ConfigShard,
    ExtensionPoint,
    ImpactAnalysis,
    load_model,
)
from sdk_assist.retrieval.shards import ShardedEngine
from sdk_assist.text.tokenizer import split_identifier
from sdk_assist.types import IndexedDocument, QueryCorrection

logger = logging.getLogger(__name__)

CONFIG_FIELD_WEIGHTS: dict[str, float] = {
    "name": 4.0,
    "methods": 2.0,
    "type": 1.5,
    "description": 1.5,
    "component": 1.0,
}

IMPACT_ANALYSIS_FILE = "impact-analysis.json"

ExtensionKind = Literal["protocol", "class", "all"]
T = TypeVar("T")


@dataclass(slots=True)
class ConfigHit:
    """A ranked configuration property or extension point."""

    kind: Literal["property", "extension"]
    name: str
    component: str
    platform: str
    description: str
    score: float
    detail: str


@dataclass(slots=True)
class ConfigSearchResponse:
    results: list[ConfigHit]
    loaded_platforms: list[str]
    expanded_terms: list[str] = field(default_factory=list)
    spell_correction: QueryCorrection | None = None


def _merge(result: dict[str, list[T]], component: str, items: Iterable[T]) -> None:
    items = list(items)
    if items:
        result.setdefault(component, []).extend(items)


class ConfigSearchEngine(ShardedEngine[ConfigManifest, ConfigShard]):
    engine_name = "config"
    manifest_model = ConfigManifest
    shard_model = ConfigShard
    field_weights = CONFIG_FIELD_WEIGHTS

    def __init__(
        self,
        data_dir: Path | str,
        *,
        cache_config: CacheConfig | None = None,
        search_config: SearchConfig | None = None,
        spell_config: SpellConfig | None = None,
        expander: QueryExpander | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            data_dir, cache_config=cache_config, search_config=search_config, clock=clock
        )
        self.expander = expander or QueryExpander()
        self.spell = SpellCorrector(spell_config)
        self.spell.add_words(self.expander.known_terms())
        self._impact: ImpactAnalysis | None = None

    def build_documents(self, shard: ConfigShard) -> list[IndexedDocument]:
        documents: list[IndexedDocument] = []
        for component, config in shard.components.items():
            for prop in config.config_properties:
                self.spell.add_words([prop.name])
                self.spell.add_identifier(prop.name)
                documents.append(
                    IndexedDocument(
                        doc_id=f"property:{component}:{prop.name}",
                        fields={
                            "name": f"{prop.name} {split_identifier(prop.name)}",
                            "type": prop.type,
                            "description": prop.description,
                            "component": component,
                        },
                        metadata={
                            "type": "property",
                            "component": component,
                            "name": prop.name,
                            "description": prop.description,
                            "detail": f"{prop.type} = {prop.default_value}"
                            if prop.default_value is not None
                            else prop.type,
                        },
                    )
                )
            for point in config.extension_points:
                self.spell.add_words([point.name])
                self.spell.add_identifier(point.name)
                documents.append(
                    IndexedDocument(
                        doc_id=f"extension:{component}:{point.name}",
                        fields={
                            "name": f"{point.name} {split_identifier(point.name)}",
                            "methods": " ".join(
                                f"{method} {split_identifier(method)}" for method in point.methods
                            ),
                            "description": point.description,
                            "component": component,
                        },
                        metadata={
                            "type": "extension",
                            "component": component,
                            "name": point.name,
                            "description": point.description,
                            "detail": point.type,
                        },
                    )
                )
        return documents

    def _targets(self, platform: str | None) -> list[str]:
        return [platform] if platform else self.platforms()

    def _collect(
        self,
        platform: str | None,
        pick: Callable[[ComponentConfig], Iterable[T]],
        component: str = "all",
    ) -> dict[str, list[T]]:
        def search_shard(key: str, cached: CachedShard[ConfigShard]) -> list[tuple[str, list[T]]]:
            components = cached.shard.components
            if component == "all":
                selected = list(components.items())
            else:
                selected = [(component, components[component])] if component in components else []
            return [(name, list(pick(config))) for name, config in selected]

        pairs, _ = self.fan_out(self._targets(platform), search_shard)
        result: dict[str, list[T]] = {}
        for name, items in pairs:
            _merge(result, name, items)
        return result

    def list_config_options(
        self, component: str = "all", platform: str | None = None
    ) -> dict[str, list[ConfigProperty]]:
        return self._collect(platform, lambda config: config.config_properties, component)

    def get_extension_points(
        self,
        component: str = "all",
        kind: ExtensionKind = "all",
        platform: str | None = None,
    ) -> dict[str, list[ExtensionPoint]]:
        def pick(config: ComponentConfig) -> list[ExtensionPoint]:
            if kind == "all":
                return list(config.extension_points)
            return [point for point in config.extension_points if point.type == kind]

        return self._collect(platform, pick, component)

    def get_component_info(
        self, component: str, platform: str | None = None
    ) -> ComponentConfig | None:
        for key in self._targets(platform):
            try:
                cached = self.load_shard(key)
            except AssistError as exc:
                logger.warning("skipping config shard %s: %s", key, exc)
                continue
            config = cached.shard.components.get(component)
            if config is not None:
                return config
        return None

    def get_all_components(self, platform: str | None = None) -> list[ComponentConfig]:
        components, _ = self.fan_out(
            self._targets(platform), lambda _, cached: cached.shard.components.values()
        )
        return components

    def search_config_property(
        self, query: str, platform: str | None = None
    ) -> dict[str, list[ConfigProperty]]:
        lowered = query.lower()

        def pick(config: ComponentConfig) -> list[ConfigProperty]:
            return [
                prop
                for prop in config.config_properties
                if lowered in prop.name.lower()
                or lowered in prop.type.lower()
                or lowered in prop.description.lower()
            ]

        return self._collect(platform, pick)

    def search_extension_point(
        self, query: str, platform: str | None = None
    ) -> dict[str, list[ExtensionPoint]]:
        lowered = query.lower()

        def pick(config: ComponentConfig) -> list[ExtensionPoint]:
            return [
                point
                for point in config.extension_points
                if lowered in point.name.lower()
                or lowered in point.description.lower()
                or any(lowered in method.lower() for method in point.methods)
            ]

        return self._collect(platform, pick)

    def search(
        self, query: str, platform: str | None = None, limit: int | None = None
    ) -> ConfigSearchResponse:
        """Rank properties and extension points through each platform's index.

        Target shards are loaded before the query is spell-corrected and
        synonym-expanded, so property names are already in the dictionary.
        Identifier style queries (`primaryHue`) also search their split words.
        """
        if limit is None:
            limit = self.search_config.default_limit
        shards, loaded = self.fan_out(self._targets(platform), lambda key, cached: [(key, cached)])
        correction = self.spell.correct_query(query)
        expanded = self.expander.expand(f"{correction.corrected_query} {split_identifier(query)}")
        expanded_query = " ".join(expanded.expanded)
        candidates = limit * self.search_config.oversample_factor

        hits: list[ConfigHit] = []
        for key, cached in shards:
            hits.extend(
                ConfigHit(
                    kind=hit.metadata["type"],
                    name=hit.metadata["name"],
                    component=hit.metadata["component"],
                    platform=key,
                    description=hit.metadata["description"],
                    score=hit.score,
                    detail=hit.metadata["detail"],
                )
                for hit in cached.index.search(expanded_query, candidates)
            )
        hits.sort(key=lambda hit: hit.score, reverse=True)
        hits = hits[:limit]
        logger.debug("config search %r matched %d entries in %s", query, len(hits), loaded)
        return ConfigSearchResponse(
            results=hits,
            loaded_platforms=loaded,
            expanded_terms=expanded.expanded if expanded.synonyms_used else [],
            spell_correction=correction if correction.has_corrected else None,
        )

    def impact_analysis(self) -> ImpactAnalysis:
        if self._impact is None:
            self._impact = load_model(self.data_dir / IMPACT_ANALYSIS_FILE, ImpactAnalysis)
            logger.info("loaded impact analysis for %d configs", self._impact.total_configs)
        return self._impact

    def get_config_usage(self, property_name: str, component: str = "all") -> ConfigImpact | None:
        """Return where `property_name` is used, searching every component unless one is given."""
        by_component = self.impact_analysis().by_component
        if component != "all":
            groups = [by_component.get(component, [])]
        else:
            groups = list(by_component.values())
        for impacts in groups:
            for impact in impacts:
                if impact.config_property.name == property_name:
                    return impact
        return None

    def clear_cache(self) -> None:
        super().clear_cache()
        self._impact = None
