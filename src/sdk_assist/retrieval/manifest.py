"""On-disk knowledge base schemas: manifests and shard payloads."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from sdk_assist.errors import ConfigurationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Record(BaseModel):
    """Base for JSON records written by the shard generators (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# Source engine -------------------------------------------------------------


class SourceShardInfo(_Record):
    path: str
    file_count: int = 0
    symbol_count: int = 0
    size_bytes: int = 0
    classes: list[str] = Field(default_factory=list)


class SourceManifest(_Record):
    version: str = ""
    platforms: list[str] = Field(default_factory=list)
    shards: dict[str, SourceShardInfo]


class SourceFile(_Record):
    path: str
    platform: str = ""
    component: str = ""
    classes: list[str] = Field(default_factory=list)
    lines: int | None = None
    keywords: list[str] = Field(default_factory=list)
    description: str = ""
    tags: list[str] = Field(default_factory=list)


class CodeSymbol(_Record):
    name: str
    type: str
    file: str
    line: int = 0
    signature: str = ""
    owner: str | None = None
    description: str = ""


class SourceShard(_Record):
    component: str
    platform: str = ""
    files: list[SourceFile] = Field(default_factory=list)
    symbols: list[CodeSymbol] = Field(default_factory=list)


# Docs engine ---------------------------------------------------------------


class DocsShardInfo(_Record):
    path: str
    platform: str = ""
    guide_count: int = 0
    api_module_count: int = 0
    error_code_count: int = 0
    size_bytes: int = 0
    keywords: list[str] = Field(default_factory=list)


class SharedShardInfo(_Record):
    path: str
    description: str = ""
    count: int = 0
    size_bytes: int = 0


class SharedDocs(_Record):
    error_codes: SharedShardInfo


class DocsManifest(_Record):
    version: str = ""
    platforms: list[str] = Field(default_factory=list)
    shards: dict[str, DocsShardInfo]
    shared: SharedDocs


class ApiModule(_Record):
    id: str
    name: str = ""
    description: str = ""
    doc_path: str = ""
    platform: str = "all"
    product: str = ""
    layer: Literal["sdk", "uikit", "demo"] = "sdk"
    component: str | None = None
    keywords: list[str] = Field(default_factory=list)


class Guide(_Record):
    id: str
    title: str = ""
    path: str = ""
    platform: str = "all"
    product: str = ""
    keywords: list[str] = Field(default_factory=list)
    description: str = ""


class DocsShard(_Record):
    platform: str
    guides: list[Guide] = Field(default_factory=list)
    api_modules: list[ApiModule] = Field(default_factory=list)


class ErrorCode(_Record):
    code: int
    name: str = ""
    brief: str = ""
    description: str = ""
    causes: list[str] = Field(default_factory=list)
    solutions: list[str] = Field(default_factory=list)

    def searchable_text(self) -> str:
        return " ".join(
            [self.brief, self.description, *self.causes, *self.solutions, self.name]
        ).lower()


class ErrorCodeShard(_Record):
    error_codes: dict[str, ErrorCode] = Field(default_factory=dict)


# Config engine -------------------------------------------------------------


class ConfigShardInfo(_Record):
    path: str
    platform: str = ""
    component_count: int = 0
    config_property_count: int = 0
    extension_point_count: int = 0
    size_bytes: int = 0
    components: list[str] = Field(default_factory=list)


class ConfigManifest(_Record):
    version: str = ""
    platforms: list[str] = Field(default_factory=list)
    shards: dict[str, ConfigShardInfo]


class ConfigProperty(_Record):
    name: str
    type: str = ""
    default_value: str | None = None
    description: str = ""
    file: str = ""
    line: int = 0


class ExtensionPoint(_Record):
    name: str
    type: Literal["protocol", "class", "override-method"] = "protocol"
    description: str = ""
    file: str = ""
    line: int = 0
    methods: list[str] = Field(default_factory=list)


class ComponentConfig(_Record):
    name: str
    description: str = ""
    config_properties: list[ConfigProperty] = Field(default_factory=list)
    extension_points: list[ExtensionPoint] = Field(default_factory=list)


class ConfigShard(_Record):
    platform: str
    components: dict[str, ComponentConfig] = Field(default_factory=dict)


class ConfigUsage(_Record):
    file: str
    line: int = 0
    context: str = ""
    component: str = "Unknown"


class ConfigImpact(_Record):
    """Where one configuration property is read in the UIKit sources."""

    config_property: ConfigProperty = Field(alias="property")
    usage_count: int = 0
    usages: list[ConfigUsage] = Field(default_factory=list)
    affected_components: list[str] = Field(default_factory=list)
    category: str = ""
    summary: str = ""


class ImpactAnalysis(_Record):
    version: str = ""
    generated_at: str = ""
    total_configs: int = 0
    by_component: dict[str, list[ConfigImpact]] = Field(default_factory=dict)
    by_category: dict[str, list[ConfigImpact]] = Field(default_factory=dict)


def load_model(path: Path, model: type[ModelT]) -> ModelT:
    """Read a JSON file into `model`, reporting every failure as a configuration fault."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}", path=str(path)) from exc
    try:
        return model.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(
            f"Invalid {model.__name__} in {path}: {exc}", path=str(path)
        ) from exc
