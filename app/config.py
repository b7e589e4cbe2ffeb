from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import AttributeDefaults, NameValueList

DEFAULT_CONFIG_PATH = Path("config/dotscene.yaml")


def _split_pairs(raw_value: str) -> NameValueList:
    raw = raw_value.strip()
    if not raw:
        return []
    pairs: NameValueList = []
    for token in (part.strip() for part in raw.split(",")):
        if not token:
            continue
        if "=" not in token:
            msg = f"Attribute setting must look like name=value, got {token!r}"
            raise ValueError(msg)
        name, value = token.split("=", 1)
        pairs.append((name.strip(), value.strip().strip('"').strip("'")))
    return pairs


def _pairs_from(value: object) -> NameValueList:
    if value is None or value == "":
        return []
    if isinstance(value, Mapping):
        return [(str(name), str(item)) for name, item in value.items()]
    if isinstance(value, str):
        return _split_pairs(value)
    if isinstance(value, (list, tuple)):
        pairs: NameValueList = []
        for item in value:
            if isinstance(item, str):
                pairs.extend(_split_pairs(item))
            elif isinstance(item, Mapping):
                pairs.extend((str(name), str(entry)) for name, entry in item.items())
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                pairs.append((str(item[0]), str(item[1])))
            else:
                msg = f"Unsupported attribute setting: {item!r}"
                raise ValueError(msg)
        return pairs
    msg = f"Unsupported attribute settings: {value!r}"
    raise ValueError(msg)


class GraphvizSettings(BaseModel):
    dot_path: str | None = None
    algorithm: str = "dot"
    timeout_seconds: float = Field(default=10.0, gt=0)


class DisplaySettings(BaseModel):
    logical_dpi_y: float | None = Field(default=None, gt=0)
    probe_display: bool = False


class CanvasSettings(BaseModel):
    graph_attributes: Annotated[NameValueList, NoDecode] = Field(default_factory=list)
    node_attributes: Annotated[NameValueList, NoDecode] = Field(default_factory=list)
    edge_attributes: Annotated[NameValueList, NoDecode] = Field(default_factory=list)
    show_grid: bool = False

    @field_validator("graph_attributes", "node_attributes", "edge_attributes", mode="before")
    @classmethod
    def normalize_pairs(cls, value: object) -> NameValueList:
        return _pairs_from(value)

    def to_defaults(self) -> AttributeDefaults:
        return AttributeDefaults(
            graph=list(self.graph_attributes),
            node=list(self.node_attributes),
            edge=list(self.edge_attributes),
        )


class RenderSettings(BaseModel):
    background: str = "white"
    padding: float = Field(default=4.0, ge=0)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DOTSCENE_", env_nested_delimiter="__")

    graphviz: GraphvizSettings = GraphvizSettings()
    display: DisplaySettings = DisplaySettings()
    canvas: CanvasSettings = CanvasSettings()
    render: RenderSettings = RenderSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("DOTSCENE_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
