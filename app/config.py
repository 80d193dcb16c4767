from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.registry import DEFAULT_STRATEGY, available_strategies
from domain.layout_config import LayoutConfig

DEFAULT_CONFIG_PATH = Path("config/metro/app.yaml")
CONFIG_PATH_ENV = "METRO_CONFIG_PATH"


class LayoutSettings(BaseModel):
    strategy: str = DEFAULT_STRATEGY
    seed: int = 0
    route_style: Literal["orthogonal", "octilinear"] = "orthogonal"
    mid_level_radius: float = 100.0
    radius_step: float = 60.0
    min_radius: float = 40.0
    num_directions: int = 8
    angle_offset_degrees: float | None = None
    pull_interchanges: float = 0.3
    max_consecutive_aligned: int = 3
    min_separation: float = 30.0
    max_iterations: int = 50
    padding: float = 50.0
    global_scale: float = 1.0
    mid_level_pull: float = 0.7
    mid_level_override: float | None = None
    snap_tolerance_degrees: float = 1.0
    collinear_tolerance_degrees: float = 5.0

    @field_validator("strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, value: object) -> str:
        strategy = str(value or DEFAULT_STRATEGY).strip().lower()
        if strategy not in available_strategies():
            msg = f"layout.strategy must be one of: {', '.join(available_strategies())}"
            raise ValueError(msg)
        return strategy

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            mid_level_radius=self.mid_level_radius,
            radius_step=self.radius_step,
            min_radius=self.min_radius,
            num_directions=self.num_directions,
            angle_offset_degrees=self.angle_offset_degrees,
            pull_interchanges=self.pull_interchanges,
            max_consecutive_aligned=self.max_consecutive_aligned,
            min_separation=self.min_separation,
            max_iterations=self.max_iterations,
            padding=self.padding,
            global_scale=self.global_scale,
            mid_level_pull=self.mid_level_pull,
            mid_level_override=self.mid_level_override,
            snap_tolerance_degrees=self.snap_tolerance_degrees,
            collinear_tolerance_degrees=self.collinear_tolerance_degrees,
        )


class WebSettings(BaseModel):
    title: str = "Career Metro Map"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    career_map_dir: Path = Path("examples/career_map")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="METRO_", env_nested_delimiter="__")

    layout: LayoutSettings = LayoutSettings()
    web: WebSettings = WebSettings()

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
    env_path = os.getenv(CONFIG_PATH_ENV)
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
