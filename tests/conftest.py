from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from app.config import AppSettings, LayoutSettings, WebSettings
from domain.layout_config import LayoutConfig
from domain.models import CareerMapDocument
from tests.helpers.career_map_fixtures import load_career_map_fixture, repo_root


def _clear_metro_env() -> None:
    for key in list(os.environ):
        if key.startswith("METRO_"):
            os.environ.pop(key, None)


_clear_metro_env()


@pytest.fixture(autouse=True)
def clear_metro_env() -> Generator[None, None, None]:
    _clear_metro_env()
    yield
    _clear_metro_env()


@pytest.fixture
def layout_config() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def engineering_design() -> CareerMapDocument:
    return load_career_map_fixture("engineering_design.json")


@pytest.fixture
def product_org() -> CareerMapDocument:
    return load_career_map_fixture("product_org.json")


@pytest.fixture
def layout_settings() -> LayoutSettings:
    return LayoutSettings()


@pytest.fixture
def web_settings() -> WebSettings:
    return WebSettings(title="Test Metro", career_map_dir=repo_root() / "examples" / "career_map")


@pytest.fixture
def app_settings(layout_settings: LayoutSettings, web_settings: WebSettings) -> AppSettings:
    return AppSettings(layout=layout_settings, web=web_settings)


@pytest.fixture
def app_settings_factory(
    layout_settings: LayoutSettings, web_settings: WebSettings
) -> Callable[..., AppSettings]:
    def _factory(*, career_map_dir: Path | None = None, **layout_overrides: object) -> AppSettings:
        web = web_settings
        if career_map_dir is not None:
            web = web_settings.model_copy(update={"career_map_dir": career_map_dir})
        return AppSettings(layout=layout_settings.model_copy(update=layout_overrides), web=web)

    return _factory
