from __future__ import annotations

from adapters.layout.metro import DEFAULT_SEED, MetroLayoutEngine
from adapters.layout.radial import RadialLayoutEngine
from domain.layout_config import LayoutConfig
from domain.ports.layout import LayoutEngine

DEFAULT_STRATEGY = "metro"

LAYOUT_ENGINES: dict[str, type[MetroLayoutEngine]] = {
    MetroLayoutEngine.name: MetroLayoutEngine,
    RadialLayoutEngine.name: RadialLayoutEngine,
}


def available_strategies() -> list[str]:
    return sorted(LAYOUT_ENGINES)


def create_layout_engine(
    name: str = DEFAULT_STRATEGY,
    seed: int = DEFAULT_SEED,
    config: LayoutConfig | None = None,
) -> LayoutEngine:
    key = (name or DEFAULT_STRATEGY).strip().lower()
    engine_cls = LAYOUT_ENGINES.get(key)
    if engine_cls is None:
        msg = f"Unknown layout strategy: {name}. Expected one of: {', '.join(available_strategies())}"
        raise ValueError(msg)
    return engine_cls(config, seed=seed)
