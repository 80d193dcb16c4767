from __future__ import annotations

from domain.layout_config import LayoutConfig
from domain.models import CareerMapDocument, MetroMap
from domain.ports.layout import LayoutEngine
from domain.services.route_metro_lines import MetroLineRouter, RouteConfig


class BuildMetroMap:
    def __init__(self, engine: LayoutEngine, router: MetroLineRouter | None = None) -> None:
        self._engine = engine
        self._router = router

    def build(
        self,
        document: CareerMapDocument,
        config: LayoutConfig | None = None,
        collect_trace: bool = False,
        include_routes: bool = False,
    ) -> MetroMap:
        result = self._engine.run(
            document.career_paths,
            document.positions,
            document.position_details,
            config,
            collect_trace=collect_trace,
        )
        if not include_routes:
            return MetroMap(result=result)
        router = self._router
        if router is None:
            # Route with the configuration the engine actually ran with.
            used = LayoutConfig.from_dict(result.layout.config_used)
            router = MetroLineRouter(RouteConfig.from_layout_config(used))
        return MetroMap(result=result, routes=router.route_layout(result.layout))
