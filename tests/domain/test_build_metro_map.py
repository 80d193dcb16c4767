from __future__ import annotations

from adapters.layout.metro import MetroLayoutEngine
from adapters.layout.radial import RadialLayoutEngine
from domain.layout_config import LayoutConfig
from domain.models import CareerMapDocument, Point
from domain.services.build_metro_map import BuildMetroMap
from domain.services.route_metro_lines import MetroLineRouter, RouteConfig


def test_build_without_routes(engineering_design: CareerMapDocument) -> None:
    metro_map = BuildMetroMap(MetroLayoutEngine()).build(engineering_design)

    assert metro_map.routes is None
    assert len(metro_map.layout.nodes) == 6
    assert metro_map.result.trace is None


def test_build_with_routes_and_trace(engineering_design: CareerMapDocument) -> None:
    service = BuildMetroMap(MetroLayoutEngine(), MetroLineRouter(RouteConfig(jog_size=0.0)))

    metro_map = service.build(engineering_design, collect_trace=True, include_routes=True)

    assert metro_map.routes is not None
    assert set(metro_map.routes) == {"design", "engineering"}
    first_node = metro_map.layout.nodes_by_id[metro_map.layout.paths_by_id["design"].nodes[0]]
    assert metro_map.routes["design"][0] == Point(first_node.x, first_node.y)
    assert metro_map.result.trace
    assert "routes" in metro_map.to_dict()


def test_build_uses_given_config_for_default_router(engineering_design: CareerMapDocument) -> None:
    service = BuildMetroMap(RadialLayoutEngine())

    metro_map = service.build(engineering_design, LayoutConfig(num_directions=4), include_routes=True)

    assert metro_map.layout.config_used["numDirections"] == 4
    assert metro_map.routes is not None
    for waypoints in metro_map.routes.values():
        assert len(waypoints) >= 3


def test_default_router_follows_engine_config(engineering_design: CareerMapDocument) -> None:
    engine_config = LayoutConfig(num_directions=4)
    service = BuildMetroMap(MetroLayoutEngine(engine_config))

    metro_map = service.build(engineering_design, include_routes=True)

    expected_router = MetroLineRouter(RouteConfig.from_layout_config(engine_config.normalized()))
    assert metro_map.layout.config_used["numDirections"] == 4
    assert metro_map.routes == expected_router.route_layout(metro_map.layout)
