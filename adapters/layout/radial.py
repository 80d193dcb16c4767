from __future__ import annotations

from adapters.layout.metro import MetroLayoutEngine, PreparedInput
from adapters.layout.placement import analyze_levels, place_nodes
from adapters.layout.polar_geometry import normalize_angle
from adapters.layout.trace import LayoutTrace
from domain.layout_config import LayoutConfig
from domain.models import LayoutNode, LayoutStats


class RadialLayoutEngine(MetroLayoutEngine):
    """Plain polar layout: paths fan out evenly, levels step outward.

    No grid snapping, bends, separation or interchange blending is applied.
    """

    name = "radial"

    def _arrange(
        self, prepared: PreparedInput, config: LayoutConfig, trace: LayoutTrace
    ) -> tuple[list[LayoutNode], LayoutStats]:
        count = len(prepared.career_paths)
        path_angles = {
            path.id: normalize_angle(index * 360.0 / count)
            for index, path in enumerate(prepared.career_paths)
        }
        trace.record("placement", "spread path angles", angles=path_angles)

        def radius_for_level(level: int) -> float:
            return config.scaled(config.min_radius + level * config.radius_step)

        nodes = place_nodes(
            prepared.details,
            prepared.positions_by_id,
            prepared.paths_by_id,
            path_angles,
            analyze_levels(prepared.details),
            config,
            radius_for_level=radius_for_level,
        )
        trace.record("placement", "placed nodes", nodes=len(nodes))
        stats = LayoutStats(interchange_count=sum(1 for node in nodes if node.is_interchange))
        return nodes, stats
