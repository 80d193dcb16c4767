from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from adapters.layout.assembly import assemble_layout, fallback_layout
from adapters.layout.constraints import enforce_grid_angles, insert_bends
from adapters.layout.interchange import resolve_interchanges
from adapters.layout.placement import (
    analyze_levels,
    assign_path_angles,
    guard_origin,
    place_nodes,
)
from adapters.layout.separation import resolve_separation, settle_layout
from adapters.layout.trace import LayoutTrace
from domain.layout_config import LayoutConfig
from domain.models import (
    CareerPath,
    LayoutData,
    LayoutNode,
    LayoutResult,
    LayoutStats,
    Position,
    PositionDetail,
)
from domain.ports.layout import LayoutEngine, RandomSource

logger = logging.getLogger(__name__)

DEFAULT_SEED = 0


@dataclass(frozen=True)
class PreparedInput:
    career_paths: list[CareerPath]
    paths_by_id: dict[str, CareerPath]
    positions_by_id: dict[str, Position]
    details: list[PositionDetail]
    skipped: tuple[str, ...]


class MetroLayoutEngine(LayoutEngine):
    """Polar metro layout: placement, grid constraints, then assembly."""

    name = "metro"

    def __init__(
        self,
        config: LayoutConfig | None = None,
        *,
        seed: int = DEFAULT_SEED,
        random_factory: Callable[[int], RandomSource] | None = None,
    ) -> None:
        self.config = config or LayoutConfig()
        self.seed = seed
        self._random_factory = random_factory or random.Random

    def compute(
        self,
        career_paths: Sequence[CareerPath],
        positions: Sequence[Position],
        details: Sequence[PositionDetail],
        config: LayoutConfig | None = None,
    ) -> LayoutData:
        return self.run(career_paths, positions, details, config).layout

    def run(
        self,
        career_paths: Sequence[CareerPath],
        positions: Sequence[Position],
        details: Sequence[PositionDetail],
        config: LayoutConfig | None = None,
        *,
        collect_trace: bool = False,
    ) -> LayoutResult:
        _require_sequence("career_paths", career_paths)
        _require_sequence("positions", positions)
        _require_sequence("details", details)

        layout_config = (config or self.config).normalized()
        trace = LayoutTrace(enabled=collect_trace)
        trace.record(
            "input",
            "received layout input",
            career_paths=len(career_paths),
            positions=len(positions),
            details=len(details),
            strategy=self.name,
        )
        if not career_paths or not positions or not details:
            trace.record("input", "empty input, using fallback layout")
            return LayoutResult(
                layout=fallback_layout(layout_config), stats=LayoutStats(), trace=trace.events()
            )

        prepared = self._prepare(career_paths, positions, details, trace)
        if not prepared.details:
            trace.record("input", "no valid position details, using fallback layout")
            return LayoutResult(
                layout=fallback_layout(layout_config),
                stats=LayoutStats(skipped_details=prepared.skipped),
                trace=trace.events(),
            )

        nodes, stats = self._arrange(prepared, layout_config, trace)
        layout = assemble_layout(nodes, prepared.career_paths, layout_config)
        trace.record(
            "assembly",
            "assembled layout",
            nodes=len(layout.nodes),
            paths=len(layout.paths),
            bounds=layout.bounds.to_dict(),
        )
        logger.debug(
            "Computed %s layout: %d nodes, %d paths",
            self.name,
            len(layout.nodes),
            len(layout.paths),
        )
        return LayoutResult(
            layout=layout,
            stats=replace(stats, skipped_details=prepared.skipped),
            trace=trace.events(),
        )

    def _prepare(
        self,
        career_paths: Sequence[CareerPath],
        positions: Sequence[Position],
        details: Sequence[PositionDetail],
        trace: LayoutTrace,
    ) -> PreparedInput:
        paths_by_id = {path.id: path for path in career_paths}
        positions_by_id = {position.id: position for position in positions}
        valid: list[PositionDetail] = []
        skipped: list[str] = []
        seen: set[str] = set()

        for detail in details:
            reason: str | None = None
            if detail.id in seen:
                reason = "duplicate position detail id"
            elif detail.position_id not in positions_by_id:
                reason = f"unknown position {detail.position_id}"
            elif detail.career_path_id not in paths_by_id:
                reason = f"unknown career path {detail.career_path_id}"
            if reason is not None:
                logger.warning("Skipping position detail %s: %s", detail.id, reason)
                trace.record("input", "skipped position detail", detail_id=detail.id, reason=reason)
                skipped.append(detail.id)
                continue
            seen.add(detail.id)
            valid.append(detail)

        active_ids = {detail.career_path_id for detail in valid}
        active_paths = sorted(
            (path for path in paths_by_id.values() if path.id in active_ids),
            key=lambda path: path.id,
        )
        return PreparedInput(
            career_paths=active_paths,
            paths_by_id=paths_by_id,
            positions_by_id=positions_by_id,
            details=valid,
            skipped=tuple(skipped),
        )

    def _arrange(
        self, prepared: PreparedInput, config: LayoutConfig, trace: LayoutTrace
    ) -> tuple[list[LayoutNode], LayoutStats]:
        level_info = analyze_levels(prepared.details, config.mid_level_override)
        path_angles = assign_path_angles(prepared.career_paths, config)
        trace.record(
            "placement",
            "assigned path angles",
            angles=path_angles,
            min_level=level_info.min_level,
            max_level=level_info.max_level,
            mid_level=level_info.mid_level,
        )

        nodes = place_nodes(
            prepared.details,
            prepared.positions_by_id,
            prepared.paths_by_id,
            path_angles,
            level_info,
            config,
        )
        nodes, relocations = guard_origin(nodes, config)
        trace.record("placement", "placed nodes", nodes=len(nodes), origin_relocations=relocations)

        nodes, snapped = enforce_grid_angles(nodes, config)
        trace.record("constraints", "snapped segments to grid", snapped_segments=snapped)

        unbent = nodes
        nodes, bends = insert_bends(nodes, config)
        bent = {node.id for node, before in zip(nodes, unbent) if node is not before}
        trace.record("constraints", "inserted bends", bends_inserted=bends)

        random_source = self._random_factory(self.seed)
        separation = resolve_separation(nodes, config, random_source)
        trace.record(
            "constraints",
            "resolved separation",
            iterations=separation.iterations,
            converged=separation.converged,
        )

        interchange = resolve_interchanges(
            separation.nodes, path_angles, level_info, config, fixed=bent
        )
        trace.record(
            "constraints",
            "blended interchanges",
            moved=list(interchange.moved),
            snapped_segments=interchange.snapped_segments,
        )

        settled = settle_layout(
            interchange.nodes,
            config,
            random_source,
            anchors=set(interchange.anchors) | bent,
            pinned=interchange.anchors,
        )
        trace.record(
            "constraints",
            "settled final coordinates",
            iterations=settled.iterations,
            converged=settled.converged,
            snapped_segments=settled.snapped_segments,
        )
        if not settled.converged:
            logger.debug(
                "Separation stopped after %d iterations without converging",
                separation.iterations + settled.iterations,
            )

        stats = LayoutStats(
            origin_relocations=relocations,
            snapped_segments=snapped + interchange.snapped_segments + settled.snapped_segments,
            bends_inserted=bends,
            separation_iterations=separation.iterations + settled.iterations,
            separation_converged=settled.converged,
            interchange_count=sum(1 for node in settled.nodes if node.is_interchange),
        )
        return settled.nodes, stats


def _require_sequence(name: str, value: Sequence[object] | None) -> None:
    if value is None:
        msg = f"{name} is required"
        raise TypeError(msg)
