from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, ORJSONResponse
from fastapi.templating import Jinja2Templates

from adapters.filesystem.career_map_repository import FileSystemCareerMapRepository
from adapters.layout.registry import available_strategies, create_layout_engine
from app.config import AppSettings, LayoutSettings, load_settings
from domain.models import CareerMapDocument, MetroMap, Point
from domain.services.build_metro_map import BuildMetroMap
from domain.services.route_metro_lines import MetroLineRouter, RouteConfig, to_svg_path_data

TEMPLATES_DIR = Path(__file__).parent / "web" / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
logger = logging.getLogger(__name__)


class LayoutRequest(CareerMapDocument):
    config: LayoutSettings | None = None


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title=settings.web.title)
    repository = FileSystemCareerMapRepository()

    def merged_layout_settings(overrides: LayoutSettings | None) -> LayoutSettings:
        if overrides is None:
            return settings.layout
        return settings.layout.model_copy(update=overrides.model_dump(exclude_unset=True))

    def build_service(layout_settings: LayoutSettings, strategy: str | None) -> BuildMetroMap:
        try:
            engine = create_layout_engine(
                strategy or layout_settings.strategy, seed=layout_settings.seed
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        router = MetroLineRouter(
            RouteConfig.from_layout_config(
                layout_settings.to_layout_config().normalized(),
                style=layout_settings.route_style,
            )
        )
        return BuildMetroMap(engine, router)

    def build_map(
        document: CareerMapDocument,
        layout_settings: LayoutSettings,
        strategy: str | None = None,
        trace: bool = False,
        routes: bool = False,
    ) -> MetroMap:
        service = build_service(layout_settings, strategy)
        return service.build(
            document,
            layout_settings.to_layout_config(),
            collect_trace=trace,
            include_routes=routes,
        )

    def load_named_map(name: str) -> CareerMapDocument:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise HTTPException(status_code=404, detail="Career map not found")
        path = settings.web.career_map_dir / f"{name}.json"
        if not path.is_file():
            raise HTTPException(status_code=404, detail="Career map not found")
        try:
            return repository.load(path)
        except ValueError as exc:
            logger.warning("Failed to load career map %s: %s", path, exc)
            raise HTTPException(status_code=422, detail=f"Invalid career map: {name}") from exc

    def list_map_names() -> list[str]:
        directory = settings.web.career_map_dir
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob("*.json") if path.is_file())

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/config")
    def api_config() -> ORJSONResponse:
        layout_settings = settings.layout
        return ORJSONResponse(
            {
                "strategy": layout_settings.strategy,
                "strategies": available_strategies(),
                "seed": layout_settings.seed,
                "routeStyle": layout_settings.route_style,
                "layout": layout_settings.to_layout_config().normalized().to_dict(),
            }
        )

    @app.post("/api/layout")
    def api_layout(
        payload: LayoutRequest,
        trace: bool = Query(False),
        routes: bool = Query(False),
        strategy: str | None = Query(None),
    ) -> ORJSONResponse:
        layout_settings = merged_layout_settings(payload.config)
        document = CareerMapDocument(
            career_paths=payload.career_paths,
            positions=payload.positions,
            position_details=payload.position_details,
        )
        metro_map = build_map(document, layout_settings, strategy, trace, routes)
        return ORJSONResponse(metro_map.to_dict())

    @app.get("/api/maps")
    def api_maps() -> ORJSONResponse:
        return ORJSONResponse({"maps": list_map_names()})

    @app.get("/api/maps/{name}")
    def api_map(
        name: str,
        trace: bool = Query(False),
        routes: bool = Query(True),
        strategy: str | None = Query(None),
    ) -> ORJSONResponse:
        document = load_named_map(name)
        metro_map = build_map(document, settings.layout, strategy, trace, routes)
        return ORJSONResponse(metro_map.to_dict())

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "index.html",
            {"title": settings.web.title, "maps": list_map_names()},
        )

    @app.get("/maps/{name}", response_class=HTMLResponse)
    def map_view(request: Request, name: str, strategy: str | None = Query(None)) -> HTMLResponse:
        document = load_named_map(name)
        metro_map = build_map(document, settings.layout, strategy, routes=True)
        return templates.TemplateResponse(
            request,
            "metro_map.html",
            {"title": settings.web.title, "name": name, "view": build_map_view(metro_map)},
        )

    return app


def build_map_view(metro_map: MetroMap) -> dict[str, Any]:
    """Flatten a metro map into SVG-ready values with the y axis pointing up."""
    layout = metro_map.layout
    bounds = layout.bounds
    routes = metro_map.routes or {}
    lines = []
    for path in layout.paths:
        points = routes.get(path.id, [])
        flipped = [Point(point.x, -point.y) for point in points]
        lines.append({"id": path.id, "name": path.name, "color": path.color, "d": to_svg_path_data(flipped)})
    stations = [
        {
            "id": node.id,
            "name": node.name,
            "x": node.x,
            "y": -node.y,
            "color": node.color,
            "interchange": node.is_interchange,
        }
        for node in layout.nodes
    ]
    return {
        "view_box": f"{bounds.min_x:.2f} {-bounds.max_y:.2f} {bounds.width:.2f} {bounds.height:.2f}",
        "lines": lines,
        "stations": stations,
        "stats": metro_map.result.stats.to_dict(),
    }


app = create_app(load_settings())
