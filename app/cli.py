from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.filesystem.career_map_repository import (
    FileSystemCareerMapRepository,
    FileSystemLayoutRepository,
)
from adapters.filesystem.json_utils import dump_json_bytes
from adapters.layout.registry import create_layout_engine
from app.config import CONFIG_PATH_ENV, AppSettings, load_settings
from domain.models import CareerMapDocument, MetroMap
from domain.services.build_metro_map import BuildMetroMap
from domain.services.route_metro_lines import MetroLineRouter, RouteConfig

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log layout stages to stderr."),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _load_app_settings(config_path: Path | None) -> AppSettings:
    try:
        return load_settings(config_path)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load_document(input_path: Path) -> CareerMapDocument:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    try:
        return FileSystemCareerMapRepository().load(input_path)
    except ValueError as exc:
        console.print(f"[red]Invalid career map:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _build_service(settings: AppSettings, strategy: str | None, seed: int | None) -> BuildMetroMap:
    layout_settings = settings.layout
    try:
        engine = create_layout_engine(
            strategy or layout_settings.strategy,
            seed=layout_settings.seed if seed is None else seed,
        )
    except ValueError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    router = MetroLineRouter(
        RouteConfig.from_layout_config(
            layout_settings.to_layout_config().normalized(), style=layout_settings.route_style
        )
    )
    return BuildMetroMap(engine, router)


@app.command("compute")
def compute(
    input_path: Path = typer.Argument(..., help="Career map JSON file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the layout JSON."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Layout strategy name."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for separation pushes."),
    trace: bool = typer.Option(False, "--trace", help="Include per-stage trace events."),
    routes: bool = typer.Option(False, "--routes", help="Include routed line waypoints."),
) -> None:
    settings = _load_app_settings(config)
    document = _load_document(input_path)
    service = _build_service(settings, strategy, seed)
    metro_map = service.build(
        document,
        settings.layout.to_layout_config(),
        collect_trace=trace,
        include_routes=routes,
    )
    if output is None:
        typer.echo(dump_json_bytes(metro_map.to_dict()).decode("utf-8"), nl=False)
        return
    FileSystemLayoutRepository().save(metro_map.to_dict(), output)
    _report(metro_map, output)


@app.command("batch")
def batch(
    input_dir: Path = typer.Option(Path("data/career_maps"), help="Directory with career map JSON files."),
    output_dir: Path = typer.Option(Path("data/layouts"), help="Directory to write layout JSON files."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Layout strategy name."),
) -> None:
    settings = _load_app_settings(config)
    service = _build_service(settings, strategy, None)
    try:
        pairs = FileSystemCareerMapRepository().load_all_with_paths(input_dir)
    except ValueError as exc:
        console.print(f"[red]Invalid career map:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if not pairs:
        console.print(f"[yellow]No career map files found in {input_dir}[/]")
        raise typer.Exit(code=0)

    repository = FileSystemLayoutRepository()
    for path, document in pairs:
        metro_map = service.build(document, settings.layout.to_layout_config())
        target_path = output_dir / f"{path.stem}.layout.json"
        repository.save(metro_map.to_dict(), target_path)
        _report(metro_map, target_path)


@app.command("validate")
def validate(input_path: Path = typer.Argument(..., help="Career map JSON file to validate.")) -> None:
    document = _load_document(input_path)
    console.print(
        f"[green]Valid career map:[/] {input_path} "
        f"({len(document.career_paths)} paths, {len(document.positions)} positions, "
        f"{len(document.position_details)} details)"
    )


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address."),
    port: Optional[int] = typer.Option(None, help="Bind port."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _load_app_settings(config)
    if config is not None:
        # The served app loads its own settings on import.
        os.environ[CONFIG_PATH_ENV] = str(config)
    uvicorn.run(
        "app.web_main:app",
        host=host or settings.web.host,
        port=port or settings.web.port,
    )


def _report(metro_map: MetroMap, path: Path) -> None:
    stats = metro_map.result.stats
    console.print(f"[green]Wrote[/] {path} ({len(metro_map.layout.nodes)} nodes)")
    if stats.skipped_details:
        console.print(f"[yellow]Skipped details:[/] {', '.join(stats.skipped_details)}")
    if not stats.separation_converged:
        console.print(
            f"[yellow]Separation did not converge after {stats.separation_iterations} iterations[/]"
        )


if __name__ == "__main__":
    app()
