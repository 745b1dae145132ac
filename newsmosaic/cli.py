"""Command-line interface for the mosaic layout engine."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from newsmosaic.config import get_settings
from newsmosaic.models.schemas import MosaicGrid, TileShapeId
from newsmosaic.tiling import RulesConfigError, TilingEngine, load_tiling_rules
from newsmosaic.tiling.grid import span_cells

# Configure logging with Rich handler for better formatting
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)
logger = logging.getLogger(__name__)

app = typer.Typer(
    name="newsmosaic",
    help="News mosaic layout engine - arrange headline tiles on a variable-size grid",
)
console = Console()

SHAPE_STYLES = {
    TileShapeId.SQUARE: "white",
    TileShapeId.WIDE: "cyan",
    TileShapeId.TALL: "magenta",
    TileShapeId.FEATURE: "bold yellow",
}


@app.command()
def generate(
    articles: int = typer.Argument(..., min=0, help="Number of articles to lay out"),
    columns: Optional[int] = typer.Option(
        None, "--columns", "-c", help="Grid columns, values below 1 use 1 (default: breakpoint for --width)"
    ),
    width: Optional[float] = typer.Option(
        None, "--width", "-w", help="Container width in pixels"
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Random seed for a reproducible layout"
    ),
    rules: Optional[Path] = typer.Option(
        None, "--rules", help="Path to a tiling rules JSON document"
    ),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON only"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file path (JSON)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """Generate a mosaic layout and display it."""
    settings = get_settings()
    _configure_logging(settings, verbose)

    if rules is not None:
        settings.tiling_rules_path = str(rules)
    if seed is not None:
        settings.random_seed = seed

    try:
        engine = TilingEngine.from_settings(settings)
    except RulesConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    container_width = settings.container_width_px if width is None else width
    if columns is None:
        if width is not None:
            columns = engine.columns_for_width(width)
        else:
            columns = settings.default_columns

    grid = engine.generate(articles, columns)
    payload = engine.render(grid, articles, container_width).model_dump(
        mode="json", by_alias=True
    )

    if json_output:
        output_json = json.dumps(payload, indent=2)
        if output:
            output.write_text(output_json)
        else:
            print(output_json)
        return

    _display_grid(engine, grid, articles, container_width)

    if output:
        output.write_text(json.dumps(payload, indent=2))
        console.print(f"\n[green]Layout saved to:[/green] {output}")


@app.command("rules")
def show_rules(
    rules: Optional[Path] = typer.Option(
        None, "--rules", help="Path to a tiling rules JSON document"
    ),
):
    """Show the tile shape catalog and placement rules."""
    settings = get_settings()
    _configure_logging(settings)
    try:
        tiling_rules = load_tiling_rules(rules or settings.tiling_rules_path)
    except RulesConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    total_weight = sum(s.weight for s in tiling_rules.tile_shapes) or 1

    table = Table(title="Tile Shapes")
    table.add_column("ID", style="cyan")
    table.add_column("Size")
    table.add_column("Weight", justify="right")
    table.add_column("Chance", justify="right")
    table.add_column("Description", style="dim")

    for shape in tiling_rules.tile_shapes:
        table.add_row(
            shape.id.value,
            f"{shape.width}x{shape.height}",
            f"{shape.weight:g}",
            f"{shape.weight / total_weight:.0%}",
            shape.description,
        )
    console.print(table)

    placement = tiling_rules.placement_rules
    grid_config = tiling_rules.grid_config

    meta = Table(show_header=False, box=None)
    meta.add_column("Key", style="dim")
    meta.add_column("Value")
    meta.add_row("Start", f"row {placement.start_position.row}, col {placement.start_position.col}")
    meta.add_row("Fallback", placement.fallback_strategy.value)
    meta.add_row("Degrade order", " > ".join(i.value for i in placement.degrade_order))
    meta.add_row("Avoid adjacent 2x2", str(placement.avoid_adjacent_2x2))
    meta.add_row(
        "Columns",
        f"mobile {grid_config.mobile_columns}, tablet {grid_config.tablet_columns}, "
        f"desktop {grid_config.desktop_columns}",
    )
    meta.add_row("Min tile / gap", f"{grid_config.min_tile_size_px:g}px / {grid_config.gap_px:g}px")
    console.print(meta)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    _configure_logging(settings)
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"Starting API server at http://{host}:{port}")
    uvicorn.run(
        "newsmosaic.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


def _configure_logging(settings, verbose: bool = False) -> None:
    """Apply the configured log level; --verbose forces DEBUG."""
    level = logging.DEBUG if verbose else settings.log_level
    logging.getLogger().setLevel(level)
    if verbose:
        logger.debug("Verbose logging enabled")


def _display_grid(
    engine: TilingEngine, grid: MosaicGrid, requested: int, container_width: float
) -> None:
    """Display a generated mosaic as a tile table and a cell map."""
    table = Table(title=f"Mosaic ({grid.columns} columns, {grid.rows} rows)")
    table.add_column("Article", justify="right", style="cyan")
    table.add_column("Shape")
    table.add_column("Row", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Pixels", justify="right")

    for tile in grid.tiles:
        dims = engine.tile_dimensions(tile.shape, grid.columns, container_width)
        style = SHAPE_STYLES.get(tile.shape.id, "white")
        table.add_row(
            str(tile.article_index),
            f"[{style}]{tile.shape.id.value}[/{style}]",
            str(tile.position.row),
            str(tile.position.col),
            f"{dims.width:.0f}x{dims.height:.0f}",
        )
    console.print(table)

    # Cell map: each cell shows the article index of the tile covering it
    owners = {}
    for tile in grid.tiles:
        for cell in span_cells(tile.shape, tile.position):
            owners[cell] = tile

    cell_map = Table(show_header=False, show_lines=True, title="Cell Map")
    for _ in range(grid.columns):
        cell_map.add_column(justify="center", min_width=3)

    for row in range(grid.rows):
        cells = []
        for col in range(grid.columns):
            tile = owners.get((row, col))
            if tile is None:
                cells.append("[dim]·[/dim]")
                continue
            style = SHAPE_STYLES.get(tile.shape.id, "white")
            cells.append(f"[{style}]{tile.article_index}[/{style}]")
        cell_map.add_row(*cells)
    console.print(cell_map)

    if grid.articles_placed < requested:
        console.print(
            f"[yellow]Warning:[/yellow] placed {grid.articles_placed} of {requested} tiles"
        )
    else:
        console.print(f"\n[green]Placed:[/green] {grid.articles_placed} tiles")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
