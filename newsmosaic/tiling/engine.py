"""Mosaic tiling engine.

Places one tile per article on a fixed-width grid. Each free cell, found
by a left-to-right, top-to-bottom scan, gets a shape from a single
weighted random draw; if the drawn shape doesn't fit, the configured
fallback strategy decides what happens. Every run owns a fresh grid.
"""

import logging
import math
import random
from typing import Any, Mapping, Optional, TYPE_CHECKING

from newsmosaic.models.schemas import (
    FallbackStrategy,
    GridConfig,
    MosaicGrid,
    MosaicResponse,
    PlacedTile,
    Position,
    RenderedTile,
    TileDimensions,
    TileShape,
    TilingRules,
)
from newsmosaic.tiling.grid import find_next_empty_cell, occupy_cells
from newsmosaic.tiling.rules import load_tiling_rules, merge_rules
from newsmosaic.tiling.selection import (
    DegradeSelector,
    FallbackChain,
    RandomSource,
    ShapeSelector,
    WeightedRandomSelector,
)

if TYPE_CHECKING:
    from newsmosaic.config import Settings

logger = logging.getLogger(__name__)

# How far past the cursor row a scan may go before the grid counts as full.
DEFAULT_MAX_SEARCH_ROWS = 100

MOBILE_BREAKPOINT_PX = 640
TABLET_BREAKPOINT_PX = 1024


class TilingEngine:
    """Generates mosaic layouts from a set of tiling rules.

    Usage:
        engine = TilingEngine(rng=random.Random(42))
        grid = engine.generate(article_count=12, columns=4)
        for tile in grid.tiles:
            dims = engine.tile_dimensions(tile.shape, grid.columns, 800)
    """

    def __init__(
        self,
        rules: Optional[TilingRules] = None,
        rng: Optional[RandomSource] = None,
        max_search_rows: int = DEFAULT_MAX_SEARCH_ROWS,
    ):
        """Initialize the engine.

        Args:
            rules: Tiling rules. Defaults to the packaged rules document.
            rng: Random source for shape draws. Defaults to an unseeded
                ``random.Random``.
            max_search_rows: Scan bound, in rows past the cursor.
        """
        self.rules = rules if rules is not None else load_tiling_rules()
        self.rng = rng if rng is not None else random.Random()
        self.max_search_rows = max(1, max_search_rows)
        self.selector = self._build_selector()

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        rules_override: Optional[Mapping[str, Any]] = None,
        rng: Optional[RandomSource] = None,
    ) -> "TilingEngine":
        """Create an engine from application Settings.

        Raises:
            RulesConfigError: If the configured rules document or the
                override is invalid.
        """
        rules = merge_rules(load_tiling_rules(settings.tiling_rules_path), rules_override)
        if rng is None and settings.random_seed is not None:
            rng = random.Random(settings.random_seed)

        return cls(rules=rules, rng=rng, max_search_rows=settings.max_search_rows)

    def _build_selector(self) -> ShapeSelector:
        placement = self.rules.placement_rules
        weighted = WeightedRandomSelector(self.rules.tile_shapes, placement, self.rng)

        if placement.fallback_strategy == FallbackStrategy.DEGRADE:
            return FallbackChain(weighted, DegradeSelector(self.rules))
        return weighted

    def generate(self, article_count: int, columns: int = 4) -> MosaicGrid:
        """Lay out ``article_count`` tiles on a grid ``columns`` wide.

        Returns fewer tiles than requested only when the scan bound is
        exceeded. Never raises for degenerate counts.
        """
        if columns < 1:
            logger.warning(f"Column count {columns} is below 1, using 1")
            columns = 1
        article_count = max(0, article_count)

        grid = MosaicGrid(columns=columns)
        start = self.rules.placement_rules.start_position
        row = start.row + start.col // columns
        col = start.col % columns
        # Row of the last successful placement; skipped cells alone may not
        # carry the cursor further than the scan bound past it.
        anchor_row = row

        while grid.articles_placed < article_count:
            position = find_next_empty_cell(row, col, grid, self.max_search_rows)
            if position is None or position.row > anchor_row + self.max_search_rows:
                logger.warning(
                    f"Ran out of grid space: placed {grid.articles_placed} "
                    f"of {article_count} tiles"
                )
                break

            shape = self.selector.select(position, grid)
            if shape is not None:
                self._place(grid, shape, position)
                anchor_row = position.row
            else:
                logger.debug(f"No shape fits at ({position.row}, {position.col}), skipping cell")

            row, col = position.row, position.col + 1
            if col >= columns:
                col = 0
                row += 1

        logger.debug(
            f"Generated mosaic: {grid.articles_placed} tiles, {columns} columns, "
            f"{grid.rows} rows"
        )
        return grid

    @staticmethod
    def _place(grid: MosaicGrid, shape: TileShape, position: Position) -> PlacedTile:
        index = grid.articles_placed
        tile = PlacedTile(
            id=f"tile-{index}",
            shape=shape,
            position=position,
            article_index=index,
        )
        grid.tiles.append(tile)
        occupy_cells(shape, position, grid)
        return tile

    def tile_dimensions(
        self, shape: TileShape, columns: int, container_width: float
    ) -> TileDimensions:
        """Pixel size of ``shape`` under this engine's grid config."""
        return calculate_tile_dimensions(shape, self.rules.grid_config, columns, container_width)

    def columns_for_width(self, container_width: float) -> int:
        return columns_for_width(container_width, self.rules.grid_config)

    def render(
        self, grid: MosaicGrid, requested: int, container_width: float
    ) -> MosaicResponse:
        """Attach pixel dimensions to every placed tile of ``grid``."""
        tiles = [
            RenderedTile(
                id=tile.id,
                shape_id=tile.shape.id,
                row=tile.position.row,
                col=tile.position.col,
                width_cells=tile.shape.width,
                height_cells=tile.shape.height,
                article_index=tile.article_index,
                dimensions=self.tile_dimensions(tile.shape, grid.columns, container_width),
            )
            for tile in grid.tiles
        ]
        return MosaicResponse(
            columns=grid.columns,
            requested=requested,
            placed=grid.articles_placed,
            occupied_cell_count=len(grid.occupied_cells),
            tiles=tiles,
        )


def generate_mosaic(
    article_count: int,
    columns: int = 4,
    rules_override: Optional[Mapping[str, Any]] = None,
    rng: Optional[RandomSource] = None,
    max_search_rows: int = DEFAULT_MAX_SEARCH_ROWS,
) -> MosaicGrid:
    """Generate a mosaic layout using the default rules.

    Args:
        article_count: Number of tiles to place.
        columns: Grid width in cells. Values below 1 are treated as 1.
        rules_override: Partial rules document deep-merged over the defaults.
        rng: Random source for shape draws.
        max_search_rows: Scan bound, in rows past the cursor.

    Returns:
        The populated MosaicGrid.

    Raises:
        RulesConfigError: If the override produces invalid rules.
    """
    rules = merge_rules(load_tiling_rules(), rules_override)
    engine = TilingEngine(rules=rules, rng=rng, max_search_rows=max_search_rows)
    return engine.generate(article_count, columns)


def calculate_tile_dimensions(
    shape: TileShape,
    grid_config: GridConfig,
    columns: int,
    container_width: float,
) -> TileDimensions:
    """Convert a shape to pixels for a container of the given width.

    Each cell is ``(container_width - gaps) / columns`` wide, but never
    less than ``min_tile_size_px``. Multi-cell spans include the gaps
    they cover.
    """
    min_size = grid_config.min_tile_size_px
    gap = grid_config.gap_px
    columns = max(1, columns)

    if math.isfinite(container_width) and container_width > 0:
        available_width = container_width - (columns - 1) * gap
        base_size = max(min_size, available_width / columns)
    else:
        base_size = min_size

    return TileDimensions(
        width=base_size * shape.width + (shape.width - 1) * gap,
        height=base_size * shape.height + (shape.height - 1) * gap,
    )


def columns_for_width(container_width: float, grid_config: GridConfig) -> int:
    """Pick the breakpoint column count for a container width."""
    if container_width < MOBILE_BREAKPOINT_PX:
        return grid_config.mobile_columns
    if container_width < TABLET_BREAKPOINT_PX:
        return grid_config.tablet_columns
    return grid_config.desktop_columns
