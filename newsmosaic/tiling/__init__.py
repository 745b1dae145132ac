"""Mosaic tiling engine.

Turns an article count and a column count into a collision-free grid
of variable-size tiles.
"""

from newsmosaic.tiling.engine import (
    DEFAULT_MAX_SEARCH_ROWS,
    TilingEngine,
    calculate_tile_dimensions,
    columns_for_width,
    generate_mosaic,
)
from newsmosaic.tiling.rules import RulesConfigError, load_tiling_rules, merge_rules
from newsmosaic.tiling.sizing import (
    MIN_READABLE_TILE_PX,
    calculate_base_tile_size,
    calculate_readable_columns,
)

__all__ = [
    "DEFAULT_MAX_SEARCH_ROWS",
    "MIN_READABLE_TILE_PX",
    "RulesConfigError",
    "TilingEngine",
    "calculate_base_tile_size",
    "calculate_readable_columns",
    "calculate_tile_dimensions",
    "columns_for_width",
    "generate_mosaic",
    "load_tiling_rules",
    "merge_rules",
]
