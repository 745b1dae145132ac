"""News mosaic layout engine."""

from newsmosaic.tiling import (
    RulesConfigError,
    TilingEngine,
    calculate_tile_dimensions,
    generate_mosaic,
    load_tiling_rules,
)

__version__ = "0.1.0"

__all__ = [
    "RulesConfigError",
    "TilingEngine",
    "calculate_tile_dimensions",
    "generate_mosaic",
    "load_tiling_rules",
]
