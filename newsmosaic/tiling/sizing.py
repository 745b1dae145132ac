"""Readable column sizing.

Narrows the column count so that headline tiles stay wide enough to
read. This is stricter than ``minTileSizePx`` in the rules document,
which only guarantees a tap target.
"""

import math

MIN_READABLE_TILE_PX = 140


def calculate_readable_columns(
    container_width: float,
    requested_columns: int,
    gap_px: float,
    min_readable_px: float = MIN_READABLE_TILE_PX,
) -> int:
    """Reduce ``requested_columns`` until each column is at least ``min_readable_px`` wide.

    Returns the requested count (at least 1) when the container width is
    unknown, and never returns fewer than 1 column.
    """
    cols = max(1, requested_columns)

    if not math.isfinite(container_width) or container_width <= 0:
        return cols

    while cols > 1:
        available_width = container_width - (cols - 1) * gap_px
        if available_width / cols >= min_readable_px:
            break
        cols -= 1

    return max(1, cols)


def calculate_base_tile_size(
    container_width: float,
    columns: int,
    gap_px: float,
    min_readable_px: float = MIN_READABLE_TILE_PX,
) -> float:
    """Whole-pixel width of one column, floored at ``min_readable_px``."""
    if not math.isfinite(container_width) or container_width <= 0 or columns <= 0:
        return min_readable_px

    available_width = container_width - (columns - 1) * gap_px
    return max(min_readable_px, math.floor(available_width / columns))
