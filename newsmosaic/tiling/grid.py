"""Occupancy queries on a mosaic grid.

Cells are addressed as ``(row, col)`` tuples. Columns are bounded by
``grid.columns``; rows are unbounded.
"""

from typing import Iterator, Optional, Tuple

from newsmosaic.models.schemas import MosaicGrid, Position, TileShape, TileShapeId

CellKey = Tuple[int, int]


def span_cells(shape: TileShape, position: Position) -> Iterator[CellKey]:
    """Yield every cell a shape covers when its top-left is at ``position``."""
    for r in range(position.row, position.row + shape.height):
        for c in range(position.col, position.col + shape.width):
            yield (r, c)


def can_fit_tile(shape: TileShape, position: Position, grid: MosaicGrid) -> bool:
    """Check column bounds and collisions for a candidate placement.

    A shape wider than the grid never fits anywhere.
    """
    if shape.width > grid.columns:
        return False
    if position.col + shape.width > grid.columns:
        return False

    return not any(cell in grid.occupied_cells for cell in span_cells(shape, position))


def occupy_cells(shape: TileShape, position: Position, grid: MosaicGrid) -> None:
    """Mark the cells under a shape as occupied and index 2x2 anchors."""
    grid.occupied_cells.update(span_cells(shape, position))
    if shape.id == TileShapeId.FEATURE:
        grid.feature_anchors.add((position.row, position.col))


def is_adjacent_2x2(position: Position, grid: MosaicGrid) -> bool:
    """Check whether a 2x2 at ``position`` would share an edge with a placed 2x2.

    Tiles are edge-adjacent when aligned on one axis and exactly two
    cells apart on the other. Diagonal neighbours don't count. Only the
    four candidate anchors are looked up, so the cost does not grow with
    the number of placed tiles.
    """
    row, col = position.row, position.col
    neighbours = ((row, col - 2), (row, col + 2), (row - 2, col), (row + 2, col))
    return any(anchor in grid.feature_anchors for anchor in neighbours)


def find_next_empty_cell(
    start_row: int,
    start_col: int,
    grid: MosaicGrid,
    max_search_rows: int,
) -> Optional[Position]:
    """Scan left-to-right, top-to-bottom from a cursor for a free cell.

    Returns None once the scan moves more than ``max_search_rows`` rows
    past ``start_row``.
    """
    row, col = start_row, start_col

    while True:
        if not grid.is_occupied(row, col):
            return Position(row=row, col=col)

        col += 1
        if col >= grid.columns:
            col = 0
            row += 1

        if row > start_row + max_search_rows:
            return None
