"""Shape-selection policies.

The placement driver asks a selector for a shape at a free cell. Two
concrete policies exist: a single weighted random draw, and an ordered
degradation walk. ``FallbackChain`` composes them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Protocol, Sequence

from newsmosaic.models.schemas import (
    MosaicGrid,
    PlacementRules,
    Position,
    TileShape,
    TileShapeId,
    TilingRules,
)
from newsmosaic.tiling.grid import can_fit_tile, is_adjacent_2x2

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything with a ``random()`` returning floats in [0, 1)."""

    def random(self) -> float: ...


def shape_allowed(
    shape: TileShape,
    position: Position,
    grid: MosaicGrid,
    placement_rules: PlacementRules,
) -> bool:
    """Fit check plus the 2x2 adjacency rule when it is enabled."""
    if not can_fit_tile(shape, position, grid):
        return False

    if shape.id == TileShapeId.FEATURE and placement_rules.avoid_adjacent_2x2:
        if is_adjacent_2x2(position, grid):
            return False

    return True


class ShapeSelector(ABC):
    """Policy that picks a shape for a free cell, or nothing."""

    @abstractmethod
    def select(self, position: Position, grid: MosaicGrid) -> Optional[TileShape]:
        """Return a shape that may be placed at ``position``, or None."""


class WeightedRandomSelector(ShapeSelector):
    """One weighted draw from the catalog, no re-roll.

    If the drawn shape does not fit (or breaks the 2x2 rule) the
    selection fails and the caller falls back.
    """

    def __init__(
        self,
        shapes: Sequence[TileShape],
        placement_rules: PlacementRules,
        rng: RandomSource,
    ):
        self.shapes = tuple(shapes)
        self.placement_rules = placement_rules
        self.rng = rng
        self.total_weight = sum(shape.weight for shape in self.shapes)

    def draw(self) -> Optional[TileShape]:
        """Pick a shape with probability proportional to its weight."""
        if self.total_weight <= 0:
            return None

        target = self.rng.random() * self.total_weight
        accumulated = 0.0
        for shape in self.shapes:
            if shape.weight <= 0:
                continue
            accumulated += shape.weight
            if target <= accumulated:
                return shape

        # Float rounding can leave target a hair above the final sum.
        return next((s for s in reversed(self.shapes) if s.weight > 0), None)

    def select(self, position: Position, grid: MosaicGrid) -> Optional[TileShape]:
        shape = self.draw()
        if shape is None:
            return None

        if shape_allowed(shape, position, grid, self.placement_rules):
            return shape

        logger.debug(f"Drawn shape {shape.id.value} rejected at ({position.row}, {position.col})")
        return None


class DegradeSelector(ShapeSelector):
    """Walk ``degrade_order`` and return the first shape that is allowed."""

    def __init__(self, rules: TilingRules):
        self.placement_rules = rules.placement_rules
        self.order = tuple(
            shape
            for shape in (rules.shape(i) for i in rules.placement_rules.degrade_order)
            if shape is not None
        )

    def select(self, position: Position, grid: MosaicGrid) -> Optional[TileShape]:
        for shape in self.order:
            if shape_allowed(shape, position, grid, self.placement_rules):
                return shape
        return None


class FallbackChain(ShapeSelector):
    """Try each selector in turn until one returns a shape."""

    def __init__(self, *selectors: ShapeSelector):
        self.selectors = selectors

    def select(self, position: Position, grid: MosaicGrid) -> Optional[TileShape]:
        for selector in self.selectors:
            shape = selector.select(position, grid)
            if shape is not None:
                return shape
        return None
