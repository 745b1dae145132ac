"""Pydantic models for structured data."""

from .schemas import (
    FallbackStrategy,
    GridConfig,
    ImportanceModifier,
    ImportanceModifiers,
    MosaicGrid,
    MosaicRequest,
    MosaicResponse,
    PlacedTile,
    PlacementRules,
    Position,
    RenderedTile,
    TileDimensions,
    TileShape,
    TileShapeId,
    TilingRules,
)

__all__ = [
    "FallbackStrategy",
    "GridConfig",
    "ImportanceModifier",
    "ImportanceModifiers",
    "MosaicGrid",
    "MosaicRequest",
    "MosaicResponse",
    "PlacedTile",
    "PlacementRules",
    "Position",
    "RenderedTile",
    "TileDimensions",
    "TileShape",
    "TileShapeId",
    "TilingRules",
]
