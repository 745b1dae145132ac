"""Pydantic models for tiling rules and mosaic layouts.

The rules document uses camelCase keys on disk and on the wire; every
model here also accepts its snake_case field names.
"""

from enum import Enum
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TileShapeId(str, Enum):
    """Closed set of tile shapes, named width x height in grid cells."""

    SQUARE = "1x1"
    WIDE = "2x1"
    TALL = "1x2"
    FEATURE = "2x2"


class FallbackStrategy(str, Enum):
    """What the placement driver does when the weighted pick does not fit."""

    DEGRADE = "degrade"
    SKIP = "skip"


class _RulesModel(BaseModel):
    """Base for the immutable parts of the rules document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


# =============================================================================
# Rules Document
# =============================================================================


class TileShape(_RulesModel):
    """A named template tiles are instantiated from."""

    id: TileShapeId = Field(description="Shape identifier")
    width: int = Field(ge=1, description="Width in grid cells")
    height: int = Field(ge=1, description="Height in grid cells")
    weight: float = Field(ge=0, description="Relative weight for random selection")
    description: str = Field(default="", description="Human label")


class GridConfig(_RulesModel):
    """Breakpoint column counts and pixel sizing."""

    mobile_columns: int = Field(ge=1, alias="mobileColumns")
    tablet_columns: int = Field(ge=1, alias="tabletColumns")
    desktop_columns: int = Field(ge=1, alias="desktopColumns")
    min_tile_size_px: float = Field(ge=0, alias="minTileSizePx")
    gap_px: float = Field(ge=0, alias="gapPx")


class Position(_RulesModel):
    """Row and column of a grid cell."""

    row: int = Field(ge=0)
    col: int = Field(ge=0)


class PlacementRules(_RulesModel):
    """Policy knobs for the placement driver."""

    start_position: Position = Field(
        default_factory=lambda: Position(row=0, col=0), alias="startPosition"
    )
    fallback_strategy: FallbackStrategy = Field(
        default=FallbackStrategy.DEGRADE, alias="fallbackStrategy"
    )
    degrade_order: Tuple[TileShapeId, ...] = Field(
        default=(
            TileShapeId.FEATURE,
            TileShapeId.WIDE,
            TileShapeId.TALL,
            TileShapeId.SQUARE,
        ),
        alias="degradeOrder",
        description="Shapes tried in order when the weighted pick fails",
    )
    avoid_adjacent_2x2: bool = Field(default=True, alias="avoidAdjacent2x2")
    # Reserved: accepted and validated, no effect on placement.
    alternate_orientation: bool = Field(default=False, alias="alternateOrientation")


class ImportanceModifier(_RulesModel):
    """Shape preference for one class of article importance."""

    preferred_shapes: Tuple[TileShapeId, ...] = Field(alias="preferredShapes")
    weight_multiplier: float = Field(gt=0, alias="weightMultiplier")


class ImportanceModifiers(_RulesModel):
    """Reserved importance tiers. Not consulted by the shape selector."""

    breaking_news: ImportanceModifier = Field(alias="breakingNews")
    featured: ImportanceModifier
    evergreen: ImportanceModifier


class TilingRules(_RulesModel):
    """The complete, validated rules document."""

    grid_config: GridConfig = Field(alias="gridConfig")
    tile_shapes: Tuple[TileShape, ...] = Field(min_length=1, alias="tileShapes")
    placement_rules: PlacementRules = Field(
        default_factory=PlacementRules, alias="placementRules"
    )
    importance_modifiers: ImportanceModifiers = Field(alias="importanceModifiers")

    @model_validator(mode="after")
    def _check_unique_shapes(self) -> "TilingRules":
        # degradeOrder may name shapes outside the catalog; those are skipped.
        ids = [shape.id for shape in self.tile_shapes]
        if len(set(ids)) != len(ids):
            raise ValueError(f"tileShapes contains duplicate ids: {[i.value for i in ids]}")
        return self

    def shape(self, shape_id: TileShapeId) -> Optional[TileShape]:
        """Look up a catalog shape by id."""
        for shape in self.tile_shapes:
            if shape.id == shape_id:
                return shape
        return None

    def to_document(self) -> dict:
        """Serialize back to the camelCase rules document."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Layout Output
# =============================================================================


class PlacedTile(BaseModel):
    """One tile of a mosaic, bound to an article by index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Stable tile identifier")
    shape: TileShape
    position: Position = Field(description="Top-left cell of the tile")
    article_index: int = Field(ge=0, alias="articleIndex")


class MosaicGrid(BaseModel):
    """Working state of one placement run, returned to the caller when done."""

    model_config = ConfigDict(populate_by_name=True)

    columns: int = Field(ge=1)
    tiles: List[PlacedTile] = Field(default_factory=list)
    occupied_cells: Set[Tuple[int, int]] = Field(
        default_factory=set, alias="occupiedCells"
    )
    feature_anchors: Set[Tuple[int, int]] = Field(
        default_factory=set,
        alias="featureAnchors",
        description="Top-left cells of placed 2x2 tiles",
    )

    @property
    def articles_placed(self) -> int:
        return len(self.tiles)

    @property
    def rows(self) -> int:
        """Number of rows touched by any tile."""
        if not self.occupied_cells:
            return 0
        return max(row for row, _ in self.occupied_cells) + 1

    def is_occupied(self, row: int, col: int) -> bool:
        return (row, col) in self.occupied_cells


class TileDimensions(BaseModel):
    """Pixel size of a tile."""

    width: float
    height: float


# =============================================================================
# API Models
# =============================================================================


class MosaicRequest(BaseModel):
    """Request body for generating a mosaic."""

    model_config = ConfigDict(populate_by_name=True)

    article_count: int = Field(ge=0, alias="articleCount")
    columns: Optional[int] = Field(
        default=None,
        description=(
            "Column count, clamped to at least 1; chosen from containerWidth "
            "breakpoints when omitted"
        ),
    )
    container_width: float = Field(default=400, alias="containerWidth")
    seed: Optional[int] = Field(default=None, description="Seed for a reproducible layout")
    rules_override: Optional[dict] = Field(
        default=None,
        alias="rulesOverride",
        description="Partial rules document merged over the defaults",
    )


class RenderedTile(BaseModel):
    """A placed tile with its pixel dimensions."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    shape_id: TileShapeId = Field(alias="shapeId")
    row: int
    col: int
    width_cells: int = Field(alias="widthCells")
    height_cells: int = Field(alias="heightCells")
    article_index: int = Field(alias="articleIndex")
    dimensions: TileDimensions


class MosaicResponse(BaseModel):
    """Response body for a generated mosaic."""

    model_config = ConfigDict(populate_by_name=True)

    columns: int
    requested: int
    placed: int
    occupied_cell_count: int = Field(alias="occupiedCellCount")
    tiles: List[RenderedTile]
