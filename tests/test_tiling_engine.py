"""Tests for the mosaic tiling engine.

Covers:
- Layout invariants over many random seeds (disjointness, bounds, indices)
- Scripted draws that pin down weighted selection and degradation
- The 2x2 adjacency rule
- Degenerate inputs: zero/negative columns, negative counts, no-fit catalogs
- Pixel dimensions and breakpoints
"""

import math
import random
from itertools import combinations

import pytest


# =============================================================================
# Helpers
# =============================================================================


class ScriptedRandom:
    """Random source that replays a fixed sequence of draws."""

    def __init__(self, *values: float):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def _cells(tile):
    from newsmosaic.tiling.grid import span_cells

    return set(span_cells(tile.shape, tile.position))


def _adjacent_2x2(a, b) -> bool:
    r1, c1 = a.position.row, a.position.col
    r2, c2 = b.position.row, b.position.col
    horizontally = r1 == r2 and (c1 == c2 + 2 or c1 + 2 == c2)
    vertically = c1 == c2 and (r1 == r2 + 2 or r1 + 2 == r2)
    return horizontally or vertically


def _layout(grid):
    return [(t.shape.id.value, t.position.row, t.position.col) for t in grid.tiles]


# =============================================================================
# Layout Invariants
# =============================================================================


class TestMosaicInvariants:
    """Properties every generated grid must satisfy."""

    @pytest.mark.parametrize("seed", range(25))
    def test_tiles_never_overlap(self, seed):
        """No cell is covered by two tiles."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(30, 5, rng=random.Random(seed))

        for a, b in combinations(grid.tiles, 2):
            assert not (_cells(a) & _cells(b)), f"{a.id} overlaps {b.id}"

    @pytest.mark.parametrize("seed", range(25))
    def test_tiles_stay_within_columns(self, seed):
        """Every tile fits inside the column count."""
        from newsmosaic.tiling import generate_mosaic

        columns = 4
        grid = generate_mosaic(20, columns, rng=random.Random(seed))

        for tile in grid.tiles:
            assert tile.position.col >= 0
            assert tile.position.col + tile.shape.width <= columns

    @pytest.mark.parametrize("seed", range(25))
    def test_occupied_cells_match_tile_area(self, seed):
        """occupied_cells holds exactly the cells of placed tiles."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(15, 4, rng=random.Random(seed))

        expected = set()
        for tile in grid.tiles:
            expected |= _cells(tile)

        assert len(grid.occupied_cells) == sum(t.shape.width * t.shape.height for t in grid.tiles)
        assert grid.occupied_cells == expected

    @pytest.mark.parametrize("seed", range(25))
    def test_no_adjacent_feature_tiles(self, seed):
        """With avoidAdjacent2x2 on, no two 2x2 tiles share an edge."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(30, 6, rng=random.Random(seed))
        features = [t for t in grid.tiles if t.shape.id == "2x2"]

        for a, b in combinations(features, 2):
            assert not _adjacent_2x2(a, b), f"{a.id} is adjacent to {b.id}"

    def test_large_run_indexes_feature_anchors(self):
        """Every placed 2x2 is indexed, and no indexed anchor has an edge neighbour."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(5000, 8, rng=random.Random(5))

        assert len(grid.tiles) == 5000
        anchors = {
            (t.position.row, t.position.col) for t in grid.tiles if t.shape.id == "2x2"
        }
        assert grid.feature_anchors == anchors
        for row, col in anchors:
            for neighbour in ((row, col + 2), (row + 2, col)):
                assert neighbour not in anchors

    def test_article_indices_are_sequential(self):
        """Indices run 0..n-1 in placement order."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(8, 4, rng=random.Random(7))

        assert [t.article_index for t in grid.tiles] == list(range(8))
        assert [t.id for t in grid.tiles] == [f"tile-{i}" for i in range(8)]

    def test_exact_count_when_space_allows(self):
        """10 articles over 4 columns are all placed."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(10, 4)

        assert len(grid.tiles) == 10
        assert grid.columns == 4

    def test_large_article_count(self):
        """50 articles over 6 columns are all placed."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(50, 6)

        assert len(grid.tiles) == 50

    def test_first_tile_at_origin(self):
        """The first tile sits at the default start cell."""
        from newsmosaic.tiling import generate_mosaic

        for seed in range(10):
            grid = generate_mosaic(5, 4, rng=random.Random(seed))
            assert grid.tiles[0].position.row == 0
            assert grid.tiles[0].position.col == 0

    def test_shapes_come_from_catalog(self):
        """Every placed shape is one of the configured shapes."""
        from newsmosaic.tiling import generate_mosaic, load_tiling_rules

        catalog = set(load_tiling_rules().tile_shapes)
        grid = generate_mosaic(20, 4, rng=random.Random(3))

        for tile in grid.tiles:
            assert tile.shape in catalog

    @pytest.mark.parametrize("seed", range(10))
    def test_narrow_grid_places_everything(self, seed):
        """Two columns still fit all 10 tiles via degradation."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(10, 2, rng=random.Random(seed))

        assert len(grid.tiles) == 10

    def test_runs_do_not_share_state(self):
        """Each call gets a fresh grid."""
        from newsmosaic.tiling import TilingEngine

        engine = TilingEngine(rng=random.Random(1))
        first = engine.generate(6, 4)
        second = engine.generate(6, 4)

        assert first is not second
        assert first.occupied_cells is not second.occupied_cells
        assert len(first.tiles) == 6
        assert len(second.tiles) == 6

    def test_same_seed_same_layout(self):
        """Seeded random sources reproduce a layout."""
        from newsmosaic.tiling import generate_mosaic

        a = generate_mosaic(25, 5, rng=random.Random(42))
        b = generate_mosaic(25, 5, rng=random.Random(42))

        assert _layout(a) == _layout(b)


# =============================================================================
# Scripted Placement
# =============================================================================


class TestScriptedPlacement:
    """Fixed draws give fixed layouts.

    Default weights are 55/20/15/10 (1x1, 2x1, 1x2, 2x2), so a draw of
    0.0 picks 1x1, 0.6 picks 2x1, 0.8 picks 1x2 and 0.99 picks 2x2.
    """

    def test_low_draws_fill_row_by_row(self):
        """All-1x1 draws fill cells in scan order."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(6, 4, rng=ScriptedRandom(0.0))

        assert _layout(grid) == [
            ("1x1", 0, 0),
            ("1x1", 0, 1),
            ("1x1", 0, 2),
            ("1x1", 0, 3),
            ("1x1", 1, 0),
            ("1x1", 1, 1),
        ]

    def test_rejected_feature_degrades(self):
        """A 2x2 that would touch another 2x2 falls back to the degrade order."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(4, 4, rng=ScriptedRandom(0.99))

        assert _layout(grid) == [
            ("2x2", 0, 0),
            ("2x1", 0, 2),  # 2x2 here would sit beside the first one
            ("2x2", 1, 2),
            ("2x1", 2, 0),  # 2x2 here would sit below the first one
        ]
        assert len(grid.occupied_cells) == 12

    def test_wide_draw_at_last_column_degrades_to_tall(self):
        """A 2x1 that overflows the right edge degrades to 1x2."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(3, 3, rng=ScriptedRandom(0.6))

        assert _layout(grid) == [
            ("2x1", 0, 0),
            ("1x2", 0, 2),
            ("2x1", 1, 0),
        ]

    def test_one_draw_per_cell(self):
        """A failed draw is not re-rolled."""
        from newsmosaic.tiling import generate_mosaic

        rng = ScriptedRandom(0.6)
        generate_mosaic(3, 3, rng=rng)

        assert rng.calls == 3

    def test_skip_strategy_leaves_cell_empty(self):
        """With fallbackStrategy=skip a failed draw leaves the cell unfilled."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(
            3,
            3,
            rules_override={"placementRules": {"fallbackStrategy": "skip"}},
            rng=ScriptedRandom(0.6),
        )

        assert _layout(grid) == [
            ("2x1", 0, 0),
            ("2x1", 1, 0),
            ("2x1", 2, 0),
        ]
        assert not grid.is_occupied(0, 2)
        assert not grid.is_occupied(1, 2)

    def test_adjacency_rule_can_be_disabled(self):
        """With avoidAdjacent2x2 off, feature tiles may touch."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(
            2,
            4,
            rules_override={"placementRules": {"avoidAdjacent2x2": False}},
            rng=ScriptedRandom(0.99),
        )

        assert _layout(grid) == [("2x2", 0, 0), ("2x2", 0, 2)]

    def test_custom_start_position(self):
        """Placement starts from the configured cell."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(
            2,
            4,
            rules_override={"placementRules": {"startPosition": {"row": 1, "col": 2}}},
            rng=ScriptedRandom(0.0),
        )

        assert _layout(grid) == [("1x1", 1, 2), ("1x1", 1, 3)]


# =============================================================================
# Degenerate Inputs
# =============================================================================


class TestDegenerateInputs:
    """The engine never raises or hangs on odd input."""

    def test_zero_articles(self):
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(0, 4)

        assert grid.tiles == []
        assert grid.occupied_cells == set()

    def test_negative_articles(self):
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(-3, 4)

        assert grid.tiles == []

    @pytest.mark.parametrize("columns", [0, -1, -10])
    def test_non_positive_columns_clamped_to_one(self, columns):
        """Columns below 1 become a single column of one-cell-wide tiles."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(5, columns, rng=random.Random(0))

        assert grid.columns == 1
        assert len(grid.tiles) == 5
        assert all(t.shape.width == 1 for t in grid.tiles)
        assert all(t.position.col == 0 for t in grid.tiles)

    def test_no_shape_ever_fits_terminates(self):
        """A catalog that cannot fit the grid ends with a shortfall, not a hang."""
        from newsmosaic.tiling import generate_mosaic

        grid = generate_mosaic(
            3,
            1,
            rules_override={
                "tileShapes": [
                    {"id": "2x2", "width": 2, "height": 2, "weight": 1, "description": "Big"}
                ],
            },
            max_search_rows=5,
        )

        assert grid.tiles == []
        assert grid.occupied_cells == set()

    def test_zero_total_weight_uses_degrade_order(self):
        """With every weight at 0 the degrade order still places tiles."""
        from newsmosaic.tiling import generate_mosaic

        shapes = [
            {"id": "1x1", "width": 1, "height": 1, "weight": 0},
            {"id": "2x1", "width": 2, "height": 1, "weight": 0},
        ]
        grid = generate_mosaic(
            3, 4, rules_override={"tileShapes": shapes}, rng=random.Random(0)
        )

        assert [t.shape.id.value for t in grid.tiles] == ["2x1", "2x1", "2x1"]

    def test_zero_weight_shape_never_drawn(self):
        """A draw of 0.0 skips a leading zero-weight shape.

        Zero-weight shapes get no share of the draw. A plain cumulative
        scan with `draw <= accumulated` would pick the leading 2x1 at
        exactly 0.0; this selector skips it so that the chance of every
        shape stays proportional to its weight.
        """
        from newsmosaic.tiling import generate_mosaic

        shapes = [
            {"id": "2x1", "width": 2, "height": 1, "weight": 0},
            {"id": "1x1", "width": 1, "height": 1, "weight": 1},
        ]
        grid = generate_mosaic(
            2, 4, rules_override={"tileShapes": shapes}, rng=ScriptedRandom(0.0)
        )

        assert [t.shape.id.value for t in grid.tiles] == ["1x1", "1x1"]

    def test_override_shapes_only(self):
        """A tileShapes-only override keeps the other defaults and uses only those shapes."""
        from newsmosaic.tiling import generate_mosaic

        override = {
            "tileShapes": [
                {"id": "1x1", "width": 1, "height": 1, "weight": 100, "description": "Only shape"}
            ]
        }
        grid = generate_mosaic(10, 4, rules_override=override)

        assert len(grid.tiles) == 10
        assert all(t.shape.id == "1x1" for t in grid.tiles)
        assert all(t.shape.description == "Only shape" for t in grid.tiles)


# =============================================================================
# Pixel Dimensions
# =============================================================================


class TestTileDimensions:
    """Tests for calculate_tile_dimensions and breakpoints."""

    @pytest.fixture
    def rules(self):
        from newsmosaic.tiling import load_tiling_rules

        return load_tiling_rules()

    def test_square_tile(self, rules):
        """(400 - 3*8) / 4 = 94px per cell."""
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        dims = calculate_tile_dimensions(rules.shape(TileShapeId.SQUARE), rules.grid_config, 4, 400)

        assert dims.width == pytest.approx(94)
        assert dims.height == pytest.approx(94)

    def test_feature_tile(self, rules):
        """94*2 + 8 = 196px."""
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        dims = calculate_tile_dimensions(rules.shape(TileShapeId.FEATURE), rules.grid_config, 4, 400)

        assert dims.width == pytest.approx(196)
        assert dims.height == pytest.approx(196)

    def test_wide_tile_includes_gap(self, rules):
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        dims = calculate_tile_dimensions(rules.shape(TileShapeId.WIDE), rules.grid_config, 4, 400)

        assert dims.width == pytest.approx(94 * 2 + 8)
        assert dims.height == pytest.approx(94)

    def test_small_container_respects_minimum(self, rules):
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        dims = calculate_tile_dimensions(rules.shape(TileShapeId.SQUARE), rules.grid_config, 4, 200)

        assert dims.width >= rules.grid_config.min_tile_size_px
        assert dims.height >= rules.grid_config.min_tile_size_px

    @pytest.mark.parametrize("width", [0, -250, float("nan"), float("-inf")])
    def test_degenerate_width_clamps_to_minimum(self, rules, width):
        """Zero, negative and non-finite widths fall back to the minimum size."""
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        square = calculate_tile_dimensions(rules.shape(TileShapeId.SQUARE), rules.grid_config, 4, width)
        feature = calculate_tile_dimensions(rules.shape(TileShapeId.FEATURE), rules.grid_config, 4, width)

        assert square.width == 90
        assert square.height == 90
        assert feature.width == 90 * 2 + 8
        assert not math.isnan(feature.height)

    def test_zero_columns_treated_as_one(self, rules):
        from newsmosaic.models.schemas import TileShapeId
        from newsmosaic.tiling import calculate_tile_dimensions

        dims = calculate_tile_dimensions(rules.shape(TileShapeId.SQUARE), rules.grid_config, 0, 400)

        assert dims.width == pytest.approx(400)

    @pytest.mark.parametrize(
        "width,expected",
        [(320, 4), (639, 4), (640, 6), (1023, 6), (1024, 8), (1920, 8)],
    )
    def test_columns_for_width(self, rules, width, expected):
        from newsmosaic.tiling import columns_for_width

        assert columns_for_width(width, rules.grid_config) == expected

    def test_engine_render_attaches_dimensions(self):
        from newsmosaic.tiling import TilingEngine

        engine = TilingEngine(rng=ScriptedRandom(0.0))
        grid = engine.generate(3, 4)
        response = engine.render(grid, requested=5, container_width=400)

        assert response.placed == 3
        assert response.requested == 5
        assert response.occupied_cell_count == 3
        assert [t.article_index for t in response.tiles] == [0, 1, 2]
        assert response.tiles[0].dimensions.width == pytest.approx(94)
