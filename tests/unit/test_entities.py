"""Tests for placed parts, boards and nesting results."""

from __future__ import annotations

import pytest

from sheetnest.domain import (
    Board,
    EdgeBanding,
    GrainDirection,
    NestingResult,
    Part,
    PlacedPart,
    UnplaceablePart,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def door() -> Part:
    return Part(
        name="Door",
        width=400.0,
        height=700.0,
        thickness=18.0,
        material="MDF",
        edge_banding=EdgeBanding.FOUR_EDGES,
    )


def _placed(part: Part, instance_id: int, x: float, y: float, rotated: bool = False) -> PlacedPart:
    return PlacedPart.from_part(
        part, instance_id=instance_id, x=x, y=y, rotated=rotated, board_index=0
    )


# =============================================================================
# PlacedPart Tests
# =============================================================================


class TestPlacedPart:
    """Tests for PlacedPart."""

    def test_from_part_copies_fields(self, door: Part) -> None:
        placed = _placed(door, 7, 10.0, 20.0)
        assert placed.name == "Door"
        assert placed.material == "MDF"
        assert placed.edge_banding is EdgeBanding.FOUR_EDGES
        assert placed.grain_direction is GrainDirection.ANY
        assert placed.instance_id == 7

    def test_placed_dimensions_not_rotated(self, door: Part) -> None:
        placed = _placed(door, 1, 0.0, 0.0)
        assert placed.placed_width == 400.0
        assert placed.placed_height == 700.0

    def test_placed_dimensions_rotated(self, door: Part) -> None:
        placed = _placed(door, 1, 0.0, 0.0, rotated=True)
        assert placed.placed_width == 700.0  # Height becomes width
        assert placed.placed_height == 400.0
        assert placed.width == 400.0  # Part type dimensions are unchanged

    def test_occupied_rect_adds_kerf(self, door: Part) -> None:
        placed = _placed(door, 1, 100.0, 50.0)
        occupied = placed.occupied_rect(3.0)
        assert (occupied.x, occupied.y) == (100.0, 50.0)
        assert occupied.width == 403.0
        assert occupied.height == 703.0

    def test_negative_position_raises(self, door: Part) -> None:
        with pytest.raises(ValueError, match="Position coordinates must be non-negative"):
            _placed(door, 1, -1.0, 0.0)

    def test_to_dict_rounds_values(self) -> None:
        part = Part(name="Strip", width=100.123, height=50.0, thickness=18.0, material="MDF")
        data = _placed(part, 3, 1.005, 2.0).to_dict()
        assert data["width"] == 100.12
        assert data["instance_id"] == 3
        assert data["grain_direction"] == "any"
        assert data["edge_banding"] == "None"
        assert data["rotated"] is False


# =============================================================================
# Board Tests
# =============================================================================


class TestBoard:
    """Tests for Board."""

    def test_empty_board(self) -> None:
        board = Board(material="MDF", stock_width=2440.0, stock_height=1220.0)
        assert board.part_count == 0
        assert board.used_area == 0.0
        assert board.waste_percentage == 100.0
        assert board.efficiency_percentage == 0.0

    def test_areas(self, door: Part) -> None:
        board = Board(
            material="MDF",
            stock_width=1000.0,
            stock_height=1000.0,
            placed_parts=(_placed(door, 1, 0.0, 0.0), _placed(door, 2, 403.0, 0.0)),
        )
        assert board.used_area == 2 * 400.0 * 700.0
        assert board.total_area == 1_000_000.0
        assert board.waste_area == 440_000.0
        assert board.waste_percentage == pytest.approx(44.0)
        assert board.efficiency_percentage == pytest.approx(56.0)

    def test_material_mismatch_raises(self) -> None:
        oak = Part(name="Top", width=100.0, height=100.0, thickness=18.0, material="Oak")
        with pytest.raises(ValueError, match="cannot be placed"):
            Board(
                material="MDF",
                stock_width=1000.0,
                stock_height=1000.0,
                placed_parts=(_placed(oak, 1, 0.0, 0.0),),
            )

    def test_part_outside_sheet_raises(self, door: Part) -> None:
        with pytest.raises(ValueError, match="extends beyond"):
            Board(
                material="MDF",
                stock_width=1000.0,
                stock_height=1000.0,
                placed_parts=(_placed(door, 1, 700.0, 0.0),),
            )

    def test_invalid_stock_raises(self) -> None:
        with pytest.raises(ValueError, match="Stock dimensions must be positive"):
            Board(material="MDF", stock_width=0.0, stock_height=1220.0)

    def test_to_dict(self, door: Part) -> None:
        board = Board(
            material="MDF",
            stock_width=1000.0,
            stock_height=1000.0,
            placed_parts=(_placed(door, 1, 0.0, 0.0),),
            index=2,
        )
        data = board.to_dict()
        assert data["index"] == 2
        assert data["efficiency_percentage"] == 28.0
        assert len(data["parts"]) == 1


# =============================================================================
# NestingResult Tests
# =============================================================================


class TestNestingResult:
    """Tests for NestingResult aggregates."""

    @pytest.fixture
    def result(self, door: Part) -> NestingResult:
        boards = (
            Board(
                material="MDF",
                stock_width=1000.0,
                stock_height=1000.0,
                placed_parts=(_placed(door, 1, 0.0, 0.0), _placed(door, 2, 403.0, 0.0)),
                index=0,
            ),
            Board(
                material="MDF",
                stock_width=1000.0,
                stock_height=1000.0,
                placed_parts=(_placed(door, 3, 0.0, 0.0),),
                index=1,
            ),
        )
        return NestingResult(
            boards=boards,
            unplaceable=(UnplaceablePart("Top", "MDF", 3000.0, 100.0, count=2),),
        )

    def test_totals(self, result: NestingResult) -> None:
        assert result.total_boards == 2
        assert result.total_parts_placed == 3
        assert result.total_unplaceable == 2
        assert result.boards_by_material == {"MDF": 2}

    def test_total_waste_percentage(self, result: NestingResult) -> None:
        used = 3 * 400.0 * 700.0
        assert result.total_waste_percentage == pytest.approx((1 - used / 2_000_000.0) * 100)

    def test_empty_result(self) -> None:
        result = NestingResult()
        assert result.total_boards == 0
        assert result.total_waste_percentage == 0.0
        assert result.has_issues is False

    def test_has_issues(self, result: NestingResult) -> None:
        assert result.has_issues is True
        assert NestingResult(warnings=("No stock",)).has_issues is True

    def test_find_part(self, result: NestingResult) -> None:
        found = result.find_part(3)
        assert found is not None
        assert found.instance_id == 3
        assert result.find_part(99) is None

    def test_boards_for(self, result: NestingResult) -> None:
        assert len(result.boards_for("MDF")) == 2
        assert result.boards_for("Oak") == ()

    def test_to_dict_summary(self, result: NestingResult) -> None:
        data = result.to_dict()
        assert data["summary"]["total_boards"] == 2
        assert data["summary"]["total_unplaceable"] == 2
        assert data["unplaceable"][0]["count"] == 2
