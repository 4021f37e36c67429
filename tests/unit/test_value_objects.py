"""Tests for nesting value objects: parts, stock sheets and settings."""

from __future__ import annotations

import pytest

from sheetnest.domain import (
    DEFAULT_KERF_WIDTH,
    EdgeBanding,
    GrainDirection,
    NestingSettings,
    Part,
    Rect,
    StockMaterial,
)


# =============================================================================
# GrainDirection / EdgeBanding Tests
# =============================================================================


class TestGrainDirection:
    """Tests for GrainDirection parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("any", GrainDirection.ANY),
            ("None", GrainDirection.ANY),
            ("", GrainDirection.ANY),
            (None, GrainDirection.ANY),
            ("Length", GrainDirection.LENGTH),
            ("vertical", GrainDirection.LENGTH),
            ("fixed", GrainDirection.LENGTH),
            ("width", GrainDirection.WIDTH),
            ("HORIZONTAL", GrainDirection.WIDTH),
        ],
    )
    def test_parse_aliases(self, value: str | None, expected: GrainDirection) -> None:
        """Legacy spellings map onto the three grain directions."""
        assert GrainDirection.parse(value) is expected

    def test_parse_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown grain direction"):
            GrainDirection.parse("diagonal")

    def test_is_fixed(self) -> None:
        assert GrainDirection.ANY.is_fixed is False
        assert GrainDirection.LENGTH.is_fixed is True
        assert GrainDirection.WIDTH.is_fixed is True


class TestEdgeBanding:
    """Tests for EdgeBanding parsing."""

    def test_parse_is_case_insensitive(self) -> None:
        assert EdgeBanding.parse("none") is EdgeBanding.NONE
        assert EdgeBanding.parse("2 Edges") is EdgeBanding.TWO_EDGES

    def test_parse_none_defaults(self) -> None:
        assert EdgeBanding.parse(None) is EdgeBanding.NONE

    def test_parse_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown edge banding"):
            EdgeBanding.parse("3 edges")


# =============================================================================
# Part Tests
# =============================================================================


class TestPart:
    """Tests for Part value object."""

    def test_basic_part(self) -> None:
        part = Part(name="Side", width=720.0, height=560.0, thickness=18.0, material="MDF")
        assert part.area == 720.0 * 560.0
        assert part.long_side == 720.0
        assert part.short_side == 560.0
        assert part.grain_direction is GrainDirection.ANY
        assert part.edge_banding is EdgeBanding.NONE

    def test_string_enums_are_coerced(self) -> None:
        """Plain strings are stored as enums."""
        part = Part(
            name="Door",
            width=400.0,
            height=700.0,
            thickness=18.0,
            material="MDF",
            grain_direction="vertical",  # type: ignore[arg-type]
            edge_banding="4 edges",  # type: ignore[arg-type]
        )
        assert part.grain_direction is GrainDirection.LENGTH
        assert part.edge_banding is EdgeBanding.FOUR_EDGES

    def test_zero_width_raises(self) -> None:
        with pytest.raises(ValueError, match="dimensions must be positive"):
            Part(name="Bad", width=0.0, height=100.0, thickness=18.0, material="MDF")

    def test_negative_height_raises(self) -> None:
        with pytest.raises(ValueError, match="dimensions must be positive"):
            Part(name="Bad", width=100.0, height=-1.0, thickness=18.0, material="MDF")

    def test_zero_thickness_raises(self) -> None:
        with pytest.raises(ValueError, match="thickness must be positive"):
            Part(name="Bad", width=100.0, height=100.0, thickness=0.0, material="MDF")

    def test_parts_are_hashable_and_equal_by_value(self) -> None:
        a = Part(name="Shelf", width=600.0, height=400.0, thickness=18.0, material="MDF")
        b = Part(name="Shelf", width=600.0, height=400.0, thickness=18.0, material="MDF")
        assert a == b
        assert len({a, b}) == 1


# =============================================================================
# StockMaterial / NestingSettings Tests
# =============================================================================


class TestStockMaterial:
    """Tests for StockMaterial value object."""

    def test_defaults(self) -> None:
        stock = StockMaterial()
        assert stock.width == 2440.0
        assert stock.height == 1220.0
        assert stock.currency == "EUR"
        assert stock.area == 2440.0 * 1220.0

    def test_invalid_width_raises(self) -> None:
        with pytest.raises(ValueError, match="width must be positive"):
            StockMaterial(width=0)

    def test_invalid_height_raises(self) -> None:
        with pytest.raises(ValueError, match="height must be positive"):
            StockMaterial(height=-5)

    def test_negative_price_raises(self) -> None:
        with pytest.raises(ValueError, match="price must be non-negative"):
            StockMaterial(price=-1.0)

    def test_from_mapping_ignores_unknown_keys(self) -> None:
        stock = StockMaterial.from_mapping(
            {"width": "2800", "height": 2070, "price": 60, "supplier": "ACME"}
        )
        assert stock.width == 2800.0
        assert stock.height == 2070.0
        assert stock.price == 60.0


class TestNestingSettings:
    """Tests for NestingSettings."""

    def test_defaults(self) -> None:
        settings = NestingSettings()
        assert settings.kerf_width == DEFAULT_KERF_WIDTH
        assert settings.allow_rotation is True
        assert len(settings.stock_materials) == 0

    def test_mapping_entries_become_stock(self) -> None:
        settings = NestingSettings(stock_materials={"MDF": {"width": 2800, "height": 2070}})
        stock = settings.stock_for("MDF")
        assert isinstance(stock, StockMaterial)
        assert stock.width == 2800.0

    def test_catalog_is_read_only(self) -> None:
        settings = NestingSettings(stock_materials={"MDF": StockMaterial()})
        with pytest.raises(TypeError):
            settings.stock_materials["Oak"] = StockMaterial()  # type: ignore[index]

    def test_catalog_is_copied(self) -> None:
        """Mutating the caller's dict does not change the settings."""
        catalog = {"MDF": StockMaterial()}
        settings = NestingSettings(stock_materials=catalog)
        catalog["Oak"] = StockMaterial()
        assert settings.stock_for("Oak") is None

    def test_stock_for_unknown_material(self) -> None:
        assert NestingSettings().stock_for("Oak") is None

    def test_with_default_stock_fills_missing(self) -> None:
        settings = NestingSettings(stock_materials={"MDF": StockMaterial(width=2800.0)})
        filled = settings.with_default_stock(["MDF", "Oak"])
        assert filled.stock_for("MDF").width == 2800.0
        assert filled.stock_for("Oak") == StockMaterial()
        assert settings.stock_for("Oak") is None

    def test_with_default_stock_returns_self_when_complete(self) -> None:
        settings = NestingSettings(stock_materials={"MDF": StockMaterial()})
        assert settings.with_default_stock(["MDF"]) is settings


# =============================================================================
# Rect Tests
# =============================================================================


class TestRect:
    """Tests for Rect geometry helpers."""

    def test_edges(self) -> None:
        rect = Rect(10.0, 20.0, 30.0, 40.0)
        assert rect.right == 40.0
        assert rect.bottom == 60.0
        assert rect.area == 1200.0

    def test_touching_rects_do_not_intersect(self) -> None:
        assert not Rect(0, 0, 100, 100).intersects(Rect(100, 0, 100, 100))

    def test_overlapping_rects_intersect(self) -> None:
        assert Rect(0, 0, 100, 100).intersects(Rect(99, 99, 10, 10))

    def test_contains(self) -> None:
        sheet = Rect(0, 0, 2440, 1220)
        assert sheet.contains(Rect(0, 0, 2440, 1220))
        assert not sheet.contains(Rect(2000, 0, 441, 100))
