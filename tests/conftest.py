"""Pytest configuration and shared fixtures for nesting tests."""

from __future__ import annotations

import pytest

from sheetnest.domain import (
    GrainDirection,
    NestingSettings,
    Part,
    PartQuantity,
    StockMaterial,
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: tests exercising several layers together"
    )
    config.addinivalue_line("markers", "slow: tests that take a long time to run")


# =============================================================================
# Shared fixtures
# =============================================================================


PLYWOOD = "Plywood_18mm"


@pytest.fixture
def plywood_stock() -> StockMaterial:
    """Standard 2440x1220 plywood sheet."""
    return StockMaterial(width=2440.0, height=1220.0, thickness=18.0, price=45.0)


@pytest.fixture
def plywood_settings(plywood_stock: StockMaterial) -> NestingSettings:
    """3 mm kerf, rotation allowed, plywood catalogued."""
    return NestingSettings(
        kerf_width=3.0,
        allow_rotation=True,
        stock_materials={PLYWOOD: plywood_stock},
    )


@pytest.fixture
def shelf_part() -> Part:
    """600x400 shelf without grain constraint."""
    return Part(name="Shelf", width=600.0, height=400.0, thickness=18.0, material=PLYWOOD)


@pytest.fixture
def rail_part() -> Part:
    """1200x100 rail with grain along its length."""
    return Part(
        name="Rail",
        width=1200.0,
        height=100.0,
        thickness=18.0,
        material=PLYWOOD,
        grain_direction=GrainDirection.LENGTH,
    )


@pytest.fixture
def cabinet_parts(shelf_part: Part, rail_part: Part) -> dict[str, list[PartQuantity]]:
    """4 shelves and 2 rails of plywood."""
    return {PLYWOOD: [PartQuantity(shelf_part, 4), PartQuantity(rail_part, 2)]}
