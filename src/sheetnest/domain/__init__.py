"""Domain layer - parts, boards and nesting settings."""

from .entities import Board, NestingResult, PlacedPart, UnplaceablePart
from .exceptions import NestingCancelled, NestingError, OrchestrationError
from .value_objects import (
    DEFAULT_KERF_WIDTH,
    DEFAULT_STOCK_HEIGHT,
    DEFAULT_STOCK_WIDTH,
    EdgeBanding,
    GrainDirection,
    NestingSettings,
    Part,
    PartQuantity,
    PartsByMaterial,
    Rect,
    StockMaterial,
    whole_quantity,
)

__all__ = [
    "Board",
    "DEFAULT_KERF_WIDTH",
    "DEFAULT_STOCK_HEIGHT",
    "DEFAULT_STOCK_WIDTH",
    "EdgeBanding",
    "GrainDirection",
    "NestingCancelled",
    "NestingError",
    "NestingResult",
    "NestingSettings",
    "OrchestrationError",
    "Part",
    "PartQuantity",
    "PartsByMaterial",
    "PlacedPart",
    "Rect",
    "StockMaterial",
    "UnplaceablePart",
    "whole_quantity",
]
