"""Entities produced by a nesting solve.

A solve yields a fresh NestingResult every time: boards and placed parts are
frozen and are never mutated after the engine hands them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .value_objects import EdgeBanding, GrainDirection, Part, Rect


def _round(value: float) -> float:
    return round(value, 2)


@dataclass(frozen=True)
class PlacedPart:
    """One physical occurrence of a Part on a board.

    Coordinates are measured from the top-left corner of the board.

    Attributes:
        name: Part name.
        width: Part width as defined by the part type (unrotated).
        height: Part height as defined by the part type (unrotated).
        thickness: Part thickness.
        material: Material name, equal to the board material.
        grain_direction: Grain constraint of the part type.
        edge_banding: Edge banding of the part type.
        instance_id: Sequential id, stable for a given input.
        x: Horizontal offset of the left edge in mm.
        y: Vertical offset of the top edge in mm.
        rotated: True if width and height are swapped on the board.
        board_index: Index of the owning board in the result.
    """

    name: str
    width: float
    height: float
    thickness: float
    material: str
    grain_direction: GrainDirection
    edge_banding: EdgeBanding
    instance_id: int
    x: float
    y: float
    rotated: bool = False
    board_index: int = 0

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError("Position coordinates must be non-negative")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Placed part dimensions must be positive")

    @classmethod
    def from_part(
        cls,
        part: Part,
        *,
        instance_id: int,
        x: float,
        y: float,
        rotated: bool,
        board_index: int,
    ) -> "PlacedPart":
        """Copy the fields of a part type into a placed instance."""
        return cls(
            name=part.name,
            width=part.width,
            height=part.height,
            thickness=part.thickness,
            material=part.material,
            grain_direction=part.grain_direction,
            edge_banding=part.edge_banding,
            instance_id=instance_id,
            x=x,
            y=y,
            rotated=rotated,
            board_index=board_index,
        )

    @property
    def placed_width(self) -> float:
        """Width of the part as placed (accounts for rotation)."""
        return self.height if self.rotated else self.width

    @property
    def placed_height(self) -> float:
        """Height of the part as placed (accounts for rotation)."""
        return self.width if self.rotated else self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def rect(self) -> Rect:
        """Rectangle covered by the part itself."""
        return Rect(self.x, self.y, self.placed_width, self.placed_height)

    def occupied_rect(self, kerf_width: float) -> Rect:
        """Rectangle reserved by the part, kerf added on the trailing edges."""
        return Rect(
            self.x,
            self.y,
            self.placed_width + kerf_width,
            self.placed_height + kerf_width,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "name": self.name,
            "width": _round(self.width),
            "height": _round(self.height),
            "thickness": _round(self.thickness),
            "material": self.material,
            "grain_direction": self.grain_direction.value,
            "edge_banding": self.edge_banding.value,
            "area": _round(self.area),
            "x": _round(self.x),
            "y": _round(self.y),
            "rotated": self.rotated,
            "board_index": self.board_index,
        }


@dataclass(frozen=True)
class Board:
    """One physical stock sheet with the parts placed on it.

    Attributes:
        material: Material name of the sheet.
        stock_width: Sheet width in mm.
        stock_height: Sheet height in mm.
        thickness: Sheet thickness in mm.
        placed_parts: Parts in placement order.
        index: Zero-based index of the board in the result.
    """

    material: str
    stock_width: float
    stock_height: float
    thickness: float = 0.0
    placed_parts: tuple[PlacedPart, ...] = ()
    index: int = 0

    def __post_init__(self) -> None:
        if self.stock_width <= 0 or self.stock_height <= 0:
            raise ValueError("Stock dimensions must be positive")
        if self.index < 0:
            raise ValueError("Board index must be non-negative")
        sheet = Rect(0.0, 0.0, self.stock_width, self.stock_height)
        for placed in self.placed_parts:
            if placed.material != self.material:
                raise ValueError(
                    f"Part '{placed.name}' of material '{placed.material}' "
                    f"cannot be placed on a '{self.material}' board"
                )
            if not sheet.contains(placed.rect):
                raise ValueError(
                    f"Part '{placed.name}' at ({placed.x}, {placed.y}) "
                    f"extends beyond the {self.stock_width}x{self.stock_height} sheet"
                )

    @property
    def part_count(self) -> int:
        return len(self.placed_parts)

    @property
    def used_area(self) -> float:
        """Area covered by parts in square mm. Kerf is not included."""
        return sum(p.area for p in self.placed_parts)

    @property
    def total_area(self) -> float:
        return self.stock_width * self.stock_height

    @property
    def waste_area(self) -> float:
        return self.total_area - self.used_area

    @property
    def waste_percentage(self) -> float:
        """Percentage of the sheet area that is not covered by parts."""
        if self.total_area == 0:
            return 0.0
        return self.waste_area / self.total_area * 100

    @property
    def efficiency_percentage(self) -> float:
        return 100.0 - self.waste_percentage

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "material": self.material,
            "stock_width": _round(self.stock_width),
            "stock_height": _round(self.stock_height),
            "thickness": _round(self.thickness),
            "used_area": _round(self.used_area),
            "waste_area": _round(self.waste_area),
            "waste_percentage": _round(self.waste_percentage),
            "efficiency_percentage": _round(self.efficiency_percentage),
            "parts": [p.to_dict() for p in self.placed_parts],
        }


@dataclass(frozen=True)
class UnplaceablePart:
    """A part type that fits no sheet in any legal orientation.

    Attributes:
        name: Part name.
        material: Material name.
        width: Part width in mm.
        height: Part height in mm.
        count: Number of instances that could not be placed.
    """

    name: str
    material: str
    width: float
    height: float
    count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "material": self.material,
            "width": _round(self.width),
            "height": _round(self.height),
            "count": self.count,
        }


@dataclass(frozen=True)
class NestingResult:
    """Complete result of a nesting solve.

    Attributes:
        boards: Boards in output order (materials in input order, boards in
            creation order).
        unplaceable: Part types that could not be placed, with counts.
        warnings: Human-readable configuration warnings, e.g. materials
            without a stock definition.
    """

    boards: tuple[Board, ...] = ()
    unplaceable: tuple[UnplaceablePart, ...] = ()
    warnings: tuple[str, ...] = field(default=())

    @property
    def total_boards(self) -> int:
        return len(self.boards)

    @property
    def total_parts_placed(self) -> int:
        return sum(board.part_count for board in self.boards)

    @property
    def total_unplaceable(self) -> int:
        return sum(item.count for item in self.unplaceable)

    @property
    def boards_by_material(self) -> dict[str, int]:
        """Count of boards needed per material, in output order."""
        counts: dict[str, int] = {}
        for board in self.boards:
            counts[board.material] = counts.get(board.material, 0) + 1
        return counts

    @property
    def total_waste_percentage(self) -> float:
        """Waste percentage across all boards (0-100)."""
        total_area = sum(board.total_area for board in self.boards)
        if total_area == 0:
            return 0.0
        used = sum(board.used_area for board in self.boards)
        return (1 - used / total_area) * 100

    @property
    def has_issues(self) -> bool:
        """True if any warning or unplaceable part should be surfaced."""
        return bool(self.unplaceable or self.warnings)

    def boards_for(self, material: str) -> tuple[Board, ...]:
        return tuple(board for board in self.boards if board.material == material)

    def find_part(self, instance_id: int) -> PlacedPart | None:
        """Look up a placed part by its instance id."""
        for board in self.boards:
            for placed in board.placed_parts:
                if placed.instance_id == instance_id:
                    return placed
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "boards": [board.to_dict() for board in self.boards],
            "unplaceable": [item.to_dict() for item in self.unplaceable],
            "warnings": list(self.warnings),
            "summary": {
                "total_boards": self.total_boards,
                "total_parts_placed": self.total_parts_placed,
                "total_unplaceable": self.total_unplaceable,
                "total_waste_percentage": _round(self.total_waste_percentage),
                "boards_by_material": self.boards_by_material,
            },
        }
