"""Guillotine nesting engine for rectangular sheet-good parts.

This module places rectangular parts onto stock sheets using a guillotine
free-rectangle search with a best-area-fit rule. Every board keeps a list of
free rectangles; a placed part consumes the top-left corner of one free
rectangle, which is then split by a single edge-to-edge cut into at most two
new free rectangles. Layouts produced this way can be cut on a panel saw.

Materials are nested independently. The engine is deterministic: the same
input always yields the same boards, positions, rotations and instance ids.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Iterable, NamedTuple

from sheetnest.contracts.protocols import ProgressCallback
from sheetnest.domain.entities import Board, NestingResult, PlacedPart, UnplaceablePart
from sheetnest.domain.exceptions import NestingCancelled
from sheetnest.domain.value_objects import (
    GrainDirection,
    NestingSettings,
    Part,
    PartsByMaterial,
    StockMaterial,
    whole_quantity,
)

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


@dataclass
class _FreeRect:
    """Internal free rectangle on a board.

    The edge flags record whether the rectangle reaches the right or bottom
    edge of the sheet. A trailing kerf is only needed when another part can
    follow, so it is dropped against the sheet edge.
    """

    x: float
    y: float
    width: float
    height: float
    at_right_edge: bool = False
    at_bottom_edge: bool = False

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass
class _Placement:
    """Internal record of a part placed during packing."""

    part: Part
    x: float
    y: float
    rotated: bool


@dataclass(eq=False)
class _BoardState:
    """Internal state for one open board during packing.

    Attributes:
        stock: Stock sheet definition.
        free_rects: Free rectangles in insertion order.
        placements: Placed parts in placement order.
    """

    stock: StockMaterial
    free_rects: list[_FreeRect]
    placements: list[_Placement] = field(default_factory=list)

    @classmethod
    def open(cls, stock: StockMaterial) -> "_BoardState":
        return cls(stock=stock, free_rects=[_full_sheet(stock)])


class _Fit(NamedTuple):
    board: _BoardState
    rect_index: int
    rotated: bool
    used_width: float
    used_height: float
    area: float


@dataclass
class MaterialLayout:
    """Packing outcome for a single material.

    Attributes:
        material: Material name.
        stock: Stock sheet definition used.
        boards: Board states in creation order.
        unplaceable: Parts that fit no sheet, in demand order.
    """

    material: str
    stock: StockMaterial
    boards: list[_BoardState]
    unplaceable: list[Part]


def placement_sort_key(part: Part) -> tuple[float, float, str]:
    """Order in which demand items are placed: longest side first.

    Sorting with this key is stable, so parts that tie keep their input
    order. The cache key relies on the same ordering.
    """
    return (-part.long_side, -part.short_side, part.name)


def _full_sheet(stock: StockMaterial) -> _FreeRect:
    return _FreeRect(
        0.0, 0.0, stock.width, stock.height, at_right_edge=True, at_bottom_edge=True
    )


def _reserved_length(
    size: float, kerf: float, available: float, at_edge: bool
) -> float | None:
    """Length a part reserves along one axis of a free rectangle.

    Returns:
        The reserved length including the trailing kerf, or None when the
        part does not fit along this axis.
    """
    padded = size + kerf
    if padded <= available + _EPSILON:
        return min(padded, available)
    if at_edge and size <= available + _EPSILON:
        return available
    return None


class _ProgressTracker:
    """Turns processed-item counts into clamped percentages for a callback."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self.total = total
        self.processed = 0
        self._callback = callback

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 100.0
        return min(100.0, max(0.0, self.processed / self.total * 100))

    def report(self, message: str) -> None:
        if self._callback is not None:
            self._callback(message, self.percentage)

    def advance(self, count: int, message: str) -> None:
        self.processed += count
        self.report(message)


class GuillotineSheetPacker:
    """Packs the parts of one material onto sheets of one stock size.

    Demand items are ordered longest side first, then each is placed in the
    smallest free rectangle (over all open boards) that holds it with its
    kerf. When no board has room a new board is opened.

    Attributes:
        kerf_width: Saw kerf in mm, reserved on the trailing edges of a part.
        allow_rotation: Whether parts without grain may be rotated.
    """

    def __init__(self, kerf_width: float, allow_rotation: bool) -> None:
        self.kerf_width = kerf_width
        self.allow_rotation = allow_rotation

    def pack(
        self,
        material: str,
        parts: Iterable[Part],
        stock: StockMaterial,
        tracker: _ProgressTracker | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MaterialLayout:
        """Place every demand item of one material.

        Args:
            material: Material name.
            parts: Individual demand items (one Part per physical piece).
            stock: Stock sheet for this material.
            tracker: Progress tracker advanced once per item.
            cancel_event: Checked before every item.

        Returns:
            MaterialLayout with the boards in creation order and the parts
            that fit no sheet.

        Raises:
            NestingCancelled: If cancel_event is set during packing.
        """
        ordered = self._sort_longest_side_first(parts)
        boards: list[_BoardState] = []
        unplaceable: list[Part] = []

        logger.debug("Packing %d parts of %s", len(ordered), material)

        for part in ordered:
            if cancel_event is not None and cancel_event.is_set():
                raise NestingCancelled(f"Nesting cancelled while placing {material}")

            orientations = self._orientations(part, stock)
            if not self._fits_empty_sheet(part, stock, orientations):
                logger.warning(
                    "Part '%s' (%sx%s) does not fit a %sx%s %s sheet",
                    part.name,
                    part.width,
                    part.height,
                    stock.width,
                    stock.height,
                    material,
                )
                unplaceable.append(part)
                if tracker is not None:
                    tracker.advance(1, f"Part '{part.name}' does not fit any {material} sheet")
                continue

            fit = self._find_best_fit(boards, part, orientations)
            if fit is None:
                board = _BoardState.open(stock)
                boards.append(board)
                logger.debug("Opened board %d for %s", len(boards), material)
                fit = self._find_best_fit([board], part, orientations)
                # An empty sheet always holds a part that passed the check above.
                assert fit is not None

            self._place(part, fit)
            if tracker is not None:
                tracker.advance(
                    1,
                    f"Placing parts for {material}: board {boards.index(fit.board) + 1}, "
                    f"{tracker.processed + 1}/{tracker.total}",
                )

        return MaterialLayout(
            material=material, stock=stock, boards=boards, unplaceable=unplaceable
        )

    def _sort_longest_side_first(self, parts: Iterable[Part]) -> list[Part]:
        """Sort by longest side, then shortest side (both descending), then name."""
        return sorted(parts, key=placement_sort_key)

    def _orientations(self, part: Part, stock: StockMaterial) -> tuple[bool, ...]:
        """Rotation states a part may take on a sheet of this stock.

        Grain constrained parts get exactly one orientation whatever the
        rotation setting; free parts may rotate only when rotation is allowed.
        """
        if part.grain_direction.is_fixed:
            return (self._grain_rotation(part, stock),)
        if self.allow_rotation and part.width != part.height:
            return (False, True)
        return (False,)

    @staticmethod
    def _grain_rotation(part: Part, stock: StockMaterial) -> bool:
        """Rotation that aligns a grain constrained part with the sheet grain.

        Sheet grain runs along the longer side of the sheet. LENGTH grain
        puts the part's long side along the sheet grain, WIDTH grain its
        short side.
        """
        if part.width == part.height:
            return False
        grain_along_x = stock.width >= stock.height
        long_side_along_x = (part.grain_direction is GrainDirection.LENGTH) == grain_along_x
        return (part.width > part.height) != long_side_along_x

    def fits_sheet(self, part: Part, stock: StockMaterial) -> bool:
        """True if the part fits an empty sheet in a legal orientation."""
        return self._fits_empty_sheet(part, stock, self._orientations(part, stock))

    def _fits_empty_sheet(
        self, part: Part, stock: StockMaterial, orientations: tuple[bool, ...]
    ) -> bool:
        sheet = _full_sheet(stock)
        return any(self._reserve(part, sheet, rotated) is not None for rotated in orientations)

    def _reserve(
        self, part: Part, rect: _FreeRect, rotated: bool
    ) -> tuple[float, float] | None:
        """Space a part reserves in a free rectangle, or None if it does not fit."""
        width, height = (part.height, part.width) if rotated else (part.width, part.height)
        used_width = _reserved_length(width, self.kerf_width, rect.width, rect.at_right_edge)
        if used_width is None:
            return None
        used_height = _reserved_length(height, self.kerf_width, rect.height, rect.at_bottom_edge)
        if used_height is None:
            return None
        return used_width, used_height

    def _find_best_fit(
        self,
        boards: list[_BoardState],
        part: Part,
        orientations: tuple[bool, ...],
    ) -> _Fit | None:
        """Find the smallest free rectangle that holds the part.

        Ties keep the first candidate: earliest board, earliest rectangle,
        unrotated before rotated.
        """
        best: _Fit | None = None
        for board in boards:
            for index, rect in enumerate(board.free_rects):
                if best is not None and rect.area >= best.area:
                    continue
                for rotated in orientations:
                    reserved = self._reserve(part, rect, rotated)
                    if reserved is None:
                        continue
                    best = _Fit(board, index, rotated, reserved[0], reserved[1], rect.area)
                    break
        return best

    def _place(self, part: Part, fit: _Fit) -> None:
        """Place a part at the top-left of the chosen rectangle and split it."""
        board = fit.board
        rect = board.free_rects[fit.rect_index]
        board.placements.append(_Placement(part=part, x=rect.x, y=rect.y, rotated=fit.rotated))
        board.free_rects[fit.rect_index : fit.rect_index + 1] = self._split(
            rect, fit.used_width, fit.used_height
        )

        logger.debug(
            "Placed '%s' at (%s, %s)%s",
            part.name,
            rect.x,
            rect.y,
            " rotated" if fit.rotated else "",
        )

    @staticmethod
    def _split(rect: _FreeRect, used_width: float, used_height: float) -> list[_FreeRect]:
        """Guillotine-split a free rectangle around a part in its top-left corner.

        Two cuts are possible: a vertical cut first (the right strip keeps
        the full height) or a horizontal cut first (the bottom strip keeps
        the full width). The cut that leaves the larger single rectangle wins.
        """
        leftover_width = rect.width - used_width
        leftover_height = rect.height - used_height

        vertical_best = max(leftover_width * rect.height, used_width * leftover_height)
        horizontal_best = max(rect.width * leftover_height, leftover_width * used_height)

        if vertical_best > horizontal_best:
            right = _FreeRect(
                rect.x + used_width,
                rect.y,
                leftover_width,
                rect.height,
                rect.at_right_edge,
                rect.at_bottom_edge,
            )
            bottom = _FreeRect(
                rect.x,
                rect.y + used_height,
                used_width,
                leftover_height,
                rect.at_right_edge and leftover_width <= _EPSILON,
                rect.at_bottom_edge,
            )
        else:
            right = _FreeRect(
                rect.x + used_width,
                rect.y,
                leftover_width,
                used_height,
                rect.at_right_edge,
                rect.at_bottom_edge and leftover_height <= _EPSILON,
            )
            bottom = _FreeRect(
                rect.x,
                rect.y + used_height,
                rect.width,
                leftover_height,
                rect.at_right_edge,
                rect.at_bottom_edge,
            )

        return [r for r in (right, bottom) if r.width > _EPSILON and r.height > _EPSILON]


class GuillotineNestingEngine:
    """Coordinates nesting across material groups.

    Each material is packed on its own stock sheet, then the boards of all
    materials are frozen into a single NestingResult with sequential
    instance ids.
    """

    def optimize(
        self,
        parts_by_material: PartsByMaterial,
        settings: NestingSettings,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> NestingResult:
        """Nest all parts onto boards.

        Args:
            parts_by_material: Part types with quantities, keyed by material.
            settings: Kerf, rotation policy and stock catalog.
            on_progress: Optional callback receiving (message, percentage).
            cancel_event: Optional event checked between placements.

        Returns:
            NestingResult with boards, unplaceable parts and warnings.

        Raises:
            NestingCancelled: If cancel_event is set during the solve.
            ValueError: If a quantity is negative or not a whole number.
        """
        kerf = self._effective_kerf(settings.kerf_width)
        demand = self._expand(parts_by_material)
        tracker = _ProgressTracker(sum(len(items) for items in demand.values()), on_progress)
        packer = GuillotineSheetPacker(kerf_width=kerf, allow_rotation=settings.allow_rotation)

        logger.info(
            "Nesting %d parts across %d materials", tracker.total, len(demand)
        )

        layouts: list[MaterialLayout] = []
        warnings: list[str] = []

        for material, items in demand.items():
            if cancel_event is not None and cancel_event.is_set():
                raise NestingCancelled("Nesting cancelled")

            tracker.report(f"Processing material: {material}...")
            stock = settings.stock_for(material)
            if stock is None:
                message = (
                    f"No stock sheet defined for material '{material}'; "
                    f"{len(items)} parts were not nested"
                )
                logger.warning(message)
                warnings.append(message)
                tracker.advance(len(items), f"Skipped material: {material}")
                continue

            layout = packer.pack(material, items, stock, tracker, cancel_event)
            layouts.append(layout)

            logger.debug(
                "Material %s: %d parts -> %d boards",
                material,
                len(items),
                len(layout.boards),
            )

        result = self._finalize(layouts, warnings)
        tracker.report("Nesting optimization complete!")

        logger.info(
            "Nested %d parts on %d boards (%.1f%% waste, %d unplaceable)",
            result.total_parts_placed,
            result.total_boards,
            result.total_waste_percentage,
            result.total_unplaceable,
        )
        return result

    @staticmethod
    def _effective_kerf(kerf_width: float) -> float:
        if kerf_width < 0:
            logger.warning("Negative kerf width %s clamped to 0", kerf_width)
            return 0.0
        return float(kerf_width)

    @staticmethod
    def _expand(parts_by_material: PartsByMaterial) -> dict[str, list[Part]]:
        """Flatten (part, quantity) pairs into one demand item per piece.

        The material key is authoritative: a part grouped under a material
        with a different name is re-labelled with the key.
        """
        demand: dict[str, list[Part]] = {}
        for material, entries in parts_by_material.items():
            items = demand.setdefault(material, [])
            for part, quantity in entries:
                quantity = whole_quantity(part, quantity)
                if part.material != material:
                    part = replace(part, material=material)
                items.extend([part] * quantity)
        return demand

    @staticmethod
    def _finalize(layouts: list[MaterialLayout], warnings: list[str]) -> NestingResult:
        """Freeze board states into boards and assign instance ids."""
        boards: list[Board] = []
        unplaceable: dict[Part, int] = {}
        instance_id = 0

        for layout in layouts:
            for state in layout.boards:
                board_index = len(boards)
                placed: list[PlacedPart] = []
                for placement in state.placements:
                    instance_id += 1
                    placed.append(
                        PlacedPart.from_part(
                            placement.part,
                            instance_id=instance_id,
                            x=placement.x,
                            y=placement.y,
                            rotated=placement.rotated,
                            board_index=board_index,
                        )
                    )
                boards.append(
                    Board(
                        material=layout.material,
                        stock_width=layout.stock.width,
                        stock_height=layout.stock.height,
                        thickness=layout.stock.thickness,
                        placed_parts=tuple(placed),
                        index=board_index,
                    )
                )
            for part in layout.unplaceable:
                unplaceable[part] = unplaceable.get(part, 0) + 1

        return NestingResult(
            boards=tuple(boards),
            unplaceable=tuple(
                UnplaceablePart(
                    name=part.name,
                    material=part.material,
                    width=part.width,
                    height=part.height,
                    count=count,
                )
                for part, count in unplaceable.items()
            ),
            warnings=tuple(warnings),
        )
