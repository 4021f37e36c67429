"""Value objects for the nesting domain.

Immutable data types describing what has to be cut (parts), what it is cut
from (stock sheets) and how the saw behaves (kerf, rotation). All dimensions
are in millimeters.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, NamedTuple

DEFAULT_STOCK_WIDTH = 2440.0
DEFAULT_STOCK_HEIGHT = 1220.0
DEFAULT_KERF_WIDTH = 3.0


class GrainDirection(str, Enum):
    """Grain direction constraint for a part.

    Controls which orientations a part may take on a sheet. Sheet grain runs
    along the longer side of the sheet, so the orientation of a constrained
    part depends on the sheet's aspect ratio: the same part takes opposite
    orientations on a landscape and on a portrait sheet.

    Attributes:
        ANY: No grain constraint, the part may rotate when rotation is allowed.
        LENGTH: Grain runs parallel to the part length (longest dimension).
            The part's long side lies along the sheet's long side.
        WIDTH: Grain runs parallel to the part width (shortest dimension).
            The part's short side lies along the sheet's long side.
    """

    ANY = "any"
    LENGTH = "length"
    WIDTH = "width"

    @classmethod
    def parse(cls, value: "GrainDirection | str | None") -> "GrainDirection":
        """Parse a grain direction from its enum value or a legacy alias.

        Accepted aliases (case-insensitive): ``none`` for ANY, ``vertical``
        and ``fixed`` for LENGTH, ``horizontal`` for WIDTH.

        Raises:
            ValueError: If the value is not a known grain direction.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.ANY
        key = str(value).strip().lower()
        try:
            return _GRAIN_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown grain direction: {value!r}") from None

    @property
    def is_fixed(self) -> bool:
        """True if the grain pins the part to a single orientation."""
        return self is not GrainDirection.ANY


_GRAIN_ALIASES: dict[str, GrainDirection] = {
    "any": GrainDirection.ANY,
    "none": GrainDirection.ANY,
    "": GrainDirection.ANY,
    "length": GrainDirection.LENGTH,
    "vertical": GrainDirection.LENGTH,
    "fixed": GrainDirection.LENGTH,
    "width": GrainDirection.WIDTH,
    "horizontal": GrainDirection.WIDTH,
}


class EdgeBanding(str, Enum):
    """Edge banding applied to a part. Reporting only, never a placement constraint."""

    NONE = "None"
    ONE_EDGE = "1 edge"
    TWO_EDGES = "2 edges"
    FOUR_EDGES = "4 edges"

    @classmethod
    def parse(cls, value: "EdgeBanding | str | None") -> "EdgeBanding":
        """Parse edge banding from its display value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NONE
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ValueError(f"Unknown edge banding: {value!r}")


@dataclass(frozen=True)
class Part:
    """A distinct rectangular cut requirement.

    One Part exists per distinct combination of name, dimensions, material,
    grain and banding. Quantity travels alongside it (see PartQuantity) until
    the engine expands it into individual placements.

    Attributes:
        name: Display name of the part.
        width: Part width in mm.
        height: Part height in mm.
        thickness: Part thickness in mm.
        material: Material name, the key into the stock catalog.
        grain_direction: Grain constraint restricting rotation.
        edge_banding: Edge banding, carried through to the report.
    """

    name: str
    width: float
    height: float
    thickness: float
    material: str
    grain_direction: GrainDirection = GrainDirection.ANY
    edge_banding: EdgeBanding = EdgeBanding.NONE

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Part dimensions must be positive")
        if self.thickness <= 0:
            raise ValueError("Part thickness must be positive")
        # Accept plain strings from callers, store enums.
        object.__setattr__(
            self, "grain_direction", GrainDirection.parse(self.grain_direction)
        )
        object.__setattr__(self, "edge_banding", EdgeBanding.parse(self.edge_banding))

    @property
    def area(self) -> float:
        """Area of a single part in square mm."""
        return self.width * self.height

    @property
    def long_side(self) -> float:
        return max(self.width, self.height)

    @property
    def short_side(self) -> float:
        return min(self.width, self.height)


class PartQuantity(NamedTuple):
    """A part type together with the number of pieces required."""

    part: Part
    quantity: int


def whole_quantity(part: Part, quantity: Any) -> int:
    """Return quantity as an int.

    Raises:
        ValueError: If quantity is negative or not a whole number.
    """
    if isinstance(quantity, bool):
        raise ValueError(f"Quantity for part '{part.name}' must be a whole number")
    try:
        whole = int(quantity)
    except (TypeError, ValueError):
        raise ValueError(
            f"Quantity for part '{part.name}' must be a whole number"
        ) from None
    if whole != quantity:
        raise ValueError(f"Quantity for part '{part.name}' must be a whole number")
    if whole < 0:
        raise ValueError(f"Quantity for part '{part.name}' must be non-negative")
    return whole


PartsByMaterial = Mapping[str, Iterable["PartQuantity | tuple[Part, int]"]]


@dataclass(frozen=True)
class StockMaterial:
    """A stock sheet definition from the material catalog.

    Attributes:
        width: Sheet width in mm.
        height: Sheet height in mm.
        thickness: Sheet thickness in mm (0 when unknown).
        price: Price per sheet. Reporting only.
        currency: Currency code for price. Reporting only.
    """

    width: float = DEFAULT_STOCK_WIDTH
    height: float = DEFAULT_STOCK_HEIGHT
    thickness: float = 0.0
    price: float = 0.0
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError("Stock width must be positive")
        if self.height <= 0:
            raise ValueError("Stock height must be positive")
        if self.thickness < 0:
            raise ValueError("Stock thickness must be non-negative")
        if self.price < 0:
            raise ValueError("Stock price must be non-negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StockMaterial":
        """Build a stock entry from a ``{width, height, ...}`` mapping."""
        known = {k: data[k] for k in ("width", "height", "thickness", "price", "currency") if k in data}
        for key in ("width", "height", "thickness", "price"):
            if key in known:
                known[key] = float(known[key])
        return cls(**known)

    @property
    def area(self) -> float:
        """Sheet area in square mm."""
        return self.width * self.height


@dataclass(frozen=True)
class NestingSettings:
    """Settings that drive a nesting solve.

    Attributes:
        kerf_width: Saw blade kerf in mm. Negative values are clamped to 0
            by the engine.
        allow_rotation: Global default for 90 degree rotation. Grain
            constrained parts never rotate regardless of this flag.
        stock_materials: Stock catalog keyed by material name.
    """

    kerf_width: float = DEFAULT_KERF_WIDTH
    allow_rotation: bool = True
    stock_materials: Mapping[str, StockMaterial] = field(default_factory=dict)

    def __post_init__(self) -> None:
        catalog: dict[str, StockMaterial] = {}
        for name, stock in self.stock_materials.items():
            if not isinstance(stock, StockMaterial):
                stock = StockMaterial.from_mapping(stock)
            catalog[str(name)] = stock
        object.__setattr__(self, "stock_materials", MappingProxyType(catalog))

    def stock_for(self, material: str) -> StockMaterial | None:
        """Return the stock entry for a material, or None if not catalogued."""
        return self.stock_materials.get(material)

    def with_default_stock(
        self,
        materials: Iterable[str],
        default: StockMaterial | None = None,
    ) -> "NestingSettings":
        """Return settings with a default sheet added for uncatalogued materials.

        Args:
            materials: Material names that will be nested.
            default: Sheet to use; defaults to a 2440x1220 sheet.

        Returns:
            New settings; self if every material already has stock.
        """
        default = default or StockMaterial()
        missing = [m for m in materials if m not in self.stock_materials]
        if not missing:
            return self
        catalog = dict(self.stock_materials)
        for material in missing:
            catalog[material] = default
        return replace(self, stock_materials=catalog)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, origin at the top-left of a board."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def intersects(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        """True if the interiors overlap. Touching edges do not count."""
        return (
            self.x < other.right - tolerance
            and other.x < self.right - tolerance
            and self.y < other.bottom - tolerance
            and other.y < self.bottom - tolerance
        )

    def contains(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        """True if other lies entirely within this rectangle."""
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )
