"""Pydantic models for nesting job files.

A job file lists the parts to nest and the settings to nest them with:

    {
      "version": "1.0",
      "settings": {
        "kerf_width": 3.0,
        "allow_rotation": true,
        "stock_materials": {
          "Plywood_18mm": {"width": 2440, "height": 1220, "thickness": 18}
        }
      },
      "parts": [
        {"name": "Shelf", "width": 600, "height": 400, "thickness": 18,
         "material": "Plywood_18mm", "quantity": 4}
      ]
    }
"""

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from sheetnest.domain.value_objects import (
    DEFAULT_KERF_WIDTH,
    DEFAULT_STOCK_HEIGHT,
    DEFAULT_STOCK_WIDTH,
    EdgeBanding,
    GrainDirection,
)

# Version 1.0: Initial job file schema
SUPPORTED_VERSIONS: frozenset[str] = frozenset({"1.0"})


class StockMaterialConfig(BaseModel):
    """Stock sheet entry of the material catalog.

    Attributes:
        width: Sheet width in mm.
        height: Sheet height in mm.
        thickness: Sheet thickness in mm.
        price: Price per sheet (reporting only).
        currency: Currency code for price (reporting only).
    """

    model_config = ConfigDict(extra="forbid")

    width: float = Field(default=DEFAULT_STOCK_WIDTH, gt=0, le=20000, description="Sheet width in mm")
    height: float = Field(default=DEFAULT_STOCK_HEIGHT, gt=0, le=20000, description="Sheet height in mm")
    thickness: float = Field(default=0.0, ge=0, le=500, description="Sheet thickness in mm")
    price: float = Field(default=0.0, ge=0, description="Price per sheet")
    currency: str = Field(default="EUR", min_length=1, max_length=8, description="Currency code")


class DefaultStockConfig(BaseModel):
    """Sheet synthesized for materials missing from the catalog."""

    model_config = ConfigDict(extra="forbid")

    width: float = Field(default=DEFAULT_STOCK_WIDTH, gt=0, le=20000)
    height: float = Field(default=DEFAULT_STOCK_HEIGHT, gt=0, le=20000)
    thickness: float = Field(default=0.0, ge=0, le=500)


class SettingsConfig(BaseModel):
    """Nesting settings.

    Attributes:
        kerf_width: Saw kerf in mm.
        allow_rotation: Allow 90 degree rotation of parts without grain.
        default_stock: Sheet used for materials without a catalog entry, or
            null to report such materials as unconfigured instead.
        stock_materials: Stock catalog keyed by material name.
    """

    model_config = ConfigDict(extra="forbid")

    kerf_width: float = Field(
        default=DEFAULT_KERF_WIDTH, ge=0, le=20, description="Saw kerf width in mm"
    )
    allow_rotation: bool = Field(default=True, description="Allow part rotation")
    default_stock: DefaultStockConfig | None = Field(
        default_factory=DefaultStockConfig,
        description="Sheet for materials without a stock entry",
    )
    stock_materials: dict[str, StockMaterialConfig] = Field(
        default_factory=dict, description="Stock catalog keyed by material name"
    )


class PartConfig(BaseModel):
    """One part type with its required quantity."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    width: float = Field(..., gt=0, le=20000, description="Part width in mm")
    height: float = Field(..., gt=0, le=20000, description="Part height in mm")
    thickness: float = Field(..., gt=0, le=500, description="Part thickness in mm")
    material: str = Field(..., min_length=1, max_length=200)
    grain_direction: GrainDirection = Field(default=GrainDirection.ANY)
    edge_banding: EdgeBanding = Field(default=EdgeBanding.NONE)
    quantity: int = Field(default=1, ge=1, le=100000)

    @field_validator("grain_direction", mode="before")
    @classmethod
    def parse_grain_direction(cls, v: object) -> GrainDirection:
        """Accept legacy grain spellings such as 'vertical' or 'none'."""
        return GrainDirection.parse(v)  # type: ignore[arg-type]

    @field_validator("edge_banding", mode="before")
    @classmethod
    def parse_edge_banding(cls, v: object) -> EdgeBanding:
        return EdgeBanding.parse(v)  # type: ignore[arg-type]


class NestingJobConfig(BaseModel):
    """Root model of a nesting job file.

    Attributes:
        version: Schema version, must be one of SUPPORTED_VERSIONS.
        settings: Nesting settings.
        parts: Part types to nest.
    """

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1.0", description="Job file schema version")
    settings: SettingsConfig = Field(default_factory=SettingsConfig)
    parts: list[PartConfig] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if v not in SUPPORTED_VERSIONS:
            supported = ", ".join(sorted(SUPPORTED_VERSIONS))
            raise ValueError(f"Unsupported schema version '{v}'. Supported: {supported}")
        return v
