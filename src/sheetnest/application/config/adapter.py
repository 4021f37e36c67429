"""Adapters from validated job files to domain objects."""

from __future__ import annotations

from sheetnest.application.config.schema import NestingJobConfig
from sheetnest.domain.value_objects import (
    NestingSettings,
    Part,
    PartQuantity,
    StockMaterial,
)


def job_to_parts_by_material(job: NestingJobConfig) -> dict[str, list[PartQuantity]]:
    """Group job parts by material.

    Materials keep the order in which they first appear. Entries describing
    the same part type are merged and their quantities summed.

    Args:
        job: Validated job file.

    Returns:
        Part types with quantities keyed by material name.
    """
    quantities: dict[str, dict[Part, int]] = {}
    for entry in job.parts:
        part = Part(
            name=entry.name,
            width=entry.width,
            height=entry.height,
            thickness=entry.thickness,
            material=entry.material,
            grain_direction=entry.grain_direction,
            edge_banding=entry.edge_banding,
        )
        by_part = quantities.setdefault(entry.material, {})
        by_part[part] = by_part.get(part, 0) + entry.quantity

    return {
        material: [PartQuantity(part, quantity) for part, quantity in by_part.items()]
        for material, by_part in quantities.items()
    }


def job_to_settings(job: NestingJobConfig) -> NestingSettings:
    """Convert job settings to NestingSettings.

    When the job defines a default_stock sheet, it is added for every
    material used by the parts but missing from the stock catalog.

    Args:
        job: Validated job file.

    Returns:
        NestingSettings domain object.
    """
    config = job.settings
    settings = NestingSettings(
        kerf_width=config.kerf_width,
        allow_rotation=config.allow_rotation,
        stock_materials={
            name: StockMaterial(
                width=stock.width,
                height=stock.height,
                thickness=stock.thickness,
                price=stock.price,
                currency=stock.currency,
            )
            for name, stock in config.stock_materials.items()
        },
    )

    if config.default_stock is None:
        return settings

    default = StockMaterial(
        width=config.default_stock.width,
        height=config.default_stock.height,
        thickness=config.default_stock.thickness,
    )
    materials = list(dict.fromkeys(entry.material for entry in job.parts))
    return settings.with_default_stock(materials, default)
