"""Canonical cache keys for nesting inputs.

A key is the SHA-256 digest of a stable JSON rendering of the parts and of
the settings that influence placement. Presentation-only settings (price,
currency) are left out, so editing a price never invalidates a layout.
"""

from __future__ import annotations

import hashlib
import itertools
import json
import time
from typing import Any

from sheetnest.domain.value_objects import NestingSettings, PartsByMaterial, whole_quantity
from sheetnest.infrastructure.nesting_engine import placement_sort_key

_empty_counter = itertools.count()


def canonical_parts(parts_by_material: PartsByMaterial) -> list[list[Any]]:
    """Canonical form of the parts input.

    The engine numbers boards and instances in material input order and
    places parts in ``placement_sort_key`` order, keeping input order
    among ties. The canonical form follows the same order, so two inputs
    share a key only when they produce the same layout.

    Returns:
        ``[[material, [part, ...]], ...]`` with materials in input order and
        parts stably sorted by placement order.

    Raises:
        ValueError: If a quantity is negative or not a whole number.
    """
    materials: list[list[Any]] = []
    for material, entries in parts_by_material.items():
        ordered = sorted(entries, key=lambda entry: placement_sort_key(entry[0]))
        parts = [
            {
                "name": str(part.name),
                "width": float(part.width),
                "height": float(part.height),
                "thickness": float(part.thickness),
                "quantity": whole_quantity(part, quantity),
                "grain_direction": part.grain_direction.value,
                "edge_banding": part.edge_banding.value,
            }
            for part, quantity in ordered
        ]
        materials.append([str(material), parts])
    return materials


def canonical_settings(settings: NestingSettings) -> dict[str, Any]:
    """Canonical form of the settings that affect placement.

    Only kerf, rotation and sheet geometry are included; price and
    currency affect reporting, not layout.
    """
    return {
        "kerf_width": float(settings.kerf_width),
        "allow_rotation": bool(settings.allow_rotation),
        "stock_materials": {
            name: {
                "width": float(stock.width),
                "height": float(stock.height),
                "thickness": float(stock.thickness),
            }
            for name, stock in settings.stock_materials.items()
        },
    }


def _is_empty(parts_by_material: PartsByMaterial | None) -> bool:
    if not parts_by_material:
        return True
    return all(
        whole_quantity(part, quantity) <= 0
        for entries in parts_by_material.values()
        for part, quantity in entries
    )


def _stable_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def generate_cache_key(
    parts_by_material: PartsByMaterial | None,
    settings: NestingSettings,
) -> str:
    """Generate the cache key for a nesting input.

    Args:
        parts_by_material: Part types and quantities grouped by material.
        settings: Nesting settings.

    Returns:
        64 character hex digest. Identical inputs always give the same key.
        An empty parts input gets a salted key that never repeats, so an
        empty selection can never be served from the cache.

    Raises:
        ValueError: If a quantity is negative or not a whole number.
    """
    # parts_by_material may hold one-shot iterables; materialize them once.
    materialized = {m: list(entries) for m, entries in (parts_by_material or {}).items()}

    if _is_empty(materialized):
        salt = f"EMPTY_PARTS_{time.time_ns()}_{next(_empty_counter)}"
        return hashlib.sha256(salt.encode("utf-8")).hexdigest()

    digest = hashlib.sha256()
    digest.update(_stable_json(canonical_parts(materialized)).encode("utf-8"))
    digest.update(_stable_json(canonical_settings(settings)).encode("utf-8"))
    return digest.hexdigest()
