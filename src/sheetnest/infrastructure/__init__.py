"""Infrastructure layer - nesting algorithm and cache keys."""

from .cache_key import canonical_parts, canonical_settings, generate_cache_key
from .nesting_engine import GuillotineNestingEngine, GuillotineSheetPacker, MaterialLayout

__all__ = [
    # Nesting
    "GuillotineNestingEngine",
    "GuillotineSheetPacker",
    "MaterialLayout",
    # Cache keys
    "canonical_parts",
    "canonical_settings",
    "generate_cache_key",
]
