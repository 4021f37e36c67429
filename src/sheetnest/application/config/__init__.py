"""Job file schema and loading for nesting runs.

Public API:
    - NestingJobConfig: Root job file model
    - SettingsConfig: Nesting settings model
    - StockMaterialConfig: Stock catalog entry model
    - PartConfig: Part type model
    - load_job: Load a job from a JSON file
    - load_job_from_dict: Load a job from a dictionary
    - ConfigError: Exception for job file errors
    - job_to_parts_by_material: Convert job parts to domain part quantities
    - job_to_settings: Convert job settings to NestingSettings

Example:
    >>> from pathlib import Path
    >>> from sheetnest.application.config import load_job, ConfigError
    >>>
    >>> try:
    ...     job = load_job(Path("kitchen.json"))
    ...     print(f"{len(job.parts)} part types")
    ... except ConfigError as e:
    ...     print(f"Error: {e}")
"""

from sheetnest.application.config.adapter import (
    job_to_parts_by_material,
    job_to_settings,
)
from sheetnest.application.config.loader import (
    ConfigError,
    load_job,
    load_job_from_dict,
)
from sheetnest.application.config.schema import (
    SUPPORTED_VERSIONS,
    DefaultStockConfig,
    NestingJobConfig,
    PartConfig,
    SettingsConfig,
    StockMaterialConfig,
)

__all__ = [
    "ConfigError",
    "DefaultStockConfig",
    "NestingJobConfig",
    "PartConfig",
    "SUPPORTED_VERSIONS",
    "SettingsConfig",
    "StockMaterialConfig",
    "job_to_parts_by_material",
    "job_to_settings",
    "load_job",
    "load_job_from_dict",
]
