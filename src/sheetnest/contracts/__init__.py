"""Contracts shared between layers."""

from .protocols import NestingEngineProtocol, ProgressCallback

__all__ = [
    "NestingEngineProtocol",
    "ProgressCallback",
]
