"""Application layer - solve orchestration and job configuration."""

from .cache import ResultCache
from .events import Cancelled, Complete, Error, Progress, SolveEvent
from .orchestrator import SolveHandle, SolveOrchestrator

__all__ = [
    "Cancelled",
    "Complete",
    "Error",
    "Progress",
    "ResultCache",
    "SolveEvent",
    "SolveHandle",
    "SolveOrchestrator",
]
