"""Typed events streamed from a running solve to the interactive thread.

A solve emits any number of Progress events followed by exactly one
terminal event: Complete, Cancelled or Error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sheetnest.domain.entities import Board, NestingResult


@dataclass(frozen=True)
class Progress:
    """Advisory progress update.

    Attributes:
        message: Human-readable status line.
        percentage: Completion in the range 0-100.
    """

    message: str
    percentage: float

    is_terminal = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "percentage", min(100.0, max(0.0, float(self.percentage))))


@dataclass(frozen=True)
class Complete:
    """The solve finished and its result is available.

    Attributes:
        result: The nesting result.
        key: Cache key of the solved input.
        from_cache: True if the result was served from the cache.
    """

    result: NestingResult
    key: str
    from_cache: bool = False

    is_terminal = True

    @property
    def boards(self) -> tuple[Board, ...]:
        return self.result.boards


@dataclass(frozen=True)
class Cancelled:
    """The solve was cancelled before completing. No boards are returned."""

    key: str
    reason: str = "Nesting process cancelled by user."

    is_terminal = True


@dataclass(frozen=True)
class Error:
    """The solve failed.

    Attributes:
        key: Cache key of the failed input.
        message: Human-readable failure description.
    """

    key: str
    message: str

    is_terminal = True

    @property
    def user_message(self) -> str:
        """Failure description with retry guidance for display."""
        return f"{self.message}. Check the part dimensions and material settings, then try again."


SolveEvent = Union[Progress, Complete, Cancelled, Error]
