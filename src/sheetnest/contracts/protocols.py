"""Service protocols for dependency injection.

The orchestrator depends on these protocols rather than on the concrete
engine, so tests can substitute counting or failing engines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import threading

    from sheetnest.domain.entities import NestingResult
    from sheetnest.domain.value_objects import NestingSettings, PartsByMaterial


class ProgressCallback(Protocol):
    """Receives advisory progress updates from a running solve.

    The return value is ignored; the engine never blocks or retries on it.
    """

    def __call__(self, message: str, percentage: float) -> object: ...


@runtime_checkable
class NestingEngineProtocol(Protocol):
    """Protocol for nesting engines.

    Example:
        ```python
        class MyEngine:
            def optimize(self, parts_by_material, settings,
                         on_progress=None, cancel_event=None):
                ...
                return NestingResult(boards=...)
        ```
    """

    def optimize(
        self,
        parts_by_material: "PartsByMaterial",
        settings: "NestingSettings",
        on_progress: ProgressCallback | None = None,
        cancel_event: "threading.Event | None" = None,
    ) -> "NestingResult":
        """Assign every part instance to a board position.

        Args:
            parts_by_material: Part types and quantities grouped by material.
            settings: Kerf, rotation policy and stock catalog.
            on_progress: Optional callback receiving (message, percentage).
            cancel_event: Optional event polled between placements.

        Returns:
            The boards, unplaceable parts and warnings of the solve.

        Raises:
            NestingCancelled: If cancel_event was set during the solve.
        """
        ...
