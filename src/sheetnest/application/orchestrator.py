"""Off-thread nesting solves with progress, cancellation and caching.

The orchestrator keeps the interactive thread responsive: solve() returns a
SolveHandle immediately and the engine runs on a daemon worker thread. The
worker pushes typed events onto the handle's queue; the caller polls the
handle (typically every 100 ms) or waits on it.

Only one solve runs at a time per orchestrator. Starting a new solve
cancels the one in flight; the new worker joins the old one before it
starts nesting, so solve() itself never waits on a worker.
"""

from __future__ import annotations

import logging
import threading
import time
from queue import Empty, Queue
from typing import TYPE_CHECKING, Callable, Iterator

from sheetnest.application.cache import ResultCache
from sheetnest.application.events import Cancelled, Complete, Error, Progress, SolveEvent
from sheetnest.domain.exceptions import NestingCancelled, NestingError, OrchestrationError
from sheetnest.infrastructure.cache_key import generate_cache_key
from sheetnest.infrastructure.nesting_engine import GuillotineNestingEngine

if TYPE_CHECKING:
    from sheetnest.contracts.protocols import NestingEngineProtocol
    from sheetnest.domain.entities import NestingResult
    from sheetnest.domain.value_objects import NestingSettings, PartsByMaterial

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_JOIN_TIMEOUT = 5.0


class SolveHandle:
    """Handle to one solve request.

    The worker thread publishes events; the caller consumes them with
    poll(), events() or wait(). The terminal event is delivered exactly once
    and is always the last event. Once it is delivered the worker thread is
    joined.

    Attributes:
        key: Cache key of the solved input.
        from_cache: True if the result was served from the cache.
    """

    def __init__(
        self,
        key: str,
        *,
        from_cache: bool = False,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        self.key = key
        self.from_cache = from_cache
        self._join_timeout = join_timeout
        self._queue: Queue[SolveEvent] = Queue()
        self._cancel_event = threading.Event()
        # Guards terminal emission against cancel() and abandonment.
        self._lock = threading.Lock()
        self._terminal_published = False
        self._abandoned = False
        self._cancel_time: float | None = None
        self._outcome: SolveEvent | None = None
        self._thread: threading.Thread | None = None

    @classmethod
    def from_cached(
        cls, key: str, result: "NestingResult", join_timeout: float = DEFAULT_JOIN_TIMEOUT
    ) -> "SolveHandle":
        """Build an already finished handle for a cache hit."""
        handle = cls(key, from_cache=True, join_timeout=join_timeout)
        handle._queue.put(Progress("Using cached results...", 100.0))
        handle._queue.put(Complete(result=result, key=key, from_cache=True))
        handle._terminal_published = True
        return handle

    # ------------------------------------------------------------------
    # Caller side
    # ------------------------------------------------------------------

    @property
    def done(self) -> bool:
        """True once the terminal event has been delivered to the caller."""
        return self._outcome is not None

    @property
    def outcome(self) -> SolveEvent | None:
        """The terminal event, or None while the solve is unfinished."""
        return self._outcome

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def running(self) -> bool:
        """True while the worker has not published its terminal event."""
        with self._lock:
            return not self._terminal_published

    def cancel(self) -> bool:
        """Request cooperative cancellation.

        The worker observes the request at its next placement checkpoint.

        Returns:
            True if the request was registered, False if the solve had
            already finished.
        """
        with self._lock:
            if self._terminal_published:
                return False
            if self._cancel_time is None:
                self._cancel_time = time.monotonic()
            self._cancel_event.set()
        logger.info("Cancellation requested for solve %s", self.key[:12])
        return True

    def poll(self) -> list[SolveEvent]:
        """Return all pending events without blocking, in emission order.

        A worker that has ignored a cancel request for longer than the join
        timeout is abandoned here, which ends the stream with Cancelled.
        """
        self._abandon_if_stalled()
        events: list[SolveEvent] = []
        while not self.done:
            try:
                event = self._queue.get_nowait()
            except Empty:
                break
            self._deliver(event)
            events.append(event)
        return events

    def events(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
    ) -> Iterator[SolveEvent]:
        """Yield events until the terminal one, polling at a fixed interval.

        Args:
            poll_interval: Seconds between polls.
            timeout: Seconds after which the solve is cancelled. The
                Cancelled event is still yielded.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            yield from self.poll()
            if self.done:
                return
            if deadline is not None and time.monotonic() >= deadline and not self.cancel_requested:
                logger.warning(
                    "Solve %s exceeded %.1f s, cancelling", self.key[:12], timeout
                )
                self.cancel()
            if self.running:
                time.sleep(poll_interval)

    def wait(self, timeout: float | None = None) -> SolveEvent | None:
        """Block until the terminal event, discarding progress events.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely.

        Returns:
            The terminal event, or None if the timeout expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.done:
            self._abandon_if_stalled()
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return None
            block = DEFAULT_POLL_INTERVAL
            if remaining is not None:
                block = min(remaining, block)
            try:
                event = self._queue.get(timeout=block)
            except Empty:
                continue
            self._deliver(event)
        return self._outcome

    def result(self, timeout: float | None = None) -> "NestingResult":
        """Wait for the solve and return its result.

        Raises:
            TimeoutError: If the solve did not finish within timeout.
            NestingCancelled: If the solve was cancelled.
            NestingError: If the solve failed.
        """
        outcome = self.wait(timeout)
        if outcome is None:
            raise TimeoutError(f"Solve {self.key[:12]} did not finish within {timeout} s")
        if isinstance(outcome, Complete):
            return outcome.result
        if isinstance(outcome, Cancelled):
            raise NestingCancelled(outcome.reason)
        raise NestingError(outcome.message)

    def _deliver(self, event: SolveEvent) -> None:
        if event.is_terminal:
            self._outcome = event
            self._release_worker()

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _publish_progress(self, message: str, percentage: float) -> None:
        with self._lock:
            if self._terminal_published or self._abandoned or self._cancel_event.is_set():
                return
            self._queue.put(Progress(message, percentage))

    def _publish_terminal(self, event: SolveEvent) -> None:
        with self._lock:
            if self._terminal_published or self._abandoned:
                return
            self._queue.put(event)
            self._terminal_published = True

    def _publish_complete(
        self, result: "NestingResult", commit: Callable[[], object]
    ) -> None:
        """Publish Complete, or Cancelled if cancellation won the race.

        commit runs under the handle lock right before Complete is queued, so
        a cancelled solve is never committed to the cache.
        """
        with self._lock:
            if self._terminal_published or self._abandoned:
                return
            if self._cancel_event.is_set():
                event: SolveEvent = Cancelled(key=self.key)
            else:
                try:
                    commit()
                except Exception as exc:
                    logger.exception("Storing result %s failed", self.key[:12])
                    event = Error(key=self.key, message=f"Storing nesting result failed: {exc}")
                else:
                    event = Complete(result=result, key=self.key)
            self._queue.put(event)
            self._terminal_published = True

    # ------------------------------------------------------------------
    # Worker lifecycle
    # ------------------------------------------------------------------

    def _start(self, target: Callable[[], None]) -> None:
        self._thread = threading.Thread(
            target=target,
            name=f"sheetnest-solve-{self.key[:8]}",
            daemon=True,
        )
        self._thread.start()

    @property
    def _worker_alive(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _release_worker(self, timeout: float | None = None) -> None:
        """Join the worker, abandoning it if it does not stop in time.

        Python threads cannot be killed. An unresponsive worker is a daemon,
        so it never blocks interpreter exit, and anything it publishes later
        is discarded.

        Args:
            timeout: Seconds to join for; defaults to the join timeout.
        """
        thread = self._thread
        if thread is None:
            return
        thread.join(self._join_timeout if timeout is None else timeout)
        if thread.is_alive():
            logger.warning(
                "Nesting worker for %s did not stop within %.1f s; abandoning it",
                self.key[:12],
                self._join_timeout,
            )
            with self._lock:
                if not self._terminal_published:
                    self._queue.put(
                        Cancelled(key=self.key, reason="Nesting worker stopped responding.")
                    )
                    self._terminal_published = True
                self._abandoned = True
        self._thread = None

    def _abandon_if_stalled(self) -> None:
        cancel_time = self._cancel_time
        if cancel_time is None or time.monotonic() < cancel_time + self._join_timeout:
            return
        if self.running:
            self._release_worker(timeout=0.0)

    def _retire(self) -> None:
        """Cancel the solve and join its worker."""
        self.cancel()
        self._release_worker()


class SolveOrchestrator:
    """Runs nesting solves off the calling thread and caches their results.

    Example:
        ```python
        orchestrator = SolveOrchestrator()
        handle = orchestrator.solve(parts_by_material, settings)
        for event in handle.events():
            if isinstance(event, Progress):
                show_progress(event.message, event.percentage)
        if isinstance(handle.outcome, Complete):
            render(handle.outcome.boards)
        ```

    Attributes:
        cache: Shared result cache.
        join_timeout: Seconds to wait for a worker to stop before it is
            abandoned.
    """

    def __init__(
        self,
        engine: "NestingEngineProtocol | None" = None,
        cache: ResultCache | None = None,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        self._engine = engine if engine is not None else GuillotineNestingEngine()
        self.cache = cache if cache is not None else ResultCache()
        self.join_timeout = join_timeout
        self._active: SolveHandle | None = None
        # Cancelled solves whose workers may still be running.
        self._superseded: list[SolveHandle] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> SolveHandle | None:
        """Handle of the most recent solve request."""
        return self._active

    @property
    def is_running(self) -> bool:
        """True while a solve worker has not finished."""
        handle = self._active
        return handle is not None and handle.running

    def solve(
        self,
        parts_by_material: "PartsByMaterial",
        settings: "NestingSettings",
    ) -> SolveHandle:
        """Start a solve and return its handle without blocking.

        A cached result for the same input is returned through an already
        finished handle, so callers consume both paths the same way. A solve
        in flight is cancelled; its worker is joined by the new worker, not
        by the caller.

        Args:
            parts_by_material: Part types and quantities grouped by material.
            settings: Nesting settings.

        Returns:
            Handle streaming Progress events and one terminal event.

        Raises:
            OrchestrationError: If the worker thread cannot be started.
            ValueError: If a quantity is negative or not a whole number.
        """
        # Snapshot the input so later caller mutations do not reach the worker.
        parts = {material: list(entries) for material, entries in parts_by_material.items()}
        key = generate_cache_key(parts, settings)

        with self._lock:
            previous = self._supersede_active()

            cached = self.cache.get(key)
            if cached is not None:
                logger.info("Using cached nesting result %s", key[:12])
                handle = SolveHandle.from_cached(key, cached, self.join_timeout)
                self._active = handle
                return handle

            handle = SolveHandle(key, join_timeout=self.join_timeout)
            try:
                handle._start(lambda: self._run(handle, parts, settings, previous))
            except RuntimeError as exc:
                raise OrchestrationError(f"Could not start nesting worker: {exc}") from exc
            self._active = handle

        logger.info("Started nesting solve %s", key[:12])
        return handle

    def cancel(self) -> bool:
        """Cancel the solve in flight, if any.

        Returns:
            True if a running solve was asked to stop.
        """
        handle = self._active
        if handle is None:
            return False
        return handle.cancel()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Nesting cache cleared")

    def shutdown(self) -> None:
        """Cancel the solve in flight and join every outstanding worker."""
        with self._lock:
            handles = self._superseded
            if self._active is not None:
                handles.append(self._active)
            self._superseded = []
            self._active = None
            for handle in handles:
                handle._retire()

    def __enter__(self) -> "SolveOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _supersede_active(self) -> SolveHandle | None:
        """Cancel the active solve and return it if its worker is still alive."""
        self._superseded = [h for h in self._superseded if h._worker_alive]
        handle = self._active
        self._active = None
        if handle is None:
            return None
        if handle.running:
            logger.info("Superseding solve %s", handle.key[:12])
            handle.cancel()
        if not handle._worker_alive:
            return None
        self._superseded.append(handle)
        return handle

    def _run(
        self,
        handle: SolveHandle,
        parts: "PartsByMaterial",
        settings: "NestingSettings",
        previous: SolveHandle | None = None,
    ) -> None:
        """Worker body. Every outcome ends in exactly one terminal event."""
        if previous is not None:
            previous._release_worker()
            if handle.cancel_requested:
                handle._publish_terminal(Cancelled(key=handle.key))
                return
        handle._publish_progress("Starting optimization...", 0.0)
        try:
            result = self._engine.optimize(
                parts,
                settings,
                on_progress=handle._publish_progress,
                cancel_event=handle._cancel_event,
            )
        except NestingCancelled:
            logger.info("Solve %s cancelled", handle.key[:12])
            handle._publish_terminal(Cancelled(key=handle.key))
            return
        except Exception as exc:
            logger.exception("Nesting worker for %s failed", handle.key[:12])
            handle._publish_terminal(
                Error(key=handle.key, message=f"Nesting calculation failed: {exc}")
            )
            return

        handle._publish_complete(result, lambda: self.cache.add(handle.key, result))
