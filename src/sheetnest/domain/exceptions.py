"""Exceptions raised by the nesting domain."""


class NestingError(Exception):
    """Base class for nesting failures."""

    pass


class NestingCancelled(NestingError):
    """Raised inside the engine when a solve observes its cancellation signal.

    Cancellation is a terminal outcome, not a failure: callers receive a
    Cancelled event and no boards.
    """

    pass


class OrchestrationError(NestingError):
    """Raised when a solve cannot be run at all, e.g. the worker failed to start."""

    pass
