"""
Exception hierarchy for eventchannel.

Listener, hook and reply callback failures are never raised to the caller;
they are logged by the channel. Only caller mistakes surface as exceptions.
"""


class EventChannelError(Exception):
    """Base exception for all eventchannel errors."""
    pass


class InvalidArgumentError(EventChannelError, ValueError):
    """Raised at the call site for a bad event, callback, target or option."""
    pass


class ScopeDestroyedError(EventChannelError, RuntimeError):
    """Raised when a destroyed Scope or EventView is used again."""
    pass


class TaskQueueError(EventChannelError):
    """Base exception for AsyncTaskQueue runs."""
    pass


class TaskCancelledError(TaskQueueError):
    """The queue run was cancelled before finishing."""
    pass


class TaskFailedError(TaskQueueError):
    """A step raised; the original exception is chained as __cause__."""

    def __init__(self, step: str, error: BaseException):
        super().__init__(f"Task step '{step}' failed: {error}")
        self.step = step
        self.error = error
