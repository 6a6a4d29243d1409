"""
eventchannel - In-process Event Rendezvous

Listeners and triggers meet on named events in either registration order,
exchange replies, and can be observed through hooks.
"""

# Core
from eventchannel.core.channel import EventChannel
from eventchannel.core.scope import Scope
from eventchannel.core.view import EventView
from eventchannel.core.result import Result, Size
from eventchannel.core.models import (
    HookEvent,
    ListenerSnapshot,
    TriggerSnapshot,
    OnOptions,
    EmitOptions,
    HookOptions,
)
from eventchannel.core.decorators import listens
from eventchannel.core.tasks import AsyncTaskQueue

# Configuration & logging
from eventchannel.core.config import (
    ChannelConfig,
    OptionDefaults,
    OptionOverrides,
    EventOverrides,
    LoggingSettings,
    load_config,
    save_config,
)
from eventchannel.core.logging import setup_logging

# Errors
from eventchannel.core.errors import (
    EventChannelError,
    InvalidArgumentError,
    ScopeDestroyedError,
    TaskQueueError,
    TaskCancelledError,
    TaskFailedError,
)

__version__ = "0.1.0"

__all__ = [
    "EventChannel",
    "Scope",
    "EventView",
    "Result",
    "Size",
    "HookEvent",
    "ListenerSnapshot",
    "TriggerSnapshot",
    "OnOptions",
    "EmitOptions",
    "HookOptions",
    "listens",
    "AsyncTaskQueue",
    "ChannelConfig",
    "OptionDefaults",
    "OptionOverrides",
    "EventOverrides",
    "LoggingSettings",
    "load_config",
    "save_config",
    "setup_logging",
    "EventChannelError",
    "InvalidArgumentError",
    "ScopeDestroyedError",
    "TaskQueueError",
    "TaskCancelledError",
    "TaskFailedError",
]
