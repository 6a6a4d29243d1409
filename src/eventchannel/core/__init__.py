"""
Event Channel Core.

Provides:
- EventChannel: listener/trigger rendezvous with reply aggregation and hooks
- Scope: bulk cancellation of ids registered through it
- EventView: channel facade fixed to one event name
- AsyncTaskQueue: ordered pipeline of named async steps

Usage:
    from eventchannel.core import EventChannel

    channel = EventChannel()
    channel.on("price.quote", lambda symbol, handle: quotes[symbol])
    channel.emit("price.quote", "ACME", on_reply=lambda replies, handle: print(replies))
"""
from .channel import EventChannel
from .scope import Scope
from .view import EventView
from .tasks import AsyncTaskQueue
from .result import Result, Size
from .models import (
    HookEvent,
    ListenerSnapshot,
    TriggerSnapshot,
    OnOptions,
    EmitOptions,
    HookOptions,
)


__all__ = [
    "EventChannel",
    "Scope",
    "EventView",
    "AsyncTaskQueue",
    "Result",
    "Size",
    "HookEvent",
    "ListenerSnapshot",
    "TriggerSnapshot",
    "OnOptions",
    "EmitOptions",
    "HookOptions",
]
