"""
Decorator Utilities for eventchannel.

Provides declarative listener registration for methods.
"""
import inspect
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

if TYPE_CHECKING:
    from .channel import EventChannel
    from .scope import Scope


def listens(event: str, *, wait: Optional[bool] = None, once: Optional[bool] = None):
    """
    Decorator to mark a method as a channel listener.

    Stack it to listen on several events. Nothing is registered until the
    owning object is passed to `EventChannel.bind()`.

    Args:
        event: Event name
        wait: Forwarded to EventChannel.on
        once: Forwarded to EventChannel.on

    Usage:
        class Indexer:
            @listens("file.saved")
            def on_saved(self, path, handle):
                return self.index(path)

            @listens("file.render", wait=True)
            async def on_render(self, path, handle):
                return await self.render(path)

        scope = channel.bind(Indexer())
    """
    def decorator(func):
        specs = list(getattr(func, '_channel_listeners', []))
        specs.append((event, {"wait": wait, "once": once}))
        func._channel_listeners = specs
        return func
    return decorator


def bind_listeners(channel: "EventChannel", obj: Any) -> "Scope":
    """Register every @listens method of obj through a new Scope."""
    scope = channel.scope()
    for name, method in inspect.getmembers(obj, predicate=inspect.ismethod):
        for event, options in getattr(method, '_channel_listeners', []):
            scope.on(event, method, **options)
            logger.debug(f"{obj.__class__.__name__}.{name} bound to: {event}")
    return scope
