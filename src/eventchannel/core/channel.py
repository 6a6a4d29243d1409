"""
EventChannel - bidirectional event rendezvous.

Listeners (`on`) and triggers (`emit`) meet on an event name whichever
registers first. Each pairing runs the listener with the trigger's payload
and may hand a reply back to the trigger's `on_reply` callback, which sees
every reply collected so far.

Usage:
    channel = EventChannel()

    # Reply-producing listener
    channel.on("user.lookup", lambda user_id, handle: users[user_id])

    # Emit and collect replies
    channel.emit("user.lookup", 7, on_reply=lambda replies, handle: print(replies))

    # Fire now, handle later: the trigger waits for future listeners
    channel.emit("app.ready", config, wait=True)

    # Await a coroutine listener's result before it counts as a reply
    channel.on("thumb.render", render_async, wait=True)

    # Await every reply of one emit
    replies = await channel.emit_async("thumb.render", path)
"""
import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set

from loguru import logger

from .config import ChannelConfig, load_config
from .decorators import bind_listeners
from .errors import InvalidArgumentError
from .hooks import HookRegistry
from .ids import IdAllocator
from .matching import Target, event_matcher, is_entity_id, validate_callback, validate_event, validate_target
from .models import (
    OFF_KINDS,
    EmitOptions,
    Hook,
    HookOptions,
    Listener,
    OnOptions,
    Trigger,
    build_options,
)
from .registry import Registry
from .result import Result, Size
from .scope import Scope
from .view import EventView


def _keep_replies(replies, handle) -> None:
    """on_reply used by emit_async; the replies are read off the trigger afterwards."""


class EventChannel:
    """
    In-process registry of listeners, triggers and hooks.

    All registry mutation is synchronous. The single suspension point is
    awaiting the return value of a listener registered with wait=True;
    that runs as an asyncio task on the running loop and re-checks
    liveness before its reply is recorded.
    """

    def __init__(self, config: Optional[ChannelConfig] = None):
        self.config = config or ChannelConfig()
        self._ids = IdAllocator()
        self._listeners: Registry[Listener] = Registry()
        self._triggers: Registry[Trigger] = Registry()
        self._hooks = HookRegistry()
        self._pending: Set[asyncio.Task] = set()

    @classmethod
    def from_file(cls, filepath: str) -> "EventChannel":
        """Create a channel configured from a JSON or TOML file."""
        return cls(load_config(filepath))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on(
        self,
        event: str,
        callback: Callable,
        *,
        wait: Optional[bool] = None,
        once: Optional[bool] = None,
    ) -> Result:
        """
        Register a listener.

        The callback is called as `callback(payload, handle)` where handle is
        the listener's own Result, so it can cancel itself. Triggers already
        pending on the event are paired immediately.

        Args:
            event: Event name
            callback: Listener function (plain or returning an awaitable)
            wait: Await the callback's return value before it counts as a reply
            once: Release the listener after its first completed pairing

        Returns:
            Result handle for the listener
        """
        validate_event(event)
        validate_callback(callback)
        options = build_options(OnOptions, **self.config.resolve("on", event, wait=wait, once=once))

        listener_id = self._ids.next()
        listener = Listener(
            id=listener_id,
            event=event,
            callback=callback,
            options=options,
            result=Result(listener_id, self),
        )
        self._listeners.add(listener_id, listener)
        logger.debug(f"Listener {listener_id} registered on '{event}'")
        self._hooks.notify("on", listener=listener)

        for trigger in self._triggers.select(lambda t: t.event == event):
            if listener.id not in self._listeners:
                break
            if trigger.id not in self._triggers:
                continue
            if self._rendezvous(listener, trigger) and not trigger.options.wait:
                self._retire(trigger)

        return listener.result

    def once(self, event: str, callback: Callable, *, wait: Optional[bool] = None) -> Result:
        """Register a listener that releases itself after its first completed pairing."""
        return self.on(event, callback, wait=wait, once=True)

    def emit(
        self,
        event: str,
        payload: Any = None,
        *,
        wait: Optional[bool] = None,
        once: Optional[bool] = None,
        on_reply: Optional[Callable] = None,
    ) -> Result:
        """
        Register a trigger and dispatch it to current listeners.

        The trigger is always stored. It is retired after dispatch only when
        at least one listener matched and wait is false; otherwise it stays
        pending until a future `on` matches it or it is turned off.

        Args:
            event: Event name
            payload: Value passed to every matched listener
            wait: Keep the trigger open for listeners registered later
            once: Release the trigger after its first completed pairing
            on_reply: Called as `on_reply(replies, handle)` after each reply

        Returns:
            Result handle for the trigger
        """
        return self._emit(event, payload, wait=wait, once=once, on_reply=on_reply).result

    async def emit_async(
        self,
        event: str,
        payload: Any = None,
        *,
        wait: Optional[bool] = None,
        once: Optional[bool] = None,
    ) -> Dict[int, Any]:
        """
        Emit and await the replies of the listeners it reached.

        Every wait=True reply started by this trigger is awaited before the
        collected replies are returned. Cancelling the awaiting task turns the
        trigger off, so replies still in flight are dropped.

        Returns:
            Replies keyed by listener id, in completion order
        """
        trigger = self._emit(event, payload, wait=wait, once=once, on_reply=_keep_replies)
        try:
            while trigger.tasks:
                await asyncio.wait(list(trigger.tasks))
        except asyncio.CancelledError:
            self._remove_trigger(trigger, cancel=True)
            raise
        return dict(trigger.replies)

    def _emit(
        self,
        event: str,
        payload: Any,
        *,
        wait: Optional[bool],
        once: Optional[bool],
        on_reply: Optional[Callable],
    ) -> Trigger:
        validate_event(event)
        if on_reply is not None:
            validate_callback(on_reply, "on_reply")
        options = build_options(
            EmitOptions,
            **self.config.resolve("emit", event, wait=wait, once=once, on_reply=on_reply),
        )

        trigger_id = self._ids.next()
        trigger = Trigger(
            id=trigger_id,
            event=event,
            payload=payload,
            options=options,
            result=Result(trigger_id, self),
        )
        self._triggers.add(trigger_id, trigger)
        logger.debug(f"Trigger {trigger_id} emitted on '{event}'")
        self._hooks.notify("emit", trigger=trigger)

        matched = False
        for listener in self._listeners.select(lambda l: l.event == event):
            if trigger.id not in self._triggers:
                break
            if listener.id not in self._listeners:
                continue
            matched = self._rendezvous(listener, trigger) or matched

        if matched and not trigger.options.wait:
            self._retire(trigger)

        return trigger

    def hook(
        self,
        target: Target,
        callback: Callable,
        *,
        kind: str = "all",
        once: bool = False,
    ) -> Result:
        """
        Observe lifecycle notifications.

        Args:
            target: Event name, compiled pattern, or one entity id
            callback: Called as `callback(HookEvent, handle)`
            kind: 'on', 'emit', 'off', 'trigger', 'reply' or 'all'
            once: Release the hook after its first call
        """
        validate_target(target)
        validate_callback(callback)
        options = build_options(HookOptions, kind=kind, once=once)

        hook_id = self._ids.next()
        hook = Hook(
            id=hook_id,
            target=target,
            callback=callback,
            options=options,
            result=Result(hook_id, self),
        )
        self._hooks.add(hook)
        return hook.result

    # ------------------------------------------------------------------
    # Removal and queries
    # ------------------------------------------------------------------

    def off(self, target: Target, kind: str = "all") -> List[int]:
        """
        Remove entities.

        An id removes that one listener, trigger or hook. An event name or
        compiled pattern removes every matching listener and/or trigger,
        depending on kind ('on', 'emit' or 'all'). Stale targets are ignored.

        Returns:
            Ids actually removed
        """
        if is_entity_id(target):
            return [target] if self._release(target) else []

        if kind not in OFF_KINDS:
            raise InvalidArgumentError(f"kind must be one of {OFF_KINDS}, got {kind!r}")
        match = event_matcher(target)
        removed: List[int] = []
        if kind in ("on", "all"):
            for listener in self._listeners.select(lambda l: match(l.event)):
                if self._remove_listener(listener):
                    removed.append(listener.id)
        if kind in ("emit", "all"):
            for trigger in self._triggers.select(lambda t: match(t.event)):
                if self._remove_trigger(trigger, cancel=True):
                    removed.append(trigger.id)
        return removed

    def has(self, entity_id: int) -> bool:
        """Whether the id belongs to a live listener, trigger or hook."""
        return entity_id in self._listeners or entity_id in self._triggers or entity_id in self._hooks

    def size(self, target: Target) -> Size:
        """
        Count live entities.

        For an event name or pattern: matching listeners and triggers.
        For an id: 0 or 1 in each of on, emit and hook.
        """
        if is_entity_id(target):
            return Size(
                on=int(target in self._listeners),
                emit=int(target in self._triggers),
                hook=int(target in self._hooks),
            )
        match = event_matcher(target)
        return Size(
            on=len(self._listeners.select(lambda l: match(l.event))),
            emit=len(self._triggers.select(lambda t: match(t.event))),
        )

    def clear(self) -> None:
        """Remove every listener and trigger (notifying hooks), then every hook."""
        for listener in self._listeners.values():
            self._remove_listener(listener)
        for trigger in self._triggers.values():
            self._remove_trigger(trigger, cancel=True)
        self._hooks.clear()

    async def join(self) -> None:
        """Wait until every in-flight wait=True reply has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Convenience views
    # ------------------------------------------------------------------

    def scope(self) -> Scope:
        """Create a Scope that records ids registered through it."""
        return Scope(self)

    def event(self, name: Optional[str] = None, *, prefix: str = "") -> EventView:
        """Create an EventView bound to one event name (random when omitted)."""
        return EventView(self, name, prefix=prefix)

    def bind(self, obj: Any) -> Scope:
        """Register every @listens-decorated method of obj; returns the Scope holding them."""
        return bind_listeners(self, obj)

    # ------------------------------------------------------------------
    # Rendezvous protocol
    # ------------------------------------------------------------------

    def _rendezvous(self, listener: Listener, trigger: Trigger) -> bool:
        if listener.id in trigger.paired:
            return False
        trigger.paired.add(listener.id)
        self._hooks.notify("trigger", listener=listener, trigger=trigger)
        try:
            value = listener.callback(trigger.payload, listener.result)
        except Exception as e:
            logger.error(f"Error in listener {listener.id} for '{listener.event}': {e}")
            return True

        if listener.options.wait:
            self._await_reply(listener, trigger, value)
        else:
            self._complete(listener, trigger, value)
        return True

    def _await_reply(self, listener: Listener, trigger: Trigger, value: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(value):
                value.close()
            logger.error(
                f"Listener {listener.id} for '{listener.event}' waits on its result "
                f"but no event loop is running; reply dropped"
            )
            return

        async def settle():
            try:
                reply = await value if inspect.isawaitable(value) else value
            except Exception as e:
                logger.error(f"Error in listener {listener.id} for '{listener.event}': {e}")
                return
            self._complete(listener, trigger, reply)

        task = loop.create_task(settle())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        trigger.tasks.add(task)
        task.add_done_callback(trigger.tasks.discard)

    def _complete(self, listener: Listener, trigger: Trigger, reply: Any) -> None:
        if listener.id not in self._listeners or trigger.cancelled:
            logger.debug(f"Reply from listener {listener.id} to trigger {trigger.id} abandoned")
            return

        if trigger.options.on_reply is not None:
            trigger.replies[listener.id] = reply
            self._hooks.notify("reply", listener=listener, trigger=trigger)
            try:
                trigger.options.on_reply(dict(trigger.replies), trigger.result)
            except Exception as e:
                logger.error(f"Error in on_reply of trigger {trigger.id} for '{trigger.event}': {e}")

        if listener.options.once:
            self._remove_listener(listener)
        if trigger.options.once:
            self._remove_trigger(trigger, cancel=True)

    # ------------------------------------------------------------------
    # Removal internals
    # ------------------------------------------------------------------

    def _release(self, entity_id: int) -> bool:
        listener = self._listeners.get(entity_id)
        if listener is not None:
            return self._remove_listener(listener)
        trigger = self._triggers.get(entity_id)
        if trigger is not None:
            return self._remove_trigger(trigger, cancel=True)
        return self._hooks.remove(entity_id)

    def _retire(self, trigger: Trigger) -> None:
        if self._remove_trigger(trigger, cancel=False):
            logger.debug(f"Trigger {trigger.id} retired after dispatch")

    def _remove_listener(self, listener: Listener) -> bool:
        if listener.closing or listener.id not in self._listeners:
            return False
        listener.closing = True
        self._hooks.notify("off", listener=listener)
        self._listeners.pop(listener.id)
        logger.debug(f"Listener {listener.id} removed from '{listener.event}'")
        return True

    def _remove_trigger(self, trigger: Trigger, cancel: bool) -> bool:
        if trigger.closing or trigger.id not in self._triggers:
            return False
        trigger.closing = True
        if cancel:
            trigger.cancelled = True
        self._hooks.notify("off", trigger=trigger)
        self._triggers.pop(trigger.id)
        logger.debug(f"Trigger {trigger.id} removed from '{trigger.event}'")
        return True
