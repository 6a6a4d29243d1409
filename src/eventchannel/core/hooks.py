"""
Hook Registry - lifecycle observers.

Hooks watch the channel without taking part in dispatch. Every on, emit,
off, trigger (pairing about to run) and reply notification is offered to
each live hook; the hook's kind filter and target decide whether it fires.

Usage:
    channel.hook("file.saved", lambda event, handle: print(event.kind))
    channel.hook(re.compile(r"^file\\."), audit, kind="off")
    channel.hook(listener.id, on_reply_seen, kind="reply", once=True)
"""
from typing import Optional

from loguru import logger

from .models import Hook, HookEvent, HookKind, Listener, Trigger
from .registry import Registry


class HookRegistry:
    """Stores hooks and delivers lifecycle notifications to them."""

    def __init__(self):
        self._hooks: Registry[Hook] = Registry()

    def add(self, hook: Hook) -> None:
        self._hooks.add(hook.id, hook)
        logger.debug(f"Hook {hook.id} registered on {hook.target!r} for '{hook.options.kind}'")

    def remove(self, hook_id: int) -> bool:
        hook = self._hooks.pop(hook_id)
        if hook is None:
            return False
        hook.closing = True
        logger.debug(f"Hook {hook_id} removed")
        return True

    def clear(self) -> None:
        for hook in self._hooks.values():
            self.remove(hook.id)

    def __contains__(self, hook_id: object) -> bool:
        return hook_id in self._hooks

    def __len__(self) -> int:
        return len(self._hooks)

    def notify(
        self,
        kind: HookKind,
        listener: Optional[Listener] = None,
        trigger: Optional[Trigger] = None,
    ) -> None:
        """
        Offer one notification to every live hook.

        Snapshots are built lazily, once per notification. Hook callbacks
        run synchronously; a failing hook is logged and skipped.
        """
        event: Optional[HookEvent] = None
        for hook in self._hooks.values():
            if hook.closing or hook.id not in self._hooks:
                continue
            if not hook.accepts(kind) or not hook.matches(listener, trigger):
                continue
            if event is None:
                event = HookEvent(
                    kind=kind,
                    on=listener.snapshot() if listener is not None else None,
                    emit=trigger.snapshot() if trigger is not None else None,
                )
            try:
                hook.callback(event, hook.result)
            except Exception as e:
                logger.error(f"Error in hook {hook.id} for '{kind}': {e}")
            if hook.options.once:
                self.remove(hook.id)

