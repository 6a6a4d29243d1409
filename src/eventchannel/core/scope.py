"""
Scope - bulk cancellation view over an EventChannel.

Every id produced through the scope is recorded; `clear()` turns them all
off and `destroy()` additionally disables the scope. Ids registered
directly on the channel are never touched.

Usage:
    with channel.scope() as scope:
        scope.on("file.saved", refresh)
        scope.emit("panel.opened", panel_id, wait=True)
    # everything registered above is off again
"""
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from loguru import logger

from .errors import ScopeDestroyedError
from .matching import Target
from .result import Result, Size

if TYPE_CHECKING:
    from .channel import EventChannel


class Scope:
    """Records ids registered through it so they can be turned off together."""

    def __init__(self, channel: "EventChannel"):
        self._channel = channel
        self._ids: Dict[int, None] = {}
        self._destroyed = False

    @property
    def channel(self) -> "EventChannel":
        return self._channel

    @property
    def ids(self) -> List[int]:
        """Recorded ids, in registration order."""
        return list(self._ids)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def on(self, event: str, callback: Callable, *, wait: Optional[bool] = None,
           once: Optional[bool] = None) -> Result:
        self._check()
        return self._record(self._channel.on(event, callback, wait=wait, once=once))

    def once(self, event: str, callback: Callable, *, wait: Optional[bool] = None) -> Result:
        self._check()
        return self._record(self._channel.once(event, callback, wait=wait))

    def emit(self, event: str, payload: Any = None, *, wait: Optional[bool] = None,
             once: Optional[bool] = None, on_reply: Optional[Callable] = None) -> Result:
        self._check()
        return self._record(
            self._channel.emit(event, payload, wait=wait, once=once, on_reply=on_reply)
        )

    def hook(self, target: Target, callback: Callable, *, kind: str = "all",
             once: bool = False) -> Result:
        self._check()
        return self._record(self._channel.hook(target, callback, kind=kind, once=once))

    def off(self, target: Target, kind: str = "all") -> List[int]:
        """Forward to EventChannel.off; removal is not limited to recorded ids."""
        self._check()
        return self._channel.off(target, kind)

    def size(self, target: Target) -> Size:
        self._check()
        return self._channel.size(target)

    def clear(self) -> None:
        """Turn off every recorded id; the scope stays usable."""
        self._check()
        ids = list(self._ids)
        self._ids.clear()
        for entity_id in ids:
            self._channel.off(entity_id)
        logger.debug(f"Scope cleared {len(ids)} ids")

    def destroy(self) -> None:
        """Clear, then refuse any further use."""
        if self._destroyed:
            return
        self.clear()
        self._destroyed = True

    def _record(self, result: Result) -> Result:
        self._ids[result.id] = None
        return result

    def _check(self) -> None:
        if self._destroyed:
            raise ScopeDestroyedError("Scope has been destroyed")

    def __enter__(self) -> "Scope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()
