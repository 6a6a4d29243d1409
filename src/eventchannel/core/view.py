import uuid
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .matching import validate_event
from .result import Result, Size
from .scope import Scope

if TYPE_CHECKING:
    from .channel import EventChannel


class EventView:
    """
    Channel facade fixed to one event name.

    Registrations go through a private Scope, so `destroy()` releases
    everything the view created.

    Usage:
        saved = channel.event(prefix="file.saved:")
        saved.on(lambda path, handle: reindex(path))
        saved.emit("/tmp/a.txt")
    """

    def __init__(self, channel: "EventChannel", name: Optional[str] = None, *, prefix: str = ""):
        self.name = validate_event(name if name is not None else prefix + uuid.uuid4().hex[:16])
        self._scope = Scope(channel)

    def on(self, callback: Callable, *, wait: Optional[bool] = None,
           once: Optional[bool] = None) -> Result:
        return self._scope.on(self.name, callback, wait=wait, once=once)

    def once(self, callback: Callable, *, wait: Optional[bool] = None) -> Result:
        return self._scope.once(self.name, callback, wait=wait)

    def emit(self, payload: Any = None, *, wait: Optional[bool] = None,
             once: Optional[bool] = None, on_reply: Optional[Callable] = None) -> Result:
        return self._scope.emit(self.name, payload, wait=wait, once=once, on_reply=on_reply)

    def hook(self, callback: Callable, *, kind: str = "all", once: bool = False) -> Result:
        return self._scope.hook(self.name, callback, kind=kind, once=once)

    def off(self, kind: str = "all") -> List[int]:
        return self._scope.off(self.name, kind)

    def size(self) -> Size:
        return self._scope.size(self.name)

    def destroy(self) -> None:
        self._scope.destroy()

    def __repr__(self) -> str:
        return f"EventView({self.name!r})"
