"""
Handles returned from registration calls.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .channel import EventChannel


@dataclass(frozen=True)
class Result:
    """
    Handle for one registered listener, trigger or hook.

    The channel stays the only authority on liveness: `has()` asks it,
    `off()` asks it to remove the entity. Both are safe to call at any time.
    """
    id: int
    channel: "EventChannel" = field(repr=False, compare=False)

    def has(self) -> bool:
        return self.channel.has(self.id)

    def off(self) -> None:
        self.channel.off(self.id)


@dataclass(frozen=True)
class Size:
    """Counts returned by EventChannel.size()."""
    on: int = 0
    emit: int = 0
    hook: int = 0

    @property
    def count(self) -> int:
        return self.on + self.emit + self.hook
