"""
Entity and option models.

Options are frozen pydantic models so a bad flag fails at the call site.
Entities are plain dataclasses owned by the channel; callbacks only ever
see the frozen snapshots.
"""
import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from .errors import InvalidArgumentError
from .matching import Target, event_matcher, is_entity_id
from .result import Result

HookKind = Literal["on", "emit", "off", "trigger", "reply"]
HookFilter = Literal["on", "emit", "off", "trigger", "reply", "all"]
OffKind = Literal["on", "emit", "all"]

HOOK_KINDS = ("on", "emit", "off", "trigger", "reply", "all")
OFF_KINDS = ("on", "emit", "all")


class OnOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    wait: StrictBool = False
    once: StrictBool = False


class EmitOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    wait: StrictBool = False
    once: StrictBool = False
    on_reply: Optional[Callable[..., Any]] = None


class HookOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: HookFilter = "all"
    once: StrictBool = False


M = TypeVar('M', bound=BaseModel)


def build_options(model: Type[M], **values: Any) -> M:
    """Validate options, re-raising pydantic errors as InvalidArgumentError."""
    try:
        return model(**values)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid {model.__name__}: {e}") from e


@dataclass(frozen=True)
class ListenerSnapshot:
    id: int
    event: str
    callback: Callable
    wait: bool
    once: bool


@dataclass(frozen=True)
class TriggerSnapshot:
    id: int
    event: str
    payload: Any
    replies: Mapping[int, Any]
    wait: bool
    once: bool


@dataclass(frozen=True)
class HookEvent:
    """What a hook callback receives: the firing kind and the entities involved."""
    kind: HookKind
    on: Optional[ListenerSnapshot] = None
    emit: Optional[TriggerSnapshot] = None


@dataclass(eq=False)
class Listener:
    id: int
    event: str
    callback: Callable
    options: OnOptions
    result: Result
    closing: bool = False

    def snapshot(self) -> ListenerSnapshot:
        return ListenerSnapshot(
            id=self.id,
            event=self.event,
            callback=self.callback,
            wait=self.options.wait,
            once=self.options.once,
        )


@dataclass(eq=False)
class Trigger:
    id: int
    event: str
    payload: Any
    options: EmitOptions
    result: Result
    replies: Dict[int, Any] = field(default_factory=dict)
    # Listener ids already dispatched to; a pair runs at most once.
    paired: Set[int] = field(default_factory=set)
    tasks: Set[asyncio.Task] = field(default_factory=set)
    # Set by explicit removal; retirement after dispatch leaves it False
    # so replies still in flight are delivered.
    cancelled: bool = False
    closing: bool = False

    def snapshot(self) -> TriggerSnapshot:
        return TriggerSnapshot(
            id=self.id,
            event=self.event,
            payload=self.payload,
            replies=MappingProxyType(dict(self.replies)),
            wait=self.options.wait,
            once=self.options.once,
        )


@dataclass(eq=False)
class Hook:
    id: int
    target: Target
    callback: Callable
    options: HookOptions
    result: Result
    closing: bool = False
    _matcher: Optional[Callable[[str], bool]] = field(default=None, repr=False)

    def __post_init__(self):
        if not is_entity_id(self.target):
            self._matcher = event_matcher(self.target)

    def accepts(self, kind: str) -> bool:
        return self.options.kind == "all" or self.options.kind == kind

    def matches(self, listener: Optional[Listener], trigger: Optional[Trigger]) -> bool:
        entities = [e for e in (listener, trigger) if e is not None]
        if self._matcher is None:
            return any(e.id == self.target for e in entities)
        return any(self._matcher(e.event) for e in entities)
