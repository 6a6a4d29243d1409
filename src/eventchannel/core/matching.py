"""
Target matching helpers.

A target is chosen by the caller at call time:
    "file.saved"              exact event name
    re.compile(r"^file\\.")    pattern searched in the event name
    42                        one entity id (hooks, off, size, has)
"""
import re
from typing import Any, Callable, Pattern, Union

from .errors import InvalidArgumentError

EventTarget = Union[str, Pattern[str]]
Target = Union[str, Pattern[str], int]


def is_entity_id(target: Any) -> bool:
    return isinstance(target, int) and not isinstance(target, bool)


def validate_event(event: Any) -> str:
    if not isinstance(event, str) or not event:
        raise InvalidArgumentError(f"event must be a non-empty string, got {event!r}")
    return event


def validate_callback(callback: Any, name: str = "callback") -> Callable:
    if not callable(callback):
        raise InvalidArgumentError(f"{name} must be callable, got {type(callback).__name__}")
    return callback


def event_matcher(target: EventTarget) -> Callable[[str], bool]:
    """Build a predicate over event names for a string or compiled pattern."""
    if isinstance(target, re.Pattern):
        return lambda name: target.search(name) is not None
    if isinstance(target, str) and target:
        return lambda name: name == target
    raise InvalidArgumentError(f"target must be an event name or compiled pattern, got {target!r}")


def validate_target(target: Any) -> Target:
    if is_entity_id(target):
        return target
    event_matcher(target)
    return target
