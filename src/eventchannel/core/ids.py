import itertools


class IdAllocator:
    """Issues strictly increasing ids shared by listeners, triggers and hooks."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next(self) -> int:
        return next(self._counter)
