from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar('T')


class Registry(Generic[T]):
    """
    Ordered id -> entity store.

    Iteration helpers return list snapshots so callers may add or remove
    entries while walking the result.
    """

    def __init__(self):
        self._items: Dict[int, T] = {}

    def add(self, item_id: int, item: T) -> None:
        self._items[item_id] = item

    def get(self, item_id: int) -> Optional[T]:
        return self._items.get(item_id)

    def pop(self, item_id: int) -> Optional[T]:
        return self._items.pop(item_id, None)

    def select(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self._items.values() if predicate(item)]

    def values(self) -> List[T]:
        return list(self._items.values())

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())
