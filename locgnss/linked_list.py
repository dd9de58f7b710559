"""Doubly ended list: items go in at the head and come out at the tail."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Deque, Optional, Tuple

Dealloc = Optional[Callable[[Any], None]]


class LinkedListEmpty(LookupError):
    """Raised when an item is requested from a list that holds none."""


class LinkedList:
    """First-in first-out list with optional per-item release callbacks.

    New items are added at the head; :meth:`remove` takes the oldest item
    from the tail. Each item may carry a ``dealloc`` callable that
    :meth:`flush` invokes when it discards the item.
    """

    def __init__(self) -> None:
        self._entries: Deque[Tuple[Any, Dealloc]] = deque()

    def add(self, item: Any, dealloc: Dealloc = None) -> None:
        """Add ``item`` at the head of the list."""
        if item is None:
            raise ValueError("cannot add None to the list")
        self._entries.appendleft((item, dealloc))

    def remove(self) -> Any:
        """Remove and return the item at the tail (the oldest one)."""
        if not self._entries:
            raise LinkedListEmpty("list is empty")
        item, _ = self._entries.pop()
        return item

    def flush(self) -> None:
        """Discard every item, head first, releasing those that have a dealloc."""
        while self._entries:
            item, dealloc = self._entries.popleft()
            if dealloc is not None:
                dealloc(item)

    def search(
        self,
        predicate: Callable[[Any, Any], bool],
        target: Any,
        remove: bool = False,
    ) -> Any:
        """Return the first item, from the head, for which ``predicate(target, item)`` holds.

        Returns None when nothing matches. With ``remove`` the matching item
        is also taken out of the list and handed to the caller.
        """
        if predicate is None:
            raise ValueError("a predicate is required")
        if not self._entries:
            raise LinkedListEmpty("list is empty")
        for position, (item, _) in enumerate(self._entries):
            if predicate(target, item):
                if remove:
                    del self._entries[position]
                return item
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self):
        return (item for item, _ in self._entries)