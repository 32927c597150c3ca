from __future__ import annotations

import logging
from collections import deque
from threading import RLock
from typing import Callable, Deque, Iterable, Iterator

from .models import ClipboardItem, ClipboardItemType
from .thumbs import ThumbnailCache

log = logging.getLogger(__name__)


DEFAULT_MAX_ITEMS: int = 50

ChangeListener = Callable[[list[ClipboardItem]], None]


class ClipboardHistory:
    """Newest-first clipboard history with dedup-at-head and a size bound.

    Every mutation that changes the sequence hands a snapshot to
    ``on_change`` before returning (write-through; there is no flush).
    """

    def __init__(
        self,
        max_items: int = DEFAULT_MAX_ITEMS,
        items: Iterable[ClipboardItem] = (),
        on_change: ChangeListener | None = None,
        thumbs: ThumbnailCache | None = None,
    ) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be > 0")
        self._max_items = max_items
        self._on_change = on_change
        self._thumbs = thumbs
        self._lock = RLock()

        self._items: Deque[ClipboardItem] = deque()
        seen: set[str] = set()
        for it in items:
            if it.item_id in seen:
                continue
            seen.add(it.item_id)
            self._items.append(it)
            if len(self._items) >= max_items:
                break

    @property
    def max_items(self) -> int:
        return self._max_items

    @max_items.setter
    def max_items(self, value: int) -> None:
        if value <= 0:
            raise ValueError("max_items must be > 0")
        with self._lock:
            self._max_items = value
            self.truncate_to(value)

    def head(self) -> ClipboardItem | None:
        with self._lock:
            return self._items[0] if self._items else None

    def head_matches(self, item_type: ClipboardItemType, content: str | bytes) -> bool:
        with self._lock:
            return bool(self._items) and self._items[0].dedupe_key() == (item_type, content)

    def insert_at_head(self, item: ClipboardItem) -> bool:
        with self._lock:
            if self._items and self._items[0].dedupe_key() == item.dedupe_key():
                return False
            if any(it.item_id == item.item_id for it in self._items):
                raise ValueError(f"duplicate item id: {item.item_id}")
            self._items.appendleft(item)
            evicted = self._trim(self._max_items)
            self._forget(evicted)
            self._notify()
            return True

    def truncate_to(self, max_count: int) -> int:
        if max_count < 0:
            raise ValueError("max_count must be >= 0")
        with self._lock:
            evicted = self._trim(max_count)
            if evicted:
                self._forget(evicted)
                self._notify()
            return len(evicted)

    def delete_by_id(self, item_id: str) -> bool:
        with self._lock:
            for i, it in enumerate(self._items):
                if it.item_id == item_id:
                    del self._items[i]
                    self._forget([it])
                    self._notify()
                    return True
            return False

    def clear(self) -> None:
        with self._lock:
            removed = list(self._items)
            self._items.clear()
            if self._thumbs is not None:
                self._thumbs.clear()
            if removed:
                self._notify()

    def get(self, item_id: str) -> ClipboardItem | None:
        with self._lock:
            for it in self._items:
                if it.item_id == item_id:
                    return it
            return None

    def items(self) -> list[ClipboardItem]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[ClipboardItem]:
        return iter(self.items())

    def _trim(self, max_count: int) -> list[ClipboardItem]:
        evicted: list[ClipboardItem] = []
        while len(self._items) > max_count:
            evicted.append(self._items.pop())
        return evicted

    def _forget(self, removed: list[ClipboardItem]) -> None:
        if self._thumbs is None:
            return
        for it in removed:
            self._thumbs.invalidate(it.item_id)

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(list(self._items))
        except Exception:
            log.exception("history change listener failed")
