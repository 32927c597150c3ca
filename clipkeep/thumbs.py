from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock
from typing import Literal

from PIL import Image

from .imaging import ImageDecodeError, decode_image, make_preview
from .models import ClipboardItem

log = logging.getLogger(__name__)


ThumbLevel = Literal["preview", "full"]
LEVELS: tuple[ThumbLevel, ...] = ("preview", "full")


class ThumbnailCache:
    """Decoded images keyed by ``(item_id, level)``.

    Purely derived data: entries can be dropped at any time and are rebuilt
    from the item's bytes on the next access.
    """

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._max_entries = max_entries
        self._entries: OrderedDict[tuple[str, ThumbLevel], Image.Image] = OrderedDict()
        self._lock = Lock()
        # Bumped by invalidate/clear; a decode that overlaps one is not stored.
        self._generation = 0

    def get(self, item: ClipboardItem, level: ThumbLevel = "preview") -> Image.Image | None:
        if level not in LEVELS:
            raise ValueError(f"unknown thumbnail level: {level!r}")
        if item.item_type != "image":
            return None

        key = (item.item_id, level)
        with self._lock:
            cached = self._entries.get(key)
            generation = self._generation
        if cached is not None:
            return cached

        try:
            im = self._decode(item, level)
        except ImageDecodeError:
            log.debug("thumbnail decode failed for %s", item.item_id, exc_info=True)
            return None

        with self._lock:
            if generation != self._generation:
                return im
            self._entries[key] = im
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return im

    def _decode(self, item: ClipboardItem, level: ThumbLevel) -> Image.Image:
        if level == "preview" and item.preview_bytes:
            return decode_image(item.preview_bytes)
        im = decode_image(item.image_bytes or b"")
        if level == "preview":
            return make_preview(im)
        return im

    def invalidate(self, item_id: str) -> None:
        with self._lock:
            self._generation += 1
            for level in LEVELS:
                self._entries.pop((item_id, level), None)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
