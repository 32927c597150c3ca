from __future__ import annotations

import logging
from typing import Callable, Protocol

log = logging.getLogger(__name__)

from .imaging import ImageDecodeError, decode_image, encode_png, make_preview
from .models import ClipboardItem
from .scheduler import Cancellable, Scheduler
from .store import ClipboardHistory


TYPE_FILES = "files"
TYPE_IMAGE = "image"
TYPE_TEXT = "text"

DEFAULT_INTERVAL_MS: int = 500


class ClipboardSource(Protocol):
    def change_count(self) -> int: ...

    def available_types(self) -> set[str]: ...

    def read_image(self) -> bytes | None: ...

    def read_text(self) -> str | None: ...


class PasteboardWatcher:
    def __init__(
        self,
        source: ClipboardSource,
        history: ClipboardHistory,
        scheduler: Scheduler,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        on_capture: Callable[[ClipboardItem], None] | None = None,
    ) -> None:
        self._source = source
        self._history = history
        self._scheduler = scheduler
        self._interval_ms = interval_ms
        self._on_capture = on_capture
        self._handle: Cancellable | None = None
        self.paused = False
        # Whatever is on the clipboard at startup is not history material.
        self._last_change_count: int | None = self._read_change_count()

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._handle = self._scheduler.schedule(self._interval_ms, self.poll_once)

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _read_change_count(self) -> int | None:
        try:
            return self._source.change_count()
        except Exception:
            log.debug("reading clipboard change count failed", exc_info=True)
            return None

    def poll_once(self) -> ClipboardItem | None:
        """Run one poll cycle; return the captured item, if any."""
        count = self._read_change_count()
        if count is None or count == self._last_change_count:
            return None
        self._last_change_count = count

        if self.paused:
            return None

        try:
            item = self._capture()
        except Exception:
            log.debug("clipboard capture failed", exc_info=True)
            return None

        if item is None or not self._history.insert_at_head(item):
            return None
        log.debug("captured %s item %s", item.item_type, item.item_id)
        if self._on_capture is not None:
            try:
                self._on_capture(item)
            except Exception:
                log.debug("capture callback failed", exc_info=True)
        return item

    def _capture(self) -> ClipboardItem | None:
        types = self._source.available_types()
        if TYPE_FILES in types:
            return None

        if TYPE_IMAGE in types:
            data = self._source.read_image()
            if data:
                return self._capture_image(data)

        if TYPE_TEXT in types:
            text = self._source.read_text()
            if text is None or self._history.head_matches("text", text):
                return None
            return ClipboardItem.from_text(text)

        return None

    def _capture_image(self, data: bytes) -> ClipboardItem | None:
        try:
            im = decode_image(data)
        except ImageDecodeError:
            log.debug("undecodable clipboard image skipped", exc_info=True)
            return None
        full = encode_png(im)
        if self._history.head_matches("image", full):
            return None
        preview = make_preview(im)
        preview_bytes = full if preview is im else encode_png(preview)
        return ClipboardItem.from_image(full, preview_bytes=preview_bytes)
