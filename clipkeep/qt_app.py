from __future__ import annotations

import logging
import os
import sys
from typing import Callable

log = logging.getLogger(__name__)

from PySide6.QtCore import QCoreApplication, QTimer

from .json_sniff import format_json
from .models import ClipboardItem
from .persistence import HistoryPersistence, SQLiteBlobStore, resolve_max_count
from .settings import AppSettings, default_db_path, load_settings
from .store import ClipboardHistory
from .thumbs import ThumbnailCache
from .watcher import ClipboardSource, PasteboardWatcher


class _QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler:
    """Periodic callbacks on the Qt event loop of the calling thread."""

    def schedule(self, period_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        if period_ms <= 0:
            raise ValueError("period_ms must be > 0")
        timer = QTimer()
        timer.setInterval(period_ms)
        timer.timeout.connect(callback)
        timer.start()
        return _QtTimerHandle(timer)


class ClipKeepApp:
    def __init__(
        self,
        settings: AppSettings | None = None,
        source: ClipboardSource | None = None,
        on_toggle_visibility: Callable[[], None] | None = None,
    ) -> None:
        self.qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv)
        self.settings = settings or load_settings()
        self._on_toggle_visibility = on_toggle_visibility

        db_path = self.settings.db_path or default_db_path()
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        self._blobs = SQLiteBlobStore(db_path)
        self.persistence = HistoryPersistence(self._blobs)
        self.thumbs = ThumbnailCache()
        self.history = ClipboardHistory(
            max_items=self.persistence.load_max_count(),
            items=self.persistence.load(),
            on_change=self.persistence.save,
            thumbs=self.thumbs,
        )

        if source is None:
            from .win_clipboard import Win32ClipboardSource

            source = Win32ClipboardSource()
        self.watcher = PasteboardWatcher(
            source,
            self.history,
            QtScheduler(),
            interval_ms=self.settings.poll_interval_ms,
        )

    def set_max_history_count(self, value: int) -> int:
        value = resolve_max_count(value)
        self.persistence.save_max_count(value)
        self.history.max_items = value
        return value

    def set_paused(self, paused: bool) -> None:
        self.watcher.paused = paused

    def delete_item(self, item_id: str) -> bool:
        return self.history.delete_by_id(item_id)

    def clear_history(self) -> None:
        self.history.clear()

    def clear_caches(self) -> None:
        self.thumbs.clear()

    def format_item(self, item: ClipboardItem) -> str | None:
        if item.item_type != "text":
            return None
        return format_json(item.text)

    def toggle_visibility(self) -> None:
        if self._on_toggle_visibility is None:
            return
        try:
            self._on_toggle_visibility()
        except Exception:
            log.debug("visibility callback failed", exc_info=True)

    def activate_item(self, item: ClipboardItem) -> None:
        from .set_clipboard import paste_item, set_clipboard_item

        if self.settings.paste_on_activate:
            paste_item(item)
        else:
            set_clipboard_item(item)

    def run(self) -> int:
        self.watcher.start()
        try:
            return self.qt_app.exec()
        finally:
            self.quit()

    def quit(self) -> None:
        try:
            self.watcher.stop()
        except Exception:
            log.debug("stopping watcher failed", exc_info=True)
        self._blobs.close()
        try:
            self.qt_app.quit()
        except Exception:
            log.debug("quitting application failed", exc_info=True)
