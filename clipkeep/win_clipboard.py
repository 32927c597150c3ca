"""Win32 clipboard access shared by the watcher source and paste-back."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager

import win32clipboard
import win32con

from .imaging import dib_to_bmp
from .watcher import TYPE_FILES, TYPE_IMAGE, TYPE_TEXT

log = logging.getLogger(__name__)


PNG_FORMAT_NAME = "PNG"
CF_DIBV5 = getattr(win32con, "CF_DIBV5", 17)


@contextmanager
def open_clipboard(hwnd: int | None = None, retries: int = 10, delay_s: float = 0.02):
    """Open the clipboard with retry logic, yielding inside the lock."""
    last_exc: Exception | None = None
    for _ in range(max(1, retries)):
        try:
            win32clipboard.OpenClipboard(hwnd)
            last_exc = None
            break
        except win32clipboard.error as exc:
            last_exc = exc
            time.sleep(delay_s)
    if last_exc is not None:
        raise last_exc
    try:
        yield
    finally:
        try:
            win32clipboard.CloseClipboard()
        except win32clipboard.error:
            log.debug("CloseClipboard failed", exc_info=True)


class Win32ClipboardSource:
    def __init__(self, hwnd: int | None = None) -> None:
        self._hwnd = hwnd
        self._png_format = win32clipboard.RegisterClipboardFormat(PNG_FORMAT_NAME)

    def change_count(self) -> int:
        return int(win32clipboard.GetClipboardSequenceNumber())

    def available_types(self) -> set[str]:
        types: set[str] = set()
        is_available = win32clipboard.IsClipboardFormatAvailable
        if is_available(win32con.CF_HDROP):
            types.add(TYPE_FILES)
        if is_available(self._png_format) or is_available(CF_DIBV5) or is_available(win32con.CF_DIB):
            types.add(TYPE_IMAGE)
        if is_available(win32con.CF_UNICODETEXT):
            types.add(TYPE_TEXT)
        return types

    def read_image(self) -> bytes | None:
        with open_clipboard(self._hwnd):
            if win32clipboard.IsClipboardFormatAvailable(self._png_format):
                data = win32clipboard.GetClipboardData(self._png_format)
                if isinstance(data, (bytes, bytearray)) and data:
                    return bytes(data)
            for fmt in (CF_DIBV5, win32con.CF_DIB):
                if not win32clipboard.IsClipboardFormatAvailable(fmt):
                    continue
                dib = win32clipboard.GetClipboardData(fmt)
                if isinstance(dib, (bytes, bytearray)) and dib:
                    return dib_to_bmp(bytes(dib))
        return None

    def read_text(self) -> str | None:
        with open_clipboard(self._hwnd):
            if not win32clipboard.IsClipboardFormatAvailable(win32con.CF_UNICODETEXT):
                return None
            text = win32clipboard.GetClipboardData(win32con.CF_UNICODETEXT)
        if isinstance(text, bytes):
            text = text.decode("utf-16-le", errors="replace")
        return str(text)
