from __future__ import annotations

import io
import time

import win32api
import win32clipboard
import win32con

from .imaging import decode_image
from .models import ClipboardItem
from .win_clipboard import PNG_FORMAT_NAME, open_clipboard


def _dib_from_png(data: bytes) -> bytes:
    im = decode_image(data)
    # CF_DIB consumers mostly ignore alpha.
    if im.mode != "RGB":
        im = im.convert("RGB")
    out = io.BytesIO()
    im.save(out, format="BMP")
    return out.getvalue()[14:]


def set_clipboard_item(item: ClipboardItem, hwnd: int | None = None) -> None:
    with open_clipboard(hwnd):
        win32clipboard.EmptyClipboard()

        if item.item_type == "text":
            win32clipboard.SetClipboardData(win32con.CF_UNICODETEXT, item.text)
            return

        if item.item_type == "image":
            if not item.image_bytes:
                return
            png_fmt = win32clipboard.RegisterClipboardFormat(PNG_FORMAT_NAME)
            win32clipboard.SetClipboardData(png_fmt, item.image_bytes)
            win32clipboard.SetClipboardData(win32con.CF_DIB, _dib_from_png(item.image_bytes))
            return

        raise ValueError(f"unsupported item_type: {item.item_type}")


def send_paste_keystroke(delay_s: float = 0.1) -> None:
    time.sleep(delay_s)
    vk_v = ord("V")
    win32api.keybd_event(win32con.VK_CONTROL, 0, 0, 0)
    win32api.keybd_event(vk_v, 0, 0, 0)
    win32api.keybd_event(vk_v, 0, win32con.KEYEVENTF_KEYUP, 0)
    win32api.keybd_event(win32con.VK_CONTROL, 0, win32con.KEYEVENTF_KEYUP, 0)


def paste_item(item: ClipboardItem, hwnd: int | None = None) -> None:
    """Put *item* back on the clipboard and paste it into the focused window."""
    set_clipboard_item(item, hwnd=hwnd)
    send_paste_keystroke()
