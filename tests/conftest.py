from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image

from clipkeep.persistence import HistoryPersistence, SQLiteBlobStore
from clipkeep.store import ClipboardHistory
from clipkeep.thumbs import ThumbnailCache


def png_bytes(size: tuple[int, int], color: tuple[int, int, int] = (200, 40, 40)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


class FakeClipboard:
    """In-memory clipboard that bumps its counter on every write."""

    def __init__(self) -> None:
        self.count = 0
        self.types: set[str] = set()
        self.image: bytes | None = None
        self.text: str | None = None
        self.reads = 0
        self.fail_next = False

    def copy_text(self, text: str) -> None:
        self._set({"text"}, text=text)

    def copy_image(self, data: bytes) -> None:
        self._set({"image"}, image=data)

    def copy_files(self) -> None:
        self._set({"files", "text"}, text="C:\\tmp\\a.txt")

    def _set(self, types: set[str], text: str | None = None, image: bytes | None = None) -> None:
        self.count += 1
        self.types = types
        self.text = text
        self.image = image

    def change_count(self) -> int:
        return self.count

    def available_types(self) -> set[str]:
        self.reads += 1
        if self.fail_next:
            self.fail_next = False
            raise OSError("clipboard busy")
        return set(self.types)

    def read_image(self) -> bytes | None:
        return self.image

    def read_text(self) -> str | None:
        return self.text


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[int, Callable[[], None], FakeHandle]] = []

    def schedule(self, period_ms: int, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle()
        self.scheduled.append((period_ms, callback, handle))
        return handle

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            for _, callback, handle in list(self.scheduled):
                if not handle.cancelled:
                    callback()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def thumbs() -> ThumbnailCache:
    return ThumbnailCache()


@pytest.fixture
def blobs(tmp_path):
    store = SQLiteBlobStore(str(tmp_path / "history.sqlite3"))
    yield store
    store.close()


@pytest.fixture
def persistence(blobs) -> HistoryPersistence:
    return HistoryPersistence(blobs)


@pytest.fixture
def history(persistence, thumbs) -> ClipboardHistory:
    return ClipboardHistory(max_items=50, on_change=persistence.save, thumbs=thumbs)
