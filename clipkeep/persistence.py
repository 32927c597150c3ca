from __future__ import annotations

import base64
import json
import logging
import sqlite3
from datetime import datetime
from threading import Lock

log = logging.getLogger(__name__)

from .models import ClipboardItem
from .store import DEFAULT_MAX_ITEMS


HISTORY_KEY: str = "ClipboardHistory"
MAX_COUNT_KEY: str = "MaxHistoryCount"
MAX_ITEMS_LIMIT: int = 10000


class SerializationError(ValueError):
    pass


class SQLiteBlobStore:
    def __init__(self, db_path: str) -> None:
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = Lock()
        if db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blobs (
              key TEXT PRIMARY KEY,
              value BLOB NOT NULL
            )
            """
        )
        self._conn.commit()

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error:
            log.debug("closing blob store failed", exc_info=True)

    def write_blob(self, key: str, data: bytes) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO blobs(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, sqlite3.Binary(data)),
            )
            self._conn.commit()

    def read_blob(self, key: str) -> bytes | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM blobs WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def delete_blob(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
            self._conn.commit()


def _b64(data: bytes | None) -> str | None:
    return base64.b64encode(data).decode("ascii") if data is not None else None


def _unb64(value: object) -> bytes | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SerializationError("expected base64 string")
    return base64.b64decode(value, validate=True)


def _encode_item(it: ClipboardItem) -> dict:
    return {
        "id": it.item_id,
        "type": it.item_type,
        "text": it.text,
        "image_b64": _b64(it.image_bytes),
        "preview_b64": _b64(it.preview_bytes),
        "created_at": it.created_at.isoformat(),
    }


def _decode_item(data: object) -> ClipboardItem:
    if not isinstance(data, dict):
        raise SerializationError("history entry is not an object")
    item_id = data.get("id")
    item_type = data.get("type")
    text = data.get("text") or ""
    if not isinstance(item_id, str) or not item_id:
        raise SerializationError("history entry has no id")
    if item_type not in ("text", "image") or not isinstance(text, str):
        raise SerializationError(f"unsupported history entry type: {item_type!r}")
    image_bytes = _unb64(data.get("image_b64"))
    if item_type == "image" and not image_bytes:
        raise SerializationError("image entry without image data")
    return ClipboardItem(
        item_id=item_id,
        item_type=item_type,
        created_at=datetime.fromisoformat(str(data.get("created_at") or "")),
        text=text,
        image_bytes=image_bytes,
        preview_bytes=_unb64(data.get("preview_b64")),
    )


def encode_history(items: list[ClipboardItem]) -> bytes:
    try:
        payload = [_encode_item(it) for it in items]
        # \u escapes keep lone UTF-16 surrogates from CF_UNICODETEXT encodable.
        return json.dumps(payload, ensure_ascii=True).encode("ascii")
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(str(exc)) from exc


def decode_history(data: bytes) -> list[ClipboardItem]:
    try:
        rows = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise SerializationError(str(exc)) from exc
    if not isinstance(rows, list):
        raise SerializationError("history blob is not a list")
    try:
        return [_decode_item(row) for row in rows]
    except SerializationError:
        raise
    except (TypeError, ValueError) as exc:
        raise SerializationError(str(exc)) from exc


def resolve_max_count(value: int | None) -> int:
    if value is None or value <= 0:
        return DEFAULT_MAX_ITEMS
    return min(value, MAX_ITEMS_LIMIT)


class HistoryPersistence:
    """Best-effort history slot on top of a blob store.

    Saving never raises: the in-memory history stays authoritative when a
    write fails. Loading treats missing or undecodable state as empty.
    """

    def __init__(self, blobs: SQLiteBlobStore) -> None:
        self._blobs = blobs

    def save(self, items: list[ClipboardItem]) -> bool:
        try:
            self._blobs.write_blob(HISTORY_KEY, encode_history(items))
        except (SerializationError, sqlite3.Error):
            log.exception("saving history failed")
            return False
        return True

    def load(self) -> list[ClipboardItem]:
        try:
            data = self._blobs.read_blob(HISTORY_KEY)
        except sqlite3.Error:
            log.warning("reading history failed", exc_info=True)
            return []
        if data is None:
            return []
        try:
            items = decode_history(data)
        except SerializationError:
            log.warning("discarding unreadable history", exc_info=True)
            return []

        seen: set[str] = set()
        unique: list[ClipboardItem] = []
        for it in items:
            if it.item_id in seen:
                continue
            seen.add(it.item_id)
            unique.append(it)
        return unique

    def load_max_count(self) -> int:
        try:
            data = self._blobs.read_blob(MAX_COUNT_KEY)
            value = int(data.decode("ascii")) if data is not None else None
        except (sqlite3.Error, UnicodeDecodeError, ValueError):
            log.warning("reading %s failed", MAX_COUNT_KEY, exc_info=True)
            value = None
        return resolve_max_count(value)

    def save_max_count(self, value: int) -> None:
        try:
            self._blobs.write_blob(MAX_COUNT_KEY, str(int(value)).encode("ascii"))
        except sqlite3.Error:
            log.exception("saving %s failed", MAX_COUNT_KEY)
