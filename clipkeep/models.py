from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from .json_sniff import looks_like_json


ClipboardItemType = Literal["text", "image"]


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class ClipboardItem:
    item_type: ClipboardItemType
    created_at: datetime
    text: str = ""
    image_bytes: bytes | None = None
    preview_bytes: bytes | None = None
    item_id: str = field(default_factory=_new_id)

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(timezone.utc)

    @classmethod
    def from_text(cls, text: str, created_at: datetime | None = None) -> ClipboardItem:
        return cls(item_type="text", created_at=created_at or cls.now_utc(), text=text)

    @classmethod
    def from_image(
        cls,
        image_bytes: bytes,
        preview_bytes: bytes | None = None,
        created_at: datetime | None = None,
    ) -> ClipboardItem:
        return cls(
            item_type="image",
            created_at=created_at or cls.now_utc(),
            image_bytes=image_bytes,
            preview_bytes=preview_bytes,
        )

    def content(self) -> str | bytes:
        if self.item_type == "image":
            return self.image_bytes or b""
        return self.text

    def dedupe_key(self) -> tuple:
        return (self.item_type, self.content())

    def is_json(self) -> bool:
        return self.item_type == "text" and looks_like_json(self.text)

    def preview(self, max_len: int = 120) -> str:
        if self.item_type == "text":
            s = self.text.replace("\r\n", "\n").replace("\r", "\n")
            return s if len(s) <= max_len else s[: max_len - 1] + "…"
        size = len(self.image_bytes or b"")
        return f"(image {size} bytes)"
