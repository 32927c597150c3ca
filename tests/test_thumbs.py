import pytest

from clipkeep.imaging import decode_image, encode_png, make_preview
from clipkeep.models import ClipboardItem
from clipkeep.thumbs import ThumbnailCache
from conftest import png_bytes


def _image_item(size=(320, 200), with_preview=True) -> ClipboardItem:
    full = png_bytes(size)
    preview = encode_png(make_preview(decode_image(full))) if with_preview else None
    return ClipboardItem.from_image(full, preview_bytes=preview)


def test_get_caches_decoded_image(thumbs):
    item = _image_item()
    first = thumbs.get(item, "preview")
    assert first is not None
    assert first.size == (160, 100)
    assert thumbs.get(item, "preview") is first
    assert (item.item_id, "preview") in thumbs


def test_levels_are_cached_separately(thumbs):
    item = _image_item()
    preview = thumbs.get(item, "preview")
    full = thumbs.get(item, "full")
    assert full.size == (320, 200)
    assert preview is not full
    assert len(thumbs) == 2


def test_preview_falls_back_to_full_payload(thumbs):
    item = _image_item(size=(640, 320), with_preview=False)
    im = thumbs.get(item, "preview")
    assert im.size == (160, 80)


def test_text_items_have_no_thumbnail(thumbs):
    assert thumbs.get(ClipboardItem.from_text("hi")) is None
    assert len(thumbs) == 0


def test_undecodable_payload_is_not_cached(thumbs):
    item = ClipboardItem.from_image(b"garbage")
    assert thumbs.get(item, "full") is None
    assert len(thumbs) == 0


def test_unknown_level(thumbs):
    with pytest.raises(ValueError):
        thumbs.get(_image_item(), "huge")


def test_invalidate_drops_both_levels(thumbs):
    a, b = _image_item(), _image_item((10, 10))
    thumbs.get(a, "preview")
    thumbs.get(a, "full")
    thumbs.get(b, "preview")
    thumbs.invalidate(a.item_id)
    assert len(thumbs) == 1
    assert (b.item_id, "preview") in thumbs


def test_clear(thumbs):
    thumbs.get(_image_item(), "full")
    thumbs.clear()
    assert len(thumbs) == 0


def test_bounded_entries_evict_oldest():
    cache = ThumbnailCache(max_entries=2)
    items = [_image_item((20, 20)) for _ in range(3)]
    for it in items:
        cache.get(it, "full")
    assert len(cache) == 2
    assert (items[0].item_id, "full") not in cache
    assert (items[2].item_id, "full") in cache


def test_fresh_instances_do_not_share_state():
    item = _image_item()
    ThumbnailCache().get(item, "full")
    assert len(ThumbnailCache()) == 0


@pytest.mark.parametrize("drop", ["invalidate", "clear"])
def test_decode_overlapping_removal_is_not_stored(thumbs, monkeypatch, drop):
    item = _image_item()
    decode = thumbs._decode

    def decode_while_item_is_deleted(it, level):
        im = decode(it, level)
        if drop == "invalidate":
            thumbs.invalidate(it.item_id)
        else:
            thumbs.clear()
        return im

    monkeypatch.setattr(thumbs, "_decode", decode_while_item_is_deleted)
    assert thumbs.get(item, "full").size == (320, 200)
    assert (item.item_id, "full") not in thumbs
    assert len(thumbs) == 0

    monkeypatch.undo()
    thumbs.get(item, "full")
    assert (item.item_id, "full") in thumbs
