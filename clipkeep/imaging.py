from __future__ import annotations

import io
import struct

from PIL import Image


PREVIEW_MAX_SIZE: int = 160

_PNG_MODES = {"1", "L", "LA", "I", "P", "RGB", "RGBA"}
_BI_BITFIELDS = 3


class ImageDecodeError(ValueError):
    pass


def decode_image(data: bytes) -> Image.Image:
    if not data:
        raise ImageDecodeError("empty image payload")
    try:
        im = Image.open(io.BytesIO(data))
        im.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(str(exc)) from exc
    return im


def encode_png(im: Image.Image) -> bytes:
    if im.mode not in _PNG_MODES:
        im = im.convert("RGBA")
    out = io.BytesIO()
    im.save(out, format="PNG")
    return out.getvalue()


def make_preview(
    im: Image.Image,
    max_width: int = PREVIEW_MAX_SIZE,
    max_height: int = PREVIEW_MAX_SIZE,
) -> Image.Image:
    """Downscale *im* to fit the bounds, keeping its aspect ratio.

    Images that already fit are returned as-is; nothing is ever upscaled.
    """
    if max_width <= 0 or max_height <= 0:
        raise ValueError("preview bounds must be > 0")
    width, height = im.size
    if width <= max_width and height <= max_height:
        return im
    scale = min(max_width / width, max_height / height)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return im.resize(size, Image.Resampling.LANCZOS)


def dib_to_bmp(dib: bytes) -> bytes:
    """Prefix a CF_DIB / CF_DIBV5 payload with a BITMAPFILEHEADER."""
    if len(dib) < 40:
        raise ImageDecodeError("DIB payload too short")
    header_size = struct.unpack_from("<I", dib, 0)[0]
    if header_size < 40:
        raise ImageDecodeError(f"unsupported DIB header size {header_size}")
    bit_count = struct.unpack_from("<H", dib, 14)[0]
    compression = struct.unpack_from("<I", dib, 16)[0]
    clr_used = struct.unpack_from("<I", dib, 32)[0]
    if bit_count <= 8:
        palette_entries = clr_used or (1 << bit_count)
    else:
        palette_entries = clr_used
    offset = 14 + header_size + palette_entries * 4
    if header_size == 40 and compression == _BI_BITFIELDS:
        offset += 12
    file_size = 14 + len(dib)
    return b"BM" + struct.pack("<IHHI", file_size, 0, 0, offset) + dib
