from __future__ import annotations

import io
from typing import BinaryIO

from PIL import Image


# Formats we are willing to decode; everything else is a thumbnail failure.
DECODE_FORMATS = ("JPEG", "PNG", "GIF")

# libjpeg's default quality.
JPEG_QUALITY = 75


class ThumbnailError(Exception):
    """The source could not be turned into a JPEG thumbnail."""


def _scaled_size(size: tuple[int, int], width: int) -> tuple[int, int]:
    src_w, src_h = size
    height = max(1, round(src_h * width / src_w))
    return width, height


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (0, 0, 0))
        background.paste(rgba, mask=rgba.split()[3])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def make_thumbnail(source: BinaryIO, width: int) -> bytes:
    """Decode ``source`` and re-encode it as a JPEG ``width`` pixels wide.

    The height follows the source aspect ratio. Smaller images are scaled up
    so the result always has the requested width. Reads ``source`` from its
    current position; any decode, resize or encode problem is raised as
    ThumbnailError.
    """
    if width <= 0:
        raise ThumbnailError(f"invalid thumbnail width {width}")
    try:
        with Image.open(source, formats=DECODE_FORMATS) as img:
            img.load()
            if img.width <= 0 or img.height <= 0:
                raise ThumbnailError("image has no pixels")
            rgb = _to_rgb(img)
            resized = rgb.resize(_scaled_size(rgb.size, width), Image.Resampling.BILINEAR)
            buffer = io.BytesIO()
            resized.save(buffer, "JPEG", quality=JPEG_QUALITY)
    except ThumbnailError:
        raise
    except Exception as exc:  # noqa: BLE001 - Pillow raises a wide range of errors for bad input
        raise ThumbnailError(str(exc) or exc.__class__.__name__) from exc
    return buffer.getvalue()
