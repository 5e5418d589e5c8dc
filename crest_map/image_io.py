# crest_map/image_io.py
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .constants import PALETTE_SIZE
from .core_types import U8Image, U8Indices, U8Palette
from .errors import DecodeError

"""
Image I/O: source decoding to RGBA, the transferable source bitmap,
indexed BMP export and PNG previews.
"""

SourceLike = Union[np.ndarray, Image.Image, bytes, bytearray, str, Path]


def _pil_to_rgba(im: Image.Image) -> U8Image:
    im = ImageOps.exif_transpose(im)
    return np.array(im.convert("RGBA"), dtype=np.uint8)


def _array_to_rgba(arr: np.ndarray) -> U8Image:
    if arr.dtype != np.uint8:
        raise DecodeError(f"expected uint8 pixels, got {arr.dtype}")
    if arr.ndim == 2:
        out = np.empty(arr.shape + (4,), dtype=np.uint8)
        out[..., :3] = arr[..., None]
        out[..., 3] = 255
        return out
    if arr.ndim == 3 and arr.shape[-1] == 3:
        out = np.empty(arr.shape[:2] + (4,), dtype=np.uint8)
        out[..., :3] = arr
        out[..., 3] = 255
        return out
    if arr.ndim == 3 and arr.shape[-1] == 4:
        return np.array(arr, dtype=np.uint8, copy=True)
    raise DecodeError(f"unsupported pixel array shape {arr.shape}")


def decode_source(source: SourceLike) -> U8Image:
    """
    Decode any supported source into a fresh uint8 (H,W,4) RGBA array.

    Accepts numpy arrays (gray, RGB, RGBA), Pillow images, encoded image
    bytes and file paths. Raises DecodeError when nothing usable comes out.
    """
    if source is None:
        raise DecodeError("no source image")
    if isinstance(source, SourceBitmap):
        return np.array(source.pixels, copy=True)
    if isinstance(source, np.ndarray):
        return _array_to_rgba(source)
    try:
        if isinstance(source, Image.Image):
            return _pil_to_rgba(source)
        if isinstance(source, (bytes, bytearray)):
            with Image.open(io.BytesIO(bytes(source))) as im:
                return _pil_to_rgba(im)
        if isinstance(source, (str, Path)):
            with Image.open(Path(source)) as im:
                return _pil_to_rgba(im)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"cannot decode source image: {e}") from e
    raise DecodeError(f"unsupported source type {type(source).__name__}")


class SourceBitmap:
    """
    Exclusive owner of an RGBA source buffer.

    Ownership moves with detach(): the returned array belongs to the new
    holder and this bitmap is closed. Any access after close() raises.
    """

    def __init__(self, pixels: U8Image):
        self._pixels: Optional[U8Image] = pixels

    @classmethod
    def from_source(cls, source: SourceLike) -> "SourceBitmap":
        return cls(decode_source(source))

    @property
    def closed(self) -> bool:
        return self._pixels is None

    @property
    def pixels(self) -> U8Image:
        if self._pixels is None:
            raise ValueError("source bitmap is closed")
        return self._pixels

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def detach(self) -> U8Image:
        """Hand the buffer to the caller and close this bitmap."""
        pixels = self.pixels
        self._pixels = None
        return pixels

    def close(self) -> None:
        self._pixels = None

    def __enter__(self) -> "SourceBitmap":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# Indexed export


def _check_indexed(
    width: int, height: int, palette: U8Palette, indices: U8Indices
) -> None:
    pal = np.asarray(palette)
    if pal.size != PALETTE_SIZE * 3:
        raise ValueError(f"palette must hold {PALETTE_SIZE * 3} bytes, got {pal.size}")
    idx = np.asarray(indices)
    if idx.size != width * height:
        raise ValueError(
            f"indices hold {idx.size} values, expected {width}x{height}={width * height}"
        )
    if idx.size and (idx.min() < 0 or idx.max() >= PALETTE_SIZE):
        raise ValueError("index out of palette range")


def _indexed_image(
    width: int, height: int, palette: U8Palette, indices: U8Indices
) -> Image.Image:
    _check_indexed(width, height, palette, indices)
    idx = np.ascontiguousarray(indices, dtype=np.uint8).reshape(height, width)
    im = Image.frombytes("P", (width, height), idx.tobytes())
    im.putpalette(np.asarray(palette, dtype=np.uint8).reshape(-1).tolist(), rawmode="RGB")
    return im


def encode_bmp(
    width: int, height: int, palette: U8Palette, indices: U8Indices
) -> bytes:
    """8-bit indexed BMP with a full 256-entry colour table."""
    buf = io.BytesIO()
    _indexed_image(width, height, palette, indices).save(buf, format="BMP")
    return buf.getvalue()


def save_bmp(
    path: Path, width: int, height: int, palette: U8Palette, indices: U8Indices
) -> Path:
    if path.suffix.lower() != ".bmp":
        path = path.with_suffix(".bmp")
    path.write_bytes(encode_bmp(width, height, palette, indices))
    return path


def render_preview(palette: U8Palette, indices: U8Indices, scale: int = 1) -> Image.Image:
    """RGB image of an index buffer, upscaled with nearest neighbour."""
    idx = np.asarray(indices, dtype=np.uint8)
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 3)
    im = Image.fromarray(np.ascontiguousarray(pal[idx]))
    scale = max(1, int(scale))
    if scale > 1:
        im = im.resize(
            (im.width * scale, im.height * scale), resample=Image.Resampling.NEAREST
        )
    return im


def save_png(path: Path, image: Image.Image) -> Path:
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    image.save(path)
    return path


__all__ = [
    "SourceLike",
    "decode_source",
    "SourceBitmap",
    "encode_bmp",
    "save_bmp",
    "render_preview",
    "save_png",
]
