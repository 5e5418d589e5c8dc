import io

import numpy as np
import pytest
from PIL import Image

from crest_map.errors import DecodeError
from crest_map.image_io import (
    SourceBitmap,
    decode_source,
    encode_bmp,
    render_preview,
    save_bmp,
)

from conftest import solid_rgba


def _png_bytes(rgba: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(rgba).save(buf, format="PNG")
    return buf.getvalue()


def _ramp_palette() -> np.ndarray:
    pal = np.zeros((256, 3), dtype=np.uint8)
    pal[:, 0] = np.arange(256)
    pal[:, 2] = 255 - np.arange(256)
    return pal


def test_decode_arrays():
    grey = np.full((3, 4), 77, dtype=np.uint8)
    out = decode_source(grey)
    assert out.shape == (3, 4, 4)
    assert out[0, 0].tolist() == [77, 77, 77, 255]

    rgb = np.zeros((2, 2, 3), dtype=np.uint8)
    assert decode_source(rgb)[..., 3].min() == 255

    rgba = solid_rgba(2, 2, (1, 2, 3, 4))
    out = decode_source(rgba)
    assert np.array_equal(out, rgba)
    assert out is not rgba


def test_decode_rejects_bad_arrays():
    with pytest.raises(DecodeError):
        decode_source(np.zeros((2, 2, 3), dtype=np.float32))
    with pytest.raises(DecodeError):
        decode_source(np.zeros((2, 2, 5), dtype=np.uint8))


def test_decode_bytes_and_paths(tmp_path):
    rgba = solid_rgba(5, 7, (10, 20, 30, 255))
    data = _png_bytes(rgba)
    assert np.array_equal(decode_source(data), rgba)
    path = tmp_path / "src.png"
    path.write_bytes(data)
    assert np.array_equal(decode_source(path), rgba)
    assert np.array_equal(decode_source(str(path)), rgba)
    assert np.array_equal(decode_source(Image.fromarray(rgba)), rgba)


def test_decode_failures(tmp_path):
    with pytest.raises(DecodeError):
        decode_source(b"\x00\x01garbage")
    with pytest.raises(DecodeError):
        decode_source(tmp_path / "missing.png")
    with pytest.raises(DecodeError):
        decode_source(None)
    with pytest.raises(DecodeError):
        decode_source(42)


def test_source_bitmap_detach():
    bitmap = SourceBitmap.from_source(solid_rgba(2, 3))
    assert (bitmap.width, bitmap.height) == (3, 2)
    pixels = bitmap.detach()
    assert pixels.shape == (2, 3, 4)
    assert bitmap.closed
    with pytest.raises(ValueError):
        bitmap.detach()


def test_encode_bmp_round_trip():
    pal = _ramp_palette()
    idx = (np.arange(12 * 24) % 256).astype(np.uint8).reshape(12, 24)
    data = encode_bmp(24, 12, pal, idx)
    assert data[:2] == b"BM"
    with Image.open(io.BytesIO(data)) as im:
        assert im.mode == "P"
        assert im.size == (24, 12)
        assert np.array_equal(np.asarray(im), idx)
        assert np.array_equal(
            np.asarray(im.getpalette()[:768], dtype=np.uint8).reshape(256, 3), pal
        )


@pytest.mark.parametrize(
    "palette, indices",
    [
        (np.zeros((255, 3), dtype=np.uint8), np.zeros((12, 8), dtype=np.uint8)),
        (np.zeros((256, 3), dtype=np.uint8), np.zeros((12, 9), dtype=np.uint8)),
        (np.zeros((256, 3), dtype=np.uint8), np.full((12, 8), 300, dtype=np.int32)),
        (np.zeros((256, 3), dtype=np.uint8), np.full((12, 8), -1, dtype=np.int32)),
    ],
)
def test_encode_bmp_validates(palette, indices):
    with pytest.raises(ValueError):
        encode_bmp(8, 12, palette, indices)


def test_save_bmp_forces_extension(tmp_path):
    pal = _ramp_palette()
    path = save_bmp(tmp_path / "icon.png", 8, 12, pal, np.zeros((12, 8), dtype=np.uint8))
    assert path.suffix == ".bmp"
    assert path.exists()


def test_render_preview_scales():
    pal = _ramp_palette()
    idx = np.array([[0, 255]], dtype=np.uint8)
    im = render_preview(pal, idx, scale=3)
    assert im.size == (6, 3)
    assert im.getpixel((0, 0)) == (0, 0, 255)
    assert im.getpixel((5, 2)) == (255, 0, 0)
