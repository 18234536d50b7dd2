"""Shared fixtures: synthetic images and fake decoders, no files needed."""

from __future__ import annotations

import io
import struct
import zlib
from collections.abc import Callable
from datetime import datetime, timezone

import pytest
from PIL import Image
from pypdf import PdfReader

from imagepdf.decoder import DecodedImage
from imagepdf.errors import DecodeError
from imagepdf.models import ImageEntry, Orientation


_PNG_CHANNELS = {0: 1, 2: 3, 4: 2, 6: 4}


def _build_png(
    *,
    width: int = 100,
    height: int = 100,
    color_type: int = 2,
    bit_depth: int = 8,
    sample: int | None = None,
) -> bytes:
    """Hand-assemble a PNG whose pixels all share one value per channel.

    ``color_type`` follows the PNG header (0 gray, 2 RGB, 4 gray+alpha,
    6 RGBA) and ``bit_depth`` may be 8 or 16. With no *sample*, RGB images
    are pure red and every other channel is at full intensity.
    """

    def _chunk(chunk_type: bytes, data: bytes) -> bytes:
        body = chunk_type + data
        return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body))

    channels = _PNG_CHANNELS[color_type]
    top = (1 << bit_depth) - 1
    if sample is not None:
        values = [sample] * channels
    elif color_type == 2:
        values = [top, 0, 0]
    else:
        values = [top] * channels

    pixel = b"".join(v.to_bytes(bit_depth // 8, "big") for v in values)
    scanline = b"\x00" + pixel * width
    header = struct.pack(">IIBBBBB", width, height, bit_depth, color_type, 0, 0, 0)

    return (
        b"\x89PNG\r\n\x1a\n"
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", zlib.compress(scanline * height))
        + _chunk(b"IEND", b"")
    )


def _encode_with_pillow(
    *,
    width: int,
    height: int,
    fmt: str = "JPEG",
    mode: str = "RGB",
    color: object = None,
    **save_options: object,
) -> bytes:
    if color is None:
        color = {"RGB": (30, 120, 200), "RGBA": (30, 120, 200, 128), "L": 128}.get(mode, 0)
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt, **save_options)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    return _build_png


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    return _encode_with_pillow


@pytest.fixture
def make_entry() -> Callable[..., ImageEntry]:
    """Build a JPEG-backed entry of the given pixel size."""
    counter = iter(range(1, 10_000))

    def _make(
        width: int = 200,
        height: int = 100,
        *,
        fmt: str = "JPEG",
        orientation: Orientation | None = None,
        name: str | None = None,
    ) -> ImageEntry:
        n = next(counter)
        return ImageEntry(
            id=f"entry-{n}",
            data=_encode_with_pillow(width=width, height=height, fmt=fmt),
            display_name=name or f"image_{n:02d}.{fmt.lower()}",
            orientation_override=orientation,
        )

    return _make


_ONE_PIXEL_PNG = _build_png(width=1, height=1)


def _fake_decoder(data: bytes, *, quality: object = None, name: str | None = None) -> DecodedImage:
    """Decoder stand-in: ``b"WxH"`` reports a WxH image, anything else fails.

    The embedded data is always a single pixel; pages stretch it into place.
    """
    try:
        width, height = (int(v) for v in data.decode("ascii").split("x"))
    except ValueError as exc:
        raise DecodeError(f"Cannot read {name}: not a size", name=name) from exc
    return DecodedImage(
        width=width,
        height=height,
        source_width=width,
        source_height=height,
        data=_ONE_PIXEL_PNG,
        image_format="PNG",
        source_format="FAKE",
    )


@pytest.fixture
def sized_entry() -> Callable[..., ImageEntry]:
    """Entries understood by :func:`fake_decoder`."""

    def _make(
        label: str,
        *,
        orientation: Orientation | None = None,
    ) -> ImageEntry:
        return ImageEntry(
            id=f"id-{label}",
            data=label.encode("ascii"),
            display_name=f"{label}.png",
            orientation_override=orientation,
        )

    return _make


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _read_pdf(pdf_bytes: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(pdf_bytes))


def _page_sizes(pdf_bytes: bytes) -> list[tuple[float, float]]:
    reader = _read_pdf(pdf_bytes)
    return [(float(p.mediabox.width), float(p.mediabox.height)) for p in reader.pages]


@pytest.fixture
def fake_decoder() -> Callable[..., DecodedImage]:
    return _fake_decoder


@pytest.fixture
def read_pdf() -> Callable[[bytes], PdfReader]:
    return _read_pdf


@pytest.fixture
def page_sizes() -> Callable[[bytes], list[tuple[float, float]]]:
    return _page_sizes
