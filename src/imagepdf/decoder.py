"""Decode uploaded image bytes and re-encode them for embedding in a PDF."""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass, field

from PIL import Image, ImageOps

from .errors import DecodeError
from .models import QualityTier

LOGGER = logging.getLogger("imagepdf.decoder")

SUPPORTED_FORMATS = ("JPEG", "PNG", "WEBP")

_EXIF_ORIENTATION = 0x0112
_GRAY_MODES = frozenset({"1", "F"})
_HIGH_BIT_GRAY_MODES = frozenset({"I", "I;16", "I;16B", "I;16L", "I;16N"})
_PNG_COMPRESS_LEVEL = 6
_MAX_JPEG_QUALITY = 95

_DECODE_ERRORS = (
    OSError,
    SyntaxError,
    ValueError,
    EOFError,
    struct.error,
    Image.DecompressionBombError,
)


@dataclass(frozen=True)
class QualityProfile:
    """Re-encoding policy for one quality tier.

    ``max_edge`` caps the longest side in pixels (``None`` keeps the original
    resolution). ``lossless`` keeps pixels intact instead of re-encoding as JPEG.
    """

    jpeg_quality: int
    max_edge: int | None = None
    lossless: bool = False


QUALITY_PROFILES = {
    QualityTier.HIGH: QualityProfile(jpeg_quality=95, max_edge=None, lossless=True),
    QualityTier.MEDIUM: QualityProfile(jpeg_quality=80, max_edge=2400),
    QualityTier.LOW: QualityProfile(jpeg_quality=55, max_edge=1400),
}


def quality_profile(quality: QualityTier | float) -> QualityProfile:
    """Map a tier or a numeric factor in ``(0, 1]`` to a :class:`QualityProfile`."""
    if isinstance(quality, QualityTier):
        return QUALITY_PROFILES[quality]
    jpeg_quality = min(_MAX_JPEG_QUALITY, max(1, round(float(quality) * 100)))
    return QualityProfile(jpeg_quality=jpeg_quality)


@dataclass(frozen=True)
class DecodedImage:
    """An encoded image file (JPEG or PNG) ready to be placed on a page."""

    width: int
    height: int
    source_width: int
    source_height: int
    data: bytes = field(repr=False)
    image_format: str
    source_format: str
    has_alpha: bool = False


def _has_transparency(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _to_8bit_gray(image: Image.Image) -> Image.Image:
    # Scale 16-bit samples into 0..255; a plain convert("L") clips them.
    return image.convert("I").point(lambda v: v * (1 / 256)).convert("L")


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "L"):
        return image
    if image.mode in _HIGH_BIT_GRAY_MODES:
        return _to_8bit_gray(image)
    return image.convert("L" if image.mode in _GRAY_MODES else "RGB")


def _flatten_on_white(image: Image.Image) -> Image.Image:
    rgba = image.convert("RGBA")
    base = Image.new("RGB", rgba.size, (255, 255, 255))
    base.paste(rgba, mask=rgba.getchannel("A"))
    return base


def _encode_lossless(
    image: Image.Image, *, source_format: str, source_size: tuple[int, int]
) -> DecodedImage:
    if _has_transparency(image):
        image = image if image.mode == "LA" else image.convert("RGBA")
    else:
        image = _normalize_mode(image)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG", compress_level=_PNG_COMPRESS_LEVEL)

    return DecodedImage(
        width=image.width,
        height=image.height,
        source_width=source_size[0],
        source_height=source_size[1],
        data=buffer.getvalue(),
        image_format="PNG",
        source_format=source_format,
        has_alpha=image.mode in ("RGBA", "LA"),
    )


def _encode_jpeg(
    image: Image.Image,
    *,
    profile: QualityProfile,
    source_format: str,
    source_size: tuple[int, int],
) -> DecodedImage:
    if _has_transparency(image):
        image = _flatten_on_white(image)
    else:
        image = _normalize_mode(image)

    if profile.max_edge and max(image.size) > profile.max_edge:
        image = image.copy()
        image.thumbnail((profile.max_edge, profile.max_edge), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=profile.jpeg_quality, optimize=True)

    return DecodedImage(
        width=image.width,
        height=image.height,
        source_width=source_size[0],
        source_height=source_size[1],
        data=buffer.getvalue(),
        image_format="JPEG",
        source_format=source_format,
    )


def decode_image(
    data: bytes,
    *,
    quality: QualityTier | float = QualityTier.HIGH,
    name: str | None = None,
) -> DecodedImage:
    """Decode *data* and re-encode it for embedding according to *quality*.

    Args:
        data: The original encoded image (JPEG, PNG or WebP).
        quality: A :class:`QualityTier` or a numeric factor in ``(0, 1]``.
        name: Display name used in error messages.

    Returns:
        A :class:`DecodedImage` whose ``width``/``height`` are the embedded
        raster's pixel size (after EXIF rotation and any resolution cap).

    Raises:
        DecodeError: If *data* is empty, not a supported format, or corrupt.
    """
    label = name or "image"
    if not data:
        raise DecodeError(f"{label} is empty", name=name)

    profile = quality_profile(quality)

    try:
        with Image.open(io.BytesIO(data), formats=SUPPORTED_FORMATS) as opened:
            opened.load()
            source_format = opened.format or "UNKNOWN"
            exif_orientation = opened.getexif().get(_EXIF_ORIENTATION, 1)

            if (
                profile.lossless
                and source_format == "JPEG"
                and opened.mode in ("RGB", "L")
                and exif_orientation == 1
            ):
                LOGGER.debug("Embedding %s as-is (%dx%d JPEG)", label, *opened.size)
                return DecodedImage(
                    width=opened.width,
                    height=opened.height,
                    source_width=opened.width,
                    source_height=opened.height,
                    data=bytes(data),
                    image_format="JPEG",
                    source_format=source_format,
                )

            image = ImageOps.exif_transpose(opened)
            source_size = image.size

            if profile.lossless:
                decoded = _encode_lossless(
                    image, source_format=source_format, source_size=source_size
                )
            else:
                decoded = _encode_jpeg(
                    image,
                    profile=profile,
                    source_format=source_format,
                    source_size=source_size,
                )
    except _DECODE_ERRORS as exc:
        raise DecodeError(f"Cannot read {label}: {exc}", name=name) from exc

    LOGGER.debug(
        "Decoded %s: %s %dx%d -> %s %dx%d (%d bytes)",
        label,
        decoded.source_format,
        decoded.source_width,
        decoded.source_height,
        decoded.image_format,
        decoded.width,
        decoded.height,
        len(decoded.data),
    )
    return decoded
