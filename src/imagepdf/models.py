"""Input records handed to the engine by the intake/UI layer."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_DEFAULT_FILENAME = "my-images"
_ID_ALPHABET = string.digits + string.ascii_lowercase


class Orientation(str, Enum):
    AUTO = "auto"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class QualityTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def format_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable string."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def _new_entry_id(name: str) -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{name}-{int(time.time() * 1000)}-{suffix}"


def _coerce_orientation(value: Orientation | str | None) -> Orientation | None:
    if value is None or isinstance(value, Orientation):
        return value
    return Orientation(value.lower())


@dataclass(frozen=True)
class ImageEntry:
    """One image in the user's ordered list.

    ``orientation_override`` of ``None`` means "use the global setting".
    """

    id: str
    data: bytes = field(repr=False)
    display_name: str
    byte_size: int | None = None
    orientation_override: Orientation | None = None

    def __post_init__(self) -> None:
        if self.byte_size is None:
            object.__setattr__(self, "byte_size", len(self.data))
        object.__setattr__(
            self, "orientation_override", _coerce_orientation(self.orientation_override)
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        *,
        name: str,
        orientation: Orientation | str | None = None,
    ) -> ImageEntry:
        """Create an entry with a freshly generated id."""
        return cls(
            id=_new_entry_id(name),
            data=bytes(data),
            display_name=name,
            orientation_override=orientation,
        )

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        *,
        orientation: Orientation | str | None = None,
    ) -> ImageEntry:
        """Read *path* into an entry named after the file.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")
        return cls.from_bytes(path.read_bytes(), name=path.name, orientation=orientation)

    @property
    def size_label(self) -> str:
        return format_size(self.byte_size)


@dataclass(frozen=True)
class GenerationSettings:
    """Settings applied to a whole run.

    ``quality`` is either a :class:`QualityTier` or a numeric compression
    factor in ``(0, 1]`` where 1 is best.
    """

    output_filename: str = _DEFAULT_FILENAME
    global_orientation: Orientation = Orientation.AUTO
    quality: QualityTier | float = QualityTier.HIGH

    def __post_init__(self) -> None:
        orientation = _coerce_orientation(self.global_orientation)
        if orientation is None:
            raise ValueError("global_orientation must not be None")
        object.__setattr__(self, "global_orientation", orientation)

        quality = self.quality
        if isinstance(quality, str) and not isinstance(quality, QualityTier):
            quality = QualityTier(quality.lower())
        elif not isinstance(quality, QualityTier):
            if isinstance(quality, bool) or not 0 < float(quality) <= 1:
                raise ValueError(f"quality factor must be in (0, 1], got {quality!r}")
            quality = float(quality)
        object.__setattr__(self, "quality", quality)


def resolve_pdf_filename(filename: str | None) -> str:
    """Resolve the download filename for a generated PDF.

    Rules:
        - blank or ``None`` → ``my-images.pdf``
        - ends in ``.pdf`` (any case) → used as-is
        - otherwise → ``.pdf`` is appended
    """
    name = (filename or "").strip() or _DEFAULT_FILENAME
    if name.lower().endswith(".pdf"):
        return name
    return f"{name}.pdf"
