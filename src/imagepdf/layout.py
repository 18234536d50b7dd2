"""Page geometry for one image under an orientation policy."""

from __future__ import annotations

from dataclasses import dataclass

from .models import GenerationSettings, ImageEntry, Orientation

LETTER = (612.0, 792.0)
A4 = (595.28, 841.89)

PAGE_SIZES = {
    "letter": LETTER,
    "a4": A4,
}

_DEFAULT_MARGIN = 36.0
_DEFAULT_AUTO_LONG_EDGE = 792.0

# Smallest page edge PDF readers accept (PDF 1.7, Annex C.2).
MIN_PAGE_EDGE = 3.0


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in PDF user space (origin bottom-left)."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ResolvedPage:
    """Page size and image placement for a single image, in points."""

    width: float
    height: float
    image_rect: Rect
    orientation: Orientation

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry settings shared by every page of a run.

    ``page_size`` is given in portrait order; landscape pages swap it.
    ``margin`` applies to fixed-size pages only, ``Auto`` pages have none.
    """

    page_size: tuple[float, float] = LETTER
    margin: float = _DEFAULT_MARGIN
    auto_long_edge: float = _DEFAULT_AUTO_LONG_EDGE

    def __post_init__(self) -> None:
        short, long = sorted(self.page_size)
        if short <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.margin < 0 or 2 * self.margin >= short:
            raise ValueError(f"margin {self.margin} leaves no room on a {short}pt wide page")
        if self.auto_long_edge < MIN_PAGE_EDGE:
            raise ValueError(f"auto_long_edge must be at least {MIN_PAGE_EDGE}pt")
        object.__setattr__(self, "page_size", (float(short), float(long)))

    @classmethod
    def for_page_size(cls, name: str, **kwargs: float) -> LayoutConfig:
        """Build a config from a named paper size (``letter`` or ``a4``)."""
        try:
            size = PAGE_SIZES[name.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown page size {name!r}; expected one of {', '.join(PAGE_SIZES)}"
            ) from None
        return cls(page_size=size, **kwargs)


def effective_orientation(entry: ImageEntry, settings: GenerationSettings) -> Orientation:
    """Return the entry's own override if set, else the run's global orientation."""
    return entry.orientation_override or settings.global_orientation


def _fit_centered(
    *,
    pixel_width: int,
    pixel_height: int,
    page_width: float,
    page_height: float,
    margin: float,
) -> Rect:
    usable_w = page_width - 2 * margin
    usable_h = page_height - 2 * margin

    scale = min(usable_w / pixel_width, usable_h / pixel_height)
    draw_w = pixel_width * scale
    draw_h = pixel_height * scale

    x = (page_width - draw_w) / 2
    y = (page_height - draw_h) / 2
    return Rect(x=x, y=y, width=draw_w, height=draw_h)


def resolve_page(
    *,
    pixel_width: int,
    pixel_height: int,
    orientation: Orientation,
    config: LayoutConfig | None = None,
) -> ResolvedPage:
    """Compute the page size and image placement for one image.

    Args:
        pixel_width: Width of the embedded raster in pixels.
        pixel_height: Height of the embedded raster in pixels.
        orientation: The effective orientation for this image.
        config: Geometry settings. Defaults to US Letter with 36pt margins.

    Returns:
        A :class:`ResolvedPage`. Under ``AUTO`` the page has the image's own
        aspect ratio and the image covers it entirely; no page edge is
        shorter than ``MIN_PAGE_EDGE``, so a sliver image is centred on a
        slightly wider page. Under ``PORTRAIT`` and ``LANDSCAPE`` the page has
        a fixed size and the image is scaled to fit inside the margins and
        centred.

    Raises:
        ValueError: If either pixel dimension is not positive.
    """
    if pixel_width <= 0 or pixel_height <= 0:
        raise ValueError(f"Invalid image size {pixel_width}x{pixel_height}")

    config = config or LayoutConfig()

    if orientation is Orientation.AUTO:
        scale = config.auto_long_edge / max(pixel_width, pixel_height)
        image_w = pixel_width * scale
        image_h = pixel_height * scale
        page_w = max(image_w, MIN_PAGE_EDGE)
        page_h = max(image_h, MIN_PAGE_EDGE)
        return ResolvedPage(
            width=page_w,
            height=page_h,
            image_rect=Rect(
                x=(page_w - image_w) / 2,
                y=(page_h - image_h) / 2,
                width=image_w,
                height=image_h,
            ),
            orientation=orientation,
        )

    short, long = config.page_size
    if orientation is Orientation.PORTRAIT:
        page_w, page_h = short, long
    else:
        page_w, page_h = long, short

    rect = _fit_centered(
        pixel_width=pixel_width,
        pixel_height=pixel_height,
        page_width=page_w,
        page_height=page_h,
        margin=config.margin,
    )
    return ResolvedPage(width=page_w, height=page_h, image_rect=rect, orientation=orientation)
