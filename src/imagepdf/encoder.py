"""Turn one decoded image and its resolved layout into a PDF page."""

from __future__ import annotations

import logging

from .assembler import DocumentAssembler
from .decoder import DecodedImage
from .layout import ResolvedPage

LOGGER = logging.getLogger("imagepdf.encoder")


def encode_page(
    assembler: DocumentAssembler,
    *,
    page: ResolvedPage,
    image: DecodedImage,
) -> int:
    """Append a page showing *image* at ``page.image_rect``.

    Returns:
        The zero-based index of the appended page.
    """
    index = assembler.append_page(
        width=page.width,
        height=page.height,
        image=image.data,
        rect=page.image_rect,
    )
    LOGGER.debug(
        "Encoded %s page %.1fx%.1f pt with %dx%d %s image",
        page.orientation.value,
        page.width,
        page.height,
        image.width,
        image.height,
        image.image_format,
    )
    return index
