"""Collect image pages into a single PDF document using PyMuPDF."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

import fitz

from .errors import EmptyDocumentError, EncodingError
from .layout import Rect

LOGGER = logging.getLogger("imagepdf.assembler")

PRODUCER = "imagepdf"


def _pdf_date(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("D:%Y%m%d%H%M%S+00'00'")


def _to_fitz_rect(rect: Rect, *, page_height: float) -> fitz.Rect:
    # Layout works bottom-up like PDF user space; PyMuPDF measures from the top.
    top = page_height - rect.y - rect.height
    return fitz.Rect(rect.x, top, rect.x + rect.width, top + rect.height)


class DocumentAssembler:
    """Build a PDF one page at a time.

    Every page holds a single image placed at a given rectangle. Nothing is
    serialised until :meth:`finalize`, so an abandoned run only needs
    :meth:`close`.

    Example::

        assembler = DocumentAssembler(title="holiday")
        assembler.append_page(
            width=612, height=792, image=jpeg_bytes, rect=Rect(36, 126, 540, 540)
        )
        pdf_bytes = assembler.finalize()
    """

    def __init__(
        self,
        *,
        title: str | None = None,
        creation_date: datetime | None = None,
    ) -> None:
        self._doc = fitz.open()
        self._page_count = 0
        self._finalized = False
        self._title = title
        self._creation_date = creation_date or datetime.now(timezone.utc)

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def closed(self) -> bool:
        return self._doc.is_closed

    def _check_open(self) -> None:
        if self._finalized:
            raise EncodingError("Document has already been finalized")
        if self._doc.is_closed:
            raise EncodingError("Document has been closed")

    def append_page(
        self,
        *,
        width: float,
        height: float,
        image: bytes,
        rect: Rect,
    ) -> int:
        """Append a ``width`` x ``height`` page showing *image* inside *rect*.

        *rect* is in PDF user space (origin bottom-left).

        Returns:
            The zero-based index of the new page.

        Raises:
            EncodingError: If the page size is not a finite positive number,
                or if the image cannot be embedded.
        """
        self._check_open()
        for label, value in (("width", width), ("height", height)):
            if not math.isfinite(value) or value <= 0:
                raise EncodingError(f"Invalid page {label} {value!r}")

        page = self._doc.new_page(width=width, height=height)
        try:
            page.insert_image(
                _to_fitz_rect(rect, page_height=height),
                stream=image,
                keep_proportion=False,
            )
        except Exception as exc:
            self._doc.delete_page(page.number)
            raise EncodingError(f"Cannot embed image on page {self._page_count + 1}: {exc}") from exc

        self._page_count += 1
        LOGGER.debug("Appended page %d (%d bytes of image data)", self._page_count, len(image))
        return self._page_count - 1

    def finalize(self) -> bytes:
        """Write the document and return the complete PDF.

        Raises:
            EmptyDocumentError: If no page was appended.
            EncodingError: If called twice, or if PyMuPDF cannot write the
                document.
        """
        self._check_open()
        if not self._page_count:
            raise EmptyDocumentError("Cannot build a PDF without pages")

        created = _pdf_date(self._creation_date)
        try:
            self._doc.set_metadata(
                {
                    "producer": PRODUCER,
                    "creator": PRODUCER,
                    "title": self._title or "",
                    "creationDate": created,
                    "modDate": created,
                }
            )
            pdf_bytes = self._doc.tobytes(garbage=4, deflate=True)
        except Exception as exc:
            raise EncodingError(f"Cannot write PDF: {exc}") from exc
        finally:
            self._finalized = True
            self._doc.close()

        LOGGER.debug(
            "Finalized %d-page PDF (%d bytes)", self._page_count, len(pdf_bytes)
        )
        return pdf_bytes

    def close(self) -> None:
        """Release the document without writing it. Safe to call repeatedly."""
        if not self._doc.is_closed:
            self._doc.close()
