"""Unit tests for PDF assembly."""

from __future__ import annotations

from datetime import datetime, timezone

import fitz
import pytest

from imagepdf.assembler import DocumentAssembler
from imagepdf.errors import EmptyDocumentError, EncodingError
from imagepdf.layout import Rect


@pytest.fixture
def red_png(png_bytes):
    return png_bytes(width=4, height=4)


def _add_page(assembler, image, *, width=612.0, height=792.0, rect=None):
    return assembler.append_page(
        width=width,
        height=height,
        image=image,
        rect=rect or Rect(x=0, y=0, width=width, height=height),
    )


def _image_boxes(pdf_bytes: bytes) -> list[tuple[float, float, float, float]]:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        return [tuple(info["bbox"]) for info in doc[0].get_image_info()]


class TestDocumentAssembler:
    def test_single_page(self, red_png, read_pdf):
        assembler = DocumentAssembler()
        assert _add_page(assembler, red_png) == 0

        pdf = assembler.finalize()

        assert pdf.startswith(b"%PDF-")
        assert len(read_pdf(pdf).pages) == 1

    def test_pages_keep_append_order(self, red_png, page_sizes):
        assembler = DocumentAssembler()
        for width in (100, 200, 300):
            _add_page(assembler, red_png, width=width, height=50)

        pdf = assembler.finalize()

        assert [w for w, _ in page_sizes(pdf)] == pytest.approx([100, 200, 300])

    def test_rect_is_measured_from_bottom_left(self, red_png):
        assembler = DocumentAssembler()
        _add_page(assembler, red_png, rect=Rect(x=36, y=100, width=200, height=50))

        (box,) = _image_boxes(assembler.finalize())

        # 792 - 100 - 50 = 642 from the top
        assert box == pytest.approx((36, 642, 236, 692), abs=0.01)

    def test_jpeg_and_alpha_png_are_embedded(self, image_bytes):
        assembler = DocumentAssembler()
        _add_page(assembler, image_bytes(width=30, height=20, fmt="JPEG"))
        _add_page(assembler, image_bytes(width=30, height=20, fmt="PNG", mode="RGBA"))

        pdf = assembler.finalize()

        with fitz.open(stream=pdf, filetype="pdf") as doc:
            assert [len(page.get_image_info()) for page in doc] == [1, 1]

    def test_metadata(self, red_png, read_pdf):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assembler = DocumentAssembler(title="Holiday photos", creation_date=created)
        _add_page(assembler, red_png)

        metadata = read_pdf(assembler.finalize()).metadata

        assert metadata.title == "Holiday photos"
        assert metadata.producer == "imagepdf"
        assert metadata["/CreationDate"] == "D:20240102030405+00'00'"

    def test_page_count(self, red_png):
        assembler = DocumentAssembler()
        assert assembler.page_count == 0
        _add_page(assembler, red_png)
        assert assembler.page_count == 1


class TestDocumentAssemblerErrors:
    def test_empty_document_raises(self):
        assembler = DocumentAssembler()

        with pytest.raises(EmptyDocumentError):
            assembler.finalize()

    def test_finalize_twice_raises(self, red_png):
        assembler = DocumentAssembler()
        _add_page(assembler, red_png)
        assembler.finalize()

        with pytest.raises(EncodingError, match="already been finalized"):
            assembler.finalize()

    def test_append_after_finalize_raises(self, red_png):
        assembler = DocumentAssembler()
        _add_page(assembler, red_png)
        assembler.finalize()

        with pytest.raises(EncodingError):
            _add_page(assembler, red_png)

    def test_unreadable_image_raises_and_leaves_no_page(self, red_png, read_pdf):
        assembler = DocumentAssembler()

        with pytest.raises(EncodingError, match="page 1"):
            _add_page(assembler, b"definitely not an image")

        assert assembler.page_count == 0
        _add_page(assembler, red_png)
        assert len(read_pdf(assembler.finalize()).pages) == 1

    @pytest.mark.parametrize("width", [0, -10, float("nan"), float("inf")])
    def test_invalid_page_size_raises(self, red_png, width):
        assembler = DocumentAssembler()

        with pytest.raises(EncodingError, match="Invalid page width"):
            _add_page(assembler, red_png, width=width, rect=Rect(0, 0, 1, 1))

    def test_close_is_idempotent(self, red_png):
        assembler = DocumentAssembler()
        _add_page(assembler, red_png)

        assembler.close()
        assembler.close()

        assert assembler.closed
        with pytest.raises(EncodingError, match="closed"):
            assembler.finalize()
