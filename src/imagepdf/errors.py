"""Structured error catalogue for the PDF assembly engine.

Every error carries a stable ``code``, a human ``message`` and an optional
``suggestion`` so the caller can render a single dismissible message without
inspecting exception types.
"""

from __future__ import annotations

from typing import Any


class ImagePdfError(Exception):
    """Base exception for imagepdf errors."""

    code = "IMAGEPDF_ERROR"

    def __init__(self, message: str, *, suggestion: str = "", detail: Any = None):
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class DecodeError(ImagePdfError):
    """Raised when image bytes are not a supported, intact raster."""

    code = "DECODE_FAILED"

    def __init__(self, message: str, *, name: str | None = None):
        self.name = name
        super().__init__(
            message,
            suggestion="Use a JPEG, PNG or WebP file and check that it opens in an image viewer.",
        )


class EmptyDocumentError(ImagePdfError):
    """Raised when there are no pages to put in the document."""

    code = "EMPTY_DOCUMENT"

    def __init__(self, message: str = "No images to convert", **kwargs: Any):
        kwargs.setdefault("suggestion", "Add at least one image before generating a PDF.")
        super().__init__(message, **kwargs)


class AllImagesFailedError(EmptyDocumentError):
    """Raised when every entry in a run failed to decode."""

    code = "ALL_IMAGES_FAILED"

    def __init__(self, failed_names: list[str]):
        self.failed_names = failed_names
        super().__init__(
            f"None of the {len(failed_names)} images could be read",
            suggestion="Check that the files are valid JPEG, PNG or WebP images.",
            detail=failed_names,
        )


class GenerationBusyError(ImagePdfError):
    """Raised when a run is requested while another is still active."""

    code = "BUSY"

    def __init__(self) -> None:
        super().__init__(
            "A PDF is already being generated",
            suggestion="Wait for the current PDF to finish, then try again.",
        )


class GenerationCancelledError(ImagePdfError):
    """Raised when the caller cancels a run."""

    code = "CANCELLED"

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(f"PDF generation cancelled after {completed}/{total} images")


class EncodingError(ImagePdfError):
    """Raised when the assembler cannot produce a structurally valid document."""

    code = "ENCODING_FAILED"

    def __init__(self, message: str):
        super().__init__(
            message,
            suggestion="Retry generation. If it keeps failing, remove the last image added.",
        )
