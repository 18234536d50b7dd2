"""imagepdf: Assemble an ordered set of images into a single PDF, locally."""

from __future__ import annotations

from .assembler import DocumentAssembler
from .decoder import DecodedImage, QualityProfile, decode_image, quality_profile
from .encoder import encode_page
from .errors import (
    AllImagesFailedError,
    DecodeError,
    EmptyDocumentError,
    EncodingError,
    GenerationBusyError,
    GenerationCancelledError,
    ImagePdfError,
)
from .layout import (
    A4,
    LETTER,
    MIN_PAGE_EDGE,
    LayoutConfig,
    Rect,
    ResolvedPage,
    effective_orientation,
    resolve_page,
)
from .models import (
    GenerationSettings,
    ImageEntry,
    Orientation,
    QualityTier,
    format_size,
    resolve_pdf_filename,
)
from .orchestrator import (
    GenerationOrchestrator,
    GenerationResult,
    RunState,
    SkippedEntry,
    generate_pdf,
)
from .progress import ProgressSink, RichProgressSink, rich_progress

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "A4",
    "AllImagesFailedError",
    "DecodeError",
    "DecodedImage",
    "DocumentAssembler",
    "EmptyDocumentError",
    "EncodingError",
    "GenerationBusyError",
    "GenerationCancelledError",
    "GenerationOrchestrator",
    "GenerationResult",
    "GenerationSettings",
    "ImageEntry",
    "ImagePdfError",
    "LETTER",
    "MIN_PAGE_EDGE",
    "LayoutConfig",
    "Orientation",
    "ProgressSink",
    "QualityProfile",
    "QualityTier",
    "Rect",
    "ResolvedPage",
    "RichProgressSink",
    "RunState",
    "SkippedEntry",
    "decode_image",
    "effective_orientation",
    "encode_page",
    "format_size",
    "generate_pdf",
    "quality_profile",
    "resolve_page",
    "resolve_pdf_filename",
    "rich_progress",
]
