"""Drive the decode → layout → encode pipeline over an ordered image list."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .assembler import DocumentAssembler
from .decoder import DecodedImage, decode_image
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
from .layout import LayoutConfig, effective_orientation, resolve_page
from .models import (
    GenerationSettings,
    ImageEntry,
    QualityTier,
    format_size,
    resolve_pdf_filename,
)
from .progress import ProgressSink

LOGGER = logging.getLogger("imagepdf.orchestrator")

Decoder = Callable[..., DecodedImage]


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SkippedEntry:
    """An entry left out of the document because it could not be decoded."""

    entry_id: str
    display_name: str
    reason: str


@dataclass
class GenerationResult:
    """Outcome of one run."""

    state: RunState
    filename: str
    pdf_bytes: bytes | None = field(default=None, repr=False)
    page_count: int = 0
    entry_count: int = 0
    skipped: list[SkippedEntry] = field(default_factory=list)
    error: ImagePdfError | None = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def note(self) -> str | None:
        """Human-readable summary of skipped entries, if any."""
        if not self.skipped:
            return None
        total = self.entry_count or self.page_count + len(self.skipped)
        verb = "was" if len(self.skipped) == 1 else "were"
        names = ", ".join(s.display_name for s in self.skipped)
        return f"{len(self.skipped)} of {total} images {verb} skipped: {names}"


class GenerationOrchestrator:
    """Runs PDF generation for one caller, one run at a time.

    Each call to :meth:`run` takes an immutable snapshot of the entries, owns
    a fresh :class:`DocumentAssembler` and produces an independent
    :class:`GenerationResult`. Images are decoded in a worker thread; the next
    entry is decoded while the current one is encoded, but pages and progress
    are always produced in input order.

    Entries that fail to decode are skipped and listed in
    ``GenerationResult.skipped``. The run only fails if every entry fails.
    """

    def __init__(
        self,
        *,
        layout: LayoutConfig | None = None,
        decoder: Decoder = decode_image,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._layout = layout or LayoutConfig()
        self._decoder = decoder
        self._clock = clock
        self._state = RunState.IDLE
        self._cancel_requested = False

    @property
    def state(self) -> RunState:
        return self._state

    def cancel(self) -> None:
        """Ask the active run to stop after the entry it is processing."""
        if self._state is not RunState.RUNNING:
            LOGGER.debug("Ignoring cancel request while %s", self._state.value)
            return
        LOGGER.info("Cancellation requested")
        self._cancel_requested = True

    def _schedule_decode(
        self, entry: ImageEntry, quality: QualityTier | float
    ) -> asyncio.Task[DecodedImage]:
        return asyncio.create_task(
            asyncio.to_thread(
                self._decoder, entry.data, quality=quality, name=entry.display_name
            )
        )

    def _fail(self, error: ImagePdfError, *, filename: str, **kwargs) -> GenerationResult:
        self._state = RunState.FAILED
        level = logging.INFO if isinstance(error, GenerationCancelledError) else logging.ERROR
        LOGGER.log(level, "PDF generation failed: %s", error.message)
        return GenerationResult(state=RunState.FAILED, filename=filename, error=error, **kwargs)

    async def run(
        self,
        entries: Sequence[ImageEntry],
        settings: GenerationSettings,
        *,
        on_progress: ProgressSink | None = None,
    ) -> GenerationResult:
        """Generate a PDF from *entries* in order.

        Args:
            entries: Ordered images; one page is produced per decodable entry.
            settings: Output filename, global orientation and quality.
            on_progress: Called with ``completed / total`` after each entry.
                ``1.0`` is only reported once the document is complete.

        Returns:
            A :class:`GenerationResult`. Run-level problems (empty input, a
            run already in progress, cancellation, every image unreadable,
            an encoding failure) are reported through ``result.error`` rather
            than raised.
        """
        filename = resolve_pdf_filename(settings.output_filename)

        if self._state is RunState.RUNNING:
            LOGGER.warning("Rejecting run for %s: another run is active", filename)
            return GenerationResult(
                state=RunState.FAILED, filename=filename, error=GenerationBusyError()
            )

        snapshot = tuple(entries)
        if not snapshot:
            return GenerationResult(
                state=RunState.FAILED, filename=filename, error=EmptyDocumentError()
            )

        def _report(fraction: float) -> None:
            if on_progress is not None:
                on_progress(fraction)

        self._state = RunState.RUNNING
        self._cancel_requested = False
        start_time = time.monotonic()
        total = len(snapshot)
        skipped: list[SkippedEntry] = []
        pending: asyncio.Task[DecodedImage] | None = None
        assembler: DocumentAssembler | None = None

        LOGGER.info("Generating %s from %d images", filename, total)

        try:
            assembler = DocumentAssembler(
                title=filename[: -len(".pdf")],
                creation_date=self._clock() if self._clock else None,
            )
            pending = self._schedule_decode(snapshot[0], settings.quality)

            for index, entry in enumerate(snapshot):
                decoded: DecodedImage | None
                try:
                    decoded = await pending
                except DecodeError as exc:
                    LOGGER.warning("Skipping %s: %s", entry.display_name, exc.message)
                    skipped.append(
                        SkippedEntry(
                            entry_id=entry.id,
                            display_name=entry.display_name,
                            reason=exc.message,
                        )
                    )
                    decoded = None

                pending = None
                if index + 1 < total:
                    pending = self._schedule_decode(snapshot[index + 1], settings.quality)

                if decoded is not None:
                    page = resolve_page(
                        pixel_width=decoded.width,
                        pixel_height=decoded.height,
                        orientation=effective_orientation(entry, settings),
                        config=self._layout,
                    )
                    encode_page(assembler, page=page, image=decoded)
                    decoded = None

                completed = index + 1
                if completed < total:
                    _report(completed / total)

                if self._cancel_requested:
                    await self._discard(pending)
                    return self._fail(
                        GenerationCancelledError(completed=completed, total=total),
                        filename=filename,
                        page_count=assembler.page_count,
                        entry_count=total,
                        skipped=skipped,
                    )

            if assembler.page_count == 0:
                return self._fail(
                    AllImagesFailedError([s.display_name for s in skipped]),
                    filename=filename,
                    entry_count=total,
                    skipped=skipped,
                )

            pdf_bytes = assembler.finalize()
            _report(1.0)
        except EncodingError as exc:
            await self._discard(pending)
            return self._fail(exc, filename=filename, entry_count=total, skipped=skipped)
        except BaseException:
            await self._discard(pending)
            self._state = RunState.FAILED
            raise
        finally:
            if assembler is not None:
                assembler.close()

        self._state = RunState.COMPLETED

        LOGGER.info(
            "Generated %s: %d pages, %s in %.1fs (%d skipped)",
            filename,
            assembler.page_count,
            format_size(len(pdf_bytes)),
            time.monotonic() - start_time,
            len(skipped),
        )
        return GenerationResult(
            state=RunState.COMPLETED,
            filename=filename,
            pdf_bytes=pdf_bytes,
            page_count=assembler.page_count,
            entry_count=total,
            skipped=skipped,
        )

    @staticmethod
    async def _discard(pending: asyncio.Task[DecodedImage] | None) -> None:
        if pending is None:
            return
        pending.cancel()
        await asyncio.gather(pending, return_exceptions=True)


async def generate_pdf(
    entries: Sequence[ImageEntry],
    settings: GenerationSettings | None = None,
    *,
    on_progress: ProgressSink | None = None,
    layout: LayoutConfig | None = None,
) -> GenerationResult:
    """Generate a PDF from *entries* with a one-off orchestrator.

    Example::

        import asyncio
        from pathlib import Path

        from imagepdf import GenerationSettings, ImageEntry, generate_pdf

        entries = [ImageEntry.from_file("cover.jpg"), ImageEntry.from_file("page.png")]
        result = asyncio.run(generate_pdf(entries, GenerationSettings(output_filename="scan")))
        if result.ok:
            Path(result.filename).write_bytes(result.pdf_bytes)
    """
    orchestrator = GenerationOrchestrator(layout=layout)
    return await orchestrator.run(
        entries, settings or GenerationSettings(), on_progress=on_progress
    )
