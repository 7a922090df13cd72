import logging
import time
from collections.abc import Callable, Sequence
from typing import Any
from dataclasses import dataclass, field

from backend.config import settings
from backend.schemas.report import ReportRecord
from backend.services.notifications import LoggingNotifier, Notifier
from backend.services.pdf_renderer import RenderedReport, RenderOptions, batch_prefix, render_pdf

logger = logging.getLogger(__name__)


class ReportRenderError(RuntimeError):
    """Raised when a PDF could not be produced for a record."""


@dataclass
class ExportedFile:
    report_id: str
    filename: str
    content: bytes
    page_count: int


@dataclass
class BatchExportResult:
    files: list[ExportedFile] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)


def default_render_options() -> RenderOptions:
    return RenderOptions(
        page_size=settings.pdf_page_size,
        logo_path=settings.clinic_logo_path,
        compress=settings.pdf_compress,
    )


def export_report(
    record: ReportRecord,
    options: RenderOptions | None = None,
    prefix: str = "",
    notifier: Notifier | None = None,
) -> RenderedReport:
    try:
        rendered = render_pdf(record, options or default_render_options(), prefix=prefix)
    except Exception as exc:
        logger.exception("PDF generation failed for patient %r", record.patient_name)
        if notifier is not None:
            notifier.failure("Error", "Failed to generate PDF. Please try again.")
        raise ReportRenderError("Failed to generate PDF") from exc
    if notifier is not None:
        notifier.success("PDF Generated", f"{rendered.filename} is ready to download.")
    return rendered


def export_batch(
    records: Sequence[tuple[str, Any]],
    options: RenderOptions | None = None,
    delay_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    notifier: Notifier | None = None,
    load: Callable[[Any], ReportRecord] | None = None,
) -> BatchExportResult:
    """Export (report_id, source) pairs one after another.

    Each source is turned into a record by `load` (identity when omitted), so
    a source that cannot be rebuilt fails on its own like a failed render.
    Successive renders are staggered by `delay_seconds`. A record that fails
    is logged and skipped; the rest of the queue still exports.
    """
    delay = settings.export_stagger_seconds if delay_seconds is None else delay_seconds
    notifier = notifier or LoggingNotifier()
    result = BatchExportResult()

    for index, (report_id, source) in enumerate(records):
        if index and delay > 0:
            sleep(delay)
        try:
            record = load(source) if load is not None else source
        except ValueError:
            logger.exception("Could not rebuild report %s for export", report_id)
            result.failed_ids.append(report_id)
            continue
        try:
            rendered = export_report(record, options, prefix=batch_prefix(index))
        except ReportRenderError:
            logger.error("Failed to generate PDF for report %s", report_id)
            result.failed_ids.append(report_id)
            continue
        result.files.append(
            ExportedFile(
                report_id=report_id,
                filename=rendered.filename,
                content=rendered.content,
                page_count=rendered.page_count,
            )
        )

    total = len(records)
    if result.failed_ids:
        notifier.failure(
            "Export Incomplete",
            f"Exported {len(result.files)} of {total} reports; failed: {', '.join(result.failed_ids)}.",
        )
    else:
        notifier.success("Export Finished", f"Exported {total} reports.")
    return result
