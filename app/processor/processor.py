import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from app.config.settings import Settings
from app.database.models import JobRecord
from app.database.repositories.proof_pages_repository import ProofPagesRepository
from app.logging.logger import Log
from app.pdf.pymupdf_adapter import PyMuPdfPageIsolator
from app.processor.document_fetcher import DocumentFetcher
from app.processor.exceptions import AuthorizationError
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.steps import (
    AuthorizeStep,
    ClassifyPlatesStep,
    ColorizePlatesStep,
    CompositePlatesStep,
    ExtractSeparationsStep,
    FetchDocumentStep,
    IsolatePageStep,
    MarkTargetFailedStep,
    MarkTargetProcessingStep,
    ParsePayloadStep,
    ReportResultStep,
    UploadPlatesStep,
)
from app.separation.classifier import PlateClassifier
from app.separation.colorizer import PlateColorizer
from app.separation.compositor import PlateCompositor
from app.separation.ghostscript_adapter import GhostscriptSeparationExtractor
from app.separation.raster_loader import RasterLoader
from app.storage.base import BaseArtifactStore


class Processor:
    """Runs the separation pipeline for one job.

    Pipeline: parse -> authorize -> fetch -> isolate -> extract -> classify
    -> colorize -> composite -> upload -> report. Scratch files live in a
    per-job temporary directory that is removed on every exit path.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        failed_step: PipelineStep | None = None,
        scratch_dir: str | None = None,
    ) -> None:
        self._steps = steps
        self._failed_step = failed_step
        self._scratch_dir = scratch_dir

    def process(self, job: JobRecord) -> dict[str, Any]:
        """Run every step for *job* and return the job result payload.

        On failure, interrupts included, the target page is marked failed and
        the error re-raised.
        Unauthorized payloads never touch the target page.
        """
        Log.info(f"Processing job {job.id}")
        with tempfile.TemporaryDirectory(prefix="plates-", dir=self._scratch_dir) as tmp:
            context = PipelineContext(
                job_id=job.id,
                raw_payload=job.payload if isinstance(job.payload, dict) else {},
                work_dir=Path(tmp),
            )
            try:
                for step in self._steps:
                    context = step.run(context)
            except AuthorizationError:
                raise
            except BaseException as exc:
                context.error_message = describe_error(exc)
                self._run_failed_step(context)
                raise
            return build_result(context)

    def _run_failed_step(self, context: PipelineContext) -> None:
        if self._failed_step is None:
            return
        try:
            self._failed_step.run(context)
        except Exception as exc:
            Log.exception(f"Could not record failure on target for job {context.job_id}: {exc}")


def describe_error(exc: BaseException) -> str:
    """Human-readable failure message that keeps the error class visible."""
    message = str(exc) or "no details"
    return f"{type(exc).__name__}: {message}"


def build_result(context: PipelineContext) -> dict[str, Any]:
    payload = context.require_payload()
    return {
        "ok": True,
        "target_page_id": payload.target_page_id,
        "page_index": payload.page_index,
        "dpi": payload.dpi,
        "document_ref": payload.document_ref,
        "plates": [
            {"name": plate.label, "kind": plate.kind.value, "url": plate.url}
            for plate in context.plates
        ],
        "composite_url": context.composite_url,
        "processed_at": datetime.now(UTC).isoformat(),
    }


def build_processor(
    settings: Settings,
    store: BaseArtifactStore,
    reporter: ProofPagesRepository | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    reporter = reporter if reporter is not None else ProofPagesRepository()
    extractor = GhostscriptSeparationExtractor(
        binary=settings.ghostscript_binary,
        timeout_seconds=settings.ghostscript_timeout_seconds,
    )
    loader = RasterLoader(
        converter_binaries=settings.converter_binaries,
        timeout_seconds=settings.converter_timeout_seconds,
    )
    steps: list[PipelineStep] = [
        ParsePayloadStep(
            default_dpi=settings.default_dpi,
            min_dpi=settings.min_dpi,
            max_dpi=settings.max_dpi,
        ),
        AuthorizeStep(settings.job_shared_secret),
        MarkTargetProcessingStep(reporter),
        FetchDocumentStep(DocumentFetcher(store, settings.http_timeout_seconds)),
        IsolatePageStep(PyMuPdfPageIsolator()),
        ExtractSeparationsStep(extractor),
        ClassifyPlatesStep(PlateClassifier()),
        ColorizePlatesStep(loader, PlateColorizer()),
        CompositePlatesStep(PlateCompositor()),
        UploadPlatesStep(store, settings.storage_prefix),
        ReportResultStep(reporter),
    ]
    return Processor(
        steps=steps,
        failed_step=MarkTargetFailedStep(reporter),
        scratch_dir=settings.scratch_dir,
    )
