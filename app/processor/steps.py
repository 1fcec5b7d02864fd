import hmac
import io

from PIL import Image

from app.database.models import JobStatus, ProofPageUpdate
from app.database.repositories.proof_pages_repository import ProofPagesRepository
from app.logging.logger import Log
from app.pdf.base import BasePageIsolator
from app.processor.document_fetcher import DocumentFetcher
from app.processor.exceptions import AuthorizationError
from app.processor.models import parse_job_payload
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.storage_paths import composite_key, plate_keys
from app.separation.base import BaseSeparationExtractor
from app.separation.classifier import PlateClassifier, order_plates
from app.separation.colorizer import PlateColorizer
from app.separation.compositor import PlateCompositor
from app.separation.exceptions import CompositeError
from app.separation.models import Plate, PlateKind
from app.separation.raster_loader import RasterLoader
from app.storage.base import BaseArtifactStore

_URL_FIELDS: dict[PlateKind, str] = {
    PlateKind.CYAN: "c_url",
    PlateKind.MAGENTA: "m_url",
    PlateKind.YELLOW: "y_url",
    PlateKind.BLACK: "k_url",
}


class ParsePayloadStep(PipelineStep):
    def __init__(self, *, default_dpi: int, min_dpi: int, max_dpi: int) -> None:
        self._default_dpi = default_dpi
        self._min_dpi = min_dpi
        self._max_dpi = max_dpi

    def run(self, context: PipelineContext) -> PipelineContext:
        context.payload = parse_job_payload(
            context.raw_payload,
            default_dpi=self._default_dpi,
            min_dpi=self._min_dpi,
            max_dpi=self._max_dpi,
        )
        return context


class AuthorizeStep(PipelineStep):
    """Rejects jobs whose payload secret does not match, when a secret is configured."""

    def __init__(self, shared_secret: str) -> None:
        self._shared_secret = shared_secret

    def run(self, context: PipelineContext) -> PipelineContext:
        if not self._shared_secret:
            return context
        provided = context.require_payload().secret or ""
        if not hmac.compare_digest(provided.encode(), self._shared_secret.encode()):
            raise AuthorizationError(f"Job {context.job_id} payload secret mismatch")
        return context


class MarkTargetProcessingStep(PipelineStep):
    def __init__(self, reporter: ProofPagesRepository) -> None:
        self._reporter = reporter

    def run(self, context: PipelineContext) -> PipelineContext:
        target_page_id = context.target_page_id
        if target_page_id:
            self._reporter.report(target_page_id, ProofPageUpdate(status=JobStatus.PROCESSING))
        return context


class MarkTargetFailedStep(PipelineStep):
    def __init__(self, reporter: ProofPagesRepository) -> None:
        self._reporter = reporter

    def run(self, context: PipelineContext) -> PipelineContext:
        target_page_id = context.target_page_id
        if target_page_id:
            self._reporter.report(
                target_page_id,
                ProofPageUpdate(status=JobStatus.FAILED, error=context.error_message),
            )
            Log.error(f"Proof page {target_page_id} marked as failed: {context.error_message}")
        return context


class FetchDocumentStep(PipelineStep):
    def __init__(self, fetcher: DocumentFetcher) -> None:
        self._fetcher = fetcher

    def run(self, context: PipelineContext) -> PipelineContext:
        payload = context.require_payload()
        data = self._fetcher.fetch(payload.document_ref, payload.bucket)
        context.source_path = context.work_dir / "input.pdf"
        context.source_path.write_bytes(data)
        Log.info(f"Downloaded {len(data)} bytes from {payload.document_ref}")
        return context


class IsolatePageStep(PipelineStep):
    def __init__(self, isolator: BasePageIsolator) -> None:
        self._isolator = isolator

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.source_path is None:
            raise ValueError("PipelineContext.source_path must be set before isolation")
        payload = context.require_payload()
        context.page_path = self._isolator.isolate(
            context.source_path,
            payload.page_index,
            context.work_dir / "page.pdf",
        )
        Log.info(f"Isolated page {payload.page_index + 1} of {payload.document_ref}")
        return context


class ExtractSeparationsStep(PipelineStep):
    def __init__(self, extractor: BaseSeparationExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.page_path is None:
            raise ValueError("PipelineContext.page_path must be set before extraction")
        context.raw_files = self._extractor.extract(
            context.page_path,
            context.require_payload().dpi,
            context.work_dir / "seps",
        )
        return context


class ClassifyPlatesStep(PipelineStep):
    def __init__(self, classifier: PlateClassifier) -> None:
        self._classifier = classifier

    def run(self, context: PipelineContext) -> PipelineContext:
        identities = self._classifier.classify_all(context.raw_files)
        plates = [
            Plate(identity=identity, raw=raw)
            for raw, identity in zip(context.raw_files, identities, strict=True)
        ]
        context.plates = order_plates(plates)
        Log.info(
            f"Classified plates for job {context.job_id}: "
            f"{', '.join(plate.label for plate in context.plates)}"
        )
        return context


class ColorizePlatesStep(PipelineStep):
    def __init__(self, loader: RasterLoader, colorizer: PlateColorizer) -> None:
        self._loader = loader
        self._colorizer = colorizer

    def run(self, context: PipelineContext) -> PipelineContext:
        for plate in context.plates:
            raster = self._loader.load(plate.raw.path)
            plate.colorized = self._colorizer.colorize(plate.identity, raster)
        return context


class CompositePlatesStep(PipelineStep):
    """Builds the composite preview. A failure here skips the composite only."""

    def __init__(self, compositor: PlateCompositor) -> None:
        self._compositor = compositor

    def run(self, context: PipelineContext) -> PipelineContext:
        layers = [plate.colorized for plate in context.plates if plate.colorized is not None]
        try:
            context.composite = self._compositor.composite(layers)
        except CompositeError as exc:
            Log.warning(f"Composite skipped for job {context.job_id}: {exc}")
            context.composite = None
        return context


class UploadPlatesStep(PipelineStep):
    def __init__(self, store: BaseArtifactStore, prefix: str) -> None:
        self._store = store
        self._prefix = prefix

    def run(self, context: PipelineContext) -> PipelineContext:
        payload = context.require_payload()
        keys = plate_keys(
            self._prefix,
            context.target,
            payload.page_index,
            [plate.label for plate in context.plates],
        )
        for plate, key in zip(context.plates, keys, strict=True):
            if plate.colorized is None:
                raise ValueError(f"Plate {plate.label} was not colorized before upload")
            plate.url = self._store.put(key, _png_bytes(plate.colorized), "image/png", payload.bucket)

        if context.composite is not None:
            key = composite_key(self._prefix, context.target, payload.page_index)
            context.composite_url = self._store.put(
                key, _png_bytes(context.composite), "image/png", payload.bucket
            )
        Log.info(f"Uploaded {len(context.plates)} plates for job {context.job_id}")
        return context


class ReportResultStep(PipelineStep):
    def __init__(self, reporter: ProofPagesRepository) -> None:
        self._reporter = reporter

    def run(self, context: PipelineContext) -> PipelineContext:
        target_page_id = context.target_page_id
        if target_page_id:
            self._reporter.report(target_page_id, build_page_update(context))
            Log.info(f"Proof page {target_page_id} updated")
        return context


def build_page_update(context: PipelineContext) -> ProofPageUpdate:
    """Collect plate URLs from *context* into a successful page update."""
    spot_plates: list[dict[str, str]] = []
    update = ProofPageUpdate(
        status=JobStatus.DONE,
        spot_plates=spot_plates,
        composite_url=context.composite_url,
    )
    for plate in context.plates:
        if plate.url is None:
            continue
        if plate.kind is PlateKind.SPOT:
            spot_plates.append({"name": plate.label, "url": plate.url})
            continue
        field_name = _URL_FIELDS[plate.kind]
        if getattr(update, field_name) is None:
            setattr(update, field_name, plate.url)
    return update


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
