import signal
from types import FrameType

from app.config.exceptions import ConfigurationError
from app.config.settings import load_settings
from app.database.connection import close_pool, init_pool
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.processor.processor import build_processor
from app.separation.exceptions import ExternalToolError
from app.separation.ghostscript_adapter import GhostscriptSeparationExtractor
from app.storage.factory import ArtifactStoreFactory
from app.worker.job_runner import JobRunner
from app.worker.worker import Worker


def main() -> None:
    """Entry point: load settings -> initialize pool -> build dependencies -> poll."""
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        Log.configure("INFO")
        Log.error(str(exc))
        raise SystemExit(1) from exc

    Log.configure(settings.log_level)
    _log_tool_versions(settings.ghostscript_binary)
    init_pool(settings)

    try:
        store = ArtifactStoreFactory.create(settings)
        processor = build_processor(settings, store)
        job_repo = JobRepository()
        job_runner = JobRunner(processor, job_repo)
        worker = Worker(job_repo, job_runner, settings)
        _install_stop_handlers(worker)
        worker.run()
    finally:
        close_pool()


def _install_stop_handlers(worker: Worker) -> None:
    """SIGTERM and the first SIGINT drain the current job; a second SIGINT interrupts it."""

    def _stop(signum: int, _frame: FrameType | None) -> None:
        if signum == signal.SIGINT:
            signal.signal(signal.SIGINT, signal.default_int_handler)
        worker.request_stop()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)


def _log_tool_versions(ghostscript_binary: str) -> None:
    """Report the rasterizer version. A missing binary fails jobs, not startup."""
    try:
        version = GhostscriptSeparationExtractor(binary=ghostscript_binary).version()
        Log.info(f"Ghostscript found, version {version}")
    except ExternalToolError as exc:
        Log.error(f"{exc}; every job will fail until Ghostscript is installed")


if __name__ == "__main__":
    main()
