from app.database.models import JobRecord
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.processor.processor import Processor, describe_error


class JobRunner:
    """Run one claimed job and always leave it in a terminal state."""

    def __init__(self, processor: Processor, job_repo: JobRepository) -> None:
        self._processor = processor
        self._job_repo = job_repo

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling.

        An interrupt (KeyboardInterrupt, SystemExit) still marks the job
        failed before propagating, since a claimed job is never re-claimed.
        """
        Log.info(f"Running job {job.id}")
        try:
            result = self._processor.process(job)
            self._job_repo.mark_done(job.id, result)
            Log.info(f"Job {job.id} completed successfully: {len(result['plates'])} plates")
        except Exception as exc:
            self._handle_failure(job, exc)
        except BaseException as exc:
            self._handle_failure(job, exc)
            raise

    def _handle_failure(self, job: JobRecord, exc: BaseException) -> None:
        """Record the failure. Jobs are never retried; a retry is a new job."""
        message = describe_error(exc)
        Log.error(f"Job {job.id} failed: {message}")
        try:
            self._job_repo.mark_failed(job.id, message)
        except Exception as persist_exc:
            Log.error(f"Could not mark job {job.id} as failed: {persist_exc}")
