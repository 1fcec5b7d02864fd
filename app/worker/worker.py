import time
from collections.abc import Callable

from app.config.settings import Settings
from app.database.connection import get_connection
from app.database.models import JobRecord
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.worker.job_runner import JobRunner


class Worker:
    """Single-job-at-a-time poller.

    Each iteration claims at most one job and runs it to completion before
    claiming again. The poll interval is only slept when nothing was claimed,
    so a backlog drains without pauses.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._poll_interval = settings.job_poll_interval_seconds
        self._sleep = sleep
        self._stop_requested = False

    def request_stop(self) -> None:
        """Finish the current job, then leave the loop."""
        if not self._stop_requested:
            Log.info("Stop requested, worker exits after the current job")
        self._stop_requested = True

    def run(self, max_jobs: int | None = None, max_polls: int | None = None) -> int:
        """Poll until stopped or interrupted.

        max_jobs and max_polls bound the loop for tests and one-shot runs.

        Returns:
            Number of jobs processed.
        """
        Log.info(f"Worker started, polling every {self._poll_interval}s")
        processed = 0
        polls = 0
        try:
            while not self._stop_requested:
                if max_jobs is not None and processed >= max_jobs:
                    break
                if max_polls is not None and polls >= max_polls:
                    break
                polls += 1
                if self.poll_once():
                    processed += 1
                else:
                    self._sleep(self._poll_interval)
        except KeyboardInterrupt:
            Log.info("Interrupted, worker shutting down")
        Log.info(f"Worker stopped after {processed} jobs")
        return processed

    def poll_once(self) -> bool:
        """Claim and run one job. Returns False when nothing was claimed."""
        job = self._try_claim_job()
        if job is None:
            Log.debug("No queued jobs")
            return False
        Log.info(f"Picked up job {job.id}")
        self._job_runner.run(job)
        return True

    def _try_claim_job(self) -> JobRecord | None:
        # A claim failure (database down, pool exhausted) is retried on the next poll.
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Could not claim a job, will retry: {exc}")
            return None
