from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection
from app.database.exceptions import PersistenceError
from app.database.models import JobRecord, JobStatus
from app.logging.logger import Log


class JobRepository:
    """Database operations for the plate_jobs table.

    Claiming is optimistic: the oldest queued row is selected, then locked
    with a conditional UPDATE that only matches while the row is still
    queued and unlocked. Zero affected rows means another worker won.
    """

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the oldest queued job, or return None if none was won."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, payload, created_at
                FROM plate_jobs
                WHERE status = %s
                  AND locked_at IS NULL
                ORDER BY created_at
                LIMIT 1
                """,
                (JobStatus.QUEUED,),
            )
            row = cur.fetchone()
        # End the read transaction so the lock attempt sees fresh state.
        conn.commit()

        if row is None:
            return None

        job_id = str(row["id"])
        if not self.try_lock(conn, job_id):
            Log.debug(f"Job {job_id} was claimed by another worker")
            return None

        return JobRecord(
            id=job_id,
            payload=row["payload"] or {},
            status=JobStatus.PROCESSING,
            created_at=row["created_at"],
        )

    def try_lock(self, conn: psycopg.Connection[Any], job_id: str) -> bool:
        """Atomically move a job from queued to processing.

        Returns:
            True if this call performed the transition, False otherwise.
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE plate_jobs
                SET status = %s, locked_at = NOW()
                WHERE id = %s
                  AND status = %s
                  AND locked_at IS NULL
                """,
                (JobStatus.PROCESSING, job_id, JobStatus.QUEUED),
            )
            won = cur.rowcount == 1
        conn.commit()
        return won

    def mark_done(self, job_id: str, result: dict[str, Any]) -> None:
        """Mark a job as done and store its result payload."""
        self._execute(
            """
            UPDATE plate_jobs
            SET status = %s, result = %s, error = NULL
            WHERE id = %s
            """,
            (JobStatus.DONE, Jsonb(result), job_id),
        )

    def mark_failed(self, job_id: str, error: str) -> None:
        """Mark a job as permanently failed. Failed jobs are never re-claimed."""
        self._execute(
            """
            UPDATE plate_jobs
            SET status = %s, error = %s
            WHERE id = %s
            """,
            (JobStatus.FAILED, error, job_id),
        )

    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, payload, status, locked_at, result, error, created_at
                    FROM plate_jobs
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return JobRecord(
            id=str(row["id"]),
            payload=row["payload"] or {},
            status=row["status"],
            locked_at=row["locked_at"],
            result=row["result"],
            error=row["error"],
            created_at=row["created_at"],
        )

    def _execute(self, query: str, params: tuple[Any, ...]) -> None:
        try:
            with get_connection() as conn:
                conn.execute(query, params)
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to update job {params[-1]}: {exc}") from exc
