import itertools
import os
import uuid
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import psycopg
import pytest
from psycopg.types.json import Jsonb

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool
from app.database.models import JobRecord, JobStatus

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS plate_jobs (
        id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        payload jsonb NOT NULL DEFAULT '{}'::jsonb,
        status text NOT NULL DEFAULT 'queued',
        locked_at timestamptz,
        result jsonb,
        error text,
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS proof_pages (
        id text PRIMARY KEY,
        status text,
        c_url text,
        m_url text,
        y_url text,
        k_url text,
        spot_plates jsonb,
        composite_url text,
        error text
    )
    """,
)

_EPOCH = datetime(2000, 1, 1, tzinfo=UTC)
_sequence = itertools.count()


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "plates_test")
    return Settings(
        storage_endpoint_url="http://storage.test",
        storage_access_key_id="test-key",
        storage_secret_access_key="test-secret",
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, str]], None, None]:
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, row_id in cleanup:
                if table == "plate_jobs":
                    cur.execute("DELETE FROM plate_jobs WHERE id = %s", (row_id,))
                elif table == "proof_pages":
                    cur.execute("DELETE FROM proof_pages WHERE id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def seed_job_factory(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> Any:
    """Insert queued jobs dated before any leftover rows so they are claimed first."""

    def _seed(payload: dict[str, Any], status: str = JobStatus.QUEUED) -> JobRecord:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO plate_jobs (payload, status, created_at)
                VALUES (%s, %s, %s)
                RETURNING id, created_at
                """,
                (Jsonb(payload), status, _EPOCH + timedelta(seconds=next(_sequence))),
            )
            row = cur.fetchone()
            assert row is not None
        db_conn.commit()
        job_id = str(row[0])
        integration_cleanup.append(("plate_jobs", job_id))
        return JobRecord(id=job_id, payload=payload, status=status, created_at=row[1])

    return _seed


@pytest.fixture
def seed_job(seed_job_factory: Any) -> JobRecord:
    record: JobRecord = seed_job_factory({"document_ref": "uploads/doc.pdf"})
    return record


@pytest.fixture
def seed_proof_page(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> str:
    page_id = f"page-{uuid.uuid4()}"
    with db_conn.cursor() as cur:
        cur.execute(
            "INSERT INTO proof_pages (id, status) VALUES (%s, %s)",
            (page_id, JobStatus.QUEUED),
        )
    db_conn.commit()
    integration_cleanup.append(("proof_pages", page_id))
    return page_id
