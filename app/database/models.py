from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class JobStatus:
    """Allowed values of plate_jobs.status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    TERMINAL = frozenset({DONE, FAILED})


@dataclass
class JobRecord:
    """Represents a row from the plate_jobs table."""

    id: str
    payload: dict[str, Any] = field(default_factory=dict)
    status: str = JobStatus.QUEUED
    locked_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime | None = None


@dataclass
class ProofPageUpdate:
    """Fields written back to a proof_pages row. None means "leave as is"."""

    status: str
    c_url: str | None = None
    m_url: str | None = None
    y_url: str | None = None
    k_url: str | None = None
    spot_plates: list[dict[str, str]] | None = None
    composite_url: str | None = None
    error: str | None = None
