from dataclasses import dataclass
from typing import Any

from app.processor.exceptions import InvalidPayloadError


@dataclass(frozen=True)
class JobPayload:
    """Validated contents of plate_jobs.payload."""

    document_ref: str
    page_index: int
    dpi: int
    target_page_id: str | None = None
    secret: str | None = None
    bucket: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.document_ref.startswith(("http://", "https://"))


def parse_job_payload(
    raw: Any,
    *,
    default_dpi: int,
    min_dpi: int,
    max_dpi: int,
) -> JobPayload:
    """Validate a raw payload dict and build a JobPayload.

    Raises:
        InvalidPayloadError: on any missing or invalid field.
    """
    if not isinstance(raw, dict):
        raise InvalidPayloadError("Job payload must be an object")

    document_ref = raw.get("document_ref")
    if not document_ref or not isinstance(document_ref, str):
        raise InvalidPayloadError("Job payload missing document_ref")

    page_index = raw.get("page_index", 0)
    if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 0:
        raise InvalidPayloadError(
            f"'page_index' must be a non-negative integer, got {page_index!r}"
        )

    dpi = raw.get("dpi")
    if dpi is None:
        dpi = default_dpi
    if isinstance(dpi, bool) or not isinstance(dpi, int) or not min_dpi <= dpi <= max_dpi:
        raise InvalidPayloadError(
            f"'dpi' must be an integer between {min_dpi} and {max_dpi}, got {dpi!r}"
        )

    return JobPayload(
        document_ref=document_ref,
        page_index=page_index,
        dpi=dpi,
        target_page_id=_optional_str(raw, "target_page_id"),
        secret=_optional_str(raw, "secret"),
        bucket=_optional_str(raw, "bucket"),
    )


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value)
    raise InvalidPayloadError(f"'{key}' must be a string or null")
