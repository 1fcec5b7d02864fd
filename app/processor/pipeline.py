from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from PIL import Image

from app.processor.models import JobPayload
from app.separation.models import Plate, RawPlateFile


@dataclass(slots=True)
class PipelineContext:
    job_id: str
    raw_payload: dict[str, Any]
    work_dir: Path
    payload: JobPayload | None = None
    source_path: Path | None = None
    page_path: Path | None = None
    raw_files: list[RawPlateFile] = field(default_factory=list)
    plates: list[Plate] = field(default_factory=list)
    composite: Image.Image | None = None
    composite_url: str | None = None
    error_message: str = ""

    @property
    def target(self) -> str:
        """Identifier used to namespace artifacts: the target page, else the job."""
        if self.payload is not None and self.payload.target_page_id:
            return self.payload.target_page_id
        return self.job_id

    @property
    def target_page_id(self) -> str | None:
        if self.payload is not None:
            return self.payload.target_page_id
        value = self.raw_payload.get("target_page_id")
        return str(value) if value else None

    def require_payload(self) -> JobPayload:
        if self.payload is None:
            raise ValueError("PipelineContext.payload must be set before this step")
        return self.payload


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
