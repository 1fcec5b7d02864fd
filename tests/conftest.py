import io
from pathlib import Path

import pytest
from reportlab.lib.colors import CMYKColorSep
from reportlab.pdfgen import canvas

from app.config.settings import Settings
from app.storage.base import BaseArtifactStore
from app.storage.exceptions import StorageReadError

REQUIRED_ENV = {
    "STORAGE_ENDPOINT_URL": "http://storage.test",
    "STORAGE_ACCESS_KEY_ID": "test-key",
    "STORAGE_SECRET_ACCESS_KEY": "test-secret",
}


@pytest.fixture(autouse=True)
def required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings() -> Settings:
    return Settings()


class InMemoryArtifactStore(BaseArtifactStore):
    """Artifact store double that keeps objects in a dict keyed by (bucket, path)."""

    def __init__(self, default_bucket: str = "separations") -> None:
        self.default_bucket = default_bucket
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        bucket: str | None = None,
    ) -> str:
        bucket = bucket or self.default_bucket
        self.objects[(bucket, path)] = (data, content_type)
        return f"http://storage.test/{bucket}/{path}"

    def get(self, path: str, bucket: str | None = None) -> bytes:
        bucket = bucket or self.default_bucket
        try:
            return self.objects[(bucket, path)][0]
        except KeyError as exc:
            raise StorageReadError(f"No object at {bucket}/{path}") from exc

    def keys(self) -> list[str]:
        return sorted(path for _, path in self.objects)


@pytest.fixture
def memory_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


def _cmyk_pdf(page_count: int, spot_name: str | None = None) -> bytes:
    """A PDF whose pages carry one CMYK-filled bar per process ink, plus an optional spot bar."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(144, 144))
    fills = [(1, 0, 0, 0), (0, 1, 0, 0), (0, 0, 1, 0), (0, 0, 0, 1)]
    for page_number in range(page_count):
        for index, fill in enumerate(fills):
            c.setFillColorCMYK(*fill)
            c.rect(8 + index * 32, 16, 24, 120, stroke=0, fill=1)
        if spot_name:
            c.setFillColor(CMYKColorSep(0, 0.8, 0.75, 0.05, spotName=spot_name))
            c.rect(8, 4, 128, 8, stroke=0, fill=1)
        c.setFillColorCMYK(0, 0, 0, 1)
        c.setFont("Helvetica", 6)
        c.drawString(100, 136, f"Page {page_number + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def two_page_cmyk_pdf_bytes() -> bytes:
    return _cmyk_pdf(2)


@pytest.fixture
def two_page_cmyk_pdf(tmp_path: Path, two_page_cmyk_pdf_bytes: bytes) -> Path:
    path = tmp_path / "source.pdf"
    path.write_bytes(two_page_cmyk_pdf_bytes)
    return path


@pytest.fixture
def spot_pdf_bytes() -> bytes:
    return _cmyk_pdf(1, spot_name="PANTONE 185 C")
