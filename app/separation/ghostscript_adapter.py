"""Ghostscript ``tiffsep`` separation extractor.

A single invocation renders every channel of the page: ``sep.tif`` is the
32-bit CMYK composite and each separation is written next to it as
``sep(<Separation Name>).tif``. Spot names Ghostscript cannot use in a file
name fall back to sequential ``sep.s<N>.tif`` files.
"""

import subprocess
from pathlib import Path

from app.logging.logger import Log
from app.separation.base import BaseSeparationExtractor
from app.separation.exceptions import ExternalToolError, OutputError
from app.separation.models import RawPlateFile

_COMPOSITE_NAME = "sep.tif"
_TIFF_SUFFIXES = frozenset({".tif", ".tiff"})


class GhostscriptSeparationExtractor(BaseSeparationExtractor):
    """All-or-nothing extractor: any failure fails the whole page."""

    def __init__(self, *, binary: str = "gs", timeout_seconds: int = 600) -> None:
        self._binary = binary
        self._timeout_seconds = timeout_seconds

    def extract(self, page_document: Path, dpi: int, output_dir: Path) -> list[RawPlateFile]:
        output_dir.mkdir(parents=True, exist_ok=True)
        args = self.build_args(page_document, dpi, output_dir)
        Log.info(f"Running Ghostscript tiffsep at {dpi} dpi on {page_document.name}")

        completed = self._run(args)
        stderr = completed.stderr.strip()
        if completed.returncode != 0:
            raise ExternalToolError(
                f"Ghostscript exited with code {completed.returncode}: "
                f"{stderr or 'no diagnostics'}"
            )
        if stderr:
            Log.warning(f"Ghostscript stderr: {stderr}")

        files = self.collect(output_dir)
        if not files:
            raise OutputError("No separations produced by Ghostscript")
        Log.info(f"Ghostscript produced {len(files)} separation files")
        return files

    def build_args(self, page_document: Path, dpi: int, output_dir: Path) -> list[str]:
        return [
            self._binary,
            "-q",
            "-dSAFER",
            "-dBATCH",
            "-dNOPAUSE",
            "-sDEVICE=tiffsep",
            f"-r{dpi}",
            "-dFirstPage=1",
            "-dLastPage=1",
            f"-sOutputFile={output_dir / _COMPOSITE_NAME}",
            str(page_document),
        ]

    @staticmethod
    def collect(output_dir: Path) -> list[RawPlateFile]:
        """List separation TIFFs in *output_dir*, excluding the composite."""
        return [
            RawPlateFile(path)
            for path in sorted(output_dir.iterdir())
            if path.suffix.lower() in _TIFF_SUFFIXES and path.name != _COMPOSITE_NAME
        ]

    def version(self) -> str:
        """Return the installed Ghostscript version string."""
        completed = self._run([self._binary, "--version"])
        if completed.returncode != 0:
            raise ExternalToolError(f"Ghostscript version probe failed: {completed.stderr}")
        return completed.stdout.strip()

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalToolError(
                f"Ghostscript binary '{self._binary}' not found on PATH"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(
                f"Ghostscript timed out after {self._timeout_seconds}s"
            ) from exc
