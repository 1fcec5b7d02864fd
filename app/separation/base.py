from abc import ABC, abstractmethod
from pathlib import Path

from app.separation.models import RawPlateFile


class BaseSeparationExtractor(ABC):
    """Contract for adapters that split a page into per-ink rasters."""

    @abstractmethod
    def extract(self, page_document: Path, dpi: int, output_dir: Path) -> list[RawPlateFile]:
        """Rasterize page 1 of *page_document* into one grayscale file per ink.

        The four process channels are always attempted, plus one file per
        spot ink the page references.

        Raises:
            ExternalToolError: if the device cannot be run or exits nonzero.
            OutputError: if no separation files were produced.
        """
