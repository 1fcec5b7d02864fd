from abc import ABC, abstractmethod
from pathlib import Path


class BasePageIsolator(ABC):
    """Contract for single-page extraction adapters."""

    @abstractmethod
    def isolate(self, source: Path, page_index: int, destination: Path) -> Path:
        """Write a standalone document containing only one page of *source*.

        Args:
            source: Path to the multi-page source document.
            page_index: Zero-based index of the page to keep.
            destination: Path the single-page document is written to.

        Returns:
            *destination*, whose only page is number 1.

        Raises:
            PageIsolationError: if the source is unreadable or the index is out of range.
        """
