from pathlib import Path

import pymupdf

from app.pdf.base import BasePageIsolator
from app.pdf.exceptions import PageIsolationError


class PyMuPdfPageIsolator(BasePageIsolator):
    """Extracts a single page into a new PDF using PyMuPDF."""

    def isolate(self, source: Path, page_index: int, destination: Path) -> Path:
        try:
            with pymupdf.open(str(source)) as doc:  # type: ignore[no-untyped-call]
                if not 0 <= page_index < doc.page_count:
                    raise PageIsolationError(
                        f"Page index {page_index} out of range "
                        f"(document has {doc.page_count} pages)"
                    )
                with pymupdf.open() as single:  # type: ignore[no-untyped-call]
                    single.insert_pdf(doc, from_page=page_index, to_page=page_index)
                    single.save(str(destination), garbage=3, deflate=True)
        except PageIsolationError:
            raise
        except Exception as exc:
            raise PageIsolationError(f"pymupdf page isolation failed: {exc}") from exc
        return destination
