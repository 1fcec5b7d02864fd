from unittest.mock import MagicMock, patch

import httpx
import pytest

from app.processor.document_fetcher import DocumentFetcher
from app.processor.exceptions import InputFetchError


def _response(status_code: int, content: bytes = b"") -> httpx.Response:
    return httpx.Response(
        status_code,
        content=content,
        request=httpx.Request("GET", "https://example.com/doc.pdf"),
    )


class TestFetchFromUrl:
    def test_downloads_remote_document(self) -> None:
        store = MagicMock()
        fetcher = DocumentFetcher(store, timeout_seconds=5)

        with patch(
            "app.processor.document_fetcher.httpx.get", return_value=_response(200, b"%PDF")
        ) as mock_get:
            data = fetcher.fetch("https://example.com/doc.pdf")

        assert data == b"%PDF"
        mock_get.assert_called_once_with(
            "https://example.com/doc.pdf", timeout=5, follow_redirects=True
        )
        store.get.assert_not_called()

    def test_http_error_status_raises(self) -> None:
        fetcher = DocumentFetcher(MagicMock())

        with patch(
            "app.processor.document_fetcher.httpx.get", return_value=_response(404)
        ):
            with pytest.raises(InputFetchError, match="HTTP 404"):
                fetcher.fetch("https://example.com/doc.pdf")

    def test_network_error_raises(self) -> None:
        fetcher = DocumentFetcher(MagicMock())

        with patch(
            "app.processor.document_fetcher.httpx.get",
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(InputFetchError, match="connection refused"):
                fetcher.fetch("https://example.com/doc.pdf")


class TestFetchFromStore:
    def test_reads_storage_path(self, memory_store) -> None:  # type: ignore[no-untyped-def]
        memory_store.put("uploads/doc.pdf", b"%PDF-1.7", "application/pdf", "proofs")

        data = DocumentFetcher(memory_store).fetch("uploads/doc.pdf", "proofs")

        assert data == b"%PDF-1.7"

    def test_missing_object_raises(self, memory_store) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(InputFetchError, match="uploads/missing.pdf"):
            DocumentFetcher(memory_store).fetch("uploads/missing.pdf")

    def test_empty_document_raises(self, memory_store) -> None:  # type: ignore[no-untyped-def]
        memory_store.put("uploads/empty.pdf", b"", "application/pdf")

        with pytest.raises(InputFetchError, match="empty"):
            DocumentFetcher(memory_store).fetch("uploads/empty.pdf")
