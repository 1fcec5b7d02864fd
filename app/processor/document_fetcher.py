import httpx

from app.processor.exceptions import InputFetchError
from app.storage.base import BaseArtifactStore
from app.storage.exceptions import StorageError


class DocumentFetcher:
    """Retrieves source documents from a remote URL or the artifact store."""

    def __init__(self, store: BaseArtifactStore, timeout_seconds: int = 60) -> None:
        self._store = store
        self._timeout_seconds = timeout_seconds

    def fetch(self, document_ref: str, bucket: str | None = None) -> bytes:
        """Return the document bytes.

        Raises:
            InputFetchError: if the document cannot be retrieved or is empty.
        """
        if document_ref.startswith(("http://", "https://")):
            data = self._download(document_ref)
        else:
            try:
                data = self._store.get(document_ref, bucket)
            except StorageError as exc:
                raise InputFetchError(str(exc)) from exc

        if not data:
            raise InputFetchError(f"Document {document_ref} is empty")
        return data

    def _download(self, url: str) -> bytes:
        try:
            response = httpx.get(url, timeout=self._timeout_seconds, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise InputFetchError(
                f"Download failed with HTTP {exc.response.status_code}: {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise InputFetchError(f"Download failed: {exc}") from exc
        return response.content
