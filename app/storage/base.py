from abc import ABC, abstractmethod


class BaseArtifactStore(ABC):
    """Contract for durable blob storage with public URLs."""

    @abstractmethod
    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        bucket: str | None = None,
    ) -> str:
        """Write *data* at *path*, replacing any existing object.

        Returns:
            Public URL of the stored object.

        Raises:
            StorageWriteError: if the upload fails.
        """

    @abstractmethod
    def get(self, path: str, bucket: str | None = None) -> bytes:
        """Read the object stored at *path*.

        Raises:
            StorageReadError: if the object cannot be read.
        """
