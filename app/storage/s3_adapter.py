from typing import Any
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.base import BaseArtifactStore
from app.storage.exceptions import StorageReadError, StorageWriteError


class S3ArtifactStore(BaseArtifactStore):
    """Artifact store backed by an S3-compatible object storage endpoint."""

    def __init__(
        self,
        *,
        client: Any,
        default_bucket: str,
        public_base_url: str,
    ) -> None:
        self._client = client
        self._default_bucket = default_bucket
        self._public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_credentials(
        cls,
        *,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        region: str,
        default_bucket: str,
        public_base_url: str,
    ) -> "S3ArtifactStore":
        client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )
        return cls(
            client=client,
            default_bucket=default_bucket,
            public_base_url=public_base_url,
        )

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        bucket: str | None = None,
    ) -> str:
        bucket = bucket or self._default_bucket
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageWriteError(f"Upload failed for {bucket}/{path}: {exc}") from exc
        return self.public_url(path, bucket)

    def get(self, path: str, bucket: str | None = None) -> bytes:
        bucket = bucket or self._default_bucket
        try:
            response = self._client.get_object(Bucket=bucket, Key=path)
            body: bytes = response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise StorageReadError(f"Download failed for {bucket}/{path}: {exc}") from exc
        return body

    def public_url(self, path: str, bucket: str | None = None) -> str:
        """Build the public URL of an object without touching the network."""
        bucket = bucket or self._default_bucket
        return f"{self._public_base_url}/{bucket}/{quote(path)}"
