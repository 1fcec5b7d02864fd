from app.config.settings import Settings
from app.storage.base import BaseArtifactStore
from app.storage.s3_adapter import S3ArtifactStore


class ArtifactStoreFactory:
    """Creates the configured artifact store."""

    @classmethod
    def create(cls, settings: Settings) -> BaseArtifactStore:
        return S3ArtifactStore.from_credentials(
            endpoint_url=settings.storage_endpoint_url,
            access_key_id=settings.storage_access_key_id,
            secret_access_key=settings.storage_secret_access_key,
            region=settings.storage_region,
            default_bucket=settings.storage_bucket,
            public_base_url=settings.public_base_url,
        )
