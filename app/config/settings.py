from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "plates"
    db_username: str = "plates"
    db_password: str = "secret"

    job_poll_interval_seconds: float = 1.5
    job_shared_secret: str = ""

    storage_endpoint_url: str
    storage_access_key_id: str
    storage_secret_access_key: str
    storage_region: str = "us-east-1"
    storage_bucket: str = "separations"
    storage_prefix: str = "separations"
    storage_public_base_url: str = ""

    ghostscript_binary: str = "gs"
    ghostscript_timeout_seconds: int = 600
    converter_binaries: list[str] = ["magick", "convert"]
    converter_timeout_seconds: int = 120

    default_dpi: int = 144
    min_dpi: int = 36
    max_dpi: int = 1200

    http_timeout_seconds: int = 60
    scratch_dir: str | None = None

    @property
    def public_base_url(self) -> str:
        """Base URL under which stored objects are publicly reachable."""
        base = self.storage_public_base_url or self.storage_endpoint_url
        return base.rstrip("/")


def load_settings() -> Settings:
    """Build Settings once at startup.

    Raises:
        ConfigurationError: if required configuration is missing or invalid.
    """
    try:
        return Settings()
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ConfigurationError(f"Invalid or missing configuration: {fields}") from exc
