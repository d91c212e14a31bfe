"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Service credentials are optional here; the dependency that needs one raises
      ConfigurationError at call time (require())

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Missing storage/OCR/signing config must not stop the process: staff can still
      browse clients and cars while one integration is unconfigured
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fleetdesk.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://fleet:fleet@db:5432/fleet"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 10
    database_max_overflow: int = 5

    # API
    cors_origins: list[str] = ["http://localhost:3000"]
    app_base_url: str | None = None

    # Upload credentials
    upload_token_secret: str | None = None
    upload_token_ttl_seconds: int = 300
    upload_credential_ttl_seconds: int = 240

    # Object storage (S3-compatible)
    storage_endpoint_url: str | None = None
    storage_access_key: str | None = None
    storage_secret_key: str | None = None
    storage_region: str = "us-east-1"
    storage_public_base_url: str | None = None
    client_documents_bucket: str = "client-documents"
    car_documents_bucket: str = "car-documents"

    # Document AI
    gcp_project_id: str | None = None
    gcp_location: str = "us"
    google_access_token: str | None = None
    processor_id_cin_front: str | None = None
    processor_id_cin_back: str | None = None
    processor_id_driver_front: str | None = None
    processor_id_driver_back: str | None = None
    document_ai_timeout_seconds: float = 60.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def document_ai_configured(self) -> bool:
        return bool(self.gcp_project_id and self.google_access_token)

    @property
    def storage_configured(self) -> bool:
        return bool(
            self.storage_endpoint_url and self.storage_access_key and self.storage_secret_key
        )

    def require(self, *names: str) -> None:
        """Raise ConfigurationError listing every unset setting in `names`."""
        missing = [name.upper() for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(missing)

    def processor_for(self, document_type: str, side: str) -> str | None:
        """Processor id for (document_type, side); CIN front is the fallback."""
        by_kind = {
            ("cin", "front"): self.processor_id_cin_front,
            ("cin", "back"): self.processor_id_cin_back,
            ("driver_license", "front"): self.processor_id_driver_front,
            ("driver_license", "back"): self.processor_id_driver_back,
        }
        return by_kind.get((document_type, side)) or self.processor_id_cin_front


@lru_cache
def get_settings() -> Settings:
    return Settings()
