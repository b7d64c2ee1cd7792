
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Evidence Approval API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"
    max_upload_size_mb: int = 25

    # Database (Postgres in production, SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./approvals_dev.db",
        alias="DATABASE_URL",
    )

    # Object storage: "local" | "s3"
    storage_backend: str = Field(default="local", alias="STORAGE_BACKEND")
    storage_local_root: str = Field(default="./storage", alias="STORAGE_LOCAL_ROOT")
    s3_endpoint: str | None = Field(default=None, alias="S3_ENDPOINT")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_bucket: str = Field(default="evidence", alias="S3_BUCKET")
    s3_access_key_id: str | None = Field(default=None, alias="S3_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, alias="S3_SECRET_ACCESS_KEY")

    # Job queue (Celery)
    celery_broker_url: str = Field(default="redis://localhost:6379/1", alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2", alias="CELERY_RESULT_BACKEND",
    )
    celery_queue_name: str = Field(default="evidence", alias="CELERY_QUEUE_NAME")

    # Evidence policy
    evidence_view_url_ttl_seconds: int = Field(
        default=300, alias="EVIDENCE_VIEW_URL_TTL_SECONDS",
    )
    approval_requires_ready_evidence: bool = Field(
        default=False, alias="APPROVAL_REQUIRES_READY_EVIDENCE",
    )  # When true, evidence still converting does not satisfy the approval guard

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

settings = Settings()
