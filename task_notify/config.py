"""Configuration management using pydantic-settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    db_server: str = "localhost"
    db_name: str = "warehouse"
    db_user: str = "warehouse"
    db_password: str = ""
    db_port: int = 5432
    db_pool_size: int = 10
    db_max_overflow: int = 20
    sql_echo: bool = False

    # Firebase settings (service account JSON as a single env value)
    firebase_service_account: Optional[str] = None
    firebase_project_id: Optional[str] = None

    # Push message hints
    push_android_channel: str = "tasks"
    push_click_target: str = "OPEN_TASK"

    # Recipient policy: include "Head" role in pickup broadcasts
    pickup_include_head: bool = True

    # Task store: number of dated archive partitions searched back from today
    archive_lookback_days: int = 60

    # MinIO settings (task media cleanup)
    minio_endpoint: str = ""
    minio_access_key: str = ""
    minio_secret_key: str = ""
    minio_secure: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def database_url(self) -> str:
        """Build PostgreSQL async connection string."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+asyncpg://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def sync_database_url(self) -> str:
        """Build PostgreSQL sync connection string for Alembic."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+psycopg2://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def push_configured(self) -> bool:
        """Whether Firebase credentials are present."""
        return bool(self.firebase_service_account and self.firebase_service_account.strip())

    @property
    def media_configured(self) -> bool:
        """Whether MinIO credentials are present."""
        return bool(self.minio_endpoint and self.minio_access_key and self.minio_secret_key)


# Global settings instance
settings = Settings()
