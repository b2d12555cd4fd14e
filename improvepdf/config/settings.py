from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a required setting is missing or inconsistent."""


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    http_host: str = "0.0.0.0"  # noqa: S104
    http_port: int = 8000

    store_backend: str = "blob"
    blob_read_write_token: str = ""
    blob_read_only_token: str = ""
    blob_api_url: str = "https://blob.vercel-storage.com"
    blob_public_host: str = ""
    store_read_attempts: int = 8
    store_write_attempts: int = 5
    store_backoff_base_seconds: float = 0.1
    store_timeout_seconds: int = 30

    job_load_attempts: int = 3
    job_load_backoff_seconds: float = 0.05
    job_index_strategy: str = "listing"
    index_append_attempts: int = 6
    retention_days: int = 7

    public_base_url: str = "http://localhost:8000"
    trigger_mode: str = "http"
    trigger_timeout_seconds: int = 10

    pdf_engine: str = "pdfplumber"

    rewrite_provider: str = "openai"
    rewrite_openai_api_key: str = ""
    rewrite_openai_base_url: str = ""
    rewrite_openai_model_name: str = "gpt-4o-mini"
    rewrite_openai_timeout_seconds: int = 60
    rewrite_openai_temperature: float = 0.2
    rewrite_min_ratio: float = 0.9
    rewrite_max_ratio: float = 1.15
    rewrite_max_retries: int = 2
    rewrite_style: str = "neutral"
    rewrite_max_input_chars: int = 12000

    unsplash_access_key: str = ""
    pexels_api_key: str = ""
    images_per_job: int = 3
    images_timeout_seconds: int = 15

    poll_interval_seconds: float = 2.0
    stuck_threshold_seconds: float = 10.0

    @property
    def blob_read_token(self) -> str:
        """Token used for reads: the write token when present, else read-only."""
        return self.blob_read_write_token or self.blob_read_only_token
