from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "submissions"
    db_username: str = "submissions"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout: float = 30.0

    aggregation_backend: str = "postgres"

    storage_disk: str = "local"
    files_root: str = "/app/files"

    s3_bucket: str = ""
    s3_endpoint_url: str = ""
    s3_region: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""

    pdf_engine: str = "pdfplumber"

    max_upload_size_bytes: int = 50 * 1024 * 1024
