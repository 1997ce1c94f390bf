
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("inventory-vision", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Primary vision model (Gemini)
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = Field("gemini-1.5-flash", alias="GEMINI_MODEL")

    # Secondary vision model (any OpenAI-compatible chat completions endpoint)
    llm_base_url: str | None = Field(default=None, alias="LLM_BASE_URL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_deployment: str = Field("gpt-4o", alias="LLM_DEPLOYMENT")
    llm_timeout_seconds: float = Field(30.0, alias="LLM_TIMEOUT_SECONDS")

    # Object store (S3 API: AWS, Supabase Storage, R2, MinIO)
    s3_bucket: str | None = Field(default=None, alias="S3_BUCKET")
    s3_endpoint_url: str | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_access_key_id: str | None = Field(default=None, alias="S3_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, alias="S3_SECRET_ACCESS_KEY")
    s3_prefix: str = Field("uploads", alias="S3_PREFIX")

    # Overrides the host part of returned image links (e.g. a CDN or a LAN address for devices)
    public_base_url: str | None = Field(default=None, alias="PUBLIC_BASE_URL")

    # CORS allowed origins (comma-separated list)
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    # Per-image upload limit in bytes
    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

settings = Settings()
