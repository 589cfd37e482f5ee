from pydantic_settings import BaseSettings, SettingsConfigDict

import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./command_center.db"
    secondary_database_url: str | None = None
    db_connect_retries: int = 3
    uploads_dir: str = "uploads"

    # Used to build public URLs for the local media provider
    public_base_url: str = os.getenv("BASE_URL", "http://localhost:8000")

    # Identity provider (Supabase Auth) signs access tokens with this secret
    secret_key: str = os.getenv("JWT_SECRET", "change-me-in-production-for-jwt")
    jwt_audience: str = "authenticated"

    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = "gpt-4o-mini"

    media_max_upload_mb: int = 10
    media_local_enabled: bool = True

    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    supabase_bucket: str = "media"

    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str | None = None

    imgix_domain: str | None = None
    imgix_api_key: str | None = None
    imgix_secure_url_token: str | None = None
    imgix_source_bucket: str | None = None

    # S3 credentials for the bucket Imgix reads from
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_region: str | None = None

    axiom_token: str | None = None
    axiom_dataset: str | None = None
    axiom_url: str = "https://api.axiom.co"
    axiom_org_id: str | None = None

settings = Settings()
