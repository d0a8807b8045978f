from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "admin-backoffice"

    JWT_SECRET: str = "change_me_admin"
    ACCESS_TOKEN_TTL_MINUTES: int = 60
    REFRESH_TOKEN_TTL_DAYS: int = 7

    CORS_ORIGINS: str = "http://localhost:4200"

    DATABASE_URL: str
    REDIS_URL: str

    PASSWORD_RESET_TTL_MINUTES: int = 60
    FORGOT_PASSWORD_RATE_LIMIT: int = 5
    FORGOT_PASSWORD_RATE_WINDOW_SECONDS: int = 900

    EMAIL_PROVIDER: str = "dummy"  # dummy | smtp | service
    EMAIL_SERVICE_URL: str = "http://email-service:8010"
    INTERNAL_SERVICE_TOKEN: str = "change_me_internal_service_token"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    RESET_EMAIL_SUBJECT: str = "Password reset"
    RESET_EMAIL_TEMPLATE: str = (
        "Hello {name},\n\nUse the link below to reset your password:\n{link}\n\n"
        "The link expires in {ttl_minutes} minutes."
    )

    S3_ENDPOINT: str = "http://localhost:9000"
    S3_ACCESS_KEY: str = "minioadmin"
    S3_SECRET_KEY: str = "minioadmin"
    S3_BUCKET: str = "backoffice"
    S3_REGION: str = "us-east-1"
    S3_USE_SSL: bool = False
    # Public base for stored objects; defaults to "{S3_ENDPOINT}/{S3_BUCKET}".
    S3_PUBLIC_BASE_URL: str = ""
    PROFILE_IMAGE_MAX_MB: int = 5

    ADMIN_BOOTSTRAP_ENABLED: bool = True
    ADMIN_BOOTSTRAP_EMAIL: str = "admin@example.com"
    ADMIN_BOOTSTRAP_PASSWORD: str = "Admin@123"
    ADMIN_BOOTSTRAP_NAME: str = "System Administrator"
    ADMIN_BOOTSTRAP_ROLE: str = "Administrator"

    # Compose/infra vars that may exist in shared .env
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "backoffice"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
