"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./agencyhub.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 24

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Frontend (invitation links, checkout return URLs)
    FRONTEND_URL: str = "http://localhost:5173"

    # Request collaboration policy
    INVITATION_EXPIRY_DAYS: int = 7
    MESSAGE_EDIT_WINDOW_MINUTES: int = 5
    DUE_SOON_DAYS: int = 3

    # File storage
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "/tmp/agencyhub-storage"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""  # S3-compatible providers
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    S3_BUCKET_PREFIX: str = "agencyhub"  # buckets: <prefix>-attachments, -logos, -avatars

    # Payment processor (hosted checkout + billing portal)
    PAYMENT_API_BASE: str = "https://api.stripe.com"
    PAYMENT_SECRET_KEY: str = ""
    PAYMENT_TIMEOUT_SECONDS: float = 10.0
    # JSON map of "<tier>:<interval>" -> price id, e.g. {"growth:monthly": "price_123"}
    PAYMENT_PRICE_IDS: dict[str, str] = {}

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"


settings = Settings()
