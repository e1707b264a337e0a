from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # API
    api_port: int = 8000

    # Security
    secret_key: str  # signs access tokens
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Signup
    allowed_email_domain: str = "mail.mcgill.ca"

    # One-time codes
    otp_backend: str = "memory"  # memory | redis
    otp_ttl_minutes: int = 10
    otp_max_attempts: int = 5
    otp_sweep_interval_seconds: int = 300

    # Mail (delivery is disabled while mail_server is empty)
    mail_server: str = ""
    mail_port: int = 587
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = "no-reply@campusconnect.app"
    mail_from_name: str = "Campus Connect"
    mail_starttls: bool = True
    mail_ssl_tls: bool = False

    # Discovery
    discover_default_limit: int = 10
    discover_max_limit: int = 50

    # Environment
    environment: str = "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mail_server)


settings = Settings()
