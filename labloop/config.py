from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Application
    APP_NAME: str = "LabLoop"
    ENVIRONMENT: str = "development"  # development, staging, production, test
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "./logs"

    # Admin Panel
    ADMIN_ALLOWED_IPS: str = "127.0.0.1,::1"  # IPv4 and IPv6 localhost, supports CIDR

    # Server
    # Default to 0.0.0.0 for development, use env var HOST in production
    HOST: str = "0.0.0.0"  # nosec: B104
    PORT: int = 8000

    # ID Allocation
    ID_ALLOCATION_MAX_RETRIES: int = 3  # Total attempts on transient store errors
    ID_ALLOCATION_BACKOFF_SECONDS: float = 0.1  # Doubled after each failed attempt
    ALLOW_COUNTER_RESET: bool = False  # Only consulted in production

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def counter_reset_enabled(self) -> bool:
        return not self.is_production or self.ALLOW_COUNTER_RESET

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()  # type: ignore
