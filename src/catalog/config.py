from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CATALOG_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "product-catalog"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = Field(default=5000, validation_alias="PORT")

    # PostgreSQL
    postgres_host: str = Field(default="localhost", validation_alias="POSTGRES_HOST")
    postgres_user: str = Field(default="postgres", validation_alias="POSTGRES_USER")
    postgres_password: str = Field(default="postgres", validation_alias="POSTGRES_PASSWORD")
    postgres_db: str = Field(default="product_db", validation_alias="POSTGRES_DB")
    postgres_port: int = Field(default=5432, validation_alias="POSTGRES_PORT")

    # Database connection pool
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    db_pool_timeout: int = Field(default=30, validation_alias="DB_POOL_TIMEOUT")
    db_pool_recycle: int = Field(default=1800, validation_alias="DB_POOL_RECYCLE")

    # Redis
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")

    # Cache policy
    cache_ttl: int = Field(default=3600, gt=0, validation_alias="CACHE_TTL")
    # Upper bound for a single Redis command; slower replies count as cache failures
    cache_timeout: float = Field(default=1.0, gt=0, validation_alias="CACHE_TIMEOUT")

    # Upper bound for a single store call within a product operation
    request_timeout: float = Field(default=10.0, gt=0, validation_alias="REQUEST_TIMEOUT")

    # Startup connectivity retry
    startup_retry_attempts: int = Field(default=3, ge=1, validation_alias="STARTUP_RETRY_ATTEMPTS")
    startup_retry_delay: float = Field(default=1.0, ge=0, validation_alias="STARTUP_RETRY_DELAY")
    startup_retry_delay_max: float = Field(
        default=10.0, ge=0, validation_alias="STARTUP_RETRY_DELAY_MAX"
    )

    seed_sample_data: bool = Field(default=True, validation_alias="SEED_SAMPLE_DATA")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL for the asyncpg driver."""
        return URL.create(
            "postgresql+asyncpg",
            username=self.postgres_user,
            password=self.postgres_password,
            host=self.postgres_host,
            port=self.postgres_port,
            database=self.postgres_db,
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"


settings = Settings()
