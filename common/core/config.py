from decimal import Decimal
from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, CacheProvider


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "LinkMeter API"
    api_version: str = "v1"
    debug: bool = False
    public_base_url: str = "http://localhost:8000"  # Prefix for short URLs

    # Database Components
    db_user: str = "linkmeter"
    db_password: str = "linkmeter"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "linkmeter"
    db_use_nullpool: bool = False
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Object storage (S3 API - Cloudflare R2 in production, LocalStack locally)
    aws_access_key_id: str = "test"
    aws_secret_access_key: str = "test"
    aws_region: str = "auto"
    s3_bucket_name: str = "linkmeter-files"
    s3_endpoint_url: Optional[str] = None
    signed_url_ttl_seconds: int = 3600

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @property
    def redis_connection_url(self) -> str:
        """Construct Redis URL from components."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    cache_provider: CacheProvider = CacheProvider.REDIS

    # Rate limiting (slowapi, Redis storage)
    rate_limit_default: List[str] = ["10/second", "300/minute"]
    rate_limit_create: str = "30/minute"  # shorten and upload

    # OpenTelemetry
    otel_service_name: str = "linkmeter-api"
    otel_service_version: str = "0.1.0"

    # Axiom (exporters are only attached when a token is present)
    axiom_token: Optional[str] = None
    axiom_dataset: Optional[str] = None

    # Short codes
    code_length: int = 6
    code_max_attempts: int = 8
    code_attempts_per_length: int = 3  # Widen the code after this many collisions

    # Quotas
    free_plan_name: str = "free"
    enterprise_plan_name: str = "enterprise"
    anonymous_url_limit: int = 2  # Used when the free plan has no limit set
    max_upload_bytes: int = 50 * 1024 * 1024

    # Enterprise billing
    registration_fee: Decimal = Decimal("10.00")
    billing_currency: str = "USD"

    @property
    def cors_allowed_origins(self) -> List[str]:
        """Auto-select CORS origins based on environment."""
        if self.environment == Environment.LOCAL:
            return [
                "http://localhost:3000",
                "http://localhost:5173",
            ]
        return [self.public_base_url]


settings = Settings()
