import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Local store (Redis)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    local_store_namespace: str = os.getenv("LOCAL_STORE_NAMESPACE", "gymtrack")

    # Remote document store
    remote_base_url: str = os.getenv("REMOTE_BASE_URL", "http://localhost:8080/v1")
    remote_api_key: str | None = os.getenv("REMOTE_API_KEY")
    remote_timeout: float = float(os.getenv("REMOTE_TIMEOUT", "10.0"))

    # Cache
    cache_ttl: float = float(os.getenv("CACHE_TTL", "1800"))  # 30 minutes default
    cache_sweep_interval: float = float(os.getenv("CACHE_SWEEP_INTERVAL", "60"))

    # Retry
    retry_max_attempts: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "0.2"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_ttl <= 0:
            raise ValueError("CACHE_TTL must be a positive number of seconds")

        if self.cache_sweep_interval <= 0:
            raise ValueError("CACHE_SWEEP_INTERVAL must be a positive number of seconds")

        if self.retry_max_attempts < 1:
            raise ValueError(
                f"RETRY_MAX_ATTEMPTS must be at least 1, got {self.retry_max_attempts}"
            )

        if self.retry_base_delay < 0:
            raise ValueError("RETRY_BASE_DELAY must not be negative")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create an asyncio Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )
