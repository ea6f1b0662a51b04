from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "RBAC Console"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False

    # Security
    secret_key: str = ""  # Loaded from environment, validated in model_validator
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # RBAC
    super_admin_role_name: str = "super_admin"
    audit_module_name: str = "user_management"

    # Cache
    cache_backend: str = "memory"  # Options: "memory", "redis"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None

    # Process-local backend bounds
    memory_cache_max_size: int = 10_000
    memory_cache_cleanup_interval: int = 60  # seconds between expiry sweeps

    # Cache TTL (Time-To-Live) in seconds, one per invalidation tag
    cache_ttl_roles: int = 1800  # 30 minutes
    cache_ttl_user_roles: int = 300  # 5 minutes
    cache_ttl_all: int = 60  # 1 minute

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Validate required values and the cache backend"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Generate with: openssl rand -hex 32")

        if self.cache_backend not in ("memory", "redis"):
            raise ValueError(
                f"Invalid cache_backend '{self.cache_backend}'. "
                f"Must be one of: 'memory', 'redis'"
            )
        if self.memory_cache_max_size < 1:
            raise ValueError("MEMORY_CACHE_MAX_SIZE must be at least 1")
        return self

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
