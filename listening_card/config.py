"""Application configuration and environment settings"""
from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class RedisSettings(BaseModel):
    """Redis specific settings"""
    url: str = Field(..., description="Redis connection URL")
    socket_timeout: float = Field(..., description="Socket timeout in seconds")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Upstream API
    SPOTIFY_TOKEN: Optional[str] = Field(None, description="Spotify API access token used by the CLI")
    SPOTIFY_API_URL: str = Field("https://api.spotify.com/v1", description="Base URL of the Spotify Web API")
    REQUEST_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout for a single upstream request")
    # Filtered recently-played/top-tracks requests always ask upstream for this many items
    OVERFETCH_LIMIT: int = Field(20, description="Items requested upstream when explicit tracks are hidden")

    # Cache
    CACHE_BACKEND: Literal["redis", "database", "none"] = Field("redis", description="Cache store backend")
    CACHE_KEY_PREFIX: str = Field("listening-card", description="Prefix for every cache key")
    PROFILE_CACHE_TTL_SECONDS: Optional[int] = Field(None, gt=0, description="Profile TTL, None keeps entries until evicted")
    TOP_ITEMS_CACHE_TTL_SECONDS: int = Field(3600, gt=0, description="TTL for top tracks and top artists")
    CACHE_WRITE_WORKERS: int = Field(2, description="Threads used for background cache writes")

    # Redis backend
    REDIS_URL: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    REDIS_SOCKET_TIMEOUT_SECONDS: float = Field(2.0, description="Redis connect/read timeout")

    # Database backend
    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy URL, overrides the DB_* settings")
    DB_HOST: str = Field("localhost", description="Database host")
    DB_PORT: str = Field("5432", description="Database port")
    DB_NAME: str = Field("listening_card", description="Database name")
    DB_USER: str = Field("listening_card", description="Database user")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password")
    DB_SSL_MODE: str = Field("disable", description="PostgreSQL sslmode")
    DATABASE_CONNECT_TIMEOUT_SECONDS: int = Field(5, description="Database connect timeout")

    # Card options used by the CLI
    HIDE_EXPLICIT: bool = Field(False, description="Hide explicit tracks on the card")
    ITEM_LIMIT: int = Field(5, description="Items per card section")
    SHOW_NOW_PLAYING: bool = Field(True, description="Render the now playing section")
    SHOW_RECENTLY_PLAYED: bool = Field(False, description="Render the recently played section")
    SHOW_TOP_TRACKS: bool = Field(True, description="Render the top tracks section")
    SHOW_TOP_ARTISTS: bool = Field(False, description="Render the top artists section")
    CUSTOM_TITLE: Optional[str] = Field(None, description="Title shown instead of the default one")

    OUTPUT_DIR: str = Field("/output", description="Directory for output files")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the CLI")

    @property
    def redis_settings(self) -> RedisSettings:
        """Get Redis settings as a separate model"""
        return RedisSettings(
            url=self.REDIS_URL,
            socket_timeout=self.REDIS_SOCKET_TIMEOUT_SECONDS
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

# Upstream accepts 1..50 items per page
MAX_UPSTREAM_LIMIT = 50
