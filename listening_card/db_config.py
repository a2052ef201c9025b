"""Database configuration and credentials management for the cache table"""
from dataclasses import dataclass
from typing import Optional

from listening_card.config import Settings, settings as default_settings

@dataclass
class DatabaseCredentials:
    """Database credentials container with validation"""
    host: str
    port: str
    name: str
    user: str
    password: str
    ssl_mode: str = 'disable'
    connect_timeout: int = 5

    def to_connection_string(self) -> str:
        """Generate database connection string with proper escaping"""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/"
            f"{self.name}?sslmode={self.ssl_mode}&connect_timeout={self.connect_timeout}"
        )

    @classmethod
    def from_settings(cls, config: Settings) -> 'DatabaseCredentials':
        """Create credentials from the DB_* settings"""
        if not config.DB_PASSWORD:
            raise ValueError("DB_PASSWORD setting is required when DATABASE_URL is not set")
        return cls(
            host=config.DB_HOST,
            port=config.DB_PORT,
            name=config.DB_NAME,
            user=config.DB_USER,
            password=config.DB_PASSWORD,
            ssl_mode=config.DB_SSL_MODE,
            connect_timeout=config.DATABASE_CONNECT_TIMEOUT_SECONDS
        )

class DatabaseManager:
    """Resolves the connection string for the cache database"""

    @classmethod
    def initialize_from_env(cls, config: Optional[Settings] = None) -> str:
        """
        Resolve the database connection string from settings.

        DATABASE_URL wins when present; otherwise a PostgreSQL URL is built
        from the DB_* settings.

        Raises:
            ValueError: If neither DATABASE_URL nor DB_PASSWORD is set
        """
        config = config or default_settings
        if config.DATABASE_URL:
            return config.DATABASE_URL
        return DatabaseCredentials.from_settings(config).to_connection_string()
