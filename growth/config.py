"""
Configuration module for the Poultry Growth Advisor.

Uses Pydantic Settings to manage environment variables and configuration.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./data/growth.db",
        description="SQLAlchemy connection string for the growth store"
    )
    
    # Growth Thresholds
    ready_threshold_pct: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Progress percentage required to advance a stage"
    )
    recommendation_progress_pct: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
        description="Progress percentage at which evaluations emit recommendations"
    )
    efficient_yield_pct: float = Field(
        default=85.0,
        ge=0.0,
        le=100.0,
        description="Minimum yield percentage for an efficient processing run"
    )
    
    # Display
    currency: str = Field(
        default="COP",
        description="Currency code used when formatting amounts"
    )
    
    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_file: Optional[Path] = Field(
        default=Path("./logs/growth.log"),
        description="Log file path"
    )
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
_settings: Optional[Settings] = None


def _sqlite_parent(database_url: str) -> Optional[Path]:
    """Return the directory holding a file-backed SQLite database, if any."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database).parent


def get_settings() -> Settings:
    """
    Get application settings singleton.
    
    Returns:
        Settings: Application configuration object
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        
        # Ensure the SQLite data directory exists
        data_dir = _sqlite_parent(_settings.database_url)
        if data_dir is not None:
            data_dir.mkdir(parents=True, exist_ok=True)
        
        # Ensure log directory exists
        if _settings.log_file:
            _settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    
    return _settings


def reload_settings() -> Settings:
    """
    Force reload of settings (useful for testing).
    
    Returns:
        Settings: Fresh application configuration object
    """
    global _settings
    _settings = None
    return get_settings()
