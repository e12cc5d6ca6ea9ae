"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional

from .money import rounding_mode


class ToybankConfig(BaseSettings):
    """ToyBank demo configuration"""
    
    # Database configuration
    database_url: str = "sqlite:///toybank.db"  # Default SQLite
    shutdown_on_close: bool = True  # Send the backend's shutdown signal after close
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Money configuration
    amount_precision: int = 2
    amount_rounding: str = "ROUND_HALF_EVEN"
    
    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value
    
    @field_validator("amount_rounding")
    @classmethod
    def _check_rounding(cls, value: str) -> str:
        return rounding_mode(value)
    
    @field_validator("amount_precision")
    @classmethod
    def _check_precision(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError("amount_precision must be between 0 and 6")
        return value
    
    class Config:
        env_prefix = "TOYBANK_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global configuration instance
config = ToybankConfig()


def get_config() -> ToybankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> ToybankConfig:
    """Reload configuration from environment"""
    global config
    config = ToybankConfig()
    return config
