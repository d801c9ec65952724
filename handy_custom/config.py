"""
Configuration management using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

from .constants import DEFAULT_AJAX_PATH


class Settings(BaseSettings):
    """Application settings loaded from environment variables (HANDY_*)"""

    # WordPress site
    site_url: str = "http://localhost"
    ajax_url: Optional[str] = None  # Overrides the URL printed by wp_localize_script
    nonce: Optional[str] = None  # Overrides the nonce printed by wp_localize_script

    # Plugin debug switch (turns on DEBUG logging)
    debug: bool = False

    # Request behavior
    request_timeout: float = 30.0
    error_banner_seconds: float = 5.0
    page_retries: int = 3
    user_agent: str = "handy-custom-filters/1.0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # 'json' or 'text'

    model_config = ConfigDict(
        env_prefix="HANDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def default_ajax_url(self) -> str:
        """admin-ajax.php under the configured site"""
        return self.site_url.rstrip('/') + DEFAULT_AJAX_PATH


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from environment (useful for testing)"""
    global _settings
    _settings = None
    return get_settings()
