"""Configuration management for the VolleyManager session client."""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

from dotenv import load_dotenv


# Transports main.py knows how to build
SUPPORTED_TRANSPORTS = ("requests", "browser")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self, env_file: Optional[str] = None):
        """Initialize configuration.

        Args:
            env_file: Path to .env file (default: .env in project root)
        """
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to find .env in project root
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

    # VolleyManager credentials
    @property
    def username(self) -> str:
        """VolleyManager username."""
        value = os.getenv("VM_USERNAME", "")
        if not value:
            raise ValueError("VM_USERNAME not set in environment")
        return value

    @property
    def password(self) -> str:
        """VolleyManager password."""
        value = os.getenv("VM_PASSWORD", "")
        if not value:
            raise ValueError("VM_PASSWORD not set in environment")
        return value

    # Endpoints
    @property
    def base_url(self) -> str:
        """Backend base URL (or the CORS proxy in front of it)."""
        return os.getenv("BASE_URL", "https://volleymanager.volleyball.ch")

    @property
    def login_page_url(self) -> str:
        return self._endpoint("LOGIN_PATH", "/login")

    @property
    def auth_url(self) -> str:
        return self._endpoint("AUTH_PATH", "/sportmanager.security/authentication/authenticate")

    @property
    def logout_url(self) -> str:
        return self._endpoint("LOGOUT_PATH", "/logout")

    def _endpoint(self, env_name: str, default_path: str) -> str:
        path = os.getenv(env_name, default_path)
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    # Transport settings
    @property
    def transport(self) -> str:
        """Transport: 'requests' or 'browser'."""
        return os.getenv("TRANSPORT", "requests").lower()

    @property
    def headless_mode(self) -> bool:
        """Run browser in headless mode (default: True)."""
        value = os.getenv("HEADLESS_MODE", "true").lower()
        return value in ("true", "1", "yes")

    # Timeout settings
    @property
    def request_timeout_seconds(self) -> float:
        """Timeout for a single request."""
        return float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

    @property
    def login_timeout_seconds(self) -> float:
        """Overall deadline for one login attempt."""
        return float(os.getenv("LOGIN_TIMEOUT_SECONDS", "60"))

    @property
    def cookie_delay_seconds(self) -> float:
        """Wait before re-fetching the dashboard after a presumptive redirect."""
        return float(os.getenv("COOKIE_DELAY_SECONDS", "0.1"))

    # Application settings
    @property
    def log_level(self) -> str:
        """Logging level."""
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def log_dir(self) -> Optional[Path]:
        """Directory for component log files (optional)."""
        path_str = os.getenv("LOG_DIR")
        return Path(path_str) if path_str else None

    @property
    def session_file(self) -> Path:
        """Path of the JSON file the established session is written to."""
        path_str = os.getenv("SESSION_FILE", "./volleymanager_session.json")
        return Path(path_str)

    def validate(self) -> bool:
        """Validate that all required configuration is present.

        Returns:
            bool: True if configuration is valid

        Raises:
            ValueError: If required configuration is missing
        """
        # Check required fields
        _ = self.username
        _ = self.password

        if self.transport not in SUPPORTED_TRANSPORTS:
            raise ValueError(
                f"Invalid TRANSPORT: {self.transport}. Must be one of {', '.join(SUPPORTED_TRANSPORTS)}"
            )

        if self.login_timeout_seconds <= 0:
            raise ValueError("LOGIN_TIMEOUT_SECONDS must be positive")

        return True


# Global config instance
_config: Optional[Config] = None


def get_config(env_file: Optional[str] = None) -> Config:
    """Get global configuration instance.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Config: Global configuration instance
    """
    global _config
    if _config is None:
        _config = Config(env_file)
    return _config
