"""
Configuration management for Resep Nusantara.

This module centralizes environment variable loading from the .env file at project root.
It should be imported early by the Streamlit entry point (streamlit_app/app.py) so that
.env is loaded before any other code reads environment variables.

In deployments without a .env file, load_dotenv() is a no-op and platform
environment variables are used instead.

Environment Variables:
- RESEP_API_BASE_URL: Optional, base URL of the recipe API (defaults to http://localhost:8000)
- RESEP_API_TIMEOUT: Optional, request timeout in seconds (defaults to 10)
- RESEP_PAGE_SIZE: Optional, catalog page size used when draining the catalog (defaults to 50)
- RESEP_MAX_WORKERS: Optional, cap on concurrent per-recipe fetches (defaults to 8)
- RESEP_REVIEWS_CACHE_TTL: Optional, seconds reconciled reviews stay cached (defaults to 60)
- RESEP_DATABASE_URL: Optional, SQLAlchemy URL for persistent local state (in-memory if unset)
- RESEP_APP_URL: Optional, public URL of this app, used for share links (defaults to http://localhost:8501)
- RESEP_LOG_LEVEL: Optional, logging level name (defaults to INFO)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_API_TIMEOUT = 10.0
DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_WORKERS = 8
DEFAULT_REVIEWS_CACHE_TTL = 60.0
DEFAULT_APP_URL = "http://localhost:8501"


def load_env_file() -> None:
    """
    Load environment variables from the .env file at project root.

    The project root is found by going up from this file's location
    (resep/config.py -> resep/ -> project root). Existing environment
    variables take precedence over values in .env.

    Safe to call multiple times.
    """
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env", override=False)


load_env_file()


def _read_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid value for %s=%r, using default %r", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive value for %s=%r, using default %r", name, raw, default)
        return default
    return value


class ApiConfig:
    """Configuration for the remote recipe API."""

    @staticmethod
    def get_base_url() -> str:
        """
        Get the recipe API base URL.

        Returns:
            Base URL with trailing slash removed (default: http://localhost:8000)
        """
        url = os.getenv("RESEP_API_BASE_URL") or DEFAULT_API_BASE_URL
        return url.rstrip("/")

    @staticmethod
    def get_timeout() -> float:
        """Request timeout in seconds."""
        return _read_number("RESEP_API_TIMEOUT", DEFAULT_API_TIMEOUT, float)


class AppConfig:
    """Configuration of the Streamlit app itself."""

    @staticmethod
    def get_public_url() -> str:
        """
        Get the URL under which users reach the app.

        Returns:
            Public URL with trailing slash removed (default: http://localhost:8501)
        """
        url = os.getenv("RESEP_APP_URL") or DEFAULT_APP_URL
        return url.rstrip("/")


class CatalogConfig:
    """Tunables for catalog draining and per-recipe fan-out."""

    @staticmethod
    def get_page_size() -> int:
        return _read_number("RESEP_PAGE_SIZE", DEFAULT_PAGE_SIZE, int)

    @staticmethod
    def get_max_workers() -> int:
        return _read_number("RESEP_MAX_WORKERS", DEFAULT_MAX_WORKERS, int)

    @staticmethod
    def get_reviews_cache_ttl() -> float:
        return _read_number("RESEP_REVIEWS_CACHE_TTL", DEFAULT_REVIEWS_CACHE_TTL, float)


class StorageConfig:
    """Configuration for persisted local state (favorites, profile)."""

    @staticmethod
    def get_database_url() -> Optional[str]:
        """
        Get the SQLAlchemy database URL for local state.

        Returns:
            Database URL string, or None to use in-memory storage
        """
        return os.getenv("RESEP_DATABASE_URL") or None


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the application.

    Args:
        level: Logging level name. Defaults to RESEP_LOG_LEVEL or INFO.
    """
    level_name = (level or os.getenv("RESEP_LOG_LEVEL") or "INFO").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
