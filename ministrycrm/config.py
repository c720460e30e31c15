"""
Ministry CRM Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from urllib.parse import urlparse
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _service_url(var: str, default: str) -> str:
    """Read a backend base URL, refusing anything that is not http(s)."""
    url = os.getenv(var, default).rstrip('/')
    if urlparse(url).scheme not in ('http', 'https'):
        _logger.critical(f"{var}={url!r} is not an http(s) URL, cannot start.")
        raise ValueError(f"{var} must be an http:// or https:// URL, got {url!r}")
    return url


class Config:
    """Application configuration."""

    # Backend services: core (auth/contacts/statuses), studies, rooms/reservations
    CORE_API_URL = _service_url('CORE_API_URL', 'http://localhost:8080')
    STUDY_API_URL = _service_url('STUDY_API_URL', 'http://localhost:8082')
    RESERVATION_API_URL = _service_url('RESERVATION_API_URL', 'http://localhost:8083')

    REQUEST_TIMEOUT_SECONDS = float(os.getenv('REQUEST_TIMEOUT_SECONDS', '10'))

    # Durable key-value store holding the bearer token and user snapshot
    STORAGE_PATH = Path(os.getenv(
        'STORAGE_PATH', str(Path.home() / '.ministrycrm' / 'storage.json')
    )).expanduser()

    CONTACTS_PAGE_SIZE = int(os.getenv('CONTACTS_PAGE_SIZE', '20'))

    # Threads used for the parallel fetches of one page load
    FETCH_WORKERS = int(os.getenv('FETCH_WORKERS', '4'))

    # Reservation times are entered in this timezone and sent as UTC
    TIMEZONE = os.getenv('TIMEZONE', 'UTC')


# Singleton instance
config = Config()
