"""
Application Configuration

Environment-driven settings for the HTTP surface and the sharing engine.
"""

import os

from ..domain.sharing.validation import DEFAULT_MAX_UPLOAD_BYTES


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Base of caller-facing links: {public_base_url}/download/{slug}
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

        self.signed_url_ttl_seconds = int(os.getenv("SIGNED_URL_TTL_SECONDS", 3600))
        self.slug_length = int(os.getenv("SLUG_LENGTH", 10))
        self.slug_max_attempts = int(os.getenv("SLUG_MAX_ATTEMPTS", 5))

        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES))
        self.allowed_file_types = os.getenv("ALLOWED_FILE_TYPES", "*")
