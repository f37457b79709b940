"""
Signed URL Service

HMAC-signed, time-limited URLs for objects held in local storage.
Google Cloud Storage mints its own URLs; this service is the local stand-in.
"""

import hashlib
import hmac
import os
import secrets
import time
from typing import Optional
from urllib.parse import quote, urlencode

DEFAULT_BLOB_PATH = "/api/v1/blobs"


class SignedUrlService:
    """
    Service for generating and validating signed blob URLs.

    A URL carries the storage key, an absolute unix expiry and an
    HMAC-SHA256 over both, so neither can be altered without the secret.
    """

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        """
        Initialize SignedUrlService.

        Args:
            secret_key: Secret for HMAC signing (falls back to SECRET_KEY, then
                a random per-process key)
            base_url: Public base address; blob URLs are relative when unset
        """
        self.secret_key = secret_key or os.getenv("SECRET_KEY") or secrets.token_hex(32)
        self.base_url = (base_url or "").rstrip("/") + DEFAULT_BLOB_PATH

    def generate_signed_url(self, key: str, ttl_seconds: int = 3600, now: Optional[float] = None) -> str:
        """
        Generate a signed URL for one storage key.

        Args:
            key: Storage key
            ttl_seconds: Validity window in seconds
            now: Current unix time (defaults to time.time())

        Returns:
            '{base}/api/v1/blobs/{key}?expires=...&signature=...'
        """
        expires = int((now if now is not None else time.time()) + ttl_seconds)
        signature = self._generate_signature(key, expires)
        query = urlencode({"expires": expires, "signature": signature})
        return f"{self.base_url}/{quote(key)}?{query}"

    def _generate_signature(self, key: str, expires: int) -> str:
        message = f"{key}:{expires}"
        return hmac.new(
            self.secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def validate(
        self,
        key: str,
        expires: Optional[str],
        signature: Optional[str],
        now: Optional[float] = None,
    ) -> bool:
        """
        Validate a signed URL's parameters.

        Args:
            key: Storage key from the URL path
            expires: 'expires' query value
            signature: 'signature' query value
            now: Current unix time (defaults to time.time())

        Returns:
            True if the signature matches and the URL has not expired
        """
        if not expires or not signature:
            return False
        try:
            expires_at = int(expires)
        except ValueError:
            return False

        expected = self._generate_signature(key, expires_at)
        # Constant-time comparison on bytes; str arguments must be ASCII
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            return False

        current = now if now is not None else time.time()
        return current < expires_at
