"""
Unit tests for SignedUrlService.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from linkdrop.infrastructure.signed_url_service import SignedUrlService

NOW = 1_800_000_000.0


@pytest.fixture
def signer():
    return SignedUrlService(secret_key="test-secret", base_url="https://share.example.com/")


def _params(url):
    query = parse_qs(urlparse(url).query)
    return query["expires"][0], query["signature"][0]


class TestSignedUrlService:
    def test_url_shape(self, signer):
        url = signer.generate_signed_url("tenant-a/abc.pdf", ttl_seconds=60, now=NOW)

        parsed = urlparse(url)
        assert parsed.netloc == "share.example.com"
        assert parsed.path == "/api/v1/blobs/tenant-a/abc.pdf"
        expires, _ = _params(url)
        assert int(expires) == int(NOW) + 60

    def test_valid_signature(self, signer):
        expires, signature = _params(signer.generate_signed_url("k.pdf", 60, now=NOW))

        assert signer.validate("k.pdf", expires, signature, now=NOW + 59)

    def test_expired_signature(self, signer):
        expires, signature = _params(signer.generate_signed_url("k.pdf", 60, now=NOW))

        assert not signer.validate("k.pdf", expires, signature, now=NOW + 60)

    def test_tampered_key_rejected(self, signer):
        expires, signature = _params(signer.generate_signed_url("k.pdf", 60, now=NOW))

        assert not signer.validate("other.pdf", expires, signature, now=NOW)

    def test_tampered_expiry_rejected(self, signer):
        expires, signature = _params(signer.generate_signed_url("k.pdf", 60, now=NOW))

        assert not signer.validate("k.pdf", str(int(expires) + 3600), signature, now=NOW)

    def test_other_secret_rejected(self, signer):
        expires, signature = _params(signer.generate_signed_url("k.pdf", 60, now=NOW))
        other = SignedUrlService(secret_key="another-secret")

        assert not other.validate("k.pdf", expires, signature, now=NOW)

    @pytest.mark.parametrize(
        "expires,signature",
        [(None, "abc"), ("123", None), ("soon", "abc"), ("1800000060", "s\u00efgn\u00e4ture")],
    )
    def test_malformed_parameters_rejected(self, signer, expires, signature):
        assert not signer.validate("k.pdf", expires, signature, now=NOW)

    def test_relative_urls_without_base(self):
        url = SignedUrlService(secret_key="s").generate_signed_url("k.pdf", 60, now=NOW)

        assert url.startswith("/api/v1/blobs/k.pdf?")
