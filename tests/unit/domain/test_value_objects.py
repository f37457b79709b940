"""
Unit tests for sharing value objects and entities.
"""

from datetime import datetime, timezone

import pytest

from linkdrop.domain.errors import InvalidSlugError
from linkdrop.domain.sharing.entities import DownloadRecord, ShareLink, SharedFile
from linkdrop.domain.sharing.value_objects import (
    SLUG_ALPHABET,
    AccessContext,
    AccessDecision,
    DeliveryMethod,
    DenyReason,
    Slug,
    format_datetime,
    parse_datetime,
)

from tests.fixtures.domain_fixtures import build_file, build_link


class TestSlug:
    @pytest.mark.parametrize("value", ["abc", "team-link", "A_b-C9", "x" * 64])
    def test_valid_slugs(self, value):
        assert Slug(value).value == value

    @pytest.mark.parametrize("value", ["", "ab", "has space", "slash/slug", "x" * 65, "ümlaut"])
    def test_invalid_slugs(self, value):
        with pytest.raises(InvalidSlugError):
            Slug(value)

    def test_generated_slug_uses_url_safe_alphabet(self):
        slug = Slug.generate()

        assert len(slug.value) == 10
        assert all(c in SLUG_ALPHABET for c in slug.value)

    def test_generated_slug_never_shorter_than_ten(self):
        assert len(Slug.generate(4).value) == 10

    def test_str_returns_value(self):
        assert str(Slug("team-link")) == "team-link"


class TestAccessDecision:
    def test_allow_has_no_reason(self):
        decision = AccessDecision.allow()

        assert decision.allowed
        assert not decision.denied
        assert decision.reason is None

    def test_deny_carries_reason_and_scope(self):
        decision = AccessDecision.deny(DenyReason.EXPIRED, scope="link")

        assert decision.denied
        assert decision.reason is DenyReason.EXPIRED
        assert decision.scope == "link"


class TestAccessContext:
    def test_naive_now_is_treated_as_utc(self):
        context = AccessContext(now=datetime(2026, 1, 1, 12, 0))

        assert context.now.tzinfo is timezone.utc

    def test_plans_are_frozen(self):
        context = AccessContext(caller_plans=["pro"])

        assert context.caller_plans == frozenset({"pro"})

    def test_plans_default_to_none(self):
        assert AccessContext().caller_plans is None


class TestDatetimeHelpers:
    def test_parse_accepts_trailing_z(self):
        parsed = parse_datetime("2026-03-01T10:00:00Z")

        assert parsed == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_parse_empty_is_none(self):
        assert parse_datetime("") is None
        assert parse_datetime(None) is None

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_datetime("next tuesday")

    def test_format_none_is_none(self):
        assert format_datetime(None) is None


class TestSharedFile:
    def test_password_is_stored_hashed(self):
        shared_file = build_file(password="Secret1")

        assert shared_file.password_hash
        assert "Secret1" not in shared_file.password_hash
        assert shared_file.has_password
        assert shared_file.check_password("Secret1")
        assert not shared_file.check_password("secret1")

    def test_public_dict_hides_storage_key_and_hash(self):
        data = build_file(password="Secret1").to_public_dict()

        assert "storage_key" not in data
        assert "password_hash" not in data
        assert data["has_password"] is True

    def test_persistence_round_trip_keeps_counters(self):
        shared_file = build_file(max_downloads=4, download_count=2, expires_at=None)

        restored = SharedFile.from_dict(shared_file.to_dict())

        assert restored == shared_file

    def test_remaining_downloads(self):
        assert build_file().remaining_downloads() is None
        assert build_file(max_downloads=3, download_count=1).remaining_downloads() == 2

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            SharedFile.create(
                tenant_id="t", created_by="u", name="a", original_name="a.txt",
                file_size=-1, mime_type="text/plain", storage_key="t/a.txt",
            )

    def test_name_defaults_to_original_name(self):
        shared_file = SharedFile.create(
            tenant_id="t", created_by="u", name="", original_name="a.txt",
            file_size=1, mime_type="text/plain", storage_key="t/a.txt",
        )

        assert shared_file.name == "a.txt"


class TestShareLink:
    def test_build_url(self):
        link = build_link("file-1", slug="team-link")

        assert link.build_url("https://share.example.com/") == (
            "https://share.example.com/download/team-link"
        )

    def test_public_dict_includes_url_when_base_given(self):
        link = build_link("file-1")

        assert "url" not in link.to_public_dict()
        assert link.to_public_dict("https://x.test")["url"] == "https://x.test/download/team-link"

    def test_persistence_round_trip(self):
        link = build_link("file-1", max_uses=3, use_count=1)

        assert ShareLink.from_dict(link.to_dict()) == link


class TestDownloadRecord:
    def test_round_trip(self):
        record = DownloadRecord.create(
            "file-1", DeliveryMethod.SHARE_LINK, slug="team-link", country="PT"
        )

        restored = DownloadRecord.from_dict(record.to_dict())

        assert restored == record
        assert restored.method is DeliveryMethod.SHARE_LINK
