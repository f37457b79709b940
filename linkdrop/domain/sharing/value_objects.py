"""
Sharing Value Objects

Immutable value objects for type safety and validation.
"""

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional

from ..errors import InvalidSlugError


SLUG_ALPHABET = string.ascii_letters + string.digits + "-_"
MIN_GENERATED_SLUG_LENGTH = 10
MIN_CUSTOM_SLUG_LENGTH = 3
MAX_SLUG_LENGTH = 64


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: ISO string (a trailing 'Z' is accepted) or None/empty

    Returns:
        Aware datetime or None

    Raises:
        ValueError: If the string is not a valid ISO timestamp
    """
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime (or None) to ISO-8601."""
    return value.isoformat() if value else None


class DenyReason(Enum):
    """Closed set of reasons an access attempt can be denied."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    QUOTA_EXCEEDED = "quota_exceeded"
    PASSWORD_REQUIRED = "password_required"
    PASSWORD_INCORRECT = "password_incorrect"
    PLAN_REQUIRED = "plan_required"


class DeliveryMethod(Enum):
    """How a file was delivered to the caller."""

    DIRECT = "direct"
    SHARE_LINK = "share_link"


@dataclass(frozen=True)
class AccessDecision:
    """
    Outcome of a policy evaluation.

    Exactly one of: allowed, or denied with a single reason. ``scope`` records
    whether a denial came from the file or the share link; it is informational
    and never changes the reason a caller sees.
    """
    allowed: bool
    reason: Optional[DenyReason] = None
    scope: Optional[str] = None

    @classmethod
    def allow(cls) -> 'AccessDecision':
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, scope: str = "file") -> 'AccessDecision':
        return cls(allowed=False, reason=reason, scope=scope)

    @property
    def denied(self) -> bool:
        return not self.allowed


@dataclass(frozen=True)
class AccessContext:
    """
    Request context for an access attempt.

    ``caller_plans`` is None when no plan system is wired in; plan gating is
    then a no-op. ``tenant_id`` is resolved upstream by the identity provider.
    """
    now: datetime = field(default_factory=utcnow)
    password: Optional[str] = None
    caller_id: Optional[str] = None
    tenant_id: Optional[str] = None
    caller_plans: Optional[FrozenSet[str]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "now", ensure_utc(self.now))
        if self.caller_plans is not None and not isinstance(self.caller_plans, frozenset):
            object.__setattr__(self, "caller_plans", frozenset(self.caller_plans))


@dataclass(frozen=True)
class Slug:
    """
    Value object representing a validated share-link slug.

    Slugs are URL-safe tokens (letters, digits, '-' and '_').
    Generated slugs are at least 10 characters; custom slugs at least 3.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidSlugError(
                f"Invalid slug: must be {MIN_CUSTOM_SLUG_LENGTH}-{MAX_SLUG_LENGTH} "
                f"URL-safe characters, got {self.value!r}"
            )

    def _is_valid(self) -> bool:
        if not self.value or not isinstance(self.value, str):
            return False
        if not MIN_CUSTOM_SLUG_LENGTH <= len(self.value) <= MAX_SLUG_LENGTH:
            return False
        return all(c in SLUG_ALPHABET for c in self.value)

    @classmethod
    def generate(cls, length: int = MIN_GENERATED_SLUG_LENGTH) -> 'Slug':
        """
        Generate a random slug from the 64-symbol URL-safe alphabet.

        Args:
            length: Number of characters (never fewer than 10)

        Returns:
            New Slug instance
        """
        length = max(length, MIN_GENERATED_SLUG_LENGTH)
        return cls("".join(secrets.choice(SLUG_ALPHABET) for _ in range(length)))

    def __str__(self) -> str:
        return self.value
