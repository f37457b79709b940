"""
Authorization Result Value Object

Encapsulates the outcome of one download authorization.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..domain.sharing.entities import ShareLink, SharedFile
from ..domain.sharing.value_objects import DenyReason


class AuthorizationState(Enum):
    """
    Terminal states of a single authorization request.

    A request is either denied after evaluation, or recorded once the URL
    was issued and the counters moved.
    """

    DENIED = "denied"
    RECORDED = "recorded"


@dataclass
class AuthorizationResult:
    """
    Value object representing the result of a download authorization.

    An allowed result carries the retrieval URL and the file metadata; a
    denied one carries exactly one DenyReason.
    """

    allowed: bool
    state: AuthorizationState
    file_id: Optional[str] = None
    reason: Optional[DenyReason] = None
    scope: Optional[str] = None
    url: Optional[str] = None
    expires_in: Optional[int] = None
    file: Dict[str, Any] = field(default_factory=dict)
    share_link: Optional[Dict[str, Any]] = None

    @classmethod
    def create_allowed(
        cls,
        shared_file: SharedFile,
        url: str,
        expires_in: int,
        share_link: Optional[ShareLink] = None,
    ) -> 'AuthorizationResult':
        """
        Create a successful authorization result.

        Args:
            shared_file: File being delivered
            url: Time-limited retrieval URL
            expires_in: URL lifetime in seconds
            share_link: Link used for the delivery, if any

        Returns:
            AuthorizationResult in the RECORDED state
        """
        return cls(
            allowed=True,
            state=AuthorizationState.RECORDED,
            file_id=shared_file.file_id,
            url=url,
            expires_in=expires_in,
            file=shared_file.to_summary_dict(),
            share_link=share_link.to_public_dict() if share_link else None,
        )

    @classmethod
    def create_denied(
        cls,
        reason: DenyReason,
        scope: Optional[str] = "file",
        file_id: Optional[str] = None,
    ) -> 'AuthorizationResult':
        return cls(
            allowed=False,
            state=AuthorizationState.DENIED,
            file_id=file_id,
            reason=reason,
            scope=scope,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert result to dictionary for serialization.

        Returns:
            Dictionary representation of the result
        """
        if not self.allowed:
            return {
                "allowed": False,
                "reason": self.reason.value if self.reason else None,
                "scope": self.scope,
            }

        data = {
            "allowed": True,
            "url": self.url,
            "expires_in": self.expires_in,
            "file": self.file,
        }
        if self.share_link is not None:
            data["share_link"] = self.share_link
        return data
