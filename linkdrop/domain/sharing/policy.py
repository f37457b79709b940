"""
Access Policy

Pure decision function for download access. No side effects, no I/O.

Checks run in a fixed order and the first failure wins:
existence -> expiration -> quota -> password -> plan.
Within expiration and quota the file is checked before the share link.
"""

from typing import Optional

from .entities import ShareLink, SharedFile
from .value_objects import AccessContext, AccessDecision, DenyReason


class AccessPolicyEvaluator:
    """
    Domain service deciding ALLOW/DENY for one access attempt.

    The same rules apply to direct and link-based access; on the link path
    the link's own expiry and quota are checked in addition to the file's.
    """

    def evaluate(
        self,
        shared_file: Optional[SharedFile],
        context: AccessContext,
        share_link: Optional[ShareLink] = None,
        via_link: bool = False,
    ) -> AccessDecision:
        """
        Evaluate an access attempt.

        Args:
            shared_file: File snapshot, or None if it does not exist
            context: Request context (time, password, caller plans, tenant)
            share_link: Share link snapshot for link-based access
            via_link: True when access goes through a share link; a missing
                link then denies with NOT_FOUND

        Returns:
            AccessDecision carrying at most one DenyReason
        """
        decision = self._check_existence(shared_file, context, share_link, via_link)
        if decision:
            return decision

        for check in (self._check_expiration, self._check_quota):
            decision = check(shared_file, context, share_link)
            if decision:
                return decision

        decision = self._check_password(shared_file, context)
        if decision:
            return decision

        decision = self._check_plan(shared_file, context)
        if decision:
            return decision

        return AccessDecision.allow()

    def _check_existence(
        self,
        shared_file: Optional[SharedFile],
        context: AccessContext,
        share_link: Optional[ShareLink],
        via_link: bool,
    ) -> Optional[AccessDecision]:
        if via_link:
            if share_link is None:
                return AccessDecision.deny(DenyReason.NOT_FOUND, scope="link")
            if shared_file is None or share_link.file_id != shared_file.file_id:
                return AccessDecision.deny(DenyReason.NOT_FOUND, scope="link")
            # A link is itself the grant, so visibility is not checked here.
            return None

        if shared_file is None:
            return AccessDecision.deny(DenyReason.NOT_FOUND)
        if not shared_file.is_visible_to(context.tenant_id):
            return AccessDecision.deny(DenyReason.NOT_FOUND)
        return None

    def _check_expiration(
        self,
        shared_file: SharedFile,
        context: AccessContext,
        share_link: Optional[ShareLink],
    ) -> Optional[AccessDecision]:
        if shared_file.is_expired(context.now):
            return AccessDecision.deny(DenyReason.EXPIRED)
        if share_link is not None and share_link.is_expired(context.now):
            return AccessDecision.deny(DenyReason.EXPIRED, scope="link")
        return None

    def _check_quota(
        self,
        shared_file: SharedFile,
        context: AccessContext,
        share_link: Optional[ShareLink],
    ) -> Optional[AccessDecision]:
        if shared_file.quota_reached():
            return AccessDecision.deny(DenyReason.QUOTA_EXCEEDED)
        if share_link is not None and share_link.quota_reached():
            return AccessDecision.deny(DenyReason.QUOTA_EXCEEDED, scope="link")
        return None

    def _check_password(
        self, shared_file: SharedFile, context: AccessContext
    ) -> Optional[AccessDecision]:
        if not shared_file.has_password:
            return None
        if context.password is None:
            return AccessDecision.deny(DenyReason.PASSWORD_REQUIRED)
        if not shared_file.check_password(context.password):
            return AccessDecision.deny(DenyReason.PASSWORD_INCORRECT)
        return None

    def _check_plan(
        self, shared_file: SharedFile, context: AccessContext
    ) -> Optional[AccessDecision]:
        # No plan system wired in: gating is a no-op.
        if not shared_file.requires_plan or context.caller_plans is None:
            return None
        if shared_file.requires_plan not in context.caller_plans:
            return AccessDecision.deny(DenyReason.PLAN_REQUIRED)
        return None
